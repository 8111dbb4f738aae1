"""
ワークブック読み込みモジュール

openpyxl / xlrdで読み込んだワークブックを形式非依存のモデルに変換する
"""

from excel2html.workbook.loader import load_document
from excel2html.workbook.model import (
    Cell,
    CellKind,
    CellStyle,
    Document,
    DocumentFamily,
    Row,
    Sheet,
)
from excel2html.workbook.openpyxl_reader import OpenpyxlWorkbookReader
from excel2html.workbook.xlrd_reader import XlrdWorkbookReader

__all__ = [
    "load_document",
    "OpenpyxlWorkbookReader",
    "XlrdWorkbookReader",
    "Document",
    "DocumentFamily",
    "Sheet",
    "Row",
    "Cell",
    "CellKind",
    "CellStyle",
]
