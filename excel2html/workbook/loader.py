"""
ワークブック読み込みの入口

拡張子で新形式（openpyxl）と旧形式（xlrd）の読み込みを振り分ける
"""

import logging
from pathlib import Path

from excel2html.error_messages import (
    get_unsupported_format_error,
    handle_conversion_error,
)
from excel2html.workbook.model import Document
from excel2html.workbook.openpyxl_reader import OpenpyxlWorkbookReader
from excel2html.workbook.xlrd_reader import XlrdWorkbookReader

logger = logging.getLogger(__name__)

MODERN_EXTENSIONS = {".xlsx", ".xlsm", ".xltx", ".xltm"}
LEGACY_EXTENSIONS = {".xls"}


def load_document(file_path: str | Path) -> Document:
    """
    ワークブックファイルを読み込んでDocumentを返す

    Args:
        file_path: ワークブックのパス

    Returns:
        Document

    Raises:
        ConversionError: ファイルが存在しない、形式が未対応、または読み込みに失敗した場合
    """
    path = Path(file_path)
    extension = path.suffix.lower()

    if extension in MODERN_EXTENSIONS:
        reader_class = OpenpyxlWorkbookReader
    elif extension in LEGACY_EXTENSIONS:
        reader_class = XlrdWorkbookReader
    else:
        raise get_unsupported_format_error(str(path))

    logger.info(f"Loading workbook: {path}")
    try:
        data = path.read_bytes()
        return reader_class(data).read()
    except Exception as e:
        raise handle_conversion_error(e, "load", str(path)) from e
