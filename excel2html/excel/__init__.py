"""
Excel処理ヘルパーモジュール

ExcelToHtmlConverterが使う色解決・書式変換・配置計算のヘルパークラス群
"""

from excel2html.excel.color_resolver import ExcelColorResolver
from excel2html.excel.css_utils import ExcelCssUtils
from excel2html.excel.data_formatter import ExcelDataFormatter
from excel2html.excel.image_placement import ExcelImagePlacementMapper
from excel2html.excel.merged_cell_handler import ExcelMergedCellHandler
from excel2html.excel.rich_text import ExcelRichTextSplitter
from excel2html.excel.sheet_layout import ExcelSheetLayoutResolver
from excel2html.excel.style_registry import ExcelStyleRegistry
from excel2html.excel.value_formatter import ExcelValueFormatter

__all__ = [
    "ExcelColorResolver",
    "ExcelCssUtils",
    "ExcelDataFormatter",
    "ExcelValueFormatter",
    "ExcelRichTextSplitter",
    "ExcelStyleRegistry",
    "ExcelImagePlacementMapper",
    "ExcelMergedCellHandler",
    "ExcelSheetLayoutResolver",
]
