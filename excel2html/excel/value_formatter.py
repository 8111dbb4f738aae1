"""
Excelセル値の表示文字列変換

セルの種類（文字列・数値・真偽値・エラー・数式・空白）に応じて表示文字列を作る
"""

import locale
import logging
from dataclasses import dataclass

from excel2html.excel.data_formatter import ExcelDataFormatter
from excel2html.workbook.model import Cell, CellKind, RichText

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormattedValue:
    """セルの表示内容（rich_textがあれば書式ラン単位で出力する）"""

    text: str
    rich_text: RichText | None = None

    @property
    def is_rich_text(self) -> bool:
        return self.rich_text is not None


class ExcelValueFormatter:
    """セル値を表示文字列に変換する"""

    def __init__(self, disable_formulas: bool = False):
        self.disable_formulas = disable_formulas

    def format(self, cell: Cell) -> FormattedValue | None:
        """
        セルの表示内容を返す

        Args:
            cell: 変換対象のセル

        Returns:
            FormattedValue。想定外の種類のセルはNone（内容・スタイルとも出力しない）
        """
        kind = cell.kind

        if kind is CellKind.STRING:
            text = cell.value if isinstance(cell.value, str) else str(cell.value or "")
            if text.strip():
                return FormattedValue(text, cell.rich_text or RichText(text))
            return FormattedValue("")

        if kind is CellKind.FORMULA:
            if self.disable_formulas:
                return FormattedValue("")
            return FormattedValue(self._format_cached_result(cell))

        if kind is CellKind.NUMERIC:
            # 数値セルは表示形式を使わず現在のロケールで文字列化する
            return FormattedValue(locale.format_string("%.15g", cell.value, grouping=False))

        if kind is CellKind.BOOLEAN:
            return FormattedValue(str(bool(cell.value)))

        if kind is CellKind.ERROR:
            return FormattedValue(str(cell.value))

        if kind is CellKind.BLANK:
            return FormattedValue("")

        logger.warning(
            f"Unexpected cell type ({kind}) at row {cell.row + 1}, column {cell.column + 1}"
        )
        return None

    def _format_cached_result(self, cell: Cell) -> str:
        """数式セルの計算済みの値を表示文字列に変換"""
        cached_kind = cell.cached_kind
        value = cell.cached_value

        if cached_kind is CellKind.STRING:
            text = str(value) if value is not None else ""
            return text if text.strip() else ""

        if cached_kind is CellKind.NUMERIC:
            return ExcelDataFormatter.format_raw_cell_contents(
                value, cell.style.number_format
            )

        if cached_kind is CellKind.BOOLEAN:
            return str(bool(value))

        if cached_kind is CellKind.ERROR:
            return str(value)

        logger.warning(
            f"Unexpected cached formula result type ({cached_kind}) "
            f"at row {cell.row + 1}, column {cell.column + 1}"
        )
        return ""
