"""
Excelマージセル処理ユーティリティ

結合範囲の索引構築と、結合セルに適用する罫線の解決を担当するヘルパークラス
"""

import dataclasses
import logging

from openpyxl.utils import get_column_letter

from excel2html.error_messages import get_structure_error
from excel2html.workbook.model import Cell, CellStyle, MergedRange, Sheet

logger = logging.getLogger(__name__)


class MergedRangeIndex:
    """セル座標 -> 結合範囲 の索引（1シート分）"""

    def __init__(self, cell_map: dict[tuple[int, int], MergedRange]):
        self._cell_map = cell_map

    def range_at(self, row: int, col: int) -> MergedRange | None:
        """セルを含む結合範囲（含まれなければNone）"""
        return self._cell_map.get((row, col))

    def is_hidden_by_merge(self, row: int, col: int) -> bool:
        """結合範囲の内部（アンカー以外）のセルかどうか"""
        merged_range = self._cell_map.get((row, col))
        return merged_range is not None and merged_range.anchor != (row, col)


class ExcelMergedCellHandler:
    """結合範囲の索引構築と罫線の解決（全て staticmethod）"""

    @staticmethod
    def build_merged_range_index(
        sheet: Sheet, last_row: int, max_columns: int
    ) -> MergedRangeIndex:
        """
        結合範囲の索引を構築する
        - 出力範囲（0..last_row行、0..max_columns-1列）と交差する部分だけを展開する

        Args:
            sheet: 対象シート
            last_row: 出力する最終行（この行を含む）
            max_columns: 出力する列数（この列を含まない）

        Returns:
            MergedRangeIndex

        Raises:
            ConversionError: 結合範囲が重なっている場合
        """
        cell_map: dict[tuple[int, int], MergedRange] = {}

        for merged_range in sheet.merged_ranges:
            # 出力範囲と交差しない結合は無視（部分展開）
            inter_max_row = min(merged_range.last_row, last_row)
            inter_max_col = min(merged_range.last_col, max_columns - 1)
            if merged_range.first_row > inter_max_row or merged_range.first_col > inter_max_col:
                continue

            for row_idx in range(merged_range.first_row, inter_max_row + 1):
                for col_idx in range(merged_range.first_col, inter_max_col + 1):
                    existing = cell_map.get((row_idx, col_idx))
                    if existing is not None:
                        raise get_structure_error(
                            f"Merged ranges {_range_label(existing)} and "
                            f"{_range_label(merged_range)} overlap in sheet '{sheet.name}'."
                        )
                    cell_map[(row_idx, col_idx)] = merged_range

        logger.debug(
            f"Indexed {len(sheet.merged_ranges)} merged range(s) covering "
            f"{len(cell_map)} cell(s) in sheet '{sheet.name}'"
        )
        return MergedRangeIndex(cell_map)

    @staticmethod
    def effective_style(
        sheet: Sheet, cell: Cell | None, merged_range: MergedRange | None
    ) -> CellStyle | None:
        """
        結合セルのアンカーに適用するスタイルを返す

        右下セルの下・右罫線がアンカーと異なる場合、それをアンカーの下・右罫線として
        使った複製を返す（元のスタイルは変更しない）

        Args:
            sheet: 対象シート
            cell: アンカーセル（存在しない場合はNone）
            merged_range: アンカーの結合範囲（結合されていない場合はNone）

        Returns:
            出力に使うスタイル（セルが無い場合はNone）
        """
        if cell is None:
            return None
        if merged_range is None:
            return cell.style

        corner = sheet.get_cell(merged_range.last_row, merged_range.last_col)
        if corner is None:
            return cell.style

        style = cell.style
        corner_style = corner.style
        if (
            style.border_bottom != corner_style.border_bottom
            or style.border_right != corner_style.border_right
        ):
            return dataclasses.replace(
                style,
                border_bottom=corner_style.border_bottom,
                border_right=corner_style.border_right,
            )
        return style


def _range_label(merged_range: MergedRange) -> str:
    """A1:B2 形式の範囲表記"""
    start = f"{get_column_letter(merged_range.first_col + 1)}{merged_range.first_row + 1}"
    end = f"{get_column_letter(merged_range.last_col + 1)}{merged_range.last_row + 1}"
    return f"{start}:{end}"
