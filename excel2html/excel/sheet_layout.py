"""
Excelシートの出力範囲計算ユーティリティ

最終行・最終列（画像を含む）と、行・列の表示判定を担当するヘルパークラス
"""

from dataclasses import dataclass

from excel2html.excel.image_placement import RenderedImage
from excel2html.workbook.model import Row, Sheet


@dataclass(frozen=True)
class SheetExtent:
    """
    シートの出力範囲

    last_rowは出力する最終行（この行を含む、空シートは-1）、
    max_columnsは出力する列数（この列を含まない）
    """

    last_row: int
    max_columns: int

    @property
    def is_empty(self) -> bool:
        return self.last_row < 0


class ExcelSheetLayoutResolver:
    """出力範囲と表示判定（全て staticmethod）"""

    @staticmethod
    def last_not_empty_row(sheet: Sheet) -> int:
        """実在セルを持つ最終行（無ければ-1）"""
        last_row = -1
        for index, row in sheet.rows.items():
            if row.physical_cell_count > 0 and index > last_row:
                last_row = index
        return last_row

    @staticmethod
    def extent(
        sheet: Sheet, images_by_row: dict[int, dict[int, list[RenderedImage]]]
    ) -> SheetExtent:
        """
        シートの出力範囲を求める

        Args:
            sheet: 対象シート
            images_by_row: 行番号 -> (列番号 -> 画像)

        Returns:
            SheetExtent
        """
        last_row = ExcelSheetLayoutResolver.last_not_empty_row(sheet)
        if last_row < 0:
            return SheetExtent(last_row=-1, max_columns=0)

        max_columns = 0
        for index, row in sheet.rows.items():
            if index <= last_row and row.last_cell_num > max_columns:
                max_columns = row.last_cell_num

        # アンカー列が範囲外の画像があれば、その列まで広げる
        for row_index, images in images_by_row.items():
            if row_index > last_row:
                continue
            for column in images:
                max_columns = max(max_columns, column + 1)

        return SheetExtent(last_row=last_row, max_columns=max_columns)

    @staticmethod
    def row_extent(
        row: Row | None, row_images: dict[int, list[RenderedImage]]
    ) -> int:
        """
        行の出力列数（この列を含まない）

        セルの無い行は空白セル1つの行として扱い、画像のアンカー列まで広げる
        """
        if row is None or row.physical_cell_count == 0:
            last_cell_num = 1
        else:
            last_cell_num = row.last_cell_num

        last_image_column = max(row_images, default=-1)
        return max(last_cell_num, last_image_column + 1)

    @staticmethod
    def is_row_visible(sheet: Sheet, row: int, output_hidden_rows: bool) -> bool:
        return output_hidden_rows or not sheet.is_row_hidden(row)

    @staticmethod
    def is_column_visible(sheet: Sheet, column: int, output_hidden_columns: bool) -> bool:
        return output_hidden_columns or not sheet.is_column_hidden(column)
