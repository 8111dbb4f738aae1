"""
Excel画像アンカーのピクセル配置計算

アンカー（左上セル+セル内オフセット、右下セル+セル内オフセット）から、
画像のピクセルサイズとアンカーセル左上からの相対オフセットを求める
"""

from dataclasses import dataclass

from excel2html.excel.css_utils import PIXEL_DPI, POINT_DPI, ExcelCssUtils
from excel2html.workbook.model import AnchorPoint, AnchorUnits, Picture, Sheet

EMU_PER_PIXEL = 9525.0

# 旧形式のセル内オフセットの分母（列幅の1/1024、行高さの1/256）
COLUMN_FRACTION_DENOMINATOR = 1024
ROW_FRACTION_DENOMINATOR = 256


@dataclass(frozen=True)
class RenderedImage:
    """配置計算済みの画像（offsetはアンカーセル左上からの相対位置）"""

    row: int
    column: int
    width: int
    height: int
    offset_x: int
    offset_y: int
    data: bytes
    extension: str


class ExcelImagePlacementMapper:
    """画像アンカーのピクセル換算（全て staticmethod）"""

    @staticmethod
    def place(picture: Picture, sheet: Sheet) -> RenderedImage:
        """
        画像のサイズとアンカーセルからのオフセットを計算する

        Args:
            picture: 画像
            sheet: 画像を含むシート（列幅・行高さの参照に使用）

        Returns:
            RenderedImage
        """
        anchor = picture.anchor
        top_left = anchor.top_left
        offset_x, offset_y = ExcelImagePlacementMapper._offset_px(
            top_left, anchor.units, sheet
        )

        if anchor.bottom_right is not None:
            bottom_right = anchor.bottom_right
            end_x, end_y = ExcelImagePlacementMapper._offset_px(
                bottom_right, anchor.units, sheet
            )
            # 間にある列・行の幅を合計し、右下位置 - 左上位置をサイズとする
            width = (
                sum(
                    ExcelImagePlacementMapper.column_px(sheet, col)
                    for col in range(top_left.col, bottom_right.col)
                )
                + end_x
                - offset_x
            )
            height = (
                sum(
                    ExcelImagePlacementMapper.row_px(sheet, row)
                    for row in range(top_left.row, bottom_right.row)
                )
                + end_y
                - offset_y
            )
        elif anchor.extent_emu is not None:
            width = anchor.extent_emu[0] / EMU_PER_PIXEL
            height = anchor.extent_emu[1] / EMU_PER_PIXEL
        else:
            width = height = 0

        return RenderedImage(
            row=top_left.row,
            column=top_left.col,
            width=max(0, round(width)),
            height=max(0, round(height)),
            offset_x=round(offset_x),
            offset_y=round(offset_y),
            data=picture.data,
            extension=picture.extension,
        )

    @staticmethod
    def group_by_row(
        pictures: list[Picture], sheet: Sheet
    ) -> dict[int, dict[int, list[RenderedImage]]]:
        """
        シート内の画像をアンカー行・列ごとにまとめる

        同じセルにアンカーされた画像は読み込み順に並べる

        Returns:
            行番号 -> (列番号 -> RenderedImageのリスト)
        """
        grouped: dict[int, dict[int, list[RenderedImage]]] = {}
        for picture in pictures:
            image = ExcelImagePlacementMapper.place(picture, sheet)
            grouped.setdefault(image.row, {}).setdefault(image.column, []).append(image)
        return grouped

    @staticmethod
    def column_px(sheet: Sheet, column: int) -> int:
        return ExcelCssUtils.column_width_px(sheet.column_width(column))

    @staticmethod
    def row_px(sheet: Sheet, row: int) -> float:
        return sheet.row_height_points(row) * PIXEL_DPI / POINT_DPI

    @staticmethod
    def _offset_px(
        point: AnchorPoint, units: AnchorUnits, sheet: Sheet
    ) -> tuple[float, float]:
        """セル内オフセットをピクセルに換算"""
        if units is AnchorUnits.FRACTION:
            x = (
                point.dx
                / COLUMN_FRACTION_DENOMINATOR
                * ExcelImagePlacementMapper.column_px(sheet, point.col)
            )
            y = (
                point.dy
                / ROW_FRACTION_DENOMINATOR
                * ExcelImagePlacementMapper.row_px(sheet, point.row)
            )
            return (x, y)
        return (point.dx / EMU_PER_PIXEL, point.dy / EMU_PER_PIXEL)
