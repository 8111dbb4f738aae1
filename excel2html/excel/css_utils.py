"""
Excel書式からCSSへの変換テーブル

罫線・配置の対応表と、列幅・行高さのピクセル換算を担当するヘルパークラス
"""

# 列幅の単位換算（1文字 = 256単位、1文字 = 7px）
EXCEL_COLUMN_WIDTH_FACTOR = 256
UNIT_OFFSET_LENGTH = 7

PIXEL_DPI = 96
POINT_DPI = 72

_DOTTED_BORDERS = {"dotted", "hair"}
_DASHED_BORDERS = {
    "dashed",
    "dashDot",
    "dashDotDot",
    "mediumDashed",
    "mediumDashDot",
    "mediumDashDotDot",
    "slantDashDot",
}
_MEDIUM_BORDERS = {"medium", "mediumDashed", "mediumDashDot", "mediumDashDotDot"}

_HORIZONTAL_ALIGN = {
    "left": "left",
    "center": "center",
    "centerContinuous": "center",
    "right": "right",
    "justify": "justify",
}

_VERTICAL_ALIGN = {
    "top": "top",
    "center": "middle",
    "bottom": "bottom",
}


class ExcelCssUtils:
    """CSS変換テーブルと単位換算（全て staticmethod）"""

    @staticmethod
    def border_style(style: str) -> str:
        """罫線種別をCSSのborder-styleに変換"""
        if style in _DOTTED_BORDERS:
            return "dotted"
        if style in _DASHED_BORDERS:
            return "dashed"
        if style == "double":
            return "double"
        return "solid"

    @staticmethod
    def border_width(style: str) -> str:
        """罫線種別をCSSのborder-widthに変換"""
        if style in _MEDIUM_BORDERS:
            return "2pt"
        if style == "thick":
            return "thick"
        return "thin"

    @staticmethod
    def align(horizontal: str, vertical: str) -> str:
        """
        配置をCSSに変換

        Args:
            horizontal: 横位置（general, left, center, ...）
            vertical: 縦位置（top, center, bottom, ...）

        Returns:
            "text-align:x;vertical-align:y;" 形式（該当しない方は省略）
        """
        css = ""
        text_align = _HORIZONTAL_ALIGN.get(horizontal)
        if text_align:
            css += f"text-align:{text_align};"
        vertical_align = _VERTICAL_ALIGN.get(vertical)
        if vertical_align:
            css += f"vertical-align:{vertical_align};"
        return css

    @staticmethod
    def column_width_px(width_chars: float) -> int:
        """
        文字数単位の列幅をピクセルに換算

        1文字 = 256単位として、整数文字分は7px、端数は7px比例で丸める
        """
        width_units = int(width_chars * EXCEL_COLUMN_WIDTH_FACTOR)
        pixels = (width_units // EXCEL_COLUMN_WIDTH_FACTOR) * UNIT_OFFSET_LENGTH
        offset_units = width_units % EXCEL_COLUMN_WIDTH_FACTOR
        pixels += round(offset_units / (EXCEL_COLUMN_WIDTH_FACTOR / UNIT_OFFSET_LENGTH))
        return pixels

    @staticmethod
    def points_to_px(points: float) -> int:
        """ポイントをピクセルに換算（96/72）"""
        return round(points * PIXEL_DPI / POINT_DPI)

    @staticmethod
    def format_number(value: float) -> str:
        """CSS値用の数値表記（整数なら小数点なし）"""
        return f"{value:g}"
