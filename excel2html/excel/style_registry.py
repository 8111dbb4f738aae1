"""
CSSクラスの登録と重複排除

セルスタイルから正規化したCSS文字列を作り、同一文字列には同一のクラス名を割り当てる。
登録内容はドキュメント全体（全シート）で共有し、最後にスタイルシートとして出力する。
"""

from excel2html.excel.color_resolver import ColorResolver
from excel2html.excel.css_utils import PIXEL_DPI, POINT_DPI, ExcelCssUtils
from excel2html.workbook.model import (
    BORDER_NONE,
    FILL_NONE,
    FILL_SOLID,
    BorderSide,
    CellStyle,
    FontInfo,
)

DEFAULT_FONT_FAMILY = "sans-serif"

CELL_CLASS_PREFIX = "c"
ROTATION_CLASS_PREFIX = "rot"


class ExcelStyleRegistry:
    """CSSクラスの生成とキャッシュ（1回の変換処理の間だけ保持する）"""

    def __init__(self, color_resolver: ColorResolver):
        self.color_resolver = color_resolver
        # プレフィックス -> (CSS文字列 -> クラス名)
        self._classes: dict[str, dict[str, str]] = {}
        # 回転角度 -> クラス名
        self._rotation_classes: dict[int, str] = {}

    def get_or_create_css_class(self, prefix: str, style: str) -> str:
        """
        CSS文字列に対応するクラス名を返す（未登録なら「プレフィックス+連番」で登録）

        Args:
            prefix: クラス名のプレフィックス（例: "c", "r"）
            style: CSS宣言の文字列

        Returns:
            クラス名（例: "c1"）
        """
        styles = self._classes.setdefault(prefix, {})
        class_name = styles.get(style)
        if class_name is None:
            class_name = f"{prefix}{len(styles) + 1}"
            styles[style] = class_name
        return class_name

    def class_for(self, style: CellStyle) -> str:
        """セルスタイルのクラス名を返す"""
        return self.get_or_create_css_class(CELL_CLASS_PREFIX, self.build_style(style))

    def rotation_class_for(self, angle: int, row_height_points: float) -> str:
        """
        回転角度のクラス名を返す（角度ごとに最初に使われた行の高さで生成する）

        Args:
            angle: 回転角度（度）
            row_height_points: 行の高さ（ポイント）

        Returns:
            クラス名（例: "rot1"）
        """
        class_name = self._rotation_classes.get(angle)
        if class_name is None:
            height = ExcelCssUtils.format_number(
                round(PIXEL_DPI / POINT_DPI * row_height_points, 2)
            )
            style = (
                "writing-mode: vertical-rl;"
                f"transform: rotate({angle + 90}deg);"
                "white-space: wrap;"
                "word-break: break-all;"
                f"height:{height}px;"
            )
            class_name = self.get_or_create_css_class(ROTATION_CLASS_PREFIX, style)
            self._rotation_classes[angle] = class_name
        return class_name

    def build_style(self, style: CellStyle) -> str:
        """セルスタイルから正規化したCSS文字列を作る"""
        css = "white-space: pre-wrap; "
        css += ExcelCssUtils.align(style.horizontal, style.vertical)

        if style.fill_pattern != FILL_NONE:
            if style.fill_pattern == FILL_SOLID:
                fill_color = self.color_resolver.resolve(style.fill_foreground)
            else:
                fill_color = self.color_resolver.resolve(style.fill_background)
            if fill_color:
                css += f"background-color:{fill_color}; "

        css += self._build_border("top", style.border_top)
        css += self._build_border("right", style.border_right)
        css += self._build_border("bottom", style.border_bottom)
        css += self._build_border("left", style.border_left)

        css += self._build_font(style.font)
        return css

    def _build_border(self, side_name: str, side: BorderSide) -> str:
        if side.style == BORDER_NONE:
            return ""

        border = f"{ExcelCssUtils.border_width(side.style)} {ExcelCssUtils.border_style(side.style)}"
        color = self.color_resolver.resolve(side.color)
        if color:
            border += f" {color}"
        return f"border-{side_name}: {border}; "

    def _build_font(self, font: FontInfo) -> str:
        css = ""
        if font.bold:
            css += "font-weight: bold; "

        color = self.color_resolver.resolve(font.color)
        if color:
            css += f"color:{color}; "

        if font.height_points:
            css += f"font-size: {ExcelCssUtils.format_number(font.height_points)}pt; "
        if font.italic:
            css += "font-style: italic; "

        css += f"font-family: '{font.name}', {DEFAULT_FONT_FAMILY}"
        return css

    def inline_font_style(self, font: FontInfo) -> str:
        """リッチテキストの書式ラン用のインラインスタイル（太字・斜体・色のみ）"""
        css = ""
        if font.bold:
            css += "font-weight:bold;"
        if font.italic:
            css += "font-style:italic;"
        color = self.color_resolver.resolve(font.color)
        if color:
            css += f"color:{color};"
        return css

    def rules(self) -> list[str]:
        """登録済みクラスのCSSルール（登録順）"""
        return [
            f".{class_name}{{{style}}}"
            for styles in self._classes.values()
            for style, class_name in styles.items()
        ]
