"""
Excel色解決ユーティリティ

色参照（RGB・パレット番号・テーマ番号）をCSSの色文字列に変換する。
ワークブック形式ごとに解決方法が異なるため、ドキュメント単位で実装を選択する。
"""

import logging

from openpyxl.styles.colors import COLOR_INDEX

from excel2html.workbook.model import ColorKind, ColorRef, Document, DocumentFamily

logger = logging.getLogger(__name__)

# CSSの色名で出力する色（POI互換）
_NAMED_COLORS = {
    "#ffffff": "white",
    "#c0c0c0": "silver",
    "#808080": "gray",
    "#000000": "black",
}


class ExcelColorResolver:
    """色文字列の整形と解決クラスの選択（全て staticmethod）"""

    @staticmethod
    def for_document(document: Document) -> "ColorResolver":
        """
        ドキュメントの形式に応じた色解決クラスを返す

        Args:
            document: 変換対象のDocument

        Returns:
            旧形式ならLegacyPaletteColorResolver、新形式ならModernColorResolver
        """
        if document.family is DocumentFamily.LEGACY:
            return LegacyPaletteColorResolver(document.palette)
        return ModernColorResolver(document.theme_colors)

    @staticmethod
    def to_css(red: int, green: int, blue: int) -> str:
        """RGB値をCSS色文字列に変換（代表的な色は色名）"""
        hex_color = f"#{red:02x}{green:02x}{blue:02x}"
        return _NAMED_COLORS.get(hex_color, hex_color)

    @staticmethod
    def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
        """16進カラーコード（ARGBの場合は末尾6桁）をRGBタプルに変換"""
        value = hex_color.lstrip("#")[-6:]
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))

    @staticmethod
    def apply_tint(rgb: tuple[int, int, int], tint: float) -> tuple[int, int, int]:
        """
        Excelのtint（明るさ補正）を適用

        tint > 0 は白に近づけ、tint < 0 は黒に近づける
        """
        if not tint:
            return rgb

        def _adjust(component: int) -> int:
            if tint > 0:
                value = int(component + (255 - component) * tint)
            else:
                value = int(component * (1 + tint))
            return max(0, min(255, value))

        return (_adjust(rgb[0]), _adjust(rgb[1]), _adjust(rgb[2]))


class ColorResolver:
    """色解決の共通インターフェース"""

    def resolve(self, color: ColorRef | None) -> str | None:
        raise NotImplementedError


class LegacyPaletteColorResolver(ColorResolver):
    """旧形式: ワークブックのカスタムパレットで番号を解決する"""

    def __init__(self, palette: dict[int, tuple[int, int, int]]):
        self._palette = palette

    def resolve(self, color: ColorRef | None) -> str | None:
        if color is None or color.kind is not ColorKind.INDEXED:
            return None

        rgb = self._palette.get(int(color.value))
        if rgb is None:
            return None
        return ExcelColorResolver.to_css(*rgb)


class ModernColorResolver(ColorResolver):
    """新形式: 組み込みの番号付き色 → テーマ色 / 明示的なRGB の順で解決する"""

    def __init__(self, theme_colors: list[str]):
        self._theme_colors = theme_colors
        self._warned_indices: set[int] = set()

    def resolve(self, color: ColorRef | None) -> str | None:
        if color is None:
            return None

        if color.kind is ColorKind.INDEXED:
            index = int(color.value)
            if 0 <= index < len(COLOR_INDEX):
                rgb = ExcelColorResolver.hex_to_rgb(COLOR_INDEX[index])
                return ExcelColorResolver.to_css(*rgb)
            return None

        if color.kind is ColorKind.THEME:
            return self._resolve_theme(int(color.value), color.tint)

        if color.kind is ColorKind.RGB:
            rgb = ExcelColorResolver.hex_to_rgb(str(color.value))
            return ExcelColorResolver.to_css(
                *ExcelColorResolver.apply_tint(rgb, color.tint)
            )

        return None

    def _resolve_theme(self, index: int, tint: float) -> str | None:
        if not 0 <= index < len(self._theme_colors) or not self._theme_colors[index]:
            # 同じ番号の警告は1回だけ出力する
            if index not in self._warned_indices:
                self._warned_indices.add(index)
                if not self._theme_colors:
                    logger.warning(
                        f"Theme color {index} requested but the workbook has no theme"
                    )
                else:
                    logger.warning(
                        f"Theme color {index} is not defined in the workbook theme"
                    )
            return None

        rgb = ExcelColorResolver.hex_to_rgb(self._theme_colors[index])
        return ExcelColorResolver.to_css(*ExcelColorResolver.apply_tint(rgb, tint))
