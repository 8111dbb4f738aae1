"""
ExcelStyleRegistryのテスト
"""

import pytest

from excel2html.excel import ExcelStyleRegistry
from excel2html.excel.color_resolver import LegacyPaletteColorResolver, ModernColorResolver
from excel2html.workbook.model import (
    BorderSide,
    CellStyle,
    ColorKind,
    ColorRef,
    FontInfo,
)


@pytest.mark.unit
class TestExcelStyleRegistry:
    """ExcelStyleRegistry（CSSクラスの登録と重複排除）のテスト"""

    def _create_registry(self) -> ExcelStyleRegistry:
        return ExcelStyleRegistry(ModernColorResolver([]))

    def test_default_style(self):
        """既定スタイルのCSS文字列"""
        registry = self._create_registry()

        css = registry.build_style(CellStyle())

        assert css == (
            "white-space: pre-wrap; vertical-align:bottom;"
            "font-size: 11pt; font-family: 'Calibri', sans-serif"
        )

    def test_full_style(self):
        """配置・塗りつぶし・罫線・フォントの順に出力されること"""
        registry = self._create_registry()
        style = CellStyle(
            index=3,
            horizontal="center",
            vertical="top",
            fill_pattern="solid",
            fill_foreground=ColorRef(ColorKind.RGB, "FFFFFF00"),
            border_top=BorderSide("thin", ColorRef(ColorKind.RGB, "FF000000")),
            border_bottom=BorderSide("medium"),
            font=FontInfo(name="Arial", height_points=12, bold=True, italic=True,
                          color=ColorRef(ColorKind.RGB, "FFFF0000")),
        )

        css = registry.build_style(style)

        assert css == (
            "white-space: pre-wrap; text-align:center;vertical-align:top;"
            "background-color:#ffff00; "
            "border-top: thin solid black; "
            "border-bottom: 2pt solid; "
            "font-weight: bold; color:#ff0000; font-size: 12pt; font-style: italic; "
            "font-family: 'Arial', sans-serif"
        )

    def test_pattern_fill_uses_background(self):
        """solid以外の塗りつぶしは背景色を使うこと"""
        registry = self._create_registry()
        style = CellStyle(
            fill_pattern="gray125",
            fill_foreground=ColorRef(ColorKind.RGB, "FF00FF00"),
            fill_background=ColorRef(ColorKind.RGB, "FF0000FF"),
        )

        assert "background-color:#0000ff; " in registry.build_style(style)

    def test_unresolved_color_is_omitted(self):
        """解決できない色はプロパティごと省略されること"""
        registry = ExcelStyleRegistry(LegacyPaletteColorResolver({}))
        style = CellStyle(
            fill_pattern="solid",
            fill_foreground=ColorRef(ColorKind.INDEXED, 13),
            border_left=BorderSide("thin", ColorRef(ColorKind.INDEXED, 13)),
            font=FontInfo(color=ColorRef(ColorKind.INDEXED, 13)),
        )

        css = registry.build_style(style)

        assert "background-color" not in css
        assert "border-left: thin solid; " in css
        assert "color:" not in css

    def test_identical_styles_share_class(self):
        """同じCSS文字列になるスタイルは同じクラス名になること"""
        registry = self._create_registry()
        first = CellStyle(index=1, font=FontInfo(bold=True))
        second = CellStyle(index=7, font=FontInfo(bold=True))
        other = CellStyle(index=2, font=FontInfo(italic=True))

        class_a = registry.class_for(first)
        class_b = registry.class_for(second)
        class_c = registry.class_for(other)

        assert class_a == class_b == "c1"
        assert class_c == "c2"
        assert len([rule for rule in registry.rules() if rule.startswith(".c1{")]) == 1

    def test_prefixes_are_numbered_separately(self):
        """プレフィックスごとに連番が振られること"""
        registry = self._create_registry()

        assert registry.get_or_create_css_class("r", "height:20px;") == "r1"
        assert registry.get_or_create_css_class("t", "border-spacing:0;") == "t1"
        assert registry.get_or_create_css_class("r", "height:40px;") == "r2"
        assert registry.get_or_create_css_class("r", "height:20px;") == "r1"

    def test_rotation_class_reuse(self):
        """同じ角度は同じ回転クラス、異なる角度は別のクラスになること"""
        registry = self._create_registry()

        first = registry.rotation_class_for(45, 15)
        again = registry.rotation_class_for(45, 30)
        other = registry.rotation_class_for(-30, 15)

        assert first == again == "rot1"
        assert other == "rot2"

    def test_rotation_style(self):
        """回転クラスのCSSに角度+90と行高さのピクセル値が入ること"""
        registry = self._create_registry()

        registry.rotation_class_for(45, 15)

        assert registry.rules() == [
            ".rot1{writing-mode: vertical-rl;transform: rotate(135deg);"
            "white-space: wrap;word-break: break-all;height:20px;}"
        ]

    def test_inline_font_style(self):
        """リッチテキスト用のインラインスタイル"""
        registry = self._create_registry()
        font = FontInfo(bold=True, italic=True, color=ColorRef(ColorKind.RGB, "FF0000FF"))

        assert registry.inline_font_style(font) == (
            "font-weight:bold;font-style:italic;color:#0000ff;"
        )
        assert registry.inline_font_style(FontInfo()) == ""

    def test_rules_in_registration_order(self):
        """ルールが登録順に出力されること"""
        registry = self._create_registry()
        registry.get_or_create_css_class("t", "a:1;")
        registry.get_or_create_css_class("r", "b:2;")

        assert registry.rules() == [".t1{a:1;}", ".r1{b:2;}"]
