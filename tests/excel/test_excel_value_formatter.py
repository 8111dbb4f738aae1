"""
ExcelValueFormatterのテスト
"""

import locale
import logging
from unittest.mock import patch

import pytest

from excel2html.excel import ExcelValueFormatter
from excel2html.workbook.model import Cell, CellKind, CellStyle, FontRun, FontInfo, RichText


@pytest.mark.unit
class TestExcelValueFormatter:
    """ExcelValueFormatter（セル値の表示文字列変換）のテスト"""

    def _formula_cell(self, cached_kind, cached_value, number_format="General") -> Cell:
        return Cell(
            row=0,
            column=0,
            kind=CellKind.FORMULA,
            value="=A2*2",
            style=CellStyle(index=1, number_format=number_format),
            cached_kind=cached_kind,
            cached_value=cached_value,
        )

    def test_string_is_rich_text(self):
        """空でない文字列はリッチテキストとして扱われること"""
        runs = (FontRun(start=2, font=FontInfo(bold=True)),)
        cell = Cell(
            row=0,
            column=0,
            kind=CellKind.STRING,
            value="abcd",
            rich_text=RichText("abcd", runs),
        )

        result = ExcelValueFormatter().format(cell)

        assert result.text == "abcd"
        assert result.is_rich_text
        assert result.rich_text.runs == runs

    def test_string_without_runs(self):
        """書式ランの無い文字列もリッチテキストになること"""
        cell = Cell(row=0, column=0, kind=CellKind.STRING, value="plain")

        result = ExcelValueFormatter().format(cell)

        assert result.is_rich_text
        assert result.rich_text == RichText("plain")

    def test_blank_string_collapses(self):
        """空白のみの文字列は空文字になること"""
        cell = Cell(row=0, column=0, kind=CellKind.STRING, value="   ")

        result = ExcelValueFormatter().format(cell)

        assert result.text == ""
        assert not result.is_rich_text

    def test_numeric_uses_locale(self):
        """数値セルは表示形式を使わずに文字列化されること"""
        cell = Cell(
            row=0,
            column=0,
            kind=CellKind.NUMERIC,
            value=1234.5,
            style=CellStyle(index=1, number_format="#,##0.00"),
        )

        conventions = {**locale.localeconv(), "decimal_point": ",", "thousands_sep": "."}
        formula = self._formula_cell(CellKind.NUMERIC, 1234.5)

        with patch("locale.localeconv", return_value=conventions):
            result = ExcelValueFormatter().format(cell)
            formula_result = ExcelValueFormatter().format(formula)

        # 数値セルは現在のロケールの小数点、数式の結果はロケールに依存しない
        assert result.text == "1234,5"
        assert formula_result.text == "1234.5"

    def test_numeric_integer(self):
        """整数値は小数点なしで出力されること"""
        cell = Cell(row=0, column=0, kind=CellKind.NUMERIC, value=42.0)

        assert ExcelValueFormatter().format(cell).text == "42"

    def test_boolean_and_error(self):
        """真偽値・エラー値の文字列化"""
        formatter = ExcelValueFormatter()

        assert (
            formatter.format(Cell(row=0, column=0, kind=CellKind.BOOLEAN, value=True)).text
            == "True"
        )
        assert (
            formatter.format(Cell(row=0, column=0, kind=CellKind.BOOLEAN, value=False)).text
            == "False"
        )
        assert (
            formatter.format(Cell(row=0, column=0, kind=CellKind.ERROR, value="#DIV/0!")).text
            == "#DIV/0!"
        )

    def test_blank(self):
        """空白セルは空文字になること"""
        cell = Cell(row=0, column=0, kind=CellKind.BLANK)

        assert ExcelValueFormatter().format(cell).text == ""

    def test_formula_numeric_uses_number_format(self):
        """数式の数値結果は表示形式で整形されること"""
        cell = self._formula_cell(CellKind.NUMERIC, 1234.5, '"$"#,##0.00')

        assert ExcelValueFormatter().format(cell).text == "$1,234.50"

    def test_formula_string_boolean_error(self):
        """数式の文字列・真偽値・エラー結果"""
        formatter = ExcelValueFormatter()

        assert formatter.format(self._formula_cell(CellKind.STRING, "ok")).text == "ok"
        assert formatter.format(self._formula_cell(CellKind.STRING, "  ")).text == ""
        assert formatter.format(self._formula_cell(CellKind.BOOLEAN, True)).text == "True"
        assert formatter.format(self._formula_cell(CellKind.ERROR, "#N/A")).text == "#N/A"

    def test_formula_unknown_cached_type(self, caplog):
        """計算結果の種類が不明な場合は警告を出して空文字になること"""
        cell = self._formula_cell(None, None)

        with caplog.at_level(logging.WARNING):
            result = ExcelValueFormatter().format(cell)

        assert result.text == ""
        assert any("cached formula result" in r.getMessage() for r in caplog.records)

    def test_disable_formulas(self):
        """数式出力を無効にすると空文字になること"""
        cell = self._formula_cell(CellKind.NUMERIC, 10)

        assert ExcelValueFormatter(disable_formulas=True).format(cell).text == ""

    def test_unexpected_kind(self, caplog):
        """想定外の種類のセルはNoneを返すこと"""
        cell = Cell(row=2, column=3, kind="mystery")

        with caplog.at_level(logging.WARNING):
            result = ExcelValueFormatter().format(cell)

        assert result is None
        assert any("Unexpected cell type" in r.getMessage() for r in caplog.records)
