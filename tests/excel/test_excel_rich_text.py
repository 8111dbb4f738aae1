"""
ExcelRichTextSplitterのテスト
"""

import pytest

from excel2html.excel import ExcelRichTextSplitter
from excel2html.workbook.model import BaselineOffset, FontInfo, FontRun, RichText


@pytest.mark.unit
class TestExcelRichTextSplitter:
    """ExcelRichTextSplitter（書式ラン分割）のテスト"""

    BASE = FontInfo(name="Calibri")
    BOLD = FontInfo(name="Calibri", bold=True)
    SUP = FontInfo(name="Calibri", baseline=BaselineOffset.SUPERSCRIPT)

    def test_no_runs(self):
        """書式ランが無い場合は文字列全体がセルのフォントになること"""
        result = ExcelRichTextSplitter.split(RichText("hello"), self.BASE)

        assert result == [("hello", self.BASE)]

    def test_runs_in_order(self):
        """ランのフォントは次の境界の直前まで適用されること"""
        rich_text = RichText(
            "abcdef", (FontRun(start=0, font=self.BOLD), FontRun(start=3, font=self.SUP))
        )

        result = ExcelRichTextSplitter.split(rich_text, self.BASE)

        assert result == [("abc", self.BOLD), ("def", self.SUP)]

    def test_text_before_first_run(self):
        """最初の境界より前の文字列はセルのフォントになること"""
        rich_text = RichText("H2O", (FontRun(start=1, font=self.SUP), FontRun(start=2, font=self.BASE)))

        result = ExcelRichTextSplitter.split(rich_text, self.BASE)

        assert result == [("H", self.BASE), ("2", self.SUP), ("O", self.BASE)]

    def test_unsorted_and_empty_runs(self):
        """境界は位置順に扱われ、空の区間は出力されないこと"""
        rich_text = RichText(
            "xy",
            (
                FontRun(start=1, font=self.SUP),
                FontRun(start=0, font=self.BOLD),
                FontRun(start=2, font=self.BASE),
            ),
        )

        result = ExcelRichTextSplitter.split(rich_text, self.BASE)

        assert result == [("x", self.BOLD), ("y", self.SUP)]

    def test_pure_function(self):
        """同じ入力からは同じ結果が得られること"""
        rich_text = RichText("abc", (FontRun(start=1, font=self.BOLD),))

        first = ExcelRichTextSplitter.split(rich_text, self.BASE)
        second = ExcelRichTextSplitter.split(rich_text, self.BASE)

        assert first == second

    def test_empty_text(self):
        """空文字列は何も出力しないこと"""
        assert ExcelRichTextSplitter.split(RichText(""), self.BASE) == []
