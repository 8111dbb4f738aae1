"""
ワークブック読み込み（openpyxl / xlrd / 拡張子による振り分け）のテスト
"""

import datetime
import logging
from io import BytesIO
from types import SimpleNamespace

import pytest
import xlrd
from openpyxl import Workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont
from openpyxl.drawing.image import Image as XlImage
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from PIL import Image

from excel2html.error_messages import ConversionError, ErrorCategory
from excel2html.workbook import load_document
from excel2html.workbook.model import (
    BaselineOffset,
    BorderSide,
    CellKind,
    ColorKind,
    ColorRef,
    DocumentFamily,
    FontRun,
    MergedRange,
)
from excel2html.workbook.openpyxl_reader import OpenpyxlWorkbookReader
from excel2html.workbook.xlrd_reader import XlrdWorkbookReader


def _save(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.mark.unit
class TestOpenpyxlWorkbookReader:
    """OpenpyxlWorkbookReader（新形式の読み込み）のテスト"""

    def test_cell_kinds(self):
        """セル値の種類が判別されること"""
        wb = Workbook()
        ws = wb.active
        ws.title = "Data"
        ws["A1"] = "text"
        ws["B1"] = 12.5
        ws["C1"] = True
        ws["D1"] = "=B1*2"
        ws["E1"] = datetime.datetime(2024, 1, 1)

        document = OpenpyxlWorkbookReader(_save(wb)).read()
        sheet = document.sheets[0]

        assert document.family is DocumentFamily.MODERN
        assert sheet.name == "Data"
        assert sheet.get_cell(0, 0).kind is CellKind.STRING
        assert sheet.get_cell(0, 0).rich_text.text == "text"
        assert sheet.get_cell(0, 1).kind is CellKind.NUMERIC
        assert sheet.get_cell(0, 1).value == 12.5
        assert sheet.get_cell(0, 2).kind is CellKind.BOOLEAN
        formula = sheet.get_cell(0, 3)
        assert formula.kind is CellKind.FORMULA
        assert formula.value == "=B1*2"
        # openpyxlで保存したファイルには計算結果が無い
        assert formula.cached_kind is None
        assert sheet.get_cell(0, 4).kind is CellKind.NUMERIC
        assert sheet.get_cell(0, 4).value == 45292

    def test_styles(self):
        """書式がCellStyleに変換されること"""
        wb = Workbook()
        ws = wb.active
        cell = ws["B2"]
        cell.value = 1
        cell.font = Font(name="Arial", size=14, bold=True, color="FF0000FF")
        cell.fill = PatternFill(fill_type="solid", fgColor="FFFFFF00")
        cell.border = Border(bottom=Side(style="thick", color="FF000000"))
        cell.alignment = Alignment(
            horizontal="center", vertical="top", wrap_text=True, text_rotation=135
        )
        cell.number_format = "0.00"

        sheet = OpenpyxlWorkbookReader(_save(wb)).read().sheets[0]
        style = sheet.get_cell(1, 1).style

        assert style.index != 0
        assert style.horizontal == "center"
        assert style.vertical == "top"
        assert style.wrap_text is True
        assert style.rotation == -45
        assert style.number_format == "0.00"
        assert style.fill_pattern == "solid"
        assert style.fill_foreground == ColorRef(ColorKind.RGB, "FFFF00")
        assert style.border_bottom == BorderSide("thick", ColorRef(ColorKind.RGB, "000000"))
        assert style.border_top == BorderSide()
        assert style.font.name == "Arial"
        assert style.font.height_points == 14
        assert style.font.bold is True
        assert style.font.color == ColorRef(ColorKind.RGB, "0000FF")

    def test_layout(self):
        """列幅・非表示列・行高さ・非表示行・結合範囲"""
        wb = Workbook()
        ws = wb.active
        ws["A1"] = "a"
        ws["C3"] = "c"
        ws.column_dimensions["B"].width = 20
        ws.column_dimensions["C"].hidden = True
        ws.row_dimensions[2].height = 30
        ws.row_dimensions[5].hidden = True
        ws.merge_cells("A1:B2")

        sheet = OpenpyxlWorkbookReader(_save(wb)).read().sheets[0]

        assert sheet.column_width(1) == 20
        assert sheet.is_column_hidden(2)
        assert sheet.row_height_points(1) == 30
        assert sheet.is_row_hidden(4)
        assert sheet.rows[4].cells == {}
        assert sheet.merged_ranges == [
            MergedRange(first_row=0, last_row=1, first_col=0, last_col=1)
        ]

    def test_rich_text(self):
        """書式付き文字列が書式ランに分解されること"""
        wb = Workbook()
        ws = wb.active
        ws["A1"] = CellRichText(
            TextBlock(InlineFont(b=True), "Bold"),
            TextBlock(InlineFont(vertAlign="superscript"), "2"),
        )

        sheet = OpenpyxlWorkbookReader(_save(wb)).read().sheets[0]
        rich_text = sheet.get_cell(0, 0).rich_text

        assert rich_text.text == "Bold2"
        assert [run.start for run in rich_text.runs] == [0, 4]
        assert rich_text.runs[0].font.bold is True
        assert rich_text.runs[1].font.baseline is BaselineOffset.SUPERSCRIPT

    def test_metadata(self):
        """ドキュメントのプロパティが読み込まれること"""
        wb = Workbook()
        wb.properties.title = "Budget"
        wb.properties.creator = "Alice"
        wb.properties.keywords = "finance"
        wb.properties.description = "Yearly budget"

        metadata = OpenpyxlWorkbookReader(_save(wb)).read().metadata

        assert metadata.title == "Budget"
        assert metadata.author == "Alice"
        assert metadata.keywords == "finance"
        assert metadata.description == "Yearly budget"

    def test_theme_colors(self):
        """既定テーマの色がテーマ番号順に読み込まれること"""
        wb = Workbook()
        wb.active["A1"] = "x"

        theme_colors = OpenpyxlWorkbookReader(_save(wb)).read().theme_colors

        assert len(theme_colors) == 12
        assert theme_colors[0] == "FFFFFF"
        assert theme_colors[1] == "000000"

    def test_picture(self):
        """セル座標に配置した画像が1セルアンカーとして読み込まれること"""
        buffer = BytesIO()
        Image.new("RGB", (20, 10), "red").save(buffer, format="PNG")
        buffer.seek(0)

        wb = Workbook()
        ws = wb.active
        ws["A1"] = "x"
        ws.add_image(XlImage(buffer), "B2")

        sheet = OpenpyxlWorkbookReader(_save(wb)).read().sheets[0]

        assert len(sheet.pictures) == 1
        picture = sheet.pictures[0]
        assert picture.extension == "png"
        assert picture.data.startswith(b"\x89PNG")
        assert (picture.anchor.top_left.col, picture.anchor.top_left.row) == (1, 1)
        assert picture.anchor.extent_emu == (20 * 9525, 10 * 9525)


class _FakeXlrdSheet:
    """xlrdのSheetと同じ属性・メソッドを持つテスト用シート"""

    def __init__(self, name: str, cells: dict[tuple[int, int], tuple[int, object, int]]):
        self.name = name
        self._cells = cells
        self.nrows = max(row for row, _ in cells) + 1 if cells else 0
        self.defcolwidth = 10
        self.default_row_height = 300
        self.colinfo_map = {}
        self.rowinfo_map = {}
        self.merged_cells = []
        self.rich_text_runlist_map = {}

    def row_len(self, row: int) -> int:
        columns = [col for r, col in self._cells if r == row]
        return max(columns) + 1 if columns else 0

    def cell_type(self, row: int, col: int) -> int:
        return self._cells.get((row, col), (xlrd.XL_CELL_EMPTY, "", 0))[0]

    def cell_value(self, row: int, col: int):
        return self._cells.get((row, col), (xlrd.XL_CELL_EMPTY, "", 0))[1]

    def cell_xf_index(self, row: int, col: int) -> int:
        return self._cells.get((row, col), (xlrd.XL_CELL_EMPTY, "", 0))[2]


@pytest.mark.unit
class TestXlrdWorkbookReader:
    """XlrdWorkbookReader（旧形式の読み込み）のテスト"""

    def _create_xf(self, **alignment) -> SimpleNamespace:
        return SimpleNamespace(
            alignment=SimpleNamespace(
                hor_align=alignment.get("hor_align", 0),
                vert_align=alignment.get("vert_align", 2),
                rotation=alignment.get("rotation", 0),
                text_wrapped=alignment.get("text_wrapped", 0),
            ),
            border=SimpleNamespace(
                top_line_style=1,
                top_colour_index=8,
                right_line_style=0,
                right_colour_index=0,
                bottom_line_style=5,
                bottom_colour_index=10,
                left_line_style=0,
                left_colour_index=0,
            ),
            background=SimpleNamespace(
                fill_pattern=1, pattern_colour_index=13, background_colour_index=64
            ),
            format_key=alignment.get("format_key", 0),
            font_index=0,
        )

    def _create_font(self, bold: int = 0, escapement: int = 0) -> SimpleNamespace:
        return SimpleNamespace(
            name="Arial",
            height=200,
            bold=bold,
            italic=0,
            colour_index=8,
            escapement=escapement,
        )

    def _create_book(self, sheet: _FakeXlrdSheet) -> SimpleNamespace:
        return SimpleNamespace(
            nsheets=1,
            sheet_by_index=lambda index: sheet,
            user_name="bob",
            colour_map={8: (0, 0, 0), 10: (255, 0, 0), 13: (255, 255, 0), 64: None},
            xf_list=[
                self._create_xf(hor_align=2, vert_align=0, text_wrapped=1),
                self._create_xf(rotation=135, format_key=5),
            ],
            format_map={
                0: SimpleNamespace(format_str="General"),
                5: SimpleNamespace(format_str="0.00"),
            },
            font_list=[self._create_font(), self._create_font(bold=1, escapement=1)],
        )

    def _create_sheet(self) -> _FakeXlrdSheet:
        sheet = _FakeXlrdSheet(
            "Legacy",
            {
                (0, 0): (xlrd.XL_CELL_TEXT, "abcd", 0),
                (0, 1): (xlrd.XL_CELL_NUMBER, 3.5, 1),
                (1, 0): (xlrd.XL_CELL_BOOLEAN, 1, 0),
                (1, 1): (xlrd.XL_CELL_ERROR, 7, 0),
                (1, 3): (xlrd.XL_CELL_BLANK, "", 0),
            },
        )
        sheet.colinfo_map = {
            1: SimpleNamespace(width=256 * 20, hidden=0),
            2: SimpleNamespace(width=0, hidden=1),
        }
        sheet.rowinfo_map = {
            1: SimpleNamespace(height=600, hidden=0),
            3: SimpleNamespace(height=300, hidden=1),
        }
        sheet.merged_cells = [(0, 2, 0, 2)]
        sheet.rich_text_runlist_map = {(0, 0): [(2, 1)]}
        return sheet

    def test_document(self):
        """ドキュメント・パレット・シートの属性"""
        document = XlrdWorkbookReader(b"").read_book(self._create_book(self._create_sheet()))
        sheet = document.sheets[0]

        assert document.family is DocumentFamily.LEGACY
        assert document.metadata.author == "bob"
        assert document.palette == {8: (0, 0, 0), 10: (255, 0, 0), 13: (255, 255, 0)}
        assert sheet.name == "Legacy"
        assert sheet.default_column_width == 10
        assert sheet.default_row_height_points == 15

    def test_warns_about_unsupported_content(self, caplog):
        """画像と数式を扱えないことが1回だけ警告されること"""
        with caplog.at_level(logging.WARNING, logger="excel2html.workbook.xlrd_reader"):
            XlrdWorkbookReader(b"").read_book(self._create_book(self._create_sheet()))

        warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "without pictures" in warnings[0].getMessage()

    def test_layout(self):
        """列幅・非表示列・行高さ・非表示行・結合範囲"""
        sheet = XlrdWorkbookReader(b"").read_book(self._create_book(self._create_sheet())).sheets[0]

        assert sheet.column_widths == {1: 20.0}
        assert sheet.hidden_columns == {2}
        assert sheet.row_height_points(1) == 30
        assert sheet.is_row_hidden(3)
        assert sheet.rows[3].cells == {}
        assert 2 not in sheet.rows
        # xlrdの結合範囲の上限は排他的
        assert sheet.merged_ranges == [
            MergedRange(first_row=0, last_row=1, first_col=0, last_col=1)
        ]

    def test_cells(self):
        """セル値の種類と書式付き文字列"""
        sheet = XlrdWorkbookReader(b"").read_book(self._create_book(self._create_sheet())).sheets[0]

        text = sheet.get_cell(0, 0)
        assert text.kind is CellKind.STRING
        assert text.rich_text.text == "abcd"
        assert text.rich_text.runs[0] == FontRun(start=0, font=text.style.font)
        assert text.rich_text.runs[1].start == 2
        assert text.rich_text.runs[1].font.bold is True
        assert text.rich_text.runs[1].font.baseline is BaselineOffset.SUPERSCRIPT

        assert sheet.get_cell(0, 1).kind is CellKind.NUMERIC
        assert sheet.get_cell(1, 0).value is True
        assert sheet.get_cell(1, 1).value == "#DIV/0!"
        assert sheet.get_cell(1, 2) is None
        assert sheet.get_cell(1, 3).kind is CellKind.BLANK

    def test_styles(self):
        """XFレコードがCellStyleに変換されること"""
        sheet = XlrdWorkbookReader(b"").read_book(self._create_book(self._create_sheet())).sheets[0]

        style = sheet.get_cell(0, 0).style
        assert style.index == 0
        assert style.horizontal == "center"
        assert style.vertical == "top"
        assert style.wrap_text is True
        assert style.fill_pattern == "solid"
        assert style.fill_foreground == ColorRef(ColorKind.INDEXED, 13)
        assert style.border_top == BorderSide("thin", ColorRef(ColorKind.INDEXED, 8))
        assert style.border_bottom.style == "thick"
        assert style.border_left == BorderSide()
        assert style.font.name == "Arial"
        assert style.font.height_points == 10

        numeric_style = sheet.get_cell(0, 1).style
        assert numeric_style.index == 1
        assert numeric_style.rotation == -45
        assert numeric_style.number_format == "0.00"
        assert numeric_style.vertical == "bottom"


@pytest.mark.unit
class TestLoadDocument:
    """load_document（拡張子による振り分け）のテスト"""

    def test_modern_workbook(self, tmp_path):
        """xlsxはopenpyxlで読み込まれること"""
        wb = Workbook()
        wb.active["A1"] = "x"
        path = tmp_path / "book.XLSX"
        wb.save(path)

        document = load_document(path)

        assert document.family is DocumentFamily.MODERN

    def test_unsupported_extension(self, tmp_path):
        """未対応の拡張子はエラーになること"""
        path = tmp_path / "data.csv"
        path.write_text("a,b")

        with pytest.raises(ConversionError) as exc_info:
            load_document(path)

        assert exc_info.value.category == ErrorCategory.UNSUPPORTED_FORMAT
        assert "data.csv" in exc_info.value.message

    @pytest.mark.parametrize("name", ["broken.xlsx", "broken.xls"])
    def test_corrupted_file(self, tmp_path, name):
        """壊れたファイルは読み込みエラーになること"""
        path = tmp_path / name
        path.write_bytes(b"this is not a workbook")

        with pytest.raises(ConversionError) as exc_info:
            load_document(path)

        assert exc_info.value.category == ErrorCategory.INVALID_FILE
        assert exc_info.value.original_error is not None

    def test_missing_file(self, tmp_path):
        """存在しないファイル"""
        with pytest.raises(ConversionError) as exc_info:
            load_document(tmp_path / "missing.xls")

        assert exc_info.value.category == ErrorCategory.FILE_NOT_FOUND
