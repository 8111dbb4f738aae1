"""
xlrdによる旧形式（.xls）ワークブックの読み込み

formatting_info=Trueで書式（XF・フォント・パレット）を含めて読み込む。
xlrdは数式を保持しないため、数式セルは計算済みの値の種類として扱われる。
画像（描画オブジェクト）はxlrdが読み込まないため出力されない。
"""

import logging

import xlrd

from excel2html.workbook.model import (
    BaselineOffset,
    BorderSide,
    Cell,
    CellKind,
    CellStyle,
    ColorKind,
    ColorRef,
    DEFAULT_COLUMN_WIDTH_CHARS,
    DEFAULT_ROW_HEIGHT_POINTS,
    Document,
    DocumentFamily,
    DocumentMetadata,
    FILL_NONE,
    FILL_SOLID,
    FontInfo,
    FontRun,
    MergedRange,
    RichText,
    Row,
    Sheet,
)

logger = logging.getLogger(__name__)

TWIPS_PER_POINT = 20
WIDTH_UNITS_PER_CHAR = 256

# BIFFの罫線種別コード
_LINE_STYLES = {
    0: "none",
    1: "thin",
    2: "medium",
    3: "dashed",
    4: "dotted",
    5: "thick",
    6: "double",
    7: "hair",
    8: "mediumDashed",
    9: "dashDot",
    10: "mediumDashDot",
    11: "dashDotDot",
    12: "mediumDashDotDot",
    13: "slantDashDot",
}

_HORIZONTAL_ALIGNMENTS = {
    0: "general",
    1: "left",
    2: "center",
    3: "right",
    4: "fill",
    5: "justify",
    6: "centerContinuous",
    7: "distributed",
}

_VERTICAL_ALIGNMENTS = {
    0: "top",
    1: "center",
    2: "bottom",
    3: "justify",
    4: "distributed",
}

_ESCAPEMENTS = {
    1: BaselineOffset.SUPERSCRIPT,
    2: BaselineOffset.SUBSCRIPT,
}


class XlrdWorkbookReader:
    """xlrdワークブックをDocumentモデルへ変換する"""

    def __init__(self, data: bytes):
        self._data = data
        self._book = None
        self._styles: dict[int, CellStyle] = {}

    def read(self) -> Document:
        """ワークブックを読み込んでDocumentを返す"""
        self._book = xlrd.open_workbook(
            file_contents=self._data, formatting_info=True, ragged_rows=True
        )
        return self.read_book(self._book)

    def read_book(self, book) -> Document:
        """読み込み済みのxlrd Bookを変換する"""
        self._book = book
        self._styles = {}

        document = Document(
            family=DocumentFamily.LEGACY,
            metadata=DocumentMetadata(author=getattr(book, "user_name", None) or None),
            palette={
                index: tuple(rgb)
                for index, rgb in (book.colour_map or {}).items()
                if rgb is not None
            },
        )

        for sheet_index in range(book.nsheets):
            document.sheets.append(self._read_sheet(book.sheet_by_index(sheet_index)))

        logger.info(f"Loaded legacy workbook with {len(document.sheets)} sheet(s)")
        logger.warning(
            "Legacy workbooks are read without pictures, and formula cells are read as "
            "their cached values"
        )
        return document

    def _read_sheet(self, xl_sheet) -> Sheet:
        default_width = getattr(xl_sheet, "defcolwidth", None)
        default_height = getattr(xl_sheet, "default_row_height", None)
        sheet = Sheet(
            name=xl_sheet.name,
            default_column_width=float(default_width or DEFAULT_COLUMN_WIDTH_CHARS),
            default_row_height_points=(
                default_height / TWIPS_PER_POINT
                if default_height
                else DEFAULT_ROW_HEIGHT_POINTS
            ),
        )

        for col_idx, info in xl_sheet.colinfo_map.items():
            if info.width:
                sheet.column_widths[col_idx] = info.width / WIDTH_UNITS_PER_CHAR
            if info.hidden:
                sheet.hidden_columns.add(col_idx)

        rich_runs = getattr(xl_sheet, "rich_text_runlist_map", {}) or {}

        for row_idx in range(xl_sheet.nrows):
            cells: dict[int, Cell] = {}
            for col_idx in range(xl_sheet.row_len(row_idx)):
                cell = self._read_cell(
                    xl_sheet, row_idx, col_idx, rich_runs.get((row_idx, col_idx))
                )
                if cell is not None:
                    cells[col_idx] = cell

            info = xl_sheet.rowinfo_map.get(row_idx)
            if not cells and info is None:
                continue

            row = Row(
                index=row_idx,
                cells=cells,
                height_points=sheet.default_row_height_points,
            )
            if info is not None:
                row.height_points = info.height / TWIPS_PER_POINT
                row.hidden = bool(info.hidden)
            sheet.rows[row_idx] = row

        # 行情報のみ存在する（セルの無い）行
        for row_idx, info in xl_sheet.rowinfo_map.items():
            if row_idx not in sheet.rows:
                sheet.rows[row_idx] = Row(
                    index=row_idx,
                    height_points=info.height / TWIPS_PER_POINT,
                    hidden=bool(info.hidden),
                )

        # merged_cellsの上限は排他的（rhi, chiを含まない）
        for rlo, rhi, clo, chi in xl_sheet.merged_cells:
            sheet.merged_ranges.append(
                MergedRange(
                    first_row=rlo, last_row=rhi - 1, first_col=clo, last_col=chi - 1
                )
            )

        logger.debug(
            f"Read sheet '{sheet.name}': {len(sheet.rows)} row(s), "
            f"{len(sheet.merged_ranges)} merged range(s)"
        )
        return sheet

    def _read_cell(self, xl_sheet, row_idx: int, col_idx: int, runlist) -> Cell | None:
        cell_type = xl_sheet.cell_type(row_idx, col_idx)
        if cell_type == xlrd.XL_CELL_EMPTY:
            return None

        value = xl_sheet.cell_value(row_idx, col_idx)
        style = self._get_style(xl_sheet.cell_xf_index(row_idx, col_idx))

        if cell_type == xlrd.XL_CELL_TEXT:
            return Cell(
                row_idx,
                col_idx,
                CellKind.STRING,
                value=value,
                style=style,
                rich_text=self._read_rich_text(value, runlist, style.font),
            )
        if cell_type in (xlrd.XL_CELL_NUMBER, xlrd.XL_CELL_DATE):
            return Cell(row_idx, col_idx, CellKind.NUMERIC, value=value, style=style)
        if cell_type == xlrd.XL_CELL_BOOLEAN:
            return Cell(row_idx, col_idx, CellKind.BOOLEAN, value=bool(value), style=style)
        if cell_type == xlrd.XL_CELL_ERROR:
            text = xlrd.error_text_from_code.get(value, f"#ERR{value}")
            return Cell(row_idx, col_idx, CellKind.ERROR, value=text, style=style)
        if cell_type == xlrd.XL_CELL_BLANK:
            return Cell(row_idx, col_idx, CellKind.BLANK, style=style)

        logger.warning(
            f"Unsupported xlrd cell type {cell_type} at row {row_idx + 1}, column {col_idx + 1}"
        )
        return Cell(row_idx, col_idx, CellKind.BLANK, style=style)

    def _read_rich_text(self, text: str, runlist, base_font: FontInfo) -> RichText:
        """runlist（(開始位置, フォント番号)のリスト）を書式ランに変換"""
        if not runlist:
            return RichText(text)

        runs = [
            FontRun(start=offset, font=self._read_font(font_index))
            for offset, font_index in sorted(runlist)
            if offset < len(text)
        ]
        # 先頭ランより前の文字列はセルのフォント
        if runs and runs[0].start > 0:
            runs.insert(0, FontRun(start=0, font=base_font))
        return RichText(text, tuple(runs))

    def _get_style(self, xf_index: int) -> CellStyle:
        style = self._styles.get(xf_index)
        if style is None:
            style = self._read_style(xf_index)
            self._styles[xf_index] = style
        return style

    def _read_style(self, xf_index: int) -> CellStyle:
        xf = self._book.xf_list[xf_index]
        alignment = xf.alignment
        border = xf.border
        background = xf.background

        format_obj = self._book.format_map.get(xf.format_key)
        number_format = format_obj.format_str if format_obj is not None else "General"

        fill_pattern = FILL_NONE
        if background.fill_pattern == 1:
            fill_pattern = FILL_SOLID
        elif background.fill_pattern:
            fill_pattern = f"pattern{background.fill_pattern}"

        return CellStyle(
            index=xf_index,
            horizontal=_HORIZONTAL_ALIGNMENTS.get(alignment.hor_align, "general"),
            vertical=_VERTICAL_ALIGNMENTS.get(alignment.vert_align, "bottom"),
            fill_pattern=fill_pattern,
            fill_foreground=_palette_ref(background.pattern_colour_index),
            fill_background=_palette_ref(background.background_colour_index),
            border_top=_border_side(border.top_line_style, border.top_colour_index),
            border_right=_border_side(
                border.right_line_style, border.right_colour_index
            ),
            border_bottom=_border_side(
                border.bottom_line_style, border.bottom_colour_index
            ),
            border_left=_border_side(border.left_line_style, border.left_colour_index),
            rotation=_rotation_degrees(alignment.rotation),
            wrap_text=bool(alignment.text_wrapped),
            font=self._read_font(xf.font_index),
            number_format=number_format or "General",
        )

    def _read_font(self, font_index: int) -> FontInfo:
        font_list = self._book.font_list
        if font_index >= len(font_list):
            logger.warning(f"Font index {font_index} out of range, using default font")
            return FontInfo()

        font = font_list[font_index]
        return FontInfo(
            name=font.name or "Arial",
            height_points=font.height / TWIPS_PER_POINT,
            bold=bool(font.bold),
            italic=bool(font.italic),
            color=_palette_ref(font.colour_index),
            baseline=_ESCAPEMENTS.get(font.escapement, BaselineOffset.NORMAL),
        )


def _palette_ref(colour_index) -> ColorRef | None:
    if colour_index is None:
        return None
    return ColorRef(ColorKind.INDEXED, int(colour_index))


def _border_side(line_style: int, colour_index) -> BorderSide:
    style = _LINE_STYLES.get(line_style, "none")
    if style == "none":
        return BorderSide()
    return BorderSide(style=style, color=_palette_ref(colour_index))


def _rotation_degrees(rotation: int) -> int:
    """BIFFの回転値を度数に変換（91〜180は時計回り、255は縦書き）"""
    if 90 < rotation <= 180:
        return 90 - rotation
    return rotation
