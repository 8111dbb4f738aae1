"""
openpyxlによる新形式（.xlsx / .xlsm）ワークブックの読み込み

数式と書式を保持した読み込み（rich_text=True）と、計算済みの値を取得する
読み込み（data_only=True）の2回でワークブックを開き、形式非依存のモデルに変換する。
"""

import datetime
import logging
import xml.etree.ElementTree as ET
from io import BytesIO
from typing import Any

from openpyxl import load_workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.drawing.spreadsheet_drawing import (
    AbsoluteAnchor,
    OneCellAnchor,
    TwoCellAnchor,
)
from openpyxl.styles.colors import Color
from openpyxl.utils import column_index_from_string
from openpyxl.utils.cell import coordinate_from_string
from openpyxl.utils.datetime import to_excel

from excel2html.workbook.model import (
    AnchorPoint,
    AnchorUnits,
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
    FontInfo,
    FontRun,
    MergedRange,
    Picture,
    PictureAnchor,
    RichText,
    Row,
    Sheet,
)

logger = logging.getLogger(__name__)

EMU_PER_PIXEL = 9525

_DRAWINGML_NS = {"a": "http://schemas.openxmlformats.org/drawingml/2006/main"}

# clrSchemeの要素名をExcelのテーマ番号順（lt1, dk1, lt2, dk2, ...）に並べたもの
_THEME_COLOR_ORDER = [
    "lt1",
    "dk1",
    "lt2",
    "dk2",
    "accent1",
    "accent2",
    "accent3",
    "accent4",
    "accent5",
    "accent6",
    "hlink",
    "folHlink",
]

_VERT_ALIGN_TO_BASELINE = {
    "superscript": BaselineOffset.SUPERSCRIPT,
    "subscript": BaselineOffset.SUBSCRIPT,
}


class OpenpyxlWorkbookReader:
    """openpyxlワークブックをDocumentモデルへ変換する"""

    def __init__(self, data: bytes):
        self._data = data

    def read(self) -> Document:
        """ワークブックを読み込んでDocumentを返す"""
        workbook = load_workbook(BytesIO(self._data), rich_text=True)
        cached_workbook = load_workbook(BytesIO(self._data), data_only=True)

        document = Document(
            family=DocumentFamily.MODERN,
            metadata=self._read_metadata(workbook),
            theme_colors=self._read_theme_colors(workbook),
        )

        for worksheet in workbook.worksheets:
            cached_sheet = cached_workbook[worksheet.title]
            document.sheets.append(
                self._read_sheet(worksheet, cached_sheet, workbook.epoch)
            )

        logger.info(f"Loaded modern workbook with {len(document.sheets)} sheet(s)")
        return document

    def _read_metadata(self, workbook) -> DocumentMetadata:
        props = workbook.properties
        return DocumentMetadata(
            title=props.title or None,
            author=props.creator or None,
            keywords=props.keywords or None,
            description=props.description or None,
        )

    def _read_theme_colors(self, workbook) -> list[str]:
        """テーマパートのclrSchemeから色を取得（テーマが無ければ空リスト）"""
        theme_xml = getattr(workbook, "loaded_theme", None)
        if not theme_xml:
            return []

        try:
            root = ET.fromstring(theme_xml)
        except ET.ParseError as e:
            logger.warning(f"Failed to parse workbook theme: {e}")
            return []

        scheme = root.find(".//a:clrScheme", _DRAWINGML_NS)
        if scheme is None:
            return []

        colors: dict[str, str] = {}
        for element in scheme:
            name = element.tag.split("}")[-1]
            for child in element:
                value = child.get("val") if child.tag.endswith("srgbClr") else None
                if child.tag.endswith("sysClr"):
                    value = child.get("lastClr")
                if value:
                    colors[name] = value.upper()

        return [colors.get(name, "") for name in _THEME_COLOR_ORDER]

    def _read_sheet(self, worksheet, cached_sheet, epoch) -> Sheet:
        sheet_format = worksheet.sheet_format
        sheet = Sheet(
            name=worksheet.title,
            default_column_width=float(
                sheet_format.baseColWidth or DEFAULT_COLUMN_WIDTH_CHARS
            ),
            default_row_height_points=float(
                sheet_format.defaultRowHeight or DEFAULT_ROW_HEIGHT_POINTS
            ),
        )

        self._read_columns(worksheet, sheet)

        # 実在セル（sheet._cells）のみを走査し、疎な行構造を組み立てる
        for (row_idx, col_idx), cell in worksheet._cells.items():
            row = self._get_or_create_row(worksheet, sheet, row_idx - 1)
            cached_cell = cached_sheet._cells.get((row_idx, col_idx))
            row.cells[col_idx - 1] = self._read_cell(cell, cached_cell, epoch)

        # セルの無い行でも高さ・非表示の指定があれば保持する
        for row_idx, dim in worksheet.row_dimensions.items():
            if dim.ht is not None or dim.hidden:
                self._get_or_create_row(worksheet, sheet, row_idx - 1)

        for merged in worksheet.merged_cells.ranges:
            sheet.merged_ranges.append(
                MergedRange(
                    first_row=merged.min_row - 1,
                    last_row=merged.max_row - 1,
                    first_col=merged.min_col - 1,
                    last_col=merged.max_col - 1,
                )
            )

        for image in getattr(worksheet, "_images", []):
            picture = self._read_picture(image)
            if picture is not None:
                sheet.pictures.append(picture)

        logger.debug(
            f"Read sheet '{sheet.name}': {len(sheet.rows)} row(s), "
            f"{len(sheet.merged_ranges)} merged range(s), {len(sheet.pictures)} picture(s)"
        )
        return sheet

    def _read_columns(self, worksheet, sheet: Sheet) -> None:
        """列幅と非表示列を取得（列定義はmin..maxの範囲でまとめられている）"""
        for key, dim in worksheet.column_dimensions.items():
            start = dim.min or column_index_from_string(key)
            end = dim.max or start
            for col_idx in range(start, end + 1):
                if dim.width:
                    sheet.column_widths[col_idx - 1] = float(dim.width)
                if dim.hidden:
                    sheet.hidden_columns.add(col_idx - 1)

    def _get_or_create_row(self, worksheet, sheet: Sheet, index: int) -> Row:
        row = sheet.rows.get(index)
        if row is not None:
            return row

        height = sheet.default_row_height_points
        hidden = False
        # row_dimensionsは存在しないキーを参照すると生成されるため、先に確認する
        if index + 1 in worksheet.row_dimensions:
            dim = worksheet.row_dimensions[index + 1]
            if dim.ht is not None:
                height = float(dim.ht)
            hidden = bool(dim.hidden)

        row = Row(index=index, height_points=height, hidden=hidden)
        sheet.rows[index] = row
        return row

    def _read_cell(self, cell, cached_cell, epoch) -> Cell:
        row = cell.row - 1
        column = cell.column - 1
        style = self._read_style(cell)
        value = cell.value
        data_type = cell.data_type

        if value is None:
            return Cell(row, column, CellKind.BLANK, style=style)

        if data_type == "f":
            cached_kind, cached_value = self._read_cached_value(cached_cell, epoch)
            formula = getattr(value, "text", None) or str(value)
            return Cell(
                row,
                column,
                CellKind.FORMULA,
                value=formula,
                style=style,
                cached_kind=cached_kind,
                cached_value=cached_value,
            )

        if isinstance(value, CellRichText):
            rich_text = self._read_rich_text(value, style.font)
            return Cell(
                row,
                column,
                CellKind.STRING,
                value=rich_text.text,
                style=style,
                rich_text=rich_text,
            )

        if data_type == "e":
            return Cell(row, column, CellKind.ERROR, value=str(value), style=style)
        if data_type == "b" or isinstance(value, bool):
            return Cell(row, column, CellKind.BOOLEAN, value=bool(value), style=style)
        if isinstance(value, str):
            return Cell(
                row,
                column,
                CellKind.STRING,
                value=value,
                style=style,
                rich_text=RichText(value),
            )
        if isinstance(
            value,
            (datetime.datetime, datetime.date, datetime.time, datetime.timedelta),
        ):
            return Cell(
                row, column, CellKind.NUMERIC, value=to_excel(value, epoch), style=style
            )
        if isinstance(value, (int, float)):
            return Cell(row, column, CellKind.NUMERIC, value=value, style=style)

        logger.warning(
            f"Unsupported cell value type {type(value).__name__} at {cell.coordinate}"
        )
        return Cell(row, column, CellKind.BLANK, style=style)

    def _read_cached_value(self, cached_cell, epoch) -> tuple[CellKind | None, Any]:
        """data_onlyで読み込んだセルから数式の計算結果と種類を取得"""
        if cached_cell is None or cached_cell.value is None:
            return (None, None)

        value = cached_cell.value
        if cached_cell.data_type == "e":
            return (CellKind.ERROR, str(value))
        if isinstance(value, bool):
            return (CellKind.BOOLEAN, value)
        if isinstance(value, str):
            return (CellKind.STRING, value)
        if isinstance(
            value,
            (datetime.datetime, datetime.date, datetime.time, datetime.timedelta),
        ):
            return (CellKind.NUMERIC, to_excel(value, epoch))
        if isinstance(value, (int, float)):
            return (CellKind.NUMERIC, value)
        return (None, value)

    def _read_style(self, cell) -> CellStyle:
        if not cell.has_style:
            # 既定スタイルでもフォント情報（行高さ・リッチテキストの基準）は必要
            return CellStyle(font=self._read_font(cell.font))

        alignment = cell.alignment
        fill = cell.fill
        border = cell.border

        return CellStyle(
            index=cell.style_id,
            horizontal=alignment.horizontal or "general",
            vertical=alignment.vertical or "bottom",
            fill_pattern=getattr(fill, "patternType", None) or FILL_NONE,
            fill_foreground=_color_ref(getattr(fill, "fgColor", None)),
            fill_background=_color_ref(getattr(fill, "bgColor", None)),
            border_top=_border_side(border.top),
            border_right=_border_side(border.right),
            border_bottom=_border_side(border.bottom),
            border_left=_border_side(border.left),
            rotation=_rotation_degrees(alignment.textRotation),
            wrap_text=bool(alignment.wrap_text),
            font=self._read_font(cell.font),
            number_format=cell.number_format or "General",
        )

    def _read_font(self, font) -> FontInfo:
        if font is None:
            return FontInfo()
        return FontInfo(
            name=font.name or "Calibri",
            height_points=float(font.sz) if font.sz else 11.0,
            bold=bool(font.b),
            italic=bool(font.i),
            color=_color_ref(font.color),
            baseline=_VERT_ALIGN_TO_BASELINE.get(font.vertAlign, BaselineOffset.NORMAL),
        )

    def _read_rich_text(self, value: CellRichText, base_font: FontInfo) -> RichText:
        """CellRichTextを書式ランに分解する（文字列部分はセルのフォント）"""
        text_parts: list[str] = []
        runs: list[FontRun] = []
        position = 0

        for part in value:
            if isinstance(part, TextBlock):
                text = part.text or ""
                font = _inline_font(part.font, base_font)
            else:
                text = str(part)
                font = base_font
            if not text:
                continue
            runs.append(FontRun(start=position, font=font))
            text_parts.append(text)
            position += len(text)

        return RichText("".join(text_parts), tuple(runs))

    def _read_picture(self, image) -> Picture | None:
        anchor = self._read_anchor(image)
        if anchor is None:
            return None

        try:
            data = image._data()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read embedded picture data: {e}")
            return None

        extension = (getattr(image, "format", None) or "png").lower()
        return Picture(data=data, extension=extension, anchor=anchor)

    def _read_anchor(self, image) -> PictureAnchor | None:
        anchor = image.anchor

        if isinstance(anchor, str):
            # 未保存の画像は "B2" のようなセル座標のみを持つ
            col_letter, row_num = coordinate_from_string(anchor)
            return PictureAnchor(
                top_left=AnchorPoint(
                    col=column_index_from_string(col_letter) - 1, row=row_num - 1
                ),
                extent_emu=(
                    int(image.width * EMU_PER_PIXEL),
                    int(image.height * EMU_PER_PIXEL),
                ),
            )

        if isinstance(anchor, TwoCellAnchor):
            return PictureAnchor(
                top_left=_anchor_point(anchor._from),
                bottom_right=_anchor_point(anchor.to),
                units=AnchorUnits.EMU,
            )

        if isinstance(anchor, OneCellAnchor):
            return PictureAnchor(
                top_left=_anchor_point(anchor._from),
                extent_emu=(int(anchor.ext.cx), int(anchor.ext.cy)),
            )

        if isinstance(anchor, AbsoluteAnchor):
            logger.warning("Absolute picture anchors are not supported, skipping picture")
            return None

        logger.warning(f"Unknown picture anchor type: {type(anchor).__name__}")
        return None


def _anchor_point(marker) -> AnchorPoint:
    return AnchorPoint(
        col=marker.col, row=marker.row, dx=marker.colOff or 0, dy=marker.rowOff or 0
    )


def _color_ref(color: Color | None) -> ColorRef | None:
    """openpyxl ColorをColorRefに変換（auto指定はNone）"""
    if color is None:
        return None

    tint = float(getattr(color, "tint", 0.0) or 0.0)
    if color.type == "rgb":
        rgb = color.rgb
        if isinstance(rgb, str) and len(rgb) >= 6:
            return ColorRef(ColorKind.RGB, rgb[-6:].upper(), tint)
    elif color.type == "indexed" and color.indexed is not None:
        return ColorRef(ColorKind.INDEXED, int(color.indexed), tint)
    elif color.type == "theme" and color.theme is not None:
        return ColorRef(ColorKind.THEME, int(color.theme), tint)

    return None


def _border_side(side) -> BorderSide:
    if side is None or not side.style:
        return BorderSide()
    return BorderSide(style=side.style, color=_color_ref(side.color))


def _rotation_degrees(text_rotation) -> int:
    """
    textRotationを度数に変換

    91〜180は時計回り（90 - 値で負の角度）、255は縦書きのまま返す
    """
    if not text_rotation:
        return 0
    value = int(text_rotation)
    if 90 < value <= 180:
        return 90 - value
    return value


def _inline_font(inline_font, base_font: FontInfo) -> FontInfo:
    """InlineFontの未指定属性はセルのフォントを引き継ぐ"""
    if inline_font is None:
        return base_font

    color = _color_ref(inline_font.color) if inline_font.color else base_font.color
    return FontInfo(
        name=inline_font.rFont or base_font.name,
        height_points=float(inline_font.sz) if inline_font.sz else base_font.height_points,
        bold=bool(inline_font.b) if inline_font.b is not None else base_font.bold,
        italic=bool(inline_font.i) if inline_font.i is not None else base_font.italic,
        color=color,
        baseline=_VERT_ALIGN_TO_BASELINE.get(
            inline_font.vertAlign, BaselineOffset.NORMAL
        ),
    )
