"""
ワークブックのHTML変換モジュール

Documentの各シートを見出しとテーブルに変換し、セルスタイルをCSSクラスとして
まとめたHTMLドキュメントを生成する
"""

import base64
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from excel2html.config import ConverterConfig, config
from excel2html.error_messages import ConversionError, handle_conversion_error
from excel2html.excel.color_resolver import ExcelColorResolver
from excel2html.excel.css_utils import ExcelCssUtils
from excel2html.excel.image_placement import ExcelImagePlacementMapper, RenderedImage
from excel2html.excel.merged_cell_handler import ExcelMergedCellHandler, MergedRangeIndex
from excel2html.excel.rich_text import ExcelRichTextSplitter
from excel2html.excel.sheet_layout import ExcelSheetLayoutResolver
from excel2html.excel.style_registry import ExcelStyleRegistry
from excel2html.excel.value_formatter import ExcelValueFormatter
from excel2html.html_document import HtmlDocument
from excel2html.workbook.loader import load_document
from excel2html.workbook.model import (
    BaselineOffset,
    Cell,
    CellKind,
    CellStyle,
    Document,
    FontInfo,
    MergedRange,
    RichText,
    Sheet,
)

logger = logging.getLogger(__name__)

NBSP = "\u00a0"

TABLE_STYLE = "border-collapse:collapse;border-spacing:0;table-layout:fixed;"
CONTAINER_CELL_STYLE = "padding:0;margin:0;align:left;vertical-align:top;"
CONTAINER_DIV_STYLE = "position:relative;"

# この高さ（ポイント）を超える行の空セルには改行なしスペースを入れる
TALL_ROW_POINTS = 10


@dataclass
class ConverterOptions:
    """HTML変換オプション"""

    output_column_headers: bool = True
    output_hidden_columns: bool = False
    output_hidden_rows: bool = False
    output_leading_spaces_as_non_breaking: bool = True
    output_row_numbers: bool = True
    use_divs_to_span: bool = False
    apply_text_rotation: bool = False
    disable_formulas: bool = False

    @classmethod
    def from_config(cls, converter_config: ConverterConfig) -> "ConverterOptions":
        return cls(**converter_config.options())


@dataclass
class ConversionContext:
    """1回の変換処理で共有する状態（スタイル登録・値の変換・出力先）"""

    html: HtmlDocument
    style_registry: ExcelStyleRegistry
    value_formatter: ExcelValueFormatter
    table_class: str
    container_cell_class: str | None = None
    container_div_class: str | None = None


class ExcelToHtmlConverter:
    """DocumentをHTMLに変換するクラス"""

    def __init__(self, options: ConverterOptions | None = None, html_lang: str = "en"):
        self.options = options or ConverterOptions()
        self.html_lang = html_lang

    @classmethod
    def from_config(cls, converter_config: ConverterConfig) -> "ExcelToHtmlConverter":
        return cls(
            ConverterOptions.from_config(converter_config),
            html_lang=converter_config.html_lang,
        )

    def convert_document(self, document: Document) -> str:
        """DocumentをHTML文字列に変換する"""
        return self.process_document(document).to_html()

    def process_document(self, document: Document) -> HtmlDocument:
        """
        Documentの全シートをHTMLドキュメントに変換する

        スタイルのCSSクラスはドキュメント全体で共有されるため、
        異なるシートの同一スタイルも1つのクラスになる

        Args:
            document: 変換対象のDocument

        Returns:
            HtmlDocument（スタイルシート反映済み）
        """
        context = self._create_context(document)
        self._process_document_information(context, document)

        for sheet in document.sheets:
            self._process_sheet(context, sheet)

        context.html.update_stylesheet()
        logger.info(
            f"Converted {len(document.sheets)} sheet(s) "
            f"with {len(context.style_registry.rules())} CSS rule(s)"
        )
        return context.html

    def _create_context(self, document: Document) -> ConversionContext:
        color_resolver = ExcelColorResolver.for_document(document)
        registry = ExcelStyleRegistry(color_resolver)
        context = ConversionContext(
            html=HtmlDocument(registry, lang=self.html_lang),
            style_registry=registry,
            value_formatter=ExcelValueFormatter(
                disable_formulas=self.options.disable_formulas
            ),
            table_class=registry.get_or_create_css_class("t", TABLE_STYLE),
        )

        if self.options.use_divs_to_span:
            context.container_cell_class = registry.get_or_create_css_class(
                "c", CONTAINER_CELL_STYLE
            )
            context.container_div_class = registry.get_or_create_css_class(
                "d", CONTAINER_DIV_STYLE
            )
        return context

    def _process_document_information(
        self, context: ConversionContext, document: Document
    ) -> None:
        metadata = document.metadata
        html = context.html
        if metadata.title:
            html.title = metadata.title
        if metadata.author:
            html.add_author(metadata.author)
        if metadata.keywords:
            html.add_keywords(metadata.keywords)
        if metadata.description:
            html.add_description(metadata.description)

    def _process_sheet(self, context: ConversionContext, sheet: Sheet) -> None:
        """シート見出しとテーブルを出力する（空シートは見出しのみ）"""
        heading = ET.SubElement(context.html.body, "h2")
        heading.text = sheet.name

        images_by_row = ExcelImagePlacementMapper.group_by_row(sheet.pictures, sheet)
        extent = ExcelSheetLayoutResolver.extent(sheet, images_by_row)
        if extent.is_empty:
            logger.debug(f"Sheet '{sheet.name}' has no cells, skipping table")
            return

        logger.debug(
            f"Sheet '{sheet.name}': {extent.last_row + 1} row(s), "
            f"{extent.max_columns} column(s), {len(sheet.pictures)} picture(s)"
        )

        merged_index = ExcelMergedCellHandler.build_merged_range_index(
            sheet, extent.last_row, extent.max_columns
        )

        table = ET.Element("table", {"class": context.table_class})
        table_body = ET.Element("tbody")

        for row_index in range(extent.last_row + 1):
            if not ExcelSheetLayoutResolver.is_row_visible(
                sheet, row_index, self.options.output_hidden_rows
            ):
                continue

            height_px = ExcelCssUtils.points_to_px(sheet.row_height_points(row_index))
            row_element = ET.SubElement(table_body, "tr", {"height": str(height_px)})
            context.html.add_style_class(row_element, "r", f"height:{height_px}px;")

            self._process_row(
                context,
                sheet,
                row_index,
                row_element,
                merged_index,
                images_by_row.get(row_index, {}),
                extent.max_columns,
            )

        table_width = self._process_column_widths(sheet, extent.max_columns, table)
        table.set("width", str(table_width))
        table.set("style", f"min-width:{table_width}px;")

        if self.options.output_column_headers:
            self._process_column_headers(sheet, extent.max_columns, table)

        table.append(table_body)
        context.html.body.append(table)

    def _process_row(
        self,
        context: ConversionContext,
        sheet: Sheet,
        row_index: int,
        row_element: ET.Element,
        merged_index: MergedRangeIndex,
        row_images: dict[int, list[RenderedImage]],
        max_sheet_columns: int,
    ) -> None:
        """
        1行分のセルを出力する

        Args:
            context: 変換コンテキスト
            sheet: 対象シート
            row_index: 行番号（0始まり）
            row_element: 出力先の<tr>要素
            merged_index: 結合範囲の索引
            row_images: この行にアンカーされた画像（列番号 -> 画像のリスト）
            max_sheet_columns: シート全体の出力列数
        """
        row = sheet.get_row(row_index)
        if row is None or row.physical_cell_count == 0:
            # セルの無い行は空白セル1つの行として出力する
            cells = {0: Cell(row=row_index, column=0, kind=CellKind.BLANK)}
        else:
            cells = row.cells

        max_row_columns = ExcelSheetLayoutResolver.row_extent(row, row_images)
        height_points = sheet.row_height_points(row_index)

        if self.options.output_row_numbers:
            row_number = ET.SubElement(row_element, "th", {"class": "rownumber"})
            row_number.text = str(row_index + 1)

        column = 0
        while column < max_row_columns:
            if not ExcelSheetLayoutResolver.is_column_visible(
                sheet, column, self.options.output_hidden_columns
            ):
                column += 1
                continue

            merged_range = merged_index.range_at(row_index, column)
            if merged_index.is_hidden_by_merge(row_index, column):
                # 結合範囲の内部セルは出力しない
                column = merged_range.last_col + 1
                continue

            self._process_table_cell(
                context,
                sheet,
                cells,
                column,
                row_element,
                merged_range,
                row_images.get(column, []),
                max_row_columns,
                height_points,
            )
            column += 1

        # 全ての行を同じ幅にするための埋めセル（表示される列だけを数える）
        filler_span = sum(
            1
            for filler_column in range(max_row_columns, max_sheet_columns)
            if ExcelSheetLayoutResolver.is_column_visible(
                sheet, filler_column, self.options.output_hidden_columns
            )
        )
        if filler_span > 0:
            filler = ET.SubElement(row_element, "td", {"colspan": str(filler_span)})
            if height_points > TALL_ROW_POINTS:
                filler.text = NBSP

    def _process_table_cell(
        self,
        context: ConversionContext,
        sheet: Sheet,
        cells: dict[int, Cell],
        column: int,
        row_element: ET.Element,
        merged_range: MergedRange | None,
        images: list[RenderedImage],
        max_row_columns: int,
        height_points: float,
    ) -> None:
        table_cell = ET.SubElement(row_element, "td", {"style": "padding: 0px;"})

        if merged_range is not None:
            width = self._get_cell_width(sheet, merged_range.first_col, merged_range.last_col)
        else:
            width = self._get_cell_width(sheet, column, column)
        table_cell.set("width", str(width))

        if images:
            for image in images:
                self._append_image(table_cell, image)
            HtmlDocument.append_style(table_cell, "position:relative;")

        if merged_range is not None:
            if merged_range.col_span > 1:
                table_cell.set("colspan", str(merged_range.col_span))
            if merged_range.row_span > 1:
                table_cell.set("rowspan", str(merged_range.row_span))

        cell = cells.get(column)
        if cell is None:
            return

        style = ExcelMergedCellHandler.effective_style(sheet, cell, merged_range)
        max_spanned_width = None
        if self.options.use_divs_to_span:
            max_spanned_width = self._get_max_spanned_width(
                context, sheet, cells, column, max_row_columns
            )

        self._process_cell(
            context,
            cell,
            style or cell.style,
            table_cell,
            ExcelImagePlacementMapper.column_px(sheet, column),
            max_spanned_width,
            height_points,
        )

    def _process_cell(
        self,
        context: ConversionContext,
        cell: Cell,
        style: CellStyle,
        table_cell: ET.Element,
        normal_width_px: int,
        max_spanned_width_px: int | None,
        height_points: float,
    ) -> None:
        """
        セルの内容とスタイルクラスを出力する

        Args:
            context: 変換コンテキスト
            cell: 対象セル
            style: 出力に使うスタイル（結合セルの罫線補正済み）
            table_cell: 出力先の<td>要素
            normal_width_px: セルの列幅（ピクセル）
            max_spanned_width_px: 右側の空セルまで含めた最大幅（制限なしはNone）
            height_points: 行の高さ（ポイント）
        """
        formatted = context.value_formatter.format(cell)
        if formatted is None:
            return

        text = formatted.text
        wrap_in_divs = (
            bool(text)
            and not formatted.is_rich_text
            and self.options.use_divs_to_span
            and not style.wrap_text
        )

        if style.index != 0:
            HtmlDocument.append_class(table_cell, context.style_registry.class_for(style))
            if wrap_in_divs and context.container_cell_class:
                HtmlDocument.append_class(table_cell, context.container_cell_class)

        rotation = style.rotation
        if rotation != 0 and -180 <= rotation <= 180:
            HtmlDocument.append_style(table_cell, f"mso-rotate:{rotation};")

        if formatted.rich_text is not None:
            self._append_rich_text(context, table_cell, formatted.rich_text, style.font)
            return

        if self.options.output_leading_spaces_as_non_breaking:
            text = _leading_spaces_to_nbsp(text)

        if text == "" and height_points > TALL_ROW_POINTS:
            text = NBSP

        if rotation != 0 and self.options.apply_text_rotation:
            rotation_class = context.style_registry.rotation_class_for(
                rotation, height_points
            )
            block = ET.SubElement(table_cell, "div", {"class": rotation_class})
            block.text = text
        elif wrap_in_divs:
            outer_div = ET.SubElement(
                table_cell, "div", {"class": context.container_div_class or ""}
            )
            inner_div = ET.SubElement(outer_div, "div")
            inner_style = f"position:absolute;min-width:{normal_width_px}px;"
            if max_spanned_width_px is not None:
                inner_style += f"max-width:{max_spanned_width_px}px;"
            inner_style += (
                f"overflow:hidden;max-height:{ExcelCssUtils.format_number(height_points)}pt;"
                "white-space:nowrap;"
            )
            inner_style += ExcelCssUtils.align(style.horizontal, style.vertical)
            context.html.add_style_class(inner_div, "d", inner_style)
            inner_div.text = text
        else:
            HtmlDocument.append_text(table_cell, text)

    def _append_rich_text(
        self,
        context: ConversionContext,
        table_cell: ET.Element,
        rich_text: RichText,
        base_font: FontInfo,
    ) -> None:
        """書式ランごとにテキストを出力する（上付き・下付きは<sup>/<sub>）"""
        leading = self.options.output_leading_spaces_as_non_breaking
        for text, font in ExcelRichTextSplitter.split(rich_text, base_font):
            if leading:
                text = _leading_spaces_to_nbsp(text)
                leading = not text.strip(NBSP)

            parent = table_cell
            if _differs_from(font, base_font):
                inline_style = context.style_registry.inline_font_style(font)
                if inline_style:
                    parent = ET.SubElement(table_cell, "span", {"style": inline_style})

            if font.baseline is BaselineOffset.SUPERSCRIPT:
                ET.SubElement(parent, "sup").text = text
            elif font.baseline is BaselineOffset.SUBSCRIPT:
                ET.SubElement(parent, "sub").text = text
            else:
                HtmlDocument.append_text(parent, text)

    def _append_image(self, table_cell: ET.Element, image: RenderedImage) -> None:
        """セル左上からの相対位置に画像を重ねるdivを追加"""
        block = ET.SubElement(
            table_cell,
            "div",
            {
                "style": (
                    "position: absolute;"
                    f"width:{image.width}px;"
                    f"height:{image.height}px;"
                    f"margin-top:{image.offset_y}px;"
                    f"margin-left:{image.offset_x}px;"
                    "top:0px;"
                    "left:0px;"
                )
            },
        )
        encoded = base64.b64encode(image.data).decode("ascii")
        ET.SubElement(
            block,
            "img",
            {
                "src": f"data:image/{image.extension};base64,{encoded}",
                "width": str(image.width),
                "height": str(image.height),
            },
        )

    def _get_cell_width(self, sheet: Sheet, start: int, end: int) -> int:
        return sum(
            ExcelImagePlacementMapper.column_px(sheet, column)
            for column in range(start, end + 1)
        )

    def _get_max_spanned_width(
        self,
        context: ConversionContext,
        sheet: Sheet,
        cells: dict[int, Cell],
        column: int,
        max_row_columns: int,
    ) -> int | None:
        """
        右側に続く空セルまで含めた幅を返す

        空でないセルに当たらずに行末まで達した場合は制限なし（None）
        """
        width = ExcelImagePlacementMapper.column_px(sheet, column)
        for next_column in range(column + 1, max_row_columns):
            if not ExcelSheetLayoutResolver.is_column_visible(
                sheet, next_column, self.options.output_hidden_columns
            ):
                continue
            next_cell = cells.get(next_column)
            if next_cell is not None and not self._is_text_empty(next_cell):
                return width
            width += ExcelImagePlacementMapper.column_px(sheet, next_column)
        return None

    def _is_text_empty(self, cell: Cell) -> bool:
        if cell.kind is CellKind.BLANK:
            return True
        if cell.kind is CellKind.STRING:
            return not cell.value
        if cell.kind is CellKind.FORMULA:
            if self.options.disable_formulas or cell.cached_kind is None:
                return True
            if cell.cached_kind is CellKind.STRING:
                return not cell.cached_value
        return False

    def _process_column_widths(
        self, sheet: Sheet, max_sheet_columns: int, table: ET.Element
    ) -> int:
        """<colgroup>を出力し、テーブル全体の幅（ピクセル）を返す"""
        column_group = ET.SubElement(table, "colgroup")
        if self.options.output_row_numbers:
            ET.SubElement(column_group, "col")

        table_width = 0
        for column in range(max_sheet_columns):
            if not ExcelSheetLayoutResolver.is_column_visible(
                sheet, column, self.options.output_hidden_columns
            ):
                continue
            column_width = ExcelImagePlacementMapper.column_px(sheet, column)
            ET.SubElement(column_group, "col", {"width": str(column_width)})
            table_width += column_width

        return table_width

    def _process_column_headers(
        self, sheet: Sheet, max_sheet_columns: int, table: ET.Element
    ) -> None:
        table_header = ET.SubElement(table, "thead")
        header_row = ET.SubElement(table_header, "tr")

        if self.options.output_row_numbers:
            # 左上の空セル
            ET.SubElement(header_row, "th")

        for column in range(max_sheet_columns):
            if not ExcelSheetLayoutResolver.is_column_visible(
                sheet, column, self.options.output_hidden_columns
            ):
                continue
            ET.SubElement(header_row, "th").text = str(column + 1)


def _leading_spaces_to_nbsp(text: str) -> str:
    """先頭の半角スペースを改行なしスペースに置き換える"""
    stripped = text.lstrip(" ")
    return NBSP * (len(text) - len(stripped)) + stripped


def _differs_from(font: FontInfo, base_font: FontInfo) -> bool:
    return (font.bold, font.italic, font.color) != (
        base_font.bold,
        base_font.italic,
        base_font.color,
    )


def convert_file(
    file_path: str | Path, converter_config: ConverterConfig | None = None
) -> str:
    """
    ワークブックファイルを読み込んでHTML文字列に変換する

    Args:
        file_path: ワークブックのパス
        converter_config: 変換設定（省略時はグローバル設定）

    Returns:
        HTML文字列

    Raises:
        ConversionError: 読み込みまたは変換に失敗した場合
    """
    converter_config = converter_config or config
    document = load_document(file_path)
    converter = ExcelToHtmlConverter.from_config(converter_config)

    try:
        return converter.convert_document(document)
    except ConversionError:
        raise
    except Exception as e:
        logger.error(f"Conversion failed: {str(e)}")
        raise handle_conversion_error(e, "convert", str(file_path)) from e
