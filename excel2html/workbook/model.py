"""
ワークブックの読み取り専用モデル

openpyxl / xlrd の差異を吸収し、HTML変換処理が参照するシート・行・セル・スタイル・
結合範囲・画像を形式非依存のデータクラスで表現する。行・列インデックスは全て0始まり。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Excelの既定値（POI互換）
DEFAULT_COLUMN_WIDTH_CHARS = 8.0
DEFAULT_ROW_HEIGHT_POINTS = 15.0

BORDER_NONE = "none"
FILL_NONE = "none"
FILL_SOLID = "solid"


class DocumentFamily(Enum):
    """ワークブック形式の系統"""

    LEGACY = "legacy"  # .xls (BIFF8)
    MODERN = "modern"  # .xlsx / .xlsm (OOXML)


class CellKind(Enum):
    """セル値の種類"""

    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    ERROR = "error"
    FORMULA = "formula"
    BLANK = "blank"


class ColorKind(Enum):
    """色参照の種類"""

    RGB = "rgb"
    INDEXED = "indexed"
    THEME = "theme"


class BaselineOffset(Enum):
    """フォントのベースライン位置"""

    NORMAL = "normal"
    SUPERSCRIPT = "superscript"
    SUBSCRIPT = "subscript"


class AnchorUnits(Enum):
    """画像アンカーのセル内オフセット単位"""

    EMU = "emu"  # OOXML: 1px = 9525 EMU
    FRACTION = "fraction"  # BIFF8: 列幅の1/1024、行高さの1/256


@dataclass(frozen=True)
class ColorRef:
    """色参照（RGB値 "RRGGBB"、パレット番号、テーマ番号のいずれか）"""

    kind: ColorKind
    value: str | int
    tint: float = 0.0


@dataclass(frozen=True)
class FontInfo:
    name: str = "Calibri"
    height_points: float = 11.0
    bold: bool = False
    italic: bool = False
    color: ColorRef | None = None
    baseline: BaselineOffset = BaselineOffset.NORMAL


@dataclass(frozen=True)
class BorderSide:
    style: str = BORDER_NONE
    color: ColorRef | None = None


@dataclass(frozen=True)
class CellStyle:
    """
    セルスタイル

    indexはワークブック内のスタイル番号で、0は既定スタイル（CSSクラスを付与しない）。
    rotationは度数（反時計回りが正、255は縦書き）。
    """

    index: int = 0
    horizontal: str = "general"
    vertical: str = "bottom"
    fill_pattern: str = FILL_NONE
    fill_foreground: ColorRef | None = None
    fill_background: ColorRef | None = None
    border_top: BorderSide = field(default_factory=BorderSide)
    border_right: BorderSide = field(default_factory=BorderSide)
    border_bottom: BorderSide = field(default_factory=BorderSide)
    border_left: BorderSide = field(default_factory=BorderSide)
    rotation: int = 0
    wrap_text: bool = False
    font: FontInfo = field(default_factory=FontInfo)
    number_format: str = "General"


DEFAULT_STYLE = CellStyle()


@dataclass(frozen=True)
class FontRun:
    """書式ランの開始位置とフォント"""

    start: int
    font: FontInfo


@dataclass(frozen=True)
class RichText:
    """書式付き文字列（runsは開始位置の昇順）"""

    text: str
    runs: tuple[FontRun, ...] = ()


@dataclass
class Cell:
    """
    セル

    kindがFORMULAの場合、valueは数式文字列で、cached_kind/cached_valueに
    最後に計算された結果を保持する（cached_kindがNoneなら結果の種類は不明）。
    ERRORの場合、valueはエラー表示文字列（例: "#DIV/0!"）。
    """

    row: int
    column: int
    kind: CellKind
    value: Any = None
    style: CellStyle = DEFAULT_STYLE
    rich_text: RichText | None = None
    cached_kind: CellKind | None = None
    cached_value: Any = None


@dataclass
class Row:
    index: int
    cells: dict[int, Cell] = field(default_factory=dict)
    height_points: float = DEFAULT_ROW_HEIGHT_POINTS
    hidden: bool = False

    @property
    def physical_cell_count(self) -> int:
        """実在するセル数"""
        return len(self.cells)

    @property
    def last_cell_num(self) -> int:
        """最終セルの列番号+1（セルが無い場合は-1）"""
        if not self.cells:
            return -1
        return max(self.cells) + 1

    def get_cell(self, column: int) -> Cell | None:
        return self.cells.get(column)


@dataclass(frozen=True)
class MergedRange:
    """結合範囲（両端を含む）。アンカーは左上セル"""

    first_row: int
    last_row: int
    first_col: int
    last_col: int

    @property
    def anchor(self) -> tuple[int, int]:
        return (self.first_row, self.first_col)

    @property
    def row_span(self) -> int:
        return self.last_row - self.first_row + 1

    @property
    def col_span(self) -> int:
        return self.last_col - self.first_col + 1


@dataclass(frozen=True)
class AnchorPoint:
    """アンカー位置（セル座標とセル内オフセット）"""

    col: int
    row: int
    dx: int = 0
    dy: int = 0


@dataclass(frozen=True)
class PictureAnchor:
    """
    画像アンカー

    bottom_rightが無い場合（OneCellAnchorなど）はextent_emu（幅, 高さ）から
    サイズを求める。
    """

    top_left: AnchorPoint
    bottom_right: AnchorPoint | None = None
    units: AnchorUnits = AnchorUnits.EMU
    extent_emu: tuple[int, int] | None = None


@dataclass(frozen=True)
class Picture:
    data: bytes
    extension: str
    anchor: PictureAnchor


@dataclass
class Sheet:
    """
    シート

    column_widthsは文字数単位の列幅、hidden_columnsは非表示列の集合。
    """

    name: str
    rows: dict[int, Row] = field(default_factory=dict)
    column_widths: dict[int, float] = field(default_factory=dict)
    hidden_columns: set[int] = field(default_factory=set)
    default_column_width: float = DEFAULT_COLUMN_WIDTH_CHARS
    default_row_height_points: float = DEFAULT_ROW_HEIGHT_POINTS
    merged_ranges: list[MergedRange] = field(default_factory=list)
    pictures: list[Picture] = field(default_factory=list)

    def get_row(self, index: int) -> Row | None:
        return self.rows.get(index)

    def get_cell(self, row: int, column: int) -> Cell | None:
        row_obj = self.rows.get(row)
        if row_obj is None:
            return None
        return row_obj.get_cell(column)

    def column_width(self, column: int) -> float:
        """列幅（文字数単位）"""
        return self.column_widths.get(column, self.default_column_width)

    def row_height_points(self, row: int) -> float:
        """行高さ（ポイント）。行が存在しない場合は既定の高さ"""
        row_obj = self.rows.get(row)
        if row_obj is None:
            return self.default_row_height_points
        return row_obj.height_points

    def is_column_hidden(self, column: int) -> bool:
        return column in self.hidden_columns

    def is_row_hidden(self, row: int) -> bool:
        row_obj = self.rows.get(row)
        return row_obj is not None and row_obj.hidden


@dataclass(frozen=True)
class DocumentMetadata:
    title: str | None = None
    author: str | None = None
    keywords: str | None = None
    description: str | None = None


@dataclass
class Document:
    """
    ワークブック

    paletteは旧形式のカスタムパレット（番号 -> (R, G, B)）、
    theme_colorsは新形式のテーマ色（"RRGGBB"、Excelのテーマ番号順）。
    """

    family: DocumentFamily
    sheets: list[Sheet] = field(default_factory=list)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    palette: dict[int, tuple[int, int, int]] = field(default_factory=dict)
    theme_colors: list[str] = field(default_factory=list)
