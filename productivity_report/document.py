"""Format-agnostic document model for the productivity workbook.

A ReportDocument is plain, immutable data: sheets made of rows made of
cells. The builder fills in values and semantic roles, the style resolver
returns an annotated copy, and the serializer only reads it.

Coordinates are 1-based, like spreadsheet rows and columns.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Optional

from openpyxl.utils import get_column_letter

# Value kinds, mapped to number formats by the style resolver
TEXT = "text"
INTEGER = "integer"
DECIMAL = "decimal"
HOURS = "hours"
CURRENCY = "currency"
PERCENT = "percent"


@dataclass(frozen=True)
class FontSpec:
    size: float = 11
    bold: bool = False
    italic: bool = False
    color: Optional[str] = None
    name: str = "Calibri"


@dataclass(frozen=True)
class FillSpec:
    """Solid fill, or a linear gradient when end_color is set."""

    color: str
    end_color: Optional[str] = None
    degree: float = 90

    @property
    def is_gradient(self) -> bool:
        return self.end_color is not None


@dataclass(frozen=True)
class BorderSpec:
    color: str
    style: str = "thin"
    bottom_style: Optional[str] = None


@dataclass(frozen=True)
class AlignmentSpec:
    horizontal: Optional[str] = None
    vertical: str = "center"
    indent: int = 0
    wrap_text: bool = False


@dataclass(frozen=True)
class Cell:
    """One cell. `role`, `kind`, `tag` and `band` drive styling; the style
    fields stay None until the style resolver fills them in."""

    column: int
    value: Any = None
    role: str = "data"
    kind: str = TEXT
    tag: Optional[str] = None
    band: bool = False
    merge_span: tuple[int, int] = (1, 1)  # (rows, columns)
    number_format: Optional[str] = None
    font: Optional[FontSpec] = None
    fill: Optional[FillSpec] = None
    border: Optional[BorderSpec] = None
    alignment: Optional[AlignmentSpec] = None

    @property
    def is_merged(self) -> bool:
        return self.merge_span != (1, 1)


@dataclass(frozen=True)
class Row:
    index: int
    cells: tuple[Cell, ...] = ()
    height: Optional[float] = None

    def cell(self, column: int) -> Optional[Cell]:
        for c in self.cells:
            if c.column == column:
                return c
        return None

    @property
    def values(self) -> list:
        return [c.value for c in self.cells]


@dataclass(frozen=True)
class PageSetup:
    paper_size: int = 9  # A4
    orientation: str = "portrait"
    fit_to_width: int = 1
    fit_to_height: int = 0


@dataclass(frozen=True)
class Worksheet:
    name: str
    tab_color: str
    accent_color: str
    column_widths: tuple[float, ...]
    rows: tuple[Row, ...] = ()
    # (min_row, min_col, max_row, max_col)
    autofilter: Optional[tuple[int, int, int, int]] = None
    page_setup: Optional[PageSetup] = None

    def row(self, index: int) -> Optional[Row]:
        for r in self.rows:
            if r.index == index:
                return r
        return None

    def cell(self, row: int, column: int) -> Optional[Cell]:
        r = self.row(row)
        return r.cell(column) if r else None

    def iter_cells(self) -> Iterator[tuple[Row, Cell]]:
        for r in self.rows:
            for c in r.cells:
                yield r, c

    def find(self, value) -> Optional[tuple[int, int]]:
        """(row, column) of the first cell holding value, scanning row by row."""
        for r, c in self.iter_cells():
            if c.value == value:
                return r.index, c.column
        return None

    def merged_ranges(self) -> list[tuple[int, int, int, int]]:
        """(min_row, min_col, max_row, max_col) for every merged cell."""
        ranges = []
        for r, c in self.iter_cells():
            if c.is_merged:
                rows, cols = c.merge_span
                ranges.append((r.index, c.column, r.index + rows - 1, c.column + cols - 1))
        return ranges

    @property
    def autofilter_ref(self) -> Optional[str]:
        if self.autofilter is None:
            return None
        min_row, min_col, max_row, max_col = self.autofilter
        return (
            f"{get_column_letter(min_col)}{min_row}:"
            f"{get_column_letter(max_col)}{max_row}"
        )


@dataclass(frozen=True)
class DocumentProperties:
    creator: str
    last_modified_by: str
    created: datetime
    modified: datetime


@dataclass(frozen=True)
class ReportDocument:
    sheets: tuple[Worksheet, ...]
    properties: DocumentProperties

    @property
    def sheet_names(self) -> list[str]:
        return [s.name for s in self.sheets]

    def sheet(self, name: str) -> Worksheet:
        for s in self.sheets:
            if s.name == name:
                return s
        raise KeyError(f"No sheet named '{name}'")
