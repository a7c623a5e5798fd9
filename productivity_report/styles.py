"""Style resolver for the productivity workbook.

Takes an unstyled ReportDocument and returns a copy with fonts, fills,
borders, alignments and number formats filled in. Styling is declarative:
each cell role maps to a base style, then a fixed sequence of rules runs
over every cell. Banding runs before the status and tier rules, so a
status or tier fill always wins over the band.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from productivity_report.document import (
    CURRENCY,
    DECIMAL,
    HOURS,
    INTEGER,
    PERCENT,
    AlignmentSpec,
    BorderSpec,
    Cell,
    FillSpec,
    FontSpec,
    ReportDocument,
    Worksheet,
)
from productivity_report.metrics import PerformanceTier, tier_color

logger = logging.getLogger(__name__)

# ── Colors / styles ───────────────────────────────────────────────────────

PURPLE = "9B59B6"
PURPLE_DARK = "8E44AD"
BLUE = "3498DB"
GREEN = "27AE60"
ORANGE = "F39C12"
RED = "E74C3C"
DARK = "2C3E50"
GRAY_TEXT = "7F8C8D"
LIGHT_GRAY = "ECF0F1"
BAND_GRAY = "F8F9FA"
BORDER_GRAY = "D5DBDB"
NOTE_YELLOW = "FFF8DC"
WHITE = "FFFFFF"

CURRENCY_FORMAT = '"$"#,##0'
PERCENT_FORMAT = "0.0%"
HOURS_FORMAT = "0.0"
DECIMAL_FORMAT = "0.00"
INTEGER_FORMAT = "0"

NUMBER_FORMATS = {
    CURRENCY: CURRENCY_FORMAT,
    PERCENT: PERCENT_FORMAT,
    HOURS: HOURS_FORMAT,
    DECIMAL: DECIMAL_FORMAT,
    INTEGER: INTEGER_FORMAT,
}

THIN_BORDER = BorderSpec(color=BORDER_GRAY)
BAND_FILL = FillSpec(BAND_GRAY)

CENTER = AlignmentSpec(horizontal="center")
LEFT = AlignmentSpec(horizontal="left")
LEFT_INDENT = AlignmentSpec(horizontal="left", indent=1)
RIGHT = AlignmentSpec(horizontal="right")
MIDDLE = AlignmentSpec()

# Detail status → (fill tint, font color)
STATUS_COLORS = {
    "COMPLETED": ("D5F4E6", GREEN),
    "CONFIRMED": ("FEF9E7", ORANGE),
    "OTHER": ("FADBD8", RED),
}

KPI_VALUE_STYLES = {
    "hours": FontSpec(size=28, bold=True, color=BLUE),
    "patients": FontSpec(size=28, bold=True, color=GREEN),
    "revenue": FontSpec(size=22, bold=True, color=ORANGE),
}

BAR_COLORS = {
    "primary": PURPLE,
    "secondary": BLUE,
    "empty": LIGHT_GRAY,
}


@dataclass(frozen=True)
class CellStyle:
    font: Optional[FontSpec] = None
    fill: Optional[FillSpec] = None
    border: Optional[str] = None  # "thin" | "header" | "badge"
    alignment: Optional[AlignmentSpec] = None


ROLE_STYLES: dict[str, CellStyle] = {
    "banner": CellStyle(
        font=FontSpec(size=24, bold=True, color=WHITE),
        fill=FillSpec(PURPLE, end_color=PURPLE_DARK, degree=90),
        alignment=CENTER,
    ),
    "badge": CellStyle(
        font=FontSpec(size=10, bold=True, color=WHITE),
        fill=FillSpec(PURPLE),
        border="badge",
        alignment=CENTER,
    ),
    "caption": CellStyle(font=FontSpec(size=14, bold=True), alignment=LEFT),
    "subcaption": CellStyle(font=FontSpec(size=12), alignment=LEFT),
    "section": CellStyle(
        font=FontSpec(size=16, bold=True, color=DARK),
        fill=FillSpec(LIGHT_GRAY),
        alignment=LEFT_INDENT,
    ),
    "visual_title": CellStyle(
        font=FontSpec(size=14, bold=True, color=DARK),
        fill=FillSpec(LIGHT_GRAY),
        alignment=CENTER,
    ),
    "title": CellStyle(
        font=FontSpec(size=18, bold=True, color=WHITE),
        fill=FillSpec(GREEN),
        alignment=CENTER,
    ),
    "subsection": CellStyle(
        font=FontSpec(size=14, bold=True, color=DARK),
        fill=FillSpec(LIGHT_GRAY),
    ),
    "kpi_label": CellStyle(
        font=FontSpec(size=11, bold=True, color=GRAY_TEXT),
        fill=FillSpec(LIGHT_GRAY),
        border="thin",
        alignment=CENTER,
    ),
    "kpi_value": CellStyle(fill=FillSpec(BAND_GRAY), border="thin", alignment=CENTER),
    "table_header": CellStyle(
        font=FontSpec(size=11, bold=True, color=WHITE),
        border="header",
        alignment=CENTER,
    ),
    "table_label": CellStyle(font=FontSpec(), border="thin", alignment=LEFT_INDENT),
    "table_value": CellStyle(font=FontSpec(), border="thin", alignment=CENTER),
    "tier": CellStyle(font=FontSpec(bold=True, color=WHITE), border="thin", alignment=CENTER),
    "data": CellStyle(font=FontSpec(), border="thin", alignment=MIDDLE),
    "status": CellStyle(font=FontSpec(), border="thin", alignment=MIDDLE),
    "amount": CellStyle(font=FontSpec(), border="thin", alignment=RIGHT),
    "total": CellStyle(font=FontSpec(size=12, bold=True), fill=FillSpec(BLUE), border="thin", alignment=RIGHT),
    "bar_label": CellStyle(font=FontSpec(bold=True), alignment=LEFT_INDENT),
    "bar": CellStyle(border="thin"),
    "bar_value": CellStyle(font=FontSpec(bold=True, color=DARK), border="thin", alignment=CENTER),
    "note": CellStyle(
        font=FontSpec(size=10, italic=True, color=GRAY_TEXT),
        fill=FillSpec(NOTE_YELLOW),
        alignment=AlignmentSpec(horizontal="left", indent=1, wrap_text=True),
    ),
}


def _border(kind: Optional[str], accent: str) -> Optional[BorderSpec]:
    if kind == "thin":
        return THIN_BORDER
    if kind == "header":
        return BorderSpec(color=accent, bottom_style="medium")
    if kind == "badge":
        return BorderSpec(color=PURPLE_DARK)
    return None


# ── Rules, applied in order ───────────────────────────────────────────────

def apply_role_style(cell: Cell, sheet: Worksheet) -> Cell:
    style = ROLE_STYLES.get(cell.role, ROLE_STYLES["data"])
    border = _border(style.border, sheet.accent_color)
    # Borders go on populated cells and on structural cells (headers, bars, KPIs)
    if border is THIN_BORDER and cell.value is None and cell.role in ("data", "amount", "total"):
        border = None
    return replace(
        cell,
        font=style.font,
        fill=style.fill,
        border=border,
        alignment=style.alignment,
    )


def apply_number_format(cell: Cell, sheet: Worksheet) -> Cell:
    fmt = NUMBER_FORMATS.get(cell.kind)
    if fmt is None:
        return cell
    return replace(cell, number_format=fmt)


def apply_header_fill(cell: Cell, sheet: Worksheet) -> Cell:
    if cell.role != "table_header":
        return cell
    return replace(cell, fill=FillSpec(cell.tag or sheet.accent_color))


def apply_kpi_style(cell: Cell, sheet: Worksheet) -> Cell:
    if cell.role != "kpi_value":
        return cell
    return replace(cell, font=KPI_VALUE_STYLES.get(cell.tag, FontSpec(size=28, bold=True)))


def apply_total_label(cell: Cell, sheet: Worksheet) -> Cell:
    if cell.role != "total" or cell.tag != "label":
        return cell
    return replace(cell, alignment=LEFT_INDENT)


def apply_banding(cell: Cell, sheet: Worksheet) -> Cell:
    if not cell.band:
        return cell
    return replace(cell, fill=BAND_FILL)


def apply_status_color(cell: Cell, sheet: Worksheet) -> Cell:
    if cell.role != "status":
        return cell
    tint, color = STATUS_COLORS.get(cell.tag, STATUS_COLORS["OTHER"])
    return replace(cell, fill=FillSpec(tint), font=FontSpec(bold=True, color=color))


def apply_tier_color(cell: Cell, sheet: Worksheet) -> Cell:
    if cell.role != "tier":
        return cell
    return replace(cell, fill=FillSpec(tier_color(PerformanceTier[cell.tag])))


def apply_bar_fill(cell: Cell, sheet: Worksheet) -> Cell:
    if cell.role != "bar":
        return cell
    return replace(cell, fill=FillSpec(BAR_COLORS.get(cell.tag, LIGHT_GRAY)))


STYLE_RULES: tuple[Callable[[Cell, Worksheet], Cell], ...] = (
    apply_role_style,
    apply_number_format,
    apply_header_fill,
    apply_kpi_style,
    apply_total_label,
    apply_bar_fill,
    apply_banding,
    apply_status_color,
    apply_tier_color,
)


def resolve_cell(cell: Cell, sheet: Worksheet) -> Cell:
    for rule in STYLE_RULES:
        cell = rule(cell, sheet)
    return cell


def resolve_sheet(sheet: Worksheet) -> Worksheet:
    rows = tuple(
        replace(row, cells=tuple(resolve_cell(c, sheet) for c in row.cells))
        for row in sheet.rows
    )
    return replace(sheet, rows=rows)


def resolve_styles(document: ReportDocument) -> ReportDocument:
    """Return a styled copy of the document; the input is left untouched."""
    styled = replace(document, sheets=tuple(resolve_sheet(s) for s in document.sheets))
    logger.debug(f"Resolved styles for {len(styled.sheets)} sheets")
    return styled
