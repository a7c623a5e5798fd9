"""Export module for the productivity report.

Renders a styled ReportDocument into .xlsx bytes with openpyxl and saves
them under the export directory with the report's derived filename.
"""

import io
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, GradientFill, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.properties import PageSetupProperties

from productivity_report.document import (
    AlignmentSpec,
    BorderSpec,
    Cell,
    FillSpec,
    FontSpec,
    ReportDocument,
    Worksheet,
)
from productivity_report.errors import ReportGenerationError
from productivity_report.models import Employee
from productivity_report.utils.normalization import sanitize_filename_component

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_DIR = Path("data/exports")
XLSX_EXTENSION = "xlsx"


def build_filename(employee: Employee, month: int, year: int, extension: str = XLSX_EXTENSION) -> str:
    """Reporte_Productividad_<nombre>_<apellido>_<mes>-<anio>_BETA.<ext>, path-safe."""
    nombre = sanitize_filename_component(employee.nombre)
    apellido = sanitize_filename_component(employee.apellido)
    return f"Reporte_Productividad_{nombre}_{apellido}_{month}-{year}_BETA.{extension}"


# ── Rendering ─────────────────────────────────────────────────────────────

def _font(spec: FontSpec) -> Font:
    return Font(name=spec.name, size=spec.size, bold=spec.bold, italic=spec.italic, color=spec.color)


def _fill(spec: FillSpec):
    if spec.is_gradient:
        return GradientFill(degree=spec.degree, stop=(spec.color, spec.end_color))
    return PatternFill(start_color=spec.color, end_color=spec.color, fill_type="solid")


def _border(spec: BorderSpec) -> Border:
    side = Side(style=spec.style, color=spec.color)
    bottom = Side(style=spec.bottom_style, color=spec.color) if spec.bottom_style else side
    return Border(left=side, right=side, top=side, bottom=bottom)


def _alignment(spec: AlignmentSpec) -> Alignment:
    return Alignment(
        horizontal=spec.horizontal,
        vertical=spec.vertical,
        indent=spec.indent,
        wrap_text=spec.wrap_text,
    )


def _write_cell(ws, row_index: int, cell: Cell) -> None:
    c = ws.cell(row=row_index, column=cell.column)
    if cell.value is not None:
        c.value = cell.value
    if cell.number_format:
        c.number_format = cell.number_format
    if cell.font:
        c.font = _font(cell.font)
    if cell.fill:
        c.fill = _fill(cell.fill)
    if cell.border:
        c.border = _border(cell.border)
    if cell.alignment:
        c.alignment = _alignment(cell.alignment)


def _write_sheet(wb: Workbook, sheet: Worksheet) -> None:
    ws = wb.create_sheet(title=sheet.name)
    ws.sheet_properties.tabColor = sheet.tab_color

    for i, width in enumerate(sheet.column_widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = width

    if sheet.page_setup:
        ws.page_setup.paperSize = sheet.page_setup.paper_size
        ws.page_setup.orientation = sheet.page_setup.orientation
        ws.page_setup.fitToWidth = sheet.page_setup.fit_to_width
        ws.page_setup.fitToHeight = sheet.page_setup.fit_to_height
        ws.sheet_properties.pageSetUpPr = PageSetupProperties(fitToPage=True)

    for row in sheet.rows:
        if row.height:
            ws.row_dimensions[row.index].height = row.height
        for cell in row.cells:
            _write_cell(ws, row.index, cell)

    for min_row, min_col, max_row, max_col in sheet.merged_ranges():
        ws.merge_cells(start_row=min_row, start_column=min_col, end_row=max_row, end_column=max_col)

    if sheet.autofilter_ref:
        ws.auto_filter.ref = sheet.autofilter_ref


def _utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def render_workbook(document: ReportDocument) -> bytes:
    """Render the styled document to .xlsx bytes.

    Raises:
        ReportGenerationError: If openpyxl cannot build or save the workbook.
    """
    try:
        wb = Workbook()
        wb.remove(wb.active)

        props = document.properties
        wb.properties.creator = props.creator
        wb.properties.lastModifiedBy = props.last_modified_by
        wb.properties.created = _utc_naive(props.created)
        wb.properties.modified = _utc_naive(props.modified)

        for sheet in document.sheets:
            _write_sheet(wb, sheet)

        buffer = io.BytesIO()
        wb.save(buffer)
    except Exception as e:
        logger.error(f"Workbook rendering failed: {e}")
        raise ReportGenerationError(f"Could not render productivity workbook: {e}") from e

    payload = buffer.getvalue()
    logger.info(f"Rendered workbook with {len(document.sheets)} sheets ({len(payload)} bytes)")
    return payload


# ── Delivery ──────────────────────────────────────────────────────────────

class Exporter:
    """Renders documents and saves them into the export directory."""

    def __init__(self, export_dir: Optional[Path] = None):
        self.export_dir = Path(export_dir or DEFAULT_EXPORT_DIR)
        self.export_dir.mkdir(parents=True, exist_ok=True)

    def save(self, filename: str, payload: bytes) -> Path:
        """Write payload to export_dir/filename atomically.

        The bytes go to a temporary file in the same directory first and are
        renamed into place, so a failed write never leaves a partial report.

        Returns:
            Path to the saved file.
        """
        filepath = self.export_dir / filename
        fd, tmp_name = tempfile.mkstemp(dir=self.export_dir, prefix=".report-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, filepath)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(f"Saved report to {filepath}")
        return filepath

    def export_report(self, document: ReportDocument, employee: Employee, month: int, year: int) -> str:
        """Render and save one report.

        Returns:
            The final filename (not the full path).

        Raises:
            ReportGenerationError: If rendering or saving fails.
        """
        payload = render_workbook(document)
        filename = build_filename(employee, month, year)
        try:
            self.save(filename, payload)
        except OSError as e:
            logger.error(f"Saving {filename} failed: {e}")
            raise ReportGenerationError(f"Could not save {filename}: {e}") from e
        return filename
