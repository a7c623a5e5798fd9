"""Document model builder.

Lays out the three worksheets (Dashboard, Detalle de Citas, Estadísticas)
as unstyled cells. Every cell carries its raw value plus a role/kind/tag
that the style resolver turns into fonts, fills, borders and formats.
Row positions, merges and column widths are fixed; callers and tests rely
on them.
"""

import logging
from datetime import datetime

from productivity_report.document import (
    CURRENCY,
    DECIMAL,
    HOURS,
    INTEGER,
    PERCENT,
    TEXT,
    Cell,
    DocumentProperties,
    PageSetup,
    ReportDocument,
    Row,
    Worksheet,
)
from productivity_report.metrics import Metrics
from productivity_report.models import (
    AppointmentStatus,
    ProductivityBundle,
    ReportRequest,
)
from productivity_report.styles import BLUE, GREEN, PURPLE
from productivity_report.utils.normalization import format_date, format_time, month_name

logger = logging.getLogger(__name__)

DASHBOARD_SHEET = "Dashboard"
DETAIL_SHEET = "Detalle de Citas"
STATS_SHEET = "Estadísticas"

DASHBOARD_WIDTHS = (3, 22, 22, 25, 22, 3)
DETAIL_WIDTHS = (15, 10, 30, 25, 15, 15)
STATS_WIDTHS = (5, 30, 20, 20, 5)

BANNER_TEXT = "REPORTE DE PRODUCTIVIDAD MENSUAL"
BETA_LABEL = "BETA v2.0"

KPI_HOURS = "HORAS TRABAJADAS"
KPI_PATIENTS = "PACIENTES ATENDIDOS"
KPI_REVENUE = "INGRESOS GENERADOS"

METRIC_ATTENDANCE_RATE = "Tasa de Atención"

DETAIL_HEADERS = ("Fecha", "Hora", "Paciente", "Especialidad", "Estado", "Monto")
TOTAL_LABEL = "TOTAL"

STATUS_NOTE = (
    "NOTA: Citas 'Confirmadas' son citas pagadas pero no atendidas "
    "(requiere seguimiento)"
)


class _SheetRows:
    """Sparse row/column grid that freezes into a tuple of Rows."""

    def __init__(self):
        self._cells: dict[int, list[Cell]] = {}
        self._heights: dict[int, float] = {}

    def put(self, row: int, column: int, value=None, role: str = "data", **kwargs) -> None:
        self._cells.setdefault(row, []).append(
            Cell(column=column, value=value, role=role, **kwargs)
        )

    def height(self, row: int, height: float) -> None:
        self._heights[row] = height

    def freeze(self) -> tuple[Row, ...]:
        indexes = sorted(set(self._cells) | set(self._heights))
        return tuple(
            Row(
                index=i,
                cells=tuple(sorted(self._cells.get(i, []), key=lambda c: c.column)),
                height=self._heights.get(i),
            )
            for i in indexes
        )


def _table(rows: _SheetRows, start_row: int, first_col: int, headers, records, header_color: str) -> int:
    """Write a header row plus data rows; returns the number of rows written.

    records is a list of rows, each a list of (value, role, kind, tag) tuples.
    Even-indexed data rows are marked for banding.
    """
    for offset, title in enumerate(headers):
        rows.put(start_row, first_col + offset, title, role="table_header", tag=header_color)

    for idx, record in enumerate(records):
        r = start_row + 1 + idx
        for offset, (value, role, kind, tag) in enumerate(record):
            rows.put(r, first_col + offset, value, role=role, kind=kind, tag=tag, band=idx % 2 == 0)

    return len(records) + 1


def _label(text):
    return (text, "table_label", TEXT, None)


def _value(value, kind=TEXT):
    return (value, "table_value", kind, None)


# ── Dashboard ─────────────────────────────────────────────────────────────

def _dashboard_section(rows: _SheetRows, row: int, title: str) -> None:
    rows.put(row, 2, title, role="section", merge_span=(1, 4))
    rows.height(row, 25)


def build_dashboard(request: ReportRequest, metrics: Metrics, month: int, year: int,
                    max_bar_width: int) -> Worksheet:
    rows = _SheetRows()

    rows.put(1, 1, BANNER_TEXT, role="banner", merge_span=(2, 6))
    rows.height(1, 30)
    rows.height(2, 30)
    rows.put(3, 5, BETA_LABEL, role="badge", merge_span=(1, 2))
    rows.put(4, 2, f"Doctor(a): {request.employee.display_name}", role="caption", merge_span=(1, 3))
    rows.put(5, 2, f"Período: {month_name(month)} {year}", role="subcaption", merge_span=(1, 3))

    # KPI cards: label on top, value below
    row = 7
    _dashboard_section(rows, row, "RESUMEN EJECUTIVO")
    row += 1
    kpis = (
        (KPI_HOURS, metrics.total_hours, HOURS, "hours"),
        (KPI_PATIENTS, metrics.completed, INTEGER, "patients"),
        (KPI_REVENUE, metrics.revenue, CURRENCY, "revenue"),
    )
    for offset, (label, value, kind, tag) in enumerate(kpis):
        rows.put(row, 2 + offset, label, role="kpi_label")
        rows.put(row + 1, 2 + offset, value, role="kpi_value", kind=kind, tag=tag)
    rows.height(row, 20)
    rows.height(row + 1, 45)

    # Metrics table; only the attendance rate carries a tier badge
    row += 3
    _dashboard_section(rows, row, "PRODUCTIVIDAD CLÍNICA")
    row += 1
    metric_rows = [
        [_label(METRIC_ATTENDANCE_RATE), _value(metrics.attendance_rate / 100, PERCENT),
         (metrics.tier.label, "tier", TEXT, metrics.tier.name)],
        [_label("Pacientes por Hora"), _value(metrics.patients_per_hour, DECIMAL), _value("-")],
        [_label("Ingresos por Hora"), _value(metrics.revenue_per_hour, CURRENCY), _value("-")],
        [_label("Citas Programadas"), _value(metrics.scheduled, INTEGER), _value("-")],
        [_label("Citas Completadas"), _value(metrics.completed, INTEGER), _value("-")],
    ]
    written = _table(rows, row, 2, ("Métrica", "Valor", "Estado"), metric_rows, BLUE)
    rows.height(row, 25)

    # Specialty distribution table
    row += written + 1
    _dashboard_section(rows, row, "DISTRIBUCIÓN POR ESPECIALIDAD")
    row += 1
    specialty_rows = [
        [_label(share.name), _value(share.count, INTEGER), _value(share.percentage, PERCENT)]
        for share in metrics.distribution
    ]
    _table(rows, row, 2, ("Especialidad", "Consultas", "Porcentaje"), specialty_rows, PURPLE)
    rows.height(row, 25)

    # Same distribution drawn as bars of cells, percentage after the bar
    row += 1 + len(metrics.distribution) + 2
    rows.put(row, 2, "VISUALIZACIÓN DE DISTRIBUCIÓN", role="visual_title", merge_span=(1, 3))
    rows.height(row, 25)
    row += 1
    for idx, share in enumerate(metrics.distribution):
        r = row + idx
        rows.put(r, 2, share.name, role="bar_label")
        filled_tag = "primary" if idx == 0 else "secondary"
        for slot in range(max_bar_width):
            rows.put(r, 3 + slot, None, role="bar", tag=filled_tag if slot < share.bar_width else "empty")
        rows.put(r, 3 + max_bar_width, share.percentage, role="bar_value", kind=PERCENT)

    return Worksheet(
        name=DASHBOARD_SHEET,
        tab_color=PURPLE,
        accent_color=PURPLE,
        column_widths=DASHBOARD_WIDTHS,
        rows=rows.freeze(),
        page_setup=PageSetup(),
    )


# ── Detalle de Citas ──────────────────────────────────────────────────────

def build_detail(bundle: ProductivityBundle) -> Worksheet:
    rows = _SheetRows()
    for col, title in enumerate(DETAIL_HEADERS, 1):
        rows.put(1, col, title, role="table_header", tag=BLUE)
    rows.height(1, 25)

    completed_count = 0
    amount_sum = 0.0
    for idx, appt in enumerate(bundle.appointments):
        r = 2 + idx
        band = idx % 2 == 0
        rows.put(r, 1, format_date(appt.timestamp.date() if appt.timestamp else None), band=band)
        rows.put(r, 2, format_time(appt.timestamp), band=band)
        rows.put(r, 3, appt.patient_name, band=band)
        rows.put(r, 4, appt.specialty_name, band=band)
        rows.put(r, 5, appt.status_label, role="status", tag=appt.status.name, band=band)
        rows.put(r, 6, appt.amount, role="amount", kind=CURRENCY, band=band)

        if appt.status is AppointmentStatus.COMPLETED:
            completed_count += 1
        amount_sum += appt.amount

    last_data_row = 1 + len(bundle.appointments)
    totals_row = last_data_row + 1
    for col in range(1, 4):
        rows.put(totals_row, col, None, role="total")
    rows.put(totals_row, 4, TOTAL_LABEL, role="total", tag="label")
    rows.put(totals_row, 5, completed_count, role="total", kind=INTEGER)
    rows.put(totals_row, 6, amount_sum, role="total", kind=CURRENCY)

    return Worksheet(
        name=DETAIL_SHEET,
        tab_color=BLUE,
        accent_color=BLUE,
        column_widths=DETAIL_WIDTHS,
        rows=rows.freeze(),
        autofilter=(1, 1, last_data_row, len(DETAIL_HEADERS)),
    )


# ── Estadísticas ──────────────────────────────────────────────────────────

def build_statistics(metrics: Metrics) -> Worksheet:
    rows = _SheetRows()

    row = 2
    rows.put(row, 2, "ANÁLISIS ESTADÍSTICO MENSUAL", role="title", merge_span=(1, 3))
    rows.height(row, 35)

    row += 2
    rows.put(row, 2, "RESUMEN DE ASISTENCIA", role="subsection")
    row += 1
    summary = metrics.attendance
    best_day = summary.most_productive_day
    attendance_rows = [
        [_label("Total de días trabajados"), _value(summary.days_worked, INTEGER)],
        [_label("Horas totales"), _value(summary.total_hours, HOURS)],
        [_label("Promedio horas por día"), _value(summary.average_hours_per_day, HOURS)],
        [_label("Día más productivo"), _value(format_date(best_day))],
    ]
    written = _table(rows, row, 2, ("Métrica", "Valor"), attendance_rows, BLUE)

    row += written + 2
    rows.put(row, 2, "RESUMEN DE PRODUCTIVIDAD", role="subsection")
    row += 1
    productivity_rows = [
        [_label("Citas programadas"), _value(metrics.scheduled, INTEGER)],
        [_label("Citas completadas"), _value(metrics.completed, INTEGER)],
        [_label("Tasa de atención"), _value(metrics.attendance_rate / 100, PERCENT)],
        [_label("Ingresos totales"), _value(metrics.revenue, CURRENCY)],
        [_label("Ingreso promedio por cita"), _value(metrics.average_revenue_per_appointment, CURRENCY)],
    ]
    written = _table(rows, row, 2, ("Métrica", "Valor"), productivity_rows, PURPLE)

    row += written + 2
    rows.put(row, 2, STATUS_NOTE, role="note", merge_span=(1, 2))
    rows.height(row, 30)

    return Worksheet(
        name=STATS_SHEET,
        tab_color=GREEN,
        accent_color=GREEN,
        column_widths=STATS_WIDTHS,
        rows=rows.freeze(),
    )


def build_document(
    request: ReportRequest,
    bundle: ProductivityBundle,
    metrics: Metrics,
    generated_at: datetime,
    creator: str,
    max_bar_width: int,
) -> ReportDocument:
    """Assemble the unstyled three-sheet document."""
    period = bundle.period
    sheets = (
        build_dashboard(request, metrics, period.month, period.year, max_bar_width),
        build_detail(bundle),
        build_statistics(metrics),
    )
    logger.debug(
        f"Built document for employee {request.employee.id}: "
        f"{len(bundle.appointments)} appointments, {len(metrics.distribution)} specialties"
    )
    return ReportDocument(
        sheets=sheets,
        properties=DocumentProperties(
            creator=creator,
            last_modified_by=creator,
            created=generated_at,
            modified=generated_at,
        ),
    )
