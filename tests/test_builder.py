"""Tests for the document model builder."""

from datetime import date, datetime, timezone

import pytest
from productivity_report.builder import (
    DASHBOARD_SHEET,
    DETAIL_SHEET,
    KPI_HOURS,
    KPI_PATIENTS,
    KPI_REVENUE,
    METRIC_ATTENDANCE_RATE,
    STATS_SHEET,
    TOTAL_LABEL,
    build_document,
)
from productivity_report.document import CURRENCY, HOURS, PERCENT
from productivity_report.metrics import compute_metrics
from productivity_report.models import (
    AppointmentDetail,
    AttendanceRecord,
    Employee,
    ProductivityBundle,
    ProductivityPeriod,
    ReportRequest,
)

NOW = datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def report_request():
    return ReportRequest(
        employee=Employee(id=7, nombre="Ana", apellido="Pérez"),
        attendance=tuple(
            AttendanceRecord(fecha=date(2025, 3, day), horas_trabajadas=8.0)
            for day in range(3, 13)
        ),
        total_hours=80.0,
    )


@pytest.fixture
def bundle():
    appointments = (
        AppointmentDetail(datetime(2025, 3, 14, 10, 30), "Juan Soto", "Cardiología", "Completada", 50000.0),
        AppointmentDetail(datetime(2025, 3, 15, 9, 0), "Rosa Díaz", "Pediatría", "Confirmada", 45000.0),
        AppointmentDetail(None, "N/A", "N/A", "Pendiente", 0.0),
    )
    period = ProductivityPeriod(
        month=3, year=2025, scheduled=10, completed=8, revenue=400000.0,
        specialties=(("Cardiología", 5), ("Pediatría", 3)),
    )
    return ProductivityBundle(period=period, appointments=appointments)


@pytest.fixture
def document(report_request, bundle):
    metrics = compute_metrics(report_request, bundle)
    return build_document(report_request, bundle, metrics, generated_at=NOW,
                          creator="Sistema Gestión Clínica", max_bar_width=5)


class TestDocumentShape:
    def test_sheet_names(self, document):
        assert document.sheet_names == [DASHBOARD_SHEET, DETAIL_SHEET, STATS_SHEET]

    def test_properties(self, document):
        assert document.properties.creator == "Sistema Gestión Clínica"
        assert document.properties.last_modified_by == "Sistema Gestión Clínica"
        assert document.properties.created == NOW

    def test_unstyled(self, document):
        for sheet in document.sheets:
            for _, cell in sheet.iter_cells():
                assert cell.font is None
                assert cell.fill is None
                assert cell.number_format is None

    def test_unknown_sheet(self, document):
        with pytest.raises(KeyError):
            document.sheet("Resumen")


class TestDashboard:
    def test_header(self, document):
        ws = document.sheet(DASHBOARD_SHEET)
        assert ws.cell(1, 1).value == "REPORTE DE PRODUCTIVIDAD MENSUAL"
        assert ws.cell(3, 5).value == "BETA v2.0"
        assert ws.cell(4, 2).value == "Doctor(a): Ana Pérez"
        assert ws.cell(5, 2).value == "Período: Marzo 2025"
        assert ws.column_widths == (3, 22, 22, 25, 22, 3)
        assert ws.page_setup is not None

    def test_merges(self, document):
        ranges = document.sheet(DASHBOARD_SHEET).merged_ranges()
        assert (1, 1, 2, 6) in ranges
        assert (3, 5, 3, 6) in ranges
        assert (4, 2, 4, 4) in ranges
        assert (7, 2, 7, 5) in ranges

    def test_kpi_raw_values(self, document):
        ws = document.sheet(DASHBOARD_SHEET)
        assert [ws.cell(8, c).value for c in (2, 3, 4)] == [KPI_HOURS, KPI_PATIENTS, KPI_REVENUE]
        assert ws.cell(9, 2).value == 80.0
        assert ws.cell(9, 2).kind == HOURS
        assert ws.cell(9, 3).value == 8
        assert ws.cell(9, 4).value == 400000.0
        assert ws.cell(9, 4).kind == CURRENCY

    def test_metrics_table(self, document):
        ws = document.sheet(DASHBOARD_SHEET)
        assert ws.row(12).values == ["Métrica", "Valor", "Estado"]
        assert ws.find(METRIC_ATTENDANCE_RATE) == (13, 2)
        rate = ws.cell(13, 3)
        assert rate.value == pytest.approx(0.8)
        assert rate.kind == PERCENT
        tier = ws.cell(13, 4)
        assert tier.value == "Bueno"
        assert tier.role == "tier"
        assert tier.tag == "GOOD"
        # Only the attendance row is tiered
        assert [ws.cell(r, 4).value for r in range(14, 18)] == ["-", "-", "-", "-"]

    def test_metrics_banding_counts_data_rows(self, document):
        ws = document.sheet(DASHBOARD_SHEET)
        assert ws.cell(12, 2).band is False
        assert [ws.cell(r, 2).band for r in range(13, 18)] == [True, False, True, False, True]

    def test_specialty_table(self, document):
        ws = document.sheet(DASHBOARD_SHEET)
        assert ws.cell(19, 2).value == "DISTRIBUCIÓN POR ESPECIALIDAD"
        assert ws.row(20).values == ["Especialidad", "Consultas", "Porcentaje"]
        assert ws.row(21).values == ["Cardiología", 5, pytest.approx(0.5)]
        assert ws.row(22).values == ["Pediatría", 3, pytest.approx(0.3)]

    def test_bars(self, document):
        ws = document.sheet(DASHBOARD_SHEET)
        assert ws.find("VISUALIZACIÓN DE DISTRIBUCIÓN") == (25, 2)
        first = [ws.cell(26, c).tag for c in range(3, 8)]
        second = [ws.cell(27, c).tag for c in range(3, 8)]
        assert first == ["primary"] * 3 + ["empty"] * 2
        assert second == ["secondary"] * 2 + ["empty"] * 3
        assert ws.cell(26, 8).value == pytest.approx(0.5)

    def test_no_specialties(self, report_request):
        bundle = ProductivityBundle.empty(3, 2025)
        metrics = compute_metrics(report_request, bundle)
        doc = build_document(report_request, bundle, metrics, NOW, "x", 5)
        ws = doc.sheet(DASHBOARD_SHEET)
        assert ws.cell(9, 3).value == 0
        assert ws.cell(13, 4).value == "Bajo"
        assert ws.find("VISUALIZACIÓN DE DISTRIBUCIÓN") == (23, 2)


class TestDetail:
    def test_rows(self, document):
        ws = document.sheet(DETAIL_SHEET)
        assert ws.row(1).values == ["Fecha", "Hora", "Paciente", "Especialidad", "Estado", "Monto"]
        assert ws.row(2).values == ["14-03-2025", "10:30", "Juan Soto", "Cardiología", "Completada", 50000.0]
        assert ws.row(4).values[:2] == ["-", "-"]
        assert ws.cell(2, 5).tag == "COMPLETED"
        assert ws.cell(3, 5).tag == "CONFIRMED"
        assert ws.cell(4, 5).tag == "OTHER"

    def test_banding_flags(self, document):
        ws = document.sheet(DETAIL_SHEET)
        assert ws.cell(2, 1).band is True
        assert ws.cell(3, 1).band is False
        assert ws.cell(4, 1).band is True

    def test_totals_from_rows(self, document):
        ws = document.sheet(DETAIL_SHEET)
        assert ws.cell(5, 4).value == TOTAL_LABEL
        # One completed row, not the summary's 8
        assert ws.cell(5, 5).value == 1
        assert ws.cell(5, 6).value == 95000.0

    def test_autofilter(self, document):
        ws = document.sheet(DETAIL_SHEET)
        assert ws.autofilter_ref == "A1:F4"

    def test_empty(self, report_request):
        bundle = ProductivityBundle.empty(3, 2025)
        metrics = compute_metrics(report_request, bundle)
        ws = build_document(report_request, bundle, metrics, NOW, "x", 5).sheet(DETAIL_SHEET)
        assert ws.cell(2, 4).value == TOTAL_LABEL
        assert ws.cell(2, 5).value == 0
        assert ws.cell(2, 6).value == 0.0
        assert ws.autofilter_ref == "A1:F1"


class TestStatistics:
    def test_layout(self, document):
        ws = document.sheet(STATS_SHEET)
        assert ws.cell(2, 2).value == "ANÁLISIS ESTADÍSTICO MENSUAL"
        assert ws.cell(4, 2).value == "RESUMEN DE ASISTENCIA"
        assert ws.row(5).values == ["Métrica", "Valor"]
        assert ws.cell(12, 2).value == "RESUMEN DE PRODUCTIVIDAD"
        assert ws.row(13).values == ["Métrica", "Valor"]
        assert ws.cell(21, 2).value.startswith("NOTA:")
        assert (21, 2, 21, 3) in ws.merged_ranges()

    def test_attendance_values(self, document):
        ws = document.sheet(STATS_SHEET)
        assert ws.row(6).values == ["Total de días trabajados", 10]
        assert ws.row(7).values == ["Horas totales", 80.0]
        assert ws.row(8).values == ["Promedio horas por día", 8.0]
        assert ws.row(9).values == ["Día más productivo", "03-03-2025"]

    def test_banding_counts_data_rows(self, document):
        ws = document.sheet(STATS_SHEET)
        assert [ws.cell(r, 2).band for r in range(6, 10)] == [True, False, True, False]
        assert [ws.cell(r, 2).band for r in range(14, 19)] == [True, False, True, False, True]

    def test_productivity_values(self, document):
        ws = document.sheet(STATS_SHEET)
        assert ws.cell(14, 3).value == 10
        assert ws.cell(15, 3).value == 8
        assert ws.cell(16, 3).value == pytest.approx(0.8)
        assert ws.cell(17, 3).value == 400000.0
        assert ws.cell(18, 3).value == 50000.0
