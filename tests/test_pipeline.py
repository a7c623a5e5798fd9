"""Tests for the pipeline module."""

import asyncio
from datetime import datetime

import pytest
import requests
from dateutil import tz
from openpyxl import load_workbook

from productivity_report import ReportGenerationError, generate_productivity_report
from productivity_report.aggregator import ProductivityClient
from productivity_report.config import ReportSettings
from productivity_report.export import Exporter

NOW = datetime(2025, 3, 20, 10, 0, tzinfo=tz.gettz("America/Santiago"))


class DummyClient(ProductivityClient):
    """A minimal client for testing the pipeline without a backend."""

    def __init__(self, payload=None):
        super().__init__("http://test.invalid")
        self._payload = payload
        self.calls = []

    def fetch_month(self, employee_id, month, year):
        self.calls.append((employee_id, month, year))
        return self._payload


class ClosingClient(DummyClient):
    """Records whether the pipeline closed it."""

    def __init__(self, payload=None):
        super().__init__(payload)
        self.closed = False

    def close(self):
        self.closed = True


class FailingFetchClient(DummyClient):
    """Client whose backend is down."""

    def fetch_month(self, employee_id, month, year):
        raise requests.Timeout("Simulated timeout")


@pytest.fixture
def params():
    return {
        "empleado": {"id": 7, "nombre": "Ana", "apellido": "Pérez"},
        "asistencias": [
            {"fecha": f"2025-03-{day:02d}", "horas_trabajadas": 8}
            for day in range(3, 13)
        ],
        "fechaInicio": "2025-03-01",
        "fechaFin": "2025-03-31",
        "estadisticas": {"totalHoras": 80},
    }


@pytest.fixture
def payload():
    return {
        "citas": [
            {
                "fecha_atencion": "2025-03-14T13:30:00Z",
                "paciente": {"nombre": "Juan Soto"},
                "especialidad": {"nombre": "Cardiología"},
                "estado_actual": "Completada",
                "monto_total": 50000,
            },
        ],
        "resumen": {
            "total_citas": 10,
            "citas_completadas": 8,
            "total_ingresos": 400000,
            "especialidades": {"Cardiología": 5, "Pediatría": 3},
        },
    }


@pytest.fixture
def settings(tmp_path):
    return ReportSettings(export_dir=tmp_path / "exports")


def run(params, **kwargs):
    return asyncio.run(generate_productivity_report(params, **kwargs))


class TestGenerateProductivityReport:
    def test_full_report(self, params, payload, settings):
        client = DummyClient(payload)
        filename = run(params, client=client, settings=settings, now=NOW)

        assert filename == "Reporte_Productividad_Ana_Perez_3-2025_BETA.xlsx"
        assert client.calls == [(7, 3, 2025)]

        wb = load_workbook(settings.export_dir / filename)
        assert wb.sheetnames == ["Dashboard", "Detalle de Citas", "Estadísticas"]
        dash = wb["Dashboard"]
        assert dash["B5"].value == "Período: Marzo 2025"
        assert dash["B9"].value == 80
        assert dash["C9"].value == 8
        assert dash["D9"].value == 400000
        assert dash["C13"].value == pytest.approx(0.8)
        assert dash["D13"].value == "Bueno"

        detail = wb["Detalle de Citas"]
        assert detail["A2"].value == "14-03-2025"
        assert detail["B2"].value == "10:30"
        assert detail["D3"].value == "TOTAL"

    def test_backend_down_still_produces_report(self, params, settings):
        filename = run(params, client=FailingFetchClient(), settings=settings, now=NOW)

        assert filename == "Reporte_Productividad_Ana_Perez_3-2025_BETA.xlsx"
        wb = load_workbook(settings.export_dir / filename)
        dash = wb["Dashboard"]
        assert dash["C9"].value == 0
        assert dash["D9"].value == 0
        assert dash["D13"].value == "Bajo"
        assert wb["Detalle de Citas"]["D2"].value == "TOTAL"

    def test_period_comes_from_clock(self, params, payload, settings):
        client = DummyClient(payload)
        now = datetime(2024, 12, 31, 23, 0, tzinfo=tz.gettz("America/Santiago"))
        filename = run(params, client=client, settings=settings, now=now)
        assert client.calls == [(7, 12, 2024)]
        assert filename.endswith("_12-2024_BETA.xlsx")

    def test_total_hours_falls_back_to_attendance(self, params, payload, settings):
        del params["estadisticas"]
        filename = run(params, client=DummyClient(payload), settings=settings, now=NOW)
        wb = load_workbook(settings.export_dir / filename)
        assert wb["Dashboard"]["B9"].value == 80

    def test_custom_exporter(self, params, payload, tmp_path):
        exporter = Exporter(export_dir=tmp_path / "elsewhere")
        filename = run(params, client=DummyClient(payload), exporter=exporter,
                       settings=ReportSettings(export_dir=tmp_path / "unused"), now=NOW)
        assert (tmp_path / "elsewhere" / filename).exists()

    def test_concurrent_reports(self, payload, settings):
        def params_for(emp_id, nombre):
            return {"empleado": {"id": emp_id, "nombre": nombre, "apellido": "Test"},
                    "asistencias": [], "estadisticas": {"totalHoras": 10}}

        async def both():
            return await asyncio.gather(
                generate_productivity_report(params_for(1, "Uno"), client=DummyClient(payload),
                                             settings=settings, now=NOW),
                generate_productivity_report(params_for(2, "Dos"), client=DummyClient(payload),
                                             settings=settings, now=NOW),
            )

        names = asyncio.run(both())
        assert names == [
            "Reporte_Productividad_Uno_Test_3-2025_BETA.xlsx",
            "Reporte_Productividad_Dos_Test_3-2025_BETA.xlsx",
        ]
        assert all((settings.export_dir / n).exists() for n in names)

    def test_save_failure_raises(self, params, payload, settings, monkeypatch):
        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("productivity_report.export.os.replace", broken_replace)
        with pytest.raises(ReportGenerationError):
            run(params, client=DummyClient(payload), settings=settings, now=NOW)
        assert list(settings.export_dir.iterdir()) == []

    def test_default_client_is_closed(self, params, payload, settings, monkeypatch):
        created = []

        def make_client(api_url, timeout):
            client = ClosingClient(payload)
            created.append((api_url, timeout, client))
            return client

        monkeypatch.setattr("productivity_report.pipeline.ProductivityClient", make_client)
        filename = run(params, settings=settings, now=NOW)

        assert filename == "Reporte_Productividad_Ana_Perez_3-2025_BETA.xlsx"
        (api_url, timeout, client), = created
        assert api_url == settings.api_url
        assert timeout == settings.request_timeout
        assert client.calls == [(7, 3, 2025)]
        assert client.closed is True

    def test_caller_client_left_open(self, params, payload, settings):
        client = ClosingClient(payload)
        run(params, client=client, settings=settings, now=NOW)
        assert client.closed is False
