"""Data aggregator for the productivity report.

Fetches the monthly productivity summary and appointment list for one
employee from the clinic backend and normalizes it into a
ProductivityBundle. Upstream trouble never aborts the report: the
aggregator logs a warning and hands back a zeroed bundle instead.
"""

import asyncio
import logging
from typing import Optional

import requests

from productivity_report.errors import MalformedPayloadError
from productivity_report.models import (
    DEFAULT_STATUS,
    PLACEHOLDER,
    AppointmentDetail,
    Employee,
    ProductivityBundle,
    ProductivityPeriod,
)
from productivity_report.utils.normalization import (
    clean_text,
    parse_amount,
    parse_count,
    parse_summary_number,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

PRODUCTIVITY_PATH = "/Citas/doctor/{employee_id}/productividad-mensual"


class ProductivityClient:
    """Blocking HTTP client for the monthly productivity endpoint."""

    def __init__(
        self,
        api_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_month(self, employee_id, month: int, year: int) -> dict:
        """GET the productivity payload for one employee and month.

        Returns:
            Decoded JSON body ({"citas": [...], "resumen": {...}}).

        Raises:
            requests.RequestException: On connection errors, HTTP error
                statuses, or a body that is not JSON.
        """
        url = self.api_url + PRODUCTIVITY_PATH.format(employee_id=employee_id)
        logger.info(f"Fetching productivity for employee {employee_id} ({month}/{year}) from {url}")
        resp = self.session.get(url, params={"mes": month, "anio": year}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def close(self) -> None:
        """Release the session's pooled connections."""
        self.session.close()


def _nested_name(value) -> str:
    """`{"nombre": ...}` objects from the API; "N/A" when absent."""
    if isinstance(value, dict):
        return clean_text(value.get("nombre"), PLACEHOLDER)
    return PLACEHOLDER


def parse_appointment(raw: dict, timezone: str) -> AppointmentDetail:
    """Normalize one appointment; bad fields degrade to placeholders."""
    return AppointmentDetail(
        timestamp=parse_timestamp(raw.get("fecha_atencion"), timezone),
        patient_name=_nested_name(raw.get("paciente")),
        specialty_name=_nested_name(raw.get("especialidad")),
        status_label=clean_text(raw.get("estado_actual"), DEFAULT_STATUS),
        amount=parse_amount(raw.get("monto_total")),
    )


def parse_payload(payload, month: int, year: int, timezone: str) -> ProductivityBundle:
    """Turn the API body into a ProductivityBundle.

    Raises:
        MalformedPayloadError: If the body or its summary block is unusable.
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError(f"Expected a JSON object, got {type(payload).__name__}")

    resumen = payload.get("resumen")
    if not isinstance(resumen, dict):
        raise MalformedPayloadError("Missing 'resumen' block")

    try:
        scheduled = parse_summary_number(resumen.get("total_citas"))
        completed = parse_summary_number(resumen.get("citas_completadas"))
        revenue = parse_summary_number(resumen.get("total_ingresos"))
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"Non-numeric summary figure: {e}") from e

    especialidades = resumen.get("especialidades") or {}
    if not isinstance(especialidades, dict):
        raise MalformedPayloadError("'especialidades' must be an object")

    citas = payload.get("citas") or []
    if not isinstance(citas, list):
        raise MalformedPayloadError("'citas' must be a list")

    period = ProductivityPeriod(
        month=month,
        year=year,
        scheduled=max(int(scheduled), 0),
        completed=max(int(completed), 0),
        revenue=revenue,
        specialties=tuple(
            (clean_text(name, PLACEHOLDER), parse_count(count))
            for name, count in especialidades.items()
        ),
    )
    appointments = tuple(parse_appointment(c, timezone) for c in citas if isinstance(c, dict))
    return ProductivityBundle(period=period, appointments=appointments)


async def aggregate(
    client: ProductivityClient,
    employee: Employee,
    month: int,
    year: int,
    timezone: str,
) -> ProductivityBundle:
    """Fetch and normalize one month of productivity data.

    The blocking HTTP call runs in a worker thread. Any failure, whether
    network, HTTP status or payload shape, is logged and replaced by a
    zeroed bundle so the report can still be produced.
    """
    try:
        payload = await asyncio.to_thread(client.fetch_month, employee.id, month, year)
        bundle = parse_payload(payload, month, year, timezone)
    except Exception as e:
        logger.warning(
            f"Productivity data unavailable for employee {employee.id} "
            f"({month}/{year}), using empty defaults: {type(e).__name__}: {e}"
        )
        return ProductivityBundle.empty(month, year)

    logger.info(
        f"Aggregated {len(bundle.appointments)} appointments for employee {employee.id}: "
        f"{bundle.period.completed}/{bundle.period.scheduled} completed"
    )
    return bundle
