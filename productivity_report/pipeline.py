"""Pipeline orchestrator for the productivity report.

One invocation runs: aggregate (the only awaited step) → metrics → document
model → styles → render and save. Nothing is shared between invocations,
so concurrent reports for different employees need no coordination.
"""

import logging
from datetime import datetime
from typing import Optional

from dateutil import tz

from productivity_report.aggregator import ProductivityClient, aggregate
from productivity_report.builder import build_document
from productivity_report.config import ReportSettings, load_settings
from productivity_report.export import Exporter
from productivity_report.metrics import compute_metrics
from productivity_report.models import ReportRequest
from productivity_report.styles import resolve_styles

logger = logging.getLogger(__name__)


async def generate_productivity_report(
    params,
    *,
    client: Optional[ProductivityClient] = None,
    exporter: Optional[Exporter] = None,
    settings: Optional[ReportSettings] = None,
    now: Optional[datetime] = None,
) -> str:
    """Generate and save the monthly productivity workbook for one employee.

    Args:
        params: Mapping with empleado, asistencias, fechaInicio, fechaFin and
            estadisticas (or a ReportRequest).
        client: Productivity API client. Built from settings when omitted.
        exporter: Where the workbook is saved. Built from settings when omitted.
        settings: Report settings. Loaded from YAML when omitted.
        now: Clock for the reporting month. Defaults to the current time in
            the configured timezone.

    Returns:
        The generated filename.

    Raises:
        ReportGenerationError: If the workbook cannot be rendered or saved.
    """
    settings = settings or load_settings()
    request = params if isinstance(params, ReportRequest) else ReportRequest.from_dict(params)
    now = now or datetime.now(tz.gettz(settings.timezone))
    exporter = exporter or Exporter(settings.export_dir)

    employee = request.employee
    logger.info(f"=== Generating productivity report for {employee.display_name} ({now.month}/{now.year}) ===")

    if client is None:
        # Own client: close its session once the fetch is done
        owned = ProductivityClient(settings.api_url, timeout=settings.request_timeout)
        try:
            bundle = await aggregate(owned, employee, now.month, now.year, settings.timezone)
        finally:
            owned.close()
    else:
        bundle = await aggregate(client, employee, now.month, now.year, settings.timezone)

    metrics = compute_metrics(request, bundle, max_bar_width=settings.max_bar_width)
    document = build_document(
        request,
        bundle,
        metrics,
        generated_at=now,
        creator=settings.creator,
        max_bar_width=settings.max_bar_width,
    )
    styled = resolve_styles(document)
    filename = exporter.export_report(styled, employee, bundle.period.month, bundle.period.year)

    logger.info(
        f"=== Completed report {filename}: rate {metrics.attendance_rate:.1f}% "
        f"({metrics.tier.label}){' [degraded]' if bundle.degraded else ''} ==="
    )
    return filename
