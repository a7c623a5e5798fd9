"""Metric calculator for the productivity report.

Derives attendance rate, per-hour rates, the performance tier and the
specialty distribution from the aggregated data. Everything here is pure:
same inputs, same Metrics.
"""

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from productivity_report.models import (
    AttendanceRecord,
    ProductivityBundle,
    ProductivityPeriod,
    ReportRequest,
)

MAX_BAR_WIDTH = 5


class PerformanceTier(Enum):
    EXCELLENT = "Excelente"
    GOOD = "Bueno"
    REGULAR = "Regular"
    LOW = "Bajo"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class TierRule:
    min_rate: float
    tier: PerformanceTier
    color: str


# Evaluated top-down with >= semantics; the last rule catches everything else.
TIER_TABLE: tuple[TierRule, ...] = (
    TierRule(90.0, PerformanceTier.EXCELLENT, "27AE60"),
    TierRule(75.0, PerformanceTier.GOOD, "52C41A"),
    TierRule(60.0, PerformanceTier.REGULAR, "F39C12"),
    TierRule(float("-inf"), PerformanceTier.LOW, "FF0000"),
)


def classify_tier(rate: float) -> PerformanceTier:
    """Map an attendance rate (0-100) to its performance tier."""
    return _rule_for(rate).tier


def tier_color(tier: PerformanceTier) -> str:
    """Display color (RRGGBB) for a tier."""
    for rule in TIER_TABLE:
        if rule.tier is tier:
            return rule.color
    raise KeyError(tier)


def _rule_for(rate: float) -> TierRule:
    for rule in TIER_TABLE:
        if rate >= rule.min_rate:
            return rule
    return TIER_TABLE[-1]


def attendance_rate(scheduled: int, completed: int) -> float:
    """Completed over scheduled, as a percentage clamped to [0, 100]."""
    if scheduled <= 0:
        return 0.0
    rate = completed / scheduled * 100
    return min(max(rate, 0.0), 100.0)


def per_hour(amount: float, hours: float) -> float:
    """Amount per worked hour; 0 when no hours were worked."""
    if hours <= 0:
        return 0.0
    return amount / hours


def bar_width(percentage: float, max_width: int = MAX_BAR_WIDTH) -> int:
    """Number of filled cells for a proportion drawn as a bar of cells.

    Args:
        percentage: Proportion as a fraction (0.5 for 50%).
        max_width: Total number of cells in the bar.

    Returns:
        Filled cell count, rounded half-up and clamped to [0, max_width].
    """
    if max_width <= 0:
        return 0
    filled = math.floor(percentage * max_width + 0.5)
    return min(max(filled, 0), max_width)


@dataclass(frozen=True)
class SpecialtyShare:
    name: str
    count: int
    percentage: float  # fraction of the period's appointments
    bar_width: int


def specialty_distribution(
    period: ProductivityPeriod,
    max_width: int = MAX_BAR_WIDTH,
) -> tuple[SpecialtyShare, ...]:
    """Share of appointments per specialty, in the order the API sent them.

    The denominator is the scheduled total, widened to the sum of the counts
    when the backend reports more specialty appointments than scheduled ones,
    so the shares never add up to more than 100%. With nothing scheduled
    every share is 0.
    """
    if period.scheduled > 0:
        denominator = max(period.scheduled, sum(count for _, count in period.specialties))
    else:
        denominator = 0
    shares = []
    for name, count in period.specialties:
        pct = count / denominator if denominator > 0 else 0.0
        shares.append(SpecialtyShare(
            name=name,
            count=count,
            percentage=pct,
            bar_width=bar_width(pct, max_width),
        ))
    return tuple(shares)


@dataclass(frozen=True)
class AttendanceSummary:
    days_worked: int
    total_hours: float
    average_hours_per_day: float
    most_productive_day: Optional[date]


def summarize_attendance(
    records: tuple[AttendanceRecord, ...],
    total_hours: float,
) -> AttendanceSummary:
    """Days worked, hours and best day for the Statistics sheet.

    The most productive day is the first record with the highest positive
    hours; None when nobody logged any hours.
    """
    days = len(records)
    best = None
    for record in records:
        if record.horas_trabajadas > 0 and (
            best is None or record.horas_trabajadas > best.horas_trabajadas
        ):
            best = record

    return AttendanceSummary(
        days_worked=days,
        total_hours=total_hours,
        average_hours_per_day=total_hours / days if days else 0.0,
        most_productive_day=best.fecha if best else None,
    )


@dataclass(frozen=True)
class Metrics:
    """Derived figures for one report. Never persisted."""

    scheduled: int
    completed: int
    revenue: float
    total_hours: float
    attendance_rate: float  # 0-100
    patients_per_hour: float
    revenue_per_hour: float
    average_revenue_per_appointment: float
    tier: PerformanceTier
    distribution: tuple[SpecialtyShare, ...]
    attendance: AttendanceSummary

    @property
    def tier_color(self) -> str:
        return tier_color(self.tier)


def compute_metrics(
    request: ReportRequest,
    bundle: ProductivityBundle,
    max_bar_width: int = MAX_BAR_WIDTH,
) -> Metrics:
    """Derive every metric the document needs from the normalized inputs."""
    period = bundle.period
    hours = request.total_hours
    rate = attendance_rate(period.scheduled, period.completed)

    return Metrics(
        scheduled=period.scheduled,
        completed=period.completed,
        revenue=period.revenue,
        total_hours=hours,
        attendance_rate=rate,
        patients_per_hour=per_hour(period.completed, hours),
        revenue_per_hour=per_hour(period.revenue, hours),
        average_revenue_per_appointment=(
            period.revenue / period.completed if period.completed > 0 else 0.0
        ),
        tier=classify_tier(rate),
        distribution=specialty_distribution(period, max_bar_width),
        attendance=summarize_attendance(request.attendance, hours),
    )
