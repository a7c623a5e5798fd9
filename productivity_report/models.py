"""Typed records for the productivity report.

The caller and the clinic backend speak in Spanish-keyed dicts; everything
past the edges of the pipeline works with these frozen dataclasses instead.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from productivity_report.utils.normalization import (
    clean_text,
    parse_date,
    parse_hours,
)

PLACEHOLDER = "N/A"
DEFAULT_STATUS = "Pendiente"


class AppointmentStatus(Enum):
    """Appointment status as far as the report cares about it."""

    COMPLETED = "Completada"
    CONFIRMED = "Confirmada"
    OTHER = "Otro"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "AppointmentStatus":
        for status in (cls.COMPLETED, cls.CONFIRMED):
            if raw == status.value:
                return status
        return cls.OTHER


@dataclass(frozen=True)
class Employee:
    id: object
    nombre: str
    apellido: str = ""

    @property
    def display_name(self) -> str:
        """Full name for headings; "N/A" when both parts are blank."""
        return " ".join(part for part in (self.nombre, self.apellido) if part) or PLACEHOLDER

    @classmethod
    def from_dict(cls, data: dict) -> "Employee":
        return cls(
            id=data.get("id"),
            nombre=clean_text(data.get("nombre")),
            apellido=clean_text(data.get("apellido")),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    fecha: Optional[date]
    horas_trabajadas: float

    @classmethod
    def from_dict(cls, data: dict) -> "AttendanceRecord":
        return cls(
            fecha=parse_date(data.get("fecha")),
            horas_trabajadas=parse_hours(data.get("horas_trabajadas")),
        )


@dataclass(frozen=True)
class ProductivityPeriod:
    """Monthly appointment and revenue summary for one employee."""

    month: int
    year: int
    scheduled: int = 0
    completed: int = 0
    revenue: float = 0.0
    # (specialty name, completed count) in the order the API sent them
    specialties: tuple[tuple[str, int], ...] = ()

    @classmethod
    def zeroed(cls, month: int, year: int) -> "ProductivityPeriod":
        return cls(month=month, year=year)


@dataclass(frozen=True)
class AppointmentDetail:
    timestamp: Optional[datetime]
    patient_name: str
    specialty_name: str
    status_label: str
    amount: float

    @property
    def status(self) -> AppointmentStatus:
        return AppointmentStatus.from_raw(self.status_label)


@dataclass(frozen=True)
class ProductivityBundle:
    """Normalized output of the aggregator."""

    period: ProductivityPeriod
    appointments: tuple[AppointmentDetail, ...] = ()
    degraded: bool = False

    @classmethod
    def empty(cls, month: int, year: int) -> "ProductivityBundle":
        return cls(period=ProductivityPeriod.zeroed(month, year), degraded=True)


@dataclass(frozen=True)
class ReportRequest:
    """The caller's parameter object: {empleado, asistencias, fechaInicio, fechaFin, estadisticas}."""

    employee: Employee
    attendance: tuple[AttendanceRecord, ...] = ()
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_hours: float = 0.0

    @classmethod
    def from_dict(cls, params: dict) -> "ReportRequest":
        """Build a request from the caller's parameter mapping.

        `estadisticas.totalHoras` wins over the sum of attendance hours when
        the caller provides it.
        """
        empleado = params.get("empleado") or {}
        employee = empleado if isinstance(empleado, Employee) else Employee.from_dict(empleado)

        attendance = tuple(
            AttendanceRecord.from_dict(a) for a in (params.get("asistencias") or [])
            if isinstance(a, dict)
        )

        estadisticas = params.get("estadisticas") or {}
        if estadisticas.get("totalHoras") is not None:
            total_hours = parse_hours(estadisticas.get("totalHoras"))
        else:
            total_hours = sum(a.horas_trabajadas for a in attendance)

        return cls(
            employee=employee,
            attendance=attendance,
            start_date=parse_date(params.get("fechaInicio")),
            end_date=parse_date(params.get("fechaFin")),
            total_hours=total_hours,
        )
