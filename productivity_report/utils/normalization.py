"""Normalization utilities for values coming from the clinic backend.

All functions handle None, empty strings, "N/A", "n/a", "-", "—" gracefully
by returning a default instead of raising exceptions. The only exception is
parse_summary_number, which raises so the aggregator can reject a payload.
"""

import math
import re
import unicodedata
from datetime import date, datetime
from typing import Optional

from dateutil import parser as dateutil_parser
from dateutil import tz


# Values that should be treated as "no data"
_EMPTY_VALUES = {None, "", "N/A", "n/a", "N/a", "NA", "na", "-", "—", "–", "--", "None", "none", "null"}

# Thousands grouped with dots, as the es-CL locale prints them: "45.000", "1.250.000"
_DOTTED_THOUSANDS = re.compile(r"^\d{1,3}(\.\d{3})+$")

# Characters that break a path or are rejected by common filesystems
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')

MONTH_NAMES_ES = (
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
)


def _is_empty(value) -> bool:
    """Check if a value represents missing data."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in _EMPTY_VALUES
    return False


def _clean_number_string(value: str) -> str:
    s = value.replace("$", "").replace(" ", "").strip()
    if _DOTTED_THOUSANDS.match(s):
        return s.replace(".", "")
    if "," in s and "." not in s:
        # "1234,5" decimal comma
        return s.replace(",", ".")
    return s.replace(",", "")


def parse_amount(value) -> float:
    """Parse a money amount and return it as a float.

    Handles formats like:
    - 45000, 45000.0
    - "45000", "$45.000", "$ 1.250.000"
    - "1,250,000.50"

    Returns:
        Float amount, or 0.0 if unparseable or not finite.
    """
    if _is_empty(value) or isinstance(value, bool):
        return 0.0

    try:
        if isinstance(value, (int, float)):
            amount = float(value)
        else:
            amount = float(_clean_number_string(str(value)))
    except (ValueError, OverflowError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def parse_count(value) -> int:
    """Parse a non-negative count ("8", 8.0, "8 citas" is not a count).

    Returns:
        Integer count, or 0 if unparseable or negative.
    """
    if _is_empty(value) or isinstance(value, bool):
        return 0
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)


def parse_hours(value) -> float:
    """Parse a number of worked hours; 0.0 for anything unusable."""
    hours = parse_amount(value)
    return hours if hours > 0 else 0.0


def parse_summary_number(value) -> float:
    """Parse a figure from the monthly summary block.

    Missing values count as zero, but a value that is present and not numeric
    means the summary cannot be trusted.

    Raises:
        ValueError: If the value is present but not a finite number.
    """
    if _is_empty(value):
        return 0.0
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a summary figure: {value!r}")
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            number = float(_clean_number_string(str(value)))
    except OverflowError as e:
        raise ValueError(f"Summary figure out of range: {value!r}") from e
    if not math.isfinite(number):
        raise ValueError(f"Summary figure is not finite: {value!r}")
    return number


def parse_date(value) -> Optional[date]:
    """Parse an attendance date ("2025-03-14", "14-03-2025", datetime objects).

    Day-first is assumed for ambiguous numeric dates, matching es-CL input.

    Returns:
        date, or None if unparseable.
    """
    if _is_empty(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    s = str(value).strip()
    try:
        if re.match(r"^\d{4}-\d{2}-\d{2}", s):
            return dateutil_parser.isoparse(s[:10]).date()
        return dateutil_parser.parse(s, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def parse_timestamp(value, timezone: str) -> Optional[datetime]:
    """Parse an appointment timestamp and convert it to the given timezone.

    Naive timestamps are taken as UTC, which is how the backend stores them.

    Returns:
        Timezone-aware datetime, or None if unparseable.
    """
    if _is_empty(value):
        return None

    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = dateutil_parser.isoparse(str(value).strip())
        except (ValueError, OverflowError):
            try:
                dt = dateutil_parser.parse(str(value).strip())
            except (ValueError, OverflowError):
                return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz.UTC)
    zone = tz.gettz(timezone) or tz.UTC
    return dt.astimezone(zone)


def format_date(value: Optional[date]) -> str:
    """Format a date as dd-mm-yyyy; "-" when missing."""
    if value is None:
        return "-"
    return value.strftime("%d-%m-%Y")


def format_time(value: Optional[datetime]) -> str:
    """Format a time of day as HH:MM; "-" when missing."""
    if value is None:
        return "-"
    return value.strftime("%H:%M")


def month_name(month: int) -> str:
    """Spanish month name for 1-12."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return MONTH_NAMES_ES[month - 1]


def clean_text(value, default: str = "") -> str:
    """Strip a free-text value; default when it is missing."""
    if _is_empty(value):
        return default
    return " ".join(str(value).split())


def sanitize_filename_component(value, placeholder: str = "NA") -> str:
    """Make a name safe to embed in a filename.

    Accents are transliterated ("Pérez" → "Perez"), path separators and
    reserved characters are dropped, and whitespace becomes "_".

    Returns:
        Sanitized component, or placeholder if nothing usable remains.
    """
    if _is_empty(value):
        return placeholder

    s = unicodedata.normalize("NFKD", str(value))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = s.encode("ascii", "ignore").decode("ascii")
    s = _UNSAFE_FILENAME_CHARS.sub("", s)
    s = re.sub(r"\s+", "_", s.strip())
    s = re.sub(r"_+", "_", s).strip("._")
    return s or placeholder
