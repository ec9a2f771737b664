"""Shared utility functions — amount validation, rounding, date and assessment-year handling."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Union

from app.services.exceptions import InvalidAmountError

# ── Supported date formats (most specific first) ─────────────────────────
_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%d/%m/%Y",
]

_AY_PATTERN = re.compile(r"^(\d{4})-(\d{2}|\d{4})$")

Number = Union[int, float]


# ── Amount helpers ────────────────────────────────────────────────────────

def validate_amount(value: object, field: str = "amount") -> float:
    """Return *value* as a float, or raise ``InvalidAmountError``.

    Accepts ints and floats (not bools). Rejects negatives, NaN and
    infinities instead of clamping them.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidAmountError(f"{field} must be a number, got {value!r}")
    amount = float(value)
    if not math.isfinite(amount):
        raise InvalidAmountError(f"{field} must be finite, got {value!r}")
    if amount < 0:
        raise InvalidAmountError(f"{field} must be non-negative, got {value!r}")
    return amount


def round_currency(value: float, decimals: int = 2) -> float:
    """Round to *decimals* places."""
    return round(value, decimals)


def round_rate(value: float, decimals: int = 4) -> float:
    """Round a fractional rate (0.156 = 15.6 %)."""
    return round(value, decimals)


# ── Date parsing ──────────────────────────────────────────────────────────

def parse_date(value: Union[str, date]) -> date:
    """Parse a date string using the accepted format variants.

    ``date`` and ``datetime`` objects pass through (datetimes are truncated).
    Raises ``ValueError`` if the string cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(
        f"Invalid date format: '{value}'. Expected YYYY-MM-DD."
    )


def days_between(start: Union[date, datetime], end: date) -> int:
    """Whole days from *start* until *end*, rounded up (``ceil``).

    Negative when *end* is already behind *start*.
    """
    if isinstance(start, datetime):
        end_dt = datetime(end.year, end.month, end.day, tzinfo=start.tzinfo)
        return math.ceil((end_dt - start).total_seconds() / 86400)
    return (end - start).days


# ── Assessment year helpers ───────────────────────────────────────────────

def assessment_year_start(assessment_year: str) -> int:
    """Return the first calendar year of an assessment year label.

    ``"2024-25"`` → 2024. Also accepts ``"2024-2025"``. The second part
    must be the following year.
    """
    match = _AY_PATTERN.match(assessment_year.strip())
    if match is None:
        raise ValueError(
            f"Invalid assessment year: '{assessment_year}'. Expected YYYY-YY."
        )
    start = int(match.group(1))
    tail = match.group(2)
    expected = str(start + 1)
    if tail != expected and tail != expected[-2:]:
        raise ValueError(
            f"Invalid assessment year: '{assessment_year}'. "
            f"Second year must follow {start}."
        )
    return start


def format_assessment_year(start_year: int) -> str:
    """2024 → ``"2024-25"``."""
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def assessment_year_for(on: Union[date, datetime]) -> str:
    """Assessment year for income earned in the financial year containing *on*.

    The financial year runs 1 April – 31 March and is assessed the year
    after: 2024-09-05 lies in FY 2024-25, assessed in AY 2025-26.
    """
    fy_start = on.year if on.month >= 4 else on.year - 1
    return format_assessment_year(fy_start + 1)
