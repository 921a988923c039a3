"""Shared validation utilities"""

import re
from datetime import date, timedelta
from typing import Optional

from ..config import RECURRING_MAX_HORIZON_DAYS

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def validate_time_of_day(value: Optional[str]) -> Optional[str]:
    """
    Validate a time of day and normalize it to HH:MM.

    Accepts "9:00", "09:00" and "09:00:00" (seconds are dropped).

    Raises:
        ValueError: If the value is not a valid 24-hour time
    """
    if value is None:
        return value

    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM format")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError("Time must be a valid 24-hour time")

    return f"{hours:02d}:{minutes:02d}"


def validate_date_range(start: Optional[date], end: Optional[date]) -> None:
    """Raise ValueError when an end date falls before its start date"""
    if start and end and end < start:
        raise ValueError("End date cannot be before start date")


def validate_horizon(value: Optional[date], today: Optional[date] = None) -> Optional[date]:
    """Reject materialization horizons further out than RECURRING_MAX_HORIZON_DAYS"""
    if value is None:
        return value

    limit = (today or date.today()) + timedelta(days=RECURRING_MAX_HORIZON_DAYS)
    if value > limit:
        raise ValueError(f"Horizon cannot be more than {RECURRING_MAX_HORIZON_DAYS} days ahead")
    return value
