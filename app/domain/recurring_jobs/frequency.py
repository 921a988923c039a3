"""
Recurrence arithmetic for recurring jobs.

Monthly series step by calendar month and clamp to the last day of shorter
months (Jan 31 -> Feb 28/29). Occurrences are always computed from the
series start so a clamped month never shifts the following ones.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Iterator, Union

from dateutil.relativedelta import relativedelta

from ...errors import InvalidFrequency


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi_weekly"
    MONTHLY = "monthly"


_DAY_STEPS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.BI_WEEKLY: 14,
}


def parse_frequency(value: Union[str, Frequency]) -> Frequency:
    """Normalize a raw frequency value, raising InvalidFrequency if unknown"""
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(value)
    except ValueError:
        raise InvalidFrequency(value) from None


def occurrence_at(start_date: date, frequency: Union[str, Frequency], index: int) -> date:
    """Return the ``index``-th occurrence of a series; index 0 is ``start_date``"""
    if index < 0:
        raise ValueError("Occurrence index cannot be negative")

    frequency = parse_frequency(frequency)
    if frequency is Frequency.MONTHLY:
        # relativedelta clamps to the end of the target month
        return start_date + relativedelta(months=index)
    return start_date + timedelta(days=_DAY_STEPS[frequency] * index)


def next_occurrence(anchor_date: date, frequency: Union[str, Frequency]) -> date:
    """Next occurrence after ``anchor_date``; always strictly later"""
    return occurrence_at(anchor_date, frequency, 1)


def iter_occurrences(start_date: date, frequency: Union[str, Frequency]) -> Iterator[date]:
    """Yield ``start_date`` and every following occurrence, without end"""
    frequency = parse_frequency(frequency)
    index = 0
    while True:
        yield occurrence_at(start_date, frequency, index)
        index += 1
