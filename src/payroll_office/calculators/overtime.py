"""Overtime hours and amount derivation."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from payroll_office.calculators.aggregation import to_money

MINUTES_PER_DAY = 24 * 60


def minute_range(start_time: time, end_time: time) -> tuple[int, int]:
    """(start, end) in minutes from midnight; an earlier end wraps to the next day."""
    start = start_time.hour * 60 + start_time.minute
    end = end_time.hour * 60 + end_time.minute
    if end < start:
        end += MINUTES_PER_DAY
    return start, end


def ranges_overlap(first: tuple[time, time], second: tuple[time, time]) -> bool:
    """True when two same-day clock ranges share at least one minute.

    Touching ranges (one ends when the other starts) do not overlap.
    """
    start, end = minute_range(*first)
    other_start, other_end = minute_range(*second)
    return start < other_end and other_start < end


def overtime_hours(start_time: time, end_time: time, on: date | None = None) -> Decimal:
    """Hours between two clock times.

    An end time earlier than the start time is taken to be on the next day.
    """
    on = on or date(2000, 1, 1)
    start = datetime.combine(on, start_time)
    end = datetime.combine(on, end_time)
    if end < start:
        end += timedelta(days=1)
    seconds = Decimal((end - start).total_seconds())
    return to_money(seconds / Decimal(3600))


def overtime_amount(hourly_rate: Decimal, hours: Decimal, multiplier: Decimal) -> Decimal:
    """hourly_rate x hours x multiplier, rounded to cents."""
    return to_money(Decimal(hourly_rate) * Decimal(hours) * Decimal(multiplier))


def parse_clock(value: str | time) -> time:
    """Parse HH:MM or HH:MM:SS."""
    if isinstance(value, time):
        return value
    parts = value.split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM or HH:MM:SS")
    return time(*(int(p) for p in parts))
