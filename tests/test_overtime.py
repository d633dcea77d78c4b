"""Tests for overtime hours and amount derivation."""

from datetime import date, time
from decimal import Decimal

import pytest

from payroll_office.calculators.overtime import (
    minute_range,
    overtime_amount,
    overtime_hours,
    parse_clock,
    ranges_overlap,
)


class TestOvertimeHours:
    def test_same_day(self):
        assert overtime_hours(time(18, 0), time(22, 0)) == Decimal("4.00")

    def test_fractional_hours(self):
        assert overtime_hours(time(17, 0), time(18, 20)) == Decimal("1.33")

    def test_wraps_past_midnight(self):
        """End before start is taken to be on the next day."""
        assert overtime_hours(time(22, 0), time(2, 0), date(2024, 1, 5)) == Decimal("4.00")

    def test_equal_times_are_zero(self):
        assert overtime_hours(time(18, 0), time(18, 0)) == Decimal("0.00")


class TestOvertimeAmount:
    def test_hourly_rate_times_hours_times_multiplier(self):
        assert overtime_amount(Decimal("100.00"), Decimal("4"), Decimal("1.25")) == Decimal(
            "500.00"
        )

    def test_rounded_to_cents(self):
        assert overtime_amount(Decimal("62.50"), Decimal("1.33"), Decimal("1.30")) == Decimal(
            "108.06"
        )


class TestParseClock:
    def test_hours_and_minutes(self):
        assert parse_clock("18:30") == time(18, 30)

    def test_with_seconds(self):
        assert parse_clock("07:05:09") == time(7, 5, 9)

    def test_time_passes_through(self):
        assert parse_clock(time(9, 0)) == time(9, 0)

    @pytest.mark.parametrize("value", ["", "18", "18h30", "25:00", "a:b"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            parse_clock(value)


class TestRangesOverlap:
    def test_minute_range_wraps_past_midnight(self):
        assert minute_range(time(22, 0), time(1, 30)) == (1320, 1530)

    def test_contained_range_overlaps(self):
        assert ranges_overlap((time(18, 0), time(22, 0)), (time(19, 0), time(21, 0)))

    def test_touching_ranges_do_not_overlap(self):
        assert not ranges_overlap((time(18, 0), time(20, 0)), (time(20, 0), time(22, 0)))

    def test_overnight_range_overlaps_late_evening(self):
        assert ranges_overlap((time(22, 0), time(1, 30)), (time(23, 0), time(23, 30)))

    def test_early_morning_is_not_the_previous_night(self):
        assert not ranges_overlap((time(22, 0), time(1, 30)), (time(0, 30), time(2, 0)))
