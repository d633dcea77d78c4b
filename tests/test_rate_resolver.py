"""Tests for employee rate lookup and the daily-rate basic pay policy."""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_office.calculators.rate_resolver import DailyRateBasicPay, EmployeeRateProvider
from payroll_office.calculators.types import AttendanceCounters, RateConfig
from payroll_office.exceptions import NotFoundError, ValidationError


def rates(daily: str = "500.00", hourly: str = "62.50", multiplier: str = "1.25") -> RateConfig:
    return RateConfig(
        daily_rate=Decimal(daily),
        hourly_rate=Decimal(hourly),
        overtime_multiplier=Decimal(multiplier),
    )


class TestDailyRateBasicPay:
    """Test basic pay from daily rate and attendance counters."""

    def test_present_days(self):
        pay = DailyRateBasicPay().basic_pay(rates(), AttendanceCounters(days_present=10))

        assert pay == Decimal("5000.00")

    def test_late_days_are_paid_once(self):
        # Late days are already counted as present
        pay = DailyRateBasicPay().basic_pay(
            rates(), AttendanceCounters(days_present=10, days_late=2)
        )

        assert pay == Decimal("5000.00")

    def test_half_days_are_paid_half(self):
        pay = DailyRateBasicPay().basic_pay(
            rates(), AttendanceCounters(days_present=1, days_half_day=3)
        )

        assert pay == Decimal("1250.00")

    def test_absent_days_are_unpaid(self):
        pay = DailyRateBasicPay().basic_pay(rates(), AttendanceCounters(days_absent=5))

        assert pay == Decimal("0.00")

    def test_zero_rate_warns(self, caplog):
        pay = DailyRateBasicPay().basic_pay(
            rates(daily="0"), AttendanceCounters(days_present=3)
        )

        assert pay == Decimal("0.00")
        assert "Daily rate is zero" in caplog.text

    def test_negative_rate_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            DailyRateBasicPay().basic_pay(
                rates(daily="-1", multiplier="0.5"), AttendanceCounters(days_present=1)
            )

        assert exc_info.value.violations == [
            "daily_rate must be non-negative",
            "overtime_multiplier must be at least 1",
        ]


class TestEmployeeRateProvider:
    """Test rate lookup from the employee table."""

    async def test_reads_employee_rates(self, session, employee):
        config = await EmployeeRateProvider(session).get_rate_config(employee.id)

        assert config == RateConfig(
            daily_rate=Decimal("500.00"),
            hourly_rate=Decimal("100.00"),
            overtime_multiplier=Decimal("1.25"),
        )

    async def test_unknown_employee(self, session):
        missing = uuid4()

        with pytest.raises(NotFoundError) as exc_info:
            await EmployeeRateProvider(session).get_rate_config(missing)

        assert exc_info.value.entity == "Employee"
        assert exc_info.value.entity_id == missing
