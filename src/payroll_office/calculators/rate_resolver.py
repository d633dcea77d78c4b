"""Employee rate lookup and basic pay policy."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_office.calculators.aggregation import to_money
from payroll_office.calculators.types import AttendanceCounters, RateConfig
from payroll_office.exceptions import NotFoundError, ValidationError
from payroll_office.models import Employee

logger = logging.getLogger(__name__)

HALF = Decimal("0.5")


class RateProvider(Protocol):
    """Collaborator returning an employee's rate configuration."""

    async def get_rate_config(self, employee_id: UUID) -> RateConfig: ...


class BasicPayPolicy(Protocol):
    """Collaborator turning a rate config and attendance into basic pay."""

    def basic_pay(self, rates: RateConfig, counters: AttendanceCounters) -> Decimal: ...


class EmployeeRateProvider:
    """Reads rates from the employee table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_rate_config(self, employee_id: UUID) -> RateConfig:
        """Resolve the rate configuration for an employee.

        Raises:
            NotFoundError: If the employee does not exist
        """
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return RateConfig(
            daily_rate=employee.daily_rate,
            hourly_rate=employee.hourly_rate,
            overtime_multiplier=employee.overtime_rate,
        )


class DailyRateBasicPay:
    """daily_rate x (present + half x half-day). Late days are already present days."""

    def basic_pay(self, rates: RateConfig, counters: AttendanceCounters) -> Decimal:
        violations = rates.violations()
        if violations:
            raise ValidationError(violations)
        if rates.daily_rate == 0:
            logger.warning("Daily rate is zero; basic pay will be zero")

        days = Decimal(counters.days_present) + HALF * counters.days_half_day
        return to_money(rates.daily_rate * days)
