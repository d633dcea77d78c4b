"""Roll payroll record figures up into period totals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from payroll_office.calculators.aggregation import to_money
from payroll_office.models import PayrollPeriod, PayrollRecord
from payroll_office.services.period_store import PeriodStore
from payroll_office.services.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodTotals:
    total_employees: int
    total_gross_pay: Decimal
    total_deductions: Decimal
    total_net_pay: Decimal

    @classmethod
    def of(cls, records: list[PayrollRecord]) -> PeriodTotals:
        return cls(
            total_employees=len({r.employee_id for r in records}),
            total_gross_pay=to_money(sum((r.gross_pay for r in records), Decimal("0"))),
            total_deductions=to_money(sum((r.deductions_total for r in records), Decimal("0"))),
            total_net_pay=to_money(sum((r.net_pay for r in records), Decimal("0"))),
        )


class PeriodTotalsAggregator:
    """Sole writer of a period's rolled-up totals.

    Cancelled records are counted: cancellation is a payment state, not a
    deletion. Refreshing is idempotent.
    """

    def __init__(self, periods: PeriodStore, records: RecordStore):
        self.periods = periods
        self.records = records

    async def refresh(self, period_id: UUID) -> PayrollPeriod:
        period = await self.periods.require(period_id)
        totals = PeriodTotals.of(await self.records.list_for_period(period_id))

        period.total_employees = totals.total_employees
        period.total_gross_pay = totals.total_gross_pay
        period.total_deductions = totals.total_deductions
        period.total_net_pay = totals.total_net_pay
        await self.periods.save(period)

        logger.debug(
            "Refreshed totals for period %s: %d employees, net %s",
            period_id,
            totals.total_employees,
            totals.total_net_pay,
        )
        return period
