"""Integration tests for period totals roll-up."""

from decimal import Decimal
from uuid import uuid4

from payroll_office.models import PayrollRecord
from payroll_office.services.totals import PeriodTotals


class TestPeriodTotals:
    def test_of_counts_distinct_employees(self):
        employee_id = uuid4()
        records = [
            PayrollRecord(
                employee_id=employee_id,
                gross_pay=Decimal("100.00"),
                deductions_total=Decimal("10.00"),
                net_pay=Decimal("90.00"),
            ),
            PayrollRecord(
                employee_id=uuid4(),
                gross_pay=Decimal("50.50"),
                deductions_total=Decimal("0.50"),
                net_pay=Decimal("50.00"),
            ),
        ]

        totals = PeriodTotals.of(records)

        assert totals.total_employees == 2
        assert totals.total_gross_pay == Decimal("150.50")
        assert totals.total_deductions == Decimal("10.50")
        assert totals.total_net_pay == Decimal("140.00")

    def test_of_empty(self):
        totals = PeriodTotals.of([])

        assert totals.total_employees == 0
        assert totals.total_net_pay == Decimal("0.00")


class TestPeriodTotalsAggregator:
    """Totals always equal the sums over the period's records."""

    async def test_compute_updates_totals(
        self, office, seed, employee, second_employee, period
    ):
        await seed.attendance(employee.id, range(1, 11))
        await seed.deduction(employee.id, "sss", "200.00", period.start_date)
        await seed.attendance(second_employee.id, range(1, 3))

        await office.compute_payroll(employee.id, period.id)
        await office.compute_payroll(second_employee.id, period.id)

        assert period.total_employees == 2
        assert period.total_gross_pay == Decimal("6200.00")
        assert period.total_deductions == Decimal("200.00")
        assert period.total_net_pay == Decimal("6000.00")

    async def test_recompute_replaces_contribution(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        await office.compute_payroll(employee.id, period.id)
        await seed.attendance(employee.id, range(3, 4))

        await office.compute_payroll(employee.id, period.id)

        assert period.total_employees == 1
        assert period.total_gross_pay == Decimal("1500.00")

    async def test_cancelled_records_still_count(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        record = await office.compute_payroll(employee.id, period.id)

        await office.cancel_record(record.id)

        assert period.total_employees == 1
        assert period.total_net_pay == Decimal("1000.00")

    async def test_delete_removes_contribution(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        record = await office.compute_payroll(employee.id, period.id)

        await office.delete_record(record.id)

        assert period.total_employees == 0
        assert period.total_gross_pay == Decimal("0.00")
        assert period.total_net_pay == Decimal("0.00")

    async def test_refresh_is_idempotent(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        await office.compute_payroll(employee.id, period.id)

        first = (await office.refresh_period_totals(period.id)).snapshot()
        second = (await office.refresh_period_totals(period.id)).snapshot()

        for name in ("total_employees", "total_gross_pay", "total_deductions", "total_net_pay"):
            assert first[name] == second[name]

    async def test_totals_match_record_sums(
        self, office, seed, employee, second_employee, period
    ):
        await seed.attendance(employee.id, range(1, 4), status="half-day")
        await seed.attendance(second_employee.id, range(1, 6))
        await seed.deduction(second_employee.id, "tax", "123.45", period.start_date)
        await office.compute_batch(period.id)

        records = await office.list_records()

        assert period.total_gross_pay == sum(r.gross_pay for r in records)
        assert period.total_deductions == sum(r.deductions_total for r in records)
        assert period.total_net_pay == sum(r.net_pay for r in records)
        assert period.total_employees == len({r.employee_id for r in records})
