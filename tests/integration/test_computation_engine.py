"""Integration tests for payroll record computation.

These tests verify:
- Gross, deductions and net follow from the entries inside the period
- Every consumed entry is attached to the computed record
- Recomputing is idempotent and releases entries no longer consumed
- Paid and cancelled records, and locked or closed periods, never recompute
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_office.calculators.aggregation import NEGATIVE_NET_REMARK
from payroll_office.calculators.types import RateConfig, SupplementalEarnings
from payroll_office.context import PayrollOffice
from payroll_office.exceptions import (
    AlreadyPaidError,
    ConflictError,
    ImmutableStateError,
    NotFoundError,
    PeriodLockedError,
    ValidationError,
)
from payroll_office.models import AttendanceEntry, DeductionEntry, OvertimeEntry
from payroll_office.services.payroll_service import compute_key

pytestmark = pytest.mark.asyncio


class TestComputePayroll:
    async def test_reference_scenario(self, office, seed, employee, period):
        """10 present days at 500, 4h approved overtime, 200 SSS."""
        await seed.attendance(employee.id, range(1, 11))
        overtime = await seed.overtime(employee.id, date(2024, 1, 5))
        deduction = await seed.deduction(employee.id, "sss", "200.00", date(2024, 1, 10))

        record = await office.compute_payroll(employee.id, period.id)

        assert record.days_present == 10
        assert record.basic_pay == Decimal("5000.00")
        assert record.overtime_hours == Decimal("4.00")
        assert record.overtime_pay == Decimal("500.00")
        assert record.gross_pay == Decimal("5500.00")
        assert record.sss_deduction == Decimal("200.00")
        assert record.deductions_total == Decimal("200.00")
        assert record.net_pay == Decimal("5300.00")
        assert record.payment_status == "unpaid"
        assert record.remarks is None

        assert overtime.payroll_record_id == record.id
        assert deduction.payroll_record_id == record.id
        attendance = await office.list_entries(AttendanceEntry)
        assert {e.payroll_record_id for e in attendance} == {record.id}

    async def test_computed_at_follows_clock(self, office, employee, period, clock):
        record = await office.compute_payroll(employee.id, period.id)

        assert record.computed_at == clock.now()

    async def test_attendance_statuses(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 5))
        await seed.attendance(employee.id, range(5, 7), status="late")
        await seed.attendance(employee.id, range(8, 10), status="half-day")
        await seed.attendance(employee.id, range(10, 11), status="absent")
        await seed.attendance(employee.id, range(11, 12), status="holiday")

        record = await office.compute_payroll(employee.id, period.id)

        assert record.days_present == 6
        assert record.days_late == 2
        assert record.days_half_day == 2
        assert record.days_absent == 1
        # (6 + 0.5 * 2) * 500
        assert record.basic_pay == Decimal("3500.00")

    async def test_late_days_count_as_present(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(2, 4), status="late")

        record = await office.compute_payroll(employee.id, period.id)

        assert record.days_present == 2
        assert record.days_late == 2
        assert record.basic_pay == Decimal("1000.00")

    async def test_entries_outside_period_are_ignored(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(14, 18))
        outside = await seed.deduction(employee.id, "tax", "99.00", date(2024, 1, 16))

        record = await office.compute_payroll(employee.id, period.id)

        # Jan 14 and 15 fall inside the inclusive range
        assert record.days_present == 2
        assert record.deductions_total == Decimal("0.00")
        assert outside.payroll_record_id is None

    async def test_pending_overtime_is_excluded(self, office, seed, employee, period):
        pending = await seed.overtime(employee.id, date(2024, 1, 5), approve=False)

        record = await office.compute_payroll(employee.id, period.id)

        assert record.overtime_pay == Decimal("0.00")
        assert pending.payroll_record_id is None

        # Approving later makes it count on recompute
        await office.approve_overtime(pending.id, "manager")
        record = await office.compute_payroll(employee.id, period.id)

        assert record.overtime_pay == Decimal("500.00")
        assert pending.payroll_record_id == record.id

    async def test_other_employees_entries_are_ignored(
        self, office, seed, employee, second_employee, period
    ):
        await seed.attendance(second_employee.id, range(1, 4))

        record = await office.compute_payroll(employee.id, period.id)

        assert record.days_present == 0

    async def test_supplemental_earnings(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))

        record = await office.compute_payroll(
            employee.id,
            period.id,
            SupplementalEarnings(
                holiday_pay=Decimal("300"),
                night_diff_pay=Decimal("40.50"),
                allowance=Decimal("200"),
                bonus=Decimal("1000"),
            ),
        )

        assert record.gross_pay == Decimal("2540.50")
        assert record.net_pay == Decimal("2540.50")

    async def test_negative_earnings_rejected(self, office, employee, period):
        with pytest.raises(ValidationError) as exc_info:
            await office.compute_payroll(
                employee.id, period.id, SupplementalEarnings(bonus=Decimal("-1"))
            )

        assert exc_info.value.violations == ["bonus must be non-negative"]
        assert await office.list_records() == []

    async def test_deductions_grouped_by_type(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 11))
        await seed.deduction(employee.id, "philhealth", "150.00", date(2024, 1, 3))
        await seed.deduction(employee.id, "pag-ibig", "100.00", date(2024, 1, 3))
        await seed.deduction(employee.id, "loan", "250.00", date(2024, 1, 4))
        await seed.deduction(employee.id, "loan", "50.00", date(2024, 1, 9))

        record = await office.compute_payroll(employee.id, period.id)

        assert record.philhealth_deduction == Decimal("150.00")
        assert record.pagibig_deduction == Decimal("100.00")
        assert record.loan_deduction == Decimal("300.00")
        assert record.deductions_total == Decimal("550.00")
        assert record.net_pay == Decimal("4450.00")

    async def test_negative_net_is_flagged_not_rejected(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 2))
        await seed.deduction(employee.id, "advance", "800.00", date(2024, 1, 2))

        record = await office.compute_payroll(employee.id, period.id)

        assert record.net_pay == Decimal("-300.00")
        assert record.remarks == NEGATIVE_NET_REMARK

        # Recompute keeps a single note
        record = await office.compute_payroll(employee.id, period.id)
        assert record.remarks == NEGATIVE_NET_REMARK

    async def test_unknown_employee_or_period(self, office, employee, period):
        with pytest.raises(NotFoundError):
            await office.compute_payroll(uuid4(), period.id)
        with pytest.raises(NotFoundError):
            await office.compute_payroll(employee.id, uuid4())

    async def test_audit_create_then_update(self, office, audit_sink, employee, period):
        record = await office.compute_payroll(employee.id, period.id)
        await office.compute_payroll(employee.id, period.id)

        events = audit_sink.for_entity("PayrollRecord", record.id)
        assert [e.action.value for e in events] == ["CREATE", "UPDATE"]
        assert events[1].old_data["net_pay"] == "0.00"


class TestRecompute:
    async def test_recompute_is_idempotent(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 11))
        await seed.overtime(employee.id, date(2024, 1, 5))
        await seed.deduction(employee.id, "sss", "200.00", date(2024, 1, 10))

        first = await office.compute_payroll(employee.id, period.id)
        figures = first.snapshot()
        second = await office.compute_payroll(employee.id, period.id)

        assert second.id == first.id
        for name in ("basic_pay", "gross_pay", "deductions_total", "net_pay", "days_present"):
            assert second.snapshot()[name] == figures[name]
        assert len(await office.list_records()) == 1

    async def test_recompute_picks_up_new_entries(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 6))
        record = await office.compute_payroll(employee.id, period.id)
        assert record.basic_pay == Decimal("2500.00")

        added = await seed.attendance(employee.id, range(8, 10))
        record = await office.compute_payroll(employee.id, period.id)

        assert record.basic_pay == Decimal("3500.00")
        assert all(e.payroll_record_id == record.id for e in added)

    async def test_recompute_reuses_own_attachments(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        late = await seed.attendance(employee.id, range(15, 16))
        record = await office.compute_payroll(employee.id, period.id)
        assert late[0].payroll_record_id == record.id

        # Jan 15 falls outside the shrunk period but stays with its record
        await office.update_period(period.id, {"end_date": "2024-01-14"})
        record = await office.compute_payroll(employee.id, period.id)

        assert record.days_present == 3
        assert late[0].payroll_record_id == record.id

    async def test_recompute_keeps_supplemental_earnings(self, office, employee, period):
        await office.compute_payroll(
            employee.id, period.id, SupplementalEarnings(allowance=Decimal("250"))
        )

        record = await office.compute_payroll(employee.id, period.id)

        assert record.allowance == Decimal("250.00")
        assert record.gross_pay == Decimal("250.00")

    async def test_paid_record_cannot_be_recomputed(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        record = await office.compute_payroll(employee.id, period.id)
        await office.mark_as_paid(record.id)

        with pytest.raises(AlreadyPaidError) as exc_info:
            await office.compute_payroll(employee.id, period.id)

        assert exc_info.value.code == "ALREADY_PAID"
        assert record.net_pay == Decimal("1000.00")

    async def test_partially_paid_record_can_be_recomputed(
        self, office, seed, employee, period
    ):
        await seed.attendance(employee.id, range(1, 3))
        record = await office.compute_payroll(employee.id, period.id)
        await office.record_partial_payment(record.id)
        await seed.attendance(employee.id, range(3, 4))

        record = await office.compute_payroll(employee.id, period.id)

        assert record.payment_status == "partially-paid"
        assert record.basic_pay == Decimal("1500.00")

    async def test_cancelled_record_cannot_be_recomputed(self, office, employee, period):
        record = await office.compute_payroll(employee.id, period.id)
        await office.cancel_record(record.id)

        with pytest.raises(ImmutableStateError) as exc_info:
            await office.compute_payroll(employee.id, period.id)

        assert exc_info.value.reason == ImmutableStateError.RECORD_CANCELLED


class TestPeriodGate:
    async def test_locked_period_blocks_compute(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        await office.lock_period(period.id)

        with pytest.raises(PeriodLockedError) as exc_info:
            await office.compute_payroll(employee.id, period.id)

        assert exc_info.value.status == "locked"
        assert await office.list_records() == []
        entries = await office.list_entries(AttendanceEntry)
        assert all(e.payroll_record_id is None for e in entries)

    async def test_closed_period_blocks_compute(self, office, employee, period):
        await office.close_period(period.id)

        with pytest.raises(PeriodLockedError):
            await office.compute_payroll(employee.id, period.id)

    async def test_processing_period_allows_compute(self, office, seed, employee, period):
        await seed.attendance(employee.id, range(1, 3))
        await office.start_processing(period.id)

        record = await office.compute_payroll(employee.id, period.id)

        assert record.basic_pay == Decimal("1000.00")


class TestRateCollaborators:
    async def test_custom_rate_provider(self, make_office, employee, period):
        office = make_office(
            RateConfig(daily_rate=Decimal("800.00"), hourly_rate=Decimal("100.00"))
        )
        await office.create_attendance(
            {"employee_id": employee.id, "timestamp": "2024-01-02T08:00:00"}
        )

        record = await office.compute_payroll(employee.id, period.id)

        assert record.basic_pay == Decimal("800.00")

    async def test_invalid_rates_rejected_before_any_write(self, make_office, employee, period):
        office = make_office(
            RateConfig(daily_rate=Decimal("-5.00"), hourly_rate=Decimal("10.00"))
        )

        with pytest.raises(ValidationError):
            await office.compute_payroll(employee.id, period.id)

        assert await office.list_records() == []


class TestConcurrency:
    async def test_in_flight_computation_conflicts(
        self, office, compute_locks, employee, period
    ):
        """A second computation of the same pair fails fast."""
        async with compute_locks.hold(compute_key(employee.id, period.id)):
            with pytest.raises(ConflictError, match="already in progress"):
                await office.compute_payroll(employee.id, period.id)

    async def test_other_pairs_are_not_blocked(
        self, office, compute_locks, employee, second_employee, period
    ):
        async with compute_locks.hold(compute_key(second_employee.id, period.id)):
            record = await office.compute_payroll(employee.id, period.id)

        assert record.employee_id == employee.id

    async def test_key_held_until_commit(
        self, office, session, compute_locks, employee, period
    ):
        """A finished computation keeps its key until the transaction ends."""
        key = compute_key(employee.id, period.id)
        await office.compute_payroll(employee.id, period.id)

        assert compute_locks.is_held(key)
        await session.commit()
        assert not compute_locks.is_held(key)

    async def test_other_session_conflicts_until_rollback(
        self, office, session, session_factory, clock, compute_locks, employee, period
    ):
        await office.compute_payroll(employee.id, period.id)

        async with session_factory() as other_session:
            other = PayrollOffice(other_session, clock=clock, locks=compute_locks)
            with pytest.raises(ConflictError, match="already in progress"):
                await other.compute_payroll(employee.id, period.id)

        await session.rollback()
        assert not compute_locks.is_held(compute_key(employee.id, period.id))

    async def test_same_session_recomputes(self, office, employee, period):
        first = await office.compute_payroll(employee.id, period.id)
        second = await office.compute_payroll(employee.id, period.id)

        assert second.id == first.id


class TestBatch:
    async def test_batch_computes_active_employees(
        self, office, seed, session, employee, second_employee, period
    ):
        await seed.attendance(employee.id, range(1, 3))
        await seed.attendance(second_employee.id, range(1, 4))
        second_employee.status = "inactive"
        await session.flush()

        batch = await office.compute_batch(period.id)

        assert batch.success_count == 1
        assert batch.failure_count == 0
        assert batch.computed[0].employee_id == employee.id

    async def test_batch_collects_failures(
        self, office, employee, second_employee, period
    ):
        paid = await office.compute_payroll(employee.id, period.id)
        await office.mark_as_paid(paid.id)

        batch = await office.compute_batch(period.id)

        assert batch.success_count == 1
        assert batch.computed[0].employee_id == second_employee.id
        assert list(batch.failures) == [employee.id]
        assert "already paid" in batch.failures[employee.id]

    async def test_batch_refused_in_locked_period(self, office, employee, period):
        await office.lock_period(period.id)

        with pytest.raises(PeriodLockedError):
            await office.compute_batch(period.id)

    async def test_entries_of_each_kind_attach_to_own_record(
        self, office, seed, employee, second_employee, period
    ):
        await seed.overtime(employee.id, date(2024, 1, 5))
        await seed.deduction(second_employee.id, "tax", "75.00", date(2024, 1, 6))

        batch = await office.compute_batch(period.id)
        by_employee = {r.employee_id: r for r in batch.computed}

        overtime = await office.list_entries(OvertimeEntry)
        deductions = await office.list_entries(DeductionEntry)
        assert overtime[0].payroll_record_id == by_employee[employee.id].id
        assert deductions[0].payroll_record_id == by_employee[second_employee.id].id
