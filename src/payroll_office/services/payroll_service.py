"""Payroll computation engine - derives and maintains payroll records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from payroll_office.audit import AuditAction, AuditTrailEmitter
from payroll_office.calculators.aggregation import (
    apply_negative_net_remark,
    build_figures,
    is_overtime_eligible,
    tally_attendance,
    to_money,
)
from payroll_office.calculators.rate_resolver import (
    BasicPayPolicy,
    DailyRateBasicPay,
    RateProvider,
)
from payroll_office.calculators.types import PaymentInfo, SupplementalEarnings
from payroll_office.clock import Clock, SystemClock
from payroll_office.database import acquire_compute_lock
from payroll_office.exceptions import (
    AlreadyPaidError,
    ConflictError,
    ImmutableStateError,
    PayrollError,
    PeriodLockedError,
    ValidationError,
)
from payroll_office.models import (
    AttendanceEntry,
    DeductionEntry,
    Employee,
    OvertimeEntry,
    PayrollPeriod,
    PayrollRecord,
)
from payroll_office.services.attachment_guard import AttachmentGuard
from payroll_office.services.filters import RecordFilter
from payroll_office.services.locks import KeyedLock
from payroll_office.services.period_store import PeriodStore
from payroll_office.services.record_store import RecordStore
from payroll_office.services.state_machine import (
    PaymentStateMachine,
    PaymentStatus,
    PeriodStateMachine,
)
from payroll_office.services.subledger_store import SubLedgerStore
from payroll_office.services.totals import PeriodTotalsAggregator

logger = logging.getLogger(__name__)

ENTITY = "PayrollRecord"


@dataclass
class BatchResult:
    """Outcome of computing every active employee in a period."""

    period_id: UUID
    computed: list[PayrollRecord] = field(default_factory=list)
    failures: dict[UUID, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.computed)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


def compute_key(employee_id: UUID, period_id: UUID) -> str:
    return f"payroll:{employee_id}:{period_id}"


class PayrollComputationEngine:
    """Sole writer of payroll record figures and of sub-ledger attachment.

    compute() algorithm:
    1. Resolve the period; locked or closed periods never recompute
    2. Resolve the prior record; paid or cancelled records are final
    3. Gather unattached entries dated inside the period plus the prior
       record's own attachments
    4. Tally attendance, sum approved overtime, group deductions
    5. Basic pay from the rate provider and basic pay policy
    6. gross = basic + overtime + holiday + night diff + allowance + bonus,
       net = gross - deductions (a negative net is flagged in remarks)
    7. Upsert the record and attach every consumed entry
    8. Refresh period totals and emit an audit event

    Every check runs before the first write, and the caller's transaction
    rolls back anything applied if a later step fails.
    """

    def __init__(
        self,
        periods: PeriodStore,
        records: RecordStore,
        ledger: SubLedgerStore,
        guard: AttachmentGuard,
        totals: PeriodTotalsAggregator,
        rates: RateProvider,
        audit: AuditTrailEmitter,
        clock: Clock | None = None,
        basic_pay_policy: BasicPayPolicy | None = None,
        locks: KeyedLock | None = None,
    ):
        self.periods = periods
        self.records = records
        self.ledger = ledger
        self.guard = guard
        self.totals = totals
        self.rates = rates
        self.audit = audit
        self.clock = clock or SystemClock()
        self.basic_pay_policy = basic_pay_policy or DailyRateBasicPay()
        self.locks = locks or KeyedLock()

    @property
    def session(self):
        return self.records.session

    # ===== Computation =====

    async def compute(
        self,
        employee_id: UUID,
        period_id: UUID,
        earnings: SupplementalEarnings | None = None,
    ) -> PayrollRecord:
        """Compute or recompute the payroll record for (employee, period).

        Raises:
            NotFoundError: Missing employee or period
            PeriodLockedError: Period is locked or closed
            AlreadyPaidError: Prior record is paid
            ImmutableStateError: Prior record is cancelled
            ValidationError: Negative earnings or invalid rates
            ConflictError: Same key is being computed concurrently
        """
        key = compute_key(employee_id, period_id)
        self.locks.hold_for_transaction(key, self.session)
        if not await acquire_compute_lock(self.session, key):
            raise ConflictError(
                f"Computation already in progress for employee {employee_id} "
                f"in period {period_id}"
            )
        return await self._compute(employee_id, period_id, earnings)

    async def _compute(
        self,
        employee_id: UUID,
        period_id: UUID,
        earnings: SupplementalEarnings | None,
    ) -> PayrollRecord:
        # Validate everything first
        period = await self.periods.require(period_id)
        self._ensure_period_computable(period)

        rates = await self.rates.get_rate_config(employee_id)

        prior = await self.records.get_for(employee_id, period_id)
        if prior is not None:
            self._ensure_recomputable(prior)

        if earnings is None:
            earnings = (
                SupplementalEarnings.from_record(prior) if prior else SupplementalEarnings()
            )
        violations = earnings.violations()
        if violations:
            raise ValidationError(violations)

        prior_id = prior.id if prior else None
        attendance = await self.ledger.find_eligible(
            AttendanceEntry, employee_id, period.start_date, period.end_date, prior_id
        )
        overtime = [
            entry
            for entry in await self.ledger.find_eligible(
                OvertimeEntry, employee_id, period.start_date, period.end_date, prior_id
            )
            if is_overtime_eligible(entry)
        ]
        deductions = await self.ledger.find_eligible(
            DeductionEntry, employee_id, period.start_date, period.end_date, prior_id
        )

        counters = tally_attendance(attendance)
        basic_pay = self.basic_pay_policy.basic_pay(rates, counters)
        if basic_pay < 0:
            raise ValidationError("basic_pay must be non-negative")
        figures = build_figures(counters, basic_pay, overtime, deductions, earnings)

        # Apply
        before = prior.snapshot() if prior else None
        if prior is None:
            record = PayrollRecord(
                employee_id=employee_id,
                period_id=period_id,
                payment_status=PaymentStatus.UNPAID.value,
                **figures.record_fields(),
            )
            record.remarks = apply_negative_net_remark(None, figures.is_negative_net)
            record.computed_at = self.clock.now()
            try:
                await self.records.add(record)
            except IntegrityError as exc:
                raise ConflictError(
                    f"Payroll record for employee {employee_id} in period {period_id} "
                    "was created concurrently"
                ) from exc
        else:
            record = prior
            for name, value in figures.record_fields().items():
                setattr(record, name, value)
            record.remarks = apply_negative_net_remark(record.remarks, figures.is_negative_net)
            record.computed_at = self.clock.now()

        included = [*attendance, *overtime, *deductions]
        if prior is not None:
            included_ids = {(e.ENTITY, e.id) for e in included}
            for entry in await self.ledger.attached_to(prior.id):
                if (entry.ENTITY, entry.id) not in included_ids:
                    self.guard.detach(entry)
        for entry in included:
            await self.guard.attach(entry, record, period)
        await self.records.save(record)

        await self.totals.refresh(period_id)

        action = AuditAction.CREATE if before is None else AuditAction.UPDATE
        await self.audit.emit(ENTITY, record.id, action, before, record.snapshot())

        if figures.is_negative_net:
            logger.warning(
                "Negative net pay %s for employee %s in period %s",
                figures.net_pay,
                employee_id,
                period_id,
            )
        logger.info(
            "Computed payroll record %s for employee %s in period %s: gross=%s net=%s",
            record.id,
            employee_id,
            period_id,
            record.gross_pay,
            record.net_pay,
        )
        return record

    async def compute_batch(
        self,
        period_id: UUID,
        earnings: dict[UUID, SupplementalEarnings] | None = None,
    ) -> BatchResult:
        """Compute every active employee, collecting per-employee failures.

        A per-employee failure is raised before that employee's first
        write, so other employees' results are unaffected.
        """
        period = await self.periods.require(period_id)
        self._ensure_period_computable(period)
        earnings = earnings or {}

        result = await self.session.execute(
            select(Employee.id)
            .where(Employee.status == "active")
            .order_by(Employee.employee_number)
        )
        batch = BatchResult(period_id=period_id)
        for employee_id in result.scalars().all():
            try:
                record = await self.compute(employee_id, period_id, earnings.get(employee_id))
            except PayrollError as exc:
                logger.warning("Batch compute failed for employee %s: %s", employee_id, exc)
                batch.failures[employee_id] = str(exc)
            else:
                batch.computed.append(record)

        logger.info(
            "Batch computed period %s: %d succeeded, %d failed",
            period_id,
            batch.success_count,
            batch.failure_count,
        )
        return batch

    # ===== Payment status =====

    async def mark_as_paid(
        self, record_id: UUID, info: PaymentInfo | None = None
    ) -> PayrollRecord:
        """unpaid | partially-paid → paid. Allowed in locked and closed periods."""
        info = info or PaymentInfo()
        record = await self.records.require(record_id)
        if record.payment_status == PaymentStatus.PAID:
            raise AlreadyPaidError(record.id)
        PaymentStateMachine.validate_transition(record.payment_status, PaymentStatus.PAID)

        before = record.snapshot()
        record.payment_status = PaymentStatus.PAID.value
        record.paid_at = info.paid_at or self.clock.now()
        if info.method is not None:
            record.payment_method = info.method
        if info.reference is not None:
            record.payment_reference = info.reference
        return await self._save_payment_change(record, before, "marked paid")

    async def record_partial_payment(
        self, record_id: UUID, info: PaymentInfo | None = None
    ) -> PayrollRecord:
        """unpaid → partially-paid; repeat calls update the payment details."""
        info = info or PaymentInfo()
        record = await self.records.require(record_id)
        if record.payment_status == PaymentStatus.PAID:
            raise AlreadyPaidError(record.id)
        if record.payment_status != PaymentStatus.PARTIALLY_PAID:
            PaymentStateMachine.validate_transition(
                record.payment_status, PaymentStatus.PARTIALLY_PAID
            )

        before = record.snapshot()
        record.payment_status = PaymentStatus.PARTIALLY_PAID.value
        record.paid_at = info.paid_at or self.clock.now()
        if info.method is not None:
            record.payment_method = info.method
        if info.reference is not None:
            record.payment_reference = info.reference
        return await self._save_payment_change(record, before, "partially paid")

    async def cancel(self, record_id: UUID) -> PayrollRecord:
        """Cancel an unpaid or partially paid record. Entries stay attached."""
        record = await self.records.require(record_id)
        if record.payment_status == PaymentStatus.PAID:
            raise AlreadyPaidError(record.id, f"Cannot cancel paid payroll record {record.id}")
        PaymentStateMachine.validate_transition(record.payment_status, PaymentStatus.CANCELLED)

        before = record.snapshot()
        record.payment_status = PaymentStatus.CANCELLED.value
        return await self._save_payment_change(record, before, "cancelled")

    async def update_payment_details(
        self,
        record_id: UUID,
        method: str | None = None,
        reference: str | None = None,
    ) -> PayrollRecord:
        """Administrative payment fields; allowed in every state."""
        record = await self.records.require(record_id)
        before = record.snapshot()
        if method is not None:
            record.payment_method = method
        if reference is not None:
            record.payment_reference = reference
        await self.records.save(record)
        await self.audit.emit(ENTITY, record.id, AuditAction.UPDATE, before, record.snapshot())
        logger.info("Payment details updated for payroll record %s", record.id)
        return record

    async def update_remarks(self, record_id: UUID, remarks: str | None) -> PayrollRecord:
        """Remarks stay editable in every state, including paid."""
        record = await self.records.require(record_id)
        before = record.snapshot()
        record.remarks = remarks
        await self.records.save(record)
        await self.audit.emit(ENTITY, record.id, AuditAction.UPDATE, before, record.snapshot())
        logger.info("Remarks updated for payroll record %s", record.id)
        return record

    async def delete(self, record_id: UUID) -> None:
        """Delete an unpaid record of an editable period, detaching its entries.

        Raises:
            AlreadyPaidError: Record is paid
            ImmutableStateError: Record is partially paid or cancelled
            PeriodLockedError: Period is locked or closed
        """
        record = await self.records.require(record_id)
        if record.payment_status == PaymentStatus.PAID:
            raise AlreadyPaidError(record.id, f"Cannot delete paid payroll record {record.id}")
        if not PaymentStateMachine.can_delete(record.payment_status):
            raise ImmutableStateError(
                f"Cannot delete payroll record {record.id} with status {record.payment_status}",
                ImmutableStateError.RECORD_NOT_UNPAID,
            )
        period = await self.periods.require(record.period_id)
        self._ensure_period_computable(period)

        before = record.snapshot()
        for entry in await self.ledger.attached_to(record.id):
            self.guard.detach(entry)
        await self.records.delete(record)
        await self.totals.refresh(period.id)

        await self.audit.emit(ENTITY, record_id, AuditAction.DELETE, before, None)
        logger.info("Payroll record deleted: %s", record_id)

    # ===== Queries =====

    async def get(self, record_id: UUID) -> PayrollRecord:
        return await self.records.require(record_id)

    async def list(self, filters: RecordFilter | None = None) -> list[PayrollRecord]:
        return await self.records.list(filters)

    async def summary(self, filters: RecordFilter | None = None) -> dict[str, Any]:
        """Record count, payment status counts and monetary totals."""
        filters = filters or RecordFilter()
        records = await self.records.list(
            RecordFilter(
                period_id=filters.period_id,
                employee_id=filters.employee_id,
                payment_status=filters.payment_status,
            )
        )
        by_status = {status.value: 0 for status in PaymentStatus}
        for record in records:
            by_status[record.payment_status] = by_status.get(record.payment_status, 0) + 1
        return {
            "total_records": len(records),
            "by_payment_status": by_status,
            "total_gross_pay": to_money(sum((r.gross_pay for r in records), Decimal("0"))),
            "total_deductions": to_money(
                sum((r.deductions_total for r in records), Decimal("0"))
            ),
            "total_net_pay": to_money(sum((r.net_pay for r in records), Decimal("0"))),
        }

    # ===== Helpers =====

    @staticmethod
    def _ensure_period_computable(period: PayrollPeriod) -> None:
        if not PeriodStateMachine.can_compute(period.status):
            logger.warning("Rejected computation in %s period %s", period.status, period.id)
            raise PeriodLockedError(period.id, period.status)

    @staticmethod
    def _ensure_recomputable(record: PayrollRecord) -> None:
        if record.payment_status == PaymentStatus.PAID:
            raise AlreadyPaidError(record.id)
        if not PaymentStateMachine.can_recompute(record.payment_status):
            raise ImmutableStateError(
                f"Payroll record {record.id} is {record.payment_status} and cannot be recomputed",
                ImmutableStateError.RECORD_CANCELLED,
            )

    async def _save_payment_change(
        self, record: PayrollRecord, before: dict[str, Any], what: str
    ) -> PayrollRecord:
        await self.records.save(record)
        await self.totals.refresh(record.period_id)
        await self.audit.emit(ENTITY, record.id, AuditAction.UPDATE, before, record.snapshot())
        logger.info("Payroll record %s %s", record.id, what)
        return record
