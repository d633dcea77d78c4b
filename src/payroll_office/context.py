"""Application context wiring the payroll office services for one session."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_office.audit import AuditSink, AuditTrailEmitter, SessionAuditSink
from payroll_office.calculators.rate_resolver import (
    BasicPayPolicy,
    EmployeeRateProvider,
    RateProvider,
)
from payroll_office.calculators.types import PaymentInfo, SupplementalEarnings
from payroll_office.clock import Clock, SystemClock
from payroll_office.database import unit_of_work
from payroll_office.models import (
    AttendanceEntry,
    DeductionEntry,
    OvertimeEntry,
    PayrollPeriod,
    PayrollRecord,
)
from payroll_office.services import (
    AttachmentGuard,
    BatchResult,
    EntryFilter,
    KeyedLock,
    PayrollComputationEngine,
    PeriodFilter,
    PeriodLifecycle,
    PeriodProposal,
    PeriodStore,
    PeriodTotalsAggregator,
    RecordFilter,
    RecordStore,
    SubLedgerService,
    SubLedgerStore,
)


class PayrollOffice:
    """Library surface of the payroll office core.

    Collaborators are injected; nothing is a module-level singleton. One
    instance serves one session, and the caller owns the transaction
    (see ``PayrollOffice.transaction``).
    """

    def __init__(
        self,
        session: AsyncSession,
        rates: RateProvider | None = None,
        audit_sink: AuditSink | None = None,
        clock: Clock | None = None,
        locks: KeyedLock | None = None,
        actor: str = "system",
        basic_pay_policy: BasicPayPolicy | None = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.audit = AuditTrailEmitter(
            audit_sink or SessionAuditSink(session), clock=self.clock, actor=actor
        )
        self.rates = rates or EmployeeRateProvider(session)

        self.period_store = PeriodStore(session)
        self.record_store = RecordStore(session)
        self.ledger_store = SubLedgerStore(session)

        self.lifecycle = PeriodLifecycle(
            self.period_store, self.record_store, self.audit, self.clock
        )
        self.guard = AttachmentGuard(self.period_store)
        self.totals = PeriodTotalsAggregator(self.period_store, self.record_store)
        self.engine = PayrollComputationEngine(
            periods=self.period_store,
            records=self.record_store,
            ledger=self.ledger_store,
            guard=self.guard,
            totals=self.totals,
            rates=self.rates,
            audit=self.audit,
            clock=self.clock,
            basic_pay_policy=basic_pay_policy,
            locks=locks,
        )
        self.subledger = SubLedgerService(
            self.ledger_store, self.guard, self.rates, self.audit, self.clock
        )

    @classmethod
    @asynccontextmanager
    async def transaction(
        cls,
        factory: async_sessionmaker[AsyncSession],
        **kwargs: Any,
    ) -> AsyncIterator[PayrollOffice]:
        """Context bound to a fresh session; commits on success, rolls back on error.

        Computation keys taken inside the block stay held until it commits or
        rolls back. Pass the same ``locks`` registry to every concurrent
        context; contexts built without one do not exclude each other in-process.
        """
        async with unit_of_work(factory) as session:
            yield cls(session, **kwargs)

    # ===== Periods =====

    async def create_period(self, data: Mapping[str, Any]) -> PayrollPeriod:
        return await self.lifecycle.create(data)

    async def update_period(self, period_id: UUID, data: Mapping[str, Any]) -> PayrollPeriod:
        return await self.lifecycle.update(period_id, data)

    async def delete_period(self, period_id: UUID) -> None:
        await self.lifecycle.delete(period_id)

    async def start_processing(self, period_id: UUID) -> PayrollPeriod:
        return await self.lifecycle.start_processing(period_id)

    async def reopen_period(self, period_id: UUID) -> PayrollPeriod:
        return await self.lifecycle.reopen(period_id)

    async def lock_period(self, period_id: UUID) -> PayrollPeriod:
        return await self.lifecycle.lock(period_id)

    async def unlock_period(self, period_id: UUID) -> PayrollPeriod:
        return await self.lifecycle.unlock(period_id)

    async def close_period(self, period_id: UUID) -> PayrollPeriod:
        return await self.lifecycle.close(period_id)

    async def get_period(self, period_id: UUID) -> PayrollPeriod:
        return await self.lifecycle.get(period_id)

    async def list_periods(self, filters: PeriodFilter | None = None) -> list[PayrollPeriod]:
        return await self.lifecycle.list(filters)

    async def get_current_period(self, today: date | None = None) -> PayrollPeriod | None:
        return await self.lifecycle.get_current_period(today)

    async def suggest_next_period(self, period_type: str = "semi-monthly") -> PeriodProposal:
        return await self.lifecycle.suggest_next_period(period_type)

    async def period_summary(self) -> dict[str, Any]:
        return await self.lifecycle.summary()

    async def refresh_period_totals(self, period_id: UUID) -> PayrollPeriod:
        return await self.totals.refresh(period_id)

    # ===== Records =====

    async def compute_payroll(
        self,
        employee_id: UUID,
        period_id: UUID,
        earnings: SupplementalEarnings | None = None,
    ) -> PayrollRecord:
        return await self.engine.compute(employee_id, period_id, earnings)

    async def compute_batch(
        self,
        period_id: UUID,
        earnings: dict[UUID, SupplementalEarnings] | None = None,
    ) -> BatchResult:
        return await self.engine.compute_batch(period_id, earnings)

    async def mark_as_paid(
        self, record_id: UUID, info: PaymentInfo | None = None
    ) -> PayrollRecord:
        return await self.engine.mark_as_paid(record_id, info)

    async def record_partial_payment(
        self, record_id: UUID, info: PaymentInfo | None = None
    ) -> PayrollRecord:
        return await self.engine.record_partial_payment(record_id, info)

    async def cancel_record(self, record_id: UUID) -> PayrollRecord:
        return await self.engine.cancel(record_id)

    async def delete_record(self, record_id: UUID) -> None:
        await self.engine.delete(record_id)

    async def get_record(self, record_id: UUID) -> PayrollRecord:
        return await self.engine.get(record_id)

    async def list_records(self, filters: RecordFilter | None = None) -> list[PayrollRecord]:
        return await self.engine.list(filters)

    async def update_record_remarks(self, record_id: UUID, remarks: str | None) -> PayrollRecord:
        return await self.engine.update_remarks(record_id, remarks)

    async def update_payment_details(
        self,
        record_id: UUID,
        method: str | None = None,
        reference: str | None = None,
    ) -> PayrollRecord:
        return await self.engine.update_payment_details(record_id, method, reference)

    async def record_summary(self, filters: RecordFilter | None = None) -> dict[str, Any]:
        return await self.engine.summary(filters)

    # ===== Sub-ledger =====

    async def create_attendance(self, data: Mapping[str, Any]) -> AttendanceEntry:
        return await self.subledger.create_attendance(data)

    async def update_attendance(
        self, entry_id: UUID, data: Mapping[str, Any]
    ) -> AttendanceEntry:
        return await self.subledger.update_attendance(entry_id, data)

    async def delete_attendance(self, entry_id: UUID) -> None:
        await self.subledger.delete_attendance(entry_id)

    async def create_overtime(self, data: Mapping[str, Any]) -> OvertimeEntry:
        return await self.subledger.create_overtime(data)

    async def update_overtime(self, entry_id: UUID, data: Mapping[str, Any]) -> OvertimeEntry:
        return await self.subledger.update_overtime(entry_id, data)

    async def approve_overtime(self, entry_id: UUID, approved_by: str) -> OvertimeEntry:
        return await self.subledger.approve_overtime(entry_id, approved_by)

    async def reject_overtime(
        self, entry_id: UUID, approved_by: str | None = None
    ) -> OvertimeEntry:
        return await self.subledger.reject_overtime(entry_id, approved_by)

    async def delete_overtime(self, entry_id: UUID) -> None:
        await self.subledger.delete_overtime(entry_id)

    async def create_deduction(self, data: Mapping[str, Any]) -> DeductionEntry:
        return await self.subledger.create_deduction(data)

    async def update_deduction(
        self, entry_id: UUID, data: Mapping[str, Any]
    ) -> DeductionEntry:
        return await self.subledger.update_deduction(entry_id, data)

    async def delete_deduction(self, entry_id: UUID) -> None:
        await self.subledger.delete_deduction(entry_id)

    async def get_entry(self, model: type, entry_id: UUID) -> Any:
        return await self.subledger.get(model, entry_id)

    async def list_entries(self, model: type, filters: EntryFilter | None = None) -> list[Any]:
        return await self.subledger.list(model, filters)
