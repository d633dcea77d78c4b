"""Payroll office services."""

from payroll_office.services.attachment_guard import AttachmentGuard
from payroll_office.services.filters import EntryFilter, PeriodFilter, RecordFilter
from payroll_office.services.locks import KeyedLock
from payroll_office.services.payroll_service import BatchResult, PayrollComputationEngine
from payroll_office.services.period_lifecycle import PeriodLifecycle, PeriodProposal
from payroll_office.services.period_store import PeriodStore
from payroll_office.services.record_store import RecordStore
from payroll_office.services.state_machine import (
    PaymentStateMachine,
    PaymentStatus,
    PeriodStateMachine,
    PeriodStatus,
)
from payroll_office.services.subledger_service import SubLedgerService
from payroll_office.services.subledger_store import SubLedgerStore
from payroll_office.services.totals import PeriodTotalsAggregator

__all__ = [
    "AttachmentGuard",
    "BatchResult",
    "EntryFilter",
    "KeyedLock",
    "PaymentStateMachine",
    "PaymentStatus",
    "PayrollComputationEngine",
    "PeriodFilter",
    "PeriodLifecycle",
    "PeriodProposal",
    "PeriodStateMachine",
    "PeriodStatus",
    "PeriodStore",
    "PeriodTotalsAggregator",
    "RecordFilter",
    "RecordStore",
    "SubLedgerService",
    "SubLedgerStore",
]
