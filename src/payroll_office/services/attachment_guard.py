"""Attachment protocol between sub-ledger entries and payroll records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from payroll_office.exceptions import (
    AlreadyAttachedError,
    ImmutableStateError,
    PeriodLockedError,
    ValidationError,
)
from payroll_office.services.state_machine import PeriodStateMachine

if TYPE_CHECKING:
    from payroll_office.models import PayrollPeriod, PayrollRecord
    from payroll_office.models.ledger import SubLedgerMixin
    from payroll_office.services.period_store import PeriodStore

logger = logging.getLogger(__name__)


class AttachmentGuard:
    """Mediates every mutation of sub-ledger entries.

    An entry whose payroll_record_id is set has been consumed by a payroll
    computation and is frozen: it can be neither edited nor deleted until
    the engine detaches it by deleting or recomputing the record.

    Attachment itself is a mutation gated by period state. Open and
    processing periods accept it; locked and closed periods do not.
    """

    def __init__(self, periods: PeriodStore):
        self.periods = periods

    @staticmethod
    def can_mutate(entry: SubLedgerMixin) -> bool:
        return entry.payroll_record_id is None

    def ensure_mutable(self, entry: SubLedgerMixin) -> None:
        """Raise ImmutableStateError if the entry is attached to a record."""
        if not self.can_mutate(entry):
            logger.warning(
                "Rejected mutation of %s %s attached to record %s",
                entry.ENTITY,
                entry.id,
                entry.payroll_record_id,
            )
            raise ImmutableStateError(
                f"{entry.ENTITY} {entry.id} is already processed in payroll",
                ImmutableStateError.ALREADY_PROCESSED,
            )

    @staticmethod
    def ensure_period_attachable(period: PayrollPeriod) -> None:
        if not PeriodStateMachine.can_compute(period.status):
            raise PeriodLockedError(period.id, period.status)

    async def attach(
        self,
        entry: SubLedgerMixin,
        record: PayrollRecord,
        period: PayrollPeriod | None = None,
    ) -> None:
        """Point an entry at the record that consumed it.

        Raises:
            AlreadyAttachedError: If attached to a different record
            PeriodLockedError: If the record's period is locked or closed
            ValidationError: If the entry belongs to another employee
        """
        if entry.payroll_record_id is not None and entry.payroll_record_id != record.id:
            raise AlreadyAttachedError(entry.ENTITY, entry.id, entry.payroll_record_id)
        if entry.employee_id != record.employee_id:
            raise ValidationError(
                f"{entry.ENTITY} {entry.id} belongs to a different employee"
            )
        if period is None:
            period = await self.periods.require(record.period_id)
        self.ensure_period_attachable(period)
        entry.payroll_record_id = record.id

    @staticmethod
    def detach(entry: SubLedgerMixin) -> None:
        """Clear the attachment pointer. Called by the computation engine only."""
        entry.payroll_record_id = None
