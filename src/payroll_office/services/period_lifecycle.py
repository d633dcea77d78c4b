"""Payroll period lifecycle - validation, overlap detection and status transitions."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from payroll_office.audit import AuditAction, AuditTrailEmitter
from payroll_office.calculators.aggregation import to_money
from payroll_office.clock import Clock, SystemClock
from payroll_office.exceptions import (
    ConflictError,
    ImmutableStateError,
    InvalidTransitionError,
    ValidationError,
)
from payroll_office.models import PayrollPeriod
from payroll_office.models.payroll import PERIOD_TYPES
from payroll_office.services.filters import PeriodFilter
from payroll_office.services.period_store import PeriodStore
from payroll_office.services.record_store import RecordStore
from payroll_office.services.state_machine import PeriodStateMachine, PeriodStatus
from payroll_office.services.validators import generate_period_name, validate_period_data

logger = logging.getLogger(__name__)

ENTITY = "PayrollPeriod"

# Fields owned by transitions and the totals aggregator
PROTECTED_FIELDS = (
    "id",
    "status",
    "locked_at",
    "closed_at",
    "total_employees",
    "total_gross_pay",
    "total_deductions",
    "total_net_pay",
    "created_at",
    "updated_at",
)

EDITABLE_FIELDS = ("name", "period_type", "start_date", "end_date", "pay_date", "working_days")


@dataclass(frozen=True)
class PeriodProposal:
    """Suggested dates for the period following the latest one."""

    period_type: str
    start_date: date
    end_date: date
    pay_date: date
    working_days: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_type": self.period_type,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "pay_date": self.pay_date,
            "working_days": self.working_days,
            "name": self.name,
        }


def count_weekdays(start: date, end: date) -> int:
    """Monday-to-Friday days in the inclusive range."""
    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def _month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def _half_month_end(day: date) -> date:
    """The 15th for days before it, otherwise the last day of the month."""
    return day.replace(day=15) if day.day < 15 else _month_end(day)


class PeriodLifecycle:
    """Service for payroll period validation and state transitions.

    Sole writer of period status, dates and transition timestamps.

    Operations:
    - create / update / delete: validated, overlap-checked period CRUD
    - start_processing: open → processing
    - reopen: processing → open
    - lock / unlock: freeze and unfreeze a period
    - close: terminal transition
    - get_current_period / suggest_next_period / summary: lookups
    """

    def __init__(
        self,
        periods: PeriodStore,
        records: RecordStore,
        audit: AuditTrailEmitter,
        clock: Clock | None = None,
    ):
        self.periods = periods
        self.records = records
        self.audit = audit
        self.clock = clock or SystemClock()

    # ===== Queries =====

    async def get(self, period_id: UUID) -> PayrollPeriod:
        return await self.periods.require(period_id)

    async def list(self, filters: PeriodFilter | None = None) -> list[PayrollPeriod]:
        return await self.periods.list(filters)

    async def get_current_period(self, today: date | None = None) -> PayrollPeriod | None:
        """Open or processing period containing ``today``."""
        today = today or self.clock.now().date()
        return await self.periods.find_containing(
            today, [PeriodStatus.OPEN, PeriodStatus.PROCESSING]
        )

    async def suggest_next_period(self, period_type: str = "semi-monthly") -> PeriodProposal:
        """Propose dates for the period after the latest existing one.

        With no periods yet, proposes the first half of the current month.
        """
        if period_type not in PERIOD_TYPES:
            raise ValidationError(f"period_type must be one of: {', '.join(PERIOD_TYPES)}")

        latest = await self.periods.latest()
        if latest is None:
            today = self.clock.now().date()
            start = today.replace(day=1)
            end = today.replace(day=15)
            pay = today.replace(day=20)
        else:
            start = latest.end_date + timedelta(days=1)
            if period_type == "weekly":
                end = start + timedelta(days=6)
                pay = end + timedelta(days=3)
            elif period_type == "bi-weekly":
                end = start + timedelta(days=13)
                pay = end + timedelta(days=3)
            elif period_type == "semi-monthly":
                end = _half_month_end(start)
                if end <= start:
                    end = _half_month_end(start + timedelta(days=1))
                pay = end + timedelta(days=5)
            else:
                end = _month_end(start)
                if end <= start:
                    end = _month_end(start + timedelta(days=1))
                pay = end + timedelta(days=5)

        return PeriodProposal(
            period_type=period_type,
            start_date=start,
            end_date=end,
            pay_date=pay,
            working_days=count_weekdays(start, end),
            name=generate_period_name(start, end, period_type),
        )

    async def summary(self) -> dict[str, Any]:
        """Status counts and totals across all periods."""
        periods = await self.periods.list()
        counts = {status.value: 0 for status in PeriodStatus}
        counts.update(await self.periods.count_by_status())
        return {
            "total_periods": len(periods),
            "by_status": counts,
            "total_gross_pay": to_money(sum((p.total_gross_pay for p in periods), Decimal("0"))),
            "total_deductions": to_money(
                sum((p.total_deductions for p in periods), Decimal("0"))
            ),
            "total_net_pay": to_money(sum((p.total_net_pay for p in periods), Decimal("0"))),
        }

    # ===== CRUD =====

    async def create(self, data: Mapping[str, Any]) -> PayrollPeriod:
        """Create a period in the open state with zeroed totals.

        Raises:
            ValidationError: Listing every violated rule
            ConflictError: If the range overlaps an existing period
        """
        errors = self._protected_field_errors(data, allow_status=True)
        clean, violations = validate_period_data(data)
        errors.extend(violations)
        if clean.get("status") not in (None, PeriodStatus.OPEN.value):
            errors.append("status must be open when creating a period")
        if errors:
            logger.warning("Rejected period creation: %s", "; ".join(errors))
            raise ValidationError(errors)

        await self._ensure_no_overlap(clean["start_date"], clean["end_date"])

        period = PayrollPeriod(
            name=clean["name"]
            or generate_period_name(clean["start_date"], clean["end_date"], clean["period_type"]),
            period_type=clean["period_type"],
            start_date=clean["start_date"],
            end_date=clean["end_date"],
            pay_date=clean["pay_date"],
            working_days=clean["working_days"],
            status=PeriodStatus.OPEN.value,
            total_employees=0,
            total_gross_pay=Decimal("0.00"),
            total_deductions=Decimal("0.00"),
            total_net_pay=Decimal("0.00"),
        )
        await self.periods.add(period)
        await self.audit.emit(ENTITY, period.id, AuditAction.CREATE, None, period.snapshot())
        logger.info("Payroll period created: %s (%s)", period.id, period.name)
        return period

    async def update(self, period_id: UUID, data: Mapping[str, Any]) -> PayrollPeriod:
        """Patch name, dates, type or working days of an editable period.

        Raises:
            ImmutableStateError: If the period is locked or closed
            ValidationError: Listing every violated rule of the merged period
            ConflictError: If the new range overlaps another period
        """
        period = await self.periods.require(period_id)
        if not PeriodStateMachine.can_edit(period.status):
            logger.warning("Rejected update of %s period %s", period.status, period_id)
            reason = (
                ImmutableStateError.PERIOD_CLOSED
                if period.status == PeriodStatus.CLOSED
                else ImmutableStateError.PERIOD_LOCKED
            )
            raise ImmutableStateError(
                f"Cannot update a {period.status} payroll period", reason
            )

        errors = self._protected_field_errors(data, allow_status=False)
        unknown = sorted(set(data) - set(EDITABLE_FIELDS) - set(PROTECTED_FIELDS))
        errors.extend(f"{name} is not a period field" for name in unknown)

        merged = {name: getattr(period, name) for name in EDITABLE_FIELDS}
        merged.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
        clean, violations = validate_period_data(merged)
        errors.extend(violations)
        if errors:
            logger.warning("Rejected update of period %s: %s", period_id, "; ".join(errors))
            raise ValidationError(errors)

        await self._ensure_no_overlap(clean["start_date"], clean["end_date"], exclude_id=period.id)

        before = period.snapshot()
        for name in EDITABLE_FIELDS:
            if name == "name":
                continue
            setattr(period, name, clean[name])
        if "name" in data:
            period.name = clean["name"] or generate_period_name(
                period.start_date, period.end_date, period.period_type
            )
        await self.periods.save(period)

        await self.audit.emit(ENTITY, period.id, AuditAction.UPDATE, before, period.snapshot())
        logger.info("Payroll period updated: %s", period.id)
        return period

    async def delete(self, period_id: UUID) -> None:
        """Delete a period that no payroll record references.

        Raises:
            ConflictError: If payroll records exist for the period
        """
        period = await self.periods.require(period_id)
        count = await self.records.count_for_period(period_id)
        if count:
            logger.warning("Rejected delete of period %s with %d records", period_id, count)
            raise ConflictError(f"Cannot delete period with {count} existing payroll records")

        before = period.snapshot()
        await self.periods.delete(period)
        await self.audit.emit(ENTITY, period_id, AuditAction.DELETE, before, None)
        logger.info("Payroll period deleted: %s", period_id)

    # ===== Transitions =====

    async def start_processing(self, period_id: UUID) -> PayrollPeriod:
        period = await self.periods.require(period_id)
        return await self._transition(period, PeriodStatus.PROCESSING)

    async def reopen(self, period_id: UUID) -> PayrollPeriod:
        period = await self.periods.require(period_id)
        if period.status != PeriodStatus.PROCESSING:
            raise InvalidTransitionError(
                period.status, PeriodStatus.OPEN.value, "only a processing period can be reopened"
            )
        return await self._transition(period, PeriodStatus.OPEN)

    async def lock(self, period_id: UUID) -> PayrollPeriod:
        """Lock a period. Locking a locked period is a no-op."""
        period = await self.periods.require(period_id)
        if period.status == PeriodStatus.LOCKED:
            return period
        if period.status == PeriodStatus.CLOSED:
            raise InvalidTransitionError(
                period.status, PeriodStatus.LOCKED.value, "cannot lock a closed period"
            )
        return await self._transition(period, PeriodStatus.LOCKED, locked_at=self.clock.now())

    async def unlock(self, period_id: UUID) -> PayrollPeriod:
        period = await self.periods.require(period_id)
        if period.status != PeriodStatus.LOCKED:
            raise InvalidTransitionError(
                period.status, PeriodStatus.OPEN.value, "only a locked period can be unlocked"
            )
        return await self._transition(period, PeriodStatus.OPEN, locked_at=None)

    async def close(self, period_id: UUID) -> PayrollPeriod:
        """Close a period. Irreversible."""
        period = await self.periods.require(period_id)
        if period.status == PeriodStatus.CLOSED:
            raise InvalidTransitionError(
                period.status, PeriodStatus.CLOSED.value, "period is already closed"
            )
        return await self._transition(period, PeriodStatus.CLOSED, closed_at=self.clock.now())

    async def _transition(
        self,
        period: PayrollPeriod,
        to_status: PeriodStatus,
        **stamps: Any,
    ) -> PayrollPeriod:
        from_status = period.status
        PeriodStateMachine.validate_transition(from_status, to_status)

        before = period.snapshot()
        period.status = to_status.value
        for name, value in stamps.items():
            setattr(period, name, value)
        await self.periods.save(period)

        await self.audit.emit(ENTITY, period.id, AuditAction.UPDATE, before, period.snapshot())
        logger.info(
            "Payroll period %s transitioned %s -> %s", period.id, from_status, to_status.value
        )
        return period

    # ===== Helpers =====

    async def _ensure_no_overlap(
        self, start_date: date, end_date: date, exclude_id: UUID | None = None
    ) -> None:
        overlapping = await self.periods.find_overlapping(start_date, end_date, exclude_id)
        if overlapping:
            names = ", ".join(p.name for p in overlapping)
            logger.warning("Rejected overlapping period %s..%s (%s)", start_date, end_date, names)
            raise ConflictError(f"Period overlaps with an existing period: {names}")

    @staticmethod
    def _protected_field_errors(data: Mapping[str, Any], allow_status: bool) -> list[str]:
        errors = []
        for name in PROTECTED_FIELDS:
            if name not in data or (allow_status and name == "status"):
                continue
            if name == "status":
                errors.append("status cannot be changed through update; use lock, unlock or close")
            else:
                errors.append(f"{name} cannot be set directly")
        return errors
