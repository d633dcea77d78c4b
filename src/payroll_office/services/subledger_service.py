"""Sub-ledger entry points: attendance, overtime and deduction maintenance.

Every update and delete routes through AttachmentGuard.ensure_mutable, so an
entry consumed by a payroll computation cannot change underneath it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from payroll_office.audit import AuditAction, AuditTrailEmitter
from payroll_office.calculators.overtime import overtime_amount, overtime_hours, ranges_overlap
from payroll_office.calculators.rate_resolver import RateProvider
from payroll_office.clock import Clock, SystemClock
from payroll_office.exceptions import ConflictError, NotFoundError, ValidationError
from payroll_office.models import AttendanceEntry, DeductionEntry, Employee, OvertimeEntry
from payroll_office.models.ledger import SubLedgerMixin
from payroll_office.services.attachment_guard import AttachmentGuard
from payroll_office.services.filters import EntryFilter
from payroll_office.services.subledger_store import SubLedgerStore
from payroll_office.services.validators import (
    validate_attendance_data,
    validate_deduction_data,
    validate_overtime_data,
)

logger = logging.getLogger(__name__)

# Fields only the computation engine or the approval flow may write
_ENGINE_FIELDS = ("id", "payroll_record_id", "created_at", "updated_at")


class SubLedgerService:
    """Create, update and delete sub-ledger entries.

    Operations:
    - create/update/delete_attendance
    - create/update/delete_overtime, approve_overtime, reject_overtime
    - create/update/delete_deduction
    - get/list for any entry model
    """

    def __init__(
        self,
        store: SubLedgerStore,
        guard: AttachmentGuard,
        rates: RateProvider,
        audit: AuditTrailEmitter,
        clock: Clock | None = None,
    ):
        self.store = store
        self.guard = guard
        self.rates = rates
        self.audit = audit
        self.clock = clock or SystemClock()

    # ===== Queries =====

    async def get(self, model: type[SubLedgerMixin], entry_id: UUID) -> Any:
        return await self.store.require(model, entry_id)

    async def list(
        self, model: type[SubLedgerMixin], filters: EntryFilter | None = None
    ) -> list[Any]:
        return await self.store.list(model, filters)

    # ===== Attendance =====

    async def create_attendance(self, data: Mapping[str, Any]) -> AttendanceEntry:
        clean, errors = validate_attendance_data(data)
        errors.extend(self._engine_field_errors(data))
        self._raise_if(errors)
        await self._ensure_employee(clean["employee_id"])
        await self._ensure_unique_attendance(clean["employee_id"], clean["timestamp"])

        entry = AttendanceEntry(**clean)
        return await self._create(entry)

    async def update_attendance(
        self, entry_id: UUID, data: Mapping[str, Any]
    ) -> AttendanceEntry:
        entry = await self.store.require(AttendanceEntry, entry_id)
        self.guard.ensure_mutable(entry)

        clean, errors = validate_attendance_data(data, partial=True)
        errors.extend(self._engine_field_errors(data))
        self._raise_if(errors)
        if "employee_id" in clean:
            await self._ensure_employee(clean["employee_id"])
        employee_id = clean.get("employee_id", entry.employee_id)
        timestamp = clean.get("timestamp", entry.timestamp)
        if employee_id != entry.employee_id or timestamp != entry.timestamp:
            await self._ensure_unique_attendance(employee_id, timestamp)

        return await self._update(entry, clean)

    async def delete_attendance(self, entry_id: UUID) -> None:
        await self._delete(AttendanceEntry, entry_id)

    # ===== Overtime =====

    async def create_overtime(self, data: Mapping[str, Any]) -> OvertimeEntry:
        """Create a pending overtime entry with derived hours and amount."""
        clean, errors = validate_overtime_data(data)
        errors.extend(self._engine_field_errors(data))
        self._raise_if(errors)
        rates = await self.rates.get_rate_config(clean["employee_id"])

        # New overtime always starts pending approval
        clean["approval_status"] = "pending"
        clean.pop("approved_by", None)
        clean.setdefault("rate", rates.overtime_multiplier)
        clean["hours"] = overtime_hours(clean["start_time"], clean["end_time"], clean["date"])
        self._raise_if(self._hours_errors(clean["hours"]))
        await self._ensure_no_overtime_overlap(
            clean["employee_id"], clean["date"], clean["start_time"], clean["end_time"]
        )
        clean["amount"] = overtime_amount(rates.hourly_rate, clean["hours"], clean["rate"])

        entry = OvertimeEntry(**clean)
        return await self._create(entry)

    async def update_overtime(self, entry_id: UUID, data: Mapping[str, Any]) -> OvertimeEntry:
        """Edit an unattached overtime entry; hours and amount are re-derived."""
        entry = await self.store.require(OvertimeEntry, entry_id)
        self.guard.ensure_mutable(entry)

        clean, errors = validate_overtime_data(data, partial=True)
        errors.extend(self._engine_field_errors(data))
        for name in ("approval_status", "approved_by", "hours", "amount"):
            if name in data:
                errors.append(f"{name} cannot be set directly")
        self._raise_if(errors)
        clean.pop("approval_status", None)
        clean.pop("approved_by", None)

        employee_id = clean.get("employee_id", entry.employee_id)
        on = clean.get("date", entry.date)
        start_time = clean.get("start_time", entry.start_time)
        end_time = clean.get("end_time", entry.end_time)
        rates = await self.rates.get_rate_config(employee_id)
        hours = overtime_hours(start_time, end_time, on)
        self._raise_if(self._hours_errors(hours))
        await self._ensure_no_overtime_overlap(
            employee_id, on, start_time, end_time, exclude_id=entry.id
        )
        clean["hours"] = hours
        clean["amount"] = overtime_amount(rates.hourly_rate, hours, clean.get("rate", entry.rate))

        return await self._update(entry, clean)

    async def approve_overtime(self, entry_id: UUID, approved_by: str) -> OvertimeEntry:
        if not approved_by:
            raise ValidationError("approved_by is required")
        entry = await self.store.require(OvertimeEntry, entry_id)
        self.guard.ensure_mutable(entry)
        return await self._update(entry, {"approval_status": "approved", "approved_by": approved_by})

    async def reject_overtime(
        self, entry_id: UUID, approved_by: str | None = None
    ) -> OvertimeEntry:
        entry = await self.store.require(OvertimeEntry, entry_id)
        self.guard.ensure_mutable(entry)
        return await self._update(entry, {"approval_status": "rejected", "approved_by": approved_by})

    async def delete_overtime(self, entry_id: UUID) -> None:
        await self._delete(OvertimeEntry, entry_id)

    # ===== Deductions =====

    async def create_deduction(self, data: Mapping[str, Any]) -> DeductionEntry:
        """Create a deduction; applied_date defaults to today."""
        clean, errors = validate_deduction_data(data)
        errors.extend(self._engine_field_errors(data))
        self._raise_if(errors)
        await self._ensure_employee(clean["employee_id"])
        clean.setdefault("applied_date", self.clock.now().date())

        entry = DeductionEntry(**clean)
        return await self._create(entry)

    async def update_deduction(
        self, entry_id: UUID, data: Mapping[str, Any]
    ) -> DeductionEntry:
        entry = await self.store.require(DeductionEntry, entry_id)
        self.guard.ensure_mutable(entry)

        clean, errors = validate_deduction_data(data, partial=True)
        errors.extend(self._engine_field_errors(data))
        self._raise_if(errors)
        if "employee_id" in clean:
            await self._ensure_employee(clean["employee_id"])

        return await self._update(entry, clean)

    async def delete_deduction(self, entry_id: UUID) -> None:
        await self._delete(DeductionEntry, entry_id)

    # ===== Helpers =====

    async def _create(self, entry: Any) -> Any:
        await self.store.add(entry)
        await self.audit.emit(entry.ENTITY, entry.id, AuditAction.CREATE, None, entry.snapshot())
        logger.info("%s created: %s", entry.ENTITY, entry.id)
        return entry

    async def _update(self, entry: Any, changes: Mapping[str, Any]) -> Any:
        before = entry.snapshot()
        for name, value in changes.items():
            setattr(entry, name, value)
        await self.store.save(entry)
        await self.audit.emit(entry.ENTITY, entry.id, AuditAction.UPDATE, before, entry.snapshot())
        logger.info("%s updated: %s", entry.ENTITY, entry.id)
        return entry

    async def _delete(self, model: type[SubLedgerMixin], entry_id: UUID) -> None:
        entry = await self.store.require(model, entry_id)
        self.guard.ensure_mutable(entry)
        before = entry.snapshot()
        await self.store.delete(entry)
        await self.audit.emit(model.ENTITY, entry_id, AuditAction.DELETE, before, None)
        logger.info("%s deleted: %s", model.ENTITY, entry_id)

    async def _ensure_employee(self, employee_id: UUID) -> None:
        if await self.store.session.get(Employee, employee_id) is None:
            raise NotFoundError("Employee", employee_id)

    async def _ensure_unique_attendance(self, employee_id: UUID, timestamp: Any) -> None:
        if await self.store.find_attendance_at(employee_id, timestamp) is not None:
            raise ConflictError(
                f"Attendance for employee {employee_id} at {timestamp} already exists"
            )

    async def _ensure_no_overtime_overlap(
        self,
        employee_id: UUID,
        on: Any,
        start_time: Any,
        end_time: Any,
        exclude_id: UUID | None = None,
    ) -> None:
        """Reject a time range sharing minutes with another entry that day."""
        for other in await self.store.find_overtime_on(employee_id, on, exclude_id):
            if ranges_overlap((start_time, end_time), (other.start_time, other.end_time)):
                logger.warning(
                    "Overtime overlap for employee %s on %s with entry %s",
                    employee_id,
                    on,
                    other.id,
                )
                raise ConflictError(
                    f"Overtime {start_time:%H:%M}-{end_time:%H:%M} on {on} overlaps "
                    f"existing entry {other.start_time:%H:%M}-{other.end_time:%H:%M}"
                )

    @staticmethod
    def _hours_errors(hours: Any) -> list[str]:
        return [] if hours > 0 else ["end_time must differ from start_time"]

    @staticmethod
    def _engine_field_errors(data: Mapping[str, Any]) -> list[str]:
        return [f"{name} cannot be set directly" for name in _ENGINE_FIELDS if name in data]

    @staticmethod
    def _raise_if(errors: list[str]) -> None:
        if errors:
            logger.warning("Rejected sub-ledger change: %s", "; ".join(errors))
            raise ValidationError(errors)
