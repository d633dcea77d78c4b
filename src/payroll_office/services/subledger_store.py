"""Persistence for attendance, overtime and deduction entries."""

from __future__ import annotations

from datetime import date, datetime
from typing import TypeVar
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_office.exceptions import NotFoundError
from payroll_office.models import AttendanceEntry, DeductionEntry, OvertimeEntry
from payroll_office.models.ledger import SUB_LEDGER_MODELS, SubLedgerMixin
from payroll_office.services.filters import EntryFilter

EntryT = TypeVar("EntryT", AttendanceEntry, OvertimeEntry, DeductionEntry)


def entry_date_column(model: type[SubLedgerMixin]):
    """Column holding the calendar date an entry applies to."""
    if model is AttendanceEntry:
        return AttendanceEntry.work_date
    if model is OvertimeEntry:
        return OvertimeEntry.date
    if model is DeductionEntry:
        return DeductionEntry.applied_date
    raise TypeError(f"Not a sub-ledger model: {model!r}")


class SubLedgerStore:
    """Reads and writes sub-ledger entries in the caller's session.

    Operations:
    - get/require/list/add/save/delete for any entry model
    - find_eligible: entries an employee's computation may consume
    - attached_to: every entry attached to a payroll record
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, model: type[EntryT], entry_id: UUID) -> EntryT | None:
        return await self.session.get(model, entry_id)

    async def require(self, model: type[EntryT], entry_id: UUID) -> EntryT:
        entry = await self.get(model, entry_id)
        if entry is None:
            raise NotFoundError(model.ENTITY, entry_id)
        return entry

    async def list(self, model: type[EntryT], filters: EntryFilter | None = None) -> list[EntryT]:
        filters = filters or EntryFilter()
        column = entry_date_column(model)
        stmt = select(model)
        if filters.employee_id:
            stmt = stmt.where(model.employee_id == filters.employee_id)
        if filters.date_from:
            stmt = stmt.where(column >= filters.date_from)
        if filters.date_to:
            stmt = stmt.where(column <= filters.date_to)
        if filters.payroll_record_id:
            stmt = stmt.where(model.payroll_record_id == filters.payroll_record_id)
        if filters.attached is True:
            stmt = stmt.where(model.payroll_record_id.is_not(None))
        elif filters.attached is False:
            stmt = stmt.where(model.payroll_record_id.is_(None))
        stmt = stmt.order_by(column, model.created_at, model.id).offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_eligible(
        self,
        model: type[EntryT],
        employee_id: UUID,
        start_date: date,
        end_date: date,
        record_id: UUID | None = None,
    ) -> list[EntryT]:
        """Entries for an employee that a computation may consume.

        Unattached entries dated within the inclusive [start_date, end_date]
        range, plus everything already attached to ``record_id`` so a
        recompute re-uses its own attachments.
        """
        column = entry_date_column(model)
        in_window = (
            (model.employee_id == employee_id)
            & (column >= start_date)
            & (column <= end_date)
            & model.payroll_record_id.is_(None)
        )
        condition = in_window
        if record_id is not None:
            condition = or_(in_window, model.payroll_record_id == record_id)
        stmt = select(model).where(condition).order_by(column, model.created_at, model.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_attendance_at(
        self, employee_id: UUID, timestamp: datetime
    ) -> AttendanceEntry | None:
        result = await self.session.execute(
            select(AttendanceEntry).where(
                AttendanceEntry.employee_id == employee_id,
                AttendanceEntry.timestamp == timestamp,
            )
        )
        return result.scalar_one_or_none()

    async def find_overtime_on(
        self, employee_id: UUID, on: date, exclude_id: UUID | None = None
    ) -> list[OvertimeEntry]:
        """Overtime entries for an employee on one date, rejected ones excluded."""
        stmt = select(OvertimeEntry).where(
            OvertimeEntry.employee_id == employee_id,
            OvertimeEntry.date == on,
            OvertimeEntry.approval_status != "rejected",
        )
        if exclude_id is not None:
            stmt = stmt.where(OvertimeEntry.id != exclude_id)
        result = await self.session.execute(stmt.order_by(OvertimeEntry.start_time))
        return list(result.scalars().all())

    async def attached_to(self, record_id: UUID) -> list[SubLedgerMixin]:
        entries: list[SubLedgerMixin] = []
        for model in SUB_LEDGER_MODELS:
            result = await self.session.execute(
                select(model).where(model.payroll_record_id == record_id).order_by(model.id)
            )
            entries.extend(result.scalars().all())
        return entries

    async def add(self, entry: EntryT) -> EntryT:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def save(self, entry: EntryT) -> EntryT:
        await self.session.flush()
        return entry

    async def delete(self, entry: SubLedgerMixin) -> None:
        await self.session.delete(entry)
        await self.session.flush()
