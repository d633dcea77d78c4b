"""Persistence and lookup for payroll records."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_office.exceptions import NotFoundError
from payroll_office.models import PayrollRecord
from payroll_office.services.filters import RecordFilter


class RecordStore:
    """Reads and writes PayrollRecord rows in the caller's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, record_id: UUID) -> PayrollRecord | None:
        return await self.session.get(PayrollRecord, record_id)

    async def require(self, record_id: UUID) -> PayrollRecord:
        """Get a record or raise NotFoundError."""
        record = await self.get(record_id)
        if record is None:
            raise NotFoundError("PayrollRecord", record_id)
        return record

    async def get_for(self, employee_id: UUID, period_id: UUID) -> PayrollRecord | None:
        """The record for an (employee, period) key, if computed."""
        result = await self.session.execute(
            select(PayrollRecord).where(
                PayrollRecord.employee_id == employee_id,
                PayrollRecord.period_id == period_id,
            )
        )
        return result.scalar_one_or_none()

    async def list(self, filters: RecordFilter | None = None) -> list[PayrollRecord]:
        filters = filters or RecordFilter()
        stmt = select(PayrollRecord)
        if filters.period_id:
            stmt = stmt.where(PayrollRecord.period_id == filters.period_id)
        if filters.employee_id:
            stmt = stmt.where(PayrollRecord.employee_id == filters.employee_id)
        if filters.payment_status:
            stmt = stmt.where(PayrollRecord.payment_status == filters.payment_status)
        stmt = stmt.order_by(PayrollRecord.created_at.desc(), PayrollRecord.id).offset(
            filters.offset
        )
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_period(self, period_id: UUID) -> list[PayrollRecord]:
        return await self.list(RecordFilter(period_id=period_id))

    async def count_for_period(self, period_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(PayrollRecord)
            .where(PayrollRecord.period_id == period_id)
        )
        return int(result.scalar_one())

    async def add(self, record: PayrollRecord) -> PayrollRecord:
        self.session.add(record)
        await self.session.flush()
        return record

    async def save(self, record: PayrollRecord) -> PayrollRecord:
        await self.session.flush()
        return record

    async def delete(self, record: PayrollRecord) -> None:
        await self.session.delete(record)
        await self.session.flush()
