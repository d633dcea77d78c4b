"""Persistence and range queries for payroll periods."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_office.exceptions import NotFoundError
from payroll_office.models import PayrollPeriod
from payroll_office.services.filters import PeriodFilter


class PeriodStore:
    """Reads and writes PayrollPeriod rows in the caller's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, period_id: UUID) -> PayrollPeriod | None:
        return await self.session.get(PayrollPeriod, period_id)

    async def require(self, period_id: UUID) -> PayrollPeriod:
        """Get a period or raise NotFoundError."""
        period = await self.get(period_id)
        if period is None:
            raise NotFoundError("PayrollPeriod", period_id)
        return period

    async def list(self, filters: PeriodFilter | None = None) -> list[PayrollPeriod]:
        """List periods, newest start date first."""
        filters = filters or PeriodFilter()
        stmt = select(PayrollPeriod)
        if filters.status:
            stmt = stmt.where(PayrollPeriod.status == filters.status)
        if filters.period_type:
            stmt = stmt.where(PayrollPeriod.period_type == filters.period_type)
        if filters.start_from:
            stmt = stmt.where(PayrollPeriod.start_date >= filters.start_from)
        if filters.end_to:
            stmt = stmt.where(PayrollPeriod.end_date <= filters.end_to)
        if filters.pay_date_from:
            stmt = stmt.where(PayrollPeriod.pay_date >= filters.pay_date_from)
        if filters.pay_date_to:
            stmt = stmt.where(PayrollPeriod.pay_date <= filters.pay_date_to)
        stmt = stmt.order_by(PayrollPeriod.start_date.desc()).offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_overlapping(
        self,
        start_date: date,
        end_date: date,
        exclude_id: UUID | None = None,
    ) -> list[PayrollPeriod]:
        """Periods whose range overlaps [start_date, end_date).

        Two ranges overlap when A.start < B.end and A.end > B.start.
        """
        stmt = select(PayrollPeriod).where(
            PayrollPeriod.start_date < end_date,
            PayrollPeriod.end_date > start_date,
        )
        if exclude_id is not None:
            stmt = stmt.where(PayrollPeriod.id != exclude_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_containing(
        self, day: date, statuses: Iterable[str] | None = None
    ) -> PayrollPeriod | None:
        stmt = select(PayrollPeriod).where(
            PayrollPeriod.start_date <= day,
            PayrollPeriod.end_date >= day,
        )
        if statuses is not None:
            values = [getattr(s, "value", s) for s in statuses]
            stmt = stmt.where(PayrollPeriod.status.in_(values))
        stmt = stmt.order_by(PayrollPeriod.start_date.desc()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def latest(self, period_type: str | None = None) -> PayrollPeriod | None:
        """Period with the latest end date."""
        stmt = select(PayrollPeriod)
        if period_type:
            stmt = stmt.where(PayrollPeriod.period_type == period_type)
        stmt = stmt.order_by(PayrollPeriod.end_date.desc()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_by_status(self) -> dict[str, int]:
        stmt = select(PayrollPeriod.status, func.count()).group_by(PayrollPeriod.status)
        result = await self.session.execute(stmt)
        return {status: count for status, count in result.all()}

    async def add(self, period: PayrollPeriod) -> PayrollPeriod:
        self.session.add(period)
        await self.session.flush()
        return period

    async def save(self, period: PayrollPeriod) -> PayrollPeriod:
        await self.session.flush()
        return period

    async def delete(self, period: PayrollPeriod) -> None:
        await self.session.delete(period)
        await self.session.flush()
