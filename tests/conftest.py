"""Pytest fixtures for payroll office tests."""

from collections.abc import AsyncGenerator
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_office.audit import InMemoryAuditSink
from payroll_office.calculators.types import RateConfig
from payroll_office.clock import FixedClock
from payroll_office.context import PayrollOffice
from payroll_office.database import build_session_factory, create_schema
from payroll_office.models import Employee, PayrollPeriod
from payroll_office.services.locks import KeyedLock

# Use SQLite for unit tests (faster, no external dependencies)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Wednesday in the second half of January 2024
NOW = datetime(2024, 1, 17, 9, 0, tzinfo=timezone.utc)

JANUARY_FIRST_HALF = {
    "period_type": "semi-monthly",
    "start_date": "2024-01-01",
    "end_date": "2024-01-15",
    "pay_date": "2024-01-20",
    "working_days": 11,
}


class StaticRateProvider:
    """Rate provider returning one configuration for every employee."""

    def __init__(self, rates: RateConfig):
        self.rates = rates

    async def get_rate_config(self, employee_id: UUID) -> RateConfig:
        return self.rates


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def compute_locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def office(session, audit_sink, clock, compute_locks) -> PayrollOffice:
    """Payroll office wired to the test session with in-memory audit."""
    return PayrollOffice(session, audit_sink=audit_sink, clock=clock, locks=compute_locks)


@pytest_asyncio.fixture
async def employee(session) -> Employee:
    """Employee earning 500.00 a day and 100.00 an hour, overtime at 1.25x."""
    employee = Employee(
        employee_number="EMP-001",
        first_name="Alice",
        last_name="Reyes",
        daily_rate=Decimal("500.00"),
        hourly_rate=Decimal("100.00"),
        overtime_rate=Decimal("1.25"),
    )
    session.add(employee)
    await session.flush()
    return employee


@pytest_asyncio.fixture
async def second_employee(session) -> Employee:
    employee = Employee(
        employee_number="EMP-002",
        first_name="Bob",
        last_name="Santos",
        daily_rate=Decimal("600.00"),
        hourly_rate=Decimal("75.00"),
        overtime_rate=Decimal("1.30"),
    )
    session.add(employee)
    await session.flush()
    return employee


@pytest_asyncio.fixture
async def period(office) -> PayrollPeriod:
    """Open semi-monthly period, 2024-01-01 to 2024-01-15."""
    return await office.create_period(JANUARY_FIRST_HALF)


class LedgerSeeder:
    """Creates sub-ledger entries through the office API."""

    def __init__(self, office: PayrollOffice):
        self.office = office

    async def attendance(
        self,
        employee_id: UUID,
        days: range,
        status: str = "present",
        month: int = 1,
    ) -> list:
        """One 08:00 attendance entry per day of ``days`` in 2024."""
        return [
            await self.office.create_attendance(
                {
                    "employee_id": employee_id,
                    "timestamp": datetime(2024, month, day, 8, 0),
                    "status": status,
                }
            )
            for day in days
        ]

    async def overtime(
        self,
        employee_id: UUID,
        on: date,
        start: str = "18:00",
        end: str = "22:00",
        approve: bool = True,
    ):
        entry = await self.office.create_overtime(
            {"employee_id": employee_id, "date": on, "start_time": start, "end_time": end}
        )
        if approve:
            entry = await self.office.approve_overtime(entry.id, "manager")
        return entry

    async def deduction(self, employee_id: UUID, type_: str, amount: str, on: date):
        return await self.office.create_deduction(
            {
                "employee_id": employee_id,
                "type": type_,
                "amount": Decimal(amount),
                "applied_date": on,
            }
        )


@pytest.fixture
def seed(office) -> LedgerSeeder:
    return LedgerSeeder(office)


@pytest.fixture
def make_office(session, audit_sink, clock, compute_locks):
    """Build an office over the test session with a fixed rate configuration."""

    def _make(rates: RateConfig) -> PayrollOffice:
        return PayrollOffice(
            session,
            rates=StaticRateProvider(rates),
            audit_sink=audit_sink,
            clock=clock,
            locks=compute_locks,
        )

    return _make


@pytest.fixture
def period_data() -> dict:
    """Payload for the 2024-01-01 to 2024-01-15 semi-monthly period."""
    return dict(JANUARY_FIRST_HALF)
