"""API test fixtures: FastAPI app over the shared in-memory database."""

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from payroll_office.api.app import create_app
from payroll_office.config import Settings
from payroll_office.models import Employee


@pytest.fixture
def api_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="WARNING",
        audit_actor="api-test",
    )


@pytest.fixture
def app(session_factory, api_settings):
    """App bound to the test engine; lifespan is not needed."""
    return create_app(session_factory=session_factory, settings=api_settings)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def stored_employee(session_factory) -> Employee:
    """Committed employee visible to API requests."""
    async with session_factory() as session:
        employee = Employee(
            employee_number="EMP-100",
            first_name="Carla",
            last_name="Mendoza",
            daily_rate=Decimal("500.00"),
            hourly_rate=Decimal("100.00"),
            overtime_rate=Decimal("1.25"),
        )
        session.add(employee)
        await session.commit()
        return employee
