"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_office.context import PayrollOffice


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; anything uncommitted is rolled back on close.
    """
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_office(request: Request, db: DbSession) -> PayrollOffice:
    """Payroll office context bound to the request session."""
    settings = request.app.state.settings
    return PayrollOffice(
        db,
        locks=request.app.state.compute_locks,
        actor=settings.audit_actor,
    )


# Type aliases for cleaner dependency injection
Office = Annotated[PayrollOffice, Depends(get_office)]
