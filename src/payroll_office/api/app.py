"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_office import __version__
from payroll_office.api.errors import install_error_handlers
from payroll_office.api.routes import (
    entries_router,
    health_router,
    periods_router,
    records_router,
)
from payroll_office.config import Settings, get_settings
from payroll_office.database import init_db
from payroll_office.services.locks import KeyedLock

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    engine = None
    if app.state.session_factory is None:
        engine, app.state.session_factory = init_db(app.state.settings)
        logger.info("Database engine initialized")
    yield
    if engine is not None:
        await engine.dispose()


def create_app(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    A session factory passed in is used as-is; otherwise the lifespan
    builds one from settings.
    """
    app = FastAPI(
        title="Payroll Office API",
        description="Payroll period lifecycle and payroll record computation",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.state.session_factory = session_factory
    app.state.compute_locks = KeyedLock()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(periods_router, prefix="/api/v1")
    app.include_router(records_router, prefix="/api/v1")
    app.include_router(entries_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
