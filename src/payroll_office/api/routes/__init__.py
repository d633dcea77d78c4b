"""API routes."""

from payroll_office.api.routes.entries import router as entries_router
from payroll_office.api.routes.health import router as health_router
from payroll_office.api.routes.periods import router as periods_router
from payroll_office.api.routes.records import router as records_router

__all__ = ["entries_router", "health_router", "periods_router", "records_router"]
