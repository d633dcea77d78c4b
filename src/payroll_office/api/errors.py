"""Mapping of domain errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from payroll_office.exceptions import PayrollError

logger = logging.getLogger(__name__)

STATUS_BY_CODE: dict[str, int] = {
    "VALIDATION_FAILED": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "IMMUTABLE_STATE": status.HTTP_409_CONFLICT,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "ALREADY_ATTACHED": status.HTTP_409_CONFLICT,
    "ALREADY_PAID": status.HTTP_409_CONFLICT,
    "PERIOD_LOCKED": status.HTTP_409_CONFLICT,
}


def _location(loc: tuple) -> str:
    return ".".join(str(part) for part in loc if part != "body")


def install_error_handlers(app: FastAPI) -> None:
    """Register handlers that flatten errors into {detail, code, violations}."""

    @app.exception_handler(PayrollError)
    async def payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Handle domain errors raised by the core."""
        body = exc.to_dict()
        body.setdefault("violations", None)
        return JSONResponse(
            status_code=STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
            content=body,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle malformed request bodies the same way as domain validation."""
        violations = [f"{_location(err['loc'])}: {err['msg']}" for err in exc.errors()]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": "; ".join(violations),
                "code": "VALIDATION_FAILED",
                "violations": violations,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )
