"""Payroll period API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from payroll_office.api.dependencies import DbSession, Office
from payroll_office.api.schemas import (
    BatchResponse,
    ErrorResponse,
    PeriodCreate,
    PeriodProposalResponse,
    PeriodResponse,
    PeriodSummaryResponse,
    PeriodUpdate,
    RecordResponse,
    patch_data,
)
from payroll_office.services.filters import PeriodFilter

router = APIRouter(prefix="/periods", tags=["periods"])

CONFLICT = {409: {"model": ErrorResponse}}
NOT_FOUND = {404: {"model": ErrorResponse}}


# ============================================================================
# Period CRUD
# ============================================================================


@router.post(
    "",
    response_model=PeriodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, **CONFLICT},
)
async def create_period(db: DbSession, office: Office, payload: PeriodCreate) -> PeriodResponse:
    """Create a new payroll period in open status."""
    period = await office.create_period(patch_data(payload))
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.get("", response_model=list[PeriodResponse])
async def list_periods(
    office: Office,
    status_: Annotated[str | None, Query(alias="status")] = None,
    period_type: str | None = None,
    start_from: date | None = None,
    end_to: date | None = None,
    pay_date_from: date | None = None,
    pay_date_to: date | None = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[PeriodResponse]:
    """List periods, newest first."""
    periods = await office.list_periods(
        PeriodFilter(
            status=status_,
            period_type=period_type,
            start_from=start_from,
            end_to=end_to,
            pay_date_from=pay_date_from,
            pay_date_to=pay_date_to,
            limit=limit,
            offset=offset,
        )
    )
    return [PeriodResponse.model_validate(p) for p in periods]


@router.get("/current", response_model=PeriodResponse | None)
async def get_current_period(office: Office) -> PeriodResponse | None:
    """Open or processing period containing today, if any."""
    period = await office.get_current_period()
    return PeriodResponse.model_validate(period) if period else None


@router.get("/next", response_model=PeriodProposalResponse)
async def suggest_next_period(
    office: Office, period_type: str = "semi-monthly"
) -> PeriodProposalResponse:
    """Suggested dates for the period after the latest one."""
    proposal = await office.suggest_next_period(period_type)
    return PeriodProposalResponse(**proposal.to_dict())


@router.get("/summary", response_model=PeriodSummaryResponse)
async def period_summary(office: Office) -> PeriodSummaryResponse:
    return PeriodSummaryResponse(**await office.period_summary())


@router.get("/{period_id}", response_model=PeriodResponse, responses=NOT_FOUND)
async def get_period(office: Office, period_id: UUID) -> PeriodResponse:
    return PeriodResponse.model_validate(await office.get_period(period_id))


@router.patch(
    "/{period_id}",
    response_model=PeriodResponse,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND, **CONFLICT},
)
async def update_period(
    db: DbSession, office: Office, period_id: UUID, payload: PeriodUpdate
) -> PeriodResponse:
    """Patch an open or processing period."""
    period = await office.update_period(period_id, patch_data(payload))
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.delete(
    "/{period_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, **CONFLICT},
)
async def delete_period(db: DbSession, office: Office, period_id: UUID) -> Response:
    """Delete a period with no payroll records."""
    await office.delete_period(period_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Transitions
# ============================================================================


async def _transition(
    db: DbSession, office: Office, period_id: UUID, action: str
) -> PeriodResponse:
    operations = {
        "start-processing": office.start_processing,
        "reopen": office.reopen_period,
        "lock": office.lock_period,
        "unlock": office.unlock_period,
        "close": office.close_period,
        "refresh-totals": office.refresh_period_totals,
    }
    period = await operations[action](period_id)
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.post("/{period_id}/start-processing", response_model=PeriodResponse, responses=CONFLICT)
async def start_processing(db: DbSession, office: Office, period_id: UUID) -> PeriodResponse:
    """open → processing."""
    return await _transition(db, office, period_id, "start-processing")


@router.post("/{period_id}/reopen", response_model=PeriodResponse, responses=CONFLICT)
async def reopen_period(db: DbSession, office: Office, period_id: UUID) -> PeriodResponse:
    """processing → open."""
    return await _transition(db, office, period_id, "reopen")


@router.post("/{period_id}/lock", response_model=PeriodResponse, responses=CONFLICT)
async def lock_period(db: DbSession, office: Office, period_id: UUID) -> PeriodResponse:
    return await _transition(db, office, period_id, "lock")


@router.post("/{period_id}/unlock", response_model=PeriodResponse, responses=CONFLICT)
async def unlock_period(db: DbSession, office: Office, period_id: UUID) -> PeriodResponse:
    return await _transition(db, office, period_id, "unlock")


@router.post("/{period_id}/close", response_model=PeriodResponse, responses=CONFLICT)
async def close_period(db: DbSession, office: Office, period_id: UUID) -> PeriodResponse:
    """Close the period. Irreversible."""
    return await _transition(db, office, period_id, "close")


@router.post("/{period_id}/refresh-totals", response_model=PeriodResponse, responses=NOT_FOUND)
async def refresh_totals(db: DbSession, office: Office, period_id: UUID) -> PeriodResponse:
    return await _transition(db, office, period_id, "refresh-totals")


@router.post("/{period_id}/compute", response_model=BatchResponse, responses=CONFLICT)
async def compute_period(db: DbSession, office: Office, period_id: UUID) -> BatchResponse:
    """Compute every active employee in the period."""
    batch = await office.compute_batch(period_id)
    await db.commit()
    return BatchResponse(
        period_id=batch.period_id,
        computed=[RecordResponse.model_validate(r) for r in batch.computed],
        failures={str(k): v for k, v in batch.failures.items()},
    )
