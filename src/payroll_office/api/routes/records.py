"""Payroll record API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from payroll_office.api.dependencies import DbSession, Office
from payroll_office.api.schemas import (
    ComputeRequest,
    ErrorResponse,
    PaymentDetailsRequest,
    PaymentRequest,
    RecordResponse,
    RecordSummaryResponse,
    RemarksRequest,
)
from payroll_office.calculators.types import ZERO, PaymentInfo, SupplementalEarnings
from payroll_office.services.filters import RecordFilter

router = APIRouter(prefix="/records", tags=["records"])

CONFLICT = {409: {"model": ErrorResponse}}
NOT_FOUND = {404: {"model": ErrorResponse}}


@router.post(
    "",
    response_model=RecordResponse,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND, **CONFLICT},
)
async def compute_payroll(
    db: DbSession, office: Office, payload: ComputeRequest
) -> RecordResponse:
    """Compute or recompute the record for an (employee, period) pair."""
    earnings = None
    if payload.has_earnings():
        earnings = SupplementalEarnings(
            holiday_pay=payload.holiday_pay or ZERO,
            night_diff_pay=payload.night_diff_pay or ZERO,
            allowance=payload.allowance or ZERO,
            bonus=payload.bonus or ZERO,
        )
    record = await office.compute_payroll(payload.employee_id, payload.period_id, earnings)
    await db.commit()
    return RecordResponse.model_validate(record)


@router.get("", response_model=list[RecordResponse])
async def list_records(
    office: Office,
    period_id: UUID | None = None,
    employee_id: UUID | None = None,
    payment_status: str | None = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[RecordResponse]:
    records = await office.list_records(
        RecordFilter(
            period_id=period_id,
            employee_id=employee_id,
            payment_status=payment_status,
            limit=limit,
            offset=offset,
        )
    )
    return [RecordResponse.model_validate(r) for r in records]


@router.get("/summary", response_model=RecordSummaryResponse)
async def record_summary(
    office: Office,
    period_id: UUID | None = None,
    employee_id: UUID | None = None,
) -> RecordSummaryResponse:
    """Totals and payment status counts."""
    summary = await office.record_summary(
        RecordFilter(period_id=period_id, employee_id=employee_id)
    )
    return RecordSummaryResponse(**summary)


@router.get("/{record_id}", response_model=RecordResponse, responses=NOT_FOUND)
async def get_record(office: Office, record_id: UUID) -> RecordResponse:
    return RecordResponse.model_validate(await office.get_record(record_id))


@router.delete(
    "/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, **CONFLICT},
)
async def delete_record(db: DbSession, office: Office, record_id: UUID) -> Response:
    """Delete an unpaid record and release its entries."""
    await office.delete_record(record_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{record_id}/pay", response_model=RecordResponse, responses=CONFLICT)
async def mark_as_paid(
    db: DbSession, office: Office, record_id: UUID, payload: PaymentRequest
) -> RecordResponse:
    record = await office.mark_as_paid(
        record_id,
        PaymentInfo(method=payload.method, reference=payload.reference, paid_at=payload.paid_at),
    )
    await db.commit()
    return RecordResponse.model_validate(record)


@router.post("/{record_id}/partial-payment", response_model=RecordResponse, responses=CONFLICT)
async def record_partial_payment(
    db: DbSession, office: Office, record_id: UUID, payload: PaymentRequest
) -> RecordResponse:
    record = await office.record_partial_payment(
        record_id,
        PaymentInfo(method=payload.method, reference=payload.reference, paid_at=payload.paid_at),
    )
    await db.commit()
    return RecordResponse.model_validate(record)


@router.post("/{record_id}/cancel", response_model=RecordResponse, responses=CONFLICT)
async def cancel_record(db: DbSession, office: Office, record_id: UUID) -> RecordResponse:
    record = await office.cancel_record(record_id)
    await db.commit()
    return RecordResponse.model_validate(record)


@router.patch("/{record_id}/remarks", response_model=RecordResponse, responses=NOT_FOUND)
async def update_remarks(
    db: DbSession, office: Office, record_id: UUID, payload: RemarksRequest
) -> RecordResponse:
    record = await office.update_record_remarks(record_id, payload.remarks)
    await db.commit()
    return RecordResponse.model_validate(record)


@router.patch("/{record_id}/payment-details", response_model=RecordResponse, responses=NOT_FOUND)
async def update_payment_details(
    db: DbSession, office: Office, record_id: UUID, payload: PaymentDetailsRequest
) -> RecordResponse:
    record = await office.update_payment_details(record_id, payload.method, payload.reference)
    await db.commit()
    return RecordResponse.model_validate(record)
