"""Sub-ledger entry API endpoints: attendance, overtime and deductions.

Updates and deletes of entries already consumed by a payroll record are
rejected with 409 and code IMMUTABLE_STATE, reason ALREADY_PROCESSED.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Response, status

from payroll_office.api.dependencies import DbSession, Office
from payroll_office.api.schemas import (
    AttendanceCreate,
    AttendanceResponse,
    AttendanceUpdate,
    DeductionCreate,
    DeductionResponse,
    DeductionUpdate,
    ErrorResponse,
    OvertimeCreate,
    OvertimeDecision,
    OvertimeResponse,
    OvertimeUpdate,
    patch_data,
)
from payroll_office.models import AttendanceEntry, DeductionEntry, OvertimeEntry
from payroll_office.services.filters import EntryFilter

router = APIRouter(tags=["entries"])

WRITE_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _entry_filter(
    employee_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    attached: bool | None = None,
    payroll_record_id: UUID | None = None,
) -> EntryFilter:
    return EntryFilter(
        employee_id=employee_id,
        date_from=date_from,
        date_to=date_to,
        attached=attached,
        payroll_record_id=payroll_record_id,
    )


# ============================================================================
# Attendance
# ============================================================================


@router.post(
    "/attendance",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_ERRORS,
)
async def create_attendance(
    db: DbSession, office: Office, payload: AttendanceCreate
) -> AttendanceResponse:
    entry = await office.create_attendance(patch_data(payload))
    await db.commit()
    return AttendanceResponse.model_validate(entry)


@router.get("/attendance", response_model=list[AttendanceResponse])
async def list_attendance(
    office: Office,
    employee_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    attached: bool | None = None,
    payroll_record_id: UUID | None = None,
) -> list[AttendanceResponse]:
    entries = await office.list_entries(
        AttendanceEntry,
        _entry_filter(employee_id, date_from, date_to, attached, payroll_record_id),
    )
    return [AttendanceResponse.model_validate(e) for e in entries]


@router.get("/attendance/{entry_id}", response_model=AttendanceResponse)
async def get_attendance(office: Office, entry_id: UUID) -> AttendanceResponse:
    return AttendanceResponse.model_validate(await office.get_entry(AttendanceEntry, entry_id))


@router.patch("/attendance/{entry_id}", response_model=AttendanceResponse, responses=WRITE_ERRORS)
async def update_attendance(
    db: DbSession, office: Office, entry_id: UUID, payload: AttendanceUpdate
) -> AttendanceResponse:
    entry = await office.update_attendance(entry_id, patch_data(payload))
    await db.commit()
    return AttendanceResponse.model_validate(entry)


@router.delete(
    "/attendance/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=WRITE_ERRORS,
)
async def delete_attendance(db: DbSession, office: Office, entry_id: UUID) -> Response:
    await office.delete_attendance(entry_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Overtime
# ============================================================================


@router.post(
    "/overtime",
    response_model=OvertimeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_ERRORS,
)
async def create_overtime(
    db: DbSession, office: Office, payload: OvertimeCreate
) -> OvertimeResponse:
    """Create a pending overtime entry; hours and amount are derived."""
    entry = await office.create_overtime(patch_data(payload))
    await db.commit()
    return OvertimeResponse.model_validate(entry)


@router.get("/overtime", response_model=list[OvertimeResponse])
async def list_overtime(
    office: Office,
    employee_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    attached: bool | None = None,
    payroll_record_id: UUID | None = None,
) -> list[OvertimeResponse]:
    entries = await office.list_entries(
        OvertimeEntry,
        _entry_filter(employee_id, date_from, date_to, attached, payroll_record_id),
    )
    return [OvertimeResponse.model_validate(e) for e in entries]


@router.get("/overtime/{entry_id}", response_model=OvertimeResponse)
async def get_overtime(office: Office, entry_id: UUID) -> OvertimeResponse:
    return OvertimeResponse.model_validate(await office.get_entry(OvertimeEntry, entry_id))


@router.patch("/overtime/{entry_id}", response_model=OvertimeResponse, responses=WRITE_ERRORS)
async def update_overtime(
    db: DbSession, office: Office, entry_id: UUID, payload: OvertimeUpdate
) -> OvertimeResponse:
    entry = await office.update_overtime(entry_id, patch_data(payload))
    await db.commit()
    return OvertimeResponse.model_validate(entry)


@router.post(
    "/overtime/{entry_id}/approve", response_model=OvertimeResponse, responses=WRITE_ERRORS
)
async def approve_overtime(
    db: DbSession, office: Office, entry_id: UUID, payload: OvertimeDecision
) -> OvertimeResponse:
    entry = await office.approve_overtime(entry_id, payload.approved_by or "")
    await db.commit()
    return OvertimeResponse.model_validate(entry)


@router.post(
    "/overtime/{entry_id}/reject", response_model=OvertimeResponse, responses=WRITE_ERRORS
)
async def reject_overtime(
    db: DbSession, office: Office, entry_id: UUID, payload: OvertimeDecision
) -> OvertimeResponse:
    entry = await office.reject_overtime(entry_id, payload.approved_by)
    await db.commit()
    return OvertimeResponse.model_validate(entry)


@router.delete(
    "/overtime/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=WRITE_ERRORS,
)
async def delete_overtime(db: DbSession, office: Office, entry_id: UUID) -> Response:
    await office.delete_overtime(entry_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Deductions
# ============================================================================


@router.post(
    "/deductions",
    response_model=DeductionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_ERRORS,
)
async def create_deduction(
    db: DbSession, office: Office, payload: DeductionCreate
) -> DeductionResponse:
    entry = await office.create_deduction(patch_data(payload))
    await db.commit()
    return DeductionResponse.model_validate(entry)


@router.get("/deductions", response_model=list[DeductionResponse])
async def list_deductions(
    office: Office,
    employee_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    attached: bool | None = None,
    payroll_record_id: UUID | None = None,
) -> list[DeductionResponse]:
    entries = await office.list_entries(
        DeductionEntry,
        _entry_filter(employee_id, date_from, date_to, attached, payroll_record_id),
    )
    return [DeductionResponse.model_validate(e) for e in entries]


@router.get("/deductions/{entry_id}", response_model=DeductionResponse)
async def get_deduction(office: Office, entry_id: UUID) -> DeductionResponse:
    return DeductionResponse.model_validate(await office.get_entry(DeductionEntry, entry_id))


@router.patch("/deductions/{entry_id}", response_model=DeductionResponse, responses=WRITE_ERRORS)
async def update_deduction(
    db: DbSession, office: Office, entry_id: UUID, payload: DeductionUpdate
) -> DeductionResponse:
    entry = await office.update_deduction(entry_id, patch_data(payload))
    await db.commit()
    return DeductionResponse.model_validate(entry)


@router.delete(
    "/deductions/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=WRITE_ERRORS,
)
async def delete_deduction(db: DbSession, office: Office, entry_id: UUID) -> Response:
    await office.delete_deduction(entry_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
