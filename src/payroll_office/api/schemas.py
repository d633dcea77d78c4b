"""Pydantic schemas for API request/response models."""

import datetime as dt
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Flattened domain error."""

    detail: str
    code: str
    violations: list[str] | None = None


# ============================================================================
# Period schemas
# ============================================================================


class PeriodCreate(BaseModel):
    """Schema for creating a payroll period. Rules are checked by the lifecycle."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    period_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    pay_date: date | None = None
    working_days: int | None = None
    status: str | None = None


class PeriodUpdate(BaseModel):
    """Patch for an open or processing period."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    period_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    pay_date: date | None = None
    working_days: int | None = None


class PeriodResponse(BaseModel):
    """Schema for payroll period response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    period_type: str
    start_date: date
    end_date: date
    pay_date: date
    working_days: int
    status: str
    locked_at: datetime | None = None
    closed_at: datetime | None = None
    total_employees: int
    total_gross_pay: Decimal
    total_deductions: Decimal
    total_net_pay: Decimal
    created_at: datetime
    updated_at: datetime


class PeriodProposalResponse(BaseModel):
    period_type: str
    start_date: date
    end_date: date
    pay_date: date
    working_days: int
    name: str


class PeriodSummaryResponse(BaseModel):
    total_periods: int
    by_status: dict[str, int]
    total_gross_pay: Decimal
    total_deductions: Decimal
    total_net_pay: Decimal


# ============================================================================
# Record schemas
# ============================================================================


class ComputeRequest(BaseModel):
    """Compute or recompute one employee's record.

    Omitted supplemental earnings carry over from the prior record.
    """

    employee_id: UUID
    period_id: UUID
    holiday_pay: Decimal | None = None
    night_diff_pay: Decimal | None = None
    allowance: Decimal | None = None
    bonus: Decimal | None = None

    def has_earnings(self) -> bool:
        return any(
            v is not None for v in (self.holiday_pay, self.night_diff_pay, self.allowance, self.bonus)
        )


class PaymentRequest(BaseModel):
    method: str | None = None
    reference: str | None = None
    paid_at: datetime | None = None


class PaymentDetailsRequest(BaseModel):
    method: str | None = None
    reference: str | None = None


class RemarksRequest(BaseModel):
    remarks: str | None = None


class RecordResponse(BaseModel):
    """Schema for payroll record response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    period_id: UUID
    days_present: int
    days_absent: int
    days_late: int
    days_half_day: int
    basic_pay: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    holiday_pay: Decimal
    night_diff_pay: Decimal
    allowance: Decimal
    bonus: Decimal
    gross_pay: Decimal
    sss_deduction: Decimal
    philhealth_deduction: Decimal
    pagibig_deduction: Decimal
    tax_deduction: Decimal
    loan_deduction: Decimal
    advance_deduction: Decimal
    other_deductions: Decimal
    deductions_total: Decimal
    net_pay: Decimal
    computed_at: datetime | None = None
    payment_status: str
    paid_at: datetime | None = None
    payment_method: str | None = None
    payment_reference: str | None = None
    remarks: str | None = None


class BatchResponse(BaseModel):
    period_id: UUID
    computed: list[RecordResponse]
    failures: dict[str, str]


class RecordSummaryResponse(BaseModel):
    total_records: int
    by_payment_status: dict[str, int]
    total_gross_pay: Decimal
    total_deductions: Decimal
    total_net_pay: Decimal


# ============================================================================
# Sub-ledger schemas
# ============================================================================


class AttendanceCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    employee_id: UUID | None = None
    timestamp: datetime | None = None
    source: str | None = None
    status: str | None = None
    hours_worked: Decimal | None = None
    overtime_hours: Decimal | None = None
    late_minutes: int | None = None
    note: str | None = None


class AttendanceUpdate(AttendanceCreate):
    pass


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    payroll_record_id: UUID | None = None
    timestamp: datetime
    work_date: date
    source: str
    status: str
    hours_worked: Decimal
    overtime_hours: Decimal
    late_minutes: int
    note: str | None = None


class OvertimeCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    employee_id: UUID | None = None
    date: dt.date | None = None
    start_time: time | None = None
    end_time: time | None = None
    rate: Decimal | None = None
    type: str | None = None
    note: str | None = None


class OvertimeUpdate(OvertimeCreate):
    pass


class OvertimeDecision(BaseModel):
    approved_by: str | None = Field(default=None, description="Approver name")


class OvertimeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    payroll_record_id: UUID | None = None
    date: dt.date
    start_time: time
    end_time: time
    hours: Decimal
    rate: Decimal
    amount: Decimal
    type: str
    approval_status: str
    approved_by: str | None = None
    note: str | None = None


class DeductionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    employee_id: UUID | None = None
    type: str | None = None
    code: str | None = None
    description: str | None = None
    amount: Decimal | None = None
    percentage: Decimal | None = None
    is_recurring: bool | None = None
    applied_date: date | None = None
    note: str | None = None


class DeductionUpdate(DeductionCreate):
    pass


class DeductionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    payroll_record_id: UUID | None = None
    type: str
    code: str | None = None
    description: str | None = None
    amount: Decimal
    percentage: Decimal | None = None
    is_recurring: bool
    applied_date: date
    note: str | None = None


def patch_data(payload: BaseModel) -> dict[str, Any]:
    """Fields the client actually sent."""
    return payload.model_dump(exclude_unset=True)
