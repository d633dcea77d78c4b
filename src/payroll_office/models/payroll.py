"""Payroll period and payroll record models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from payroll_office.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

PERIOD_TYPES = ("weekly", "bi-weekly", "semi-monthly", "monthly")
PERIOD_STATUSES = ("open", "processing", "locked", "closed")
PAYMENT_STATUSES = ("unpaid", "paid", "partially-paid", "cancelled")

ZERO = Decimal("0.00")


def _money() -> Any:
    return mapped_column(Numeric(15, 2), nullable=False, default=ZERO)


# ===== Periods =====


class PayrollPeriod(UUIDPrimaryKeyMixin, Base, TimestampMixin):
    """Payroll cycle with a fixed date range and pay date.

    Totals are written only by the period totals aggregator.
    """

    __tablename__ = "payroll_period"

    name: Mapped[str] = mapped_column(String, nullable=False)
    period_type: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    working_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String, nullable=False, default="open")
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    total_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gross_pay: Mapped[Decimal] = _money()
    total_deductions: Mapped[Decimal] = _money()
    total_net_pay: Mapped[Decimal] = _money()

    __table_args__ = (
        CheckConstraint(
            "period_type IN ('weekly', 'bi-weekly', 'semi-monthly', 'monthly')",
            name="payroll_period_type_check",
        ),
        CheckConstraint(
            "status IN ('open', 'processing', 'locked', 'closed')",
            name="payroll_period_status_check",
        ),
        CheckConstraint("end_date > start_date", name="payroll_period_dates_check"),
        CheckConstraint("pay_date >= end_date", name="payroll_period_pay_date_check"),
        CheckConstraint("working_days >= 0", name="payroll_period_working_days_check"),
    )

    def contains(self, day: date) -> bool:
        """Whether a calendar date falls inside the inclusive period range."""
        return self.start_date <= day <= self.end_date


# ===== Records =====


class PayrollRecord(UUIDPrimaryKeyMixin, Base, TimestampMixin):
    """Computed payroll for one employee in one period.

    gross_pay, deductions_total and net_pay are derived by the
    computation engine and never written by callers.
    """

    __tablename__ = "payroll_record"

    employee_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payroll_period.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Attendance counters
    days_present: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_absent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_late: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_half_day: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Earnings
    basic_pay: Mapped[Decimal] = _money()
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=ZERO
    )
    overtime_pay: Mapped[Decimal] = _money()
    holiday_pay: Mapped[Decimal] = _money()
    night_diff_pay: Mapped[Decimal] = _money()
    allowance: Mapped[Decimal] = _money()
    bonus: Mapped[Decimal] = _money()
    gross_pay: Mapped[Decimal] = _money()

    # Deductions
    sss_deduction: Mapped[Decimal] = _money()
    philhealth_deduction: Mapped[Decimal] = _money()
    pagibig_deduction: Mapped[Decimal] = _money()
    tax_deduction: Mapped[Decimal] = _money()
    loan_deduction: Mapped[Decimal] = _money()
    advance_deduction: Mapped[Decimal] = _money()
    other_deductions: Mapped[Decimal] = _money()
    deductions_total: Mapped[Decimal] = _money()

    net_pay: Mapped[Decimal] = _money()
    computed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Payment
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="unpaid")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "period_id", name="payroll_record_employee_period_unique"),
        CheckConstraint(
            "payment_status IN ('unpaid', 'paid', 'partially-paid', 'cancelled')",
            name="payroll_record_payment_status_check",
        ),
    )
