"""Sub-ledger entry models: attendance, overtime and deductions.

Each entry belongs to an employee and may be attached to the payroll record
that consumed it. Attachment is the ``payroll_record_id`` pointer.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from payroll_office.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

ATTENDANCE_STATUSES = ("present", "absent", "late", "half-day", "holiday", "leave")
OVERTIME_TYPES = ("regular", "holiday", "special-holiday", "rest-day")
APPROVAL_STATUSES = ("pending", "approved", "rejected")
DEDUCTION_TYPES = ("sss", "philhealth", "pag-ibig", "tax", "loan", "advance", "other")


class SubLedgerMixin:
    """Owner and attachment pointer shared by all sub-ledger entries."""

    ENTITY: ClassVar[str] = ""

    @declared_attr
    def employee_id(cls) -> Mapped[UUID]:
        return mapped_column(
            Uuid(as_uuid=True),
            ForeignKey("employee.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    @declared_attr
    def payroll_record_id(cls) -> Mapped[UUID | None]:
        return mapped_column(
            Uuid(as_uuid=True),
            ForeignKey("payroll_record.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        )

    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_attached(self) -> bool:
        return self.payroll_record_id is not None

    @property
    def entry_date(self) -> dt.date:
        raise NotImplementedError


class AttendanceEntry(UUIDPrimaryKeyMixin, SubLedgerMixin, Base, TimestampMixin):
    """Attendance log for one employee at one instant."""

    __tablename__ = "attendance_entry"
    ENTITY = "AttendanceEntry"

    timestamp: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    work_date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    source: Mapped[str] = mapped_column(String, nullable=False, default="manual")
    status: Mapped[str] = mapped_column(String, nullable=False, default="present")
    hours_worked: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("8.00")
    )
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    late_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("employee_id", "timestamp", name="attendance_employee_timestamp_unique"),
        CheckConstraint(
            "status IN ('present', 'absent', 'late', 'half-day', 'holiday', 'leave')",
            name="attendance_status_check",
        ),
    )

    @property
    def entry_date(self) -> dt.date:
        return self.work_date


class OvertimeEntry(UUIDPrimaryKeyMixin, SubLedgerMixin, Base, TimestampMixin):
    """Overtime worked on a given date."""

    __tablename__ = "overtime_entry"
    ENTITY = "OvertimeEntry"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("1.25"))
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, default="regular")
    approval_status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    approved_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("rate >= 1", name="overtime_rate_check"),
        CheckConstraint(
            "type IN ('regular', 'holiday', 'special-holiday', 'rest-day')",
            name="overtime_type_check",
        ),
        CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="overtime_approval_status_check",
        ),
    )

    @property
    def entry_date(self) -> dt.date:
        return self.date


class DeductionEntry(UUIDPrimaryKeyMixin, SubLedgerMixin, Base, TimestampMixin):
    """Ad-hoc deduction applied on a given date."""

    __tablename__ = "deduction_entry"
    ENTITY = "DeductionEntry"

    type: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    applied_date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="deduction_amount_check"),
        CheckConstraint(
            "percentage IS NULL OR (percentage >= 0 AND percentage <= 100)",
            name="deduction_percentage_check",
        ),
        CheckConstraint(
            "type IN ('sss', 'philhealth', 'pag-ibig', 'tax', 'loan', 'advance', 'other')",
            name="deduction_type_check",
        ),
    )

    @property
    def entry_date(self) -> dt.date:
        return self.applied_date


SUB_LEDGER_MODELS = (AttendanceEntry, OvertimeEntry, DeductionEntry)
