"""SQLAlchemy ORM models for the payroll office core."""

from payroll_office.models.audit import AuditLog
from payroll_office.models.base import Base, TimestampMixin
from payroll_office.models.employee import Employee
from payroll_office.models.ledger import (
    AttendanceEntry,
    DeductionEntry,
    OvertimeEntry,
    SubLedgerMixin,
)
from payroll_office.models.payroll import PayrollPeriod, PayrollRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "Employee",
    "PayrollPeriod",
    "PayrollRecord",
    "AttendanceEntry",
    "OvertimeEntry",
    "DeductionEntry",
    "SubLedgerMixin",
    "AuditLog",
]
