"""Employee model.

Employee maintenance lives outside the payroll core; this table backs the
default rate lookup and the batch computation roster.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_office.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

EMPLOYEE_STATUSES = ("active", "inactive", "terminated", "on-leave")


class Employee(UUIDPrimaryKeyMixin, Base, TimestampMixin):
    """Employee with pay rates."""

    __tablename__ = "employee"

    employee_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    hourly_rate: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    overtime_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("1.25")
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'terminated', 'on-leave')",
            name="employee_status_check",
        ),
    )

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"
