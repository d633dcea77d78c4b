"""Type definitions for the payroll computation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class RateConfig:
    """Employee rate configuration supplied by the rate provider."""

    daily_rate: Decimal
    hourly_rate: Decimal
    overtime_multiplier: Decimal = Decimal("1.25")

    def violations(self) -> list[str]:
        errors = []
        if self.daily_rate < 0:
            errors.append("daily_rate must be non-negative")
        if self.hourly_rate < 0:
            errors.append("hourly_rate must be non-negative")
        if self.overtime_multiplier < 1:
            errors.append("overtime_multiplier must be at least 1")
        return errors


@dataclass(frozen=True)
class AttendanceCounters:
    """Day tallies derived from attendance statuses."""

    days_present: int = 0
    days_absent: int = 0
    days_late: int = 0
    days_half_day: int = 0


@dataclass(frozen=True)
class SupplementalEarnings:
    """Earnings not derived from sub-ledger entries."""

    holiday_pay: Decimal = ZERO
    night_diff_pay: Decimal = ZERO
    allowance: Decimal = ZERO
    bonus: Decimal = ZERO

    @classmethod
    def from_record(cls, record: Any) -> SupplementalEarnings:
        """Carry the supplemental amounts of an existing payroll record."""
        return cls(
            holiday_pay=record.holiday_pay,
            night_diff_pay=record.night_diff_pay,
            allowance=record.allowance,
            bonus=record.bonus,
        )

    def violations(self) -> list[str]:
        return [
            f"{name} must be non-negative"
            for name in ("holiday_pay", "night_diff_pay", "allowance", "bonus")
            if getattr(self, name) < 0
        ]

    @property
    def total(self) -> Decimal:
        return self.holiday_pay + self.night_diff_pay + self.allowance + self.bonus


@dataclass
class DeductionBreakdown:
    """Deduction amounts per record column."""

    sss: Decimal = ZERO
    philhealth: Decimal = ZERO
    pagibig: Decimal = ZERO
    tax: Decimal = ZERO
    loan: Decimal = ZERO
    advance: Decimal = ZERO
    other: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return (
            self.sss
            + self.philhealth
            + self.pagibig
            + self.tax
            + self.loan
            + self.advance
            + self.other
        )


@dataclass
class PayrollFigures:
    """Result of aggregating one employee's entries for a period."""

    counters: AttendanceCounters
    basic_pay: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    earnings: SupplementalEarnings
    deductions: DeductionBreakdown
    gross_pay: Decimal
    deductions_total: Decimal
    net_pay: Decimal

    @property
    def is_negative_net(self) -> bool:
        return self.net_pay < 0

    def record_fields(self) -> dict[str, Any]:
        """Column values to write onto a PayrollRecord."""
        return {
            "days_present": self.counters.days_present,
            "days_absent": self.counters.days_absent,
            "days_late": self.counters.days_late,
            "days_half_day": self.counters.days_half_day,
            "basic_pay": self.basic_pay,
            "overtime_hours": self.overtime_hours,
            "overtime_pay": self.overtime_pay,
            "holiday_pay": self.earnings.holiday_pay,
            "night_diff_pay": self.earnings.night_diff_pay,
            "allowance": self.earnings.allowance,
            "bonus": self.earnings.bonus,
            "gross_pay": self.gross_pay,
            "sss_deduction": self.deductions.sss,
            "philhealth_deduction": self.deductions.philhealth,
            "pagibig_deduction": self.deductions.pagibig,
            "tax_deduction": self.deductions.tax,
            "loan_deduction": self.deductions.loan,
            "advance_deduction": self.deductions.advance,
            "other_deductions": self.deductions.other,
            "deductions_total": self.deductions_total,
            "net_pay": self.net_pay,
        }


@dataclass(frozen=True)
class PaymentInfo:
    """Payment details recorded when a payroll record is paid."""

    method: str | None = None
    reference: str | None = None
    paid_at: datetime | None = None
