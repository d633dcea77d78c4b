"""Pure aggregation of sub-ledger entries into payroll figures.

All monetary values are Decimal, quantized to cents with ROUND_HALF_UP.
Nothing here touches the database.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from payroll_office.calculators.types import (
    ZERO,
    AttendanceCounters,
    DeductionBreakdown,
    PayrollFigures,
    SupplementalEarnings,
)

if TYPE_CHECKING:
    from payroll_office.models import AttendanceEntry, DeductionEntry, OvertimeEntry

OUTPUT_PRECISION = Decimal("0.01")

# Deduction entry type -> DeductionBreakdown field
DEDUCTION_COLUMNS: dict[str, str] = {
    "sss": "sss",
    "philhealth": "philhealth",
    "pag-ibig": "pagibig",
    "tax": "tax",
    "loan": "loan",
    "advance": "advance",
    "other": "other",
}

NEGATIVE_NET_REMARK = "Negative net pay: deductions exceed gross pay."


def to_money(amount: Decimal | int | str) -> Decimal:
    """Quantize to cents."""
    return Decimal(amount).quantize(OUTPUT_PRECISION, rounding=ROUND_HALF_UP)


def tally_attendance(entries: Iterable[AttendanceEntry]) -> AttendanceCounters:
    """Count present/absent/late/half-day entries. Holiday and leave are not tallied.

    A late day is still a present day and counts in both tallies.
    """
    counts = {"present": 0, "absent": 0, "late": 0, "half-day": 0}
    for entry in entries:
        if entry.status in counts:
            counts[entry.status] += 1
        if entry.status == "late":
            counts["present"] += 1
    return AttendanceCounters(
        days_present=counts["present"],
        days_absent=counts["absent"],
        days_late=counts["late"],
        days_half_day=counts["half-day"],
    )


def is_overtime_eligible(entry: OvertimeEntry) -> bool:
    return entry.approval_status == "approved"


def sum_overtime(entries: Iterable[OvertimeEntry]) -> tuple[Decimal, Decimal]:
    """Return (hours, pay) over approved overtime entries."""
    hours = ZERO
    pay = ZERO
    for entry in entries:
        if not is_overtime_eligible(entry):
            continue
        hours += Decimal(entry.hours)
        pay += Decimal(entry.amount)
    return to_money(hours), to_money(pay)


def group_deductions(entries: Iterable[DeductionEntry]) -> DeductionBreakdown:
    """Sum deduction amounts into their record columns."""
    breakdown = DeductionBreakdown()
    for entry in entries:
        column = DEDUCTION_COLUMNS.get(entry.type, "other")
        setattr(breakdown, column, getattr(breakdown, column) + Decimal(entry.amount))
    for column in set(DEDUCTION_COLUMNS.values()):
        setattr(breakdown, column, to_money(getattr(breakdown, column)))
    return breakdown


def compute_gross(
    basic_pay: Decimal,
    overtime_pay: Decimal,
    earnings: SupplementalEarnings,
) -> Decimal:
    """gross = basic + overtime + holiday + night diff + allowance + bonus."""
    return to_money(basic_pay + overtime_pay + earnings.total)


def build_figures(
    counters: AttendanceCounters,
    basic_pay: Decimal,
    overtime: Iterable[OvertimeEntry],
    deductions: Iterable[DeductionEntry],
    earnings: SupplementalEarnings,
) -> PayrollFigures:
    """Assemble every derived monetary field of a payroll record."""
    basic_pay = to_money(basic_pay)
    overtime_hours, overtime_pay = sum_overtime(overtime)
    breakdown = group_deductions(deductions)
    earnings = SupplementalEarnings(
        holiday_pay=to_money(earnings.holiday_pay),
        night_diff_pay=to_money(earnings.night_diff_pay),
        allowance=to_money(earnings.allowance),
        bonus=to_money(earnings.bonus),
    )

    gross_pay = compute_gross(basic_pay, overtime_pay, earnings)
    deductions_total = to_money(breakdown.total)
    net_pay = gross_pay - deductions_total

    return PayrollFigures(
        counters=counters,
        basic_pay=basic_pay,
        overtime_hours=overtime_hours,
        overtime_pay=overtime_pay,
        earnings=earnings,
        deductions=breakdown,
        gross_pay=gross_pay,
        deductions_total=deductions_total,
        net_pay=net_pay,
    )


def apply_negative_net_remark(remarks: str | None, negative: bool) -> str | None:
    """Add or strip the negative-net note so recomputes stay stable."""
    lines = [line for line in (remarks or "").splitlines() if line != NEGATIVE_NET_REMARK]
    if negative:
        lines.append(NEGATIVE_NET_REMARK)
    text = "\n".join(lines)
    return text or None
