"""Payroll arithmetic: pure functions over sub-ledger entries."""

from payroll_office.calculators.aggregation import (
    DEDUCTION_COLUMNS,
    NEGATIVE_NET_REMARK,
    build_figures,
    tally_attendance,
    to_money,
)
from payroll_office.calculators.rate_resolver import (
    BasicPayPolicy,
    DailyRateBasicPay,
    EmployeeRateProvider,
    RateProvider,
)
from payroll_office.calculators.types import (
    AttendanceCounters,
    DeductionBreakdown,
    PaymentInfo,
    PayrollFigures,
    RateConfig,
    SupplementalEarnings,
)

__all__ = [
    "DEDUCTION_COLUMNS",
    "NEGATIVE_NET_REMARK",
    "build_figures",
    "tally_attendance",
    "to_money",
    "BasicPayPolicy",
    "DailyRateBasicPay",
    "EmployeeRateProvider",
    "RateProvider",
    "AttendanceCounters",
    "DeductionBreakdown",
    "PaymentInfo",
    "PayrollFigures",
    "RateConfig",
    "SupplementalEarnings",
]
