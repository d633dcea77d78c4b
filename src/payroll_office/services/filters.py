"""Typed query filters for listing periods, records and entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID


@dataclass(frozen=True)
class PeriodFilter:
    """Filter for listing payroll periods. Unset fields do not filter."""

    status: str | None = None
    period_type: str | None = None
    start_from: date | None = None
    end_to: date | None = None
    pay_date_from: date | None = None
    pay_date_to: date | None = None
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True)
class RecordFilter:
    """Filter for listing payroll records."""

    period_id: UUID | None = None
    employee_id: UUID | None = None
    payment_status: str | None = None
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True)
class EntryFilter:
    """Filter for listing sub-ledger entries of any kind."""

    employee_id: UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    attached: bool | None = None
    payroll_record_id: UUID | None = None
    limit: int | None = None
    offset: int = 0
