"""Input validation for periods and sub-ledger entries.

Validators collect every violated rule instead of stopping at the first one
and return normalized values alongside the violations.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from payroll_office.calculators.overtime import parse_clock
from payroll_office.models.ledger import (
    APPROVAL_STATUSES,
    ATTENDANCE_STATUSES,
    DEDUCTION_TYPES,
    OVERTIME_TYPES,
)
from payroll_office.models.payroll import PERIOD_STATUSES, PERIOD_TYPES

_MISSING = object()


def _missing(value: Any) -> bool:
    return value is None or value is _MISSING or value == ""


def _one_of(name: str, choices: tuple[str, ...]) -> str:
    return f"{name} must be one of: {', '.join(choices)}"


def coerce_date(value: Any, name: str, errors: list[str]) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        errors.append(f"{name} must be a valid date")
        return None


def coerce_datetime(value: Any, name: str, errors: list[str]) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        errors.append(f"{name} must be a valid date")
        return None


def coerce_time(value: Any, name: str, errors: list[str]) -> time | None:
    try:
        return parse_clock(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be in HH:MM or HH:MM:SS format")
        return None


def coerce_decimal(
    value: Any,
    name: str,
    errors: list[str],
    minimum: Decimal | None = Decimal("0"),
    maximum: Decimal | None = None,
    message: str | None = None,
) -> Decimal | None:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        errors.append(message or f"{name} must be a number")
        return None
    if not number.is_finite():
        errors.append(message or f"{name} must be a number")
        return None
    if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
        errors.append(message or f"{name} must be a non-negative number")
        return None
    return number


def coerce_uuid(value: Any, name: str, errors: list[str]) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        errors.append(f"{name} must be a valid id")
        return None


def generate_period_name(start_date: date, end_date: date, period_type: str) -> str:
    """e.g. ``semi-monthly Jan 1 - Jan 15, 2024``."""
    return (
        f"{period_type} {start_date:%b} {start_date.day} - "
        f"{end_date:%b} {end_date.day}, {end_date.year}"
    )


# ===== Periods =====


def validate_period_data(data: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Validate a full period payload.

    Overlap with other periods is checked separately by the lifecycle.
    """
    errors: list[str] = []
    clean: dict[str, Any] = {}

    for field_name in ("period_type", "start_date", "end_date", "pay_date"):
        if _missing(data.get(field_name, _MISSING)):
            errors.append(f"{field_name} is required")
    working_days = data.get("working_days", _MISSING)
    if working_days is None or working_days is _MISSING:
        errors.append("working_days is required")

    start = end = pay = None
    if not _missing(data.get("start_date")):
        start = coerce_date(data["start_date"], "start_date", errors)
    if not _missing(data.get("end_date")):
        end = coerce_date(data["end_date"], "end_date", errors)
    if not _missing(data.get("pay_date")):
        pay = coerce_date(data["pay_date"], "pay_date", errors)

    if start and end and start >= end:
        errors.append("end_date must be after start_date")
    if end and pay and pay < end:
        errors.append("pay_date must be on or after end_date")

    period_type = data.get("period_type")
    if not _missing(period_type) and period_type not in PERIOD_TYPES:
        errors.append(_one_of("period_type", PERIOD_TYPES))

    status = data.get("status")
    if not _missing(status) and status not in PERIOD_STATUSES:
        errors.append(_one_of("status", PERIOD_STATUSES))

    if working_days is not None and working_days is not _MISSING:
        if isinstance(working_days, bool) or not isinstance(working_days, int) or working_days < 0:
            errors.append("working_days must be a non-negative integer")
        else:
            clean["working_days"] = working_days

    name = data.get("name")
    if name is not None and not isinstance(name, str):
        errors.append("name must be a string")

    clean.update(
        name=name or None,
        period_type=period_type,
        start_date=start,
        end_date=end,
        pay_date=pay,
    )
    if not _missing(status):
        clean["status"] = status
    return clean, errors


# ===== Sub-ledger entries =====


def validate_attendance_data(
    data: Mapping[str, Any], partial: bool = False
) -> tuple[dict[str, Any], list[str]]:
    """Validate an attendance payload. ``partial`` skips required checks."""
    errors: list[str] = []
    clean: dict[str, Any] = {}

    if not partial:
        if _missing(data.get("employee_id")):
            errors.append("employee_id is required")
        if _missing(data.get("timestamp")):
            errors.append("timestamp is required")

    if not _missing(data.get("employee_id")):
        clean["employee_id"] = coerce_uuid(data["employee_id"], "employee_id", errors)
    if not _missing(data.get("timestamp")):
        stamp = coerce_datetime(data["timestamp"], "timestamp", errors)
        if stamp is not None:
            # Stored naive; the work date is the local calendar date of the stamp
            clean["timestamp"] = stamp.replace(tzinfo=None)
            clean["work_date"] = stamp.date()

    if "status" in data and data["status"] is not None:
        if data["status"] not in ATTENDANCE_STATUSES:
            errors.append(_one_of("status", ATTENDANCE_STATUSES))
        else:
            clean["status"] = data["status"]

    for field_name in ("hours_worked", "overtime_hours"):
        if data.get(field_name) is not None:
            clean[field_name] = coerce_decimal(data[field_name], field_name, errors)

    if data.get("late_minutes") is not None:
        minutes = data["late_minutes"]
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0:
            errors.append("late_minutes must be a non-negative integer")
        else:
            clean["late_minutes"] = minutes

    if data.get("source") is not None:
        clean["source"] = str(data["source"])
    if "note" in data:
        clean["note"] = data["note"]

    return clean, errors


def validate_overtime_data(
    data: Mapping[str, Any], partial: bool = False
) -> tuple[dict[str, Any], list[str]]:
    """Validate an overtime payload. ``partial`` skips required checks."""
    errors: list[str] = []
    clean: dict[str, Any] = {}

    if not partial:
        for field_name in ("employee_id", "date", "start_time", "end_time"):
            if _missing(data.get(field_name)):
                errors.append(f"{field_name} is required")

    if not _missing(data.get("employee_id")):
        clean["employee_id"] = coerce_uuid(data["employee_id"], "employee_id", errors)
    if not _missing(data.get("date")):
        clean["date"] = coerce_date(data["date"], "date", errors)
    for field_name in ("start_time", "end_time"):
        if not _missing(data.get(field_name)):
            clean[field_name] = coerce_time(data[field_name], field_name, errors)

    if data.get("type") is not None:
        if data["type"] not in OVERTIME_TYPES:
            errors.append(_one_of("type", OVERTIME_TYPES))
        else:
            clean["type"] = data["type"]

    if data.get("rate") is not None:
        clean["rate"] = coerce_decimal(
            data["rate"], "rate", errors, minimum=Decimal("1"), message="rate must be a number >= 1"
        )

    if data.get("approval_status") is not None:
        if data["approval_status"] not in APPROVAL_STATUSES:
            errors.append(_one_of("approval_status", APPROVAL_STATUSES))
        else:
            clean["approval_status"] = data["approval_status"]

    for field_name in ("approved_by", "note"):
        if field_name in data:
            clean[field_name] = data[field_name]

    return clean, errors


def validate_deduction_data(
    data: Mapping[str, Any], partial: bool = False
) -> tuple[dict[str, Any], list[str]]:
    """Validate a deduction payload. ``partial`` skips required checks."""
    errors: list[str] = []
    clean: dict[str, Any] = {}

    if not partial:
        for field_name in ("employee_id", "type", "amount"):
            if _missing(data.get(field_name)):
                errors.append(f"{field_name} is required")

    if not _missing(data.get("employee_id")):
        clean["employee_id"] = coerce_uuid(data["employee_id"], "employee_id", errors)

    if data.get("type") is not None:
        if data["type"] not in DEDUCTION_TYPES:
            errors.append(_one_of("type", DEDUCTION_TYPES))
        else:
            clean["type"] = data["type"]

    if data.get("amount") is not None:
        clean["amount"] = coerce_decimal(data["amount"], "amount", errors)

    if data.get("percentage") is not None:
        clean["percentage"] = coerce_decimal(
            data["percentage"],
            "percentage",
            errors,
            maximum=Decimal("100"),
            message="percentage must be a number between 0 and 100",
        )

    if not _missing(data.get("applied_date")):
        clean["applied_date"] = coerce_date(data["applied_date"], "applied_date", errors)

    if data.get("is_recurring") is not None:
        clean["is_recurring"] = bool(data["is_recurring"])

    for field_name in ("code", "description", "note"):
        if field_name in data:
            clean[field_name] = data[field_name]

    return clean, errors
