"""Typed exception hierarchy for the payroll office core.

Every exception carries a ``code`` class attribute so boundary layers can
map failures to transport responses without parsing messages:

    PayrollError
    +-- ValidationError          VALIDATION_FAILED
    +-- NotFoundError            NOT_FOUND
    +-- ImmutableStateError      IMMUTABLE_STATE
    +-- InvalidTransitionError   INVALID_TRANSITION
    +-- ConflictError            CONFLICT
    |   +-- AlreadyAttachedError ALREADY_ATTACHED
    +-- AlreadyPaidError         ALREADY_PAID
    +-- PeriodLockedError        PERIOD_LOCKED
"""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base exception for all payroll office errors."""

    code: str = "PAYROLL_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Machine-readable representation."""
        return {"code": self.code, "detail": str(self)}


class ValidationError(PayrollError):
    """Input failed validation. Carries every violated rule, not just the first."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, violations: list[str] | str):
        if isinstance(violations, str):
            violations = [violations]
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["violations"] = self.violations
        return data


class NotFoundError(PayrollError):
    """Entity with the given id does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} not found")


class ImmutableStateError(PayrollError):
    """Edit attempted on something frozen by payroll state.

    ``reason`` is one of the upper-case constants on this class.
    """

    code: str = "IMMUTABLE_STATE"

    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    PERIOD_LOCKED = "PERIOD_LOCKED"
    PERIOD_CLOSED = "PERIOD_CLOSED"
    RECORD_PAID = "RECORD_PAID"
    RECORD_CANCELLED = "RECORD_CANCELLED"
    RECORD_NOT_UNPAID = "RECORD_NOT_UNPAID"

    def __init__(self, message: str, reason: str):
        self.reason = reason
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class InvalidTransitionError(PayrollError):
    """Raised when an invalid state transition is attempted."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConflictError(PayrollError):
    """Uniqueness, overlap or concurrent-computation violation."""

    code: str = "CONFLICT"


class AlreadyAttachedError(ConflictError):
    """Sub-ledger entry already belongs to a different payroll record."""

    code: str = "ALREADY_ATTACHED"

    def __init__(self, entity: str, entry_id: Any, payroll_record_id: Any):
        self.entity = entity
        self.entry_id = entry_id
        self.payroll_record_id = payroll_record_id
        super().__init__(
            f"{entity} {entry_id} is already attached to payroll record {payroll_record_id}"
        )


class AlreadyPaidError(PayrollError):
    """Payroll record is paid and can no longer be recomputed or removed."""

    code: str = "ALREADY_PAID"

    def __init__(self, record_id: Any, message: str | None = None):
        self.record_id = record_id
        super().__init__(message or f"Payroll record {record_id} is already paid")


class PeriodLockedError(PayrollError):
    """Payroll period is locked or closed for computation/attachment."""

    code: str = "PERIOD_LOCKED"

    def __init__(self, period_id: Any, status: str, message: str | None = None):
        self.period_id = period_id
        self.status = status
        super().__init__(message or f"Payroll period {period_id} is {status}")
