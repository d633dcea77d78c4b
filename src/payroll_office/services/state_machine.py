"""Payroll period and payment status state machines."""

from __future__ import annotations

from enum import Enum

from payroll_office.exceptions import InvalidTransitionError


class PeriodStatus(str, Enum):
    """Payroll period status values."""

    OPEN = "open"
    PROCESSING = "processing"
    LOCKED = "locked"
    CLOSED = "closed"


class PaymentStatus(str, Enum):
    """Payroll record payment status values."""

    UNPAID = "unpaid"
    PAID = "paid"
    PARTIALLY_PAID = "partially-paid"
    CANCELLED = "cancelled"


class PeriodStateMachine:
    """State machine for payroll period status transitions.

    Allowed transitions:
    - open → processing
    - processing → open (reopen)
    - open | processing → locked
    - locked → open (unlock)
    - open | processing | locked → closed
    Closed is terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PeriodStatus.OPEN: [PeriodStatus.PROCESSING, PeriodStatus.LOCKED, PeriodStatus.CLOSED],
        PeriodStatus.PROCESSING: [PeriodStatus.OPEN, PeriodStatus.LOCKED, PeriodStatus.CLOSED],
        PeriodStatus.LOCKED: [PeriodStatus.OPEN, PeriodStatus.CLOSED],
        PeriodStatus.CLOSED: [],  # Terminal state
    }

    # Statuses where dates, name and working days can be edited
    EDITABLE = {PeriodStatus.OPEN, PeriodStatus.PROCESSING}

    # Statuses where records can be computed and entries attached
    COMPUTE_ALLOWED = {PeriodStatus.OPEN, PeriodStatus.PROCESSING}

    # Statuses where only payment fields of existing records may change
    FROZEN = {PeriodStatus.LOCKED, PeriodStatus.CLOSED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, reason: str | None = None
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def can_edit(cls, status: str) -> bool:
        return status in cls.EDITABLE

    @classmethod
    def can_compute(cls, status: str) -> bool:
        """Check if computation and attachment are allowed in this status."""
        return status in cls.COMPUTE_ALLOWED

    @classmethod
    def is_frozen(cls, status: str) -> bool:
        return status in cls.FROZEN

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


class PaymentStateMachine:
    """State machine for payroll record payment status.

    Allowed transitions:
    - unpaid → paid | partially-paid | cancelled
    - partially-paid → paid | cancelled
    Paid and cancelled are terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PaymentStatus.UNPAID: [
            PaymentStatus.PAID,
            PaymentStatus.PARTIALLY_PAID,
            PaymentStatus.CANCELLED,
        ],
        PaymentStatus.PARTIALLY_PAID: [PaymentStatus.PAID, PaymentStatus.CANCELLED],
        PaymentStatus.PAID: [],
        PaymentStatus.CANCELLED: [],
    }

    # Statuses in which the record may be recomputed
    RECOMPUTABLE = {PaymentStatus.UNPAID, PaymentStatus.PARTIALLY_PAID}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, reason: str | None = None
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def can_recompute(cls, status: str) -> bool:
        return status in cls.RECOMPUTABLE

    @classmethod
    def can_delete(cls, status: str) -> bool:
        return status == PaymentStatus.UNPAID
