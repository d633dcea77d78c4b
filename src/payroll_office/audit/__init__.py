"""Audit trail for payroll mutations."""

from payroll_office.audit.emitter import (
    AuditSink,
    AuditTrailEmitter,
    InMemoryAuditSink,
    SessionAuditSink,
)
from payroll_office.audit.events import AuditAction, AuditEvent

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditSink",
    "AuditTrailEmitter",
    "InMemoryAuditSink",
    "SessionAuditSink",
]
