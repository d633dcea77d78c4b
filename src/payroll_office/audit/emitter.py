"""Audit trail emitter and sinks.

Every mutating operation in the core calls ``AuditTrailEmitter.emit``
explicitly as its last step. Where the event goes is the sink's concern:

- SessionAuditSink writes an AuditLog row in the caller's transaction, so
  the audit row commits or rolls back together with the change.
- InMemoryAuditSink keeps events in a list, for tests and embedding.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_office.audit.events import AuditAction, AuditEvent
from payroll_office.clock import Clock, SystemClock
from payroll_office.models import AuditLog

logger = logging.getLogger(__name__)


@runtime_checkable
class AuditSink(Protocol):
    """Destination for audit events."""

    async def emit(self, event: AuditEvent) -> None:
        """Persist or forward an audit event."""
        ...


class SessionAuditSink:
    """Writes audit events as AuditLog rows in the current session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def emit(self, event: AuditEvent) -> None:
        self.session.add(
            AuditLog(
                entity=event.entity,
                entity_id=event.entity_id,
                action=event.action.value,
                old_data=event.old_data,
                new_data=event.new_data,
                actor=event.actor,
                timestamp=event.timestamp,
            )
        )


class InMemoryAuditSink:
    """Collects audit events in memory."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def emit(self, event: AuditEvent) -> None:
        self.events.append(event)

    def for_entity(self, entity: str, entity_id: Any = None) -> list[AuditEvent]:
        return [
            e
            for e in self.events
            if e.entity == entity and (entity_id is None or e.entity_id == str(entity_id))
        ]

    def clear(self) -> None:
        self.events.clear()


class AuditTrailEmitter:
    """Builds audit events stamped by the clock and hands them to a sink.

    Sink failures propagate to the caller so the surrounding transaction
    rolls back.
    """

    def __init__(
        self,
        sink: AuditSink,
        clock: Clock | None = None,
        actor: str = "system",
    ):
        self.sink = sink
        self.clock = clock or SystemClock()
        self.actor = actor

    async def emit(
        self,
        entity: str,
        entity_id: Any,
        action: AuditAction,
        old_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
    ) -> AuditEvent:
        event = AuditEvent(
            entity=entity,
            entity_id=str(entity_id),
            action=AuditAction(action),
            timestamp=self.clock.now(),
            old_data=old_data,
            new_data=new_data,
            actor=self.actor,
        )
        await self.sink.emit(event)
        logger.debug("Audit %s %s %s", event.action.value, entity, event.entity_id)
        return event
