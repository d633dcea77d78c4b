"""Audit event types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class AuditAction(str, Enum):
    """Kinds of audited mutation."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class AuditEvent:
    """Immutable record of one mutation with before/after snapshots."""

    entity: str
    entity_id: str
    action: AuditAction
    timestamp: datetime
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    actor: str = "system"
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "entity_id": self.entity_id,
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "old_data": self.old_data,
            "new_data": self.new_data,
            "actor": self.actor,
        }
