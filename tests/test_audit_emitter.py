"""Tests for the audit trail emitter and sinks."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from payroll_office.audit import (
    AuditAction,
    AuditSink,
    AuditTrailEmitter,
    InMemoryAuditSink,
    SessionAuditSink,
)
from payroll_office.clock import FixedClock
from payroll_office.models import AuditLog

INSTANT = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)


class FailingSink:
    async def emit(self, event):
        raise RuntimeError("audit store unavailable")


class TestAuditTrailEmitter:
    async def test_event_is_stamped_by_clock(self):
        sink = InMemoryAuditSink()
        emitter = AuditTrailEmitter(sink, clock=FixedClock(INSTANT), actor="payroll-admin")
        entity_id = uuid4()

        event = await emitter.emit(
            "PayrollPeriod", entity_id, AuditAction.UPDATE, {"status": "open"}, {"status": "locked"}
        )

        assert sink.events == [event]
        assert event.entity_id == str(entity_id)
        assert event.timestamp == INSTANT
        assert event.actor == "payroll-admin"
        assert event.old_data == {"status": "open"}
        assert event.new_data == {"status": "locked"}
        assert event.to_dict()["action"] == "UPDATE"
        assert event.to_dict()["timestamp"] == "2024-02-01T12:00:00+00:00"

    async def test_action_accepts_plain_strings(self):
        sink = InMemoryAuditSink()
        event = await AuditTrailEmitter(sink).emit("PayrollRecord", "r-1", "DELETE")

        assert event.action is AuditAction.DELETE

    async def test_sink_failure_propagates(self):
        emitter = AuditTrailEmitter(FailingSink())

        with pytest.raises(RuntimeError, match="audit store unavailable"):
            await emitter.emit("PayrollRecord", "r-1", AuditAction.CREATE)

    def test_sinks_satisfy_protocol(self):
        sink = InMemoryAuditSink()

        assert isinstance(sink, AuditSink)
        assert isinstance(SessionAuditSink(None), AuditSink)


class TestInMemoryAuditSink:
    async def test_filters_by_entity(self):
        sink = InMemoryAuditSink()
        emitter = AuditTrailEmitter(sink)
        await emitter.emit("PayrollPeriod", "p-1", AuditAction.CREATE)
        await emitter.emit("PayrollRecord", "r-1", AuditAction.CREATE)
        await emitter.emit("PayrollRecord", "r-2", AuditAction.CREATE)

        assert len(sink.for_entity("PayrollRecord")) == 2
        assert [e.entity_id for e in sink.for_entity("PayrollRecord", "r-2")] == ["r-2"]

        sink.clear()
        assert sink.events == []


class TestSessionAuditSink:
    async def test_writes_audit_log_row(self, session):
        emitter = AuditTrailEmitter(
            SessionAuditSink(session), clock=FixedClock(INSTANT), actor="tester"
        )
        entity_id = uuid4()

        await emitter.emit(
            "AttendanceEntry", entity_id, AuditAction.CREATE, None, {"status": "present"}
        )
        await session.flush()

        result = await session.execute(select(AuditLog))
        row = result.scalar_one()
        assert row.entity == "AttendanceEntry"
        assert row.entity_id == str(entity_id)
        assert row.action == "CREATE"
        assert row.old_data is None
        assert row.new_data == {"status": "present"}
        assert row.actor == "tester"
