from __future__ import annotations

import logging

import pytest
from sqlalchemy import text

from drone_fleet.db.models import AuditLog, ServerLog
from drone_fleet.services.audit_service import AuditService
from drone_fleet.services.db_log_handler import DBLogHandler
from drone_fleet.services.notification_service import LoggingNotificationSink, failure


def test_sqlite_sessions_enforce_foreign_keys(db):
    assert db.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_sessions_keep_rows_after_commit(session_factory):
    assert session_factory.kw["expire_on_commit"] is False


def _record(name: str, message: str, **extra) -> logging.LogRecord:
    return logging.makeLogRecord({"name": name, "levelno": logging.WARNING, "levelname": "WARNING", "msg": message, **extra})


def test_log_handler_keeps_action_and_resource(session_factory):
    handler = DBLogHandler(session_factory)

    handler.handle(_record("drone_fleet.services", "link rejected", action="equipment.accessory.link", resource="12"))
    handler.handle(_record("sqlalchemy.engine.Engine", "database is locked"))

    with session_factory() as db:
        rows = db.query(ServerLog).all()
    assert [r.message for r in rows] == ["link rejected"]
    assert rows[0].meta["action"] == "equipment.accessory.link"
    assert rows[0].meta["resource"] == "12"


def test_failure_notifications_log_their_resource(caplog):
    with caplog.at_level(logging.WARNING, logger="drone_fleet.services.notification_service"):
        failure(LoggingNotificationSink(), "equipment.retire", "Equipment not found", resource="7")

    record = caplog.records[-1]
    assert record.action == "equipment.retire"
    assert record.resource == "7"


def test_audit_rows_record_outcome(db):
    entry = AuditService().log(
        db,
        action="equipment.accessory.link",
        user_id="pilot-1",
        client_ip="10.0.0.5",
        outcome="error",
        resource="x" * 300,
        metadata={"message": "quantity must be >= 1"},
    )

    stored = db.get(AuditLog, entry.id)
    assert stored.outcome == "error"
    assert len(stored.resource) == 200
    assert stored.meta == {"message": "quantity must be >= 1"}


def test_audit_rejects_unknown_outcome(db):
    with pytest.raises(ValueError):
        AuditService().log(db, action="equipment.create", user_id=None, client_ip=None, outcome="maybe")
