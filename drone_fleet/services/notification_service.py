from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Optional, Protocol

from sqlalchemy.orm import Session

from drone_fleet.repositories.base import FleetStore
from drone_fleet.services.audit_service import AuditService
from drone_fleet.services.errors import ConflictError, NotFoundError, TransientError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    level: str  # success|error
    action: str
    message: str
    resource: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None: ...


def success(sink: NotificationSink, action: str, message: str, *, resource: Optional[str] = None, **meta: Any) -> None:
    sink.notify(Notification(level="success", action=action, message=message, resource=resource, meta=meta))


def failure(sink: NotificationSink, action: str, message: str, *, resource: Optional[str] = None, **meta: Any) -> None:
    sink.notify(Notification(level="error", action=action, message=message, resource=resource, meta=meta))


@contextmanager
def report_failures(
    sink: NotificationSink,
    store: FleetStore,
    action: str,
    generic_message: str,
    *,
    resource: Optional[str] = None,
) -> Iterator[None]:
    """Roll back and emit a failure notification for any service error.

    Validation and not-found messages are shown as-is; store conflicts and
    connectivity failures only surface ``generic_message``.
    """
    try:
        yield
    except (ValidationError, NotFoundError) as exc:
        store.rollback()
        failure(sink, action, str(exc), resource=resource)
        raise
    except (ConflictError, TransientError) as exc:
        store.rollback()
        logger.warning("%s failed in the store: %s", action, exc)
        failure(sink, action, generic_message, resource=resource, error=type(exc).__name__)
        raise


class LoggingNotificationSink:
    def notify(self, notification: Notification) -> None:
        extra = {"action": notification.action, "resource": notification.resource}
        if notification.level == "error":
            logger.warning("%s failed: %s", notification.action, notification.message, extra=extra)
        else:
            logger.info("%s: %s", notification.action, notification.message, extra=extra)


class AuditNotificationSink(LoggingNotificationSink):
    """Logs every outcome and records it in the audit log.

    Audit rows are written on a separate session so that a rolled-back
    request still leaves a trace of the failure.
    """

    def __init__(
        self,
        sessionmaker: Callable[[], Session],
        audit: AuditService,
        *,
        user_id: Optional[str] = None,
        client_ip: Optional[str] = None,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._audit = audit
        self._user_id = user_id
        self._client_ip = client_ip
        self.last: Optional[Notification] = None

    def notify(self, notification: Notification) -> None:
        super().notify(notification)
        self.last = notification
        try:
            with self._sessionmaker() as db:
                self._audit.log(
                    db,
                    action=notification.action,
                    user_id=self._user_id,
                    client_ip=self._client_ip,
                    outcome=notification.level,
                    resource=notification.resource,
                    metadata={"message": notification.message, **notification.meta},
                )
        except Exception:
            logger.exception("Failed to write audit entry for %s", notification.action)
