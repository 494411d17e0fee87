from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from drone_fleet.db.models import AuditLog

AUDIT_OUTCOMES = ("success", "error")


class AuditService:
    """Audit trail of fleet changes.

    Every equipment, catalog, link and role mutation leaves one row with
    its outcome, so rejected links and failed retirements are traceable
    to the operator (``X-User-Id``) and client address that attempted them.
    The caller owns ``db``; the row is committed immediately.
    """

    def log(
        self,
        db: Session,
        *,
        action: str,
        user_id: Optional[str],
        client_ip: Optional[str],
        outcome: str = "success",
        resource: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        if outcome not in AUDIT_OUTCOMES:
            raise ValueError(f"audit outcome must be one of {', '.join(AUDIT_OUTCOMES)}")
        entry = AuditLog(
            action=action,
            user_id=user_id,
            client_ip=client_ip,
            outcome=outcome,
            resource=resource[:200] if resource else None,
            meta=dict(metadata or {}),
        )
        db.add(entry)
        db.commit()
        return entry
