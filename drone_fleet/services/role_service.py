from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from drone_fleet.db.models import APP_ROLES, UserRole
from drone_fleet.repositories.sql import SqlFleetStore
from drone_fleet.services.errors import ValidationError

logger = logging.getLogger(__name__)


def _check_role(role: str) -> str:
    value = (role or "").strip().lower()
    if value not in APP_ROLES:
        raise ValidationError("role must be one of " + ", ".join(APP_ROLES))
    return value


class RoleService:
    """Role grants for the visibility predicate (e.g. who sees deleted-equipment history).

    This is UI gating only; nothing here authenticates the caller.
    """

    def has_role(self, db: Session, user_id: str, role: str) -> bool:
        return SqlFleetStore(db).has_role(user_id, role)

    def grant_role(self, db: Session, user_id: str, role: str) -> bool:
        """Returns False if the grant already existed."""
        role = _check_role(role)
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError("user_id is required")
        if self.has_role(db, user_id, role):
            return False
        db.add(UserRole(user_id=user_id, role=role))
        db.commit()
        logger.info("Granted role %s to user %s", role, user_id)
        return True

    def revoke_role(self, db: Session, user_id: str, role: str) -> bool:
        role = _check_role(role)
        row = db.query(UserRole).filter(UserRole.user_id == user_id, UserRole.role == role).one_or_none()
        if row is None:
            return False
        db.delete(row)
        db.commit()
        logger.info("Revoked role %s from user %s", role, user_id)
        return True

    def ensure_initial_admin(self, db: Session, *, user_id: str) -> None:
        """Grant admin to the configured bootstrap user if nobody holds it yet."""
        if not user_id:
            return
        if db.query(UserRole).filter(UserRole.role == "admin").count() > 0:
            return
        self.grant_role(db, user_id, "admin")
