from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from drone_fleet.api.deps import get_acting_user, get_audit_service, get_client_ip, get_db, get_role_service
from drone_fleet.services.audit_service import AuditService
from drone_fleet.services.role_service import RoleService

# Role grants back UI visibility checks (e.g. the deleted-equipment history
# screen). Callers are trusted; this router is not an authorization layer.
router = APIRouter(prefix="/users", tags=["roles"])


@router.get("/{user_id}/roles/{role}")
def has_role(
    user_id: str,
    role: str,
    db: Session = Depends(get_db),
    roles: RoleService = Depends(get_role_service),
):
    return {"user_id": user_id, "role": role, "has_role": roles.has_role(db, user_id, role)}


@router.put("/{user_id}/roles/{role}")
def grant_role(
    user_id: str,
    role: str,
    db: Session = Depends(get_db),
    roles: RoleService = Depends(get_role_service),
    audit: AuditService = Depends(get_audit_service),
    actor=Depends(get_acting_user),
    client_ip=Depends(get_client_ip),
):
    created = roles.grant_role(db, user_id, role)
    if created:
        audit.log(db, action="roles.grant", user_id=actor, client_ip=client_ip, resource=user_id, metadata={"role": role})
    return {"user_id": user_id, "role": role, "has_role": True, "created": created}


@router.delete("/{user_id}/roles/{role}")
def revoke_role(
    user_id: str,
    role: str,
    db: Session = Depends(get_db),
    roles: RoleService = Depends(get_role_service),
    audit: AuditService = Depends(get_audit_service),
    actor=Depends(get_acting_user),
    client_ip=Depends(get_client_ip),
):
    removed = roles.revoke_role(db, user_id, role)
    if removed:
        audit.log(db, action="roles.revoke", user_id=actor, client_ip=client_ip, resource=user_id, metadata={"role": role})
    return {"user_id": user_id, "role": role, "has_role": False, "removed": removed}
