from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from drone_fleet.core.settings import Settings
from drone_fleet.repositories.sql import SqlFleetStore
from drone_fleet.services.accessory_catalog_service import AccessoryCatalogService
from drone_fleet.services.audit_service import AuditService
from drone_fleet.services.equipment_lifecycle_service import EquipmentLifecycleService
from drone_fleet.services.equipment_link_service import EquipmentLinkService
from drone_fleet.services.notification_service import AuditNotificationSink
from drone_fleet.services.role_service import RoleService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# -----------------
# Database
# -----------------

def get_db(request: Request):
    SessionLocal = request.app.state.db_sessionmaker
    db: Session = SessionLocal()  # type: ignore
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> SqlFleetStore:
    return SqlFleetStore(db)


def get_audit_service(request: Request) -> AuditService:
    return request.app.state.audit_service


def get_role_service(request: Request) -> RoleService:
    return request.app.state.role_service


# -----------------
# Caller context (not authenticated; identity comes from the hosting platform)
# -----------------

def get_acting_user(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    value = (x_user_id or "").strip()
    return value or None


def get_client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def get_notifier(
    request: Request,
    audit: AuditService = Depends(get_audit_service),
    user_id: Optional[str] = Depends(get_acting_user),
    client_ip: Optional[str] = Depends(get_client_ip),
) -> AuditNotificationSink:
    return AuditNotificationSink(
        request.app.state.db_sessionmaker,
        audit,
        user_id=user_id,
        client_ip=client_ip,
    )


# -----------------
# Services (per request, bound to the request's store)
# -----------------

def get_catalog_service(
    store: SqlFleetStore = Depends(get_store),
    notifier: AuditNotificationSink = Depends(get_notifier),
) -> AccessoryCatalogService:
    return AccessoryCatalogService(store, notifier)


def get_link_service(
    store: SqlFleetStore = Depends(get_store),
    notifier: AuditNotificationSink = Depends(get_notifier),
) -> EquipmentLinkService:
    return EquipmentLinkService(store, notifier=notifier)


def get_lifecycle_service(
    store: SqlFleetStore = Depends(get_store),
    notifier: AuditNotificationSink = Depends(get_notifier),
) -> EquipmentLifecycleService:
    return EquipmentLifecycleService(store, notifier=notifier)
