from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from drone_fleet.api.deps import get_acting_user, get_lifecycle_service, get_notifier
from drone_fleet.api.schemas import EquipmentIn
from drone_fleet.services.compatibility import EQUIPMENT_MODELS, models_for_manufacturer
from drone_fleet.services.equipment_lifecycle_service import EquipmentLifecycleService
from drone_fleet.services.notification_service import AuditNotificationSink

router = APIRouter(prefix="/equipment", tags=["equipment"])


def _message(notifier: AuditNotificationSink) -> Optional[str]:
    return notifier.last.message if notifier.last else None


# ---------- Model lookups ----------


@router.get("/models")
def list_manufacturers():
    return {"manufacturers": list(EQUIPMENT_MODELS.keys())}


@router.get("/models/{manufacturer}")
def list_models(manufacturer: str):
    return {"manufacturer": manufacturer, "models": models_for_manufacturer(manufacturer)}


# ---------- History (registered before /{equipment_id}) ----------


@router.get("/history")
def list_history(svc: EquipmentLifecycleService = Depends(get_lifecycle_service)):
    return [svc.history_out(r) for r in svc.list_history()]


# ---------- Equipment ----------


@router.get("")
def list_equipment(
    search: Optional[str] = Query(default=None, max_length=200),
    svc: EquipmentLifecycleService = Depends(get_lifecycle_service),
):
    return [svc.equipment_out(r) for r in svc.list_equipment(search)]


@router.post("", status_code=201)
def create_equipment(
    req: EquipmentIn,
    svc: EquipmentLifecycleService = Depends(get_lifecycle_service),
    notifier: AuditNotificationSink = Depends(get_notifier),
):
    row = svc.create_equipment(req.model_dump())
    return {"equipment": svc.equipment_out(row), "message": _message(notifier)}


@router.get("/{equipment_id}")
def get_equipment(equipment_id: int, svc: EquipmentLifecycleService = Depends(get_lifecycle_service)):
    return svc.equipment_out(svc.get_equipment(equipment_id))


@router.put("/{equipment_id}")
def update_equipment(
    equipment_id: int,
    req: EquipmentIn,
    svc: EquipmentLifecycleService = Depends(get_lifecycle_service),
    notifier: AuditNotificationSink = Depends(get_notifier),
):
    row = svc.update_equipment(equipment_id, req.model_dump())
    return {"equipment": svc.equipment_out(row), "message": _message(notifier)}


@router.delete("/{equipment_id}")
def delete_equipment(
    equipment_id: int,
    svc: EquipmentLifecycleService = Depends(get_lifecycle_service),
    notifier: AuditNotificationSink = Depends(get_notifier),
    user_id: Optional[str] = Depends(get_acting_user),
):
    record = svc.delete_equipment(equipment_id, deleted_by=user_id)
    meta = notifier.last.meta if notifier.last else {}
    return {
        "history": svc.history_out(record),
        "removed_links": int(meta.get("removed_links", 0)),
        "message": _message(notifier),
    }
