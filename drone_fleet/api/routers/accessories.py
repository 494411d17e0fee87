from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from drone_fleet.api.deps import get_catalog_service, get_link_service, get_notifier, get_settings, get_store
from drone_fleet.api.schemas import AccessoryLinkIn
from drone_fleet.core.settings import Settings
from drone_fleet.repositories.sql import SqlFleetStore
from drone_fleet.services.accessory_catalog_service import AccessoryCatalogService
from drone_fleet.services.equipment_link_service import EquipmentLinkService, build_selection
from drone_fleet.services.notification_service import AuditNotificationSink, report_failures

router = APIRouter(prefix="/equipment/{equipment_id}/accessories", tags=["accessories"])


@router.get("")
def list_accessories(equipment_id: int, svc: EquipmentLinkService = Depends(get_link_service)):
    return svc.list_links(equipment_id)


@router.get("/available-equipment")
def available_equipment(equipment_id: int, svc: EquipmentLinkService = Depends(get_link_service)):
    rows = svc.list_available_equipment_targets(equipment_id)
    return [
        {
            "id": int(r.id),
            "name": r.name,
            "equipment_type": r.equipment_type,
            "serial_number": r.serial_number,
            "status": r.status,
        }
        for r in rows
    ]


@router.get("/catalog")
def compatible_catalog(
    equipment_id: int,
    brand: Optional[str] = Query(default=None, max_length=120),
    category: Optional[str] = Query(default=None, max_length=120),
    settings: Settings = Depends(get_settings),
    catalog: AccessoryCatalogService = Depends(get_catalog_service),
    links: EquipmentLinkService = Depends(get_link_service),
):
    """Catalog entries of one brand that fit the parent's model."""
    parent = links.get_parent(equipment_id)
    brand = (brand or "").strip() or settings.default_accessory_brand
    rows = catalog.list_compatible(brand, parent.model, category=(category or "").strip() or None)
    return {
        "brand": brand,
        "model": parent.model,
        "categories": catalog.categories(brand),
        "items": [catalog.entry_out(r) for r in rows],
    }


@router.post("", status_code=201)
def link_accessory(
    equipment_id: int,
    req: AccessoryLinkIn,
    settings: Settings = Depends(get_settings),
    svc: EquipmentLinkService = Depends(get_link_service),
    store: SqlFleetStore = Depends(get_store),
    notifier: AuditNotificationSink = Depends(get_notifier),
):
    with report_failures(notifier, store, "equipment.accessory.link", "Failed to link accessory", resource=str(equipment_id)):
        selection = build_selection(
            req.accessory_type,
            catalog_id=req.accessory_catalog_id,
            custom_name=req.custom_name,
            category=req.category,
            brand=req.brand or settings.default_accessory_brand,
            equipment_id=req.accessory_equipment_id,
        )
    link = svc.create_link(equipment_id, selection, quantity=req.quantity, notes=req.notes)
    return {"link": svc.link_out(link), "message": notifier.last.message if notifier.last else None}


@router.delete("/{link_id}")
def unlink_accessory(
    equipment_id: int,
    link_id: int,
    svc: EquipmentLinkService = Depends(get_link_service),
    notifier: AuditNotificationSink = Depends(get_notifier),
):
    svc.remove_link(link_id, parent_id=equipment_id)
    return {"ok": True, "message": notifier.last.message if notifier.last else None}
