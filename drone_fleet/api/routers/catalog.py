from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from drone_fleet.api.deps import get_catalog_service, get_notifier, get_settings
from drone_fleet.api.schemas import CatalogEntryIn
from drone_fleet.core.settings import Settings
from drone_fleet.services.accessory_catalog_service import AccessoryCatalogService
from drone_fleet.services.notification_service import AuditNotificationSink

router = APIRouter(prefix="/accessory-catalog", tags=["accessory-catalog"])


def _brand(brand: Optional[str], settings: Settings) -> str:
    return (brand or "").strip() or settings.default_accessory_brand


@router.get("")
def list_catalog(
    brand: Optional[str] = Query(default=None, max_length=120),
    settings: Settings = Depends(get_settings),
    svc: AccessoryCatalogService = Depends(get_catalog_service),
):
    return [svc.entry_out(r) for r in svc.list_by_brand(_brand(brand, settings))]


@router.get("/categories")
def list_categories(
    brand: Optional[str] = Query(default=None, max_length=120),
    settings: Settings = Depends(get_settings),
    svc: AccessoryCatalogService = Depends(get_catalog_service),
):
    brand = _brand(brand, settings)
    return {"brand": brand, "categories": svc.categories(brand)}


@router.post("", status_code=201)
def create_catalog_entry(
    req: CatalogEntryIn,
    svc: AccessoryCatalogService = Depends(get_catalog_service),
    notifier: AuditNotificationSink = Depends(get_notifier),
):
    row = svc.create_entry(
        req.name,
        req.brand,
        req.category,
        subcategory=req.subcategory,
        description=req.description,
        model_compatibility=req.model_compatibility,
    )
    return {"entry": svc.entry_out(row), "message": notifier.last.message if notifier.last else None}
