from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from drone_fleet.db.models import AccessoryCatalogEntry
from drone_fleet.repositories.base import FleetStore
from drone_fleet.services.compatibility import is_accessory_compatible
from drone_fleet.services.errors import ValidationError
from drone_fleet.services.notification_service import LoggingNotificationSink, NotificationSink, success

logger = logging.getLogger(__name__)

DEFAULT_ACCESSORY_BRAND = "DJI"


def _norm_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_compatibility(raw: Any) -> Optional[list[str]]:
    """Trim, drop blanks and duplicates, keep first-seen order. Empty -> None."""
    if raw in (None, ""):
        return None
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, Iterable):
        raise ValidationError("model_compatibility must be an array of strings")
    out: list[str] = []
    for item in raw:
        value = _norm_text(item)
        if value is None or value in out:
            continue
        out.append(value)
    return out or None


class AccessoryCatalogService:
    def __init__(self, store: FleetStore, notifier: Optional[NotificationSink] = None) -> None:
        self._store = store
        self._notifier = notifier or LoggingNotificationSink()

    def entry_out(self, row: AccessoryCatalogEntry) -> dict[str, Any]:
        return {
            "id": int(row.id),
            "brand": row.brand,
            "category": row.category,
            "subcategory": row.subcategory,
            "name": row.name,
            "description": row.description,
            "model_compatibility": list(row.model_compatibility) if row.model_compatibility else None,
        }

    def list_by_brand(self, brand: str) -> list[AccessoryCatalogEntry]:
        return self._store.catalog.list({"brand": brand}, order_by=("category", "name"))

    def categories(self, brand: str) -> list[str]:
        seen: list[str] = []
        for row in self.list_by_brand(brand):
            if row.category not in seen:
                seen.append(row.category)
        return seen

    def list_compatible(
        self,
        brand: str,
        equipment_model: Optional[str],
        *,
        category: Optional[str] = None,
    ) -> list[AccessoryCatalogEntry]:
        rows = self.list_by_brand(brand)
        if category:
            rows = [r for r in rows if r.category == category]
        return [r for r in rows if is_accessory_compatible(r.model_compatibility, equipment_model)]

    def find_entry(self, brand: Any, category: Any, name: Any) -> Optional[AccessoryCatalogEntry]:
        brand, category, name = _norm_text(brand), _norm_text(category), _norm_text(name)
        if brand is None or category is None or name is None:
            return None
        wanted = name.lower()
        for row in self._store.catalog.list({"brand": brand, "category": category}):
            if row.name.strip().lower() == wanted:
                return row
        return None

    def create_entry(
        self,
        name: Any,
        brand: Any,
        category: Any,
        compatible_model: Optional[str] = None,
        *,
        subcategory: Any = None,
        description: Any = None,
        model_compatibility: Any = None,
        commit: bool = True,
    ) -> AccessoryCatalogEntry:
        """Add a catalog entry.

        With ``compatible_model`` and no explicit ``model_compatibility`` the
        entry is restricted to that single model (the implicit path used when
        an operator types an accessory name while linking).
        With ``commit=False`` the caller owns the transaction.
        """
        name_v = _norm_text(name)
        brand_v = _norm_text(brand)
        category_v = _norm_text(category)
        if name_v is None:
            raise ValidationError("accessory name is required")
        if brand_v is None:
            raise ValidationError("brand is required")
        if category_v is None:
            raise ValidationError("category is required")

        compat = normalize_compatibility(model_compatibility)
        if compat is None:
            model_v = _norm_text(compatible_model)
            compat = [model_v] if model_v else None

        row = self._store.catalog.insert(
            {
                "name": name_v,
                "brand": brand_v,
                "category": category_v,
                "subcategory": _norm_text(subcategory),
                "description": _norm_text(description),
                "model_compatibility": compat,
            }
        )
        if commit:
            self._store.commit()
            success(
                self._notifier,
                "catalog.entry.create",
                f"Accessory '{row.name}' added to the {row.brand} catalog",
                resource=row.name,
                id=int(row.id),
            )
        return row

    def seed_from_yaml(self, path: str | Path) -> int:
        """Load a starter catalog if the table is still empty. Returns rows added."""
        p = Path(path)
        if not p.exists():
            logger.info("No accessory catalog seed file at %s", p)
            return 0
        if self._store.catalog.list():
            return 0

        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        added = 0
        for item in data.get("accessory_catalog") or []:
            if not isinstance(item, dict):
                continue
            name, brand, category = (_norm_text(item.get(k)) for k in ("name", "brand", "category"))
            if name is None or brand is None or category is None:
                logger.warning("Skipping catalog seed item without name/brand/category: %r", item)
                continue
            self._store.catalog.insert(
                {
                    "name": name,
                    "brand": brand,
                    "category": category,
                    "subcategory": _norm_text(item.get("subcategory")),
                    "description": _norm_text(item.get("description")),
                    "model_compatibility": normalize_compatibility(item.get("model_compatibility")),
                }
            )
            added += 1
        self._store.commit()
        logger.info("Seeded %d accessory catalog entries from %s", added, p)
        return added

    def merge_entries(self, items: Iterable[Any]) -> tuple[list[AccessoryCatalogEntry], list[Any]]:
        """Add catalog items not already present for the same brand/category/name.

        Returns ``(added, skipped)``; skipped holds duplicates and invalid items.
        Everything is committed in one transaction.
        """
        added: list[AccessoryCatalogEntry] = []
        skipped: list[Any] = []
        for item in items:
            if not isinstance(item, dict):
                skipped.append(item)
                continue
            name, brand, category = (item.get(k) for k in ("name", "brand", "category"))
            if self.find_entry(brand, category, name) is not None:
                skipped.append(item)
                continue
            try:
                row = self.create_entry(
                    name,
                    brand,
                    category,
                    subcategory=item.get("subcategory"),
                    description=item.get("description"),
                    model_compatibility=item.get("model_compatibility"),
                    commit=False,
                )
            except ValidationError as exc:
                logger.warning("Skipping catalog item %r: %s", item, exc)
                skipped.append(item)
                continue
            added.append(row)
        self._store.commit()
        return added, skipped
