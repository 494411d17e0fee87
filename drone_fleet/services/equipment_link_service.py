from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union

from drone_fleet.db.models import (
    ACCESSORY_TYPES,
    EQUIPMENT_TYPE_LABELS,
    AccessoryCatalogEntry,
    Equipment,
    EquipmentAccessoryLink,
)
from drone_fleet.repositories.base import FleetStore
from drone_fleet.services.accessory_catalog_service import (
    DEFAULT_ACCESSORY_BRAND,
    AccessoryCatalogService,
    _norm_text,
)
from drone_fleet.services.errors import NotFoundError, ValidationError
from drone_fleet.services.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
    report_failures,
    success,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogItemSelection:
    catalog_id: int
    kind: ClassVar[str] = "catalog"


@dataclass(frozen=True)
class FreeTextCatalogSelection:
    name: str
    category: str
    brand: str = DEFAULT_ACCESSORY_BRAND
    kind: ClassVar[str] = "catalog"


@dataclass(frozen=True)
class EquipmentItemSelection:
    equipment_id: int
    kind: ClassVar[str] = "equipment"


LinkSelection = Union[CatalogItemSelection, FreeTextCatalogSelection, EquipmentItemSelection]


def _opt_id(value: Any, field: str) -> Optional[int]:
    if value in (None, "", 0, "0"):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer id")


def build_selection(
    accessory_type: Any,
    *,
    catalog_id: Any = None,
    custom_name: Any = None,
    category: Any = None,
    brand: Any = None,
    equipment_id: Any = None,
) -> LinkSelection:
    """Turn the accessory form fields into exactly one selection variant.

    A picked catalog id wins over a typed name.
    """
    kind = _norm_text(accessory_type)
    kind = kind.lower() if kind else None
    if kind not in ACCESSORY_TYPES:
        raise ValidationError("accessory_type must be one of catalog, equipment")

    if kind == "equipment":
        target = _opt_id(equipment_id, "accessory_equipment_id")
        if target is None:
            raise ValidationError("Select an equipment to link")
        return EquipmentItemSelection(equipment_id=target)

    picked = _opt_id(catalog_id, "accessory_catalog_id")
    if picked is not None:
        return CatalogItemSelection(catalog_id=picked)

    name = _norm_text(custom_name)
    if name is None:
        raise ValidationError("Select a catalog accessory or type a name")
    category_v = _norm_text(category)
    if category_v is None:
        raise ValidationError("category is required for a new accessory")
    return FreeTextCatalogSelection(name=name, category=category_v, brand=_norm_text(brand) or DEFAULT_ACCESSORY_BRAND)


def _check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool):
        raise ValidationError("quantity must be an integer >= 1")
    try:
        value = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be an integer >= 1")
    if value != quantity and not isinstance(quantity, str):
        raise ValidationError("quantity must be an integer >= 1")
    if value < 1:
        raise ValidationError("quantity must be >= 1")
    return value


def _check_selection(selection: Any) -> LinkSelection:
    """Re-check a selection built outside `build_selection`; returns it normalised."""
    if isinstance(selection, EquipmentItemSelection):
        target = _opt_id(selection.equipment_id, "accessory_equipment_id")
        if target is None:
            raise ValidationError("Select an equipment to link")
        return EquipmentItemSelection(equipment_id=target)
    if isinstance(selection, CatalogItemSelection):
        picked = _opt_id(selection.catalog_id, "accessory_catalog_id")
        if picked is None:
            raise ValidationError("Select a catalog accessory or type a name")
        return CatalogItemSelection(catalog_id=picked)
    if isinstance(selection, FreeTextCatalogSelection):
        name = _norm_text(selection.name)
        if name is None:
            raise ValidationError("Select a catalog accessory or type a name")
        category = _norm_text(selection.category)
        if category is None:
            raise ValidationError("category is required for a new accessory")
        return FreeTextCatalogSelection(
            name=name, category=category, brand=_norm_text(selection.brand) or DEFAULT_ACCESSORY_BRAND
        )
    raise ValidationError("Select a catalog accessory, type a name, or pick an equipment")


class EquipmentLinkService:
    """Accessories attached to a parent equipment.

    An accessory is either a reusable catalog entry or another equipment
    record mounted on the parent (e.g. a spare battery with its own serial).
    """

    def __init__(
        self,
        store: FleetStore,
        *,
        catalog: Optional[AccessoryCatalogService] = None,
        notifier: Optional[NotificationSink] = None,
    ) -> None:
        self._store = store
        self._notifier = notifier or LoggingNotificationSink()
        self._catalog = catalog or AccessoryCatalogService(store, self._notifier)

    # ---------------- queries ----------------

    def get_parent(self, parent_id: int) -> Equipment:
        return self._store.equipments.get(int(parent_id))

    def _linked_equipment_ids(self, parent_id: int) -> set[int]:
        rows = self._store.links.list({"parent_equipment_id": int(parent_id), "accessory_type": "equipment"})
        return {int(r.accessory_equipment_id) for r in rows if r.accessory_equipment_id is not None}

    def list_available_equipment_targets(self, parent_id: int) -> list[Equipment]:
        """Equipment that may still be mounted on ``parent_id``, by name.

        Always re-read: other operators may have linked something meanwhile.
        """
        self._store.equipments.get(int(parent_id))
        linked = self._linked_equipment_ids(parent_id)
        rows = self._store.equipments.list(exclude={"id": int(parent_id)}, order_by=("name",))
        return [r for r in rows if int(r.id) not in linked]

    def list_links(self, parent_id: int) -> list[dict[str, Any]]:
        self._store.equipments.get(int(parent_id))
        rows = self._store.links.list({"parent_equipment_id": int(parent_id)}, order_by=("created_at",))
        return [self.link_out(r) for r in rows]

    def _resolve_catalog(self, catalog_id: Optional[int]) -> Optional[AccessoryCatalogEntry]:
        if catalog_id is None:
            return None
        try:
            return self._store.catalog.get(int(catalog_id))
        except NotFoundError:
            return None

    def _resolve_equipment(self, equipment_id: Optional[int]) -> Optional[Equipment]:
        if equipment_id is None:
            return None
        try:
            return self._store.equipments.get(int(equipment_id))
        except NotFoundError:
            return None

    def link_out(self, row: EquipmentAccessoryLink) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": int(row.id),
            "parent_equipment_id": int(row.parent_equipment_id),
            "accessory_type": row.accessory_type,
            "accessory_catalog_id": row.accessory_catalog_id,
            "accessory_equipment_id": row.accessory_equipment_id,
            "quantity": int(row.quantity),
            "notes": row.notes,
            "display_name": "Name unavailable",
            "type_label": "Type unavailable",
            "serial_or_brand": "-",
            "status": None,
            "accessory": None,
        }
        if row.accessory_type == "equipment":
            eq = self._resolve_equipment(row.accessory_equipment_id)
            if eq is not None:
                out.update(
                    display_name=eq.name,
                    type_label=EQUIPMENT_TYPE_LABELS.get(eq.equipment_type, eq.equipment_type),
                    serial_or_brand=eq.serial_number or "-",
                    status=eq.status,
                    accessory={
                        "id": int(eq.id),
                        "name": eq.name,
                        "equipment_type": eq.equipment_type,
                        "serial_number": eq.serial_number,
                        "status": eq.status,
                    },
                )
        elif row.accessory_type == "catalog":
            entry = self._resolve_catalog(row.accessory_catalog_id)
            if entry is not None:
                out.update(
                    display_name=entry.name,
                    type_label=entry.category,
                    serial_or_brand=entry.brand,
                    status="catalog",
                    accessory={
                        "id": int(entry.id),
                        "name": entry.name,
                        "brand": entry.brand,
                        "category": entry.category,
                        "subcategory": entry.subcategory,
                    },
                )
        return out

    # ---------------- mutations ----------------

    def create_link(
        self,
        parent_id: int,
        selection: LinkSelection,
        quantity: Any = 1,
        notes: Any = None,
    ) -> EquipmentAccessoryLink:
        action = "equipment.accessory.link"
        with report_failures(self._notifier, self._store, action, "Failed to link accessory", resource=str(parent_id)):
            qty = _check_quantity(quantity)
            selection = _check_selection(selection)
            if isinstance(selection, EquipmentItemSelection) and int(selection.equipment_id) == int(parent_id):
                raise ValidationError("An equipment cannot be linked to itself")

            parent = self._store.equipments.get(int(parent_id))
            values: dict[str, Any] = {
                "parent_equipment_id": int(parent.id),
                "accessory_type": selection.kind,
                "quantity": qty,
                "notes": _norm_text(notes),
            }

            if isinstance(selection, EquipmentItemSelection):
                target = self._store.equipments.get(int(selection.equipment_id))
                if int(target.id) in self._linked_equipment_ids(int(parent.id)):
                    raise ValidationError(f"'{target.name}' is already linked to this equipment")
                values["accessory_equipment_id"] = int(target.id)
                label = target.name
            elif isinstance(selection, CatalogItemSelection):
                entry = self._store.catalog.get(int(selection.catalog_id))
                values["accessory_catalog_id"] = int(entry.id)
                label = entry.name
            else:
                entry = self._catalog.find_entry(selection.brand, selection.category, selection.name)
                if entry is None:
                    entry = self._catalog.create_entry(
                        selection.name,
                        selection.brand,
                        selection.category,
                        compatible_model=parent.model,
                        commit=False,
                    )
                    logger.info("Created catalog entry %s (%s) while linking to equipment %s", entry.name, entry.id, parent.id)
                values["accessory_catalog_id"] = int(entry.id)
                label = entry.name

            link = self._store.links.insert(values)
            self._store.commit()

        success(
            self._notifier,
            action,
            f"Accessory '{label}' linked to '{parent.name}'",
            resource=str(parent.id),
            link_id=int(link.id),
        )
        return link

    def remove_link(self, link_id: int, *, parent_id: Optional[int] = None) -> None:
        """Hard-delete the junction row. Catalog entry and target equipment stay."""
        action = "equipment.accessory.unlink"
        with report_failures(self._notifier, self._store, action, "Failed to unlink accessory", resource=str(link_id)):
            link = self._store.links.get(int(link_id))
            if parent_id is not None and int(link.parent_equipment_id) != int(parent_id):
                raise NotFoundError("accessory link", link_id)
            self._store.links.delete(int(link.id))
            self._store.commit()

        success(self._notifier, action, "Accessory unlinked", resource=str(link_id), parent_id=int(link.parent_equipment_id))
