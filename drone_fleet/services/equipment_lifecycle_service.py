from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional

from drone_fleet.db.models import (
    EQUIPMENT_STATUSES,
    EQUIPMENT_TYPE_LABELS,
    EQUIPMENT_TYPES,
    Equipment,
    EquipmentHistoryRecord,
    utcnow,
)
from drone_fleet.repositories.base import FleetStore
from drone_fleet.services.errors import ValidationError
from drone_fleet.services.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
    report_failures,
    success,
)
from drone_fleet.services.sequence_service import SequenceService, format_sequence_number

logger = logging.getLogger(__name__)

# Fields copied verbatim into equipment_history on deletion.
ARCHIVED_FIELDS = (
    "sequence_number",
    "name",
    "equipment_type",
    "serial_number",
    "sisant_registration",
    "manufacturer",
    "model",
    "status",
    "acquisition_date",
    "value",
    "location",
    "observations",
    "responsible_user",
)

_OPTIONAL_TEXT_FIELDS = (
    "serial_number",
    "sisant_registration",
    "manufacturer",
    "model",
    "location",
    "responsible_user",
    "observations",
)


def _norm_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _norm_choice(value: Any) -> Optional[str]:
    text = _norm_text(value)
    return text.lower() if text is not None else None


def _norm_date(value: Any) -> Optional[dt.date]:
    if value in (None, ""):
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("acquisition_date must be an ISO date (YYYY-MM-DD)")


def _norm_value(value: Any) -> Optional[float]:
    # The form sends 0 for "no value".
    if value in (None, "", 0, "0"):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("value must be a number")
    if amount < 0:
        raise ValidationError("value must be >= 0")
    return amount


class EquipmentLifecycleService:
    """Equipment create/edit/delete, with deletion archived to equipment_history.

    ``active -> [edited]* -> deleted``; there is no undelete.
    """

    def __init__(self, store: FleetStore, *, notifier: Optional[NotificationSink] = None) -> None:
        self._store = store
        self._notifier = notifier or LoggingNotificationSink()
        self._sequence = SequenceService(store)

    def validate_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        cleaned = dict(payload or {})

        name = _norm_text(cleaned.get("name"))
        if name is None:
            raise ValidationError("name is required")

        equipment_type = _norm_choice(cleaned.get("equipment_type"))
        if equipment_type not in EQUIPMENT_TYPES:
            raise ValidationError("equipment_type must be one of " + ", ".join(EQUIPMENT_TYPES))

        status = _norm_choice(cleaned.get("status")) or "active"
        if status not in EQUIPMENT_STATUSES:
            raise ValidationError("status must be one of " + ", ".join(EQUIPMENT_STATUSES))

        out: dict[str, Any] = {
            "name": name,
            "equipment_type": equipment_type,
            "status": status,
            "acquisition_date": _norm_date(cleaned.get("acquisition_date")),
            "value": _norm_value(cleaned.get("value")),
        }
        for key in _OPTIONAL_TEXT_FIELDS:
            out[key] = _norm_text(cleaned.get(key))
        return out

    def equipment_out(self, row: Equipment) -> dict[str, Any]:
        return {
            "id": int(row.id),
            "sequence_number": int(row.sequence_number),
            "display_number": format_sequence_number(row.sequence_number),
            "name": row.name,
            "equipment_type": row.equipment_type,
            "type_label": EQUIPMENT_TYPE_LABELS.get(row.equipment_type, row.equipment_type),
            "serial_number": row.serial_number,
            "sisant_registration": row.sisant_registration,
            "manufacturer": row.manufacturer,
            "model": row.model,
            "status": row.status,
            "acquisition_date": row.acquisition_date.isoformat() if row.acquisition_date else None,
            "value": row.value,
            "location": row.location,
            "responsible_user": row.responsible_user,
            "observations": row.observations,
        }

    def history_out(self, row: EquipmentHistoryRecord) -> dict[str, Any]:
        return {
            "id": int(row.id),
            "original_equipment_id": int(row.original_equipment_id),
            "sequence_number": int(row.sequence_number),
            "display_number": format_sequence_number(row.sequence_number),
            "name": row.name,
            "equipment_type": row.equipment_type,
            "serial_number": row.serial_number,
            "sisant_registration": row.sisant_registration,
            "manufacturer": row.manufacturer,
            "model": row.model,
            "status": row.status,
            "acquisition_date": row.acquisition_date.isoformat() if row.acquisition_date else None,
            "value": row.value,
            "location": row.location,
            "observations": row.observations,
            "responsible_user": row.responsible_user,
            "deleted_at": row.deleted_at.isoformat() if row.deleted_at else None,
            "deleted_by": row.deleted_by,
        }

    # ---------------- queries ----------------

    def get_equipment(self, equipment_id: int) -> Equipment:
        return self._store.equipments.get(int(equipment_id))

    def list_equipment(self, search: Optional[str] = None) -> list[Equipment]:
        rows = self._store.equipments.list(order_by=("sequence_number",))
        term = (search or "").strip().lower()
        if not term:
            return rows

        def _hit(row: Equipment) -> bool:
            for text in (row.name, row.serial_number, row.manufacturer, row.model):
                if text and term in text.lower():
                    return True
            return term in str(row.sequence_number)

        return [r for r in rows if _hit(r)]

    def list_history(self) -> list[EquipmentHistoryRecord]:
        return self._store.history.list(order_by=("-deleted_at",))

    # ---------------- mutations ----------------

    def create_equipment(self, payload: dict[str, Any]) -> Equipment:
        action = "equipment.create"
        with report_failures(self._notifier, self._store, action, "Failed to create equipment"):
            values = self.validate_payload(payload)
            values["sequence_number"] = self._sequence.next_sequence_number()
            row = self._store.equipments.insert(values)
            self._store.commit()

        success(
            self._notifier,
            action,
            f"Equipment {format_sequence_number(row.sequence_number)} '{row.name}' created",
            resource=str(row.id),
            sequence_number=int(row.sequence_number),
        )
        return row

    def update_equipment(self, equipment_id: int, payload: dict[str, Any]) -> Equipment:
        action = "equipment.update"
        with report_failures(self._notifier, self._store, action, "Failed to update equipment", resource=str(equipment_id)):
            values = self.validate_payload(payload)
            row = self._store.equipments.update(int(equipment_id), values)
            self._store.commit()

        success(self._notifier, action, f"Equipment '{row.name}' updated", resource=str(row.id))
        return row

    def delete_equipment(self, equipment_id: int, *, deleted_by: Optional[str] = None) -> EquipmentHistoryRecord:
        """Archive the row into equipment_history, then delete it.

        The history insert is committed before anything is removed, so a
        failure in between can at worst leave an extra history row, never a
        deletion without history. Accessory links that point at the
        equipment, as parent or as mounted accessory, are removed with it.
        """
        action = "equipment.delete"
        with report_failures(self._notifier, self._store, action, "Failed to delete equipment", resource=str(equipment_id)):
            row = self._store.equipments.get(int(equipment_id))
            snapshot = {field: getattr(row, field) for field in ARCHIVED_FIELDS}
            snapshot.update(
                original_equipment_id=int(row.id),
                deleted_at=utcnow(),
                deleted_by=_norm_text(deleted_by),
            )
            record = self._store.history.insert(snapshot)
            self._store.commit()

            removed_links = self._remove_links_touching(int(row.id))
            self._store.equipments.delete(int(row.id))
            self._store.commit()

        if removed_links:
            logger.info("Removed %d accessory links with equipment %s", removed_links, equipment_id)
        success(
            self._notifier,
            action,
            f"Equipment {format_sequence_number(record.sequence_number)} '{record.name}' deleted",
            resource=str(equipment_id),
            history_id=int(record.id),
            removed_links=removed_links,
        )
        return record

    def _remove_links_touching(self, equipment_id: int) -> int:
        links = self._store.links
        rows = links.list({"parent_equipment_id": equipment_id}) + links.list({"accessory_equipment_id": equipment_id})
        seen: set[int] = set()
        for link in rows:
            if int(link.id) in seen:
                continue
            seen.add(int(link.id))
            links.delete(int(link.id))
        return len(seen)
