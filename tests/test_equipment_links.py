from __future__ import annotations

import pytest

from drone_fleet.services.accessory_catalog_service import AccessoryCatalogService
from drone_fleet.services.equipment_lifecycle_service import EquipmentLifecycleService
from drone_fleet.services.equipment_link_service import (
    CatalogItemSelection,
    EquipmentItemSelection,
    EquipmentLinkService,
    FreeTextCatalogSelection,
    build_selection,
)
from drone_fleet.services.errors import NotFoundError, ValidationError


@pytest.fixture()
def fleet(store, sink):
    equipment = EquipmentLifecycleService(store, notifier=sink)
    catalog = AccessoryCatalogService(store, sink)
    links = EquipmentLinkService(store, catalog=catalog, notifier=sink)
    return equipment, catalog, links


def _counts(store) -> tuple[int, int]:
    return len(store.catalog.list()), len(store.links.list())


def test_free_text_creates_one_catalog_entry_and_one_link(store, fleet, sink):
    equipment, catalog, links = fleet
    drone = equipment.create_equipment(
        {"name": "Mapper", "equipment_type": "drone", "manufacturer": "DJI", "model": "Mavic 3 Pro"}
    )

    link = links.create_link(drone.id, FreeTextCatalogSelection(name="Extra Battery", category="Batteries"))

    assert _counts(store) == (1, 1)
    entry = catalog.find_entry("DJI", "Batteries", "extra battery")
    assert entry is not None
    assert entry.model_compatibility == ["Mavic 3 Pro"]
    assert link.accessory_type == "catalog"
    assert link.accessory_catalog_id == entry.id
    assert link.quantity == 1
    assert sink.last.action == "equipment.accessory.link"
    assert sink.last.level == "success"

    listed = links.list_links(drone.id)
    assert listed[0]["display_name"] == "Extra Battery"
    assert listed[0]["type_label"] == "Batteries"
    assert listed[0]["serial_or_brand"] == "DJI"


def test_free_text_reuses_matching_catalog_entry(store, fleet):
    equipment, catalog, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone", "model": "Mavic 3"})
    existing = catalog.create_entry("Extra Battery", "DJI", "Batteries", model_compatibility=["Mavic 3"])

    link = links.create_link(drone.id, FreeTextCatalogSelection(name="extra battery", category="Batteries"))

    assert link.accessory_catalog_id == existing.id
    assert _counts(store) == (1, 1)


def test_link_catalog_entry_by_id(store, fleet):
    equipment, catalog, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone", "model": "Phantom 4"})
    entry = catalog.create_entry("ND Filter Set", "DJI", "Filters", model_compatibility=["Phantom 4"])

    link = links.create_link(drone.id, CatalogItemSelection(entry.id), quantity=2, notes=" spare set ")

    assert link.accessory_catalog_id == entry.id
    assert link.quantity == 2
    assert link.notes == "spare set"


def test_link_equipment_target(store, fleet):
    equipment, _, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})
    battery = equipment.create_equipment({"name": "Battery 07", "equipment_type": "battery", "serial_number": "B07"})

    link = links.create_link(drone.id, EquipmentItemSelection(battery.id))

    assert link.accessory_type == "equipment"
    assert link.accessory_equipment_id == battery.id
    out = links.list_links(drone.id)[0]
    assert out["display_name"] == "Battery 07"
    assert out["type_label"] == "Battery"
    assert out["serial_or_brand"] == "B07"
    assert out["status"] == "active"


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "many", None])
def test_bad_quantity_is_rejected_without_side_effect(store, fleet, sink, quantity):
    equipment, _, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})

    with pytest.raises(ValidationError):
        links.create_link(drone.id, FreeTextCatalogSelection(name="Extra Battery", category="Batteries"), quantity=quantity)

    assert _counts(store) == (0, 0)
    assert sink.last.level == "error"


def test_self_link_is_rejected(store, fleet):
    equipment, _, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})

    with pytest.raises(ValidationError, match="itself"):
        links.create_link(drone.id, EquipmentItemSelection(drone.id))
    assert _counts(store) == (0, 0)


@pytest.mark.parametrize(
    "selection, message",
    [
        (CatalogItemSelection(None), "catalog accessory"),
        (EquipmentItemSelection(None), "Select an equipment"),
        (FreeTextCatalogSelection(name="  ", category="Batteries"), "type a name"),
        (FreeTextCatalogSelection(name="Extra Battery", category=""), "category is required"),
        ("battery", "pick an equipment"),
    ],
)
def test_incomplete_selection_is_reported_without_side_effect(store, fleet, sink, selection, message):
    equipment, _, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})

    with pytest.raises(ValidationError, match=message):
        links.create_link(drone.id, selection)

    assert _counts(store) == (0, 0)
    assert sink.last.action == "equipment.accessory.link"
    assert sink.last.level == "error"


def test_free_text_selection_is_trimmed_before_lookup(store, fleet):
    equipment, catalog, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})
    existing = catalog.create_entry("Extra Battery", "DJI", "Batteries")

    link = links.create_link(
        drone.id, FreeTextCatalogSelection(name=" Extra Battery ", category=" Batteries ", brand=" DJI ")
    )

    assert link.accessory_catalog_id == existing.id
    assert _counts(store) == (1, 1)


def test_missing_parent_is_rejected_without_side_effect(store, fleet):
    _, _, links = fleet
    with pytest.raises(NotFoundError):
        links.create_link(404, FreeTextCatalogSelection(name="Extra Battery", category="Batteries"))
    assert _counts(store) == (0, 0)


def test_missing_targets_are_rejected(store, fleet):
    equipment, _, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})
    with pytest.raises(NotFoundError):
        links.create_link(drone.id, EquipmentItemSelection(999))
    with pytest.raises(NotFoundError):
        links.create_link(drone.id, CatalogItemSelection(999))
    assert _counts(store) == (0, 0)


def test_equipment_cannot_be_linked_twice(store, fleet):
    equipment, _, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})
    battery = equipment.create_equipment({"name": "Battery 07", "equipment_type": "battery"})
    links.create_link(drone.id, EquipmentItemSelection(battery.id))

    with pytest.raises(ValidationError, match="already linked"):
        links.create_link(drone.id, EquipmentItemSelection(battery.id))
    assert len(store.links.list()) == 1


def test_available_targets_exclude_parent_and_linked(store, fleet):
    equipment, _, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})
    b1 = equipment.create_equipment({"name": "Battery 2", "equipment_type": "battery"})
    b2 = equipment.create_equipment({"name": "Battery 1", "equipment_type": "battery"})
    rc = equipment.create_equipment({"name": "Controller", "equipment_type": "remote"})
    links.create_link(drone.id, EquipmentItemSelection(b1.id))

    available = links.list_available_equipment_targets(drone.id)

    assert [r.id for r in available] == [b2.id, rc.id]

    with pytest.raises(NotFoundError):
        links.list_available_equipment_targets(999)


def test_remove_link_keeps_catalog_entry(store, fleet):
    equipment, catalog, links = fleet
    drone = equipment.create_equipment({"name": "Mapper", "equipment_type": "drone"})
    other = equipment.create_equipment({"name": "Spare", "equipment_type": "drone"})
    link = links.create_link(drone.id, FreeTextCatalogSelection(name="Shoulder Bag", category="Cases"))

    with pytest.raises(NotFoundError):
        links.remove_link(link.id, parent_id=other.id)

    links.remove_link(link.id, parent_id=drone.id)

    assert links.list_links(drone.id) == []
    assert catalog.find_entry("DJI", "Cases", "Shoulder Bag") is not None


def test_build_selection_variants():
    assert build_selection("catalog", catalog_id=5, custom_name="ignored") == CatalogItemSelection(5)
    assert build_selection("equipment", equipment_id="7") == EquipmentItemSelection(7)
    free = build_selection("catalog", custom_name=" Extra Battery ", category="Batteries", brand=None)
    assert free == FreeTextCatalogSelection(name="Extra Battery", category="Batteries", brand="DJI")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"accessory_type": "gadget"}, "accessory_type"),
        ({"accessory_type": "equipment"}, "Select an equipment"),
        ({"accessory_type": "catalog"}, "Select a catalog accessory"),
        ({"accessory_type": "catalog", "custom_name": "Extra Battery"}, "category is required"),
        ({"accessory_type": "catalog", "catalog_id": "abc"}, "integer id"),
    ],
)
def test_build_selection_rejections(kwargs, message):
    kind = kwargs.pop("accessory_type")
    with pytest.raises(ValidationError, match=message):
        build_selection(kind, **kwargs)
