from __future__ import annotations

import dataclasses
import logging

from fastapi.testclient import TestClient

from drone_fleet.api.app import create_app
from drone_fleet.db.models import AuditLog, ServerLog


def _create_equipment(client: TestClient, payload: dict) -> dict:
    base = {"name": "Drone", "equipment_type": "drone"}
    base.update(payload or {})
    resp = client.post("/equipment", json=base)
    assert resp.status_code == 201, resp.text
    return resp.json()["equipment"]


def test_health(client: TestClient):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["db"]["ok"] is True
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_model_lookups(client: TestClient):
    resp = client.get("/equipment/models")
    assert "DJI" in resp.json()["manufacturers"]

    resp = client.get("/equipment/models/Autel Robotics")
    assert resp.status_code == 200
    assert resp.json()["models"]


def test_equipment_crud(client: TestClient):
    created = _create_equipment(client, {"name": "Mapper", "model": "Mavic 3 Pro", "serial_number": "SN1"})
    assert created["display_number"] == "#0001"
    assert created["type_label"] == "Drone"

    eid = created["id"]
    assert client.get(f"/equipment/{eid}").json()["serial_number"] == "SN1"

    resp = client.put(f"/equipment/{eid}", json={"name": "Mapper 2", "equipment_type": "drone", "status": "inactive"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["equipment"]["status"] == "inactive"
    assert "updated" in resp.json()["message"]

    rows = client.get("/equipment", params={"search": "mapper"}).json()
    assert [r["id"] for r in rows] == [eid]


def test_validation_errors(client: TestClient):
    resp = client.post("/equipment", json={"name": "X", "equipment_type": "spaceship"})
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "validation"
    assert "equipment_type" in resp.json()["detail"]

    resp = client.post("/equipment", json={"equipment_type": "drone"})
    assert resp.status_code == 422


def test_missing_equipment_is_404(client: TestClient):
    resp = client.get("/equipment/999")
    assert resp.status_code == 404
    assert resp.json()["error"]["resource"] == "equipment"
    assert client.delete("/equipment/999").status_code == 404


def test_delete_moves_equipment_to_history(client: TestClient):
    created = _create_equipment(client, {"name": "Old drone"})

    resp = client.delete(f"/equipment/{created['id']}", headers={"X-User-Id": "pilot-7"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["history"]["sequence_number"] == created["sequence_number"]
    assert body["history"]["deleted_by"] == "pilot-7"
    assert body["removed_links"] == 0

    assert client.get(f"/equipment/{created['id']}").status_code == 404
    history = client.get("/equipment/history").json()
    assert [h["original_equipment_id"] for h in history] == [created["id"]]

    again = _create_equipment(client, {"name": "New drone"})
    assert again["sequence_number"] == created["sequence_number"] + 1


def test_accessory_flow(client: TestClient):
    drone = _create_equipment(client, {"name": "Mapper", "manufacturer": "DJI", "model": "Mavic 3 Pro"})
    battery = _create_equipment(client, {"name": "Battery 07", "equipment_type": "battery"})
    base = f"/equipment/{drone['id']}/accessories"

    resp = client.post(base, json={"accessory_type": "catalog", "custom_name": "Extra Battery", "category": "Batteries"})
    assert resp.status_code == 201, resp.text
    assert resp.json()["link"]["display_name"] == "Extra Battery"

    catalog = client.get(f"{base}/catalog", params={"category": "Batteries"}).json()
    assert catalog["brand"] == "DJI"
    assert [i["name"] for i in catalog["items"]] == ["Extra Battery"]

    available = client.get(f"{base}/available-equipment").json()
    assert [a["id"] for a in available] == [battery["id"]]

    resp = client.post(base, json={"accessory_type": "equipment", "accessory_equipment_id": battery["id"]})
    assert resp.status_code == 201, resp.text
    assert client.get(f"{base}/available-equipment").json() == []

    links = client.get(base).json()
    assert len(links) == 2

    resp = client.delete(f"{base}/{links[1]['id']}")
    assert resp.status_code == 200
    assert len(client.get(base).json()) == 1


def test_accessory_rejections(client: TestClient):
    drone = _create_equipment(client, {"name": "Mapper"})
    base = f"/equipment/{drone['id']}/accessories"

    resp = client.post(base, json={"accessory_type": "catalog", "custom_name": "Prop", "category": "Propellers", "quantity": 0})
    assert resp.status_code == 400
    assert "quantity" in resp.json()["detail"]

    resp = client.post(base, json={"accessory_type": "equipment", "accessory_equipment_id": drone["id"]})
    assert resp.status_code == 400

    resp = client.post(base, json={"accessory_type": "equipment"})
    assert resp.status_code == 400

    resp = client.post("/equipment/999/accessories", json={"accessory_type": "catalog", "custom_name": "Prop", "category": "Propellers"})
    assert resp.status_code == 404

    assert client.get(base).json() == []
    assert client.get("/accessory-catalog").json() == []

    with client.app.state.db_sessionmaker() as db:
        rows = (
            db.query(AuditLog)
            .filter(AuditLog.action == "equipment.accessory.link")
            .order_by(AuditLog.id.asc())
            .all()
        )
    assert [r.outcome for r in rows] == ["error"] * 4
    assert rows[2].resource == str(drone["id"])


def test_catalog_endpoints(client: TestClient):
    resp = client.post(
        "/accessory-catalog",
        json={"name": "ND Filter Set", "brand": "DJI", "category": "Filters", "model_compatibility": ["Phantom 4"]},
    )
    assert resp.status_code == 201, resp.text
    client.post("/accessory-catalog", json={"name": "Shoulder Bag", "brand": "DJI", "category": "Cases"})

    assert client.get("/accessory-catalog/categories").json()["categories"] == ["Cases", "Filters"]
    names = [e["name"] for e in client.get("/accessory-catalog", params={"brand": "DJI"}).json()]
    assert names == ["Shoulder Bag", "ND Filter Set"]


def test_roles(client: TestClient):
    url = "/users/pilot-7/roles/admin"
    assert client.get(url).json()["has_role"] is False

    resp = client.put(url, headers={"X-User-Id": "ops"})
    assert resp.status_code == 200
    assert resp.json()["created"] is True
    assert client.get(url).json()["has_role"] is True

    assert client.delete(url).json()["removed"] is True
    assert client.get(url).json()["has_role"] is False

    assert client.put("/users/pilot-7/roles/superuser").status_code == 400


def test_mutations_are_audited(client: TestClient):
    _create_equipment(client, {"name": "Audited"})
    client.post("/equipment", json={"name": "Bad", "equipment_type": "spaceship"})

    with client.app.state.db_sessionmaker() as db:
        rows = db.query(AuditLog).filter(AuditLog.action == "equipment.create").order_by(AuditLog.id.asc()).all()
    assert [r.outcome for r in rows] == ["success", "error"]


def test_startup_seeds_catalog_and_admin(settings):
    app = create_app(dataclasses.replace(settings, seed_accessory_catalog=True, initial_admin_user_id="ops-admin"))
    with TestClient(app) as c:
        assert c.get("/users/ops-admin/roles/admin").json()["has_role"] is True
        assert "Batteries" in c.get("/accessory-catalog/categories", params={"brand": "DJI"}).json()["categories"]


def test_warnings_are_persisted_to_server_logs(settings):
    app = create_app(dataclasses.replace(settings, enable_db_log_handler=True))
    with TestClient(app) as c:
        logging.getLogger("drone_fleet.tests").warning("battery bay sensor offline")
        with c.app.state.db_sessionmaker() as db:
            messages = [r.message for r in db.query(ServerLog).all()]
    assert "battery bay sensor offline" in messages
