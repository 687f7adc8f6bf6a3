from decimal import Decimal

import pytest
from common.models import IdempotencyKey
from common.tests.factories import ManagerFactory, UserFactory
from inventory import services
from inventory.models import MaterialLot
from inventory.tests.factories import InventoryItemFactory, receive
from locations.tests.factories import LocationFactory
from rest_framework.test import APIClient


def _client(user=None):
    client = APIClient()
    client.force_authenticate(user=user or ManagerFactory())
    return client


@pytest.mark.django_db
def test_create_item_and_read_availability():
    client = _client()
    r = client.post(
        "/api/v1/inventory/items/",
        {"sku": "LVP-COAST-OAK", "name": "Coastal Oak LVP", "unit": "sqft", "category": "lvp"},
        format="json",
    )
    assert r.status_code == 201
    item_id = r.json()["id"]

    r_get = client.get(f"/api/v1/inventory/items/{item_id}/")
    assert r_get.status_code == 200
    assert r_get.json()["available"] == "0.00"


@pytest.mark.django_db
def test_receive_lot_endpoint_returns_splits():
    bay = LocationFactory(code="WH-A-01")
    item = InventoryItemFactory()
    r = _client().post(
        "/api/v1/inventory/lots/receive/",
        {
            "item": item.id,
            "location": bay.id,
            "lot_number": "L-2025-001",
            "dye_lot": "A1",
            "quantity": "300.00",
            "unit_cost": "4.25",
        },
        format="json",
    )
    assert r.status_code == 201
    body = r.json()
    assert body["current_quantity"] == "300.00"
    assert body["locations"] == [{"location": bay.id, "location_code": "WH-A-01", "quantity": "300.00"}]


@pytest.mark.django_db
def test_receive_is_idempotent_with_header():
    bay = LocationFactory()
    item = InventoryItemFactory()
    client = _client()
    payload = {"item": item.id, "location": bay.id, "lot_number": "L-1", "quantity": "25", "unit_cost": "3.00"}

    r1 = client.post("/api/v1/inventory/lots/receive/", payload, format="json", HTTP_IDEMPOTENCY_KEY="scan-001")
    r2 = client.post("/api/v1/inventory/lots/receive/", payload, format="json", HTTP_IDEMPOTENCY_KEY="scan-001")
    assert r1.status_code == 201
    assert r2.status_code == 201
    assert r2.json() == r1.json()
    assert MaterialLot.objects.filter(item=item).count() == 1
    item.refresh_from_db()
    assert item.stock == Decimal("25.00")

    idem = IdempotencyKey.objects.get(key="scan-001", path="/api/v1/inventory/lots/receive/", method="POST")
    assert idem.response_code == 201


@pytest.mark.django_db
def test_idempotency_key_reused_with_other_payload_conflicts():
    bay = LocationFactory()
    item = InventoryItemFactory()
    client = _client()
    base = {"item": item.id, "location": bay.id, "lot_number": "L-1", "unit_cost": "3.00"}

    client.post("/api/v1/inventory/lots/receive/", {**base, "quantity": "5"}, format="json", HTTP_IDEMPOTENCY_KEY="k")
    r = client.post(
        "/api/v1/inventory/lots/receive/", {**base, "quantity": "6"}, format="json", HTTP_IDEMPOTENCY_KEY="k"
    )
    assert r.status_code == 409
    assert MaterialLot.objects.count() == 1


@pytest.mark.django_db
def test_move_too_much_returns_insufficient_stock_envelope():
    bay = LocationFactory()
    truck = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 450)

    r = _client().post(
        f"/api/v1/inventory/lots/{lot.id}/move/",
        {"from_location": bay.id, "to_location": truck.id, "quantity": "500"},
        format="json",
    )
    assert r.status_code == 409
    body = r.json()
    assert body["code"] == "insufficient_stock"
    assert body["errors"] == {"requested": "500.00", "available": "450.00"}
    assert body["status"] == 409


@pytest.mark.django_db
def test_move_endpoint_updates_splits():
    bay = LocationFactory()
    truck = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 100)
    r = _client().post(
        f"/api/v1/inventory/lots/{lot.id}/move/",
        {"from_location": bay.id, "to_location": truck.id, "quantity": "40"},
        format="json",
    )
    assert r.status_code == 200
    quantities = {row["location"]: row["quantity"] for row in r.json()["locations"]}
    assert quantities == {bay.id: "60.00", truck.id: "40.00"}


@pytest.mark.django_db
def test_adjust_without_capability_is_forbidden():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    r = _client(UserFactory()).post(
        f"/api/v1/inventory/lots/{lot.id}/adjust/",
        {"location": bay.id, "delta": "-2", "reason": "physical_damage"},
        format="json",
    )
    assert r.status_code == 403
    assert r.json()["code"] == "permission_denied"
    assert r.json()["errors"] == {"action": "ADJUST_INVENTORY"}


@pytest.mark.django_db
def test_adjust_with_capability():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    r = _client().post(
        f"/api/v1/inventory/lots/{lot.id}/adjust/",
        {"location": bay.id, "delta": "-2", "reason": "physical_damage", "notes": "Forklift"},
        format="json",
    )
    assert r.status_code == 200
    assert r.json()["current_quantity"] == "8.00"


@pytest.mark.django_db
def test_issue_and_qc_endpoints():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    client = _client()

    r = client.post(
        f"/api/v1/inventory/lots/{lot.id}/issue/",
        {"location": bay.id, "quantity": "10", "project_id": "PRJ-7"},
        format="json",
    )
    assert r.status_code == 200
    assert r.json()["status"] == "consumed"
    assert r.json()["locations"] == []

    r_qc = client.post(f"/api/v1/inventory/lots/{lot.id}/qc/", {"qc_status": "passed"}, format="json")
    assert r_qc.status_code == 200
    assert r_qc.json()["qc_status"] == "passed"


@pytest.mark.django_db
def test_lot_list_filters_by_location_and_dye_lot():
    bay = LocationFactory()
    other = LocationFactory()
    item = InventoryItemFactory()
    a1 = receive(item, bay, 10, dye_lot="A1", lot_number="A")
    receive(item, other, 10, dye_lot="B2", lot_number="B")
    client = _client()

    r = client.get("/api/v1/inventory/lots/", {"location": bay.id})
    assert [row["id"] for row in r.json()["results"]] == [a1.id]
    r_dye = client.get("/api/v1/inventory/lots/", {"dye_lot": "B2"})
    assert [row["lot_number"] for row in r_dye.json()["results"]] == ["B"]


@pytest.mark.django_db
def test_transactions_filter_by_location_either_side():
    bay = LocationFactory()
    truck = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    client = _client()
    client.post(
        f"/api/v1/inventory/lots/{lot.id}/move/",
        {"from_location": bay.id, "to_location": truck.id, "quantity": "4"},
        format="json",
    )

    r = client.get("/api/v1/inventory/transactions/", {"location": truck.id})
    types = sorted(row["type"] for row in r.json()["results"])
    assert types == ["transfer_in", "transfer_out"]


@pytest.mark.django_db
def test_item_distribution_endpoint():
    bay = LocationFactory(code="WH-A-01")
    item = InventoryItemFactory()
    receive(item, bay, 12)
    r = _client().get(f"/api/v1/inventory/items/{item.id}/distribution/")
    assert r.status_code == 200
    assert r.json()[0]["location_code"] == "WH-A-01"


@pytest.mark.django_db
def test_missing_lot_is_404():
    r = _client().get("/api/v1/inventory/lots/999999/")
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


@pytest.mark.django_db
def test_reservations_listing_filters_by_state():
    item = InventoryItemFactory()
    receive(item, LocationFactory(), 10)
    services.reserve(item_id=item.id, quantity=2, source_ref="job:A")
    services.reserve(item_id=item.id, quantity=3, source_ref="job:B")
    services.release(source_ref="job:A")

    r = _client().get("/api/v1/inventory/reservations/", {"state": "active"})
    assert [row["source_ref"] for row in r.json()["results"]] == ["job:B"]
