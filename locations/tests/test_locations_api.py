from decimal import Decimal

import pytest
from common.tests.factories import ManagerFactory, UserFactory
from inventory.tests.factories import InventoryItemFactory, receive
from locations.models import Location
from locations.tests.factories import LocationFactory, WarehouseFactory
from rest_framework.test import APIClient


def _client(user=None):
    client = APIClient()
    client.force_authenticate(user=user or UserFactory())
    return client


@pytest.mark.django_db
def test_anonymous_requests_are_rejected():
    r = APIClient().get("/api/v1/locations/")
    assert r.status_code == 401
    assert r.json()["code"] == "not_authenticated"


@pytest.mark.django_db
def test_create_and_list_locations():
    client = _client()
    wh = WarehouseFactory(code="MAIN")

    r = client.post(
        "/api/v1/locations/",
        {"code": "A-01", "name": "Bay 1", "type": "bay", "parent": wh.id, "capacity": 500},
        format="json",
    )
    assert r.status_code == 201
    body = r.json()
    assert body["parent_code"] == "MAIN"
    assert body["capacity"] == 500

    r_list = client.get("/api/v1/locations/", {"type": "bay"})
    assert r_list.status_code == 200
    assert [row["code"] for row in r_list.json()["results"]] == ["A-01"]


@pytest.mark.django_db
def test_duplicate_code_returns_validation_envelope():
    LocationFactory(code="A-01")
    r = _client().post("/api/v1/locations/", {"code": "A-01", "name": "Dup", "type": "bin"}, format="json")
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "validation_error"
    assert body["errors"] == {"code": "A-01"}
    assert body["status"] == 400


@pytest.mark.django_db
def test_unknown_type_is_rejected_by_serializer():
    r = _client().post("/api/v1/locations/", {"code": "X", "name": "X", "type": "attic"}, format="json")
    assert r.status_code == 400
    assert "type" in r.json()["errors"]


@pytest.mark.django_db
def test_patch_cycle_is_rejected():
    wh = WarehouseFactory()
    child = LocationFactory(parent=wh)
    r = _client().patch(f"/api/v1/locations/{wh.id}/", {"parent": child.id}, format="json")
    assert r.status_code == 400
    assert r.json()["errors"] == {"parent": child.id}


@pytest.mark.django_db
def test_get_missing_location_is_404():
    r = _client().get("/api/v1/locations/999999/")
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


@pytest.mark.django_db
def test_children_recursive():
    wh = WarehouseFactory()
    zone = LocationFactory(code="Z", parent=wh)
    LocationFactory(code="Z-1", parent=zone)
    client = _client()

    direct = client.get(f"/api/v1/locations/{wh.id}/children/").json()
    assert [row["code"] for row in direct] == ["Z"]
    subtree = client.get(f"/api/v1/locations/{wh.id}/children/", {"recursive": "true"}).json()
    assert [row["code"] for row in subtree] == ["Z", "Z-1"]


@pytest.mark.django_db
def test_deactivate_and_utilization_endpoints():
    loc = LocationFactory()
    client = _client()

    r = client.post(f"/api/v1/locations/{loc.id}/utilization/", {"value": 75}, format="json")
    assert r.status_code == 200
    assert r.json()["current_utilization"] == 75

    r_bad = client.post(f"/api/v1/locations/{loc.id}/utilization/", {"value": 150}, format="json")
    assert r_bad.status_code == 400

    r_off = client.post(f"/api/v1/locations/{loc.id}/deactivate/")
    assert r_off.status_code == 200
    assert r_off.json()["is_active"] is False


@pytest.mark.django_db
def test_delete_referenced_location_conflicts():
    loc = LocationFactory()
    receive(InventoryItemFactory(), loc, 5)
    r = _client(ManagerFactory()).delete(f"/api/v1/locations/{loc.id}/")
    assert r.status_code == 409
    assert Location.objects.filter(id=loc.id).exists()


@pytest.mark.django_db
def test_inventory_summary_and_variances_endpoints():
    bay = LocationFactory(code="WH-A-01")
    item = InventoryItemFactory(sku="LVP-COAST-OAK", name="Coastal Oak LVP")
    receive(item, bay, 300, dye_lot="A1", unit_cost="4.25")
    receive(item, bay, 150, dye_lot="B2", unit_cost="4.25")
    client = _client()

    summary = client.get(f"/api/v1/locations/{bay.id}/inventory/").json()
    assert summary["unique_items"] == 1
    assert Decimal(str(summary["total_units"])) == Decimal("450")
    assert summary["dye_lot_warnings"] == 1
    assert summary["items"][0]["dye_lots"] == ["A1", "B2"]

    warnings = client.get(f"/api/v1/locations/{bay.id}/dye-lot-variances/").json()
    assert len(warnings) == 1
    assert warnings[0]["sku"] == "LVP-COAST-OAK"
    assert warnings[0]["severity"] == "warning"


@pytest.mark.django_db
def test_activity_endpoint_counts_receipts():
    bay = LocationFactory()
    receive(InventoryItemFactory(), bay, 10)
    body = _client().get(f"/api/v1/locations/{bay.id}/activity/", {"days": 7}).json()
    assert body["day_range"] == 7
    assert body["receives"] == 1
    assert body["last_activity"] is not None
