import threading
from typing import List

import pytest
from common.choices import LocationType
from common.exceptions import ConflictError, NotFoundError, ValidationError
from django.db import close_old_connections, connection
from django.test.utils import CaptureQueriesContext
from inventory.tests.factories import InventoryItemFactory, receive
from locations import selectors
from locations.models import Location
from locations.services import deactivate_location, delete_location, set_utilization, upsert_location
from locations.tests.factories import LocationFactory, WarehouseFactory


@pytest.mark.django_db
def test_create_location_under_parent():
    wh = WarehouseFactory(code="MAIN")
    bay = upsert_location(data={"code": " A-01 ", "name": "Bay 1", "type": LocationType.BAY, "parent": wh.id})
    assert bay.code == "A-01"
    assert bay.parent_id == wh.id
    assert [c.code for c in selectors.get_children(wh.id)] == ["A-01"]


@pytest.mark.django_db
def test_code_must_be_unique_case_insensitive():
    LocationFactory(code="A-01")
    with pytest.raises(ValidationError) as exc:
        upsert_location(data={"code": "a-01", "name": "Dup", "type": LocationType.BIN})
    assert exc.value.errors == {"code": "a-01"}


@pytest.mark.django_db
def test_missing_fields_and_unknown_type_rejected():
    with pytest.raises(ValidationError) as exc:
        upsert_location(data={"code": "", "name": "", "type": "attic"})
    assert set(exc.value.errors) == {"code", "name", "type"}


@pytest.mark.django_db
@pytest.mark.parametrize("value", [-1, 101, "lots"])
def test_utilization_out_of_range_rejected(value):
    loc = LocationFactory()
    with pytest.raises(ValidationError):
        set_utilization(location_id=loc.id, value=value)
    loc.refresh_from_db()
    assert loc.current_utilization == 0


@pytest.mark.django_db
def test_utilization_bounds_are_accepted():
    loc = LocationFactory()
    assert set_utilization(location_id=loc.id, value=100).current_utilization == 100
    assert set_utilization(location_id=loc.id, value=0).current_utilization == 0


@pytest.mark.django_db
def test_own_parent_rejected():
    loc = LocationFactory()
    with pytest.raises(ValidationError):
        upsert_location(data={"parent": loc.id}, location_id=loc.id)


@pytest.mark.django_db
def test_reparenting_into_own_subtree_rejected():
    wh = WarehouseFactory()
    zone = LocationFactory(type=LocationType.ZONE, parent=wh)
    bay = LocationFactory(type=LocationType.BAY, parent=zone)

    with pytest.raises(ValidationError) as exc:
        upsert_location(data={"parent": bay.id}, location_id=wh.id)
    assert "cycle" in exc.value.message

    wh.refresh_from_db()
    assert wh.parent_id is None


@pytest.mark.django_db
def test_reparent_reads_every_ancestor_for_update():
    wh = WarehouseFactory()
    zone = LocationFactory(type=LocationType.ZONE, parent=wh)
    bay = LocationFactory(type=LocationType.BAY, parent=zone)
    loose = LocationFactory()

    with CaptureQueriesContext(connection) as ctx:
        upsert_location(data={"parent": bay.id}, location_id=loose.id)
    reads = [q["sql"] for q in ctx.captured_queries if q["sql"].startswith('SELECT "locations_location"."id"')]
    # The moved location, then bay, zone and warehouse
    assert len(reads) >= 4
    if connection.features.has_select_for_update:
        assert all("FOR UPDATE" in sql for sql in reads[:4])
    loose.refresh_from_db()
    assert loose.parent_id == bay.id


def _reparent_worker(barrier, location_id, parent_id, successes: List[int], errors: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        upsert_location(data={"parent": parent_id}, location_id=location_id)
        successes.append(location_id)
    except Exception as exc:
        errors.append(exc)
    finally:
        close_old_connections()


@pytest.mark.django_db(transaction=True)
def test_threaded_opposing_reparents_never_form_a_cycle():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    wh = WarehouseFactory()
    left = LocationFactory(type=LocationType.ZONE, parent=wh)
    right = LocationFactory(type=LocationType.ZONE, parent=wh)

    barrier = threading.Barrier(2)
    successes: List[int] = []
    errors: List[Exception] = []
    threads = [
        threading.Thread(target=_reparent_worker, args=(barrier, child.id, parent.id, successes, errors))
        for child, parent in ((left, right), (right, left))
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # One side either sees the cycle or loses the lock race
    assert len(successes) <= 1
    assert len(successes) + len(errors) == 2
    left.refresh_from_db()
    right.refresh_from_db()
    assert not (left.parent_id == right.id and right.parent_id == left.id)


@pytest.mark.django_db
def test_unknown_parent_rejected():
    with pytest.raises(ValidationError):
        upsert_location(data={"code": "X", "name": "X", "type": LocationType.BIN, "parent": 999999})


@pytest.mark.django_db
def test_update_missing_location_is_not_found():
    with pytest.raises(NotFoundError):
        upsert_location(data={"name": "Ghost"}, location_id=999999)


@pytest.mark.django_db
def test_descendants_walk_whole_subtree():
    wh = WarehouseFactory()
    zone = LocationFactory(code="Z", type=LocationType.ZONE, parent=wh)
    LocationFactory(code="Z-1", parent=zone)
    LocationFactory(code="Z-2", parent=zone)
    LocationFactory(code="OTHER")

    codes = [loc.code for loc in selectors.get_descendants(wh.id)]
    assert codes == ["Z", "Z-1", "Z-2"]


@pytest.mark.django_db
def test_list_by_type_filters_inactive():
    LocationFactory(code="T1", type=LocationType.TRUCK)
    LocationFactory(code="T2", type=LocationType.TRUCK, is_active=False)
    assert [loc.code for loc in selectors.list_by_type(LocationType.TRUCK)] == ["T1", "T2"]
    assert [loc.code for loc in selectors.list_by_type(LocationType.TRUCK, active_only=True)] == ["T1"]


@pytest.mark.django_db
def test_deactivate_is_idempotent():
    loc = LocationFactory()
    assert deactivate_location(location_id=loc.id).is_active is False
    assert deactivate_location(location_id=loc.id).is_active is False


@pytest.mark.django_db
def test_delete_unreferenced_location():
    loc = LocationFactory()
    delete_location(location_id=loc.id)
    assert not Location.objects.filter(id=loc.id).exists()


@pytest.mark.django_db
def test_delete_location_holding_stock_conflicts():
    loc = LocationFactory()
    receive(InventoryItemFactory(), loc, 10)
    with pytest.raises(ConflictError):
        delete_location(location_id=loc.id)
    assert Location.objects.filter(id=loc.id).exists()


@pytest.mark.django_db
def test_delete_parent_with_children_conflicts():
    wh = WarehouseFactory()
    LocationFactory(parent=wh)
    with pytest.raises(ConflictError):
        delete_location(location_id=wh.id)
