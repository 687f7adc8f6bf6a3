from decimal import Decimal

import pytest
from common.choices import AdjustmentReason, TransactionType
from common.exceptions import (
    InsufficientStockError,
    InvariantViolation,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from inventory import selectors, services
from inventory.models import InventoryTransaction, LotLocation, MaterialLot
from inventory.tests.factories import InventoryItemFactory, receive
from locations.tests.factories import JobsiteFactory, LocationFactory


def _assert_conserved(lot):
    lot.refresh_from_db()
    assert selectors.total_quantity(lot.id) == lot.current_quantity
    item = lot.item
    item.refresh_from_db()
    lots_total = sum((x.current_quantity for x in MaterialLot.objects.filter(item=item)), Decimal("0"))
    assert item.stock == lots_total


@pytest.mark.django_db
def test_receive_places_whole_lot_at_one_location():
    bay = LocationFactory()
    item = InventoryItemFactory()
    lot = receive(item, bay, "300", dye_lot="A1", unit_cost="4.25", performed_by="sam")

    assert lot.original_quantity == lot.current_quantity == Decimal("300.00")
    assert lot.status == MaterialLot.STATUS_ACTIVE
    assert selectors.lot_locations(lot.id) == [
        {"location_id": bay.id, "location_code": bay.code, "quantity": Decimal("300.00")}
    ]
    item.refresh_from_db()
    assert item.stock == Decimal("300.00")

    txn = InventoryTransaction.objects.get(lot=lot)
    assert txn.type == TransactionType.RECEIVE
    assert txn.total_cost == Decimal("1275.00")
    assert txn.performed_by == "sam"
    _assert_conserved(lot)


@pytest.mark.django_db
@pytest.mark.parametrize("qty", ["0", "-5", "abc"])
def test_receive_rejects_bad_quantity(qty):
    with pytest.raises(ValidationError):
        receive(InventoryItemFactory(), LocationFactory(), qty)
    assert MaterialLot.objects.count() == 0


@pytest.mark.django_db
def test_receive_into_non_receivable_location_rejected():
    hold = LocationFactory(is_receivable=False)
    with pytest.raises(ValidationError):
        receive(InventoryItemFactory(), hold, 10)


@pytest.mark.django_db
def test_receive_needs_existing_location():
    item = InventoryItemFactory()
    with pytest.raises(NotFoundError):
        services.receive_lot(item_id=item.id, location_id=999999, lot_number="L1", quantity=1, unit_cost=1)


@pytest.mark.django_db
def test_move_splits_a_lot_and_conserves_quantity():
    bay = LocationFactory()
    truck = LocationFactory(code="TRK-01")
    lot = receive(InventoryItemFactory(), bay, 300)

    src, dst = services.move_quantity(lot_id=lot.id, from_location_id=bay.id, to_location_id=truck.id, quantity=120)
    assert src.quantity == Decimal("180.00")
    assert dst.quantity == Decimal("120.00")
    lot.refresh_from_db()
    assert lot.current_quantity == Decimal("300.00")
    _assert_conserved(lot)

    types = list(InventoryTransaction.objects.filter(lot=lot).values_list("type", flat=True))
    assert sorted(types) == sorted([TransactionType.RECEIVE, TransactionType.TRANSFER_OUT, TransactionType.TRANSFER_IN])


@pytest.mark.django_db
def test_move_more_than_split_fails_without_side_effects():
    bay = LocationFactory()
    truck = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 100)

    with pytest.raises(InsufficientStockError) as exc:
        services.move_quantity(lot_id=lot.id, from_location_id=bay.id, to_location_id=truck.id, quantity=101)
    assert exc.value.errors == {"requested": "101.00", "available": "100.00"}
    assert selectors.split_quantity(lot.id, bay.id) == Decimal("100.00")
    assert not LotLocation.objects.filter(lot=lot, location=truck).exists()


@pytest.mark.django_db
def test_move_respects_reservations_at_source():
    bay = LocationFactory()
    truck = LocationFactory()
    item = InventoryItemFactory()
    lot = receive(item, bay, 100)
    services.reserve(item_id=item.id, quantity=80, source_ref="job:PRJ-1", location_id=bay.id, lot_id=lot.id)

    with pytest.raises(InsufficientStockError):
        services.move_quantity(lot_id=lot.id, from_location_id=bay.id, to_location_id=truck.id, quantity=30)
    services.move_quantity(lot_id=lot.id, from_location_id=bay.id, to_location_id=truck.id, quantity=20)
    assert selectors.split_quantity(lot.id, truck.id) == Decimal("20.00")


@pytest.mark.django_db
def test_move_to_same_location_rejected():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    with pytest.raises(ValidationError):
        services.move_quantity(lot_id=lot.id, from_location_id=bay.id, to_location_id=bay.id, quantity=1)


@pytest.mark.django_db
def test_adjust_down_for_damage_records_damage_entry():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 100)

    services.adjust_quantity(
        lot_id=lot.id, location_id=bay.id, delta="-15", reason=AdjustmentReason.PHYSICAL_DAMAGE, performed_by="kim"
    )
    lot.refresh_from_db()
    assert lot.current_quantity == Decimal("85.00")
    txn = InventoryTransaction.objects.filter(lot=lot).order_by("-id").first()
    assert txn.type == TransactionType.DAMAGE
    assert txn.quantity == Decimal("15.00")
    assert txn.balance_after == Decimal("85.00")
    _assert_conserved(lot)


@pytest.mark.django_db
def test_adjust_to_zero_consumes_lot_and_back_up_revives_it():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)

    services.adjust_quantity(lot_id=lot.id, location_id=bay.id, delta=-10, reason=AdjustmentReason.CYCLE_COUNT)
    lot.refresh_from_db()
    assert lot.status == MaterialLot.STATUS_CONSUMED

    services.adjust_quantity(lot_id=lot.id, location_id=bay.id, delta=4, reason=AdjustmentReason.FOUND)
    lot.refresh_from_db()
    assert lot.status == MaterialLot.STATUS_ACTIVE
    assert lot.current_quantity == Decimal("4.00")


@pytest.mark.django_db
def test_adjust_cannot_exceed_received_quantity():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    with pytest.raises(ValidationError):
        services.adjust_quantity(lot_id=lot.id, location_id=bay.id, delta=1, reason=AdjustmentReason.FOUND)


@pytest.mark.django_db
def test_adjust_below_zero_is_insufficient_stock():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    with pytest.raises(InsufficientStockError):
        services.adjust_quantity(lot_id=lot.id, location_id=bay.id, delta=-11, reason=AdjustmentReason.OTHER)


@pytest.mark.django_db
def test_adjust_cannot_eat_into_reserved_stock():
    bay = LocationFactory()
    item = InventoryItemFactory()
    lot = receive(item, bay, 10)
    services.reserve(item_id=item.id, quantity=8, source_ref="job:PRJ-2")
    with pytest.raises(InsufficientStockError):
        services.adjust_quantity(lot_id=lot.id, location_id=bay.id, delta=-5, reason=AdjustmentReason.OTHER)


@pytest.mark.django_db
def test_adjust_requires_capability():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    with pytest.raises(PermissionDeniedError):
        services.adjust_quantity(
            lot_id=lot.id, location_id=bay.id, delta=-1, reason=AdjustmentReason.OTHER, can=lambda action: False
        )
    lot.refresh_from_db()
    assert lot.current_quantity == Decimal("10.00")


@pytest.mark.django_db
def test_adjust_rejects_zero_and_unknown_reason():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    with pytest.raises(ValidationError):
        services.adjust_quantity(lot_id=lot.id, location_id=bay.id, delta=0, reason=AdjustmentReason.OTHER)
    with pytest.raises(ValidationError):
        services.adjust_quantity(lot_id=lot.id, location_id=bay.id, delta=-1, reason="gremlins")


@pytest.mark.django_db
def test_issue_to_job_consumes_stock():
    site = JobsiteFactory()
    item = InventoryItemFactory()
    lot = receive(item, site, 50)

    services.issue_quantity(lot_id=lot.id, location_id=site.id, quantity=50, project_id=site.project_id)
    lot.refresh_from_db()
    item.refresh_from_db()
    assert lot.current_quantity == 0
    assert lot.status == MaterialLot.STATUS_CONSUMED
    assert item.stock == 0
    _assert_conserved(lot)


@pytest.mark.django_db
def test_issue_converts_the_jobs_own_reservation():
    site = JobsiteFactory()
    item = InventoryItemFactory()
    lot = receive(item, site, 50)
    services.reserve(item_id=item.id, quantity=50, source_ref="job:PRJ-9", location_id=site.id)

    with pytest.raises(InsufficientStockError):
        services.issue_quantity(lot_id=lot.id, location_id=site.id, quantity=10)

    services.issue_quantity(lot_id=lot.id, location_id=site.id, quantity=10, source_ref="job:PRJ-9")
    item.refresh_from_db()
    assert item.reserved == 0
    assert item.stock == Decimal("40.00")


@pytest.mark.django_db
def test_qc_status_update():
    lot = receive(InventoryItemFactory(), LocationFactory(), 5)
    lot = services.set_qc_status(lot_id=lot.id, qc_status="failed", qc_notes="Warped boards")
    assert lot.qc_status == "failed"
    assert lot.qc_notes == "Warped boards"
    with pytest.raises(ValidationError):
        services.set_qc_status(lot_id=lot.id, qc_status="meh")


@pytest.mark.django_db
def test_verify_lot_detects_drift():
    bay = LocationFactory()
    lot = receive(InventoryItemFactory(), bay, 10)
    LotLocation.objects.filter(lot=lot).update(quantity=Decimal("9"))
    with pytest.raises(InvariantViolation):
        services.verify_lot(lot)


@pytest.mark.django_db
def test_quantities_are_rounded_to_hundredths():
    assert services.to_quantity("1.005") == Decimal("1.01")
    assert services.to_quantity(2) == Decimal("2.00")
    with pytest.raises(ValidationError):
        services.to_quantity("NaN")
