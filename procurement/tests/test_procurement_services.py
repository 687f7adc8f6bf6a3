from decimal import Decimal

import pytest
from common.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from django.utils import timezone
from inventory.models import InventoryItem, InventoryTransaction, MaterialLot, StockReservation
from locations.tests.factories import LocationFactory
from procurement import services
from procurement.models import Delivery, PurchaseOrder
from procurement.tests.factories import purchase_order


def _check_in(delivery, location, lines, **kwargs):
    return services.check_in_delivery(
        delivery_id=delivery.id, location_id=location.id, received_lines=lines, checked_in_by="dock", **kwargs
    )


def test_compute_totals_rounds_half_up():
    assert services.compute_totals("1000") == (Decimal("1000.00"), Decimal("82.50"), Decimal("1082.50"))
    assert services.compute_totals("10.06") == (Decimal("10.06"), Decimal("0.83"), Decimal("10.89"))


@pytest.mark.django_db
def test_create_purchase_order_applies_tax_and_numbers():
    po = purchase_order(submit=False)
    po.refresh_from_db()
    assert po.status == PurchaseOrder.STATUS_DRAFT
    assert po.po_number == f"PO-{timezone.now().year}-001"
    assert po.subtotal == Decimal("1000.00")
    assert po.tax == Decimal("82.50")
    assert po.total == Decimal("1082.50")
    assert po.lines.get().total == Decimal("1000.00")

    second = purchase_order(submit=False)
    assert second.po_number.endswith("-002")


@pytest.mark.django_db
@pytest.mark.parametrize(
    "line",
    [
        {"material_name": "", "quantity": "10", "unit_cost": "1"},
        {"material_name": "Oak", "quantity": "0", "unit_cost": "1"},
        {"material_name": "Oak", "quantity": "10", "unit_cost": "-1"},
    ],
)
def test_create_purchase_order_rejects_bad_lines(line):
    with pytest.raises(ValidationError):
        services.create_purchase_order(vendor_name="Shaw Floors", lines=[line])
    assert PurchaseOrder.objects.count() == 0


@pytest.mark.django_db
def test_create_purchase_order_requires_vendor_and_lines():
    with pytest.raises(ValidationError):
        services.create_purchase_order(vendor_name=" ", lines=[{"material_name": "Oak", "quantity": 1}])
    with pytest.raises(ValidationError):
        services.create_purchase_order(vendor_name="Shaw Floors", lines=[])


@pytest.mark.django_db
def test_status_transitions():
    po = purchase_order(submit=False)
    with pytest.raises(ConflictError):
        services.confirm_purchase_order(po_id=po.id)

    po = services.submit_purchase_order(po_id=po.id)
    assert po.status == PurchaseOrder.STATUS_SUBMITTED
    assert po.submitted_date is not None
    with pytest.raises(ConflictError):
        services.submit_purchase_order(po_id=po.id)

    po = services.confirm_purchase_order(po_id=po.id)
    assert po.status == PurchaseOrder.STATUS_CONFIRMED

    po = services.cancel_purchase_order(po_id=po.id)
    assert po.status == PurchaseOrder.STATUS_CANCELLED
    # Cancelling twice is a no-op
    assert services.cancel_purchase_order(po_id=po.id).status == PurchaseOrder.STATUS_CANCELLED

    with pytest.raises(NotFoundError):
        services.submit_purchase_order(po_id=999999)


@pytest.mark.django_db
def test_capability_checks():
    with pytest.raises(PermissionDeniedError):
        purchase_order(can=lambda action: False)
    po = purchase_order(submit=False)
    with pytest.raises(PermissionDeniedError) as exc:
        services.submit_purchase_order(po_id=po.id, can=lambda action: action == "CREATE_PO")
    assert exc.value.errors == {"action": "APPROVE_PO"}


@pytest.mark.django_db
def test_schedule_delivery_needs_submitted_order():
    draft = purchase_order(submit=False)
    with pytest.raises(ConflictError):
        services.schedule_delivery(po_id=draft.id)

    po = purchase_order()
    delivery = services.schedule_delivery(po_id=po.id, estimated_time="8-10am")
    line = delivery.lines.get()
    assert delivery.status == Delivery.STATUS_SCHEDULED
    assert delivery.vendor_name == "Shaw Floors"
    assert line.ordered_quantity == Decimal("250.00")


@pytest.mark.django_db
def test_delivery_status_flow():
    delivery = services.schedule_delivery(po_id=purchase_order().id)
    with pytest.raises(ConflictError):
        services.update_delivery_status(delivery_id=delivery.id, status=Delivery.STATUS_ARRIVED)

    delivery = services.update_delivery_status(delivery_id=delivery.id, status=Delivery.STATUS_IN_TRANSIT)
    delivery = services.update_delivery_status(delivery_id=delivery.id, status=Delivery.STATUS_ARRIVED)
    assert delivery.actual_arrival is not None
    with pytest.raises(ConflictError):
        services.update_delivery_status(delivery_id=delivery.id, status=Delivery.STATUS_IN_TRANSIT)


@pytest.mark.django_db
def test_partial_then_full_receipt():
    bay = LocationFactory(code="WH-A-01")
    po = purchase_order(quantity="1000")

    first = services.schedule_delivery(po_id=po.id)
    result = _check_in(first, bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "600", "dye_lot": "A1"}])
    assert result["purchase_order"].status == PurchaseOrder.STATUS_PARTIAL
    assert result["delivery"].status == Delivery.STATUS_CHECKED_IN
    assert result["over_received"] == []
    [lot] = result["lots"]
    assert lot.current_quantity == Decimal("600.00")
    assert lot.po_number == po.po_number
    assert lot.vendor_name == "Shaw Floors"
    assert lot.unit_cost == Decimal("4.00")

    second = services.schedule_delivery(po_id=po.id)
    assert second.lines.get().ordered_quantity == Decimal("400.00")
    result = _check_in(second, bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "400", "dye_lot": "A1"}])
    assert result["purchase_order"].status == PurchaseOrder.STATUS_RECEIVED

    item = InventoryItem.objects.get(sku="LVP-COAST-OAK")
    assert item.stock == Decimal("1000.00")
    assert item.reserved == Decimal("0.00")
    assert MaterialLot.objects.filter(item=item).count() == 2
    assert InventoryTransaction.objects.filter(type="receive", reference_id=po.po_number).count() == 2

    # A received order takes no more deliveries
    with pytest.raises(ConflictError):
        services.schedule_delivery(po_id=po.id)


@pytest.mark.django_db
def test_over_receipt_is_accepted_and_reported():
    bay = LocationFactory()
    po = purchase_order()
    delivery = services.schedule_delivery(po_id=po.id)
    po_line = po.lines.get()

    result = _check_in(delivery, bay, [{"po_line_id": po_line.id, "received_quantity": "300"}])
    assert result["purchase_order"].status == PurchaseOrder.STATUS_RECEIVED
    assert result["over_received"] == [
        {"po_line_id": po_line.id, "material_name": "Coastal Oak LVP", "over": Decimal("50.00")}
    ]
    assert result["lots"][0].current_quantity == Decimal("300.00")


@pytest.mark.django_db
def test_damaged_quantity_is_not_stocked():
    bay = LocationFactory()
    po = purchase_order()
    delivery = services.schedule_delivery(po_id=po.id)

    result = _check_in(delivery, bay, [{"sku": "lvp-coast-oak", "received_quantity": "250", "damaged_quantity": "20"}])
    assert result["lots"][0].current_quantity == Decimal("230.00")
    assert result["purchase_order"].status == PurchaseOrder.STATUS_PARTIAL
    po_line = po.lines.get()
    assert po_line.received_quantity == Decimal("230.00")
    assert po_line.damaged_quantity == Decimal("20.00")
    delivery_line = Delivery.objects.get(id=delivery.id).lines.get()
    assert delivery_line.accepted_quantity == Decimal("230.00")
    assert delivery_line.lot_id == result["lots"][0].id


@pytest.mark.django_db
def test_fully_damaged_line_creates_no_lot():
    bay = LocationFactory()
    delivery = services.schedule_delivery(po_id=purchase_order().id)
    result = _check_in(delivery, bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "40", "damaged_quantity": "40"}])
    assert result["lots"] == []
    assert MaterialLot.objects.count() == 0


@pytest.mark.django_db
def test_check_in_to_unknown_location_persists_nothing():
    po = purchase_order()
    delivery = services.schedule_delivery(po_id=po.id)
    damaged_only = [{"sku": "LVP-COAST-OAK", "received_quantity": "40", "damaged_quantity": "40"}]
    with pytest.raises(NotFoundError):
        services.check_in_delivery(delivery_id=delivery.id, location_id=987654, received_lines=damaged_only)

    delivery.refresh_from_db()
    po.refresh_from_db()
    assert delivery.status == Delivery.STATUS_SCHEDULED
    assert delivery.location_id is None
    assert po.status == PurchaseOrder.STATUS_SUBMITTED
    assert po.lines.get().damaged_quantity == Decimal("0.00")
    assert not delivery.lines.filter(damaged_quantity__gt=0).exists()


@pytest.mark.django_db
@pytest.mark.parametrize("flags", [{"is_active": False}, {"is_receivable": False}])
def test_check_in_refuses_location_that_cannot_receive(flags):
    closed = LocationFactory(**flags)
    po = purchase_order()
    delivery = services.schedule_delivery(po_id=po.id)
    with pytest.raises(ValidationError):
        _check_in(delivery, closed, [{"sku": "LVP-COAST-OAK", "received_quantity": "40", "damaged_quantity": "40"}])
    po.refresh_from_db()
    assert po.lines.get().damaged_quantity == Decimal("0.00")
    assert not delivery.lines.filter(damaged_quantity__gt=0).exists()


@pytest.mark.django_db
@pytest.mark.parametrize(
    "line",
    [
        {"sku": "LVP-COAST-OAK", "received_quantity": "10", "damaged_quantity": "11"},
        {"sku": "LVP-COAST-OAK", "received_quantity": "-1"},
        {"sku": "CARPET-9", "material_name": "Berber", "received_quantity": "10"},
    ],
)
def test_check_in_rejects_bad_lines(line):
    bay = LocationFactory()
    po = purchase_order()
    delivery = services.schedule_delivery(po_id=po.id)
    with pytest.raises(ValidationError):
        _check_in(delivery, bay, [line])
    assert MaterialLot.objects.count() == 0
    po.refresh_from_db()
    assert po.status == PurchaseOrder.STATUS_SUBMITTED


@pytest.mark.django_db
def test_check_in_with_issues_flags_delivery():
    bay = LocationFactory()
    delivery = services.schedule_delivery(po_id=purchase_order().id)
    result = _check_in(
        delivery,
        bay,
        [{"sku": "LVP-COAST-OAK", "received_quantity": "250"}],
        issues="Two cartons crushed",
        photos=["dock/crushed-1.jpg"],
    )
    assert result["delivery"].status == Delivery.STATUS_ISSUES
    assert result["delivery"].photos == ["dock/crushed-1.jpg"]
    assert result["delivery"].checked_in_by == "dock"

    with pytest.raises(ConflictError):
        _check_in(delivery, bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "1"}])


@pytest.mark.django_db
def test_project_order_reserves_received_stock_until_cancelled():
    bay = LocationFactory()
    po = purchase_order(quantity="1000", project_id="PRJ-7", project_name="Hillside remodel")
    delivery = services.schedule_delivery(po_id=po.id)
    _check_in(delivery, bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "600"}])

    item = InventoryItem.objects.get(sku="LVP-COAST-OAK")
    assert item.reserved == Decimal("600.00")
    res = StockReservation.objects.get(source_ref=f"po:{po.id}")
    assert res.project_id == "PRJ-7"
    assert res.location_id == bay.id

    services.cancel_purchase_order(po_id=po.id)
    item.refresh_from_db()
    res.refresh_from_db()
    assert item.reserved == Decimal("0.00")
    assert item.stock == Decimal("600.00")
    assert res.state == StockReservation.STATE_RELEASED


@pytest.mark.django_db
def test_fully_received_project_order_hands_hold_to_job():
    bay = LocationFactory()
    po = purchase_order(project_id="PRJ-7", project_name="Hillside remodel")
    _check_in(services.schedule_delivery(po_id=po.id), bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "100"}])
    assert StockReservation.objects.get(state=StockReservation.STATE_ACTIVE).source_ref == f"po:{po.id}"

    _check_in(services.schedule_delivery(po_id=po.id), bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "150"}])
    po.refresh_from_db()
    assert po.status == PurchaseOrder.STATUS_RECEIVED
    assert not StockReservation.objects.filter(source_ref=f"po:{po.id}", state=StockReservation.STATE_ACTIVE).exists()
    held = StockReservation.objects.filter(source_ref="job:PRJ-7", state=StockReservation.STATE_ACTIVE)
    assert sorted(r.quantity for r in held) == [Decimal("100.00"), Decimal("150.00")]
    assert {r.project_name for r in held} == {"Hillside remodel"}
    assert InventoryItem.objects.get(sku="LVP-COAST-OAK").reserved == Decimal("250.00")

    with pytest.raises(ConflictError):
        services.cancel_purchase_order(po_id=po.id)
    assert InventoryItem.objects.get(sku="LVP-COAST-OAK").reserved == Decimal("250.00")


@pytest.mark.django_db
def test_release_po_allocation_after_receipt():
    bay = LocationFactory()
    po = purchase_order(project_id="PRJ-7")
    _check_in(services.schedule_delivery(po_id=po.id), bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "250"}])

    assert StockReservation.objects.get(state=StockReservation.STATE_ACTIVE).source_ref == "job:PRJ-7"
    assert services.release_po_allocation(po_id=po.id) == Decimal("250.00")
    assert services.release_po_allocation(po_id=po.id) == Decimal("0")
    assert InventoryItem.objects.get(sku="LVP-COAST-OAK").reserved == Decimal("0.00")

    with pytest.raises(NotFoundError):
        services.release_po_allocation(po_id=999999)


@pytest.mark.django_db
def test_received_order_cannot_be_cancelled():
    bay = LocationFactory()
    po = purchase_order()
    _check_in(services.schedule_delivery(po_id=po.id), bay, [{"sku": "LVP-COAST-OAK", "received_quantity": "250"}])
    with pytest.raises(ConflictError):
        services.cancel_purchase_order(po_id=po.id)
