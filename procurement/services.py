import logging
from decimal import ROUND_HALF_UP, Decimal

from common import permissions
from common.choices import ReferenceType
from common.exceptions import ConflictError, NotFoundError, ValidationError
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.text import slugify
from inventory import services as inventory_services
from inventory.models import ZERO, InventoryItem
from locations.models import Location

from .models import Delivery, DeliveryLine, PurchaseOrder, PurchaseOrderLine

logger = logging.getLogger("floorops.procurement")


PO = PurchaseOrder


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def tax_rate() -> Decimal:
    return Decimal(str(getattr(settings, "PO_TAX_RATE", "0.0825")))


def compute_totals(subtotal) -> tuple[Decimal, Decimal, Decimal]:
    """(subtotal, tax, total) rounded half-up to cents."""
    subtotal = to_money(subtotal)
    tax = to_money(subtotal * tax_rate())
    return subtotal, tax, subtotal + tax


def _lock_po(po_id: int) -> PurchaseOrder:
    try:
        return PurchaseOrder.objects.select_for_update().get(id=po_id)
    except (PurchaseOrder.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Purchase order {po_id} not found")


def _log_status(po: PurchaseOrder, prev: str) -> None:
    logger.info(
        "purchase_order_status_changed",
        extra={
            "event": "purchase_order_status_changed",
            "purchase_order_id": po.id,
            "po_number": po.po_number,
            "status_from": prev,
            "status_to": po.status,
        },
    )


def _assign_po_number(po: PurchaseOrder) -> None:
    year = (po.created_at or timezone.now()).year
    prefix = f"PO-{year}-"
    seq = PurchaseOrder.objects.filter(po_number__startswith=prefix).count() + 1
    for _ in range(5):
        po.po_number = f"{prefix}{seq:03d}"
        try:
            with transaction.atomic():
                po.save(update_fields=["po_number"])
            return
        except IntegrityError:
            seq += 1
    raise ConflictError("Could not allocate a purchase order number")


def recalculate_totals(po: PurchaseOrder) -> PurchaseOrder:
    subtotal = ZERO
    for line in po.lines.all():
        line_total = to_money(line.quantity * line.unit_cost)
        if line.total != line_total:
            line.total = line_total
            line.save(update_fields=["total", "updated_at"])
        subtotal += line_total
    po.subtotal, po.tax, po.total = compute_totals(subtotal)
    po.save(update_fields=["subtotal", "tax", "total", "updated_at"])
    return po


@transaction.atomic
def create_purchase_order(
    *,
    vendor_name: str,
    lines: list[dict],
    vendor_id: str = "",
    project_id: str = "",
    project_name: str = "",
    notes: str = "",
    expected_delivery_date=None,
    created_by: str = "",
    submit: bool = False,
    can=None,
) -> PurchaseOrder:
    """Create a draft purchase order (or a submitted one with ``submit``).

    ``lines`` are dicts with material_name, quantity, unit_cost and optionally
    sku, unit and lot_number.
    """
    permissions.require(can, permissions.CREATE_PO)
    if not (vendor_name or "").strip():
        raise ValidationError("Vendor is required", errors={"vendor_name": vendor_name})
    if not lines:
        raise ValidationError("A purchase order needs at least one line", errors={"lines": []})

    cleaned = []
    for index, line in enumerate(lines):
        qty = inventory_services.to_quantity(line.get("quantity"))
        cost = to_money(line.get("unit_cost"))
        name = (line.get("material_name") or "").strip()
        if not name:
            raise ValidationError("Material name is required", errors={"lines": {index: {"material_name": name}}})
        if qty <= 0:
            raise ValidationError("Quantity must be positive", errors={"lines": {index: {"quantity": str(qty)}}})
        if cost < 0:
            raise ValidationError("Unit cost cannot be negative", errors={"lines": {index: {"unit_cost": str(cost)}}})
        cleaned.append((name, qty, cost, line))

    po = PurchaseOrder.objects.create(
        vendor_name=vendor_name.strip(),
        vendor_id=str(vendor_id or ""),
        project_id=str(project_id or ""),
        project_name=project_name or "",
        notes=notes or "",
        expected_delivery_date=expected_delivery_date,
        created_by=created_by or "",
    )
    for name, qty, cost, line in cleaned:
        PurchaseOrderLine.objects.create(
            purchase_order=po,
            material_name=name,
            sku=(line.get("sku") or "").strip(),
            quantity=qty,
            unit=line.get("unit") or "sqft",
            unit_cost=cost,
            total=to_money(qty * cost),
            lot_number=(line.get("lot_number") or "").strip(),
        )
    _assign_po_number(po)
    recalculate_totals(po)
    if submit:
        po = submit_purchase_order(po_id=po.id, can=can)
    return po


@transaction.atomic
def submit_purchase_order(*, po_id: int, can=None) -> PurchaseOrder:
    permissions.require(can, permissions.APPROVE_PO)
    po = _lock_po(po_id)
    if po.status != PO.STATUS_DRAFT:
        raise ConflictError(f"Only draft orders can be submitted ({po.po_number} is {po.status})")
    recalculate_totals(po)
    prev = po.status
    po.status = PO.STATUS_SUBMITTED
    po.submitted_date = timezone.now()
    po.save(update_fields=["status", "submitted_date", "updated_at"])
    _log_status(po, prev)
    return po


@transaction.atomic
def confirm_purchase_order(*, po_id: int, can=None) -> PurchaseOrder:
    permissions.require(can, permissions.APPROVE_PO)
    po = _lock_po(po_id)
    if po.status != PO.STATUS_SUBMITTED:
        raise ConflictError(f"Only submitted orders can be confirmed ({po.po_number} is {po.status})")
    prev = po.status
    po.status = PO.STATUS_CONFIRMED
    po.confirmed_date = timezone.now()
    po.save(update_fields=["status", "confirmed_date", "updated_at"])
    _log_status(po, prev)
    return po


@transaction.atomic
def cancel_purchase_order(*, po_id: int, can=None) -> PurchaseOrder:
    """Cancel an open order and release anything it holds for its project."""
    permissions.require(can, permissions.APPROVE_PO)
    po = _lock_po(po_id)
    if po.status == PO.STATUS_CANCELLED:
        return po
    if not po.is_open:
        raise ConflictError(f"{po.po_number} is {po.status} and cannot be cancelled")
    inventory_services.release(source_ref=po.allocation_ref)
    prev = po.status
    po.status = PO.STATUS_CANCELLED
    po.cancelled_date = timezone.now()
    po.save(update_fields=["status", "cancelled_date", "updated_at"])
    _log_status(po, prev)
    return po


def release_po_allocation(*, po_id: int) -> Decimal:
    """Release project stock held by a purchase order (e.g. job cancelled).

    Once the order is fully received its holds belong to the job, so the
    job's holds are released as well.
    """
    try:
        po = PurchaseOrder.objects.get(id=po_id)
    except (PurchaseOrder.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Purchase order {po_id} not found")
    released = inventory_services.release(source_ref=po.allocation_ref)
    if po.status == PO.STATUS_RECEIVED and po.project_id:
        released += inventory_services.release(source_ref=po.project_ref)
    return released


RECEIVABLE_PO_STATUSES = (PO.STATUS_SUBMITTED, PO.STATUS_CONFIRMED, PO.STATUS_PARTIAL)
DELIVERY_FLOW = {
    Delivery.STATUS_SCHEDULED: Delivery.STATUS_IN_TRANSIT,
    Delivery.STATUS_IN_TRANSIT: Delivery.STATUS_ARRIVED,
}


@transaction.atomic
def schedule_delivery(
    *,
    po_id: int,
    scheduled_date=None,
    estimated_time: str = "",
    notes: str = "",
) -> Delivery:
    """Expect a shipment for the outstanding quantities of an order."""
    po = _lock_po(po_id)
    if po.status not in RECEIVABLE_PO_STATUSES:
        raise ConflictError(f"{po.po_number} is {po.status}; deliveries need a submitted order")
    delivery = Delivery.objects.create(
        purchase_order=po,
        vendor_name=po.vendor_name,
        project_name=po.project_name,
        scheduled_date=scheduled_date,
        estimated_time=estimated_time or "",
        notes=notes or "",
    )
    for line in po.lines.all():
        if line.outstanding <= 0:
            continue
        DeliveryLine.objects.create(
            delivery=delivery,
            po_line=line,
            material_name=line.material_name,
            sku=line.sku,
            ordered_quantity=line.outstanding,
            lot_number=line.lot_number,
            unit=line.unit,
        )
    return delivery


@transaction.atomic
def update_delivery_status(*, delivery_id: int, status: str) -> Delivery:
    """Advance a delivery scheduled -> in-transit -> arrived."""
    try:
        delivery = Delivery.objects.select_for_update().get(id=delivery_id)
    except (Delivery.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Delivery {delivery_id} not found")
    if DELIVERY_FLOW.get(delivery.status) != status:
        raise ConflictError(f"Cannot move delivery from {delivery.status} to {status}")
    delivery.status = status
    fields = ["status", "updated_at"]
    if status == Delivery.STATUS_ARRIVED:
        delivery.actual_arrival = timezone.now()
        fields.append("actual_arrival")
    delivery.save(update_fields=fields)
    return delivery


def _match_po_line(po_lines: list[PurchaseOrderLine], line: dict) -> PurchaseOrderLine | None:
    po_line_id = line.get("po_line_id")
    if po_line_id:
        return next((pl for pl in po_lines if pl.id == int(po_line_id)), None)
    sku = (line.get("sku") or "").strip().lower()
    if sku:
        match = next((pl for pl in po_lines if pl.sku and pl.sku.lower() == sku), None)
        if match is not None:
            return match
    name = (line.get("material_name") or "").strip().lower()
    return next((pl for pl in po_lines if pl.material_name.lower() == name), None)


def _item_for(po_line: PurchaseOrderLine) -> InventoryItem:
    sku = po_line.sku or slugify(po_line.material_name).upper()[:64] or f"PO-LINE-{po_line.id}"
    item, created = InventoryItem.objects.get_or_create(
        sku=sku, defaults={"name": po_line.material_name, "unit": po_line.unit}
    )
    if created:
        logger.info("item_created_on_receipt", extra={"event": "item_created_on_receipt", "item_id": item.id})
    return item


@transaction.atomic
def check_in_delivery(
    *,
    delivery_id: int,
    location_id: int,
    received_lines: list[dict],
    issues: str = "",
    photos=None,
    notes: str = "",
    checked_in_by: str = "",
    can=None,
) -> dict:
    """Receive a delivery into stock at ``location_id``.

    Each line carries received and damaged quantities; the accepted part
    (received - damaged) becomes a new lot. Lines are matched to the order
    by ``po_line_id``, then SKU, then material name. Over-shipments are
    accepted and reported back. The order ends up ``received`` once every
    line is covered, otherwise ``partial``. A project order holds what it
    receives under ``po:<id>`` and hands that hold to ``job:<project>`` when
    it is received in full.
    """
    permissions.require(can, permissions.RECEIVE_DELIVERY)
    if not received_lines:
        raise ValidationError("Nothing to check in", errors={"received_lines": []})
    try:
        location = Location.objects.get(id=location_id)
    except (Location.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Location {location_id} not found")
    if not location.is_active or not location.is_receivable:
        raise ValidationError(f"Location {location.code} cannot receive material", errors={"location": location.id})
    try:
        delivery = Delivery.objects.select_for_update().get(id=delivery_id)
    except (Delivery.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Delivery {delivery_id} not found")
    if delivery.status not in (Delivery.STATUS_SCHEDULED, Delivery.STATUS_IN_TRANSIT, Delivery.STATUS_ARRIVED):
        raise ConflictError(f"Delivery {delivery.id} is already {delivery.status}")
    po = _lock_po(delivery.purchase_order_id)
    if po.status not in RECEIVABLE_PO_STATUSES:
        raise ConflictError(f"{po.po_number} is {po.status} and cannot receive deliveries")

    po_lines = list(po.lines.select_for_update().order_by("id"))
    lots, over_received = [], []
    for index, line in enumerate(received_lines):
        received = inventory_services.to_quantity(line.get("received_quantity", 0), "received_quantity")
        damaged = inventory_services.to_quantity(line.get("damaged_quantity", 0) or 0, "damaged_quantity")
        if received < 0 or damaged < 0 or damaged > received:
            raise ValidationError(
                "Damaged quantity must be between 0 and the received quantity",
                errors={"received_lines": {index: {"received": str(received), "damaged": str(damaged)}}},
            )
        po_line = _match_po_line(po_lines, line)
        if po_line is None:
            raise ValidationError(
                "Line does not match the purchase order",
                errors={"received_lines": {index: {"material_name": line.get("material_name")}}},
            )

        accepted = received - damaged
        lot = None
        lot_number = (line.get("lot_number") or po_line.lot_number or "").strip()
        if accepted > 0:
            item = _item_for(po_line)
            lot = inventory_services.receive_lot(
                item_id=item.id,
                lot_number=lot_number or f"{po.po_number}-{po_line.id}-{delivery.id}",
                dye_lot=line.get("dye_lot") or "",
                quantity=accepted,
                unit_cost=po_line.unit_cost,
                location_id=location.id,
                vendor_id=po.vendor_id,
                vendor_name=po.vendor_name,
                po_number=po.po_number,
                delivery_ref=f"DEL-{delivery.id}",
                performed_by=checked_in_by,
                reference_type=ReferenceType.PO,
                reference_id=po.po_number,
            )
            lots.append(lot)
            if po.project_id:
                inventory_services.reserve(
                    item_id=item.id,
                    quantity=accepted,
                    source_ref=po.allocation_ref,
                    location_id=location.id,
                    lot_id=lot.id,
                    project_id=po.project_id,
                    project_name=po.project_name,
                    performed_by=checked_in_by,
                )

        po_line.received_quantity = po_line.received_quantity + accepted
        po_line.damaged_quantity = po_line.damaged_quantity + damaged
        po_line.save(update_fields=["received_quantity", "damaged_quantity", "updated_at"])
        if po_line.received_quantity > po_line.quantity:
            extra = po_line.received_quantity - po_line.quantity
            over_received.append({"po_line_id": po_line.id, "material_name": po_line.material_name, "over": extra})
            logger.info(
                "delivery_over_received",
                extra={"event": "delivery_over_received", "po_line_id": po_line.id, "over": str(extra)},
            )

        delivery_line = DeliveryLine.objects.filter(delivery=delivery, po_line=po_line, lot__isnull=True).first()
        if delivery_line is None:
            delivery_line = DeliveryLine(delivery=delivery, po_line=po_line, ordered_quantity=po_line.quantity)
        delivery_line.material_name = po_line.material_name
        delivery_line.sku = po_line.sku
        delivery_line.unit = po_line.unit
        delivery_line.received_quantity = received
        delivery_line.damaged_quantity = damaged
        delivery_line.lot_number = lot.lot_number if lot else lot_number
        delivery_line.dye_lot = line.get("dye_lot") or ""
        delivery_line.lot = lot
        delivery_line.save()

    prev = po.status
    po.status = PO.STATUS_RECEIVED if all(pl.received_quantity >= pl.quantity for pl in po_lines) else PO.STATUS_PARTIAL
    po.save(update_fields=["status", "updated_at"])
    if po.status != prev:
        _log_status(po, prev)
    if po.status == PO.STATUS_RECEIVED and po.project_id:
        # A closed order no longer owns its project hold
        inventory_services.rekey(source_ref=po.allocation_ref, new_ref=po.project_ref)

    now = timezone.now()
    delivery.status = Delivery.STATUS_ISSUES if (issues or "").strip() else Delivery.STATUS_CHECKED_IN
    delivery.issues = issues or ""
    delivery.photos = list(photos or [])
    if notes:
        delivery.notes = notes
    delivery.location = location
    delivery.actual_arrival = delivery.actual_arrival or now
    delivery.checked_in_at = now
    delivery.checked_in_by = checked_in_by or ""
    delivery.save()

    logger.info(
        "delivery_checked_in",
        extra={
            "event": "delivery_checked_in",
            "delivery_id": delivery.id,
            "purchase_order_id": po.id,
            "po_status": po.status,
            "lots": [lot.id for lot in lots],
            "has_issues": delivery.status == Delivery.STATUS_ISSUES,
        },
    )
    return {"delivery": delivery, "purchase_order": po, "lots": lots, "over_received": over_received}


# EOF
