"""Inventory services: the lot ledger and the reservation ledger.

All quantity changes go through here. Each mutation runs in one transaction,
locks the affected rows with ``select_for_update`` (lots, then items, then
reservation rows, each in ascending id order), writes an
``InventoryTransaction`` audit row and then re-checks that the lot splits and
item totals still add up.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from common import permissions
from common.choices import AdjustmentReason, QCStatus, ReferenceType, TransactionType
from common.exceptions import (
    InsufficientStockError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
)
from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone
from locations.models import Location

from .models import ZERO, InventoryItem, InventoryTransaction, LotLocation, MaterialLot, StockReservation
from .selectors import available_at_location

logger = logging.getLogger("floorops.inventory")

HUNDREDTHS = Decimal("0.01")


def to_quantity(value, field: str = "quantity") -> Decimal:
    try:
        qty = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field}", errors={field: value})
    if not qty.is_finite():
        raise ValidationError(f"Invalid {field}", errors={field: value})
    # Stored with two decimal places
    return qty.quantize(HUNDREDTHS, rounding=ROUND_HALF_UP)


def _positive(value, field: str = "quantity") -> Decimal:
    qty = to_quantity(value, field)
    if qty <= 0:
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be positive", errors={field: str(qty)})
    return qty


def _lock_item(item_id: int) -> InventoryItem:
    try:
        return InventoryItem.objects.select_for_update().get(id=item_id)
    except (InventoryItem.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Item {item_id} not found")


def _lock_lot(lot_id: int) -> MaterialLot:
    try:
        return MaterialLot.objects.select_for_update().get(id=lot_id)
    except (MaterialLot.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Lot {lot_id} not found")


def lock_lots(lot_ids) -> dict[int, MaterialLot]:
    """Lock several lots in ascending id order; returns them keyed by id."""
    ids = sorted({int(i) for i in lot_ids})
    lots = {lot.id: lot for lot in MaterialLot.objects.select_for_update().filter(id__in=ids).order_by("id")}
    missing = [i for i in ids if i not in lots]
    if missing:
        raise NotFoundError(f"Lot {missing[0]} not found")
    return lots


def lock_items(item_ids) -> dict[int, InventoryItem]:
    ids = sorted({int(i) for i in item_ids})
    items = {item.id: item for item in InventoryItem.objects.select_for_update().filter(id__in=ids).order_by("id")}
    missing = [i for i in ids if i not in items]
    if missing:
        raise NotFoundError(f"Item {missing[0]} not found")
    return items


def _get_location(location_id: int) -> Location:
    try:
        return Location.objects.get(id=location_id)
    except (Location.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Location {location_id} not found")


def _split_for_update(lot_id: int, location_id: int) -> LotLocation | None:
    return LotLocation.objects.select_for_update().filter(lot_id=lot_id, location_id=location_id).first()


def _retire_or_revive(lot: MaterialLot) -> None:
    if lot.current_quantity == 0 and lot.status == MaterialLot.STATUS_ACTIVE:
        lot.status = MaterialLot.STATUS_CONSUMED
    elif lot.current_quantity > 0 and lot.status == MaterialLot.STATUS_CONSUMED:
        lot.status = MaterialLot.STATUS_ACTIVE


def _record(*, type, item, quantity, lot=None, location=None, to_location=None, balance_after=None, **fields):
    unit_cost = lot.unit_cost if lot is not None else None
    return InventoryTransaction.objects.create(
        type=type,
        item=item,
        item_name=item.name,
        lot=lot,
        location=location,
        to_location=to_location,
        quantity=abs(quantity),
        unit=(lot.unit if lot is not None else item.unit),
        unit_cost=unit_cost,
        total_cost=(abs(quantity) * unit_cost) if unit_cost is not None else None,
        balance_after=balance_after,
        **fields,
    )


def verify_lot(lot: MaterialLot) -> None:
    total = LotLocation.objects.filter(lot_id=lot.id).aggregate(total=Sum("quantity"))["total"] or ZERO
    if total != lot.current_quantity:
        logger.critical(
            "lot_conservation_broken",
            extra={
                "event": "lot_conservation_broken",
                "lot_id": lot.id,
                "split_total": str(total),
                "current_quantity": str(lot.current_quantity),
            },
        )
        raise InvariantViolation(f"Lot {lot.id} splits total {total} but lot holds {lot.current_quantity}")


def verify_item(item: InventoryItem) -> None:
    stock = MaterialLot.objects.filter(item_id=item.id).aggregate(total=Sum("current_quantity"))["total"] or ZERO
    reserved = (
        StockReservation.objects.filter(item_id=item.id, state=StockReservation.STATE_ACTIVE).aggregate(
            total=Sum("quantity")
        )["total"]
        or ZERO
    )
    if stock != item.stock or reserved != item.reserved or not (ZERO <= item.reserved <= item.stock):
        logger.critical(
            "item_conservation_broken",
            extra={
                "event": "item_conservation_broken",
                "item_id": item.id,
                "lots_total": str(stock),
                "stock": str(item.stock),
                "reservations_total": str(reserved),
                "reserved": str(item.reserved),
            },
        )
        raise InvariantViolation(f"Item {item.id} totals out of step with its lots or reservations")


# Lot ledger


@transaction.atomic
def receive_lot(
    *,
    item_id: int,
    lot_number: str,
    quantity,
    unit_cost,
    location_id: int,
    dye_lot: str = "",
    vendor_name: str = "",
    vendor_id: str = "",
    po_number: str = "",
    delivery_ref: str = "",
    received_date=None,
    expiration_date=None,
    performed_by: str = "",
    reference_type: str = ReferenceType.MANUAL,
    reference_id: str = "",
    notes: str = "",
) -> MaterialLot:
    """Create a lot with its whole quantity placed at one location."""
    qty = _positive(quantity)
    cost = to_quantity(unit_cost, "unit_cost")
    if cost < 0:
        raise ValidationError("Unit cost cannot be negative", errors={"unit_cost": str(cost)})
    lot_number = (lot_number or "").strip()
    if not lot_number:
        raise ValidationError("Lot number is required", errors={"lot_number": lot_number})

    location = _get_location(location_id)
    if not location.is_active or not location.is_receivable:
        raise ValidationError(
            f"Location {location.code} cannot receive material", errors={"location": location.id}
        )
    item = _lock_item(item_id)

    lot = MaterialLot.objects.create(
        item=item,
        item_name=item.name,
        sku=item.sku,
        lot_number=lot_number,
        dye_lot=(dye_lot or "").strip(),
        original_quantity=qty,
        current_quantity=qty,
        unit=item.unit,
        unit_cost=cost,
        vendor_id=vendor_id or "",
        vendor_name=vendor_name or "",
        po_number=po_number or "",
        delivery_ref=delivery_ref or "",
        received_date=received_date or timezone.now(),
        expiration_date=expiration_date,
        notes=notes or "",
    )
    LotLocation.objects.create(lot=lot, location=location, quantity=qty)
    item.stock = item.stock + qty
    item.save(update_fields=["stock", "updated_at"])

    _record(
        type=TransactionType.RECEIVE,
        item=item,
        lot=lot,
        location=location,
        quantity=qty,
        balance_after=qty,
        reference_type=reference_type,
        reference_id=str(reference_id or ""),
        performed_by=performed_by or "",
        notes=notes or "",
    )
    verify_lot(lot)
    verify_item(item)
    logger.info(
        "lot_received",
        extra={
            "event": "lot_received",
            "lot_id": lot.id,
            "item_id": item.id,
            "lot_number": lot.lot_number,
            "dye_lot": lot.dye_lot,
            "quantity": str(qty),
            "location_id": location.id,
        },
    )
    return lot


@transaction.atomic
def move_quantity(
    *,
    lot_id: int,
    from_location_id: int,
    to_location_id: int,
    quantity,
    respect_reservations: bool = True,
    performed_by: str = "",
    reference_type: str = ReferenceType.MANUAL,
    reference_id: str = "",
    project_id: str = "",
    project_name: str = "",
    notes: str = "",
) -> tuple[LotLocation, LotLocation]:
    """Move part of a lot between two locations; the lot total is unchanged.

    With ``respect_reservations`` the move may not eat into quantity reserved
    at the source. Callers that have just consumed their own reservation (a
    transfer being received) pass False and are checked against the split only.
    """
    qty = _positive(quantity)
    if int(from_location_id) == int(to_location_id):
        raise ValidationError("Source and destination must differ", errors={"to_location": to_location_id})
    source = _get_location(from_location_id)
    destination = _get_location(to_location_id)
    if not destination.is_active:
        raise ValidationError(f"Location {destination.code} is inactive", errors={"to_location": destination.id})

    lot = _lock_lot(lot_id)
    item = _lock_item(lot.item_id)
    src = _split_for_update(lot.id, source.id)
    held = src.quantity if src else ZERO
    if qty > held:
        raise InsufficientStockError(
            f"Lot {lot.lot_number} has {held} at {source.code}", requested=qty, available=held
        )
    if respect_reservations:
        free = available_at_location(item.id, source.id, lot.id)
        if qty > free:
            raise InsufficientStockError(
                f"Only {free} of lot {lot.lot_number} is unreserved at {source.code}", requested=qty, available=free
            )

    src.quantity = src.quantity - qty
    src.save(update_fields=["quantity", "updated_at"])
    dst = _split_for_update(lot.id, destination.id)
    if dst is None:
        dst = LotLocation.objects.create(lot=lot, location=destination, quantity=qty)
    else:
        dst.quantity = dst.quantity + qty
        dst.save(update_fields=["quantity", "updated_at"])

    common = {
        "reference_type": reference_type,
        "reference_id": str(reference_id or ""),
        "project_id": project_id or "",
        "project_name": project_name or "",
        "performed_by": performed_by or "",
        "notes": notes or "",
    }
    _record(
        type=TransactionType.TRANSFER_OUT,
        item=item,
        lot=lot,
        location=source,
        to_location=destination,
        quantity=qty,
        balance_after=src.quantity,
        **common,
    )
    _record(
        type=TransactionType.TRANSFER_IN,
        item=item,
        lot=lot,
        location=destination,
        quantity=qty,
        balance_after=dst.quantity,
        **common,
    )
    verify_lot(lot)
    return src, dst


def _adjustment_type(delta: Decimal, reason: str) -> str:
    if reason == AdjustmentReason.CYCLE_COUNT:
        return TransactionType.CYCLE_COUNT
    if delta < 0 and reason in (AdjustmentReason.PHYSICAL_DAMAGE, AdjustmentReason.QUALITY_ISSUE):
        return TransactionType.DAMAGE
    return TransactionType.ADJUST_UP if delta > 0 else TransactionType.ADJUST_DOWN


@transaction.atomic
def adjust_quantity(
    *,
    lot_id: int,
    location_id: int,
    delta,
    reason: str,
    performed_by: str = "",
    notes: str = "",
    can=None,
) -> MaterialLot:
    """Correct a lot split up or down (damage, found stock, cycle counts).

    A lot never grows past the quantity it was received with, and the item
    may not drop below what is already reserved.
    """
    permissions.require(can, permissions.ADJUST_INVENTORY)
    delta = to_quantity(delta, "delta")
    if delta == 0:
        raise ValidationError("Adjustment cannot be zero", errors={"delta": "0"})
    if reason not in AdjustmentReason.values:
        raise ValidationError("Unknown adjustment reason", errors={"reason": reason})
    location = _get_location(location_id)

    lot = _lock_lot(lot_id)
    item = _lock_item(lot.item_id)
    split = _split_for_update(lot.id, location.id)
    held = split.quantity if split else ZERO

    if held + delta < 0:
        raise InsufficientStockError(
            f"Lot {lot.lot_number} has only {held} at {location.code}", requested=-delta, available=held
        )
    if lot.current_quantity + delta > lot.original_quantity:
        raise ValidationError(
            f"Lot {lot.lot_number} cannot exceed its received quantity {lot.original_quantity}",
            errors={"delta": str(delta)},
        )
    if item.stock + delta < item.reserved:
        raise InsufficientStockError(
            f"{item.sku} has {item.reserved} reserved; adjustment would leave {item.stock + delta}",
            requested=-delta,
            available=item.stock - item.reserved,
        )

    if split is None:
        split = LotLocation.objects.create(lot=lot, location=location, quantity=delta)
    else:
        split.quantity = held + delta
        split.save(update_fields=["quantity", "updated_at"])

    lot.current_quantity = lot.current_quantity + delta
    _retire_or_revive(lot)
    lot.save(update_fields=["current_quantity", "status", "updated_at"])
    item.stock = item.stock + delta
    item.save(update_fields=["stock", "updated_at"])

    _record(
        type=_adjustment_type(delta, reason),
        item=item,
        lot=lot,
        location=location,
        quantity=delta,
        balance_after=split.quantity,
        reference_type=ReferenceType.CYCLE_COUNT if reason == AdjustmentReason.CYCLE_COUNT else ReferenceType.MANUAL,
        reason=AdjustmentReason(reason).label,
        performed_by=performed_by or "",
        notes=notes or "",
    )
    verify_lot(lot)
    verify_item(item)
    logger.info(
        "lot_adjusted",
        extra={
            "event": "lot_adjusted",
            "lot_id": lot.id,
            "location_id": location.id,
            "delta": str(delta),
            "reason": reason,
        },
    )
    return lot


@transaction.atomic
def issue_quantity(
    *,
    lot_id: int,
    location_id: int,
    quantity,
    project_id: str = "",
    project_name: str = "",
    source_ref: str = "",
    performed_by: str = "",
    notes: str = "",
) -> MaterialLot:
    """Consume material from a split into a job.

    When ``source_ref`` names reservations held for this job they are
    converted first, so the issued quantity may come out of reserved stock.
    """
    qty = _positive(quantity)
    location = _get_location(location_id)
    lot = _lock_lot(lot_id)
    item = _lock_item(lot.item_id)

    if source_ref:
        _settle(source_ref=source_ref, state=StockReservation.STATE_CONVERTED)
        item.refresh_from_db(fields=["reserved"])

    split = _split_for_update(lot.id, location.id)
    held = split.quantity if split else ZERO
    if qty > held:
        raise InsufficientStockError(
            f"Lot {lot.lot_number} has {held} at {location.code}", requested=qty, available=held
        )
    free = item.stock - item.reserved
    if qty > free:
        raise InsufficientStockError(f"Only {free} of {item.sku} is unreserved", requested=qty, available=free)

    split.quantity = held - qty
    split.save(update_fields=["quantity", "updated_at"])
    lot.current_quantity = lot.current_quantity - qty
    _retire_or_revive(lot)
    lot.save(update_fields=["current_quantity", "status", "updated_at"])
    item.stock = item.stock - qty
    item.save(update_fields=["stock", "updated_at"])

    _record(
        type=TransactionType.ISSUE,
        item=item,
        lot=lot,
        location=location,
        quantity=qty,
        balance_after=split.quantity,
        reference_type=ReferenceType.JOB,
        reference_id=project_id or "",
        project_id=project_id or "",
        project_name=project_name or "",
        performed_by=performed_by or "",
        notes=notes or "",
    )
    verify_lot(lot)
    verify_item(item)
    return lot


@transaction.atomic
def set_qc_status(*, lot_id: int, qc_status: str, qc_notes: str = "") -> MaterialLot:
    if qc_status not in QCStatus.values:
        raise ValidationError("Unknown QC status", errors={"qc_status": qc_status})
    lot = _lock_lot(lot_id)
    lot.qc_status = qc_status
    if qc_notes:
        lot.qc_notes = qc_notes
    lot.save(update_fields=["qc_status", "qc_notes", "updated_at"])
    return lot


# Reservation ledger


@transaction.atomic
def reserve(
    *,
    item_id: int,
    quantity,
    source_ref: str,
    location_id: int | None = None,
    lot_id: int | None = None,
    project_id: str = "",
    project_name: str = "",
    performed_by: str = "",
) -> StockReservation:
    """Hold stock for a transfer, purchase order or job.

    Fails with InsufficientStockError when the item (or the given location /
    lot split) does not have enough unreserved quantity.
    """
    qty = _positive(quantity)
    if not source_ref:
        raise ValidationError("Reservation needs a source reference", errors={"source_ref": source_ref})
    if lot_id is not None and location_id is None:
        raise ValidationError("A lot reservation needs a location", errors={"location": None})

    lot = None
    if lot_id is not None:
        lot = _lock_lot(lot_id)
        if lot.item_id != int(item_id):
            raise ValidationError("Lot does not belong to item", errors={"lot": lot_id})
    item = _lock_item(item_id)
    location = _get_location(location_id) if location_id is not None else None

    free = item.stock - item.reserved
    if qty > free:
        raise InsufficientStockError(f"Only {free} of {item.sku} is available", requested=qty, available=free)
    if location is not None:
        free_here = available_at_location(item.id, location.id, lot.id if lot else None)
        if qty > free_here:
            raise InsufficientStockError(
                f"Only {free_here} of {item.sku} is available at {location.code}", requested=qty, available=free_here
            )

    item.reserved = item.reserved + qty
    item.save(update_fields=["reserved", "updated_at"])
    res = StockReservation.objects.create(
        item=item,
        lot=lot,
        location=location,
        quantity=qty,
        source_ref=source_ref,
        project_id=project_id or "",
        project_name=project_name or "",
        state=StockReservation.STATE_ACTIVE,
    )
    _record(
        type=TransactionType.ALLOCATE,
        item=item,
        lot=lot,
        location=location,
        quantity=qty,
        reference_type=_reference_type(source_ref),
        reference_id=source_ref.partition(":")[2],
        project_id=project_id or "",
        project_name=project_name or "",
        performed_by=performed_by or "",
    )
    verify_item(item)
    return res


def _reference_type(source_ref: str) -> str:
    prefix = source_ref.partition(":")[0]
    return prefix if prefix in ReferenceType.values else ReferenceType.MANUAL


def _settle(*, source_ref: str, state: str, performed_by: str = "") -> Decimal:
    active = StockReservation.objects.filter(source_ref=source_ref, state=StockReservation.STATE_ACTIVE)
    item_ids = set(active.values_list("item_id", flat=True))
    if not item_ids:
        return ZERO
    items = lock_items(item_ids)
    rows = list(active.select_for_update().filter(item_id__in=list(items)).order_by("id"))
    total = ZERO
    for res in rows:
        item = items[res.item_id]
        if res.quantity > item.reserved:
            raise InvariantViolation(f"Reservation {res.id} exceeds reserved total of item {item.id}")
        item.reserved = item.reserved - res.quantity
        res.state = state
        res.save(update_fields=["state", "updated_at"])
        total += res.quantity
        if state == StockReservation.STATE_RELEASED:
            _record(
                type=TransactionType.DEALLOCATE,
                item=item,
                lot=res.lot,
                location=res.location,
                quantity=res.quantity,
                reference_type=_reference_type(source_ref),
                reference_id=source_ref.partition(":")[2],
                project_id=res.project_id,
                project_name=res.project_name,
                performed_by=performed_by or "",
            )
    for item in items.values():
        item.save(update_fields=["reserved", "updated_at"])
        verify_item(item)
    return total


@transaction.atomic
def release(*, source_ref: str, performed_by: str = "") -> Decimal:
    """Release every active reservation held under ``source_ref``. Idempotent."""
    total = _settle(source_ref=source_ref, state=StockReservation.STATE_RELEASED, performed_by=performed_by)
    if total:
        logger.info(
            "reservation_released",
            extra={"event": "reservation_released", "source_ref": source_ref, "quantity": str(total)},
        )
    return total


@transaction.atomic
def convert(*, source_ref: str) -> Decimal:
    """Mark the reservations of a completed operation as consumed."""
    return _settle(source_ref=source_ref, state=StockReservation.STATE_CONVERTED)


@transaction.atomic
def rekey(*, source_ref: str, new_ref: str) -> Decimal:
    """Move the active reservations of ``source_ref`` under ``new_ref``.

    Quantities and item totals stay as they are. Returns the quantity moved.
    """
    if not new_ref:
        raise ValidationError("Reservation needs a source reference", errors={"source_ref": new_ref})
    active = StockReservation.objects.filter(source_ref=source_ref, state=StockReservation.STATE_ACTIVE)
    items = lock_items(set(active.values_list("item_id", flat=True)))
    if not items:
        return ZERO
    total = ZERO
    for res in active.select_for_update().filter(item_id__in=list(items)).order_by("id"):
        res.source_ref = new_ref
        res.save(update_fields=["source_ref", "updated_at"])
        total += res.quantity
    logger.info(
        "reservation_rekeyed",
        extra={"event": "reservation_rekeyed", "source_ref": source_ref, "new_ref": new_ref, "quantity": str(total)},
    )
    return total


@transaction.atomic
def hand_over_project_allocation(
    *,
    item_id: int,
    project_id: str,
    quantity,
    location_id: int | None = None,
    ref_prefixes: tuple[str, ...] = ("po:", "job:"),
) -> Decimal:
    """Free up to ``quantity`` held for a project by another source.

    Holds come from a purchase order (``po:``) or, once that order is fully
    received, from the job itself (``job:``). Used before a project transfer
    reserves the same stock under its own reference. Returns how much was
    freed.
    """
    qty = _positive(quantity)
    if not project_id:
        return ZERO
    item = _lock_item(item_id)
    prefixed = Q()
    for prefix in ref_prefixes:
        prefixed |= Q(source_ref__startswith=prefix)
    qs = StockReservation.objects.select_for_update().filter(
        prefixed,
        item_id=item_id,
        project_id=project_id,
        state=StockReservation.STATE_ACTIVE,
    )
    if location_id is not None:
        qs = qs.filter(location_id=location_id)
    rows = list(qs.order_by("created_at", "id"))
    if not rows:
        return ZERO

    freed = ZERO
    for res in rows:
        take = min(res.quantity, qty - freed)
        if take <= 0:
            break
        if take == res.quantity:
            res.state = StockReservation.STATE_RELEASED
            res.save(update_fields=["state", "updated_at"])
        else:
            res.quantity = res.quantity - take
            res.save(update_fields=["quantity", "updated_at"])
        freed += take
        _record(
            type=TransactionType.DEALLOCATE,
            item=item,
            lot=res.lot,
            location=res.location,
            quantity=take,
            reference_type=_reference_type(res.source_ref),
            reference_id=res.source_ref.partition(":")[2],
            project_id=res.project_id,
            project_name=res.project_name,
            notes="Handed over to project transfer",
        )
    item.reserved = item.reserved - freed
    item.save(update_fields=["reserved", "updated_at"])
    verify_item(item)
    return freed


# EOF
