import logging
from collections import defaultdict

from common import permissions
from common.choices import ReferenceType, TransferStatus
from common.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from django.db import transaction
from django.utils import timezone
from inventory import services as inventory_services
from inventory.models import ZERO
from inventory.selectors import split_quantity
from locations.models import Location

from .models import StockTransfer, TransferLine

logger = logging.getLogger("floorops.transfers")


S = StockTransfer

# current status -> statuses it may move to
TRANSITIONS = {
    S.STATUS_PENDING: {S.STATUS_APPROVED, S.STATUS_CANCELLED},
    S.STATUS_APPROVED: {S.STATUS_PICKING, S.STATUS_CANCELLED},
    S.STATUS_PICKING: {S.STATUS_IN_TRANSIT},
    S.STATUS_IN_TRANSIT: {S.STATUS_RECEIVED},
    S.STATUS_RECEIVED: set(),
    S.STATUS_CANCELLED: set(),
}

# target status -> capability the caller needs
REQUIRED_CAPABILITY = {
    S.STATUS_APPROVED: permissions.APPROVE_TRANSFER,
    S.STATUS_PICKING: permissions.PICK_TRANSFER,
    S.STATUS_IN_TRANSIT: permissions.PICK_TRANSFER,
    S.STATUS_RECEIVED: permissions.RECEIVE_TRANSFER,
    S.STATUS_CANCELLED: permissions.CREATE_TRANSFER,
}


def _get_location(location_id) -> Location:
    try:
        return Location.objects.get(id=location_id)
    except (Location.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Location {location_id} not found")


@transaction.atomic
def create_transfer(
    *,
    from_location_id: int,
    to_location_id: int,
    lines: list[dict],
    project_id: str = "",
    project_name: str = "",
    created_by: str = "",
    notes: str = "",
    can=None,
) -> StockTransfer:
    """Create a pending transfer and reserve every line at the source.

    ``lines`` are dicts with ``lot_id``, ``quantity`` and optionally
    ``item_id`` and ``notes``. Nothing is persisted if any line cannot be
    reserved.
    """
    permissions.require(can, permissions.CREATE_TRANSFER)
    if not lines:
        raise ValidationError("A transfer needs at least one line", errors={"lines": []})
    if int(from_location_id) == int(to_location_id):
        raise ValidationError("Source and destination must differ", errors={"to_location": to_location_id})
    source = _get_location(from_location_id)
    destination = _get_location(to_location_id)
    if not source.is_active:
        raise ValidationError(f"Location {source.code} is inactive", errors={"from_location": source.id})
    if not destination.is_active or not destination.is_receivable:
        raise ValidationError(
            f"Location {destination.code} cannot receive material", errors={"to_location": destination.id}
        )

    try:
        lots = inventory_services.lock_lots(line.get("lot_id") for line in lines)
    except (ValueError, TypeError):
        raise NotFoundError("Every line needs a valid lot", errors={"lines": [line.get("lot_id") for line in lines]})
    items = inventory_services.lock_items(lot.item_id for lot in lots.values())

    prepared = []
    for index, line in enumerate(lines):
        qty = inventory_services.to_quantity(line.get("quantity"))
        if qty <= 0:
            raise ValidationError("Quantity must be positive", errors={"lines": {index: {"quantity": str(qty)}}})
        lot = lots[int(line.get("lot_id"))]
        lot.item = items[lot.item_id]
        item_id = line.get("item_id")
        if item_id is not None and int(item_id) != lot.item_id:
            raise ValidationError("Lot does not belong to item", errors={"lines": {index: {"lot_id": lot.id}}})
        if split_quantity(lot.id, source.id) <= 0:
            raise ValidationError(
                f"Lot {lot.lot_number} is not at {source.code}", errors={"lines": {index: {"lot_id": lot.id}}}
            )
        prepared.append((lot, qty, line.get("notes") or ""))

    transfer = StockTransfer.objects.create(
        from_location=source,
        to_location=destination,
        project_id=project_id or "",
        project_name=project_name or "",
        created_by=created_by or "",
        notes=notes or "",
        total_items=len(prepared),
        total_quantity=sum((qty for _, qty, _ in prepared), ZERO),
    )
    transfer.transfer_number = f"TR-{int(transfer.id):06d}"
    transfer.save(update_fields=["transfer_number"])

    for lot, qty, line_notes in prepared:
        TransferLine.objects.create(
            transfer=transfer,
            item=lot.item,
            lot=lot,
            item_name=lot.item_name or lot.item.name,
            sku=lot.sku or lot.item.sku,
            unit=lot.unit,
            lot_number=lot.lot_number,
            dye_lot=lot.dye_lot,
            quantity=qty,
            notes=line_notes,
        )
        if transfer.project_id:
            # Stock received on a PO for this project is already held for it
            inventory_services.hand_over_project_allocation(
                item_id=lot.item_id, project_id=transfer.project_id, quantity=qty, location_id=source.id
            )
        inventory_services.reserve(
            item_id=lot.item_id,
            quantity=qty,
            source_ref=transfer.reservation_ref,
            location_id=source.id,
            lot_id=lot.id,
            project_id=transfer.project_id,
            project_name=transfer.project_name,
            performed_by=created_by,
        )

    logger.info(
        "transfer_created",
        extra={
            "event": "transfer_created",
            "transfer_id": transfer.id,
            "from_location_id": source.id,
            "to_location_id": destination.id,
            "total_quantity": str(transfer.total_quantity),
        },
    )
    return transfer


def _receive(transfer: StockTransfer, actor: str) -> None:
    lines = list(transfer.lines.all())
    inventory_services.lock_lots(line.lot_id for line in lines)
    inventory_services.lock_items(line.item_id for line in lines)

    needed = defaultdict(lambda: ZERO)
    for line in lines:
        needed[line.lot_id] += line.quantity
    shortages = {}
    for lot_id, qty in needed.items():
        held = split_quantity(lot_id, transfer.from_location_id)
        if qty > held:
            shortages[lot_id] = {"required": str(qty), "available": str(held)}
    if shortages:
        raise ConflictError(f"Transfer {transfer.transfer_number} can no longer be fulfilled", errors=shortages)

    inventory_services.convert(source_ref=transfer.reservation_ref)
    for line in lines:
        try:
            inventory_services.move_quantity(
                lot_id=line.lot_id,
                from_location_id=transfer.from_location_id,
                to_location_id=transfer.to_location_id,
                quantity=line.quantity,
                respect_reservations=False,
                performed_by=actor,
                reference_type=ReferenceType.TRANSFER,
                reference_id=transfer.transfer_number,
                project_id=transfer.project_id,
                project_name=transfer.project_name,
            )
        except InsufficientStockError as exc:
            raise ConflictError(f"Transfer {transfer.transfer_number} line {line.id} cannot move: {exc.message}")
        line.received_quantity = line.quantity
        line.save(update_fields=["received_quantity", "updated_at"])


@transaction.atomic
def advance_transfer(
    *,
    transfer_id: int,
    version: int,
    target_state: str,
    actor: str = "",
    can=None,
    reason: str = "",
) -> StockTransfer:
    """Move a transfer one step along its lifecycle.

    Raises ConflictError on a stale ``version`` or an illegal transition and
    PermissionDeniedError when ``can`` refuses the step. Receiving moves every
    line or none of them.
    """
    if target_state not in TransferStatus.values:
        raise ValidationError("Unknown transfer status", errors={"target_state": target_state})
    try:
        transfer = StockTransfer.objects.select_for_update().get(id=transfer_id)
    except (StockTransfer.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Transfer {transfer_id} not found")

    if int(version) != transfer.version:
        raise ConflictError(
            f"Transfer {transfer.transfer_number} was modified (version {transfer.version})",
            errors={"version": transfer.version},
        )
    if target_state not in TRANSITIONS[transfer.status]:
        raise ConflictError(
            f"Cannot move transfer from {transfer.status} to {target_state}",
            errors={"status": transfer.status},
        )
    permissions.require(can, REQUIRED_CAPABILITY[target_state])

    now = timezone.now()
    prev = transfer.status
    if target_state == S.STATUS_APPROVED:
        transfer.approved_at, transfer.approved_by = now, actor or ""
    elif target_state == S.STATUS_PICKING:
        transfer.picked_at, transfer.picked_by = now, actor or ""
        for line in transfer.lines.all():
            line.picked_quantity = line.quantity
            line.save(update_fields=["picked_quantity", "updated_at"])
    elif target_state == S.STATUS_IN_TRANSIT:
        transfer.shipped_at = now
    elif target_state == S.STATUS_RECEIVED:
        _receive(transfer, actor or "")
        transfer.received_at, transfer.received_by = now, actor or ""
    elif target_state == S.STATUS_CANCELLED:
        inventory_services.release(source_ref=transfer.reservation_ref, performed_by=actor or "")
        transfer.cancelled_at = now
        transfer.cancel_reason = reason or ""

    transfer.status = target_state
    transfer.version = transfer.version + 1
    transfer.save()
    logger.info(
        "transfer_status_changed",
        extra={
            "event": "transfer_status_changed",
            "transfer_id": transfer.id,
            "status_from": prev,
            "status_to": transfer.status,
            "version": transfer.version,
            "actor": actor,
        },
    )
    return transfer


# EOF
