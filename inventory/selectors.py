"""Read-side queries for inventory.

Availability lookups used by the services, plus the location-level
aggregation behind the warehouse dashboards (inventory summary, dye-lot
variance detection, item distribution, location value and activity). None of
these mutate or lock anything.
"""

from collections import Counter, OrderedDict
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from common.choices import TransactionType
from common.exceptions import DyeLotVarianceWarning, NotFoundError
from django.db.models import Q, Sum
from django.utils import timezone
from locations.models import Location
from locations.selectors import get_location

from .models import ZERO, InventoryItem, InventoryTransaction, LotLocation, MaterialLot, StockReservation

CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_item(item_id: int) -> InventoryItem:
    try:
        return InventoryItem.objects.get(id=item_id)
    except (InventoryItem.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Item {item_id} not found")


def get_lot(lot_id: int) -> MaterialLot:
    try:
        return MaterialLot.objects.select_related("item").get(id=lot_id)
    except (MaterialLot.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Lot {lot_id} not found")


def split_quantity(lot_id: int, location_id: int) -> Decimal:
    row = LotLocation.objects.filter(lot_id=lot_id, location_id=location_id).only("quantity").first()
    return row.quantity if row else ZERO


def total_quantity(lot_id: int) -> Decimal:
    return LotLocation.objects.filter(lot_id=lot_id).aggregate(total=Sum("quantity"))["total"] or ZERO


def lot_locations(lot_id: int) -> list[dict]:
    """Per-lot split list: where the lot sits and how much is at each place."""
    return [
        {"location_id": s.location_id, "location_code": s.location.code, "quantity": s.quantity}
        for s in LotLocation.objects.filter(lot_id=lot_id, quantity__gt=0).select_related("location")
    ]


def available(item_id: int) -> Decimal:
    try:
        item = InventoryItem.objects.only("stock", "reserved").get(id=item_id)
    except InventoryItem.DoesNotExist:
        return ZERO
    return item.stock - item.reserved


def _active_reserved(**filters) -> Decimal:
    qs = StockReservation.objects.filter(state=StockReservation.STATE_ACTIVE, **filters)
    return qs.aggregate(total=Sum("quantity"))["total"] or ZERO


def available_at_location(item_id: int, location_id: int, lot_id: int | None = None) -> Decimal:
    """Unreserved quantity of an item at one location, optionally of one lot.

    Reservations pinned to the location count against it; lot-pinned ones also
    count against their lot. The lot figure never exceeds the location figure.
    """
    on_hand = (
        LotLocation.objects.filter(lot__item_id=item_id, location_id=location_id).aggregate(total=Sum("quantity"))[
            "total"
        ]
        or ZERO
    )
    at_location = on_hand - _active_reserved(item_id=item_id, location_id=location_id)
    if lot_id is None:
        return max(ZERO, at_location)
    at_lot = split_quantity(lot_id, location_id) - _active_reserved(lot_id=lot_id, location_id=location_id)
    return max(ZERO, min(at_lot, at_location))


def list_active_reservations(*, source_ref: str | None = None, item_id: int | None = None):
    qs = StockReservation.objects.filter(state=StockReservation.STATE_ACTIVE)
    if source_ref:
        qs = qs.filter(source_ref=source_ref)
    if item_id:
        qs = qs.filter(item_id=item_id)
    return list(qs.order_by("created_at", "id"))


# Allocation / dashboard aggregation


def get_location_inventory_summary(location_id: int) -> dict:
    """What is at a location, grouped by item, with dye-lot variance flags.

    Only active lots with a non-zero split at the location are counted. Items
    are ordered by value, highest first.
    """
    location = get_location(location_id)
    splits = (
        LotLocation.objects.filter(location_id=location.id, quantity__gt=0, lot__status=MaterialLot.STATUS_ACTIVE)
        .select_related("lot", "lot__item")
        .order_by("lot__received_date", "lot_id")
    )

    grouped: "OrderedDict[int, dict]" = OrderedDict()
    for split in splits:
        lot = split.lot
        entry = grouped.get(lot.item_id)
        if entry is None:
            entry = grouped[lot.item_id] = {
                "item_id": lot.item_id,
                "item_name": lot.item_name or lot.item.name,
                "sku": lot.sku or lot.item.sku,
                "unit": lot.unit or lot.item.unit,
                "total_quantity": ZERO,
                "total_value": ZERO,
                "lot_count": 0,
                "dye_lots": [],
                "has_dye_lot_variance": False,
                "oldest_lot_date": lot.received_date,
                "newest_lot_date": lot.received_date,
                "lots": [],
            }
        entry["total_quantity"] += split.quantity
        entry["total_value"] += split.quantity * lot.unit_cost
        entry["lot_count"] += 1
        if lot.dye_lot and lot.dye_lot not in entry["dye_lots"]:
            entry["dye_lots"].append(lot.dye_lot)
        entry["oldest_lot_date"] = min(entry["oldest_lot_date"], lot.received_date)
        entry["newest_lot_date"] = max(entry["newest_lot_date"], lot.received_date)
        entry["lots"].append(
            {
                "lot_id": lot.id,
                "lot_number": lot.lot_number,
                "dye_lot": lot.dye_lot,
                "quantity": split.quantity,
                "unit_cost": lot.unit_cost,
                "received_date": lot.received_date,
            }
        )

    items = list(grouped.values())
    for entry in items:
        entry["has_dye_lot_variance"] = len(entry["dye_lots"]) > 1
        entry["total_value"] = _money(entry["total_value"])
    items.sort(key=lambda e: e["total_value"], reverse=True)

    return {
        "location_id": location.id,
        "location_code": location.code,
        "location_name": location.name,
        "unique_items": len(items),
        "total_units": sum((e["total_quantity"] for e in items), ZERO),
        "total_value": _money(sum((e["total_value"] for e in items), ZERO)),
        "dye_lot_warnings": sum(1 for e in items if e["has_dye_lot_variance"]),
        "items": items,
    }


def _project_allocated_item_ids(location: Location, item_ids) -> set[int]:
    if location.type == Location.TYPE_JOBSITE and location.project_id:
        return set(item_ids)
    qs = (
        StockReservation.objects.filter(state=StockReservation.STATE_ACTIVE, item_id__in=item_ids)
        .exclude(project_id="")
        .values_list("item_id", flat=True)
    )
    return set(qs)


def check_dye_lot_variances(location_id: int) -> list[DyeLotVarianceWarning]:
    """One advisory per item holding more than one dye lot at the location.

    Critical when the item is allocated to an active project (or the location
    is a project jobsite), or when three or more dye lots are mixed.
    """
    location = get_location(location_id)
    summary = get_location_inventory_summary(location.id)
    flagged = [e for e in summary["items"] if e["has_dye_lot_variance"]]
    if not flagged:
        return []

    allocated = _project_allocated_item_ids(location, [e["item_id"] for e in flagged])
    warnings = []
    for entry in flagged:
        count = len(entry["dye_lots"])
        critical = entry["item_id"] in allocated or count > 2
        warnings.append(
            DyeLotVarianceWarning(
                item_id=entry["item_id"],
                item_name=entry["item_name"],
                sku=entry["sku"],
                dye_lots=list(entry["dye_lots"]),
                lot_count=entry["lot_count"],
                severity="critical" if critical else "warning",
                message=(
                    f"{entry['lot_count']} lots with {count} different dye lots at this location. "
                    "Verify compatibility before issuing to same project."
                ),
            )
        )
    return warnings


def get_item_location_distribution(item_id: int) -> list[dict]:
    get_item(item_id)
    splits = (
        LotLocation.objects.filter(lot__item_id=item_id, quantity__gt=0)
        .select_related("lot", "location")
        .order_by("location__code", "lot_id")
    )
    by_location: "OrderedDict[int, dict]" = OrderedDict()
    for split in splits:
        row = by_location.get(split.location_id)
        if row is None:
            row = by_location[split.location_id] = {
                "location_id": split.location_id,
                "location_code": split.location.code,
                "location_name": split.location.name,
                "location_type": split.location.type,
                "quantity": ZERO,
                "lot_count": 0,
                "dye_lots": [],
            }
        row["quantity"] += split.quantity
        row["lot_count"] += 1
        if split.lot.dye_lot and split.lot.dye_lot not in row["dye_lots"]:
            row["dye_lots"].append(split.lot.dye_lot)
    return sorted(by_location.values(), key=lambda r: r["quantity"], reverse=True)


def calculate_location_value(location_id: int) -> Decimal:
    total = ZERO
    for split in LotLocation.objects.filter(location_id=location_id, quantity__gt=0).select_related("lot"):
        total += split.quantity * split.lot.unit_cost
    return _money(total)


def get_location_activity_metrics(location_id: int, day_range: int = 30, now=None) -> dict:
    """Transaction counts touching a location over the last ``day_range`` days."""
    location = get_location(location_id)
    now = now or timezone.now()
    cutoff = now - timedelta(days=int(day_range))
    txns = list(
        InventoryTransaction.objects.filter(created_at__gte=cutoff, created_at__lte=now)
        .filter(Q(location_id=location.id) | Q(to_location_id=location.id))
        .order_by("-created_at", "-id")
    )

    incoming = (TransactionType.RECEIVE, TransactionType.TRANSFER_IN)
    counts = Counter(t.item_name for t in txns)
    return {
        "location_id": location.id,
        "day_range": int(day_range),
        "receives": sum(1 for t in txns if t.type in incoming and t.location_id == location.id),
        "transfers": sum(1 for t in txns if t.type == TransactionType.TRANSFER_OUT and t.location_id == location.id),
        "issues": sum(1 for t in txns if t.type == TransactionType.ISSUE and t.location_id == location.id),
        "last_activity": txns[0].created_at if txns else None,
        "top_items": [{"item_name": name, "count": n} for name, n in counts.most_common(5)],
    }


def compute_location_utilization(location_id: int) -> int | None:
    """Units on hand as a percentage of capacity, clamped to 0..100."""
    location = get_location(location_id)
    if not location.capacity:
        return None
    units = LotLocation.objects.filter(location_id=location.id).aggregate(total=Sum("quantity"))["total"] or ZERO
    pct = (Decimal(units) * 100 / Decimal(location.capacity)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(pct)))


# EOF
