"""Inventory models: items, production lots and their per-location splits.

A lot's quantity is never stored per location on the lot itself. The
``LotLocation`` rows are the only source of truth for where a lot sits, and
``MaterialLot.current_quantity`` must always equal the sum of its splits.
``InventoryItem.stock``/``reserved`` are denormalized totals kept in step by
the services in this app.
"""

from decimal import Decimal

from common.choices import LotStatus, QCStatus, ReferenceType, ReservationState, TransactionType
from common.models import TimeStampedModel
from django.db import models
from django.utils import timezone

ZERO = Decimal("0")


def quantity_field(**kwargs):
    return models.DecimalField(max_digits=14, decimal_places=2, default=ZERO, **kwargs)


def money_field(**kwargs):
    return models.DecimalField(max_digits=12, decimal_places=2, default=ZERO, **kwargs)


class InventoryItem(TimeStampedModel):
    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=200)
    unit = models.CharField(max_length=16, default="sqft")
    category = models.CharField(max_length=64, blank=True)
    # Sum of current lot quantities across all locations
    stock = quantity_field()
    # Sum of active reservations
    reserved = quantity_field()

    class Meta:
        ordering = ["name", "id"]
        constraints = [
            models.CheckConstraint(name="item_stock_non_negative", condition=models.Q(stock__gte=0)),
            models.CheckConstraint(name="item_reserved_non_negative", condition=models.Q(reserved__gte=0)),
            models.CheckConstraint(
                name="item_reserved_le_stock",
                condition=models.Q(reserved__lte=models.F("stock")),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.sku} {self.name} stock={self.stock} r={self.reserved}"

    @property
    def available(self) -> Decimal:
        return self.stock - self.reserved


class MaterialLot(TimeStampedModel):
    STATUS_ACTIVE = LotStatus.ACTIVE
    STATUS_DAMAGED = LotStatus.DAMAGED
    STATUS_CONSUMED = LotStatus.CONSUMED
    STATUS_CHOICES = LotStatus.choices

    QC_PENDING = QCStatus.PENDING
    QC_PASSED = QCStatus.PASSED
    QC_FAILED = QCStatus.FAILED
    QC_CHOICES = QCStatus.choices

    item = models.ForeignKey(InventoryItem, related_name="lots", on_delete=models.PROTECT)
    # Snapshots of the item at receipt time
    item_name = models.CharField(max_length=200, blank=True)
    sku = models.CharField(max_length=64, blank=True)
    lot_number = models.CharField(max_length=64, db_index=True)
    # Blank means the material is not dye-controlled
    dye_lot = models.CharField(max_length=64, blank=True, db_index=True)
    original_quantity = quantity_field()
    current_quantity = quantity_field()
    unit = models.CharField(max_length=16, default="sqft")
    unit_cost = money_field()
    vendor_id = models.CharField(max_length=64, blank=True)
    vendor_name = models.CharField(max_length=200, blank=True)
    received_date = models.DateTimeField(default=timezone.now)
    delivery_ref = models.CharField(max_length=64, blank=True)
    po_number = models.CharField(max_length=32, blank=True, db_index=True)
    expiration_date = models.DateField(null=True, blank=True)
    qc_status = models.CharField(max_length=16, choices=QC_CHOICES, default=QC_PENDING)
    qc_notes = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["received_date", "id"]
        permissions = [
            ("adjust_materiallot", "Can adjust lot quantities"),
        ]
        constraints = [
            models.CheckConstraint(name="lot_current_non_negative", condition=models.Q(current_quantity__gte=0)),
            models.CheckConstraint(
                name="lot_current_le_original",
                condition=models.Q(current_quantity__lte=models.F("original_quantity")),
            ),
            models.CheckConstraint(name="lot_cost_non_negative", condition=models.Q(unit_cost__gte=0)),
        ]
        indexes = [
            models.Index(fields=["item", "status"], name="inv_lot_item_status_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Lot {self.lot_number} ({self.sku}) {self.current_quantity}/{self.original_quantity}"


class LotLocation(TimeStampedModel):
    """How much of a lot sits at one location."""

    lot = models.ForeignKey(MaterialLot, related_name="splits", on_delete=models.CASCADE)
    location = models.ForeignKey("locations.Location", related_name="lot_splits", on_delete=models.PROTECT)
    quantity = quantity_field()

    class Meta:
        ordering = ["lot_id", "location_id"]
        constraints = [
            models.UniqueConstraint(fields=["lot", "location"], name="unique_lot_location"),
            models.CheckConstraint(name="split_non_negative", condition=models.Q(quantity__gte=0)),
        ]
        indexes = [
            models.Index(fields=["location", "lot"], name="inv_split_location_lot_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Lot<{self.lot_id}>@{self.location_id} q={self.quantity}"


class InventoryTransaction(models.Model):
    """Append-only audit log of every quantity change."""

    TYPE_CHOICES = TransactionType.choices
    REFERENCE_CHOICES = ReferenceType.choices

    type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)
    item = models.ForeignKey(InventoryItem, related_name="transactions", on_delete=models.PROTECT)
    item_name = models.CharField(max_length=200, blank=True)
    lot = models.ForeignKey(MaterialLot, null=True, blank=True, related_name="transactions", on_delete=models.PROTECT)
    location = models.ForeignKey(
        "locations.Location", null=True, blank=True, related_name="transactions", on_delete=models.PROTECT
    )
    to_location = models.ForeignKey(
        "locations.Location", null=True, blank=True, related_name="incoming_transactions", on_delete=models.PROTECT
    )
    # Always positive; the type says which way it went
    quantity = quantity_field()
    unit = models.CharField(max_length=16, blank=True)
    unit_cost = money_field(null=True, blank=True)
    total_cost = money_field(null=True, blank=True)
    reference_type = models.CharField(max_length=16, choices=REFERENCE_CHOICES, default=ReferenceType.MANUAL)
    reference_id = models.CharField(max_length=64, blank=True, db_index=True)
    project_id = models.CharField(max_length=64, blank=True)
    project_name = models.CharField(max_length=200, blank=True)
    performed_by = models.CharField(max_length=150, blank=True)
    reason = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    # Lot quantity at `location` after this entry
    balance_after = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(name="transaction_quantity_positive", condition=models.Q(quantity__gt=0)),
        ]
        indexes = [
            models.Index(fields=["location", "created_at"], name="inv_txn_location_created_idx"),
            models.Index(fields=["to_location", "created_at"], name="inv_txn_to_loc_created_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.type} {self.quantity} item={self.item_id} lot={self.lot_id}"


class StockReservation(TimeStampedModel):
    STATE_ACTIVE = ReservationState.ACTIVE
    STATE_RELEASED = ReservationState.RELEASED
    STATE_CONVERTED = ReservationState.CONVERTED
    STATE_CHOICES = ReservationState.choices

    item = models.ForeignKey(InventoryItem, related_name="reservations", on_delete=models.PROTECT)
    lot = models.ForeignKey(MaterialLot, null=True, blank=True, related_name="reservations", on_delete=models.PROTECT)
    location = models.ForeignKey(
        "locations.Location", null=True, blank=True, related_name="reservations", on_delete=models.PROTECT
    )
    quantity = quantity_field()
    # e.g. "transfer:12", "po:3", "job:PRJ-7"
    source_ref = models.CharField(max_length=120)
    project_id = models.CharField(max_length=64, blank=True)
    project_name = models.CharField(max_length=200, blank=True)
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_ACTIVE)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(name="reservation_positive_qty", condition=models.Q(quantity__gt=0)),
        ]
        indexes = [
            models.Index(fields=["item", "state"], name="inv_res_item_state_idx"),
            models.Index(fields=["source_ref"], name="inv_res_source_ref_idx"),
            models.Index(fields=["location", "state"], name="inv_res_location_state_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Reservation<{self.item_id}> qty={self.quantity} ref={self.source_ref} state={self.state}"


# EOF
