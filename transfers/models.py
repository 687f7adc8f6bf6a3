"""Stock transfers between locations.

A transfer reserves its lines at the source when created and only moves
quantity when it is received. ``version`` is bumped on every transition and
must be echoed back by callers advancing the transfer.
"""

from common.choices import TransferStatus
from common.models import TimeStampedModel
from django.db import models
from inventory.models import quantity_field


class StockTransfer(TimeStampedModel):
    STATUS_PENDING = TransferStatus.PENDING
    STATUS_APPROVED = TransferStatus.APPROVED
    STATUS_PICKING = TransferStatus.PICKING
    STATUS_IN_TRANSIT = TransferStatus.IN_TRANSIT
    STATUS_RECEIVED = TransferStatus.RECEIVED
    STATUS_CANCELLED = TransferStatus.CANCELLED
    STATUS_CHOICES = TransferStatus.choices

    transfer_number = models.CharField(max_length=32, unique=True, null=True, blank=True, db_index=True)
    from_location = models.ForeignKey(
        "locations.Location", related_name="outgoing_transfers", on_delete=models.PROTECT
    )
    to_location = models.ForeignKey("locations.Location", related_name="incoming_transfers", on_delete=models.PROTECT)
    project_id = models.CharField(max_length=64, blank=True, db_index=True)
    project_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    version = models.PositiveIntegerField(default=1)
    total_items = models.PositiveIntegerField(default=0)
    total_quantity = quantity_field()
    created_by = models.CharField(max_length=150, blank=True)
    approved_by = models.CharField(max_length=150, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    picked_by = models.CharField(max_length=150, blank=True)
    picked_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    received_by = models.CharField(max_length=150, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-id"]
        permissions = [
            ("approve_stocktransfer", "Can approve stock transfers"),
            ("pick_stocktransfer", "Can pick stock transfers"),
            ("receive_stocktransfer", "Can receive stock transfers"),
        ]
        constraints = [
            models.CheckConstraint(
                name="transfer_distinct_locations",
                condition=~models.Q(from_location=models.F("to_location")),
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="transfers_status_created_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.transfer_number or self.id} {self.from_location_id}->{self.to_location_id} {self.status}"

    @property
    def reservation_ref(self) -> str:
        return f"transfer:{self.id}"


class TransferLine(TimeStampedModel):
    transfer = models.ForeignKey(StockTransfer, related_name="lines", on_delete=models.CASCADE)
    item = models.ForeignKey("inventory.InventoryItem", related_name="transfer_lines", on_delete=models.PROTECT)
    lot = models.ForeignKey("inventory.MaterialLot", related_name="transfer_lines", on_delete=models.PROTECT)
    # Snapshots for packing slips
    item_name = models.CharField(max_length=200, blank=True)
    sku = models.CharField(max_length=64, blank=True)
    unit = models.CharField(max_length=16, blank=True)
    lot_number = models.CharField(max_length=64, blank=True)
    dye_lot = models.CharField(max_length=64, blank=True)
    quantity = quantity_field()
    picked_quantity = quantity_field(null=True, blank=True)
    received_quantity = quantity_field(null=True, blank=True)
    notes = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(name="transfer_line_positive_qty", condition=models.Q(quantity__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"TransferLine#{self.id} transfer={self.transfer_id} lot={self.lot_id} qty={self.quantity}"


# EOF
