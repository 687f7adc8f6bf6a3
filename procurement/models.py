"""Purchase orders and the deliveries received against them."""

from decimal import Decimal

from common.choices import DeliveryStatus, PurchaseOrderStatus
from common.models import TimeStampedModel
from django.db import models
from inventory.models import money_field, quantity_field


class PurchaseOrder(TimeStampedModel):
    """Order placed with a vendor, either for stock or for one project.

    Totals are denormalized so reports never recompute them.
    """

    STATUS_DRAFT = PurchaseOrderStatus.DRAFT
    STATUS_SUBMITTED = PurchaseOrderStatus.SUBMITTED
    STATUS_CONFIRMED = PurchaseOrderStatus.CONFIRMED
    STATUS_PARTIAL = PurchaseOrderStatus.PARTIAL
    STATUS_RECEIVED = PurchaseOrderStatus.RECEIVED
    STATUS_CANCELLED = PurchaseOrderStatus.CANCELLED
    STATUS_CHOICES = PurchaseOrderStatus.choices

    po_number = models.CharField(max_length=32, unique=True, null=True, blank=True, db_index=True)
    vendor_id = models.CharField(max_length=64, blank=True)
    vendor_name = models.CharField(max_length=200)
    # Blank project means a stock order
    project_id = models.CharField(max_length=64, blank=True, db_index=True)
    project_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    subtotal = money_field()
    tax = money_field()
    total = money_field()
    created_by = models.CharField(max_length=150, blank=True)
    submitted_date = models.DateTimeField(null=True, blank=True)
    confirmed_date = models.DateTimeField(null=True, blank=True)
    cancelled_date = models.DateTimeField(null=True, blank=True)
    expected_delivery_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-id"]
        permissions = [
            ("approve_purchaseorder", "Can submit and confirm purchase orders"),
        ]
        constraints = [
            models.CheckConstraint(name="po_totals_non_negative", condition=models.Q(subtotal__gte=0, tax__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.po_number or self.id} {self.vendor_name} {self.status}"

    @property
    def allocation_ref(self) -> str:
        return f"po:{self.id}"

    @property
    def project_ref(self) -> str:
        # Holds move here once the order is fully received
        return f"job:{self.project_id}"

    @property
    def is_open(self) -> bool:
        return self.status not in (self.STATUS_RECEIVED, self.STATUS_CANCELLED)


class PurchaseOrderLine(TimeStampedModel):
    purchase_order = models.ForeignKey(PurchaseOrder, related_name="lines", on_delete=models.CASCADE)
    material_name = models.CharField(max_length=200)
    sku = models.CharField(max_length=64, blank=True)
    quantity = quantity_field()
    unit = models.CharField(max_length=16, default="sqft")
    unit_cost = money_field()
    total = money_field()
    # Vendor lot the shipment is expected to carry
    lot_number = models.CharField(max_length=64, blank=True)
    received_quantity = quantity_field()
    damaged_quantity = quantity_field()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(name="po_line_positive_qty", condition=models.Q(quantity__gt=0)),
            models.CheckConstraint(name="po_line_cost_non_negative", condition=models.Q(unit_cost__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"POLine#{self.id} {self.material_name} {self.received_quantity}/{self.quantity}"

    @property
    def outstanding(self) -> Decimal:
        return max(Decimal("0"), self.quantity - self.received_quantity)


class Delivery(TimeStampedModel):
    STATUS_SCHEDULED = DeliveryStatus.SCHEDULED
    STATUS_IN_TRANSIT = DeliveryStatus.IN_TRANSIT
    STATUS_ARRIVED = DeliveryStatus.ARRIVED
    STATUS_CHECKED_IN = DeliveryStatus.CHECKED_IN
    STATUS_ISSUES = DeliveryStatus.ISSUES
    STATUS_CHOICES = DeliveryStatus.choices

    purchase_order = models.ForeignKey(PurchaseOrder, related_name="deliveries", on_delete=models.PROTECT)
    vendor_name = models.CharField(max_length=200, blank=True)
    project_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    scheduled_date = models.DateField(null=True, blank=True)
    estimated_time = models.CharField(max_length=32, blank=True)
    actual_arrival = models.DateTimeField(null=True, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_in_by = models.CharField(max_length=150, blank=True)
    location = models.ForeignKey(
        "locations.Location", null=True, blank=True, related_name="deliveries", on_delete=models.PROTECT
    )
    issues = models.TextField(blank=True)
    photos = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-id"]
        verbose_name_plural = "deliveries"
        permissions = [
            ("receive_delivery", "Can check in deliveries"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Delivery#{self.id} po={self.purchase_order_id} {self.status}"


class DeliveryLine(TimeStampedModel):
    delivery = models.ForeignKey(Delivery, related_name="lines", on_delete=models.CASCADE)
    po_line = models.ForeignKey(
        PurchaseOrderLine, null=True, blank=True, related_name="delivery_lines", on_delete=models.SET_NULL
    )
    lot = models.ForeignKey(
        "inventory.MaterialLot", null=True, blank=True, related_name="delivery_lines", on_delete=models.PROTECT
    )
    material_name = models.CharField(max_length=200)
    sku = models.CharField(max_length=64, blank=True)
    ordered_quantity = quantity_field()
    received_quantity = quantity_field()
    damaged_quantity = quantity_field()
    lot_number = models.CharField(max_length=64, blank=True)
    dye_lot = models.CharField(max_length=64, blank=True)
    unit = models.CharField(max_length=16, default="sqft")

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                name="delivery_line_damaged_le_received",
                condition=models.Q(damaged_quantity__lte=models.F("received_quantity")),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"DeliveryLine#{self.id} {self.material_name} {self.received_quantity}"

    @property
    def accepted_quantity(self) -> Decimal:
        return self.received_quantity - self.damaged_quantity


# EOF
