import decimal

import django.db.models.deletion
from django.db import migrations, models

PO_STATUSES = [
    ("draft", "Draft"),
    ("submitted", "Submitted"),
    ("confirmed", "Confirmed"),
    ("partial", "Partially received"),
    ("received", "Received"),
    ("cancelled", "Cancelled"),
]
DELIVERY_STATUSES = [
    ("scheduled", "Scheduled"),
    ("in-transit", "In transit"),
    ("arrived", "Arrived"),
    ("checked-in", "Checked in"),
    ("issues", "Issues"),
]


def quantity(**kwargs):
    return models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=14, **kwargs)


def money(**kwargs):
    return models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=12, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
        ("locations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("po_number", models.CharField(blank=True, db_index=True, max_length=32, null=True, unique=True)),
                ("vendor_id", models.CharField(blank=True, max_length=64)),
                ("vendor_name", models.CharField(max_length=200)),
                ("project_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                ("status", models.CharField(choices=PO_STATUSES, db_index=True, default="draft", max_length=16)),
                ("subtotal", money()),
                ("tax", money()),
                ("total", money()),
                ("created_by", models.CharField(blank=True, max_length=150)),
                ("submitted_date", models.DateTimeField(blank=True, null=True)),
                ("confirmed_date", models.DateTimeField(blank=True, null=True)),
                ("cancelled_date", models.DateTimeField(blank=True, null=True)),
                ("expected_delivery_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
            ],
            options={
                "ordering": ["-id"],
                "permissions": [("approve_purchaseorder", "Can submit and confirm purchase orders")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("subtotal__gte", 0), ("tax__gte", 0)), name="po_totals_non_negative"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("material_name", models.CharField(max_length=200)),
                ("sku", models.CharField(blank=True, max_length=64)),
                ("quantity", quantity()),
                ("unit", models.CharField(default="sqft", max_length=16)),
                ("unit_cost", money()),
                ("total", money()),
                ("lot_number", models.CharField(blank=True, max_length=64)),
                ("received_quantity", quantity()),
                ("damaged_quantity", quantity()),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="procurement.purchaseorder",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="po_line_positive_qty"),
                    models.CheckConstraint(condition=models.Q(("unit_cost__gte", 0)), name="po_line_cost_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Delivery",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("vendor_name", models.CharField(blank=True, max_length=200)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                (
                    "status",
                    models.CharField(choices=DELIVERY_STATUSES, db_index=True, default="scheduled", max_length=16),
                ),
                ("scheduled_date", models.DateField(blank=True, null=True)),
                ("estimated_time", models.CharField(blank=True, max_length=32)),
                ("actual_arrival", models.DateTimeField(blank=True, null=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("checked_in_by", models.CharField(blank=True, max_length=150)),
                ("issues", models.TextField(blank=True)),
                ("photos", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True)),
                (
                    "location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="deliveries",
                        to="locations.location",
                    ),
                ),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="deliveries",
                        to="procurement.purchaseorder",
                    ),
                ),
            ],
            options={
                "ordering": ["-id"],
                "verbose_name_plural": "deliveries",
                "permissions": [("receive_delivery", "Can check in deliveries")],
            },
        ),
        migrations.CreateModel(
            name="DeliveryLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("material_name", models.CharField(max_length=200)),
                ("sku", models.CharField(blank=True, max_length=64)),
                ("ordered_quantity", quantity()),
                ("received_quantity", quantity()),
                ("damaged_quantity", quantity()),
                ("lot_number", models.CharField(blank=True, max_length=64)),
                ("dye_lot", models.CharField(blank=True, max_length=64)),
                ("unit", models.CharField(default="sqft", max_length=16)),
                (
                    "delivery",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="procurement.delivery",
                    ),
                ),
                (
                    "lot",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery_lines",
                        to="inventory.materiallot",
                    ),
                ),
                (
                    "po_line",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="delivery_lines",
                        to="procurement.purchaseorderline",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("damaged_quantity__lte", models.F("received_quantity"))),
                        name="delivery_line_damaged_le_received",
                    ),
                ],
            },
        ),
    ]
