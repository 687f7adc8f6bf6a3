import decimal

import django.db.models.deletion
from django.db import migrations, models

TRANSFER_STATUSES = [
    ("pending", "Pending"),
    ("approved", "Approved"),
    ("picking", "Picking"),
    ("in_transit", "In transit"),
    ("received", "Received"),
    ("cancelled", "Cancelled"),
]


def quantity(**kwargs):
    return models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=14, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
        ("locations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="StockTransfer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "transfer_number",
                    models.CharField(blank=True, db_index=True, max_length=32, null=True, unique=True),
                ),
                ("project_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                (
                    "status",
                    models.CharField(choices=TRANSFER_STATUSES, db_index=True, default="pending", max_length=16),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                ("total_items", models.PositiveIntegerField(default=0)),
                ("total_quantity", quantity()),
                ("created_by", models.CharField(blank=True, max_length=150)),
                ("approved_by", models.CharField(blank=True, max_length=150)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("picked_by", models.CharField(blank=True, max_length=150)),
                ("picked_at", models.DateTimeField(blank=True, null=True)),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                ("received_by", models.CharField(blank=True, max_length=150)),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancel_reason", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                (
                    "from_location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="outgoing_transfers",
                        to="locations.location",
                    ),
                ),
                (
                    "to_location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_transfers",
                        to="locations.location",
                    ),
                ),
            ],
            options={
                "ordering": ["-id"],
                "permissions": [
                    ("approve_stocktransfer", "Can approve stock transfers"),
                    ("pick_stocktransfer", "Can pick stock transfers"),
                    ("receive_stocktransfer", "Can receive stock transfers"),
                ],
                "indexes": [models.Index(fields=["status", "created_at"], name="transfers_status_created_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("from_location", models.F("to_location")), _negated=True),
                        name="transfer_distinct_locations",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransferLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("item_name", models.CharField(blank=True, max_length=200)),
                ("sku", models.CharField(blank=True, max_length=64)),
                ("unit", models.CharField(blank=True, max_length=16)),
                ("lot_number", models.CharField(blank=True, max_length=64)),
                ("dye_lot", models.CharField(blank=True, max_length=64)),
                ("quantity", quantity()),
                ("picked_quantity", quantity(blank=True, null=True)),
                ("received_quantity", quantity(blank=True, null=True)),
                ("notes", models.CharField(blank=True, max_length=255)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfer_lines",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "lot",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfer_lines",
                        to="inventory.materiallot",
                    ),
                ),
                (
                    "transfer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="transfers.stocktransfer",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="transfer_line_positive_qty"),
                ],
            },
        ),
    ]
