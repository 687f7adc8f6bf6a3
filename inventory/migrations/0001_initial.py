import decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

LOT_STATUSES = [("active", "Active"), ("damaged", "Damaged"), ("consumed", "Consumed")]
QC_STATUSES = [("pending", "Pending"), ("passed", "Passed"), ("failed", "Failed")]
TRANSACTION_TYPES = [
    ("receive", "Receive"),
    ("transfer_out", "Transfer out"),
    ("transfer_in", "Transfer in"),
    ("allocate", "Allocate"),
    ("deallocate", "Deallocate"),
    ("issue", "Issue"),
    ("return", "Return"),
    ("adjust_up", "Adjust up"),
    ("adjust_down", "Adjust down"),
    ("damage", "Damage"),
    ("scrap", "Scrap"),
    ("cycle_count", "Cycle count"),
]
REFERENCE_TYPES = [
    ("po", "Purchase order"),
    ("transfer", "Transfer"),
    ("job", "Job"),
    ("cycle_count", "Cycle count"),
    ("manual", "Manual"),
]
RESERVATION_STATES = [("active", "Active"), ("released", "Released"), ("converted", "Converted")]


def quantity(**kwargs):
    return models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=14, **kwargs)


def money(**kwargs):
    return models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=12, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("locations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("unit", models.CharField(default="sqft", max_length=16)),
                ("category", models.CharField(blank=True, max_length=64)),
                ("stock", quantity()),
                ("reserved", quantity()),
            ],
            options={
                "ordering": ["name", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("stock__gte", 0)), name="item_stock_non_negative"),
                    models.CheckConstraint(
                        condition=models.Q(("reserved__gte", 0)), name="item_reserved_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("reserved__lte", models.F("stock"))), name="item_reserved_le_stock"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MaterialLot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("item_name", models.CharField(blank=True, max_length=200)),
                ("sku", models.CharField(blank=True, max_length=64)),
                ("lot_number", models.CharField(db_index=True, max_length=64)),
                ("dye_lot", models.CharField(blank=True, db_index=True, max_length=64)),
                ("original_quantity", quantity()),
                ("current_quantity", quantity()),
                ("unit", models.CharField(default="sqft", max_length=16)),
                ("unit_cost", money()),
                ("vendor_id", models.CharField(blank=True, max_length=64)),
                ("vendor_name", models.CharField(blank=True, max_length=200)),
                ("received_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("delivery_ref", models.CharField(blank=True, max_length=64)),
                ("po_number", models.CharField(blank=True, db_index=True, max_length=32)),
                ("expiration_date", models.DateField(blank=True, null=True)),
                ("qc_status", models.CharField(choices=QC_STATUSES, default="pending", max_length=16)),
                ("qc_notes", models.TextField(blank=True)),
                ("status", models.CharField(choices=LOT_STATUSES, db_index=True, default="active", max_length=16)),
                ("notes", models.TextField(blank=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="lots", to="inventory.inventoryitem"
                    ),
                ),
            ],
            options={
                "ordering": ["received_date", "id"],
                "permissions": [("adjust_materiallot", "Can adjust lot quantities")],
                "indexes": [models.Index(fields=["item", "status"], name="inv_lot_item_status_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("current_quantity__gte", 0)), name="lot_current_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("current_quantity__lte", models.F("original_quantity"))),
                        name="lot_current_le_original",
                    ),
                    models.CheckConstraint(condition=models.Q(("unit_cost__gte", 0)), name="lot_cost_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LotLocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("quantity", quantity()),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lot_splits",
                        to="locations.location",
                    ),
                ),
                (
                    "lot",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="splits", to="inventory.materiallot"
                    ),
                ),
            ],
            options={
                "ordering": ["lot_id", "location_id"],
                "indexes": [models.Index(fields=["location", "lot"], name="inv_split_location_lot_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("lot", "location"), name="unique_lot_location"),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 0)), name="split_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=TRANSACTION_TYPES, db_index=True, max_length=16)),
                ("item_name", models.CharField(blank=True, max_length=200)),
                ("quantity", quantity()),
                ("unit", models.CharField(blank=True, max_length=16)),
                ("unit_cost", money(blank=True, null=True)),
                ("total_cost", money(blank=True, null=True)),
                ("reference_type", models.CharField(choices=REFERENCE_TYPES, default="manual", max_length=16)),
                ("reference_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("project_id", models.CharField(blank=True, max_length=64)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                ("performed_by", models.CharField(blank=True, max_length=150)),
                ("reason", models.CharField(blank=True, max_length=200)),
                ("notes", models.TextField(blank=True)),
                ("balance_after", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="locations.location",
                    ),
                ),
                (
                    "lot",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="inventory.materiallot",
                    ),
                ),
                (
                    "to_location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_transactions",
                        to="locations.location",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["location", "created_at"], name="inv_txn_location_created_idx"),
                    models.Index(fields=["to_location", "created_at"], name="inv_txn_to_loc_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)), name="transaction_quantity_positive"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockReservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("quantity", quantity()),
                ("source_ref", models.CharField(max_length=120)),
                ("project_id", models.CharField(blank=True, max_length=64)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                ("state", models.CharField(choices=RESERVATION_STATES, default="active", max_length=16)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="locations.location",
                    ),
                ),
                (
                    "lot",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="inventory.materiallot",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "id"],
                "indexes": [
                    models.Index(fields=["item", "state"], name="inv_res_item_state_idx"),
                    models.Index(fields=["source_ref"], name="inv_res_source_ref_idx"),
                    models.Index(fields=["location", "state"], name="inv_res_location_state_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="reservation_positive_qty"),
                ],
            },
        ),
    ]
