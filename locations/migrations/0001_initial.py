import django.db.models.deletion
from django.db import migrations, models

LOCATION_TYPES = [
    ("warehouse", "Warehouse"),
    ("zone", "Zone"),
    ("aisle", "Aisle"),
    ("bay", "Bay"),
    ("shelf", "Shelf"),
    ("bin", "Bin"),
    ("truck", "Truck"),
    ("jobsite", "Jobsite"),
    ("staging", "Staging"),
    ("damage_hold", "Damage hold"),
    ("returns", "Returns"),
    ("quarantine", "Quarantine"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=120)),
                ("type", models.CharField(choices=LOCATION_TYPES, db_index=True, max_length=16)),
                ("capacity", models.PositiveIntegerField(blank=True, null=True)),
                ("current_utilization", models.PositiveSmallIntegerField(default=0)),
                ("is_pickable", models.BooleanField(default=True)),
                ("is_receivable", models.BooleanField(default=True)),
                ("is_active", models.BooleanField(default=True)),
                ("vehicle_id", models.CharField(blank=True, max_length=64)),
                ("license_plate", models.CharField(blank=True, max_length=32)),
                ("driver_name", models.CharField(blank=True, max_length=120)),
                ("project_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="locations.location",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "indexes": [models.Index(fields=["type", "is_active"], name="locations_type_active_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("current_utilization__gte", 0), ("current_utilization__lte", 100)),
                        name="location_utilization_0_100",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("parent", models.F("id")), _negated=True),
                        name="location_not_own_parent",
                    ),
                ],
            },
        ),
    ]
