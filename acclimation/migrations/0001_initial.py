import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

MATERIAL_TYPES = [
    ("lvp", "Luxury vinyl plank"),
    ("hardwood", "Solid hardwood"),
    ("engineered", "Engineered hardwood"),
    ("laminate", "Laminate"),
    ("tile", "Tile"),
    ("carpet", "Carpet"),
]
ACCLIMATION_STATUSES = [
    ("not-started", "Not started"),
    ("in-progress", "In progress"),
    ("ready", "Ready"),
    ("expired", "Expired"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AcclimationEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("material_name", models.CharField(max_length=200)),
                ("material_type", models.CharField(choices=MATERIAL_TYPES, default="lvp", max_length=16)),
                ("lot_number", models.CharField(blank=True, max_length=64)),
                ("project_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("project_name", models.CharField(blank=True, max_length=200)),
                ("location", models.CharField(max_length=200)),
                ("start_time", models.DateTimeField(default=django.utils.timezone.now)),
                ("required_hours", models.PositiveIntegerField()),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(choices=ACCLIMATION_STATUSES, default="in-progress", max_length=16),
                ),
                ("min_temp", models.DecimalField(decimal_places=1, max_digits=5)),
                ("max_temp", models.DecimalField(decimal_places=1, max_digits=5)),
                ("min_humidity", models.DecimalField(decimal_places=1, max_digits=5)),
                ("max_humidity", models.DecimalField(decimal_places=1, max_digits=5)),
                ("started_by", models.CharField(blank=True, max_length=150)),
            ],
            options={
                "verbose_name_plural": "acclimation entries",
                "ordering": ["-start_time", "-id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("required_hours__gt", 0)), name="acclimation_required_hours_positive"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("min_temp__lte", models.F("max_temp"))), name="acclimation_temp_range"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("min_humidity__lte", models.F("max_humidity"))),
                        name="acclimation_humidity_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AcclimationReading",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                ("temperature", models.DecimalField(decimal_places=1, max_digits=5)),
                ("humidity", models.DecimalField(decimal_places=1, max_digits=5)),
                ("notes", models.CharField(blank=True, max_length=255)),
                ("recorded_by", models.CharField(blank=True, max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="readings",
                        to="acclimation.acclimationentry",
                    ),
                ),
            ],
            options={
                "ordering": ["timestamp", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("humidity__gte", 0), ("humidity__lte", 100)),
                        name="reading_humidity_0_100",
                    ),
                ],
            },
        ),
    ]
