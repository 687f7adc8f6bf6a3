from common.choices import AcclimationStatus, MaterialType
from common.models import TimeStampedModel
from django.db import models
from django.utils import timezone

# Manufacturer guidance per material type: hours on site and the ambient
# temperature (F) and relative humidity (%) ranges it should sit in.
ACCLIMATION_REQUIREMENTS = {
    MaterialType.LVP: {"hours": 48, "min_temp": 65, "max_temp": 85, "min_humidity": 30, "max_humidity": 60},
    MaterialType.HARDWOOD: {"hours": 72, "min_temp": 60, "max_temp": 80, "min_humidity": 35, "max_humidity": 55},
    MaterialType.ENGINEERED: {"hours": 48, "min_temp": 65, "max_temp": 85, "min_humidity": 30, "max_humidity": 60},
    MaterialType.LAMINATE: {"hours": 48, "min_temp": 65, "max_temp": 85, "min_humidity": 35, "max_humidity": 65},
    MaterialType.TILE: {"hours": 24, "min_temp": 50, "max_temp": 100, "min_humidity": 20, "max_humidity": 80},
    MaterialType.CARPET: {"hours": 24, "min_temp": 65, "max_temp": 85, "min_humidity": 30, "max_humidity": 65},
}


class AcclimationEntry(TimeStampedModel):
    """Material sitting on site before installation.

    Only ``expired`` is stored as an explicit decision; the other statuses
    are derived from the clock each time progress is read.
    """

    STATUS_NOT_STARTED = AcclimationStatus.NOT_STARTED
    STATUS_IN_PROGRESS = AcclimationStatus.IN_PROGRESS
    STATUS_READY = AcclimationStatus.READY
    STATUS_EXPIRED = AcclimationStatus.EXPIRED
    STATUS_CHOICES = AcclimationStatus.choices

    material_name = models.CharField(max_length=200)
    material_type = models.CharField(max_length=16, choices=MaterialType.choices, default=MaterialType.LVP)
    lot_number = models.CharField(max_length=64, blank=True)
    project_id = models.CharField(max_length=64, blank=True, db_index=True)
    project_name = models.CharField(max_length=200, blank=True)
    # Free text, e.g. "Unit 4B living room"
    location = models.CharField(max_length=200)
    start_time = models.DateTimeField(default=timezone.now)
    required_hours = models.PositiveIntegerField()
    completed_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_IN_PROGRESS)
    min_temp = models.DecimalField(max_digits=5, decimal_places=1)
    max_temp = models.DecimalField(max_digits=5, decimal_places=1)
    min_humidity = models.DecimalField(max_digits=5, decimal_places=1)
    max_humidity = models.DecimalField(max_digits=5, decimal_places=1)
    started_by = models.CharField(max_length=150, blank=True)

    class Meta:
        ordering = ["-start_time", "-id"]
        verbose_name_plural = "acclimation entries"
        constraints = [
            models.CheckConstraint(
                name="acclimation_required_hours_positive", condition=models.Q(required_hours__gt=0)
            ),
            models.CheckConstraint(
                name="acclimation_temp_range", condition=models.Q(min_temp__lte=models.F("max_temp"))
            ),
            models.CheckConstraint(
                name="acclimation_humidity_range", condition=models.Q(min_humidity__lte=models.F("max_humidity"))
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Acclimation#{self.id} {self.material_name} {self.required_hours}h"


class AcclimationReading(models.Model):
    entry = models.ForeignKey(AcclimationEntry, related_name="readings", on_delete=models.CASCADE)
    timestamp = models.DateTimeField(default=timezone.now)
    temperature = models.DecimalField(max_digits=5, decimal_places=1)
    humidity = models.DecimalField(max_digits=5, decimal_places=1)
    notes = models.CharField(max_length=255, blank=True)
    recorded_by = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["timestamp", "id"]
        constraints = [
            models.CheckConstraint(
                name="reading_humidity_0_100",
                condition=models.Q(humidity__gte=0) & models.Q(humidity__lte=100),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Reading<{self.entry_id}> {self.temperature}F {self.humidity}%"


# EOF
