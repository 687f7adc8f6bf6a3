"""Warehouse location hierarchy.

Locations form a tree (warehouse > zone > aisle > bay > shelf/bin) plus
free-standing trucks, jobsites, staging and hold areas. Quantities are never
stored here; they live on lot splits in the inventory app.
"""

from common.choices import LocationType
from common.models import TimeStampedModel
from django.db import models


class Location(TimeStampedModel):
    TYPE_WAREHOUSE = LocationType.WAREHOUSE
    TYPE_ZONE = LocationType.ZONE
    TYPE_AISLE = LocationType.AISLE
    TYPE_BAY = LocationType.BAY
    TYPE_TRUCK = LocationType.TRUCK
    TYPE_JOBSITE = LocationType.JOBSITE
    TYPE_STAGING = LocationType.STAGING
    TYPE_DAMAGE_HOLD = LocationType.DAMAGE_HOLD
    TYPE_CHOICES = LocationType.choices

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=120)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)
    parent = models.ForeignKey("self", null=True, blank=True, related_name="children", on_delete=models.PROTECT)
    capacity = models.PositiveIntegerField(null=True, blank=True)
    current_utilization = models.PositiveSmallIntegerField(default=0)
    is_pickable = models.BooleanField(default=True)
    is_receivable = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    # Truck attributes
    vehicle_id = models.CharField(max_length=64, blank=True)
    license_plate = models.CharField(max_length=32, blank=True)
    driver_name = models.CharField(max_length=120, blank=True)
    # Jobsite attributes
    project_id = models.CharField(max_length=64, blank=True, db_index=True)
    project_name = models.CharField(max_length=200, blank=True)
    address = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(
                name="location_utilization_0_100",
                condition=models.Q(current_utilization__gte=0) & models.Q(current_utilization__lte=100),
            ),
            models.CheckConstraint(name="location_not_own_parent", condition=~models.Q(parent=models.F("id"))),
        ]
        indexes = [
            models.Index(fields=["type", "is_active"], name="locations_type_active_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code} ({self.type})"


# EOF
