"""Location registry mutations."""

import logging

from common.choices import LocationType
from common.exceptions import ConflictError, NotFoundError, ValidationError
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from .models import Location

logger = logging.getLogger("floorops.locations")

EDITABLE_FIELDS = (
    "code",
    "name",
    "type",
    "parent_id",
    "capacity",
    "current_utilization",
    "is_pickable",
    "is_receivable",
    "is_active",
    "vehicle_id",
    "license_plate",
    "driver_name",
    "project_id",
    "project_name",
    "address",
    "notes",
)


def _check_utilization(value) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Utilization must be an integer", errors={"current_utilization": value})
    if value < 0 or value > 100:
        raise ValidationError("Utilization must be between 0 and 100", errors={"current_utilization": value})
    return value


def _check_parent(location_id, parent_id):
    if parent_id is None:
        return
    if location_id is not None and int(parent_id) == int(location_id):
        raise ValidationError("A location cannot be its own parent", errors={"parent": parent_id})
    try:
        node = Location.objects.select_for_update().get(id=parent_id)
    except (Location.DoesNotExist, ValueError, TypeError):
        raise ValidationError("Parent location does not exist", errors={"parent": parent_id})
    # Each ancestor stays locked until commit so a concurrent re-parent waits
    seen = {node.id}
    while node.parent_id is not None and node.parent_id not in seen:
        if location_id is not None and node.parent_id == int(location_id):
            raise ValidationError("Parent would create a cycle in the hierarchy", errors={"parent": parent_id})
        node = Location.objects.select_for_update().get(id=node.parent_id)
        seen.add(node.id)


@transaction.atomic
def upsert_location(*, data: dict, location_id: int | None = None) -> Location:
    """Create a location, or update the one with ``location_id``.

    ``data`` uses model field names; ``parent`` may be given as an id or a
    Location. Unknown keys are ignored.
    """
    data = dict(data)
    if "parent" in data:
        parent = data.pop("parent")
        data["parent_id"] = getattr(parent, "id", parent)

    if location_id is None:
        location = Location()
    else:
        try:
            location = Location.objects.select_for_update().get(id=location_id)
        except Location.DoesNotExist:
            raise NotFoundError(f"Location {location_id} not found")

    for name in EDITABLE_FIELDS:
        if name in data:
            setattr(location, name, data[name])

    errors = {}
    if not (location.code or "").strip():
        errors["code"] = "This field is required."
    if not (location.name or "").strip():
        errors["name"] = "This field is required."
    if location.type not in LocationType.values:
        errors["type"] = f"Unknown location type: {location.type!r}"
    if location.capacity is not None and int(location.capacity) < 0:
        errors["capacity"] = "Capacity cannot be negative."
    if errors:
        raise ValidationError("Invalid location", errors=errors)

    location.code = location.code.strip()
    location.current_utilization = _check_utilization(location.current_utilization)
    _check_parent(location.id, location.parent_id)

    dupes = Location.objects.filter(code__iexact=location.code)
    if location.id:
        dupes = dupes.exclude(id=location.id)
    if dupes.exists():
        raise ValidationError("Location code already in use", errors={"code": location.code})

    try:
        with transaction.atomic():
            location.save()
    except IntegrityError:
        raise ValidationError("Location code already in use", errors={"code": location.code})

    logger.info(
        "location_saved",
        extra={
            "event": "location_saved",
            "location_id": location.id,
            "code": location.code,
            "created": location_id is None,
        },
    )
    return location


@transaction.atomic
def set_utilization(*, location_id: int, value) -> Location:
    value = _check_utilization(value)
    try:
        location = Location.objects.select_for_update().get(id=location_id)
    except Location.DoesNotExist:
        raise NotFoundError(f"Location {location_id} not found")
    if location.current_utilization != value:
        location.current_utilization = value
        location.save(update_fields=["current_utilization", "updated_at"])
    return location


@transaction.atomic
def deactivate_location(*, location_id: int) -> Location:
    try:
        location = Location.objects.select_for_update().get(id=location_id)
    except Location.DoesNotExist:
        raise NotFoundError(f"Location {location_id} not found")
    if location.is_active:
        location.is_active = False
        location.save(update_fields=["is_active", "updated_at"])
        logger.info("location_deactivated", extra={"event": "location_deactivated", "location_id": location.id})
    return location


def delete_location(*, location_id: int) -> None:
    """Hard-delete an unreferenced location.

    Anything that has held stock, appears in the transaction log or a transfer,
    or has children is protected; deactivate those instead.
    """
    try:
        location = Location.objects.get(id=location_id)
    except Location.DoesNotExist:
        raise NotFoundError(f"Location {location_id} not found")
    try:
        with transaction.atomic():
            location.delete()
    except ProtectedError:
        raise ConflictError(f"Location {location.code} is referenced; deactivate it instead")
    logger.info("location_deleted", extra={"event": "location_deleted", "location_id": location_id})


# EOF
