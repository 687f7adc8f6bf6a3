"""Acclimation tracking: timers and ambient readings for material on site.

Readiness is recomputed from an injected clock on every read; nothing here
runs in the background.
"""

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from common.choices import MaterialType
from common.exceptions import ConflictError, NotFoundError, ValidationError
from django.db import transaction
from django.utils import timezone

from .models import ACCLIMATION_REQUIREMENTS, AcclimationEntry, AcclimationReading

logger = logging.getLogger("floorops.acclimation")


def _decimal(value, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field}", errors={field: value})


def _hours(delta: timedelta) -> float:
    return round(delta.total_seconds() / 3600, 2)


def reading_in_range(entry: AcclimationEntry, reading) -> dict:
    temp_ok = entry.min_temp <= Decimal(reading.temperature) <= entry.max_temp
    humidity_ok = entry.min_humidity <= Decimal(reading.humidity) <= entry.max_humidity
    return {"temperature_in_range": temp_ok, "humidity_in_range": humidity_ok, "in_range": temp_ok and humidity_ok}


def progress(entry: AcclimationEntry, now=None, readings=None) -> dict:
    """Progress of an acclimation timer at ``now``.

    ``ready`` is reached exactly when elapsed time equals the required hours.
    ``not-started`` holds until the clock passes the start time, even when a
    reading was logged early. ``expired`` is never derived, only taken from
    the entry.
    """
    now = now or timezone.now()
    if readings is None:
        readings = list(entry.readings.all())
    required = timedelta(hours=int(entry.required_hours))
    elapsed = max(timedelta(0), now - entry.start_time)
    remaining = max(timedelta(0), required - elapsed)
    pct = min(100.0, elapsed.total_seconds() / required.total_seconds() * 100)

    if entry.status == AcclimationEntry.STATUS_EXPIRED:
        status = AcclimationEntry.STATUS_EXPIRED
    elif elapsed <= timedelta(0):
        status = AcclimationEntry.STATUS_NOT_STARTED
    elif elapsed >= required:
        status = AcclimationEntry.STATUS_READY
    else:
        status = AcclimationEntry.STATUS_IN_PROGRESS

    return {
        "progress": round(pct, 2),
        "elapsed_hours": _hours(elapsed),
        "remaining_hours": _hours(remaining),
        "ready_at": entry.start_time + required,
        "status": status,
        "is_ready": status == AcclimationEntry.STATUS_READY,
        "out_of_range_readings": [r.id for r in readings if not reading_in_range(entry, r)["in_range"]],
    }


@transaction.atomic
def start_acclimation(
    *,
    material_name: str,
    location: str,
    material_type: str = MaterialType.LVP,
    project_id: str = "",
    project_name: str = "",
    lot_number: str = "",
    required_hours=None,
    start_time=None,
    initial_reading: dict | None = None,
    started_by: str = "",
) -> AcclimationEntry:
    """Start a timer; hours and ambient ranges default from the material type."""
    if not (material_name or "").strip():
        raise ValidationError("Material name is required", errors={"material_name": material_name})
    if not (location or "").strip():
        raise ValidationError("Location is required", errors={"location": location})
    if material_type not in ACCLIMATION_REQUIREMENTS:
        raise ValidationError("Unknown material type", errors={"material_type": material_type})
    req = ACCLIMATION_REQUIREMENTS[material_type]
    hours = req["hours"] if required_hours in (None, "") else required_hours
    try:
        hours = int(hours)
    except (TypeError, ValueError):
        raise ValidationError("Required hours must be a whole number", errors={"required_hours": required_hours})
    if hours <= 0:
        raise ValidationError("Required hours must be positive", errors={"required_hours": hours})

    entry = AcclimationEntry.objects.create(
        material_name=material_name.strip(),
        material_type=material_type,
        project_id=str(project_id or ""),
        project_name=project_name or "",
        lot_number=lot_number or "",
        location=location.strip(),
        required_hours=hours,
        start_time=start_time or timezone.now(),
        status=AcclimationEntry.STATUS_IN_PROGRESS,
        min_temp=req["min_temp"],
        max_temp=req["max_temp"],
        min_humidity=req["min_humidity"],
        max_humidity=req["max_humidity"],
        started_by=started_by or "",
    )
    if initial_reading:
        record_reading(
            entry_id=entry.id,
            temperature=initial_reading.get("temperature"),
            humidity=initial_reading.get("humidity"),
            timestamp=initial_reading.get("timestamp") or entry.start_time,
            notes=initial_reading.get("notes") or "Initial reading at start of acclimation",
            recorded_by=initial_reading.get("recorded_by") or started_by or "",
        )
    logger.info(
        "acclimation_started",
        extra={"event": "acclimation_started", "entry_id": entry.id, "required_hours": hours},
    )
    return entry


def record_reading(
    *, entry_id: int, temperature, humidity, timestamp=None, notes: str = "", recorded_by: str = ""
) -> AcclimationReading:
    """Append an ambient reading. Readings never change the entry status."""
    try:
        entry = AcclimationEntry.objects.get(id=entry_id)
    except (AcclimationEntry.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Acclimation entry {entry_id} not found")
    temperature = _decimal(temperature, "temperature")
    humidity = _decimal(humidity, "humidity")
    if humidity < 0 or humidity > 100:
        raise ValidationError("Humidity must be between 0 and 100", errors={"humidity": str(humidity)})
    reading = AcclimationReading.objects.create(
        entry=entry,
        timestamp=timestamp or timezone.now(),
        temperature=temperature,
        humidity=humidity,
        notes=notes or "",
        recorded_by=recorded_by or "",
    )
    check = reading_in_range(entry, reading)
    if not check["in_range"]:
        logger.warning(
            "acclimation_reading_out_of_range",
            extra={
                "event": "acclimation_reading_out_of_range",
                "entry_id": entry.id,
                "temperature": str(temperature),
                "humidity": str(humidity),
            },
        )
    return reading


@transaction.atomic
def mark_expired(*, entry_id: int, now=None) -> AcclimationEntry:
    """Record that a ready entry sat too long and must be re-acclimated."""
    try:
        entry = AcclimationEntry.objects.select_for_update().get(id=entry_id)
    except (AcclimationEntry.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Acclimation entry {entry_id} not found")
    if entry.status == AcclimationEntry.STATUS_EXPIRED:
        return entry
    if progress(entry, now)["status"] != AcclimationEntry.STATUS_READY:
        raise ConflictError("Only entries that reached readiness can expire")
    entry.status = AcclimationEntry.STATUS_EXPIRED
    entry.save(update_fields=["status", "updated_at"])
    logger.info("acclimation_expired", extra={"event": "acclimation_expired", "entry_id": entry.id})
    return entry


@transaction.atomic
def complete_acclimation(*, entry_id: int, now=None) -> AcclimationEntry:
    try:
        entry = AcclimationEntry.objects.select_for_update().get(id=entry_id)
    except (AcclimationEntry.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Acclimation entry {entry_id} not found")
    now = now or timezone.now()
    if progress(entry, now)["status"] != AcclimationEntry.STATUS_READY:
        raise ConflictError("Material has not finished acclimating")
    entry.status = AcclimationEntry.STATUS_READY
    entry.completed_at = entry.completed_at or now
    entry.save(update_fields=["status", "completed_at", "updated_at"])
    return entry


# EOF
