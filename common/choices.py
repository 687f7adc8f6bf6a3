"""Shared enumerations and choices used across apps."""

from django.db import models


class LocationType(models.TextChoices):
    WAREHOUSE = "warehouse", "Warehouse"
    ZONE = "zone", "Zone"
    AISLE = "aisle", "Aisle"
    BAY = "bay", "Bay"
    SHELF = "shelf", "Shelf"
    BIN = "bin", "Bin"
    TRUCK = "truck", "Truck"
    JOBSITE = "jobsite", "Jobsite"
    STAGING = "staging", "Staging"
    DAMAGE_HOLD = "damage_hold", "Damage hold"
    RETURNS = "returns", "Returns"
    QUARANTINE = "quarantine", "Quarantine"


class LotStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    DAMAGED = "damaged", "Damaged"
    CONSUMED = "consumed", "Consumed"


class QCStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PASSED = "passed", "Passed"
    FAILED = "failed", "Failed"


class TransactionType(models.TextChoices):
    """Kinds of entries written to the inventory audit log."""

    RECEIVE = "receive", "Receive"
    TRANSFER_OUT = "transfer_out", "Transfer out"
    TRANSFER_IN = "transfer_in", "Transfer in"
    ALLOCATE = "allocate", "Allocate"
    DEALLOCATE = "deallocate", "Deallocate"
    ISSUE = "issue", "Issue"
    RETURN = "return", "Return"
    ADJUST_UP = "adjust_up", "Adjust up"
    ADJUST_DOWN = "adjust_down", "Adjust down"
    DAMAGE = "damage", "Damage"
    SCRAP = "scrap", "Scrap"
    CYCLE_COUNT = "cycle_count", "Cycle count"


class ReferenceType(models.TextChoices):
    PO = "po", "Purchase order"
    TRANSFER = "transfer", "Transfer"
    JOB = "job", "Job"
    CYCLE_COUNT = "cycle_count", "Cycle count"
    MANUAL = "manual", "Manual"


class AdjustmentReason(models.TextChoices):
    """Reasons offered for manual quantity corrections."""

    CYCLE_COUNT = "cycle_count", "Cycle count correction"
    PHYSICAL_DAMAGE = "physical_damage", "Physical damage"
    QUALITY_ISSUE = "quality_issue", "Quality issue"
    CUSTOMER_RETURN = "customer_return", "Customer return"
    FOUND = "found", "Found during inventory"
    OTHER = "other", "Other"


class ReservationState(models.TextChoices):
    ACTIVE = "active", "Active"
    RELEASED = "released", "Released"
    CONVERTED = "converted", "Converted"


class TransferStatus(models.TextChoices):
    """Lifecycle statuses for stock transfers."""

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    PICKING = "picking", "Picking"
    IN_TRANSIT = "in_transit", "In transit"
    RECEIVED = "received", "Received"
    CANCELLED = "cancelled", "Cancelled"


class PurchaseOrderStatus(models.TextChoices):
    """Lifecycle statuses for purchase orders."""

    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Submitted"
    CONFIRMED = "confirmed", "Confirmed"
    PARTIAL = "partial", "Partially received"
    RECEIVED = "received", "Received"
    CANCELLED = "cancelled", "Cancelled"


class DeliveryStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    IN_TRANSIT = "in-transit", "In transit"
    ARRIVED = "arrived", "Arrived"
    CHECKED_IN = "checked-in", "Checked in"
    ISSUES = "issues", "Issues"


class MaterialType(models.TextChoices):
    LVP = "lvp", "Luxury vinyl plank"
    HARDWOOD = "hardwood", "Solid hardwood"
    ENGINEERED = "engineered", "Engineered hardwood"
    LAMINATE = "laminate", "Laminate"
    TILE = "tile", "Tile"
    CARPET = "carpet", "Carpet"


class AcclimationStatus(models.TextChoices):
    NOT_STARTED = "not-started", "Not started"
    IN_PROGRESS = "in-progress", "In progress"
    READY = "ready", "Ready"
    EXPIRED = "expired", "Expired"
