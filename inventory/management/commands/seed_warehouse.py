"""Seed a small warehouse for development.

Creates a location tree (warehouse, zone, aisle, bays), staging, damage hold,
a truck and a jobsite, a few flooring items and their first lots. Re-running
is idempotent: locations are matched by code, items by SKU, and lots are only
received for items that have none yet.
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from inventory.models import InventoryItem
from inventory.services import receive_lot
from locations.models import Location
from locations.services import upsert_location

LOCATIONS = [
    # code, name, type, parent code, capacity, extra
    ("MAIN", "Main warehouse", Location.TYPE_WAREHOUSE, None, None, {}),
    ("A", "Zone A - resilient", Location.TYPE_ZONE, "MAIN", None, {}),
    ("A-01", "Aisle A-01", Location.TYPE_AISLE, "A", None, {}),
    ("A-01-01", "Bay A-01-01", Location.TYPE_BAY, "A-01", 2000, {}),
    ("A-01-02", "Bay A-01-02", Location.TYPE_BAY, "A-01", 2000, {}),
    ("STAGE", "Outbound staging", Location.TYPE_STAGING, "MAIN", None, {}),
    ("DMG", "Damage hold", Location.TYPE_DAMAGE_HOLD, "MAIN", None, {"is_pickable": False}),
    (
        "TRK-01",
        "Install truck 1",
        Location.TYPE_TRUCK,
        None,
        800,
        {"vehicle_id": "V-101", "license_plate": "FLR-1001", "driver_name": "Sam Ortiz"},
    ),
    (
        "JOB-PRJ-7",
        "Hillside remodel",
        Location.TYPE_JOBSITE,
        None,
        None,
        {"project_id": "PRJ-7", "project_name": "Hillside remodel", "address": "41 Hillside Ave"},
    ),
]

ITEMS = [
    # sku, name, unit, category, lots as (lot_number, dye_lot, qty, unit_cost, bay)
    (
        "LVP-COAST-OAK",
        "Coastal Oak LVP",
        "sqft",
        "lvp",
        [("L-1001", "A1", "300", "4.25", "A-01-01"), ("L-1002", "B2", "150", "4.25", "A-01-01")],
    ),
    ("HW-WHITE-OAK-5", "White Oak 5in Hardwood", "sqft", "hardwood", [("L-2001", "W7", "600", "7.80", "A-01-02")]),
    ("UNDERLAY-3MM", "3mm Foam Underlayment", "roll", "underlayment", [("L-3001", "", "40", "32.00", "A-01-02")]),
]


class Command(BaseCommand):
    help = "Seed development warehouse data (locations, items, lots)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding warehouse data...")

        by_code = {}
        for code, name, type_, parent_code, capacity, extra in LOCATIONS:
            existing = Location.objects.filter(code__iexact=code).first()
            data = {"code": code, "name": name, "type": type_, "capacity": capacity, **extra}
            if parent_code:
                data["parent"] = by_code[parent_code].id
            by_code[code] = upsert_location(data=data, location_id=existing.id if existing else None)

        lots = 0
        for sku, name, unit, category, item_lots in ITEMS:
            item, _ = InventoryItem.objects.get_or_create(
                sku=sku, defaults={"name": name, "unit": unit, "category": category}
            )
            if item.lots.exists():
                continue
            for lot_number, dye_lot, qty, cost, bay in item_lots:
                receive_lot(
                    item_id=item.id,
                    lot_number=lot_number,
                    dye_lot=dye_lot,
                    quantity=Decimal(qty),
                    unit_cost=Decimal(cost),
                    location_id=by_code[bay].id,
                    vendor_name="Seed Vendor",
                    performed_by="seed",
                )
                lots += 1

        self.stdout.write(
            self.style.SUCCESS(f"Seed complete: {len(by_code)} locations, {len(ITEMS)} items, {lots} new lots.")
        )
