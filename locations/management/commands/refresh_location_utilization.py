"""Recompute utilization for every location that has a capacity.

Run from cron after cycle counts or large receipts; the API only stores the
figure, it never derives it.
"""

from django.core.management.base import BaseCommand
from inventory.selectors import compute_location_utilization
from locations.models import Location
from locations.services import set_utilization


class Command(BaseCommand):
    help = "Recompute current_utilization (0-100) from lot quantities for locations with a capacity"

    def add_arguments(self, parser):
        parser.add_argument("--code", help="Only refresh the location with this code")

    def handle(self, *args, **options):
        qs = Location.objects.filter(capacity__isnull=False, is_active=True).order_by("id")
        if options.get("code"):
            qs = qs.filter(code__iexact=options["code"])
        changed = 0
        for location in qs:
            value = compute_location_utilization(location.id)
            if value is None or value == location.current_utilization:
                continue
            set_utilization(location_id=location.id, value=value)
            changed += 1
        self.stdout.write(self.style.SUCCESS(f"Utilization updated for {changed} location(s)."))
