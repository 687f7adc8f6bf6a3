from common.models import IdempotencyKey
from django.core.management.base import BaseCommand
from django.utils import timezone


class Command(BaseCommand):
    help = "Delete idempotency records whose expires_at has passed"

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Only report how many would be deleted")

    def handle(self, *args, **options):
        qs = IdempotencyKey.objects.filter(expires_at__lt=timezone.now())
        count = qs.count()
        if options["dry_run"]:
            self.stdout.write(f"{count} expired idempotency key(s) would be deleted.")
            return
        qs.delete()
        self.stdout.write(self.style.SUCCESS(f"Deleted {count} expired idempotency key(s)."))
