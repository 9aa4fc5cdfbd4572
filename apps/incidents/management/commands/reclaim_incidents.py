"""
Management command to delete incidents past their retention deadline.

Usage:
    python manage.py reclaim_incidents
    python manage.py reclaim_incidents --dry-run
"""

from django.core.management.base import BaseCommand

from apps.incidents.models import Incident
from apps.incidents.services import IncidentRetention


class Command(BaseCommand):
    help = "Delete incidents whose TTL has expired"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many incidents would be deleted.",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            count = Incident.objects.expired().count()
            self.stdout.write(self.style.NOTICE(f"DRY RUN - {count} incident(s) would be reclaimed"))
            return

        deleted = IncidentRetention.reclaim_expired()
        self.stdout.write(self.style.SUCCESS(f"Reclaimed {deleted} incident(s)"))
