"""
Management command to redrive push delivery for an incident.

Devices already recorded as notified for the incident are skipped, and so are
devices that failed terminally unless --retry-failed is given.

Usage:
    python manage.py send_incident_push 5f0c2a9e-...
    python manage.py send_incident_push 5f0c2a9e-... --json
    python manage.py send_incident_push 5f0c2a9e-... --retry-failed
"""

import json

from django.core.management.base import BaseCommand, CommandError

from apps.incidents.services import IncidentNotFound, IncidentQueryService
from apps.notify.services import NotificationDispatcher


class Command(BaseCommand):
    help = "Deliver (or redeliver) the push notification for an incident"

    def add_arguments(self, parser):
        parser.add_argument("incident_id", type=str)
        parser.add_argument(
            "--json",
            action="store_true",
            dest="json_output",
            help="Output result as JSON.",
        )
        parser.add_argument(
            "--retry-failed",
            action="store_true",
            help="Also retry devices that failed terminally (e.g. after fixing APNs credentials).",
        )

    def handle(self, *args, **options):
        try:
            incident = IncidentQueryService.get_incident(options["incident_id"])
        except IncidentNotFound:
            raise CommandError(f"Incident not found: {options['incident_id']}")

        with NotificationDispatcher() as dispatcher:
            result = dispatcher.dispatch_incident(
                incident, retry_failed=options["retry_failed"]
            )

        if options["json_output"]:
            self.stdout.write(json.dumps(result.to_dict(), indent=2))
            return

        self.stdout.write(
            f"Incident {result.incident_id} → {result.assigned_to}: "
            f"{result.devices} device(s), {result.sent} sent, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        for error in result.errors:
            self.stdout.write(self.style.ERROR(f"  {error}"))
