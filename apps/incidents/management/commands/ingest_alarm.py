"""
Management command to ingest an alarm payload from a file or stdin.

Useful for replaying SNS deliveries and for local testing without AWS.

Usage:
    # Ingest a saved SNS event
    python manage.py ingest_alarm --file sns_event.json

    # Pipe a bare CloudWatch alarm message
    cat alarm.json | python manage.py ingest_alarm

    # Output as JSON
    python manage.py ingest_alarm --file alarm.json --json
"""

import json
import sys

from django.core.management.base import BaseCommand, CommandError

from apps.incidents.drivers import DRIVER_REGISTRY
from apps.incidents.services import AlarmIngestionPipeline


class Command(BaseCommand):
    help = "Ingest an alarm payload (SNS event or CloudWatch alarm message)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--file",
            type=str,
            help="Path to a JSON payload. Reads stdin when omitted.",
        )
        parser.add_argument(
            "--driver",
            type=str,
            choices=list(DRIVER_REGISTRY.keys()),
            help="Driver to parse the payload with (auto-detected by default).",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            dest="json_output",
            help="Output result as JSON.",
        )

    def handle(self, *args, **options):
        raw = self._read_payload(options.get("file"))

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CommandError(f"Invalid JSON payload: {e}")

        if not isinstance(payload, dict):
            raise CommandError("Payload must be a JSON object")

        result = AlarmIngestionPipeline().process_payload(payload, driver=options.get("driver"))

        if options["json_output"]:
            self.stdout.write(json.dumps(result.to_dict(), indent=2))
            return

        self.stdout.write(self.style.SUCCESS(f"Events received: {result.received}"))
        self.stdout.write(f"Incidents created: {result.incidents_created}")
        self.stdout.write(f"Ignored (not ALARM): {result.ignored}")
        self.stdout.write(f"Dropped (no team): {result.dropped_no_team}")
        self.stdout.write(f"Dropped (no on-call): {result.dropped_no_on_call}")
        self.stdout.write(f"Duplicates: {result.duplicates}")
        for incident_id in result.incident_ids:
            self.stdout.write(f"  → {incident_id}")
        for error in result.errors:
            self.stdout.write(self.style.ERROR(f"Error: {error}"))

    def _read_payload(self, path):
        if not path:
            return sys.stdin.read()
        try:
            with open(path, encoding="utf-8") as fh:
                return fh.read()
        except OSError as e:
            raise CommandError(f"Cannot read {path}: {e}")
