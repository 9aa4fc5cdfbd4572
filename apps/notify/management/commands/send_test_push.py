"""
Management command to send the test push to registered devices.

Usage:
    # Every device registered by a user
    python manage.py send_test_push --user alice

    # A single device
    python manage.py send_test_push --user alice --token 80f1...

    # Output as JSON
    python manage.py send_test_push --user alice --json
"""

import json

from django.core.management.base import BaseCommand, CommandError

from apps.devices.services import DeviceRegistry
from apps.notify.services import NotificationDispatcher


class Command(BaseCommand):
    help = "Send the Pip-Alert test notification to a user's devices"

    def add_arguments(self, parser):
        parser.add_argument(
            "--user",
            type=str,
            required=True,
            help="User id the devices are registered to.",
        )
        parser.add_argument(
            "--token",
            type=str,
            help="Only send to this device token.",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            dest="json_output",
            help="Output results as JSON.",
        )

    def handle(self, *args, **options):
        user_id = options["user"]
        devices = DeviceRegistry.devices_for_user(user_id)
        if options.get("token"):
            devices = devices.filter(device_token=options["token"])

        tokens = list(devices.values_list("device_token", flat=True))
        if not tokens:
            raise CommandError(f"No devices registered for {user_id}")

        with NotificationDispatcher() as dispatcher:
            results = {
                token: DeviceRegistry.send_test(user_id, token, dispatcher=dispatcher).to_dict()
                for token in tokens
            }

        if options["json_output"]:
            self.stdout.write(json.dumps(results, indent=2))
            return

        for token, result in results.items():
            if result["success"]:
                self.stdout.write(self.style.SUCCESS(f"✓ …{token[-8:]}: sent"))
            else:
                self.stdout.write(self.style.ERROR(f"✗ …{token[-8:]}: {result['error']}"))
