"""
Management command to run the demo against the local database.

Usage:
    # Set up the demo team, then play the demo game for 60s
    python manage.py run_demo --user alice

    # Only publish the eight demo alarms, 1-3s apart
    python manage.py run_demo --user alice --alarms-only

    # Wipe demo data first
    python manage.py run_demo --user alice --reset
"""

import json
import random
import time

from django.core.management.base import BaseCommand

from apps.demo.data import DEFAULT_AWS_ACCOUNT
from apps.demo.sequence import DemoSequence
from apps.demo.services import DatabaseDemoCallbacks, DemoEnvironment


class Command(BaseCommand):
    help = "Run the Pip-Alert demo (demo team, alarms and the escalating incident game)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--user",
            type=str,
            required=True,
            help="User id to put on call for the demo team.",
        )
        parser.add_argument(
            "--account",
            type=str,
            default=DEFAULT_AWS_ACCOUNT,
            help=f"Cloud account the demo alarms are raised in (default: {DEFAULT_AWS_ACCOUNT}).",
        )
        parser.add_argument(
            "--alarms-only",
            action="store_true",
            help="Publish the demo alarms instead of playing the game.",
        )
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete existing demo data before starting.",
        )
        parser.add_argument(
            "--seed",
            type=int,
            help="Random seed, for a repeatable game.",
        )

    def handle(self, *args, **options):
        env = DemoEnvironment()
        rng = random.Random(options.get("seed"))

        if options["reset"]:
            result = env.reset()
            self.stdout.write(
                f"Reset: {result['deleted_incidents']} incident(s), "
                f"{result['deleted_schedules']} schedule(s)"
            )

        setup = env.setup(options["user"], options["account"])
        self.stdout.write(
            self.style.SUCCESS(
                f"{options['user']} is on call for {setup['team_id']} "
                f"until {setup['on_call_until']}"
            )
        )

        if options["alarms_only"]:
            result = env.start(options["account"], pace=lambda: time.sleep(rng.uniform(1, 3)))
            self.stdout.write(json.dumps(result, indent=2))
            return

        callbacks = DatabaseDemoCallbacks(env.get_team(), account_id=options["account"])
        sequence = DemoSequence(callbacks.as_callbacks(), rng=rng)
        self.stdout.write("Demo game running (60s). Ack incidents from the app to win.")
        outcome = sequence.run()

        incidents = callbacks.get_incidents()
        self.stdout.write(
            self.style.SUCCESS(f"Game over: {outcome}")
            + f" ({sequence.incident_count} raised, {len(incidents)} on the board)"
        )
