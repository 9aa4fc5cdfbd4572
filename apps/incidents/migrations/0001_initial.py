import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("teams", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Incident",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("incident_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("alarm_name", models.CharField(max_length=255)),
                ("alarm_arn", models.CharField(blank=True, default="", max_length=512)),
                (
                    "account_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Cloud account the alarm was raised in.",
                        max_length=64,
                    ),
                ),
                ("region", models.CharField(blank=True, default="", max_length=64)),
                (
                    "dedup_key",
                    models.CharField(
                        blank=True,
                        help_text="Idempotency key derived from alarm ARN and state change time.",
                        max_length=64,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "state",
                    models.CharField(
                        choices=[("triggered", "Triggered"), ("acked", "Acknowledged"), ("resolved", "Resolved")],
                        db_index=True,
                        default="triggered",
                        max_length=20,
                    ),
                ),
                (
                    "severity",
                    models.CharField(
                        choices=[("critical", "Critical"), ("warning", "Warning"), ("info", "Info")],
                        db_index=True,
                        default="info",
                        max_length=20,
                    ),
                ),
                (
                    "assigned_to",
                    models.CharField(
                        db_index=True,
                        help_text="Responder on call when the incident was created.",
                        max_length=255,
                    ),
                ),
                ("escalation_level", models.PositiveIntegerField(default=0)),
                ("triggered_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("acked_at", models.DateTimeField(blank=True, null=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                (
                    "expires_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="Retention deadline; expired incidents are reclaimed.",
                    ),
                ),
                (
                    "timeline",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Append-only list of {timestamp, event, actor, note?} entries.",
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="incidents",
                        to="teams.team",
                    ),
                ),
            ],
            options={
                "ordering": ["-triggered_at"],
                "indexes": [
                    models.Index(fields=["team", "state"], name="incidents_team_state_idx"),
                    models.Index(fields=["assigned_to", "state"], name="incidents_assignee_state_idx"),
                ],
            },
        ),
    ]
