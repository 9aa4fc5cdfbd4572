import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import apps.teams.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Team",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "team_id",
                    models.SlugField(
                        help_text="Stable identifier for the team (e.g., 'fault-tec-admins').",
                        max_length=100,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "account_ids",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="External cloud account identifiers whose alarms route to this team.",
                    ),
                ),
                (
                    "escalation_policy",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Escalation levels ({delay_minutes, target}). Stored, not yet executed.",
                        validators=[apps.teams.models.validate_escalation_policy],
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["created_at", "pk"],
            },
        ),
        migrations.CreateModel(
            name="ScheduleSlot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("slot_id", models.CharField(max_length=100)),
                (
                    "user_id",
                    models.CharField(
                        db_index=True,
                        help_text="Identifier of the responder on call during this slot.",
                        max_length=255,
                    ),
                ),
                ("start", models.DateTimeField()),
                ("end", models.DateTimeField()),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="schedule_slots",
                        to="teams.team",
                    ),
                ),
            ],
            options={
                "ordering": ["team", "start"],
                "indexes": [models.Index(fields=["team", "start", "end"], name="teams_sched_team_id_5c1f0a_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("team", "slot_id"), name="unique_slot_per_team"),
                ],
            },
        ),
    ]
