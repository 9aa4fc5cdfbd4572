"""
Team and on-call schedule models.

Teams own the cloud accounts that alarms are routed from; schedule slots say
who is on call for a team during a time window. Both are administrative
inputs and are only read by the incident pipeline.
"""

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class EscalationTarget(models.TextChoices):
    """Who an escalation policy level notifies."""

    ON_CALL = "on_call", "On-call responder"
    ALL_TEAM = "all_team", "Whole team"


def validate_escalation_policy(value):
    """Validate the shape of an escalation policy document.

    Expected format:
    {
        "levels": [
            {"delay_minutes": 5, "target": "on_call"},
            {"delay_minutes": 15, "target": "all_team"}
        ]
    }
    """
    if not value:
        return
    if not isinstance(value, dict) or not isinstance(value.get("levels", []), list):
        raise ValidationError("Escalation policy must be an object with a 'levels' list.")

    for level in value.get("levels", []):
        if not isinstance(level, dict):
            raise ValidationError("Each escalation level must be an object.")
        delay = level.get("delay_minutes")
        if not isinstance(delay, int) or delay < 0:
            raise ValidationError("delay_minutes must be a non-negative integer.")
        if level.get("target") not in EscalationTarget.values:
            raise ValidationError(
                f"Unknown escalation target: {level.get('target')!r}. "
                f"Available: {', '.join(EscalationTarget.values)}"
            )


class Team(models.Model):
    """
    A group of responders that owns a set of cloud accounts.

    Alarms raised in any of the team's accounts become incidents for the team.
    """

    team_id = models.SlugField(
        max_length=100,
        unique=True,
        help_text="Stable identifier for the team (e.g., 'fault-tec-admins').",
    )
    name = models.CharField(
        max_length=255,
    )
    account_ids = models.JSONField(
        default=list,
        blank=True,
        help_text="External cloud account identifiers whose alarms route to this team.",
    )
    escalation_policy = models.JSONField(
        default=dict,
        blank=True,
        validators=[validate_escalation_policy],
        help_text="Escalation levels ({delay_minutes, target}). Stored, not yet executed.",
    )
    created_at = models.DateTimeField(
        default=timezone.now,
    )

    class Meta:
        ordering = ["created_at", "pk"]

    def __str__(self):
        return f"{self.name} ({self.team_id})"

    def owns_account(self, account_id: str) -> bool:
        return account_id in (self.account_ids or [])

    def clean(self):
        super().clean()
        if not isinstance(self.account_ids, list):
            raise ValidationError({"account_ids": "Account ids must be a list."})

        # Account ids should route to exactly one team.
        claimed = []
        for other in Team.objects.exclude(pk=self.pk):
            claimed.extend(a for a in self.account_ids if other.owns_account(a))
        if claimed:
            raise ValidationError(
                {"account_ids": f"Already claimed by another team: {', '.join(sorted(set(claimed)))}"}
            )


class ScheduleSlot(models.Model):
    """One interval [start, end) during which a user is on call for a team."""

    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name="schedule_slots",
    )
    slot_id = models.CharField(
        max_length=100,
    )
    user_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Identifier of the responder on call during this slot.",
    )
    start = models.DateTimeField()
    end = models.DateTimeField()

    class Meta:
        ordering = ["team", "start"]
        constraints = [
            models.UniqueConstraint(fields=["team", "slot_id"], name="unique_slot_per_team"),
        ]
        indexes = [
            models.Index(fields=["team", "start", "end"], name="teams_sched_team_id_5c1f0a_idx"),
        ]

    def __str__(self):
        return f"{self.user_id} on call for {self.team.team_id} ({self.start} → {self.end})"

    def clean(self):
        super().clean()
        if self.start and self.end and self.start >= self.end:
            raise ValidationError({"end": "Slot end must be after its start."})

    def covers(self, at_time) -> bool:
        return self.start <= at_time < self.end
