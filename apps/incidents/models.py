"""
Incident model: one triggered alarm that needs a human response.

Incidents move strictly forward through triggered → acked → resolved (or
triggered → resolved). Every transition appends one entry to the embedded
timeline. Transitions are performed by apps.incidents.services, which uses
conditional writes so concurrent client retries cannot double-apply them.
"""

import uuid
from datetime import datetime

from django.db import models
from django.utils import timezone


class IncidentState(models.TextChoices):
    """Lifecycle state of an incident."""

    TRIGGERED = "triggered", "Triggered"
    ACKED = "acked", "Acknowledged"
    RESOLVED = "resolved", "Resolved"


class IncidentSeverity(models.TextChoices):
    """Severity levels derived from the alarm name."""

    CRITICAL = "critical", "Critical"
    WARNING = "warning", "Warning"
    INFO = "info", "Info"


class TimelineEvent(models.TextChoices):
    """Event names recorded in an incident timeline."""

    TRIGGERED = "triggered", "Triggered"
    ACKED = "acked", "Acknowledged"
    RESOLVED = "resolved", "Resolved"


# Allowed forward transitions: target state -> states it may be entered from.
TRANSITIONS = {
    IncidentState.ACKED: (IncidentState.TRIGGERED,),
    IncidentState.RESOLVED: (IncidentState.TRIGGERED, IncidentState.ACKED),
}


def to_epoch_ms(value: datetime | None) -> int | None:
    """Convert an aware datetime to epoch milliseconds."""
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def timeline_entry(event: str, actor: str, at: datetime, note: str = "") -> dict:
    """Build a single timeline entry."""
    entry = {
        "timestamp": to_epoch_ms(at),
        "event": event,
        "actor": actor,
    }
    if note:
        entry["note"] = note
    return entry


class IncidentQuerySet(models.QuerySet):
    def outstanding(self):
        return self.filter(state__in=[IncidentState.TRIGGERED, IncidentState.ACKED])

    def expired(self, now: datetime | None = None):
        return self.filter(expires_at__lte=now or timezone.now())


class Incident(models.Model):
    """
    Represents an incident created from an alarm entering the ALARM state.

    Identity, routing and severity are fixed at creation. Only state,
    acked_at, resolved_at and timeline change afterwards.
    """

    incident_id = models.UUIDField(
        default=uuid.uuid4,
        unique=True,
        editable=False,
    )
    team = models.ForeignKey(
        "teams.Team",
        on_delete=models.CASCADE,
        related_name="incidents",
    )

    # Alarm identity
    alarm_name = models.CharField(
        max_length=255,
    )
    alarm_arn = models.CharField(
        max_length=512,
        blank=True,
        default="",
    )
    account_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Cloud account the alarm was raised in.",
    )
    region = models.CharField(
        max_length=64,
        blank=True,
        default="",
    )
    dedup_key = models.CharField(
        max_length=64,
        unique=True,
        null=True,
        blank=True,
        help_text="Idempotency key derived from alarm ARN and state change time.",
    )

    # Lifecycle
    state = models.CharField(
        max_length=20,
        choices=IncidentState.choices,
        default=IncidentState.TRIGGERED,
        db_index=True,
    )
    severity = models.CharField(
        max_length=20,
        choices=IncidentSeverity.choices,
        default=IncidentSeverity.INFO,
        db_index=True,
    )
    assigned_to = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Responder on call when the incident was created.",
    )
    escalation_level = models.PositiveIntegerField(
        default=0,
    )

    # Timestamps
    triggered_at = models.DateTimeField(
        default=timezone.now,
    )
    acked_at = models.DateTimeField(
        null=True,
        blank=True,
    )
    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
    )
    expires_at = models.DateTimeField(
        db_index=True,
        help_text="Retention deadline; expired incidents are reclaimed.",
    )

    timeline = models.JSONField(
        default=list,
        blank=True,
        help_text="Append-only list of {timestamp, event, actor, note?} entries.",
    )

    objects = IncidentQuerySet.as_manager()

    class Meta:
        ordering = ["-triggered_at"]
        indexes = [
            models.Index(fields=["team", "state"], name="incidents_team_state_idx"),
            models.Index(fields=["assigned_to", "state"], name="incidents_assignee_state_idx"),
        ]

    def __str__(self):
        return f"[{self.state}] {self.alarm_name}"

    @property
    def is_outstanding(self) -> bool:
        return self.state in (IncidentState.TRIGGERED, IncidentState.ACKED)

    @property
    def is_resolved(self) -> bool:
        return self.state == IncidentState.RESOLVED

    def can_transition_to(self, target: str) -> bool:
        return self.state in TRANSITIONS.get(target, ())

    def to_dict(self) -> dict:
        """Wire representation used by the client API."""
        data = {
            "incident_id": str(self.incident_id),
            "team_id": self.team.team_id,
            "alarm_name": self.alarm_name,
            "alarm_arn": self.alarm_arn,
            "state": self.state,
            "severity": self.severity,
            "assigned_to": self.assigned_to,
            "escalation_level": self.escalation_level,
            "triggered_at": to_epoch_ms(self.triggered_at),
            "ttl": int(self.expires_at.timestamp()),
            "timeline": list(self.timeline or []),
        }
        if self.acked_at:
            data["acked_at"] = to_epoch_ms(self.acked_at)
        if self.resolved_at:
            data["resolved_at"] = to_epoch_ms(self.resolved_at)
        return data
