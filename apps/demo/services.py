"""
Demo environment.

- setup: create the demo team (if missing) and put the caller on call for 24h
- start: publish the demo CloudWatch alarms through the ingestion pipeline
- reset: delete the demo team with its incidents and schedule

DatabaseDemoCallbacks lets the demo game (apps.demo.sequence) drive the real
incident store and state machine instead of an in-memory list.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any, Callable

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.demo.data import (
    DEFAULT_AWS_ACCOUNT,
    DEFAULT_ESCALATION_POLICY,
    DEFAULT_TEAM_ID,
    DEFAULT_TEAM_NAME,
    DEMO_ALARMS,
    DEMO_REGION,
    alarm_arn,
)
from apps.demo.sequence import DemoCallbacks
from apps.incidents.models import Incident
from apps.incidents.services import (
    AlarmIngestionPipeline,
    IncidentError,
    IncidentStateMachine,
    IngestionResult,
)
from apps.teams.models import ScheduleSlot, Team

logger = logging.getLogger(__name__)

ON_CALL_WINDOW = timedelta(hours=24)


def build_alarm_message(name: str, account_id: str) -> dict[str, Any]:
    """A CloudWatch alarm message as SNS would carry it."""
    return {
        "AlarmName": name,
        "AlarmArn": alarm_arn(name, account_id),
        "NewStateValue": "ALARM",
        "NewStateReason": f"Demo: {name} threshold exceeded (simulated)",
        "StateChangeTime": timezone.now().isoformat(),
        "Region": DEMO_REGION,
        "AWSAccountId": account_id,
    }


class DemoEnvironment:
    """Setup, start and reset of the demo team."""

    def __init__(self, pipeline: AlarmIngestionPipeline | None = None):
        self.pipeline = pipeline or AlarmIngestionPipeline()

    @staticmethod
    def get_team() -> Team | None:
        return Team.objects.filter(team_id=DEFAULT_TEAM_ID).first()

    @transaction.atomic
    def setup(self, user_id: str, account_id: str | None = None) -> dict[str, Any]:
        account_id = account_id or DEFAULT_AWS_ACCOUNT

        team, team_created = Team.objects.get_or_create(
            team_id=DEFAULT_TEAM_ID,
            defaults={
                "name": DEFAULT_TEAM_NAME,
                "account_ids": [account_id],
                "escalation_policy": DEFAULT_ESCALATION_POLICY,
            },
        )
        if team_created:
            logger.info(f"[Demo] Created team: {team.name}")

        now = timezone.now()
        slot = ScheduleSlot.objects.create(
            team=team,
            slot_id=f"oncall-{uuid.uuid4()}",
            user_id=user_id,
            start=now,
            end=now + ON_CALL_WINDOW,
        )
        logger.info(f"[Demo] Created on-call schedule for user {user_id}")

        return {
            "message": "Demo setup complete",
            "team_id": team.team_id,
            "team_created": team_created,
            "aws_account_id": account_id,
            "on_call_until": slot.end.isoformat(),
        }

    def start(
        self,
        account_id: str | None = None,
        pace: Callable[[], None] | None = None,
    ) -> dict[str, Any]:
        """Publish the demo alarms.

        Args:
            account_id: Account the alarms are raised in (demo account by default).
            pace: Called between two alarms, e.g. to sleep for a moment.
        """
        account_id = account_id or DEFAULT_AWS_ACCOUNT
        result = IngestionResult()

        for index, name in enumerate(DEMO_ALARMS):
            if index and pace:
                pace()
            self.pipeline.process_payload(build_alarm_message(name, account_id), result=result)
            logger.info(f"[Demo] Published alarm {index + 1}/{len(DEMO_ALARMS)}: {name}")

        return {
            "message": "Demo alarms published",
            "alarm_count": len(DEMO_ALARMS),
            "alarms": list(DEMO_ALARMS),
            "aws_account_id": account_id,
            **result.to_dict(),
        }

    @transaction.atomic
    def reset(self) -> dict[str, Any]:
        team = self.get_team()
        deleted_incidents = deleted_schedules = 0
        if team is not None:
            _, per_model = Incident.objects.filter(team=team).delete()
            deleted_incidents = per_model.get(Incident._meta.label, 0)
            deleted_schedules, _ = ScheduleSlot.objects.filter(team=team).delete()
            team.delete()

        logger.info(
            f"[Demo] Reset complete: deleted {deleted_incidents} incidents, "
            f"{deleted_schedules} schedules"
        )
        return {
            "message": "Demo reset complete",
            "deleted_incidents": deleted_incidents,
            "deleted_schedules": deleted_schedules,
            "deleted_team": DEFAULT_TEAM_ID if team is not None else None,
        }


class DatabaseDemoCallbacks:
    """Demo game hooks backed by the incident store.

    Only incidents raised since the adapter was created are on the board, so
    leftovers of an earlier game neither fill the cap nor block a win.
    """

    def __init__(
        self,
        team: Team,
        account_id: str | None = None,
        pipeline: AlarmIngestionPipeline | None = None,
        machine: IncidentStateMachine | None = None,
    ):
        self.team = team
        self.account_id = account_id or (team.account_ids or [DEFAULT_AWS_ACCOUNT])[0]
        self.pipeline = pipeline or AlarmIngestionPipeline()
        self.machine = machine or IncidentStateMachine()
        self.resolver_actor = getattr(settings, "INCIDENT_ALARM_SOURCE", "CloudWatch")
        self.alerts: list[str] = []
        self.completed = False
        self.started_at = timezone.now()

    def add_incident(self, incident: dict[str, Any]) -> bool:
        message = build_alarm_message(incident["alarm_name"], self.account_id)
        result = self.pipeline.process_payload(message, driver="cloudwatch")
        return result.incidents_created > 0

    def ack_incident(self, incident_id: str, actor: str) -> None:
        try:
            self.machine.acknowledge(incident_id, actor=actor)
        except IncidentError as e:
            logger.warning(f"[Demo] Teammate ack skipped: {e}")

    def resolve_incident(self, incident_id: str) -> None:
        try:
            self.machine.resolve(
                incident_id, actor=self.resolver_actor, note="Alarm returned to OK (simulated)"
            )
        except IncidentError as e:
            logger.warning(f"[Demo] Auto-resolve skipped: {e}")

    def play_alert(self, severity: str) -> None:
        self.alerts.append(severity)
        logger.info(f"[Demo] Alert: {severity}")

    def on_complete(self) -> None:
        self.completed = True
        logger.info("[Demo] Game complete")

    def get_incidents(self) -> list[dict[str, Any]]:
        incidents = Incident.objects.filter(
            team=self.team, triggered_at__gte=self.started_at
        ).select_related("team")
        return [i.to_dict() for i in incidents.order_by("triggered_at", "pk")]

    def as_callbacks(self) -> DemoCallbacks:
        return DemoCallbacks(
            add_incident=self.add_incident,
            ack_incident=self.ack_incident,
            resolve_incident=self.resolve_incident,
            play_alert=self.play_alert,
            on_complete=self.on_complete,
            get_incidents=self.get_incidents,
        )
