"""
Incident pipeline services.

This module contains the business logic for turning alarm events into
incidents and for moving incidents through their lifecycle:

- AlarmIngestionPipeline: alarm events → routed, persisted incidents
- IncidentStateMachine: acknowledge/resolve with conditional writes
- IncidentRetention: reclamation of incidents past their TTL
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.incidents.drivers import AlarmEvent, BaseAlarmDriver, detect_driver, get_driver
from apps.incidents.models import (
    Incident,
    IncidentSeverity,
    IncidentState,
    TimelineEvent,
    timeline_entry,
    to_epoch_ms,
)
from apps.teams.services import OnCallResolver, TeamResolver

logger = logging.getLogger(__name__)


class IncidentError(Exception):
    """Base class for incident lifecycle errors."""


class IncidentNotFound(IncidentError):
    """No incident exists with the given id."""


class IncidentConflict(IncidentError):
    """The requested transition is not legal from the incident's stored state."""

    def __init__(self, incident_id, current_state: str, requested_state: str):
        self.incident_id = incident_id
        self.current_state = current_state
        self.requested_state = requested_state
        super().__init__(
            f"Cannot move incident {incident_id} to '{requested_state}' "
            f"from '{current_state}'"
        )


def derive_severity(alarm_name: str) -> str:
    """Derive incident severity from the alarm name.

    Case-insensitive substring match with precedence:
    "critical"/"error" > "warning"/"warn" > "info".
    """
    lowered = (alarm_name or "").lower()
    if "critical" in lowered or "error" in lowered:
        return IncidentSeverity.CRITICAL
    if "warning" in lowered or "warn" in lowered:
        return IncidentSeverity.WARNING
    return IncidentSeverity.INFO


@dataclass
class IngestionResult:
    """Result of processing an inbound alarm delivery."""

    received: int = 0
    ignored: int = 0
    incidents_created: int = 0
    duplicates: int = 0
    dropped_no_team: int = 0
    dropped_no_on_call: int = 0
    incident_ids: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def dropped(self) -> int:
        return self.dropped_no_team + self.dropped_no_on_call

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "received": self.received,
            "ignored": self.ignored,
            "incidents_created": self.incidents_created,
            "duplicates": self.duplicates,
            "dropped_no_team": self.dropped_no_team,
            "dropped_no_on_call": self.dropped_no_on_call,
            "incident_ids": list(self.incident_ids),
            "errors": list(self.errors),
        }


class AlarmIngestionPipeline:
    """
    Turns alarm events into incidents.

    For each event, independently:
    1. Skip events that are not entering the ALARM state
    2. Resolve the owning team from the account id
    3. Resolve the on-call responder for that team right now
    4. Create the incident with its initial "triggered" timeline entry

    Push delivery is not triggered here: incident creation is published on the
    change feed (see apps.incidents.signals) and handled by apps.notify.

    Usage:
        pipeline = AlarmIngestionPipeline()
        result = pipeline.process_payload(sns_event)
    """

    def __init__(
        self,
        ttl: timedelta | None = None,
        source_actor: str | None = None,
        team_resolver: TeamResolver | None = None,
        on_call_resolver: OnCallResolver | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            ttl: Retention window for created incidents (default INCIDENT_TTL_HOURS).
            source_actor: Actor recorded on the "triggered" entry (default INCIDENT_ALARM_SOURCE).
            team_resolver: Resolver used to route accounts to teams.
            on_call_resolver: Resolver used to find the current responder.
        """
        self.ttl = ttl or timedelta(hours=getattr(settings, "INCIDENT_TTL_HOURS", 24))
        self.source_actor = source_actor or getattr(
            settings, "INCIDENT_ALARM_SOURCE", "CloudWatch"
        )
        self.team_resolver = team_resolver or TeamResolver()
        self.on_call_resolver = on_call_resolver or OnCallResolver()

    def process_payload(
        self,
        payload: dict[str, Any],
        driver: str | BaseAlarmDriver | None = None,
        result: IngestionResult | None = None,
    ) -> IngestionResult:
        """
        Process an inbound alarm delivery.

        Args:
            payload: Raw JSON payload (SNS event, SNS notification or bare message).
            driver: Driver name, instance, or None for auto-detection.
            result: Result to accumulate into, for callers publishing several payloads.

        Returns:
            IngestionResult with per-outcome counts.
        """
        if result is None:
            result = IngestionResult()

        try:
            driver_instance = self._get_driver(payload, driver)
        except ValueError as e:
            result.errors.append(str(e))
            return result

        if not driver_instance:
            result.errors.append("Could not detect driver for payload")
            return result

        try:
            batch = driver_instance.parse(payload)
        except ValueError as e:
            logger.warning(f"Rejected alarm payload: {e}")
            result.errors.append(str(e))
            return result

        result.errors.extend(batch.errors)
        self.process_events(batch.events, result)
        return result

    def process_events(
        self,
        events: list[AlarmEvent],
        result: IngestionResult | None = None,
    ) -> IngestionResult:
        """Process a batch of events. One failing event never aborts the batch."""
        result = result or IngestionResult()

        for event in events:
            result.received += 1
            try:
                self.process_event(event, result)
            except Exception as e:
                logger.exception(f"Error processing alarm {event.alarm_name}")
                result.errors.append(f"{event.alarm_name}: {e}")

        logger.info(
            f"Alarm batch processed: {result.received} received, "
            f"{result.incidents_created} incidents created, {result.ignored} ignored, "
            f"{result.dropped} dropped, {result.duplicates} duplicates"
        )
        return result

    def process_event(
        self,
        event: AlarmEvent,
        result: IngestionResult,
        now: datetime | None = None,
    ) -> Incident | None:
        """Process a single alarm event, returning the created incident (if any)."""
        if not event.is_alarm:
            logger.info(f"Ignoring alarm state {event.new_state_value} for {event.alarm_name}")
            result.ignored += 1
            return None

        logger.info(f"Processing alarm: {event.alarm_name} from account {event.account_id}")

        team = self.team_resolver.resolve_team_by_account(event.account_id)
        if team is None:
            logger.error(f"No team found for account: {event.account_id}")
            result.dropped_no_team += 1
            return None

        now = now or timezone.now()
        user_id = self.on_call_resolver.resolve_on_call(team.team_id, now)
        if user_id is None:
            logger.error(f"No on-call user for team: {team.team_id}")
            result.dropped_no_on_call += 1
            return None

        dedup_key = event.idempotency_key()
        if dedup_key and Incident.objects.filter(dedup_key=dedup_key).exists():
            logger.info(f"Duplicate alarm delivery for {event.alarm_name}; skipping")
            result.duplicates += 1
            return None

        try:
            with transaction.atomic():
                incident = Incident.objects.create(
                    team=team,
                    alarm_name=event.alarm_name,
                    alarm_arn=event.alarm_arn,
                    account_id=event.account_id,
                    region=event.region,
                    dedup_key=dedup_key,
                    state=IncidentState.TRIGGERED,
                    severity=derive_severity(event.alarm_name),
                    assigned_to=user_id,
                    escalation_level=0,
                    triggered_at=now,
                    expires_at=now + self.ttl,
                    timeline=[
                        timeline_entry(
                            TimelineEvent.TRIGGERED, self.source_actor, now, note=event.reason
                        )
                    ],
                )
        except IntegrityError:
            # Another delivery of the same transition won the insert.
            logger.info(f"Duplicate alarm delivery for {event.alarm_name}; skipping")
            result.duplicates += 1
            return None

        result.incidents_created += 1
        result.incident_ids.append(str(incident.incident_id))
        logger.info(
            f"Created incident: {incident.incident_id} ({incident.severity}) "
            f"assigned to {user_id}"
        )
        return incident

    def _get_driver(
        self,
        payload: dict[str, Any],
        driver: str | BaseAlarmDriver | None,
    ) -> BaseAlarmDriver | None:
        """Get driver instance from name, instance, or auto-detect."""
        if driver is None:
            return detect_driver(payload)
        elif isinstance(driver, str):
            return get_driver(driver)
        elif isinstance(driver, BaseAlarmDriver):
            return driver
        else:
            raise ValueError(f"Invalid driver type: {type(driver)}")


@dataclass
class TransitionResult:
    """Outcome of an acknowledge/resolve call."""

    incident: Incident
    changed: bool


class IncidentStateMachine:
    """
    Legal lifecycle transitions for incidents.

    triggered → acked → resolved, or triggered → resolved directly.
    Each transition is written with a conditional update keyed on the prior
    state, so a transition applies at most once even under concurrent retries.
    Repeating a transition the incident already went through is a no-op;
    moving backwards (e.g. ack after resolve) raises IncidentConflict.
    """

    # Bounded re-reads when another writer moved the incident between our
    # read and our conditional update.
    MAX_ATTEMPTS = 3

    def acknowledge(self, incident_id, actor: str, note: str = "") -> TransitionResult:
        """Acknowledge an incident on behalf of actor."""
        return self._transition(incident_id, IncidentState.ACKED, actor, note)

    def resolve(self, incident_id, actor: str, note: str = "") -> TransitionResult:
        """Resolve an incident on behalf of actor. A prior ack is not required."""
        return self._transition(incident_id, IncidentState.RESOLVED, actor, note)

    def _transition(self, incident_id, target: str, actor: str, note: str) -> TransitionResult:
        incident = None
        for _ in range(self.MAX_ATTEMPTS):
            incident = self._get(incident_id)

            if incident.state == target:
                logger.info(f"Incident {incident.incident_id} already {target}; nothing to do")
                return TransitionResult(incident=incident, changed=False)

            if not incident.can_transition_to(target):
                raise IncidentConflict(incident.incident_id, incident.state, target)

            at = self._not_before_last_entry(timezone.now(), incident.timeline)
            fields = {
                "state": target,
                f"{target}_at": at,
                "timeline": [*(incident.timeline or []), timeline_entry(target, actor, at, note)],
            }
            updated = Incident.objects.filter(pk=incident.pk, state=incident.state).update(
                **fields
            )
            if updated:
                incident.refresh_from_db()
                logger.info(f"Incident {incident.incident_id} {target} by {actor}")
                return TransitionResult(incident=incident, changed=True)

            logger.info(
                f"Incident {incident.incident_id} changed concurrently; re-reading before {target}"
            )

        raise IncidentConflict(incident.incident_id, incident.state, target)

    @staticmethod
    def _get(incident_id) -> Incident:
        try:
            return Incident.objects.select_related("team").get(incident_id=incident_id)
        except (Incident.DoesNotExist, ValidationError, ValueError) as e:
            # ValidationError: malformed UUID
            raise IncidentNotFound(f"Incident not found: {incident_id}") from e

    @staticmethod
    def _not_before_last_entry(now: datetime, timeline: list[dict]) -> datetime:
        """Keep timeline timestamps non-decreasing even if clocks disagree."""
        if not timeline:
            return now
        last_ms = timeline[-1].get("timestamp") or 0
        if last_ms > to_epoch_ms(now):
            return datetime.fromtimestamp(last_ms / 1000, tz=dt_timezone.utc)
        return now


class IncidentQueryService:
    """
    Service for querying incidents.
    """

    @staticmethod
    def get_incident(incident_id) -> Incident:
        return IncidentStateMachine._get(incident_id)

    @staticmethod
    def list_incidents(
        team_id: str | None = None,
        state: str | None = None,
        assigned_to: str | None = None,
    ):
        qs = Incident.objects.select_related("team")
        if team_id:
            qs = qs.filter(team__team_id=team_id)
        if state:
            qs = qs.filter(state=state)
        if assigned_to:
            qs = qs.filter(assigned_to=assigned_to)
        return qs

    @staticmethod
    def get_outstanding_incidents():
        return Incident.objects.outstanding().select_related("team")


class IncidentRetention:
    """Deletes incidents whose retention deadline has passed."""

    @staticmethod
    def reclaim_expired(now: datetime | None = None) -> int:
        _, per_model = Incident.objects.expired(now).delete()
        deleted = per_model.get(Incident._meta.label, 0)
        if deleted:
            logger.info(f"Reclaimed {deleted} expired incident record(s)")
        return deleted
