"""
Notification Dispatcher.

Delivers a push to one device, or fans an incident out to every device of
its assigned responder. Outcomes of incident fan-out are written to the
delivery ledger (NotificationDelivery). A redriven fan-out only retries devices
whose last attempt failed with a retryable error; sent and terminally failed
devices are settled.

Error taxonomy:
- "Non-iOS device", "APNs not configured": terminal, no network call made
- gateway rejections: terminal, except 5xx/429 which are retryable
- transport errors and timeouts: retryable
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings
from django.db.models import F, Q
from django.utils import timezone

from apps.devices.models import Device
from apps.incidents.models import Incident, IncidentSeverity
from apps.notify.drivers import BasePushDriver, DeliveryResult, PushNotification, get_driver
from apps.notify.models import DeliveryStatus, NotificationDelivery

logger = logging.getLogger(__name__)

INTERRUPTION_BY_SEVERITY = {
    IncidentSeverity.CRITICAL: "critical",
    IncidentSeverity.WARNING: "time-sensitive",
    IncidentSeverity.INFO: "active",
}

TITLE_PREFIX_BY_SEVERITY = {
    IncidentSeverity.CRITICAL: "🚨",
    IncidentSeverity.WARNING: "⚠️",
    IncidentSeverity.INFO: "ℹ️",
}


@dataclass
class DispatchResult:
    """Summary of one incident fan-out."""

    incident_id: str
    assigned_to: str
    devices: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    retryable_failures: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def has_retryable_failures(self) -> bool:
        return self.retryable_failures > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "incident_id": self.incident_id,
            "assigned_to": self.assigned_to,
            "devices": self.devices,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "retryable_failures": self.retryable_failures,
            "errors": self.errors,
        }


def build_incident_notification(incident: Incident) -> PushNotification:
    """Build the alert push for a newly triggered incident."""
    prefix = TITLE_PREFIX_BY_SEVERITY.get(incident.severity, "")
    reason = ""
    if incident.timeline:
        reason = incident.timeline[0].get("note", "")

    return PushNotification(
        title=f"{prefix} {incident.alarm_name}".strip(),
        body=reason or f"{incident.severity.upper()} incident for {incident.team.name}",
        sound="default",
        interruption_level=INTERRUPTION_BY_SEVERITY.get(incident.severity, "active"),
        data={
            "incident_id": str(incident.incident_id),
            "team_id": incident.team.team_id,
            "severity": incident.severity,
        },
    )


class NotificationDispatcher:
    """
    Push delivery front door.

    Args:
        driver: Push driver; an ApnsPushDriver when omitted.
        max_workers: Thread pool size for fan-out (settings.APNS_MAX_WORKERS).

    A driver built here is owned by the dispatcher and closed by close() or
    on leaving a `with` block; a driver passed in stays open.

    Usage:
        with NotificationDispatcher() as dispatcher:
            dispatcher.dispatch_incident(incident)
    """

    def __init__(self, driver: BasePushDriver | None = None, max_workers: int | None = None):
        self._owns_driver = driver is None
        self.driver = driver or get_driver("apns")
        self.max_workers = max_workers or getattr(settings, "APNS_MAX_WORKERS", 4)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        if self._owns_driver:
            self.driver.close()

    def deliver(self, device, notification: PushNotification) -> DeliveryResult:
        """Deliver one notification to one device. Never raises."""
        try:
            return self.driver.deliver(device, notification)
        except Exception as e:
            logger.exception(f"Push driver {self.driver.name} crashed")
            return DeliveryResult.failure(str(e), retryable=True)

    def dispatch_incident(self, incident: Incident, retry_failed: bool = False) -> DispatchResult:
        """Notify every device of the incident's assigned responder.

        Args:
            incident: The incident to push.
            retry_failed: Also retry devices that failed terminally, e.g. after
                fixing the APNs configuration. Sent devices are always skipped.
        """
        result = DispatchResult(
            incident_id=str(incident.incident_id),
            assigned_to=incident.assigned_to,
        )

        devices = list(Device.objects.filter(user_id=incident.assigned_to))
        result.devices = len(devices)
        if not devices:
            logger.info(f"No devices registered for {incident.assigned_to}")
            return result

        settled_filter = Q(status=DeliveryStatus.SENT)
        if not retry_failed:
            settled_filter |= Q(retryable=False)
        settled = set(
            NotificationDelivery.objects.filter(incident=incident)
            .filter(settled_filter)
            .values_list("device_token", flat=True)
        )
        pending = [d for d in devices if d.device_token not in settled]
        result.skipped = len(devices) - len(pending)
        if not pending:
            return result

        notification = build_incident_notification(incident)
        workers = max(1, min(self.max_workers, len(pending)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda d: self.deliver(d, notification), pending))

        # Ledger writes stay on the calling thread.
        for device, outcome in zip(pending, outcomes):
            self._record(incident, device, outcome)
            if outcome.success:
                result.sent += 1
                continue
            result.failed += 1
            result.errors.append(f"…{device.device_token[-8:]}: {outcome.error}")
            if outcome.retryable:
                result.retryable_failures += 1

        logger.info(
            f"Incident {result.incident_id} fan-out: sent={result.sent} "
            f"failed={result.failed} skipped={result.skipped}"
        )
        return result

    @staticmethod
    def _record(incident: Incident, device, outcome: DeliveryResult) -> None:
        delivery, _ = NotificationDelivery.objects.get_or_create(
            incident=incident,
            device_token=device.device_token,
            defaults={"user_id": device.user_id, "status": DeliveryStatus.FAILED},
        )
        NotificationDelivery.objects.filter(pk=delivery.pk).update(
            status=DeliveryStatus.SENT if outcome.success else DeliveryStatus.FAILED,
            error=outcome.error or "",
            status_code=outcome.status_code,
            retryable=outcome.retryable,
            attempts=F("attempts") + 1,
            updated_at=timezone.now(),
        )
