"""Celery tasks for push delivery.

dispatch_incident_notifications is enqueued by the incident change feed once
an incident is committed. Retryable delivery failures raise so Celery redrives
the fan-out with backoff; devices already notified are skipped on retry.
"""

from __future__ import annotations

import logging
from typing import Any

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


class RetryableDeliveryError(Exception):
    """Some devices failed with a transient error and should be retried."""


@shared_task(
    bind=True,
    autoretry_for=(RetryableDeliveryError,),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=getattr(settings, "NOTIFY_MAX_RETRIES", 3),
)
def dispatch_incident_notifications(self, incident_id: str) -> dict[str, Any]:
    """Push an incident to its assigned responder's devices."""
    from apps.incidents.models import Incident
    from apps.notify.services import NotificationDispatcher

    try:
        incident = Incident.objects.select_related("team").get(incident_id=incident_id)
    except Incident.DoesNotExist:
        # Reclaimed or never committed; nothing to deliver.
        logger.warning(f"Incident {incident_id} not found for push delivery")
        return {"incident_id": incident_id, "status": "missing"}

    with NotificationDispatcher() as dispatcher:
        result = dispatcher.dispatch_incident(incident)
    if result.has_retryable_failures:
        raise RetryableDeliveryError(
            f"{result.retryable_failures} retryable failure(s) for incident {incident_id}"
        )
    return result.to_dict()
