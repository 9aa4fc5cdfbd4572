"""
Incident change feed.

Incident creation is published after the creating transaction commits, so
push delivery runs decoupled from ingestion latency and can be retried on
its own. Delivery is at-least-once; the dispatcher skips devices already
recorded as notified for the incident.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.incidents.models import Incident

logger = logging.getLogger(__name__)


def publish_incident_created(incident_id: str) -> None:
    """Enqueue push delivery for a newly created incident."""
    from apps.notify.tasks import dispatch_incident_notifications

    try:
        dispatch_incident_notifications.delay(incident_id)
    except Exception:
        # The incident is stored; delivery can be redriven with send_incident_push.
        logger.exception(f"Failed to enqueue push delivery for incident {incident_id}")


@receiver(post_save, sender=Incident, dispatch_uid="incidents.incident_created_feed")
def on_incident_saved(sender, instance, created, raw=False, **kwargs):
    if not created or raw:
        return
    if not getattr(settings, "NOTIFY_ON_INCIDENT_CREATED", True):
        return

    incident_id = str(instance.incident_id)
    transaction.on_commit(lambda: publish_incident_created(incident_id))
