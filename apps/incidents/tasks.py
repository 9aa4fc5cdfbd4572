"""Celery tasks for the incident pipeline.

- ingest_alarm_payload: run the ingestion pipeline for one inbound delivery
- reclaim_expired_incidents: periodic retention sweep (see CELERY_BEAT_SCHEDULE)

Ingestion does not retry internally; redelivery is the transport's job and the
pipeline drops duplicates of the same alarm transition.
"""

from __future__ import annotations

from typing import Any

from celery import shared_task


@shared_task
def ingest_alarm_payload(payload: dict[str, Any], driver: str | None = None) -> dict[str, Any]:
    """Ingest an alarm payload and return the pipeline counts."""
    from apps.incidents.services import AlarmIngestionPipeline

    result = AlarmIngestionPipeline().process_payload(payload, driver=driver)
    return result.to_dict()


@shared_task
def reclaim_expired_incidents() -> dict[str, Any]:
    """Delete incidents whose retention deadline has passed."""
    from apps.incidents.services import IncidentRetention

    return {"deleted": IncidentRetention.reclaim_expired()}
