from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from apps.incidents._tests.helpers import alarm_message, make_team, sns_event
from apps.incidents.models import Incident
from apps.incidents.tasks import ingest_alarm_payload, reclaim_expired_incidents


class IngestAlarmPayloadTaskTests(TestCase):
    def test_returns_pipeline_counts(self):
        make_team()

        result = ingest_alarm_payload(sns_event(alarm_message()))

        self.assertEqual(result["incidents_created"], 1)
        self.assertEqual(result["received"], 1)
        self.assertEqual(Incident.objects.count(), 1)

    def test_runs_through_celery_eagerly(self):
        make_team()

        async_result = ingest_alarm_payload.delay(alarm_message(), "cloudwatch")

        self.assertEqual(async_result.get()["incidents_created"], 1)


class ReclaimExpiredIncidentsTaskTests(TestCase):
    def test_deletes_expired(self):
        make_team()
        ingest_alarm_payload(alarm_message())
        Incident.objects.update(expires_at=timezone.now() - timedelta(seconds=1))

        self.assertEqual(reclaim_expired_incidents(), {"deleted": 1})
        self.assertFalse(Incident.objects.exists())
