import json
from unittest.mock import MagicMock, patch

from django.test import Client, TestCase, override_settings
from django.urls import reverse

from apps.incidents._tests.helpers import alarm_message, make_team, sns_event
from apps.incidents.models import Incident


class AlarmWebhookViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.url = reverse("incidents:alarms")
        make_team()

    def _post(self, payload, url=None):
        return self.client.post(
            url or self.url,
            data=payload if isinstance(payload, str) else json.dumps(payload),
            content_type="application/json",
        )

    def test_ingests_sns_event(self):
        response = self._post(sns_event(alarm_message()))

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "success")
        self.assertEqual(data["incidents_created"], 1)
        self.assertEqual(Incident.objects.count(), 1)

    def test_explicit_driver(self):
        response = self._post(
            alarm_message(), url=reverse("incidents:alarms_driver", args=["cloudwatch"])
        )

        self.assertEqual(response.json()["incidents_created"], 1)

    def test_partial_when_records_fail(self):
        payload = sns_event(alarm_message())
        payload["Records"].append({"Sns": {"Message": "garbage"}})

        response = self._post(payload)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "partial")

    def test_invalid_json(self):
        response = self._post("{not json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid JSON payload")

    def test_non_object_payload(self):
        response = self._post([1, 2, 3])

        self.assertEqual(response.status_code, 400)

    def test_health_check(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["driver"], "auto-detect")

    @override_settings(ENABLE_CELERY_INGESTION=True, CELERY_TASK_ALWAYS_EAGER=False)
    @patch("apps.incidents.tasks.ingest_alarm_payload.delay")
    def test_queues_when_celery_ingestion_enabled(self, mock_delay):
        mock_delay.return_value = MagicMock(id="task-123")

        response = self._post(sns_event(alarm_message()))

        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.json(), {"status": "queued", "task_id": "task-123"})
        mock_delay.assert_called_once()
        self.assertEqual(Incident.objects.count(), 0)

    @override_settings(ENABLE_CELERY_INGESTION=True, CELERY_TASK_ALWAYS_EAGER=False)
    @patch("apps.incidents.tasks.ingest_alarm_payload.delay", side_effect=OSError("no broker"))
    def test_falls_back_inline_when_broker_unreachable(self, mock_delay):
        response = self._post(sns_event(alarm_message()))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Incident.objects.count(), 1)
