"""Alarm in, push out: the whole path with only the APNs gateway stubbed."""

import json
from unittest.mock import patch

import httpx
from django.test import Client, TestCase
from django.urls import reverse

from apps.devices.models import Device
from apps.incidents._tests.helpers import alarm_message, make_team, sns_event
from apps.incidents.models import Incident
from apps.notify._tests.helpers import credential_cache
from apps.notify.drivers.apns import ApnsPushDriver
from apps.notify.models import DeliveryStatus, NotificationDelivery


class AlarmToPushTests(TestCase):
    def setUp(self):
        self.client = Client()
        make_team(on_call="alice")
        Device.objects.create(user_id="alice", device_token="a1b2c3d4e5f60718", platform="ios")
        Device.objects.create(user_id="bob", device_token="b0b0b0b0b0b0b0b0", platform="ios")

        self.requests = []
        transport = httpx.MockTransport(self._gateway)
        self.driver = ApnsPushDriver(credentials=credential_cache(), transport=transport)
        self.addCleanup(self.driver.close)

    def _gateway(self, request):
        self.requests.append(request)
        return httpx.Response(200)

    def _action(self, incident_id, action, user):
        return self.client.post(
            reverse(f"incidents:{action}", args=[incident_id]),
            data="",
            content_type="application/json",
            HTTP_X_USER_ID=user,
        )

    def test_critical_alarm_pages_on_call_then_is_worked(self):
        with patch("apps.notify.services.get_driver", return_value=self.driver):
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.post(
                    reverse("incidents:alarms"),
                    data=json.dumps(sns_event(alarm_message("API-Latency-Critical"))),
                    content_type="application/json",
                )

        self.assertEqual(response.status_code, 200)
        incident = Incident.objects.get()
        self.assertEqual(incident.severity, "critical")
        self.assertEqual(incident.assigned_to, "alice")

        # Only the on-call responder's device is paged.
        self.assertEqual(len(self.requests), 1)
        request = self.requests[0]
        self.assertEqual(request.url.path, "/3/device/a1b2c3d4e5f60718")
        self.assertEqual(request.headers["apns-priority"], "10")
        payload = json.loads(request.content)
        self.assertEqual(payload["aps"]["interruption-level"], "critical")
        self.assertEqual(payload["incident_id"], str(incident.incident_id))
        self.assertEqual(NotificationDelivery.objects.get().status, DeliveryStatus.SENT)

        self.assertEqual(self._action(incident.incident_id, "ack", "alice").status_code, 200)
        response = self._action(incident.incident_id, "resolve", "alice")
        self.assertEqual(response.status_code, 200)

        timeline = response.json()["incident"]["timeline"]
        self.assertEqual([e["event"] for e in timeline], ["triggered", "acked", "resolved"])
        self.assertEqual([e["actor"] for e in timeline], ["CloudWatch", "alice", "alice"])
