from datetime import timedelta
from unittest.mock import patch

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from apps.incidents._tests.helpers import alarm_message, make_team, sns_event
from apps.incidents.models import Incident, IncidentSeverity, IncidentState
from apps.incidents.services import (
    AlarmIngestionPipeline,
    IncidentQueryService,
    IncidentRetention,
    derive_severity,
)


class DeriveSeverityTests(SimpleTestCase):
    def test_critical_keywords(self):
        self.assertEqual(derive_severity("API-Latency-Critical"), IncidentSeverity.CRITICAL)
        self.assertEqual(derive_severity("lambda-ERROR-rate"), IncidentSeverity.CRITICAL)

    def test_warning_keywords(self):
        self.assertEqual(derive_severity("DiskSpace-Low-Warning"), IncidentSeverity.WARNING)
        self.assertEqual(derive_severity("queue-depth-warn"), IncidentSeverity.WARNING)

    def test_critical_takes_precedence(self):
        self.assertEqual(derive_severity("Warn-then-Critical"), IncidentSeverity.CRITICAL)

    def test_defaults_to_info(self):
        self.assertEqual(derive_severity("Network-Saturation"), IncidentSeverity.INFO)
        self.assertEqual(derive_severity(""), IncidentSeverity.INFO)


class AlarmIngestionPipelineTests(TestCase):
    def setUp(self):
        self.team = make_team()
        self.pipeline = AlarmIngestionPipeline()

    def test_creates_triggered_incident(self):
        before = timezone.now()
        result = self.pipeline.process_payload(sns_event(alarm_message()))

        self.assertEqual(result.received, 1)
        self.assertEqual(result.incidents_created, 1)
        self.assertFalse(result.has_errors)

        incident = Incident.objects.get()
        self.assertEqual(str(incident.incident_id), result.incident_ids[0])
        self.assertEqual(incident.team, self.team)
        self.assertEqual(incident.state, IncidentState.TRIGGERED)
        self.assertEqual(incident.severity, IncidentSeverity.CRITICAL)
        self.assertEqual(incident.assigned_to, "alice")
        self.assertEqual(incident.escalation_level, 0)
        self.assertEqual(incident.account_id, "123456789012")
        self.assertIsNone(incident.acked_at)
        self.assertIsNone(incident.resolved_at)
        self.assertGreaterEqual(incident.triggered_at, before)
        self.assertEqual(incident.expires_at - incident.triggered_at, timedelta(hours=24))

        self.assertEqual(len(incident.timeline), 1)
        entry = incident.timeline[0]
        self.assertEqual(entry["event"], "triggered")
        self.assertEqual(entry["actor"], "CloudWatch")
        self.assertTrue(entry["note"].startswith("Threshold Crossed"))

    def test_non_alarm_state_is_ignored(self):
        result = self.pipeline.process_payload(
            sns_event(alarm_message(state="OK"), alarm_message(state="INSUFFICIENT_DATA"))
        )

        self.assertEqual(result.ignored, 2)
        self.assertEqual(Incident.objects.count(), 0)

    def test_unknown_account_is_dropped(self):
        result = self.pipeline.process_payload(alarm_message(account_id="000000000000"))

        self.assertEqual(result.dropped_no_team, 1)
        self.assertEqual(Incident.objects.count(), 0)

    def test_nobody_on_call_is_dropped(self):
        make_team(team_id="night-shift", account_id="222222222222", on_call=None)

        with self.assertLogs("apps.incidents.services", level="ERROR"):
            result = self.pipeline.process_payload(alarm_message(account_id="222222222222"))

        self.assertEqual(result.dropped_no_on_call, 1)
        self.assertEqual(result.dropped, 1)
        self.assertEqual(Incident.objects.count(), 0)

    def test_redelivered_alarm_is_deduplicated(self):
        payload = sns_event(alarm_message())

        self.pipeline.process_payload(payload)
        result = self.pipeline.process_payload(payload)

        self.assertEqual(result.duplicates, 1)
        self.assertEqual(result.incidents_created, 0)
        self.assertEqual(Incident.objects.count(), 1)

    def test_new_transition_of_same_alarm_creates_new_incident(self):
        self.pipeline.process_payload(alarm_message(changed_at="2024-01-08T10:00:00.000+0000"))
        self.pipeline.process_payload(alarm_message(changed_at="2024-01-08T12:00:00.000+0000"))

        self.assertEqual(Incident.objects.count(), 2)

    def test_failing_event_does_not_abort_batch(self):
        real = self.pipeline.team_resolver.resolve_team_by_account
        calls = []

        def flaky(account_id):
            calls.append(account_id)
            if len(calls) == 1:
                raise RuntimeError("lookup timed out")
            return real(account_id)

        payload = sns_event(
            alarm_message("First-Critical"),
            alarm_message("Second-Warning"),
        )
        with patch.object(self.pipeline.team_resolver, "resolve_team_by_account", side_effect=flaky):
            with self.assertLogs("apps.incidents.services", level="ERROR"):
                result = self.pipeline.process_payload(payload)

        self.assertEqual(result.received, 2)
        self.assertEqual(result.incidents_created, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("lookup timed out", result.errors[0])
        self.assertEqual(Incident.objects.get().alarm_name, "Second-Warning")

    def test_undetectable_payload_is_an_error(self):
        result = self.pipeline.process_payload({"hello": "world"})

        self.assertTrue(result.has_errors)
        self.assertEqual(result.received, 0)

    def test_unknown_driver_name_is_an_error(self):
        result = self.pipeline.process_payload(alarm_message(), driver="nagios")

        self.assertTrue(result.has_errors)
        self.assertIn("Unknown driver", result.errors[0])

    @override_settings(INCIDENT_TTL_HOURS=1, INCIDENT_ALARM_SOURCE="AWS")
    def test_ttl_and_actor_come_from_settings(self):
        AlarmIngestionPipeline().process_payload(alarm_message())

        incident = Incident.objects.get()
        self.assertEqual(incident.expires_at - incident.triggered_at, timedelta(hours=1))
        self.assertEqual(incident.timeline[0]["actor"], "AWS")

    def test_result_accumulates_across_payloads(self):
        result = self.pipeline.process_payload(alarm_message("One-Critical"))
        self.pipeline.process_payload(alarm_message("Two-Info"), result=result)

        self.assertEqual(result.incidents_created, 2)
        self.assertEqual(len(result.incident_ids), 2)


class IncidentQueryServiceTests(TestCase):
    def setUp(self):
        make_team()
        make_team(team_id="dev", account_id="999999999999", on_call="bob")
        pipeline = AlarmIngestionPipeline()
        pipeline.process_payload(alarm_message("Ops-Critical"))
        pipeline.process_payload(alarm_message("Dev-Warning", account_id="999999999999"))

    def test_filters(self):
        self.assertEqual(IncidentQueryService.list_incidents().count(), 2)
        self.assertEqual(
            IncidentQueryService.list_incidents(team_id="dev").get().alarm_name, "Dev-Warning"
        )
        self.assertEqual(
            IncidentQueryService.list_incidents(assigned_to="alice").get().alarm_name,
            "Ops-Critical",
        )
        self.assertEqual(
            IncidentQueryService.list_incidents(state=IncidentState.RESOLVED).count(), 0
        )
        self.assertEqual(IncidentQueryService.get_outstanding_incidents().count(), 2)


class IncidentRetentionTests(TestCase):
    def test_reclaims_only_expired_incidents(self):
        make_team()
        AlarmIngestionPipeline().process_payload(alarm_message("Old-Critical"))
        AlarmIngestionPipeline().process_payload(alarm_message("New-Critical"))
        Incident.objects.filter(alarm_name="Old-Critical").update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )

        deleted = IncidentRetention.reclaim_expired()

        self.assertEqual(deleted, 1)
        self.assertEqual(Incident.objects.get().alarm_name, "New-Critical")
