import pytest

from apps.incidents._tests.helpers import alarm_message, make_team
from apps.incidents.models import Incident, IncidentState
from apps.incidents.services import AlarmIngestionPipeline, IncidentStateMachine


@pytest.fixture
def incidents(db):
    make_team()
    pipeline = AlarmIngestionPipeline()
    pipeline.process_payload(alarm_message("API-Latency-Critical"))
    pipeline.process_payload(alarm_message("DiskSpace-Low-Warning"))
    return list(Incident.objects.order_by("pk"))


@pytest.mark.django_db
class TestIncidentAdmin:
    def test_dashboard_loads(self, admin_client, incidents):
        response = admin_client.get("/admin/")
        assert response.status_code == 200
        assert response.context["outstanding_incidents"]["total"] == 2
        assert response.context["outstanding_incidents"]["critical"] == 1

    def test_changelist_and_change_page_load(self, admin_client, incidents):
        assert admin_client.get("/admin/incidents/incident/").status_code == 200
        response = admin_client.get(f"/admin/incidents/incident/{incidents[0].pk}/change/")
        assert response.status_code == 200

    def test_acknowledge_selected(self, admin_client, incidents):
        response = admin_client.post(
            "/admin/incidents/incident/",
            {"action": "acknowledge_selected", "_selected_action": [i.pk for i in incidents]},
        )
        assert response.status_code == 302

        for incident in incidents:
            incident.refresh_from_db()
            assert incident.state == IncidentState.ACKED
            assert incident.timeline[-1]["actor"] == "admin:admin"

    def test_resolve_selected_skips_resolved(self, admin_client, incidents):
        IncidentStateMachine().resolve(incidents[0].incident_id, actor="alice")

        admin_client.post(
            "/admin/incidents/incident/",
            {"action": "resolve_selected", "_selected_action": [i.pk for i in incidents]},
        )

        incidents[0].refresh_from_db()
        incidents[1].refresh_from_db()
        assert incidents[0].timeline[-1]["actor"] == "alice"
        assert incidents[1].state == IncidentState.RESOLVED

    def test_resolve_change_action(self, admin_client, incidents):
        incident = incidents[0]
        response = admin_client.post(
            f"/admin/incidents/incident/{incident.pk}/actions/resolve_incident/"
        )
        assert response.status_code == 302

        incident.refresh_from_db()
        assert incident.state == IncidentState.RESOLVED

    def test_add_is_disabled(self, admin_client, incidents):
        assert admin_client.get("/admin/incidents/incident/add/").status_code == 403
