import pytest

from apps.incidents._tests.helpers import alarm_message, make_team
from apps.incidents.services import AlarmIngestionPipeline
from apps.notify.models import DeliveryStatus, NotificationDelivery


@pytest.fixture
def delivery(db):
    make_team()
    result = AlarmIngestionPipeline().process_payload(alarm_message())
    return NotificationDelivery.objects.create(
        incident_id=result.incident_ids[0],
        device_token="phone-token-0001",
        user_id="alice",
        status=DeliveryStatus.FAILED,
        error="BadDeviceToken",
        status_code=400,
        attempts=1,
    )


@pytest.mark.django_db
class TestNotificationDeliveryAdmin:
    def test_changelist_shows_status(self, admin_client, delivery):
        response = admin_client.get("/admin/notify/notificationdelivery/")
        assert response.status_code == 200
        assert b"FAILED" in response.content
        assert "…ken-0001" in response.content.decode()

    def test_change_page_loads(self, admin_client, delivery):
        response = admin_client.get(f"/admin/notify/notificationdelivery/{delivery.pk}/change/")
        assert response.status_code == 200

    def test_add_is_disabled(self, admin_client):
        assert admin_client.get("/admin/notify/notificationdelivery/add/").status_code == 403
