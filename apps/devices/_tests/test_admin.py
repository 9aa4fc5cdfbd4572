from unittest.mock import patch

import pytest

from apps.devices.models import Device
from apps.notify._tests.helpers import RecordingDriver


@pytest.fixture
def device(db):
    return Device.objects.create(user_id="alice", device_token="phone-token-0001", platform="ios")


@pytest.mark.django_db
class TestDeviceAdmin:
    def test_changelist_loads(self, admin_client, device):
        response = admin_client.get("/admin/devices/device/")
        assert response.status_code == 200
        assert "…ken-0001" in response.content.decode()

    def test_send_test_push_action(self, admin_client, device):
        driver = RecordingDriver()

        with patch("apps.notify.services.get_driver", return_value=driver):
            response = admin_client.post(
                f"/admin/devices/device/{device.pk}/actions/send_test_push/"
            )

        assert response.status_code == 302
        assert driver.calls[0][0] == "phone-token-0001"
