"""
Device registration boundary.

Register and unregister push tokens for a user, and send a test push to
one of the user's devices.
"""

from __future__ import annotations

import logging

from apps.devices.models import Device, DevicePlatform
from apps.notify.drivers import DeliveryResult, PushNotification

logger = logging.getLogger(__name__)

TEST_PUSH_TITLE = "🔔 Pip-Alert Test"
TEST_PUSH_BODY = "Push notifications are working!"


class DeviceNotFound(Exception):
    """The user has no device registered under the given token."""


def build_test_notification() -> PushNotification:
    return PushNotification(
        title=TEST_PUSH_TITLE,
        body=TEST_PUSH_BODY,
        sound="default",
        interruption_level="active",
    )


class DeviceRegistry:
    """Service for a user's push device registrations."""

    @staticmethod
    def register(
        user_id: str, token: str, platform: str, sandbox: bool = False
    ) -> tuple[Device, bool]:
        """Register (or re-register) a device token.

        Re-registering an existing token updates its platform and sandbox
        flag in place.

        Raises:
            ValueError: If the platform is unknown.
        """
        platform = (platform or "").lower()
        if platform not in DevicePlatform.values:
            raise ValueError(f"Invalid platform: {platform}")

        device, created = Device.objects.update_or_create(
            user_id=user_id,
            device_token=token,
            defaults={"platform": platform, "sandbox": bool(sandbox)},
        )
        logger.info(
            f"{'Registered' if created else 'Updated'} {platform} device for {user_id} "
            f"(sandbox={device.sandbox})"
        )
        return device, created

    @staticmethod
    def unregister(user_id: str, token: str) -> int:
        """Remove a device token. Unknown tokens are not an error."""
        deleted, _ = Device.objects.filter(user_id=user_id, device_token=token).delete()
        if deleted:
            logger.info(f"Unregistered device for {user_id}")
        return deleted

    @staticmethod
    def devices_for_user(user_id: str):
        return Device.objects.filter(user_id=user_id)

    @staticmethod
    def send_test(user_id: str, token: str, dispatcher=None) -> DeliveryResult:
        """Send the test push to one of the user's devices.

        Raises:
            DeviceNotFound: If the user has no device with this token.
        """
        from apps.notify.services import NotificationDispatcher

        device = Device.objects.filter(user_id=user_id, device_token=token).first()
        if device is None:
            raise DeviceNotFound(token)

        if dispatcher is None:
            with NotificationDispatcher() as owned:
                result = owned.deliver(device, build_test_notification())
        else:
            result = dispatcher.deliver(device, build_test_notification())
        if not result.success:
            logger.warning(f"Test push to {user_id} failed: {result.error}")
        return result
