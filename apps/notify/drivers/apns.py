"""Apple Push Notification service driver.

Token-based authentication: every request carries an ES256 JWT signed with
the team's APNs key. Requests go over HTTP/2 to the production or sandbox
gateway depending on the device registration.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any

import httpx
import jwt
from django.conf import settings

from apps.notify.credentials import ApnsCredentialCache, ApnsCredentials, get_credential_cache
from apps.notify.drivers.base import (
    APNS_NOT_CONFIGURED,
    NON_IOS_DEVICE,
    BasePushDriver,
    DeliveryResult,
    PushNotification,
)

logger = logging.getLogger(__name__)

PRODUCTION_HOST = "api.push.apple.com"
SANDBOX_HOST = "api.sandbox.push.apple.com"


class ApnsPushDriver(BasePushDriver):
    """
    Driver for delivering alert pushes through APNs.

    Args:
        credentials: Credential cache; the process-wide cache when omitted.
        timeout: Request timeout in seconds (settings.APNS_TIMEOUT by default).
        transport: Optional httpx transport, used by tests to stub the gateway.
    """

    name = "apns"

    def __init__(
        self,
        credentials: ApnsCredentialCache | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.credentials = credentials or get_credential_cache()
        self.timeout = timeout if timeout is not None else getattr(settings, "APNS_TIMEOUT", 10)
        self._transport = transport
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def is_configured(self) -> bool:
        return self.credentials.get() is not None

    def deliver(self, device, notification: PushNotification) -> DeliveryResult:
        if device.platform != "ios":
            return DeliveryResult.failure(NON_IOS_DEVICE)

        creds = self.credentials.get()
        if creds is None:
            return DeliveryResult.failure(APNS_NOT_CONFIGURED)

        try:
            token = self.make_token(creds)
        except (jwt.PyJWTError, ValueError) as e:
            logger.error(f"[APNs] Failed to sign provider token: {e}")
            return DeliveryResult.failure(f"Failed to sign APNs token: {e}")

        host = SANDBOX_HOST if device.sandbox else PRODUCTION_HOST
        url = f"https://{host}/3/device/{device.device_token}"
        headers = {
            "authorization": f"bearer {token}",
            "apns-topic": creds.bundle_id,
            "apns-push-type": "alert",
            "apns-priority": "10" if notification.interruption_level == "critical" else "5",
            "content-type": "application/json",
        }
        body = json.dumps(self.build_payload(notification))

        try:
            response = self._get_client().post(url, headers=headers, content=body)
        except httpx.HTTPError as e:
            return self._handle_transport_error(e, "APNs")

        result = self.classify_response(response.status_code, response.text)
        if result.success:
            logger.info(f"[APNs] Delivered to …{device.device_token[-8:]} via {host}")
        else:
            logger.warning(
                f"[APNs] Rejected …{device.device_token[-8:]}: "
                f"{response.status_code} {result.error}"
            )
        return result

    @staticmethod
    def make_token(creds: ApnsCredentials) -> str:
        """Sign a provider authentication token with a fresh issued-at."""
        return jwt.encode(
            {"iss": creds.team_id, "iat": int(time.time())},
            creds.key,
            algorithm="ES256",
            headers={"kid": creds.key_id},
        )

    @staticmethod
    def build_payload(notification: PushNotification) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "aps": {
                "alert": {"title": notification.title, "body": notification.body},
                "sound": notification.sound or "default",
                "interruption-level": notification.interruption_level or "active",
                "badge": notification.badge if notification.badge is not None else 0,
            },
        }
        payload.update(notification.data or {})
        return payload

    @staticmethod
    def classify_response(status_code: int, text: str) -> DeliveryResult:
        """Turn a gateway response into a DeliveryResult.

        APNs reports rejections as {"reason": "BadDeviceToken"}; anything that
        is not JSON is passed through verbatim.
        """
        if status_code == 200:
            return DeliveryResult.ok(status_code)

        try:
            data = json.loads(text)
        except ValueError:
            error = text or f"HTTP {status_code}"
        else:
            reason = data.get("reason") if isinstance(data, dict) else None
            error = reason or "Unknown error"

        retryable = status_code == 429 or status_code >= 500
        return DeliveryResult.failure(error, retryable=retryable, status_code=status_code)

    def _get_client(self) -> httpx.Client:
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(
                    http2=True,
                    timeout=self.timeout,
                    transport=self._transport,
                )
            return self._client
