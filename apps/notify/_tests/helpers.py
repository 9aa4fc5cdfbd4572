"""Shared builders for push delivery tests."""

from types import SimpleNamespace

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apps.notify.credentials import ApnsCredentialCache
from apps.notify.drivers import BasePushDriver, DeliveryResult

_KEY = ec.generate_private_key(ec.SECP256R1())

PRIVATE_KEY_PEM = _KEY.private_bytes(
    serialization.Encoding.PEM,
    serialization.PrivateFormat.PKCS8,
    serialization.NoEncryption(),
).decode()

PUBLIC_KEY = _KEY.public_key()

SECRET = {
    "key": PRIVATE_KEY_PEM,
    "keyId": "ABC123DEFG",
    "teamId": "TEAM123456",
    "bundleId": "com.example.pipalert",
}


def credential_cache(secret=None):
    return ApnsCredentialCache(loader=lambda: dict(secret or SECRET))


def device(token="a1b2c3d4e5f60718", platform="ios", sandbox=False, user_id="alice"):
    return SimpleNamespace(
        device_token=token, platform=platform, sandbox=sandbox, user_id=user_id
    )


class RecordingDriver(BasePushDriver):
    """Push driver returning canned results per token."""

    name = "recording"

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []
        self.closed = 0

    def is_configured(self):
        return True

    def deliver(self, device, notification):
        self.calls.append((device.device_token, notification))
        return self.results.get(device.device_token, DeliveryResult.ok())

    def close(self):
        self.closed += 1
