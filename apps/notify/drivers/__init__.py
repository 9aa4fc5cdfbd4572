"""
Push delivery drivers.
"""

from apps.notify.drivers.apns import ApnsPushDriver
from apps.notify.drivers.base import (
    APNS_NOT_CONFIGURED,
    NON_IOS_DEVICE,
    BasePushDriver,
    DeliveryResult,
    PushNotification,
)

__all__ = [
    "APNS_NOT_CONFIGURED",
    "NON_IOS_DEVICE",
    "ApnsPushDriver",
    "BasePushDriver",
    "DeliveryResult",
    "PushNotification",
    "DRIVER_REGISTRY",
    "get_driver",
]

# Registry of available push drivers
DRIVER_REGISTRY: dict[str, type[BasePushDriver]] = {
    "apns": ApnsPushDriver,
}


def get_driver(name: str = "apns", **kwargs) -> BasePushDriver:
    """Instantiate a push driver by name.

    Raises:
        ValueError: If the driver is not registered.
    """
    if name not in DRIVER_REGISTRY:
        raise ValueError(f"Unknown push driver: {name}. Available: {list(DRIVER_REGISTRY)}")
    return DRIVER_REGISTRY[name](**kwargs)
