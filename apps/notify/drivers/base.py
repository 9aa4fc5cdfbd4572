"""Base driver and data structures for push delivery.

Drivers deliver one notification to one registered device and report the
outcome in a normalized form the dispatcher can classify.

Public API:
- PushNotification
- DeliveryResult
- BasePushDriver
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

INTERRUPTION_LEVELS = ("passive", "active", "time-sensitive", "critical")

# Terminal errors reported without contacting the gateway.
NON_IOS_DEVICE = "Non-iOS device"
APNS_NOT_CONFIGURED = "APNs not configured"


@dataclass
class PushNotification:
    """Standardized push notification that all drivers handle."""

    # Required fields
    title: str
    body: str

    # Optional fields with defaults
    sound: str | None = None
    interruption_level: str = "active"
    badge: int | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and normalize fields after initialization."""
        self.interruption_level = (self.interruption_level or "").lower()
        if self.interruption_level not in INTERRUPTION_LEVELS:
            self.interruption_level = "active"


@dataclass
class DeliveryResult:
    """Outcome of delivering one notification to one device."""

    success: bool
    error: str | None = None
    status_code: int | None = None
    retryable: bool = False

    @classmethod
    def ok(cls, status_code: int | None = 200) -> "DeliveryResult":
        return cls(success=True, status_code=status_code)

    @classmethod
    def failure(
        cls, error: str, retryable: bool = False, status_code: int | None = None
    ) -> "DeliveryResult":
        return cls(success=False, error=error, retryable=retryable, status_code=status_code)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            data["error"] = self.error
        if self.status_code is not None:
            data["status_code"] = self.status_code
        if not self.success:
            data["retryable"] = self.retryable
        return data


class BasePushDriver(ABC):
    """Abstract base class for push delivery drivers."""

    name: str = "base"

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the driver has the credentials it needs."""

    @abstractmethod
    def deliver(self, device, notification: PushNotification) -> DeliveryResult:
        """Deliver a notification to a single device.

        Args:
            device: A registered device (apps.devices.models.Device or compatible)
            notification: The notification to deliver

        Returns:
            DeliveryResult. Drivers never raise for delivery failures; transport
            errors are reported as retryable failures.
        """

    def close(self) -> None:
        """Release connections held by the driver."""

    def _handle_transport_error(self, e: Exception, service_name: str) -> DeliveryResult:
        """Handle connection-level errors consistently across drivers."""
        message = str(e) or type(e).__name__
        logger.error(f"{service_name} transport error: {message}")
        return DeliveryResult.failure(message, retryable=True)
