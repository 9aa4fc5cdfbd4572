"""
Alarm drivers for ingesting alarm state changes from monitoring sources.
"""

from apps.incidents.drivers.base import AlarmEvent, BaseAlarmDriver, ParsedBatch
from apps.incidents.drivers.cloudwatch import CloudWatchDriver

__all__ = [
    "AlarmEvent",
    "BaseAlarmDriver",
    "ParsedBatch",
    "CloudWatchDriver",
    "DRIVER_REGISTRY",
    "get_driver",
    "detect_driver",
]

# Registry of available drivers (order matters for detection)
DRIVER_REGISTRY: dict[str, type[BaseAlarmDriver]] = {
    "cloudwatch": CloudWatchDriver,
}


def get_driver(name: str) -> BaseAlarmDriver:
    """
    Get a driver instance by name.

    Raises:
        ValueError: If driver name is not found.
    """
    if name not in DRIVER_REGISTRY:
        raise ValueError(
            f"Unknown driver: {name}. Available: {', '.join(DRIVER_REGISTRY.keys())}"
        )
    return DRIVER_REGISTRY[name]()


def detect_driver(payload: dict) -> BaseAlarmDriver | None:
    """
    Auto-detect the appropriate driver for a payload.

    Tries each driver's validate() method in order and returns the first match,
    or None if no driver matches.
    """
    for driver_class in DRIVER_REGISTRY.values():
        driver = driver_class()
        if driver.validate(payload):
            return driver
    return None
