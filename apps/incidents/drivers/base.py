"""Base driver and data structures for alarm ingestion.

Drivers normalize inbound alarm deliveries (SNS envelopes, bare alarm
messages, ...) into a common internal format.

Public API:
- AlarmEvent
- ParsedBatch
- BaseAlarmDriver
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

ALARM_STATES = ("ALARM", "OK", "INSUFFICIENT_DATA")


@dataclass
class AlarmEvent:
    """Standardized alarm state change that all drivers produce."""

    # Required fields
    alarm_name: str
    new_state_value: str  # "ALARM", "OK" or "INSUFFICIENT_DATA"
    account_id: str

    # Optional fields with defaults
    alarm_arn: str = ""
    reason: str = ""
    region: str = ""
    state_change_time: datetime | None = None
    state_change_time_raw: str = ""
    raw_payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and normalize fields after initialization."""
        self.new_state_value = (self.new_state_value or "").upper()
        self.account_id = str(self.account_id or "")

    @property
    def is_alarm(self) -> bool:
        return self.new_state_value == "ALARM"

    def idempotency_key(self) -> str | None:
        """Stable key for one alarm transition, used to drop redelivered events.

        Returns None when the event lacks the identity needed to build a key.
        """
        if not self.alarm_arn or not self.state_change_time_raw:
            return None
        raw = f"{self.alarm_arn}:{self.state_change_time_raw}"
        return hashlib.sha256(raw.encode()).hexdigest()[:32]


@dataclass
class ParsedBatch:
    """Result of parsing an inbound delivery that may carry several alarms."""

    events: list[AlarmEvent]
    source: str
    errors: list[str] = field(default_factory=list)
    raw_payload: dict[str, Any] = field(default_factory=dict)


class BaseAlarmDriver(ABC):
    """Abstract base class for alarm source drivers."""

    name: str = "base"

    @abstractmethod
    def validate(self, payload: dict[str, Any]) -> bool:
        """Validate that a payload is from this source and can be parsed."""

    @abstractmethod
    def parse(self, payload: dict[str, Any]) -> ParsedBatch:
        """Parse an inbound payload into a ParsedBatch.

        Records that cannot be parsed are reported in ParsedBatch.errors
        instead of aborting the whole batch.
        """
