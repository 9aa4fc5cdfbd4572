"""
CloudWatch alarm driver.

Handles CloudWatch alarm state changes published through SNS.
See: https://docs.aws.amazon.com/AmazonCloudWatch/latest/monitoring/AlarmThatSendsEmail.html
"""

import json
import logging
from typing import Any

from django.utils.dateparse import parse_datetime

from apps.incidents.drivers.base import AlarmEvent, BaseAlarmDriver, ParsedBatch

logger = logging.getLogger(__name__)


class CloudWatchDriver(BaseAlarmDriver):
    """
    Driver for CloudWatch alarm notifications.

    Accepts three shapes:

    Lambda-style SNS event (several records per delivery):
    {
        "Records": [
            {"Sns": {"Message": "{\"AlarmName\": ...}", "Subject": "..."}}
        ]
    }

    SNS HTTP(S) subscription notification:
    {
        "Type": "Notification",
        "TopicArn": "...",
        "Message": "{\"AlarmName\": ...}"
    }

    Bare alarm message:
    {
        "AlarmName": "API-Latency-Critical",
        "AlarmArn": "arn:aws:cloudwatch:eu-west-1:123456789012:alarm:API-Latency-Critical",
        "NewStateValue": "ALARM",
        "NewStateReason": "Threshold Crossed: ...",
        "StateChangeTime": "2024-01-08T10:00:00.000+0000",
        "Region": "EU (Ireland)",
        "AWSAccountId": "123456789012"
    }
    """

    name = "cloudwatch"

    def validate(self, payload: dict[str, Any]) -> bool:
        """Check if this looks like a CloudWatch/SNS payload."""
        if not isinstance(payload, dict):
            return False
        if isinstance(payload.get("Records"), list):
            return any(isinstance(r, dict) and "Sns" in r for r in payload["Records"])
        if payload.get("Type") == "Notification" and "Message" in payload:
            return True
        return "AlarmName" in payload and "NewStateValue" in payload

    def parse(self, payload: dict[str, Any]) -> ParsedBatch:
        """Parse a CloudWatch/SNS payload into alarm events."""
        if not self.validate(payload):
            raise ValueError("Invalid CloudWatch alarm payload")

        batch = ParsedBatch(events=[], source=self.name, raw_payload=payload)

        for index, message in enumerate(self._iter_messages(payload)):
            try:
                batch.events.append(self._parse_message(message))
            except (ValueError, TypeError) as e:
                logger.warning(f"Skipping unparseable alarm record {index}: {e}")
                batch.errors.append(f"Record {index}: {e}")

        return batch

    def _iter_messages(self, payload: dict[str, Any]):
        """Yield the alarm message of each record, still possibly JSON-encoded."""
        if isinstance(payload.get("Records"), list):
            for record in payload["Records"]:
                sns = record.get("Sns") if isinstance(record, dict) else None
                yield (sns or {}).get("Message")
        elif payload.get("Type") == "Notification":
            yield payload.get("Message")
        else:
            yield payload

    def _parse_message(self, message: Any) -> AlarmEvent:
        """Parse a single CloudWatch alarm message."""
        if isinstance(message, str):
            try:
                message = json.loads(message)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid alarm message JSON: {e}") from e

        if not isinstance(message, dict):
            raise ValueError("Alarm message must be a JSON object")
        if not message.get("AlarmName"):
            raise ValueError("Alarm message is missing AlarmName")

        raw_time = message.get("StateChangeTime") or ""
        return AlarmEvent(
            alarm_name=message["AlarmName"],
            alarm_arn=message.get("AlarmArn", ""),
            new_state_value=message.get("NewStateValue", ""),
            reason=message.get("NewStateReason", ""),
            account_id=message.get("AWSAccountId", ""),
            region=message.get("Region", ""),
            state_change_time=parse_datetime(raw_time) if raw_time else None,
            state_change_time_raw=raw_time,
            raw_payload=message,
        )
