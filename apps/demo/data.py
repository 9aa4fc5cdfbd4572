"""Fixture data for the demo environment and the demo game."""

from __future__ import annotations

import random
import uuid
from typing import Any

DEFAULT_TEAM_ID = "fault-tec-admins"
DEFAULT_TEAM_NAME = "Fault-Tec Admins"
DEFAULT_AWS_ACCOUNT = "123456789012"
DEMO_REGION = "eu-west-1"

DEFAULT_ESCALATION_POLICY = {
    "levels": [
        {"delay_minutes": 5, "target": "on_call"},
        {"delay_minutes": 15, "target": "all_team"},
    ],
}

# Published by DemoEnvironment.start, in this order.
DEMO_ALARMS = [
    "CPU-Utilization-Critical",
    "Memory-Pressure-Warning",
    "DiskSpace-Low-Warning",
    "API-Latency-Critical",
    "DB-Connections-Critical",
    "Lambda-Errors-Warning",
    "Network-Saturation-Info",
    "Cache-Hit-Rate-Warning",
]

GAME_ALARMS = {
    "critical": [
        "API-Latency-Critical",
        "DB-Connections-Critical",
        "CPU-Utilization-Critical",
        "Payment-Gateway-Error",
        "Auth-Service-Error",
    ],
    "warning": [
        "Memory-Pressure-Warning",
        "DiskSpace-Low-Warning",
        "Lambda-Errors-Warning",
        "Cache-Hit-Rate-Warning",
        "Queue-Depth-Warn",
    ],
    "info": [
        "Network-Saturation-Info",
        "Deploy-Completed-Info",
        "Scaling-Event-Info",
    ],
}

TEAMMATES = ["Dogmeat", "Nick Valentine", "Piper Wright", "Preston Garvey", "Cait"]


def alarm_arn(name: str, account_id: str) -> str:
    return f"arn:aws:cloudwatch:{DEMO_REGION}:{account_id}:alarm:{name}"


def generate_demo_incident(
    severity: str, index: int, rng: random.Random | None = None
) -> dict[str, Any]:
    """Build an in-memory triggered incident for the demo game.

    The alarm name carries an index suffix so repeated picks stay distinct.
    """
    names = GAME_ALARMS.get(severity) or GAME_ALARMS["info"]
    name = (rng or random).choice(names)
    return {
        "incident_id": str(uuid.uuid4()),
        "alarm_name": f"{name}-{index + 1}",
        "severity": severity,
        "state": "triggered",
        "acked_at": None,
    }


def random_teammate(rng: random.Random | None = None) -> str:
    return (rng or random).choice(TEAMMATES)
