"""Shared builders for incident tests."""

import json
from datetime import timedelta

from django.utils import timezone

from apps.teams.models import ScheduleSlot, Team

ACCOUNT_ID = "123456789012"


def make_team(team_id="fault-tec-admins", account_id=ACCOUNT_ID, on_call="alice"):
    """Create a team owning account_id, with on_call on call for the next hour."""
    team = Team.objects.create(team_id=team_id, name="Fault-Tec Admins", account_ids=[account_id])
    if on_call:
        now = timezone.now()
        ScheduleSlot.objects.create(
            team=team,
            slot_id=f"{team_id}-slot",
            user_id=on_call,
            start=now - timedelta(hours=1),
            end=now + timedelta(hours=1),
        )
    return team


def alarm_message(
    name="API-Latency-Critical",
    account_id=ACCOUNT_ID,
    state="ALARM",
    changed_at="2024-01-08T10:00:00.000+0000",
):
    return {
        "AlarmName": name,
        "AlarmArn": f"arn:aws:cloudwatch:eu-west-1:{account_id}:alarm:{name}",
        "NewStateValue": state,
        "NewStateReason": "Threshold Crossed: 1 datapoint [2500.0] was greater than 1000.0",
        "StateChangeTime": changed_at,
        "Region": "eu-west-1",
        "AWSAccountId": account_id,
    }


def sns_event(*messages):
    return {
        "Records": [
            {
                "EventSource": "aws:sns",
                "Sns": {"Subject": f"ALARM: {m['AlarmName']}", "Message": json.dumps(m)},
            }
            for m in messages
        ]
    }
