"""
Routing services: which team owns an alarm, and who is on call for it.

Both resolvers return None on a miss instead of raising; the ingestion
pipeline treats a miss as "drop the event and log it".
"""

import logging
from datetime import datetime

from django.utils import timezone

from apps.teams.models import ScheduleSlot, Team

logger = logging.getLogger(__name__)


class TeamResolver:
    """
    Resolve the owning team for an external account id.

    Teams store their account ids as a JSON list, so the lookup is a full scan
    over teams. When more than one team claims the same account id, the oldest
    team (created_at, then primary key) wins.
    """

    @staticmethod
    def resolve_team_by_account(account_id: str) -> Team | None:
        if not account_id:
            return None

        matches = [
            team
            for team in Team.objects.order_by("created_at", "pk")
            if team.owns_account(account_id)
        ]
        if not matches:
            return None

        if len(matches) > 1:
            logger.warning(
                f"Account {account_id} is claimed by {len(matches)} teams; "
                f"routing to oldest team {matches[0].team_id}"
            )
        return matches[0]


class OnCallResolver:
    """
    Resolve the responder on call for a team at a point in time.

    A slot matches when start <= at_time < end. Overlapping slots are allowed;
    the slot that started most recently wins (then the newest slot row).
    """

    @staticmethod
    def resolve_on_call(team_id: str, at_time: datetime | None = None) -> str | None:
        at_time = at_time or timezone.now()

        slot = (
            ScheduleSlot.objects.filter(
                team__team_id=team_id,
                start__lte=at_time,
                end__gt=at_time,
            )
            .order_by("-start", "-pk")
            .first()
        )
        return slot.user_id if slot else None


def resolve_team_by_account(account_id: str) -> Team | None:
    """Module-level shortcut for TeamResolver.resolve_team_by_account."""
    return TeamResolver.resolve_team_by_account(account_id)


def resolve_on_call(team_id: str, at_time: datetime | None = None) -> str | None:
    """Module-level shortcut for OnCallResolver.resolve_on_call."""
    return OnCallResolver.resolve_on_call(team_id, at_time)
