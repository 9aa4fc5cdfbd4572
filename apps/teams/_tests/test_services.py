from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from apps.teams.models import ScheduleSlot, Team
from apps.teams.services import resolve_on_call, resolve_team_by_account


class ResolveTeamByAccountTests(TestCase):
    def test_returns_owning_team(self):
        Team.objects.create(team_id="dev", name="Dev", account_ids=["999"])
        ops = Team.objects.create(team_id="ops", name="Ops", account_ids=["111", "222"])

        self.assertEqual(resolve_team_by_account("222"), ops)

    def test_miss_returns_none(self):
        Team.objects.create(team_id="ops", name="Ops", account_ids=["111"])

        self.assertIsNone(resolve_team_by_account("404"))
        self.assertIsNone(resolve_team_by_account(""))

    def test_oldest_team_wins_when_account_is_shared(self):
        now = timezone.now()
        newer = Team.objects.create(
            team_id="newer", name="Newer", account_ids=["111"], created_at=now
        )
        older = Team.objects.create(
            team_id="older",
            name="Older",
            account_ids=["111"],
            created_at=now - timedelta(days=1),
        )

        with self.assertLogs("apps.teams.services", level="WARNING"):
            self.assertEqual(resolve_team_by_account("111"), older)
        self.assertNotEqual(older, newer)


class ResolveOnCallTests(TestCase):
    def setUp(self):
        self.team = Team.objects.create(team_id="ops", name="Ops", account_ids=["111"])
        self.now = timezone.now()

    def _slot(self, slot_id, user_id, start, end):
        return ScheduleSlot.objects.create(
            team=self.team, slot_id=slot_id, user_id=user_id, start=start, end=end
        )

    def test_returns_user_whose_slot_covers_time(self):
        self._slot("past", "bob", self.now - timedelta(hours=5), self.now - timedelta(hours=1))
        self._slot("now", "alice", self.now - timedelta(hours=1), self.now + timedelta(hours=1))

        self.assertEqual(resolve_on_call("ops", self.now), "alice")

    def test_slot_end_is_exclusive(self):
        self._slot("s1", "alice", self.now - timedelta(hours=1), self.now)

        self.assertIsNone(resolve_on_call("ops", self.now))

    def test_miss_returns_none(self):
        self.assertIsNone(resolve_on_call("ops", self.now))
        self.assertIsNone(resolve_on_call("unknown-team", self.now))

    def test_latest_started_slot_wins_on_overlap(self):
        self._slot("long", "alice", self.now - timedelta(hours=8), self.now + timedelta(hours=8))
        self._slot("cover", "bob", self.now - timedelta(minutes=30), self.now + timedelta(hours=1))

        self.assertEqual(resolve_on_call("ops", self.now), "bob")

    def test_defaults_to_current_time(self):
        self._slot("s1", "alice", self.now - timedelta(hours=1), self.now + timedelta(hours=1))

        self.assertEqual(resolve_on_call("ops"), "alice")
