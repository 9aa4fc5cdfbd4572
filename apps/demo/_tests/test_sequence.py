import random

from django.test import SimpleTestCase

from apps.demo._tests.helpers import MemoryBoard, advance, make_scheduler
from apps.demo.data import generate_demo_incident
from apps.demo.sequence import DemoSequence


class DemoSequenceTestCase(SimpleTestCase):
    def setUp(self):
        self.scheduler, self.clock = make_scheduler()
        self.board = MemoryBoard(self.clock)
        self.sequence = DemoSequence(
            self.board.callbacks(),
            scheduler=self.scheduler,
            rng=random.Random(7),
            now_ms=self.board.now_ms,
        )

    def play(self, seconds, player=None):
        """Advance the game, letting the player act after every step."""
        target = self.clock.now + seconds
        while self.clock.now < target:
            self.clock.now = min(target, self.clock.now + 0.05)
            self.scheduler.run_pending()
            if player:
                player()


class DemoSequenceLifecycleTests(DemoSequenceTestCase):
    def test_start_raises_first_incident_immediately(self):
        self.assertTrue(self.sequence.start())

        self.assertEqual(len(self.board.incidents), 1)
        self.assertEqual(self.board.incidents[0]["severity"], "warning")
        self.assertEqual(self.board.incidents[0]["state"], "triggered")

    def test_start_twice_is_noop(self):
        self.sequence.start()

        self.assertFalse(self.sequence.start())
        self.assertEqual(len(self.board.incidents), 1)

    def test_alert_follows_add(self):
        self.sequence.start()

        self.clock.now = 0.04
        self.scheduler.run_pending()
        self.assertEqual(self.board.alerts, [])

        self.clock.now = 0.05
        self.scheduler.run_pending()
        self.assertEqual([severity for _, severity in self.board.alerts], ["warning"])

    def test_opening_waves(self):
        self.sequence.start()

        advance(self.scheduler, self.clock, 5.6)

        severities = [i["severity"] for i in self.board.incidents]
        self.assertGreaterEqual(len(severities), 6)
        self.assertEqual(severities[:3], ["warning"] * 3)
        self.assertEqual(severities.count("critical") >= 3, True)

    def test_stop_cancels_everything(self):
        self.sequence.start()
        self.sequence.stop()

        advance(self.scheduler, self.clock, 70, step=0.5)

        self.assertEqual(len(self.board.incidents), 1)
        self.assertEqual(self.board.alerts, [])
        self.assertEqual(self.board.completions, 0)
        self.assertEqual(self.scheduler.pending, 0)

    def test_can_restart_after_stop(self):
        self.sequence.start()
        self.sequence.stop()

        self.assertTrue(self.sequence.start())
        self.assertEqual(self.sequence.incident_count, 1)


class DemoSequenceOutcomeTests(DemoSequenceTestCase):
    def ignore_teammates(self):
        self.sequence.callbacks.ack_incident = lambda incident_id, actor: None

    def test_timeout(self):
        self.ignore_teammates()
        self.sequence.start()

        self.play(60)

        self.assertEqual(self.sequence.outcome, "timeout")
        self.assertEqual(self.board.completions, 1)
        self.assertFalse(self.sequence.running)
        self.assertEqual(self.scheduler.pending, 0)

        self.play(10)
        self.assertEqual(self.board.completions, 1)

    def test_win_when_everything_is_resolved(self):
        self.sequence.start()

        self.play(20, player=self.board.resolve_all)

        self.assertEqual(self.sequence.outcome, "won")
        self.assertGreaterEqual(self.sequence.incident_count, 8)
        self.assertEqual(self.board.completions, 1)
        self.assertEqual(self.scheduler.pending, 0)

        self.play(50)
        self.assertEqual(self.board.completions, 1)

    def test_no_win_below_minimum(self):
        self.sequence.start()
        self.board.resolve_all()

        self.assertFalse(self.sequence.check_win())

    def test_acked_incidents_block_win(self):
        self.sequence.start()
        self.sequence.incident_count = 8
        self.board.ack_all()

        self.assertFalse(self.sequence.check_win())

        self.board.resolve_all()
        self.assertTrue(self.sequence.check_win())

    def test_run_blocks_until_done(self):
        self.ignore_teammates()
        outcome = self.sequence.run()

        self.assertEqual(outcome, "timeout")
        self.assertGreaterEqual(self.clock.now, 60.0)
        self.assertEqual(self.board.completions, 1)


class DemoSequenceActionTests(DemoSequenceTestCase):
    def setUp(self):
        super().setUp()
        self.sequence.start()

    def test_board_is_capped(self):
        for index in range(9):
            self.board.add_incident(generate_demo_incident("info", index))

        self.assertIsNone(self.sequence.add_and_track("critical"))
        self.assertEqual(len(self.board.incidents), 10)

    def test_dropped_incident_is_not_counted(self):
        self.board.rejecting = True
        alerts_pending = self.scheduler.pending

        self.assertIsNone(self.sequence.add_and_track("critical"))
        self.assertEqual(self.sequence.incident_count, 1)
        self.assertEqual(self.scheduler.pending, alerts_pending)

    def test_teammate_ack_picks_among_oldest_triggered(self):
        for index in range(5):
            self.board.add_incident(generate_demo_incident("warning", index))
        oldest = [i["incident_id"] for i in self.board.incidents[:3]]

        self.assertTrue(self.sequence.teammate_ack())

        acked_id, actor = self.board.acks[0]
        self.assertIn(acked_id, oldest)
        self.assertTrue(actor)

    def test_teammate_ack_without_triggered(self):
        self.board.ack_all()

        self.assertFalse(self.sequence.teammate_ack())

    def test_auto_resolve_oldest_acked(self):
        self.board.add_incident(generate_demo_incident("warning", 1))
        first, second = self.board.incidents
        self.clock.now = 1.0
        self.board.ack_incident(second["incident_id"], "player")
        self.clock.now = 2.0
        self.board.ack_incident(first["incident_id"], "player")

        self.assertTrue(self.sequence.auto_resolve())
        self.assertEqual(self.board.resolved, [second["incident_id"]])

    def test_auto_resolve_without_acked(self):
        self.assertFalse(self.sequence.auto_resolve())

    def test_actions_are_inert_once_stopped(self):
        self.sequence.stop()

        self.assertIsNone(self.sequence.add_and_track("critical"))
        self.assertFalse(self.sequence.teammate_ack())
        self.assertFalse(self.sequence.auto_resolve())
