from django.test import SimpleTestCase

from apps.demo._tests.helpers import advance, make_scheduler


class CooperativeSchedulerTests(SimpleTestCase):
    def setUp(self):
        self.scheduler, self.clock = make_scheduler()
        self.ran = []

    def test_runs_in_due_order(self):
        self.scheduler.call_later(2, lambda: self.ran.append("b"))
        self.scheduler.call_later(1, lambda: self.ran.append("a"))
        self.scheduler.call_later(2, lambda: self.ran.append("c"))

        advance(self.scheduler, self.clock, 3)

        self.assertEqual(self.ran, ["a", "b", "c"])

    def test_nothing_runs_before_due(self):
        self.scheduler.call_later(1, lambda: self.ran.append("a"))

        self.assertEqual(self.scheduler.run_pending(), 0)
        self.clock.now = 1.0
        self.assertEqual(self.scheduler.run_pending(), 1)

    def test_interval(self):
        self.scheduler.call_every(1, lambda: self.ran.append(self.clock.now))

        advance(self.scheduler, self.clock, 3.5, step=0.5)

        self.assertEqual(self.ran, [1.0, 2.0, 3.0])

    def test_interval_must_be_positive(self):
        with self.assertRaises(ValueError):
            self.scheduler.call_every(0, lambda: None)

    def test_cancel(self):
        task = self.scheduler.call_later(1, lambda: self.ran.append("a"))
        task.cancel()

        advance(self.scheduler, self.clock, 2)

        self.assertEqual(self.ran, [])
        self.assertIsNone(self.scheduler.next_due())

    def test_cancel_all_from_inside_a_task(self):
        self.scheduler.call_every(1, lambda: self.ran.append("tick"))
        self.scheduler.call_later(1.5, self.scheduler.cancel_all)

        advance(self.scheduler, self.clock, 5)

        self.assertEqual(self.ran, ["tick"])
        self.assertEqual(self.scheduler.pending, 0)

    def test_run_sleeps_until_drained(self):
        self.scheduler.call_later(5, lambda: self.ran.append("late"))

        self.scheduler.run()

        self.assertEqual(self.ran, ["late"])
        self.assertEqual(self.clock.now, 5.0)

    def test_run_until(self):
        self.scheduler.call_every(1, lambda: self.ran.append("tick"))

        self.scheduler.run(until=lambda: len(self.ran) >= 3)

        self.assertEqual(len(self.ran), 3)
