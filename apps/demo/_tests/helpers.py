"""Fake clock and in-memory board for driving the demo game in tests."""

from apps.demo.scheduler import CooperativeScheduler
from apps.demo.sequence import DemoCallbacks


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def make_scheduler(clock=None):
    clock = clock or FakeClock()
    return CooperativeScheduler(clock=clock, sleep=clock.sleep), clock


def advance(scheduler, clock, seconds, step=0.05):
    """Move the fake clock forward in small steps, running due tasks."""
    target = clock.now + seconds
    while clock.now < target:
        clock.now = min(target, clock.now + step)
        scheduler.run_pending()


class MemoryBoard:
    """In-memory incident list recording every callback."""

    def __init__(self, clock):
        self.clock = clock
        self.incidents = []
        self.alerts = []
        self.acks = []
        self.resolved = []
        self.completions = 0
        self.rejecting = False

    def now_ms(self):
        return int(self.clock.now * 1000)

    def add_incident(self, incident):
        if self.rejecting:
            return False
        self.incidents.append(dict(incident))
        return True

    def ack_incident(self, incident_id, actor):
        for incident in self.incidents:
            if incident["incident_id"] == incident_id and incident["state"] == "triggered":
                incident["state"] = "acked"
                incident["acked_at"] = self.now_ms()
                self.acks.append((incident_id, actor))

    def resolve_incident(self, incident_id):
        for incident in self.incidents:
            if incident["incident_id"] == incident_id:
                incident["state"] = "resolved"
                self.resolved.append(incident_id)

    def play_alert(self, severity):
        self.alerts.append((self.clock.now, severity))

    def on_complete(self):
        self.completions += 1

    def get_incidents(self):
        return list(self.incidents)

    def ack_all(self, actor="player"):
        for incident in self.incidents:
            if incident["state"] == "triggered":
                self.ack_incident(incident["incident_id"], actor)

    def resolve_all(self):
        for incident in self.incidents:
            if incident["state"] != "resolved":
                self.resolve_incident(incident["incident_id"])

    def callbacks(self):
        return DemoCallbacks(
            add_incident=self.add_incident,
            ack_incident=self.ack_incident,
            resolve_incident=self.resolve_incident,
            play_alert=self.play_alert,
            on_complete=self.on_complete,
            get_incidents=self.get_incidents,
        )
