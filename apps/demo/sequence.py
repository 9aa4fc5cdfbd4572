"""
Demo game: an escalating wave of incidents the player must work through.

The sequence only decides *when* things happen; everything it does to
incidents goes through injected callbacks, so the same game can drive an
in-memory list or the real incident store (see apps.demo.services).

Timeline:
    0s          warning
    1.5s, 2.5s  warnings
    3.5s-5.5s   three criticals, one per second
    7s, 9s      a teammate acks a triggered incident
    11s         random add (40% critical)
    12s         auto-resolve the oldest acked incident
    14s         random add (30% critical)
    15s         teammate ack
    16s         auto-resolve
    every 3.5s  game loop: win check, then one weighted random action
    60s         time's up

The game ends when at least 8 incidents were raised and none is triggered or
acked (win), or at the 60s timeout. Either way every pending task is
cancelled before on_complete fires, exactly once.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable

from apps.demo.data import generate_demo_incident, random_teammate
from apps.demo.scheduler import CooperativeScheduler

logger = logging.getLogger(__name__)


@dataclass
class DemoCallbacks:
    """Hooks the sequence drives.

    add_incident returns True when the incident was raised; a dropped alarm
    (no team, no one on call) returns False and does not count towards the
    game. get_incidents returns dicts with at least incident_id, state and
    acked_at (epoch ms or None), oldest first.
    """

    add_incident: Callable[[dict[str, Any]], bool]
    ack_incident: Callable[[str, str], None]
    resolve_incident: Callable[[str], None]
    play_alert: Callable[[str], None]
    on_complete: Callable[[], None]
    get_incidents: Callable[[], list[dict[str, Any]]]


class DemoSequence:
    """Cooperative demo game driver."""

    MAX_INCIDENTS = 10
    WIN_MIN_INCIDENTS = 8
    MAX_TEAMMATE_ACKS = 5
    GAME_LOOP_INTERVAL = 3.5
    TIMEOUT = 60.0
    ALERT_DELAY = 0.05
    MIN_ACK_AGE_MS = 4000

    def __init__(
        self,
        callbacks: DemoCallbacks,
        scheduler: CooperativeScheduler | None = None,
        rng: random.Random | None = None,
        now_ms: Callable[[], int] | None = None,
    ):
        self.callbacks = callbacks
        self.scheduler = scheduler or CooperativeScheduler()
        self.rng = rng or random.Random()
        self.now_ms = now_ms or (lambda: int(time.time() * 1000))

        self.running = False
        self.completed = False
        self.outcome: str | None = None
        self.incident_count = 0
        self.teammate_ack_count = 0

    def start(self) -> bool:
        """Start the game. Returns False (and does nothing) if already running."""
        if self.running:
            logger.info("[Demo] Sequence already running")
            return False

        logger.info("[Demo] Starting demo game")
        self.running = True
        self.completed = False
        self.outcome = None
        self.incident_count = 0
        self.teammate_ack_count = 0

        later = self.scheduler.call_later

        # Initial wave
        self.add_and_track("warning")
        later(1.5, lambda: self.add_and_track("warning"), "warning")
        later(2.5, lambda: self.add_and_track("warning"), "warning")

        # Critical wave
        later(3.5, lambda: self.add_and_track("critical"), "critical")
        later(4.5, lambda: self.add_and_track("critical"), "critical")
        later(5.5, lambda: self.add_and_track("critical"), "critical")

        # Teammate helps
        later(7.0, self.teammate_ack, "teammate-ack")
        later(9.0, self.teammate_ack, "teammate-ack")

        # More chaos plus auto-resolve
        later(11.0, lambda: self.add_and_track(self._pick("critical", "warning", 0.4)), "random-add")
        later(12.0, self.auto_resolve, "auto-resolve")
        later(14.0, lambda: self.add_and_track(self._pick("critical", "warning", 0.3)), "random-add")
        later(15.0, self.teammate_ack, "teammate-ack")
        later(16.0, self.auto_resolve, "auto-resolve")

        self.scheduler.call_every(self.GAME_LOOP_INTERVAL, self.game_tick, "game-loop")
        later(self.TIMEOUT, self._on_timeout, "timeout")
        return True

    def stop(self) -> None:
        """Stop the game and drop every pending task. Incidents are kept."""
        if self.running:
            logger.info("[Demo] Stopping demo sequence")
        self.running = False
        self.scheduler.cancel_all()

    def run(self) -> str | None:
        """Start and block until the game ends. Returns the outcome."""
        self.start()
        self.scheduler.run(until=lambda: not self.running)
        return self.outcome

    # --- actions -----------------------------------------------------------

    def add_and_track(self, severity: str) -> dict[str, Any] | None:
        """Raise a new incident, then play its alert shortly after."""
        if not self.running:
            return None
        if len(self.callbacks.get_incidents()) >= self.MAX_INCIDENTS:
            return None

        incident = generate_demo_incident(severity, self.incident_count, self.rng)
        if not self.callbacks.add_incident(incident):
            logger.warning(f"[Demo] Incident {incident['alarm_name']} was not raised")
            return None
        self.incident_count += 1
        self.scheduler.call_later(
            self.ALERT_DELAY, lambda: self._play_alert(severity), "play-alert"
        )
        return incident

    def teammate_ack(self) -> bool:
        """A teammate acks one of the three oldest triggered incidents."""
        if not self.running:
            return False

        triggered = self._in_state("triggered")
        if not triggered:
            return False

        incident = triggered[int(self.rng.random() * min(3, len(triggered)))]
        self.callbacks.ack_incident(incident["incident_id"], random_teammate(self.rng))
        self.teammate_ack_count += 1
        return True

    def auto_resolve(self) -> bool:
        """Resolve the longest-acked incident, as if its alarm returned to OK."""
        if not self.running:
            return False

        oldest = self._oldest_acked()
        if oldest is None:
            return False
        self.callbacks.resolve_incident(oldest["incident_id"])
        return True

    def check_win(self) -> bool:
        if self.incident_count < self.WIN_MIN_INCIDENTS:
            return False
        return not any(i["state"] in ("triggered", "acked") for i in self.callbacks.get_incidents())

    def game_tick(self) -> None:
        if not self.running:
            return

        if self.check_win():
            logger.info("[Demo] Player wins!")
            self._finish("won")
            return

        incidents = self.callbacks.get_incidents()
        triggered = [i for i in incidents if i["state"] == "triggered"]
        acked = [i for i in incidents if i["state"] == "acked"]
        roll = self.rng.random()

        if len(incidents) < 6 and roll < 0.4:
            # Escalate while the board is quiet
            if self.rng.random() < 0.3:
                severity = "critical"
            else:
                severity = self._pick("warning", "info", 0.5)
            self.add_and_track(severity)
        elif (
            len(triggered) > 3
            and roll < 0.5
            and self.teammate_ack_count < self.MAX_TEAMMATE_ACKS
        ):
            self.teammate_ack()
        elif acked and roll < 0.6:
            oldest = self._oldest_acked(acked)
            acked_at = oldest.get("acked_at") if oldest else None
            if acked_at and self.now_ms() - acked_at > self.MIN_ACK_AGE_MS:
                self.auto_resolve()
        elif len(triggered) < 2 and len(incidents) < 8 and roll < 0.7:
            # Player is ahead; add more chaos
            self.add_and_track(self._pick("critical", "warning", 0.5))

    # --- internals ---------------------------------------------------------

    def _on_timeout(self) -> None:
        if not self.running:
            return
        remaining = len(self._in_state("triggered"))
        logger.info(
            f"[Demo] Time's up! {remaining} remaining" if remaining else "[Demo] Time's up! All handled"
        )
        self._finish("timeout")

    def _finish(self, outcome: str) -> None:
        if self.completed:
            return
        self.stop()
        self.completed = True
        self.outcome = outcome
        self.callbacks.on_complete()

    def _play_alert(self, severity: str) -> None:
        if self.running:
            self.callbacks.play_alert(severity)

    def _pick(self, first: str, second: str, p_first: float) -> str:
        return first if self.rng.random() < p_first else second

    def _in_state(self, state: str) -> list[dict[str, Any]]:
        return [i for i in self.callbacks.get_incidents() if i["state"] == state]

    def _oldest_acked(self, acked: list[dict[str, Any]] | None = None) -> dict[str, Any] | None:
        acked = acked if acked is not None else self._in_state("acked")
        if not acked:
            return None
        return min(acked, key=lambda i: i.get("acked_at") or 0)
