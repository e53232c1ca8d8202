"""Counters for the bot's lifetime, reported on shutdown."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .trust import RosterStore


class StatsManager:
    """
    Tracks lifetime counters for:
    - Ticks run
    - Events received
    - Commands recognized
    - Actions sent and queued
    - Session and message errors
    """

    def __init__(self, roster: RosterStore | None = None) -> None:
        self.roster = roster
        self.started_monotonic: float | None = None
        self._counters: dict[str, int] = {
            "ticks": 0,
            "events_in": 0,
            "commands": 0,
            "actions_sent": 0,
            "actions_queued": 0,
            "session_errors": 0,
            "message_errors": 0,
        }

    def set_start_time(self) -> None:
        self.started_monotonic = time.monotonic()

    def inc(self, key: str, delta: int = 1) -> None:
        self._counters[key] = int(self._counters.get(key, 0)) + int(delta)

    def get(self, key: str) -> int:
        return int(self._counters.get(key, 0))

    def format_stats(self) -> str:
        from . import __version__

        started = self.started_monotonic
        uptime_s = (time.monotonic() - started) if started is not None else 0.0
        c = self._counters
        line = (
            f"groupbot {__version__} uptime_s={uptime_s:.1f} "
            f"ticks={c['ticks']} events_in={c['events_in']} commands={c['commands']} "
            f"actions_sent={c['actions_sent']} actions_queued={c['actions_queued']} "
            f"session_errors={c['session_errors']} message_errors={c['message_errors']}"
        )
        if self.roster is not None:
            roster_stats = self.roster.get_stats()
            line += (
                f" administrators={roster_stats['administrators']}"
                f" banned={roster_stats['banned']}"
            )
        return line
