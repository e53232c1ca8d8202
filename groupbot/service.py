from __future__ import annotations

import logging
import random
import signal
import threading
import time
from typing import Any

from .commands import CommandHandler
from .config import BotRuntimeConfig
from .dispatch import ActionDispatcher
from .errors import MessageError, RosterPersistError, SessionEnded, SessionError, TickError
from .router import EventRouter
from .session import PlayerDirectory, SessionClient
from .stats import StatsManager
from .trust import RosterStore


class TickClock:
    """Logical time advanced by exactly one period per tick."""

    def __init__(self, period: float) -> None:
        if period <= 0:
            raise ValueError("tick period must be positive")
        self.period = float(period)
        self.ticks = 0

    @property
    def now(self) -> float:
        return self.ticks * self.period

    def advance(self) -> None:
        self.ticks += 1


class BotService:
    def __init__(
        self,
        config: BotRuntimeConfig,
        session: SessionClient,
        roster: RosterStore,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.log = logging.getLogger("groupbot.bot")
        self.session = session
        self.roster = roster

        self.stats_manager = StatsManager(roster)
        self.clock = TickClock(config.tick_interval_s)

        self.dispatcher = ActionDispatcher(
            session,
            interval=config.action_interval_s,
            throttle=config.throttle_actions,
            start=self.clock.now,
            stats=self.stats_manager,
        )
        self.command_handler = CommandHandler(roster, session, rng=rng)
        self.router = EventRouter(
            self.command_handler,
            cheese_item=config.cheese_item,
            stats=self.stats_manager,
        )

        self._shutdown = threading.Event()

    def tick(self) -> None:
        """Run one fixed-period iteration of the bot.

        Raises SessionEnded when the session is gone. Any other failure is
        collected and raised as a TickError after the tick has finished, so
        queued state and the clock stay consistent.
        """
        errors: list[Exception] = []

        events = self._call_session(errors, self.session.poll_tick, self.clock.period)
        if events:
            # Handles are only valid for this tick; never reuse the directory.
            directory = self._call_session(
                errors, PlayerDirectory.from_session, self.session
            )
            if directory is None:
                self.log.warning("Dropping %s event(s): live roster unavailable", len(events))
            else:
                self._route_all(list(events), directory, errors)

        self._call_session(errors, self.dispatcher.drain, self.clock.now)
        self._call_session(errors, self.session.cleanup_after_tick)
        self.clock.advance()
        self.stats_manager.inc("ticks")

        if errors:
            raise TickError(errors)

    def _route_all(
        self, events: list[Any], directory: PlayerDirectory, errors: list[Exception]
    ) -> None:
        for event in events:
            outgoing: list[Any] = []
            try:
                self.router.route_event(event, directory, outgoing)
            except (MessageError, RosterPersistError) as e:
                self.stats_manager.inc("message_errors")
                self.log.warning("Event %r failed: %s", event, e)
                errors.append(e)
            self._call_session(errors, self.dispatcher.submit_all, outgoing)

    def _call_session(self, errors: list[Exception], fn: Any, *args: Any) -> Any:
        """Call into the session, recording transient failures in ``errors``.

        Returns None when the call failed. SessionEnded is never caught.
        """
        try:
            return fn(*args)
        except SessionEnded:
            raise
        except SessionError as e:
            self.stats_manager.inc("session_errors")
            self.log.warning("Session error: %s", e)
            errors.append(e)
            return None

    def run_forever(self) -> None:
        """Tick until stop() is called or the session ends.

        SessionEnded is re-raised after logging.
        """
        previous = {
            sig: signal.signal(sig, lambda *_: self.stop())
            for sig in (signal.SIGINT, signal.SIGTERM)
        }

        self.stats_manager.set_start_time()
        self.log.info(
            "Bot running tick_interval_s=%s action_interval_s=%s throttle=%s "
            "administrators=%s banned=%s",
            self.config.tick_interval_s,
            self.config.action_interval_s,
            self.config.throttle_actions,
            len(self.roster.administrators),
            len(self.roster.banned),
        )

        next_tick = time.monotonic()
        try:
            while not self._shutdown.is_set():
                try:
                    self.tick()
                except TickError as e:
                    self.log.error("%s", e)

                # Hold the tick rate; an overrunning tick starts the next one at once.
                next_tick += self.clock.period
                delay = next_tick - time.monotonic()
                if delay > 0:
                    self._shutdown.wait(delay)
                else:
                    next_tick = time.monotonic()
        except SessionEnded as e:
            self.log.error("Session ended: %s", e)
            raise
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            dropped = self.dispatcher.clear()
            if dropped:
                self.log.warning("Dropping %s undispatched action(s): %r", len(dropped), dropped)
            if self.roster.has_unsaved_changes:
                self.log.error("Roster has changes that were never written to disk")
            self.log.info("%s", self.stats_manager.format_stats())

    def stop(self) -> None:
        self._shutdown.set()
