"""Sending actions to the session, immediately or through a throttled queue."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from .actions import (
    GROUP_ACTIONS,
    Action,
    BroadcastMessage,
    RemoveFromGroup,
    SendDirectReply,
    SendGroupInvite,
    SendGroupMessage,
)

if TYPE_CHECKING:
    from .session import SessionClient
    from .stats import StatsManager


class ActionDispatcher:
    """
    Delivers actions to the session collaborator.

    Conversational actions (replies, group and broadcast messages) are sent
    as soon as they are submitted. With throttling enabled, group-affecting
    actions (invites and removals) go through a FIFO that releases at most
    one action per ``interval`` seconds of tick-clock time.
    """

    def __init__(
        self,
        session: SessionClient,
        *,
        interval: float,
        throttle: bool = True,
        start: float = 0.0,
        stats: StatsManager | None = None,
    ) -> None:
        self.session = session
        self.log = logging.getLogger("groupbot.dispatch")
        self.interval = float(interval)
        self.throttle = bool(throttle)
        self.stats = stats

        self._pending: deque[Action] = deque()
        self.next_dispatch_at = float(start) + self.interval

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, action: Action) -> None:
        if self.throttle and isinstance(action, GROUP_ACTIONS):
            self._pending.append(action)
            self._inc("actions_queued")
            self.log.debug("Queued %r pending=%s", action, len(self._pending))
            return
        self.send(action)

    def submit_all(self, actions: list[Action]) -> None:
        for action in actions:
            self.submit(action)

    def drain(self, now: float) -> Action | None:
        """Release at most one queued action if the current window is open.

        The window is reset whether or not an action was released.
        """
        if now < self.next_dispatch_at:
            return None

        action = self._pending.popleft() if self._pending else None
        self.next_dispatch_at = now + self.interval
        if action is not None:
            self.send(action)
        return action

    def clear(self) -> list[Action]:
        dropped = list(self._pending)
        self._pending.clear()
        return dropped

    def send(self, action: Action) -> None:
        if isinstance(action, SendGroupInvite):
            self.session.send_group_invite(action.handle)
        elif isinstance(action, RemoveFromGroup):
            self.session.remove_from_group(action.handle)
        elif isinstance(action, SendDirectReply):
            self.session.send_direct_message(action.alias, action.text)
        elif isinstance(action, SendGroupMessage):
            self.session.send_group_message(action.text)
        elif isinstance(action, BroadcastMessage):
            self.session.send_broadcast_message(action.text)
        else:
            raise TypeError(f"unknown action {action!r}")

        self._inc("actions_sent")
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("Sent %r", action)

    def _inc(self, key: str) -> None:
        if self.stats is not None:
            self.stats.inc(key)
