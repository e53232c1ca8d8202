"""Shared fixtures: a scripted stand-in for the live session collaborator."""

from __future__ import annotations

import random
from typing import Any

import pytest

from groupbot.commands import ChatContext, CommandHandler
from groupbot.constants import CH_DIRECT
from groupbot.session import PlayerDirectory, PlayerInfo
from groupbot.trust import RosterStore


class FakeSession:
    """Records outbound calls and replays scripted poll results.

    Each entry of ``batches`` is either a list of events or an exception
    instance to raise from ``poll_tick``.
    """

    def __init__(self, roster: dict | None = None, group: dict | None = None) -> None:
        self.roster: dict[Any, PlayerInfo] = dict(roster or {})
        self.group: dict[Any, Any] = dict(group or {})
        self.batches: list[Any] = []
        self.sent: list[tuple] = []
        self.polls: list[float] = []
        self.cleanups = 0
        self.on_poll = None

    def poll_tick(self, dt: float) -> list[Any]:
        self.polls.append(dt)
        if self.on_poll is not None:
            self.on_poll()
        if not self.batches:
            return []
        item = self.batches.pop(0)
        if isinstance(item, BaseException):
            raise item
        return list(item)

    def live_roster(self) -> dict[Any, PlayerInfo]:
        return dict(self.roster)

    def group_members(self) -> dict[Any, Any]:
        return dict(self.group)

    def send_group_invite(self, handle: Any) -> None:
        self.sent.append(("invite", handle))

    def remove_from_group(self, handle: Any) -> None:
        self.sent.append(("remove", handle))

    def send_direct_message(self, alias: str, text: str) -> None:
        self.sent.append(("tell", alias, text))

    def send_group_message(self, text: str) -> None:
        self.sent.append(("group", text))

    def send_broadcast_message(self, text: str) -> None:
        self.sent.append(("broadcast", text))

    def cleanup_after_tick(self) -> None:
        self.cleanups += 1


ADA = 1
ALICE = 2
CAROL = 3


@pytest.fixture
def session() -> FakeSession:
    return FakeSession(
        roster={
            ADA: PlayerInfo("Ada", "id-ada"),
            ALICE: PlayerInfo("alice", "id-alice"),
            CAROL: PlayerInfo("carol", "id-carol"),
        },
        group={ADA: {}},
    )


@pytest.fixture
def directory(session: FakeSession) -> PlayerDirectory:
    return PlayerDirectory.from_session(session)


@pytest.fixture
def roster() -> RosterStore:
    return RosterStore(administrators=["id-ada"])


@pytest.fixture
def handler(roster: RosterStore, session: FakeSession) -> CommandHandler:
    return CommandHandler(roster, session, rng=random.Random(1234))


@pytest.fixture
def ada() -> ChatContext:
    return ChatContext(handle=ADA, alias="Ada", stable_id="id-ada", channel=CH_DIRECT)


@pytest.fixture
def alice() -> ChatContext:
    return ChatContext(handle=ALICE, alias="alice", stable_id="id-alice", channel=CH_DIRECT)
