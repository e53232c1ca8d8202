"""Session collaborator interface and the per-tick player directory."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, Union

# Connection-scoped identity; only valid for addressing within one session.
Handle = Hashable


@dataclass(frozen=True)
class PlayerInfo:
    alias: str
    stable_id: str


@dataclass(frozen=True)
class ChatMessage:
    channel: str
    sender: Handle | None
    text: str


@dataclass(frozen=True)
class MemberLeft:
    handle: Handle


@dataclass(frozen=True)
class GroupItemPickup:
    handle: Handle
    item_name: str


Event = Union[ChatMessage, MemberLeft, GroupItemPickup]


class SessionClient(Protocol):
    """The live session the bot participates in.

    Implementations raise ``SessionError`` from ``poll_tick`` on transient
    failures and ``SessionEnded`` once the session is gone.
    """

    def poll_tick(self, dt: float) -> list[Any]: ...

    def live_roster(self) -> Mapping[Handle, PlayerInfo]: ...

    def group_members(self) -> Mapping[Handle, Any]: ...

    def send_group_invite(self, handle: Handle) -> None: ...

    def remove_from_group(self, handle: Handle) -> None: ...

    def send_direct_message(self, alias: str, text: str) -> None: ...

    def send_group_message(self, text: str) -> None: ...

    def send_broadcast_message(self, text: str) -> None: ...

    def cleanup_after_tick(self) -> None: ...


class PlayerDirectory:
    """Snapshot of the live roster, indexed by handle, alias and stable id.

    Handles are reassigned between sessions, so a directory must be rebuilt
    from ``live_roster()`` every tick and never kept longer.
    """

    def __init__(self, roster: Mapping[Handle, PlayerInfo]) -> None:
        self._by_handle: dict[Handle, PlayerInfo] = dict(roster)
        self._index_by_alias: dict[str, Handle] = {}
        self._index_by_stable_id: dict[str, Handle] = {}
        for handle, info in self._by_handle.items():
            self._index_by_alias.setdefault(info.alias, handle)
            self._index_by_stable_id.setdefault(info.stable_id, handle)

    @classmethod
    def from_session(cls, session: SessionClient) -> PlayerDirectory:
        return cls(session.live_roster())

    def __len__(self) -> int:
        return len(self._by_handle)

    def get(self, handle: Handle) -> PlayerInfo | None:
        return self._by_handle.get(handle)

    def alias_of(self, handle: Handle) -> str | None:
        info = self._by_handle.get(handle)
        return info.alias if info else None

    def find_alias(self, alias: str) -> tuple[Handle, PlayerInfo] | None:
        """Resolve a player alias (exact match) to its handle and info."""
        handle = self._index_by_alias.get(alias)
        if handle is None:
            return None
        return handle, self._by_handle[handle]

    def alias_for_stable_id(self, stable_id: str) -> str | None:
        handle = self._index_by_stable_id.get(stable_id)
        if handle is None:
            return None
        return self._by_handle[handle].alias
