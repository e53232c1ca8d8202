"""Outbound effects produced by commands and event handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .session import Handle


@dataclass(frozen=True)
class SendGroupInvite:
    handle: Handle


@dataclass(frozen=True)
class RemoveFromGroup:
    handle: Handle


@dataclass(frozen=True)
class SendDirectReply:
    alias: str
    text: str


@dataclass(frozen=True)
class SendGroupMessage:
    text: str


@dataclass(frozen=True)
class BroadcastMessage:
    text: str


Action = Union[
    SendGroupInvite,
    RemoveFromGroup,
    SendDirectReply,
    SendGroupMessage,
    BroadcastMessage,
]

# Group-affecting actions; these are the ones subject to throttling.
GROUP_ACTIONS = (SendGroupInvite, RemoveFromGroup)
