from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .actions import Action, RemoveFromGroup, SendDirectReply
from .commands import ChatContext, cheese_message
from .constants import COMMAND_CHANNELS
from .errors import UnknownSenderError
from .session import ChatMessage, GroupItemPickup, MemberLeft

if TYPE_CHECKING:
    from .commands import CommandHandler
    from .session import PlayerDirectory
    from .stats import StatsManager


class EventRouter:
    """
    Classifies inbound session events and routes them.

    This class is responsible for:
    - Dropping chat from channels that carry no resolvable sender
    - Resolving chat senders against the current tick's player directory
    - Handing chat commands to the command handler
    - Side effects for non-chat events (departures, item pickups)
    """

    def __init__(
        self,
        commands: CommandHandler,
        *,
        cheese_item: str,
        stats: StatsManager | None = None,
    ) -> None:
        self.commands = commands
        self.cheese_item = cheese_item
        self.stats = stats
        self.log = logging.getLogger("groupbot.router")

    def route_event(
        self,
        event: Any,
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        """Route one event, appending any produced actions to ``outgoing``."""
        self._inc("events_in")

        if isinstance(event, ChatMessage):
            self._handle_chat(event, directory, outgoing)
        elif isinstance(event, MemberLeft):
            self._handle_member_left(event, outgoing)
        elif isinstance(event, GroupItemPickup):
            self._handle_item_pickup(event, directory, outgoing)
        elif self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("Ignoring event type=%s", type(event).__name__)

    def _handle_chat(
        self,
        event: ChatMessage,
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        if event.channel not in COMMAND_CHANNELS:
            return

        if event.sender is None:
            raise UnknownSenderError(f"{event.channel} message without a sender")

        info = directory.get(event.sender)
        if info is None:
            raise UnknownSenderError(
                f"sender {event.sender!r} not in live roster ({len(directory)} players)"
            )

        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(
                "RX chat channel=%s from=%s text=%r",
                event.channel,
                info.alias,
                event.text,
            )

        ctx = ChatContext(
            handle=event.sender,
            alias=info.alias,
            stable_id=info.stable_id,
            channel=event.channel,
        )
        if self.commands.handle_chat_command(ctx, event.text, directory, outgoing=outgoing):
            self._inc("commands")

    def _handle_member_left(self, event: MemberLeft, outgoing: list[Action]) -> None:
        self.log.info("Member left handle=%r; removing from group", event.handle)
        outgoing.append(RemoveFromGroup(event.handle))

    def _handle_item_pickup(
        self,
        event: GroupItemPickup,
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        alias = directory.alias_of(event.handle)
        if alias is None:
            raise UnknownSenderError(
                f"item recipient {event.handle!r} not in live roster"
            )
        if event.item_name == self.cheese_item:
            outgoing.append(SendDirectReply(alias, cheese_message(alias)))

    def _inc(self, key: str) -> None:
        if self.stats is not None:
            self.stats.inc(key)
