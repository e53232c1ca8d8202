"""Chat command interpretation for the group bot."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .actions import (
    Action,
    BroadcastMessage,
    RemoveFromGroup,
    SendDirectReply,
    SendGroupInvite,
    SendGroupMessage,
)
from .constants import (
    CH_DIRECT,
    CH_GROUP,
    CMD_ADMIN,
    CMD_BAN,
    CMD_CHEESE,
    CMD_INFO,
    CMD_INVITE,
    CMD_KICK,
    CMD_KICK_ALL,
    CMD_ROLL,
    CMD_UNBAN,
    COMMANDS,
    MSG_BANNED,
    MSG_NOT_ADMIN,
    MSG_ROLL_USAGE,
)
from .errors import CommandParseError, RosterPersistError
from .util import join_names

if TYPE_CHECKING:
    from .session import Handle, PlayerDirectory, SessionClient
    from .trust import RosterStore


@dataclass(frozen=True)
class Command:
    name: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChatContext:
    """Who sent a command and on which channel it arrived."""

    handle: Handle
    alias: str
    stable_id: str
    channel: str


def parse_command(text: str) -> Command | None:
    """Split chat text into a recognized command, or None.

    The first whitespace-delimited token must match a command tag exactly.
    """
    parts = text.split()
    if not parts or parts[0] not in COMMANDS:
        return None
    return Command(parts[0], tuple(parts[1:]))


def cheese_message(alias: str) -> str:
    return f"Congratulations on the cheese, {alias}!"


class CommandHandler:
    """Turns chat commands into actions, checking the roster for authorization."""

    def __init__(
        self,
        roster: RosterStore,
        session: SessionClient,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.roster = roster
        self.session = session
        self.rng = rng if rng is not None else random.Random()
        self.log = logging.getLogger("groupbot.commands")

    def handle_chat_command(
        self,
        ctx: ChatContext,
        text: str,
        directory: PlayerDirectory,
        *,
        outgoing: list[Action],
    ) -> bool:
        """Interpret one chat message, appending produced actions to ``outgoing``.

        Returns True if the text was a recognized command. Raises
        CommandParseError for malformed numeric arguments and lets
        RosterPersistError through after the in-memory change.
        """
        command = parse_command(text)
        if command is None:
            return False

        self.log.info(
            "Command %s args=%r from=%s channel=%s",
            command.name,
            command.args,
            ctx.alias,
            ctx.channel,
        )

        name = command.name
        args = command.args
        if name == CMD_INVITE:
            self._invite(ctx, args, directory, outgoing)
        elif name == CMD_KICK:
            self._kick(ctx, args, directory, outgoing)
        elif name == CMD_KICK_ALL:
            self._kick_all(ctx, outgoing)
        elif name == CMD_ADMIN:
            self._admin(ctx, args, directory, outgoing)
        elif name == CMD_BAN:
            self._ban(ctx, args, directory, outgoing)
        elif name == CMD_UNBAN:
            self._unban(ctx, args, directory, outgoing)
        elif name == CMD_INFO:
            self._info(ctx, directory, outgoing)
        elif name == CMD_ROLL:
            self._roll(ctx, args, outgoing)
        elif name == CMD_CHEESE:
            self._cheese(ctx, outgoing)
        return True

    def _invite(
        self,
        ctx: ChatContext,
        args: tuple[str, ...],
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        if self.roster.is_banned(ctx.stable_id):
            self._reply(ctx, outgoing, MSG_BANNED)
            return

        if not args:
            outgoing.append(SendGroupInvite(ctx.handle))
            return

        for arg in args:
            found = directory.find_alias(arg)
            if found is None:
                self._reply_not_found(ctx, outgoing, arg)
                continue
            handle, info = found
            if self.roster.is_banned(info.stable_id):
                self._reply(ctx, outgoing, f"{arg} is banned")
                continue
            outgoing.append(SendGroupInvite(handle))
            self._reply(ctx, outgoing, f"Invited {arg}")

    def _kick(
        self,
        ctx: ChatContext,
        args: tuple[str, ...],
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        if not self._require_admin(ctx, outgoing):
            return
        if not self._require_targets(ctx, args, "kick", outgoing):
            return

        for arg in args:
            found = directory.find_alias(arg)
            if found is None:
                self._reply_not_found(ctx, outgoing, arg)
                continue
            outgoing.append(RemoveFromGroup(found[0]))

    def _kick_all(self, ctx: ChatContext, outgoing: list[Action]) -> None:
        if not self._require_admin(ctx, outgoing):
            return
        for handle in list(self.session.group_members()):
            outgoing.append(RemoveFromGroup(handle))

    def _admin(
        self,
        ctx: ChatContext,
        args: tuple[str, ...],
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        # With no administrators yet, anyone may promote the first ones.
        bootstrap = not self.roster.administrators
        if not bootstrap and not self._require_admin(ctx, outgoing):
            return
        if not self._require_targets(ctx, args, "promote", outgoing):
            return

        if bootstrap:
            self.log.warning("No administrators configured; %s is bootstrapping", ctx.alias)

        for arg in args:
            found = directory.find_alias(arg)
            if found is None:
                self._reply_not_found(ctx, outgoing, arg)
                continue
            _, info = found
            if not self.roster.promote(info.stable_id):
                self._reply(ctx, outgoing, f"{arg} is banned and cannot be promoted")
                continue
            self._reply(ctx, outgoing, f"Promoted {arg}")

    def _ban(
        self,
        ctx: ChatContext,
        args: tuple[str, ...],
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        if not self._require_admin(ctx, outgoing):
            return
        if not self._require_targets(ctx, args, "ban", outgoing):
            return

        for arg in args:
            found = directory.find_alias(arg)
            if found is None:
                self._reply_not_found(ctx, outgoing, arg)
                continue
            handle, info = found
            if self.roster.is_admin(info.stable_id):
                self._reply(ctx, outgoing, f"{arg} is an admin and cannot be banned")
                continue
            try:
                self.roster.ban(info.stable_id)
            except RosterPersistError:
                # Banned in memory but not on disk: still remove them.
                if self.roster.is_banned(info.stable_id):
                    outgoing.append(RemoveFromGroup(handle))
                raise
            outgoing.append(RemoveFromGroup(handle))
            self._reply(ctx, outgoing, f"Banned {arg}")

    def _unban(
        self,
        ctx: ChatContext,
        args: tuple[str, ...],
        directory: PlayerDirectory,
        outgoing: list[Action],
    ) -> None:
        if not self._require_admin(ctx, outgoing):
            return
        if not self._require_targets(ctx, args, "unban", outgoing):
            return

        for arg in args:
            found = directory.find_alias(arg)
            if found is not None:
                stable_id = found[1].stable_id
            elif self.roster.is_banned(arg):
                # Banned players are usually offline; accept the raw identifier.
                stable_id = arg
            else:
                self._reply_not_found(ctx, outgoing, arg)
                continue

            if self.roster.unban(stable_id):
                self._reply(ctx, outgoing, f"Unbanned {arg}")
            else:
                self._reply(ctx, outgoing, f"{arg} is not banned")

    def _info(
        self, ctx: ChatContext, directory: PlayerDirectory, outgoing: list[Action]
    ) -> None:
        members = [
            directory.alias_of(handle) or str(handle)
            for handle in self.session.group_members()
        ]
        admins = [
            directory.alias_for_stable_id(sid) or sid
            for sid in sorted(self.roster.administrators)
        ]
        banned = [
            directory.alias_for_stable_id(sid) or sid
            for sid in sorted(self.roster.banned)
        ]

        self._respond(ctx, outgoing, join_names(["Members:", *members]))
        self._respond(ctx, outgoing, join_names(["Admins:", *admins]))
        self._respond(ctx, outgoing, join_names(["Banned:", *banned]))

    def _roll(self, ctx: ChatContext, args: tuple[str, ...], outgoing: list[Action]) -> None:
        if not args:
            self._reply(ctx, outgoing, MSG_ROLL_USAGE)
            return
        try:
            bound = int(args[0])
        except ValueError as e:
            raise CommandParseError(f"roll: not an integer: {args[0]!r}") from e

        if bound < 2:
            self._reply(ctx, outgoing, MSG_ROLL_USAGE)
            return

        value = self.rng.randrange(1, bound)
        self._respond(ctx, outgoing, f"{ctx.alias} rolled {value}")

    def _cheese(self, ctx: ChatContext, outgoing: list[Action]) -> None:
        if ctx.handle not in self.session.group_members():
            return
        self._respond(ctx, outgoing, cheese_message(ctx.alias))

    # Helper methods
    def _require_admin(self, ctx: ChatContext, outgoing: list[Action]) -> bool:
        if self.roster.is_admin(ctx.stable_id):
            return True
        self._reply(ctx, outgoing, MSG_NOT_ADMIN)
        return False

    def _require_targets(
        self, ctx: ChatContext, args: tuple[str, ...], verb: str, outgoing: list[Action]
    ) -> bool:
        if args:
            return True
        self._reply(ctx, outgoing, f"You must specify a player to {verb}")
        return False

    def _reply_not_found(self, ctx: ChatContext, outgoing: list[Action], name: str) -> None:
        self._reply(ctx, outgoing, f"Failed to find player {name}")

    def _reply(self, ctx: ChatContext, outgoing: list[Action], text: str) -> None:
        outgoing.append(SendDirectReply(ctx.alias, text))

    def _respond(self, ctx: ChatContext, outgoing: list[Action], text: str) -> None:
        """Answer on the same kind of channel the command arrived on."""
        if ctx.channel == CH_DIRECT:
            outgoing.append(SendDirectReply(ctx.alias, text))
        elif ctx.channel == CH_GROUP:
            outgoing.append(SendGroupMessage(text))
        else:
            outgoing.append(BroadcastMessage(text))
