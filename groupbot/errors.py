"""Exception types raised by the bot core."""

from __future__ import annotations


class GroupBotError(Exception):
    pass


class ConfigError(GroupBotError):
    pass


class SessionError(GroupBotError):
    """The session collaborator failed to complete a request."""


class SessionEnded(SessionError):
    """The session has terminated; the tick loop must stop."""


class MessageError(GroupBotError):
    """Processing of a single inbound event failed."""


class CommandParseError(MessageError):
    pass


class UnknownSenderError(MessageError):
    pass


class RosterPersistError(GroupBotError):
    """A roster mutation could not be written to the secrets file.

    The in-memory roster may already reflect the mutation.
    """


class TickError(GroupBotError):
    """Aggregates the non-fatal failures raised during one tick."""

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = list(errors)
        summary = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} error(s) during tick: {summary}")
