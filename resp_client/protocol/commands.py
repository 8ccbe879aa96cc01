"""
Command Validation Module

Optional checks layered above the encoder. The encoder itself sends any
token sequence; a validator can be plugged in to reject unknown command
names or wrong argument counts before anything reaches the wire.
"""

from enum import Enum
from typing import Iterable, List, Optional

from .errors import ArityError, UnknownCommandError


class CommandType(Enum):
    """
    Known commands and their arity.

    Arity follows the server's COMMAND convention: it counts the command
    name itself, a positive value is exact and a negative value is a
    minimum.
    """
    GET = ("GET", 2)
    SET = ("SET", -3)
    APPEND = ("APPEND", 3)
    DEL = ("DEL", -2)
    COPY = ("COPY", -3)
    ECHO = ("ECHO", 2)
    PING = ("PING", -1)
    EXISTS = ("EXISTS", -2)
    INCR = ("INCR", 2)
    DECR = ("DECR", 2)
    KEYS = ("KEYS", 2)
    TYPE = ("TYPE", 2)
    EXPIRE = ("EXPIRE", -3)
    TTL = ("TTL", 2)
    MGET = ("MGET", -2)
    MSET = ("MSET", -3)
    FLUSHDB = ("FLUSHDB", -1)
    DBSIZE = ("DBSIZE", 1)
    QUIT = ("QUIT", -1)

    def __init__(self, command: str, arity: int):
        self.command = command
        self.arity = arity

    @classmethod
    def lookup(cls, name: str) -> Optional["CommandType"]:
        """Case-insensitive lookup by command name."""
        return cls.__members__.get(name.upper())

    def accepts(self, argc: int) -> bool:
        """Check an argument count (command name included)."""
        if self.arity >= 0:
            return argc == self.arity
        return argc >= -self.arity


class CommandValidator:
    """Base validator: accepts every command."""

    def validate(self, tokens: List[str]) -> None:
        """Raise a ParseError subclass if ``tokens`` should not be sent."""


class KnownCommandValidator(CommandValidator):
    """
    Accept only commands listed in CommandType, with a matching arity.

    Args:
        extra_commands: Additional command names to allow with any
            number of arguments.
    """

    def __init__(self, extra_commands: Iterable[str] = ()):
        self.extra_commands = {name.upper() for name in extra_commands}

    def validate(self, tokens: List[str]) -> None:
        if not tokens:
            return

        name = tokens[0].upper()
        if name in self.extra_commands:
            return

        command = CommandType.lookup(name)
        if command is None:
            raise UnknownCommandError(f"unknown command '{tokens[0]}'")

        if not command.accepts(len(tokens)):
            raise ArityError(
                f"wrong number of arguments for '{command.name.lower()}' command"
            )
