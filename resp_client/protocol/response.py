"""
Protocol Response Definitions

This module defines the typed values a server reply decodes into. Each
reply kind is its own frozen dataclass; Nil and NilArray are singletons
that never compare equal to an empty bulk string or an empty array.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..config.settings import settings


class ResponseType(Enum):
    """Leading type byte of each reply kind."""
    SIMPLE_STRING = b"+"
    ERROR = b"-"
    INTEGER = b":"
    BULK_STRING = b"$"
    ARRAY = b"*"


class Response:
    """Base class for decoded replies."""

    type: ResponseType

    @property
    def is_error(self) -> bool:
        return False


@dataclass(frozen=True)
class SimpleString(Response):
    """A short status reply such as ``OK`` or ``PONG``."""
    text: str
    type = ResponseType.SIMPLE_STRING


@dataclass(frozen=True)
class Error(Response):
    """An error message reported by the server."""
    text: str
    type = ResponseType.ERROR

    @property
    def is_error(self) -> bool:
        return True

    @property
    def kind(self) -> str:
        """The error prefix, e.g. ``ERR`` or ``WRONGTYPE``."""
        return self.text.split(" ", 1)[0]


@dataclass(frozen=True)
class Integer(Response):
    """A signed 64-bit integer reply."""
    value: int
    type = ResponseType.INTEGER


@dataclass(frozen=True)
class BulkString(Response):
    """
    A binary-safe, length-prefixed reply.

    Attributes:
        data: The raw payload bytes, exactly as received.
        encoding: Encoding used by ``text``; the decoder that produced the
            value sets its own. Not part of equality.
    """
    data: bytes
    encoding: Optional[str] = field(default=None, compare=False, repr=False)
    type = ResponseType.BULK_STRING

    @property
    def text(self) -> str:
        """The payload decoded with ``encoding`` (settings.ENCODING if unset)."""
        return self.data.decode(self.encoding or settings.ENCODING)


@dataclass(frozen=True)
class NilBulkString(Response):
    """A bulk string reply with length -1: no value."""
    type = ResponseType.BULK_STRING


@dataclass(frozen=True)
class Array(Response):
    """An ordered, possibly nested collection of replies."""
    items: Tuple[Response, ...] = field(default_factory=tuple)
    type = ResponseType.ARRAY

    def __post_init__(self):
        # Accept any sequence but store a tuple so the value stays hashable
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, index):
        return self.items[index]


@dataclass(frozen=True)
class NilArray(Response):
    """An array reply with count -1: no array."""
    type = ResponseType.ARRAY


Nil = NilBulkString()
NIL_ARRAY = NilArray()
