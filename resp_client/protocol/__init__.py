"""Protocol module for resp-client."""

from .commands import CommandType, CommandValidator, KnownCommandValidator
from .decoder import DecodeState, ResponseDecoder, decode
from .encoder import CommandEncoder, encode, encode_tokens, quote, tokenize
from .errors import (
    ArityError,
    ClientError,
    ConnectionError,
    NeedMoreBytes,
    ParseError,
    UnknownCommandError,
)
from .response import (
    NIL_ARRAY,
    Array,
    BulkString,
    Error,
    Integer,
    Nil,
    NilArray,
    NilBulkString,
    Response,
    ResponseType,
    SimpleString,
)

__all__ = [
    "CommandType",
    "CommandValidator",
    "KnownCommandValidator",
    "DecodeState",
    "ResponseDecoder",
    "decode",
    "CommandEncoder",
    "encode",
    "encode_tokens",
    "quote",
    "tokenize",
    "ArityError",
    "ClientError",
    "ConnectionError",
    "NeedMoreBytes",
    "ParseError",
    "UnknownCommandError",
    "NIL_ARRAY",
    "Array",
    "BulkString",
    "Error",
    "Integer",
    "Nil",
    "NilArray",
    "NilBulkString",
    "Response",
    "ResponseType",
    "SimpleString",
]
