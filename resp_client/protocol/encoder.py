"""
Command Encoder Module

Turns a human-typed command line into the wire request format: an array
of bulk strings.

Splitting rules:
    - Outside quotes a space ends the current token.
    - A single quote opens a quoted token; everything up to the next
      single quote (spaces included) is one token.
    - Quotes do not nest and are never sent to the server.
    - An unterminated quote is a ParseError.

Wire format:
    *<token-count>\\r\\n
    $<byte-length>\\r\\n<token-bytes>\\r\\n     (once per token)
"""

from typing import Iterable, List, Optional

from ..config.settings import settings
from .commands import CommandValidator
from .errors import ParseError

QUOTE = "'"
SEPARATOR = " "
CRLF = b"\r\n"


def tokenize(raw: str) -> List[str]:
    """
    Split a raw command line into tokens.

    Examples:
        >>> tokenize("SET key 'a value with spaces'")
        ['SET', 'key', 'a value with spaces']
        >>> tokenize("   ")
        []
        >>> tokenize("SET empty ''")
        ['SET', 'empty', '']

    Raises:
        ParseError: If a quoted token is never closed.
    """
    tokens: List[str] = []
    current: List[str] = []
    quoted = False

    for char in raw:
        if char == QUOTE:
            if quoted:
                # A closing quote always ends the token, even an empty one
                tokens.append("".join(current))
                current = []
            elif current:
                tokens.append("".join(current))
                current = []
            quoted = not quoted
        elif char == SEPARATOR and not quoted:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    if quoted:
        raise ParseError(f"unterminated quote in command: {raw!r}")

    if current:
        tokens.append("".join(current))

    return tokens


def quote(value: str) -> str:
    """
    Render a single value so that tokenize() returns it as one token.

    Values containing spaces (and the empty string) are wrapped in single
    quotes. A value containing a single quote has no representation in
    this syntax.
    """
    if QUOTE in value:
        raise ParseError(f"value cannot contain a single quote: {value!r}")
    if not value or SEPARATOR in value:
        return f"{QUOTE}{value}{QUOTE}"
    return value


def encode_tokens(tokens: Iterable[str], encoding: str = None) -> bytes:
    """Serialize already-split tokens as an array of bulk strings."""
    encoding = encoding or settings.ENCODING
    try:
        payloads = [token.encode(encoding) for token in tokens]
    except UnicodeEncodeError as exc:
        raise ParseError(f"command argument is not valid {encoding}") from exc

    parts = [b"*%d\r\n" % len(payloads)]
    for payload in payloads:
        parts.append(b"$%d\r\n" % len(payload))
        parts.append(payload)
        parts.append(CRLF)
    return b"".join(parts)


class CommandEncoder:
    """
    Encoder for client requests.

    The encoder accepts any token sequence. Checking command names and
    argument counts is left to an optional CommandValidator so that new or
    unusual server commands can always be sent.

    Usage:
        encoder = CommandEncoder()
        encoder.encode("GET FOO")   # b'*2\\r\\n$3\\r\\nGET\\r\\n$3\\r\\nFOO\\r\\n'
    """

    def __init__(self, validator: Optional[CommandValidator] = None, encoding: str = None):
        self.validator = validator
        self.encoding = encoding or settings.ENCODING

    def encode(self, raw: str) -> bytes:
        """
        Encode a raw command line.

        An empty or all-space line encodes to ``*0\\r\\n``; whether the
        server accepts it is up to the server.

        Raises:
            ParseError: On mismatched quoting, text the encoding cannot
                represent, or when the validator rejects the command.
        """
        return self.encode_tokens(tokenize(raw))

    def encode_tokens(self, tokens: List[str]) -> bytes:
        if self.validator is not None:
            self.validator.validate(tokens)
        return encode_tokens(tokens, self.encoding)


_default_encoder = CommandEncoder()


def encode(raw: str) -> bytes:
    """Encode a raw command line with the default encoder."""
    return _default_encoder.encode(raw)
