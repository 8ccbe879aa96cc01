"""
Response Decoder Module

Turns bytes received from the server into typed Response values.

Reply grammar (dispatch on the first byte):
    +<text>\r\n                     -> SimpleString
    -<text>\r\n                     -> Error
    :<integer>\r\n                  -> Integer
    $<length>\r\n<bytes>\r\n        -> BulkString ($-1\r\n -> Nil)
    *<count>\r\n<reply>...          -> Array      (*-1\r\n -> NilArray)

The decoder works on raw bytes. When the buffer ends before a reply is
complete it raises NeedMoreBytes. Passing a DecodeState lets the next call
pick up after the last complete element instead of starting over, so a
large reply read in many small pieces is still decoded in linear time.
Arrays are decoded with an explicit stack, never by recursion.
"""

from typing import Callable, Dict, List, Optional, Tuple, Union

from ..config.settings import settings
from .errors import NeedMoreBytes, ParseError
from .response import (
    NIL_ARRAY,
    Array,
    BulkString,
    Error,
    Integer,
    Nil,
    Response,
    ResponseType,
    SimpleString,
)

CRLF = b"\r\n"
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

Buffer = Union[bytes, bytearray]


class DecodeState:
    """
    Progress through one partially received reply.

    Attributes:
        start: Offset of the reply's leading type byte
        pos: Offset of the first element not yet decoded
        stack: Open arrays, innermost last, as [expected count, items]
    """

    def __init__(self, offset: int = 0):
        self.start = offset
        self.pos = offset
        self.stack: List[list] = []

    @property
    def depth(self) -> int:
        return len(self.stack)


class ResponseDecoder:
    """
    Decoder for server replies.

    Usage:
        decoder = ResponseDecoder()
        response, consumed = decoder.decode(b"+OK\\r\\n")
        # response == SimpleString("OK"), consumed == 5

        # Resuming across reads
        state = DecodeState()
        decoder.decode(b"*2\\r\\n:1\\r\\n", state=state)           # NeedMoreBytes
        decoder.decode(b"*2\\r\\n:1\\r\\n:2\\r\\n", state=state)   # only :2 is parsed

    Attributes:
        max_bulk_length: Largest bulk string payload accepted
        encoding: Text encoding for simple strings, errors and BulkString.text
    """

    def __init__(self, max_bulk_length: int = None, encoding: str = None):
        self.max_bulk_length = (
            max_bulk_length if max_bulk_length is not None else settings.MAX_BULK_LENGTH
        )
        self.encoding = encoding or settings.ENCODING

        self._handlers: Dict[bytes, Callable[[Buffer, int], Tuple[Response, int]]] = {
            ResponseType.SIMPLE_STRING.value: self._decode_simple_string,
            ResponseType.ERROR.value: self._decode_error,
            ResponseType.INTEGER.value: self._decode_integer,
            ResponseType.BULK_STRING.value: self._decode_bulk_string,
        }

    def decode(
            self,
            buffer: Buffer,
            offset: int = 0,
            state: Optional[DecodeState] = None,
    ) -> Tuple[Response, int]:
        """
        Decode one complete reply starting at ``offset``.

        Args:
            buffer: Bytes received so far
            offset: Position of the reply's leading type byte
            state: Progress kept from an earlier call on the same buffer.
                The buffer may only have grown since then. ``offset`` is
                ignored when a state is given.

        Returns:
            Tuple of (response, number of bytes consumed from the start
            of the reply)

        Raises:
            NeedMoreBytes: The buffer ends before the reply is complete.
                ``state`` (if given) records the elements decoded so far.
            ParseError: The bytes are not a valid reply.
        """
        if state is None:
            state = DecodeState(offset)

        while True:
            value, pos = self._decode_element(buffer, state)
            state.pos = pos
            if value is None:
                continue

            # Hand the finished value to the arrays waiting for it
            while state.stack:
                frame = state.stack[-1]
                frame[1].append(value)
                if len(frame[1]) < frame[0]:
                    break
                state.stack.pop()
                value = Array(frame[1])
            else:
                return value, state.pos - state.start

    def _decode_element(self, buffer: Buffer, state: DecodeState) -> Tuple[Optional[Response], int]:
        """
        Decode the element at ``state.pos``.

        Returns (None, pos) after opening a non-empty array, whose items
        follow at ``pos``.
        """
        pos = state.pos
        if pos >= len(buffer):
            raise NeedMoreBytes()

        marker = bytes(buffer[pos:pos + 1])
        if marker == ResponseType.ARRAY.value:
            count, pos = self._read_number(buffer, pos + 1)
            if count == -1:
                return NIL_ARRAY, pos
            if count < 0:
                raise ParseError(f"invalid array length {count}")
            if count == 0:
                return Array(()), pos
            state.stack.append([count, []])
            return None, pos

        handler = self._handlers.get(marker)
        if handler is None:
            raise ParseError(f"unexpected byte {marker!r} at start of response")

        return handler(buffer, pos + 1)

    # ------------------------------------------------------------------
    # Field readers
    # ------------------------------------------------------------------

    def _read_line(self, buffer: Buffer, pos: int) -> Tuple[bytes, int]:
        """Return the bytes up to the next CRLF and the position after it."""
        end = buffer.find(CRLF, pos)
        if end == -1:
            raise NeedMoreBytes()
        return bytes(buffer[pos:end]), end + len(CRLF)

    def _read_number(self, buffer: Buffer, pos: int) -> Tuple[int, int]:
        field, pos = self._read_line(buffer, pos)
        digits = field[1:] if field.startswith(b"-") else field
        if not digits or not digits.isdigit():
            raise ParseError(f"invalid numeric field {field!r} in response")
        return int(field), pos

    def _read_text(self, buffer: Buffer, pos: int) -> Tuple[str, int]:
        field, pos = self._read_line(buffer, pos)
        try:
            return field.decode(self.encoding), pos
        except UnicodeDecodeError as exc:
            raise ParseError(f"response text is not valid {self.encoding}") from exc

    # ------------------------------------------------------------------
    # Reply kinds
    # ------------------------------------------------------------------

    def _decode_simple_string(self, buffer: Buffer, pos: int) -> Tuple[Response, int]:
        text, pos = self._read_text(buffer, pos)
        return SimpleString(text), pos

    def _decode_error(self, buffer: Buffer, pos: int) -> Tuple[Response, int]:
        text, pos = self._read_text(buffer, pos)
        return Error(text), pos

    def _decode_integer(self, buffer: Buffer, pos: int) -> Tuple[Response, int]:
        value, pos = self._read_number(buffer, pos)
        if not INT64_MIN <= value <= INT64_MAX:
            raise ParseError(f"integer reply {value} out of 64-bit range")
        return Integer(value), pos

    def _decode_bulk_string(self, buffer: Buffer, pos: int) -> Tuple[Response, int]:
        length, pos = self._read_number(buffer, pos)
        if length == -1:
            return Nil, pos
        if length < 0:
            raise ParseError(f"invalid bulk string length {length}")
        if length > self.max_bulk_length:
            raise ParseError(
                f"bulk string length {length} exceeds limit {self.max_bulk_length}"
            )

        # Count payload bytes exactly, a \r inside the payload is data
        end = pos + length
        terminator = bytes(buffer[end:end + len(CRLF)])
        if not CRLF.startswith(terminator):
            raise ParseError("bulk string payload not followed by CRLF")
        if len(terminator) < len(CRLF):
            raise NeedMoreBytes()

        return BulkString(bytes(buffer[pos:end]), self.encoding), end + len(CRLF)


_default_decoder = ResponseDecoder()


def decode(buffer: Buffer, offset: int = 0) -> Tuple[Response, int]:
    """Decode one reply with the default decoder."""
    return _default_decoder.decode(buffer, offset)
