"""
Connection Module

Drives one request/response round trip at a time over a duplex stream
that the caller has already connected.

Round trip:
    1. Encode the command line with the CommandEncoder
    2. Write every encoded byte to the stream
    3. Read into an accumulation buffer until the ResponseDecoder can
       decode one complete reply from its front
    4. Drop the consumed bytes and return the reply

The protocol has no request IDs, so a Connection must never be shared by
two callers at once. There is no locking here: use one Connection per
thread or serialize access externally.
"""

import logging
from typing import Iterable, Optional, Union

from ..config.settings import settings
from ..protocol.decoder import DecodeState, ResponseDecoder
from ..protocol.encoder import CommandEncoder, quote
from ..protocol.errors import ConnectionError, NeedMoreBytes
from ..protocol.response import Response
from .stream import SocketStream, Stream

logger = logging.getLogger(__name__)


class Connection:
    """
    Synchronous client connection.

    Usage:
        sock = socket.create_connection(("127.0.0.1", 6379))
        conn = Connection("127.0.0.1", 6379, sock)
        conn.set("greeting", "hello world")
        conn.get("greeting")          # BulkString(b'hello world')

    After a ParseError or ConnectionError the buffered state is undefined;
    discard the Connection and open a new stream.

    Attributes:
        host: Server host the stream is connected to
        port: Server port the stream is connected to
        stream: The duplex stream (a socket is wrapped in SocketStream)
        encoder: CommandEncoder for outgoing commands
        decoder: ResponseDecoder for incoming replies
    """

    def __init__(
            self,
            host: str,
            port: int,
            stream,
            encoder: CommandEncoder = None,
            decoder: ResponseDecoder = None,
            read_size: int = None,
    ):
        self.host = host
        self.port = port
        if hasattr(stream, "recv") and hasattr(stream, "sendall"):
            stream = SocketStream(stream)
        self.stream: Stream = stream
        self.encoder = encoder if encoder is not None else CommandEncoder()
        self.decoder = decoder if decoder is not None else ResponseDecoder()
        self.read_size = read_size if read_size is not None else settings.READ_BUFFER_SIZE

        # Bytes read but not yet decoded
        self._buffer = bytearray()

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def __repr__(self) -> str:
        return f"Connection({self.address})"

    # ------------------------------------------------------------------
    # Round trip
    # ------------------------------------------------------------------

    def send_raw_request(self, command: str) -> Response:
        """
        Send a raw command line and return the decoded reply.

        Args:
            command: Command line, e.g. "SET key 'a value'"

        Returns:
            The decoded Response. Server errors come back as Error values,
            they are not raised.

        Raises:
            ParseError: The command quoting is broken or the reply is
                malformed.
            ConnectionError: The stream failed or closed mid-reply.
        """
        return self._round_trip(self.encoder.encode(command))

    def execute(self, *args: str) -> Response:
        """Send already-split arguments, bypassing the quoting rules."""
        return self._round_trip(self.encoder.encode_tokens(list(args)))

    def _round_trip(self, request: bytes) -> Response:
        # Lazy formatting: a large reply is only rendered when DEBUG is on
        logger.debug("%s <- %r", self.address, request)
        self._write_all(request)
        response = self._read_response()
        logger.debug("%s -> %r", self.address, response)
        return response

    def _write_all(self, data: bytes) -> None:
        view = memoryview(data)
        try:
            while view:
                written = self.stream.write(view)
                if not written:
                    raise ConnectionError(f"stream to {self.address} accepted no bytes")
                view = view[written:]

            flush = getattr(self.stream, "flush", None)
            if flush is not None:
                flush()
        except OSError as exc:
            logger.warning(f"Write to {self.address} failed: {exc}")
            raise ConnectionError(f"write to {self.address} failed: {exc}") from exc

    def _read_response(self) -> Response:
        # Elements decoded before a short read are kept, not parsed again
        state = DecodeState()
        while True:
            try:
                response, consumed = self.decoder.decode(self._buffer, state=state)
            except NeedMoreBytes:
                self._fill_buffer()
                continue

            del self._buffer[:consumed]
            return response

    def _fill_buffer(self) -> None:
        try:
            chunk = self.stream.read(self.read_size)
        except OSError as exc:
            logger.warning(f"Read from {self.address} failed: {exc}")
            raise ConnectionError(f"read from {self.address} failed: {exc}") from exc

        if not chunk:
            raise ConnectionError(
                f"connection to {self.address} closed before a complete response"
            )
        self._buffer.extend(chunk)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def get(self, key: str) -> Response:
        """GET key -> BulkString or Nil."""
        return self.send_raw_request(f"GET {quote(key)}")

    def set(self, key: str, value: str) -> Response:
        """SET key value -> SimpleString('OK')."""
        return self.send_raw_request(f"SET {quote(key)} {quote(value)}")

    def append(self, key: str, value: str) -> Response:
        """APPEND key value -> Integer (new length)."""
        return self.send_raw_request(f"APPEND {quote(key)} {quote(value)}")

    def delete(self, keys: Union[str, Iterable[str]]) -> Response:
        """DEL key [key ...] -> Integer (number of keys removed)."""
        if isinstance(keys, str):
            keys = [keys]
        return self.send_raw_request(" ".join(["DEL"] + [quote(key) for key in keys]))

    def copy(self, source: str, destination: str, replace: bool = False) -> Response:
        """COPY source destination [REPLACE] -> Integer (1 copied, 0 not)."""
        command = f"COPY {quote(source)} {quote(destination)}"
        if replace:
            command += " REPLACE"
        return self.send_raw_request(command)

    def echo(self, text: str) -> Response:
        """ECHO text -> BulkString."""
        return self.send_raw_request(f"ECHO {quote(text)}")

    def ping(self, message: Optional[str] = None) -> Response:
        """PING [message] -> SimpleString('PONG') or BulkString(message)."""
        if message is None:
            return self.send_raw_request("PING")
        return self.send_raw_request(f"PING {quote(message)}")
