#!/usr/bin/env python3
"""
resp-client Command-Line Client

Sends commands to a key-value server and prints replies the way
redis-cli does.

Usage:
    resp-client                              # Interactive, 127.0.0.1:6379
    resp-client --host 1.2.3.4 --port 7000   # Interactive, custom server
    resp-client SET greeting 'hello world'   # One command, then exit
    resp-client --validate GET               # Reject bad commands locally
    resp-client --debug PING                 # Log the wire traffic

Environment Variables:
    RESP_CLIENT_HOST      - Default server host
    RESP_CLIENT_PORT      - Default server port
    RESP_CLIENT_TIMEOUT   - Default socket timeout in seconds
    RESP_CLIENT_DEBUG     - Enable debug logging (true/false)
"""

import argparse
import logging
import socket
import sys
from typing import List, Optional

from .config.settings import settings
from .network.connection import Connection
from .network.stream import SocketStream
from .protocol.commands import KnownCommandValidator
from .protocol.encoder import CommandEncoder, quote
from .protocol.errors import ClientError, ParseError
from .protocol.response import (
    Array,
    BulkString,
    Error,
    Integer,
    NilArray,
    NilBulkString,
    Response,
    SimpleString,
)

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default

logger = logging.getLogger(__name__)


def format_response(response: Response, indent: int = 0) -> str:
    """
    Format a reply for display.

    Examples:
        >>> format_response(SimpleString("OK"))
        'OK'
        >>> format_response(Integer(3))
        '(integer) 3'
        >>> format_response(Error("ERR unknown command"))
        '(error) ERR unknown command'
    """
    if isinstance(response, SimpleString):
        return response.text
    if isinstance(response, Error):
        return f"(error) {response.text}"
    if isinstance(response, Integer):
        return f"(integer) {response.value}"
    if isinstance(response, BulkString):
        text = response.data.decode(settings.ENCODING, errors="backslashreplace")
        return '"' + text.replace('"', '\\"') + '"'
    if isinstance(response, (NilBulkString, NilArray)):
        return "(nil)"
    if isinstance(response, Array):
        if not response.items:
            return "(empty array)"
        width = len(str(len(response.items)))
        lines = []
        for number, item in enumerate(response.items, start=1):
            prefix = f"{number:>{width}}) "
            body = format_response(item, indent + len(prefix))
            lines.append(prefix + body if number == 1 else " " * indent + prefix + body)
        return "\n".join(lines)
    raise TypeError(f"not a response: {response!r}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="resp-client: key-value store command-line client",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Server host",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Server port",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.SOCKET_TIMEOUT,
        help="Socket timeout in seconds (none waits forever)",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Reject unknown commands and wrong argument counts locally",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to send; starts an interactive session when omitted",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


class Session:
    """
    Owns the socket behind a Connection.

    Connection never opens or closes its stream; this is the layer that
    does, and that can throw a broken connection away and start again.
    """

    def __init__(self, host: str, port: int, timeout: Optional[float], encoder: CommandEncoder):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.encoder = encoder
        self.socket: Optional[socket.socket] = None
        self.connection: Optional[Connection] = None

    def connect(self) -> None:
        """Open the socket; raises OSError on failure."""
        self.socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
        stream = SocketStream(self.socket, timeout=self.timeout)
        self.connection = Connection(self.host, self.port, stream, encoder=self.encoder)
        logger.debug(f"Connected to {self.connection.address}")

    def disconnect(self) -> None:
        if self.socket is not None:
            try:
                self.socket.close()
            except OSError as exc:
                logger.debug(f"Error closing socket: {exc}")
            self.socket = None
            self.connection = None

    @property
    def connected(self) -> bool:
        return self.connection is not None

    def send(self, command: str) -> Response:
        if self.connection is None:
            raise ClientError("not connected")
        return self.connection.send_raw_request(command)


def print_help():
    """Print help message."""
    print("""
Commands are sent to the server as typed. Wrap values containing
spaces in single quotes:

  SET greeting 'hello world'
  GET greeting
  APPEND greeting '!'
  DEL greeting other
  COPY src dst
  ECHO 'some text'
  PING

Client Commands:
----------------
  help                      Show this help message
  exit                      Exit the client
  reconnect                 Reconnect to the server
  status                    Show connection status
""")


def run_once(session: Session, command: str) -> int:
    """Send a single command; the exit status is 1 for error replies."""
    try:
        response = session.send(command)
    except ClientError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(format_response(response))
    return 1 if response.is_error else 0


def run_interactive(session: Session) -> int:
    """Read commands until exit or end of input."""
    prompt = f"{session.host}:{session.port}> "
    print("Connected! Type 'help' for commands.\n")

    try:
        while True:
            try:
                command = input(prompt).strip()
            except EOFError:
                print()
                break

            if not command:
                continue

            lower_cmd = command.lower()

            if lower_cmd == "help":
                print_help()
                continue

            if lower_cmd in ("exit", "quit"):
                break

            if lower_cmd == "reconnect":
                session.disconnect()
                try:
                    session.connect()
                    print("Reconnected!")
                except OSError as exc:
                    print(f"Reconnection failed: {exc}")
                continue

            if lower_cmd == "status":
                status = "Connected" if session.connected else "Disconnected"
                print(f"Status: {status}")
                print(f"Server: {session.host}:{session.port}")
                continue

            try:
                # Quoting and validation errors leave the stream untouched
                session.encoder.encode(command)
            except ParseError as exc:
                print(f"ERROR: {exc}")
                continue

            try:
                response = session.send(command)
            except ClientError as exc:
                # The byte stream may be out of sync now, start over
                print(f"ERROR: {exc}")
                session.disconnect()
                print("Connection dropped, type 'reconnect' to continue.")
                continue

            print(format_response(response))

    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the client."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    validator = KnownCommandValidator() if args.validate else None
    session = Session(args.host, args.port, args.timeout, CommandEncoder(validator=validator))

    try:
        session.connect()
    except OSError as exc:
        print(f"Could not connect to {args.host}:{args.port}: {exc}", file=sys.stderr)
        return 1

    try:
        if args.command:
            # Re-quote shell-split words so values with spaces survive
            try:
                command = " ".join(quote(word) for word in args.command)
            except ClientError as exc:
                print(f"ERROR: {exc}", file=sys.stderr)
                return 1
            return run_once(session, command)
        return run_interactive(session)
    finally:
        session.disconnect()


if __name__ == "__main__":
    sys.exit(main())
