"""
Duplex Stream Adapters

Connection talks to anything with ``read(size) -> bytes`` and
``write(data)``. SocketStream adapts a connected socket to that shape and
is where an optional read/write deadline lives.
"""

import socket
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Stream(Protocol):
    """A connected duplex byte stream."""

    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes, or b'' at end of stream."""
        ...

    def write(self, data: bytes) -> Optional[int]:
        """Write ``data`` and return how many bytes were accepted.

        Returning 0 or None means nothing was written; Connection treats
        that as a dead stream rather than retrying forever.
        """
        ...


class SocketStream:
    """
    Stream over an already-connected socket.

    The socket is borrowed: SocketStream never connects or closes it.

    Args:
        sock: Connected socket
        timeout: Seconds before a blocked send/recv raises socket.timeout.
            None leaves the socket's current timeout untouched.
    """

    def __init__(self, sock: socket.socket, timeout: Optional[float] = None):
        self.socket = sock
        if timeout is not None:
            self.socket.settimeout(timeout)

    def read(self, size: int) -> bytes:
        return self.socket.recv(size)

    def write(self, data: bytes) -> int:
        self.socket.sendall(data)
        return len(data)

    def __repr__(self) -> str:
        return f"SocketStream(fd={self.socket.fileno()})"
