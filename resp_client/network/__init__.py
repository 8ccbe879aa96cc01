"""Network module for resp-client."""

from .connection import Connection
from .stream import SocketStream, Stream

__all__ = ["Connection", "SocketStream", "Stream"]
