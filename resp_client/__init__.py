"""
resp-client: Key-Value Store Protocol Client

A small synchronous client for the RESP wire protocol. Commands are
encoded as arrays of bulk strings, replies are decoded into typed
Response values, and a Connection drives one round trip at a time over
any already-connected duplex byte stream.
"""

from .network.connection import Connection
from .protocol.errors import ClientError, ConnectionError, ParseError

__version__ = "1.0.0"

__all__ = ["Connection", "ClientError", "ConnectionError", "ParseError"]
