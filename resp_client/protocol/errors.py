"""
Protocol Error Definitions

Every failure in the client core is reported as a subclass of ClientError.
After any of them the owning Connection should be discarded; the client
never tries to resynchronize a corrupted byte stream.
"""


class ClientError(Exception):
    """Base class for all resp-client errors."""


class ParseError(ClientError):
    """
    A command or reply could not be parsed.

    Raised for mismatched quoting in a command line, an unexpected leading
    byte in a reply, or a malformed length/integer field.
    """


class UnknownCommandError(ParseError):
    """The command name is not accepted by the active validator."""


class ArityError(ParseError):
    """The command was given the wrong number of arguments."""


class ConnectionError(ClientError):
    """
    The underlying stream failed.

    Raised on I/O errors while writing or reading, and when the stream
    reaches end-of-file before a complete reply was decoded.
    """


class NeedMoreBytes(Exception):
    """
    The buffer holds only part of a reply.

    Not an error: the decoder raises it so the caller can read more bytes
    and try again. Connection never lets it escape.
    """
