"""Exceptions raised by the sender transaction."""


class SenderError(Exception):
    """Base class for sender failures."""


class NetworkError(SenderError):
    """Raised when the collector cannot be reached, written to, or read from,
    or when it answers with something that is not a sender-protocol reply."""


class ProtocolError(SenderError):
    """Raised when a sender-protocol reply carries an unparseable payload."""
