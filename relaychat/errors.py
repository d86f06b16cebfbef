"""Exceptions raised by the relay core."""


class RelayError(Exception):
    """Base class for relaychat errors."""


class NotFoundError(RelayError, LookupError):
    """Raised when removing a connection or user the registry does not track."""

    def __init__(self, item):
        super().__init__(f'Not found: {item!r}')
        self.item = item


class ConnectionStateError(RelayError):
    """Raised on an illegal lifecycle transition (a closed connection never reopens)."""


class ConnectionClosedError(RelayError):
    """Raised when reading from a connection that is closed or has no socket."""


class DecodeError(RelayError, ValueError):
    """A control message in an inbound frame could not be decoded."""

    def __init__(self, msg, doc='', pos=None):
        super().__init__(msg if pos is None else f'{msg} (char {pos})')
        self.msg = msg
        self.doc = doc
        self.pos = pos


class Cancelled(RelayError):
    """Returned by do_every when its stop event is set."""


class DeadlineExceeded(RelayError, TimeoutError):
    """Returned by do_every when its timeout elapses."""
