"""
One client's duplex socket.

A Connection is OPEN from the moment the upgrade succeeds until something closes
it: its own read loop on a read error, a registry removal, or a room shutdown.
CLOSED is terminal. Sends to a closed connection are dropped silently so that a
broadcaster never trips over a client that just left.
"""
import asyncio
import enum
import logging

import websockets

from .errors import ConnectionClosedError, ConnectionStateError

logger = logging.getLogger(__name__)

# what a read loop treats as "the client went away"
READ_ERRORS = (websockets.ConnectionClosed, ConnectionClosedError, OSError)


class ConnectionState(enum.Enum):
    OPEN = 'open'
    CLOSED = 'closed'


class Connection:
    """Wraps a websocket (anything with async send/recv/close)."""

    def __init__(self, socket):
        self._socket = socket
        self._state = ConnectionState.OPEN
        self._lock = asyncio.Lock()
        self._close_callbacks = []

    def __repr__(self):
        return f'<Connection {self.remote_address} {self._state.value}>'

    @property
    def socket(self):
        return self._socket

    @property
    def state(self):
        return self._state

    @property
    def active(self):
        return self._state is ConnectionState.OPEN

    @property
    def remote_address(self):
        return getattr(self._socket, 'remote_address', None)

    def is_active(self):
        return self.active

    def set_active(self, flag):
        if flag:
            if not self.active:
                raise ConnectionStateError(f'{self!r} cannot be reopened')
            return
        self.mark_closed()

    def add_close_callback(self, callback):
        """Call ``callback(connection)`` once, when this connection closes.

        If it is already closed the callback runs immediately.
        """
        if not self.active:
            callback(self)
            return
        self._close_callbacks.append(callback)

    def mark_closed(self):
        """Move to CLOSED without touching the socket. Returns True on the transition."""
        if self._state is ConnectionState.CLOSED:
            return False
        self._state = ConnectionState.CLOSED
        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            callback(self)
        return True

    async def send(self, payload):
        """Write ``payload`` as one frame. A no-op once the connection is closed."""
        if not self.active:
            return
        async with self._lock:
            # closed while we waited for the previous writer
            if not self.active or self._socket is None:
                return
            await self._socket.send(payload)

    async def recv(self):
        if not self.active or self._socket is None:
            raise ConnectionClosedError(f'{self!r} is closed')
        return await self._socket.recv()

    async def close(self):
        """Close the socket and mark the connection CLOSED. Safe to call repeatedly."""
        self.mark_closed()
        async with self._lock:
            socket, self._socket = self._socket, None
            if socket is None:
                return
            try:
                await socket.close()
            except Exception as e:
                logger.debug('Error closing %r: %s', socket, e)
