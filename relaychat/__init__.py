"""WebSocket chat relay: connection registry, broadcast engine and chat room."""
from .broadcast import BroadcastResult, SendResult, send_message
from .connection import Connection, ConnectionState
from .errors import (
    Cancelled,
    ConnectionClosedError,
    ConnectionStateError,
    DeadlineExceeded,
    DecodeError,
    NotFoundError,
    RelayError,
)
from .interval import do_every, send_on_interval
from .message import Control, decode
from .registry import ConnectionRegistry, SlotRegistry
from .room import Room
from .user import User

__version__ = '0.1.0'
