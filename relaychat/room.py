"""
Chat room: binds each connection to a User and relays chat text between them.

Every accepted connection gets a read loop that runs for the life of the
connection. A read error means the client is gone: the connection is closed
and the loop ends. A malformed control message only drops the rest of that
frame; the connection stays open.
"""
import asyncio
import itertools
import logging

from . import message
from .broadcast import send_message
from .connection import READ_ERRORS, Connection
from .errors import DecodeError
from .registry import SlotRegistry
from .user import User

logger = logging.getLogger(__name__)


class Room:
    def __init__(self, name='chat'):
        self.name = name
        self._users = SlotRegistry(connection_of=lambda user: user.connection)
        self._names = itertools.count()

    def __len__(self):
        return len(self._users)

    @property
    def users(self):
        return self._users.snapshot()

    def active_users(self):
        return self._users.active()

    def new_user(self, socket):
        return User(Connection(socket), str(next(self._names)))

    async def accept(self, socket):
        """websockets handler: register a new user and listen until it disconnects."""
        user = self.new_user(socket)
        self.add_user(user)
        await self.listen(user)

    def setup_new_user(self, user):
        """Register ``user`` and start its read loop as a background task."""
        self.add_user(user)
        return asyncio.create_task(self.listen(user), name=f'{self.name}-user-{user.name}')

    def add_user(self, user):
        index = self._users.add(user)
        logger.info('New user %s added to %s at slot %d (%d connected)',
                    user, self.name, index, self._users.active_count())
        return index

    async def remove_user(self, user):
        await self._users.remove(user)
        logger.info('User %s removed from %s.', user, self.name)

    async def close_connections(self):
        await self._users.close_all()
        logger.info('Closed all clients in %s.', self.name)

    async def listen(self, user):
        conn = user.connection
        try:
            while True:
                try:
                    frame = await conn.recv()
                except READ_ERRORS:
                    return
                await self.process_message(frame, user)
        finally:
            await conn.close()
            logger.info('Connection closed. %s left %s (%d connected)',
                        user, self.name, self._users.active_count())

    async def process_message(self, frame, user):
        try:
            for control in message.decode(frame, user=user):
                if control.content.text:
                    await self.relay(control.content.text, user)
        except DecodeError as e:
            logger.warning('Bad control message from %s: %s', user, e)

    async def send_all(self, payload):
        recipients = [user.connection for user in self._users.snapshot()]
        result = await send_message(payload, recipients)
        result.log_failures(logger)
        return result

    async def relay(self, payload, sender):
        """Send ``payload`` to every user except ``sender``."""
        recipients = [user.connection for user in self._users.snapshot() if user is not sender]
        result = await send_message(payload, recipients)
        result.log_failures(logger)
        return result
