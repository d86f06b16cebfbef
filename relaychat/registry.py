"""
Registry of live connections with slot reuse.

Entries are never deleted. Removing one closes it in place, and the next add
overwrites the lowest closed slot instead of growing the list. Closed slots are
tracked in a min-heap fed by each connection's close callback, so insertion cost
does not depend on how much churn the registry has seen.
"""
import heapq
import logging
import threading

from .broadcast import send_message
from .connection import READ_ERRORS, Connection
from .errors import NotFoundError

logger = logging.getLogger(__name__)


class SlotRegistry:
    """Ordered slots of items that each own a Connection.

    ``connection_of`` maps an item to its Connection; by default the item is
    the connection itself.
    """

    def __init__(self, connection_of=None):
        self._slots = []
        self._free = []
        self._lock = threading.Lock()
        self._connection_of = connection_of or (lambda item: item)

    def __len__(self):
        with self._lock:
            return len(self._slots)

    def __getitem__(self, index):
        with self._lock:
            return self._slots[index]

    def __iter__(self):
        return iter(self.snapshot())

    def __contains__(self, item):
        with self._lock:
            return any(slot is item for slot in self._slots)

    def snapshot(self):
        with self._lock:
            return list(self._slots)

    def active(self):
        return [item for item in self.snapshot() if self._connection_of(item).active]

    def active_count(self):
        return len(self.active())

    def add(self, item):
        """Store ``item`` in the lowest closed slot, or append it. Returns the slot index."""
        with self._lock:
            index = self._pop_free()
            if index is None:
                index = len(self._slots)
                self._slots.append(item)
            else:
                self._slots[index] = item
        # may fire immediately if the connection is already closed, so outside the lock
        self._connection_of(item).add_close_callback(lambda conn: self._release(index, item))
        return index

    async def remove(self, item):
        """Close ``item``'s connection in place. Raises NotFoundError if untracked."""
        if item not in self:
            raise NotFoundError(item)
        await self._connection_of(item).close()

    async def close_all(self):
        for item in self.snapshot():
            await self._connection_of(item).close()

    def _pop_free(self):
        while self._free:
            index = heapq.heappop(self._free)
            if not self._connection_of(self._slots[index]).active:
                return index
        return None

    def _release(self, index, item):
        with self._lock:
            # the slot may already hold a newer item
            if index < len(self._slots) and self._slots[index] is item and index not in self._free:
                heapq.heappush(self._free, index)


class ConnectionRegistry(SlotRegistry):
    """Tracks raw connections and relays frames between them."""

    async def send_all(self, payload):
        return await send_message(payload, self.snapshot())

    async def relay(self, payload, sender):
        others = [conn for conn in self.snapshot() if conn is not sender]
        return await send_message(payload, others)

    async def handler(self, websocket):
        """websockets handler: every inbound frame goes verbatim to every other client."""
        conn = Connection(websocket)
        self.add(conn)
        addr = conn.remote_address
        logger.info('[+] %s  (%d connected)', addr, self.active_count())
        try:
            while True:
                try:
                    frame = await conn.recv()
                except READ_ERRORS:
                    break
                try:
                    result = await self.relay(frame, conn)
                except ValueError as e:
                    logger.warning('Dropping frame from %s: %s', addr, e)
                    continue
                result.log_failures(logger)
        finally:
            await conn.close()
            logger.info('[-] %s  (%d connected)', addr, self.active_count())
