"""
Pytest configuration and fakes for relaychat tests.
"""
import asyncio

import pytest
import websockets

_HANG_UP = object()


class FakeSocket:
    """Stands in for a websockets connection: records sends, replays fed frames."""

    def __init__(self, name='client', fail_with=None):
        self.remote_address = (name, 0)
        self.name = name
        self.sent = []
        self.fail_with = fail_with
        self.close_calls = 0
        self._inbox = asyncio.Queue()

    def __repr__(self):
        return f'<FakeSocket {self.name}>'

    @property
    def closed(self):
        return self.close_calls > 0

    async def send(self, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(message)

    async def recv(self):
        frame = await self._inbox.get()
        if frame is _HANG_UP:
            raise websockets.ConnectionClosed(None, None)
        return frame

    async def close(self):
        self.close_calls += 1

    def feed(self, frame):
        self._inbox.put_nowait(frame)

    def hang_up(self):
        self._inbox.put_nowait(_HANG_UP)


@pytest.fixture
def make_socket():
    def factory(name='client', **kwargs):
        return FakeSocket(name, **kwargs)
    return factory


@pytest.fixture
def eventually():
    """Wait until ``predicate()`` is true, failing after ``timeout`` seconds."""
    async def wait(predicate, timeout=1.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError('condition not met in time')
            await asyncio.sleep(0.001)
    return wait
