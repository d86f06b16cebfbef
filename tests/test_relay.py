import asyncio

from relaychat import relay
from relaychat.registry import ConnectionRegistry


async def test_run_serves_the_registry_it_was_given(monkeypatch, eventually):
    handlers = []

    class RecordingServe:
        def __init__(self, handler, host, port):
            handlers.append(handler)

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc_info):
            return False

    monkeypatch.setattr(relay.websockets, 'serve', RecordingServe)
    mine = ConnectionRegistry()

    task = asyncio.create_task(relay.run(0, registry=mine))
    await eventually(lambda: handlers)
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

    assert handlers[0].__self__ is mine
