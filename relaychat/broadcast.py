"""
Scatter/gather delivery of one payload to many connections.

The payload is read into memory once, then every recipient gets its own send
task. All tasks are joined before returning and each recipient's outcome lands
in a fixed-size result list, so one broken socket never blocks or cancels
delivery to the others.
"""
import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    connection: object
    error: BaseException = None

    @property
    def ok(self):
        return self.error is None


@dataclass(frozen=True)
class BroadcastResult:
    results: tuple = ()

    def __len__(self):
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def errors(self):
        return [r.error for r in self.results if r.error is not None]

    @property
    def failures(self):
        return [r for r in self.results if r.error is not None]

    @property
    def ok(self):
        return not self.errors

    def log_failures(self, log=logger):
        for r in self.failures:
            log.warning('Send to %r failed: %s', r.connection, r.error)


def read_payload(payload):
    """Return ``payload`` as text. Accepts str, bytes or a readable object."""
    if hasattr(payload, 'read'):
        payload = payload.read()
    if isinstance(payload, (bytes, bytearray, memoryview)):
        payload = bytes(payload).decode('utf-8')
    if not isinstance(payload, str):
        raise TypeError(f'unsupported payload type: {type(payload).__name__}')
    return payload


async def send_message(payload, recipients):
    """Send ``payload`` to every connection in ``recipients`` concurrently."""
    message = read_payload(payload)
    recipients = tuple(recipients)
    if not recipients:
        return BroadcastResult()

    outcomes = await asyncio.gather(
        *[conn.send(message) for conn in recipients],
        return_exceptions=True,
    )
    results = []
    for conn, outcome in zip(recipients, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        error = outcome if isinstance(outcome, BaseException) else None
        results.append(SendResult(conn, error))
    return BroadcastResult(tuple(results))
