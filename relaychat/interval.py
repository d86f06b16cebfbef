"""Run a callback on a fixed interval until stopped."""
import asyncio
import json
import logging
from datetime import datetime

from .errors import Cancelled, DeadlineExceeded

logger = logging.getLogger(__name__)

# running interval senders; the loop itself only keeps weak references
_tasks = set()


async def do_every(interval, func, *, stop=None, timeout=None):
    """Call ``func(now)`` every ``interval`` seconds.

    Runs until ``stop`` (an asyncio.Event) is set or ``timeout`` seconds have
    passed, and returns the reason as a Cancelled or DeadlineExceeded instance.
    ``func`` may be a plain function or a coroutine function.
    """
    loop = asyncio.get_running_loop()
    if stop is None:
        stop = asyncio.Event()
    deadline = None if timeout is None else loop.time() + timeout
    next_tick = loop.time() + interval

    while True:
        wait = next_tick - loop.time()
        if deadline is not None and deadline <= next_tick:
            wait = deadline - loop.time()
        try:
            await asyncio.wait_for(stop.wait(), timeout=max(wait, 0))
        except asyncio.TimeoutError:
            pass
        if stop.is_set():
            return Cancelled('stopped')
        if deadline is not None and loop.time() >= deadline:
            return DeadlineExceeded(f'deadline of {timeout}s exceeded')

        result = func(datetime.now())
        if asyncio.iscoroutine(result):
            await result
        next_tick += interval
        # skip ticks we missed while func ran, like a ticker dropping them
        now = loop.time()
        if next_tick <= now:
            next_tick = now + interval


def send_on_interval(registry, interval=2.0, timeout=100.0):
    """Broadcast ``{"x": "<second>", "y": 1}`` to ``registry`` every ``interval`` seconds.

    Returns a function that stops the loop.
    """
    stop = asyncio.Event()

    async def tick(now):
        logger.info('Sending a message')
        result = await registry.send_all(json.dumps({'x': str(now.second), 'y': 1}))
        result.log_failures(logger)

    task = asyncio.create_task(do_every(interval, tick, stop=stop, timeout=timeout))
    _tasks.add(task)
    task.add_done_callback(_log_done)
    return stop.set


def _log_done(task):
    _tasks.discard(task)
    if task.cancelled():
        return
    if task.exception() is not None:
        logger.error('Interval sender failed', exc_info=task.exception())
    else:
        logger.info('Interval sender stopped: %s', task.result())
