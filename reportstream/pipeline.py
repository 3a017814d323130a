"""Consume streams from coroutines.

iter_stream() bridges the push side back into an async iterator:
- the subscription's observer feeds an asyncio.Queue of StreamEvents via
  call_soon_threadsafe, so values pushed from worker threads are safe
- blocking (synchronous-source) streams are started in the loop's executor
- the consumer loop polls the queue so cancellation and idle timeouts are
  checked even while the producer is quiet
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, AsyncIterator, Callable, TypeVar, cast

from reportstream.config import load_config
from reportstream.errors import StreamTimeoutError
from reportstream.ports import StreamEvent
from reportstream.stream import Stream
from reportstream.subscription import CallbackObserver

log = logging.getLogger("reportstream.pipeline")

T = TypeVar("T")


async def iter_stream(
    stream: Stream[T],
    *,
    idle_timeout_s: float | None = None,
    should_cancel: Callable[[], bool] | None = None,
    poll_interval_s: float | None = None,
) -> AsyncIterator[T]:
    """Subscribe to `stream` and yield its values until it terminates.

    Raises the stream's failure, or StreamTimeoutError when no event arrives
    for `idle_timeout_s`. Stops quietly once `should_cancel()` is true.
    Leaving the iterator early disposes the subscription.
    """

    config = load_config()
    poll_s = poll_interval_s if poll_interval_s is not None else config.poll_interval_s
    idle_s = idle_timeout_s if idle_timeout_s is not None else config.idle_timeout_s

    loop = asyncio.get_running_loop()
    event_queue: asyncio.Queue[StreamEvent] = asyncio.Queue()

    def _put(event: StreamEvent) -> None:
        loop.call_soon_threadsafe(event_queue.put_nowait, event)

    observer = CallbackObserver(
        lambda value: _put(("next", value)),
        lambda error: _put(("error", error)),
        lambda: _put(("complete", None)),
    )
    subscription = stream.open(observer)

    starter: asyncio.Future[None] | None = None
    if stream.blocking:
        starter = loop.run_in_executor(None, stream.start, subscription)
    else:
        stream.start(subscription)

    last_event_at = time.monotonic()

    try:
        while True:
            if should_cancel and should_cancel():
                log.debug(f"[{subscription.label}] iteration cancelled by caller")
                break

            if starter is not None and starter.done() and not starter.cancelled():
                exc = starter.exception()
                if exc:
                    raise exc

            if idle_s is not None and (time.monotonic() - last_event_at) >= idle_s:
                raise StreamTimeoutError(f"{stream.name}: no events for {idle_s}s")

            try:
                kind, payload = await asyncio.wait_for(event_queue.get(), timeout=poll_s)
            except asyncio.TimeoutError:
                continue

            last_event_at = time.monotonic()

            if kind == "next":
                yield cast(T, payload)
            elif kind == "error":
                raise cast(BaseException, payload)
            else:
                break
    finally:
        subscription.dispose()


async def collect(stream: Stream[T], **kwargs: Any) -> list[T]:
    """Run `stream` to completion and return every value it produced."""
    return [value async for value in iter_stream(stream, **kwargs)]
