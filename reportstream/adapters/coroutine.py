"""Adapter for producers that are coroutine functions.

subscribe() schedules the producer as a task and returns immediately; values
and the terminal signal arrive later from the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Coroutine, TypeVar

from reportstream.adapters.sync import producer_name
from reportstream.errors import ProducerCancelled
from reportstream.ports import AsyncProducer
from reportstream.reporter import Reporter
from reportstream.stream import Stream
from reportstream.subscription import Subscription

log = logging.getLogger("reportstream.adapters")

T = TypeVar("T")


class AsyncStream(Stream[T]):
    """Runs `await producer(reporter)` as an asyncio task per subscription.

    Disposal silences further reports but leaves the task running until the
    producer returns on its own.
    """

    blocking = False
    cancellable = False

    def __init__(self, producer: Any, *, loop: asyncio.AbstractEventLoop | None = None):
        self._producer = producer
        self._loop = loop
        self.name = producer_name(producer)

    def _invoke(self, reporter: Reporter[T], subscription: Subscription[T]) -> Awaitable[None]:
        return self._producer(reporter)

    def _run(self, subscription: Subscription[T]) -> None:
        coro = self._drive(subscription, Reporter(subscription.next))
        try:
            subscription.task = self._schedule(coro)
        except RuntimeError:
            coro.close()
            subscription.dispose()
            raise

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> Any:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self._loop is None:
            if running is None:
                raise RuntimeError(
                    f"{self.name}: subscribe from a running event loop or pass loop= to the adapter"
                )
            return running.create_task(coro)

        if running is self._loop:
            return self._loop.create_task(coro)
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    async def _drive(self, subscription: Subscription[T], reporter: Reporter[T]) -> None:
        try:
            await self._invoke(reporter, subscription)
        except asyncio.CancelledError:
            subscription.dispose()
            raise
        except ProducerCancelled as e:
            if subscription.closed:
                log.debug(f"[{subscription.label}] producer stopped after cancel")
                return
            self._signal_failure(subscription, e)
        except Exception as e:
            if subscription.closed:
                log.warning(f"[{subscription.label}] producer failed after dispose: {e!r}")
                return
            self._signal_failure(subscription, e)
        else:
            try:
                subscription.complete()
            except Exception:
                log.exception(f"[{subscription.label}] completion handler error")

    def _signal_failure(self, subscription: Subscription[T], error: Exception) -> None:
        try:
            subscription.fail(error)
        except Exception:
            log.exception(f"[{subscription.label}] unhandled producer failure")


def from_async(producer: AsyncProducer, *, loop: asyncio.AbstractEventLoop | None = None) -> AsyncStream:
    return AsyncStream(producer, loop=loop)
