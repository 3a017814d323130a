"""Adapter for coroutine producers that accept a cancel signal."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from reportstream.adapters.coroutine import AsyncStream
from reportstream.ports import CancellableProducer
from reportstream.reporter import Reporter
from reportstream.subscription import Subscription

T = TypeVar("T")


class CancellableStream(AsyncStream[T]):
    """Runs `await producer(reporter, signal)`; dispose() sets the signal.

    The producer is expected to notice the signal and return (or raise
    ProducerCancelled). It is never interrupted from outside.
    """

    cancellable = True

    def _invoke(self, reporter: Reporter[T], subscription: Subscription[T]) -> Awaitable[None]:
        return self._producer(reporter, subscription.cancel_signal)


def from_cancellable(
    producer: CancellableProducer, *, loop: asyncio.AbstractEventLoop | None = None
) -> CancellableStream:
    return CancellableStream(producer, loop=loop)
