"""Adapter for producers that run to completion synchronously."""

from __future__ import annotations

import logging
from typing import TypeVar

from reportstream.ports import SyncProducer
from reportstream.reporter import Reporter
from reportstream.stream import Stream
from reportstream.subscription import Subscription

log = logging.getLogger("reportstream.adapters")

T = TypeVar("T")


def producer_name(producer: object) -> str:
    return getattr(producer, "__qualname__", None) or getattr(producer, "__name__", None) or type(producer).__name__


class SyncStream(Stream[T]):
    """Runs `producer(reporter)` on the subscribing thread.

    subscribe() blocks until the producer returns. There is no way to stop the
    producer early: subscriptions report `cancellable == False` and dispose()
    only stops forwarding.
    """

    blocking = True
    cancellable = False

    def __init__(self, producer: SyncProducer):
        self._producer = producer
        self.name = producer_name(producer)

    def _run(self, subscription: Subscription[T]) -> None:
        reporter: Reporter[T] = Reporter(subscription.next)
        try:
            self._producer(reporter)
        except Exception as e:
            if subscription.closed:
                log.warning(f"[{subscription.label}] producer failed after dispose: {e!r}")
                return
            subscription.fail(e)
        else:
            subscription.complete()


def from_sync(producer: SyncProducer) -> SyncStream:
    return SyncStream(producer)
