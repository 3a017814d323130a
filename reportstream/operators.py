"""Downstream operators: map, filter, sample, timeout.

Each operator is a function returning `Operator` (Stream -> Stream) so chains
can be built with Stream.pipe(). Operator streams stay cold: subscribing opens
a subscription on the source, and disposing the downstream subscription
disposes the upstream one.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, TypeVar

from reportstream.config import load_config
from reportstream.errors import StreamError, StreamTimeoutError
from reportstream.ports import Observer
from reportstream.stream import Stream
from reportstream.subscription import Subscription

log = logging.getLogger("reportstream.operators")

T = TypeVar("T")
U = TypeVar("U")

Operator = Callable[[Stream[Any]], Stream[Any]]


class _Forward:
    """Upstream observer that relays everything to a downstream subscription."""

    def __init__(self, downstream: Subscription[Any]):
        self.downstream = downstream

    def on_next(self, value: Any) -> None:
        self.downstream.next(value)

    def on_error(self, error: BaseException) -> None:
        self.downstream.fail(error)

    def on_complete(self) -> None:
        self.downstream.complete()


class _Map(_Forward):
    def __init__(self, downstream: Subscription[Any], fn: Callable[[Any], Any]):
        super().__init__(downstream)
        self.fn = fn

    def on_next(self, value: Any) -> None:
        self.downstream.next(self.fn(value))


class _Filter(_Forward):
    def __init__(self, downstream: Subscription[Any], predicate: Callable[[Any], bool]):
        super().__init__(downstream)
        self.predicate = predicate

    def on_next(self, value: Any) -> None:
        if self.predicate(value):
            self.downstream.next(value)


class OperatorStream(Stream[T]):
    """A stream derived from a source stream."""

    def __init__(self, source: Stream[Any], label: str):
        self.source = source
        self.blocking = source.blocking
        self.cancellable = source.cancellable
        self.name = f"{source.name}|{label}"

    def _observer(self, downstream: Subscription[T]) -> Observer[Any]:
        return _Forward(downstream)

    def _run(self, subscription: Subscription[T]) -> None:
        upstream = self.source.open(self._observer(subscription))
        subscription.add_teardown(upstream.dispose)
        try:
            self._before_start(subscription, upstream)
            self.source.start(upstream)
        except BaseException:
            subscription.dispose()
            raise
        subscription.task = upstream.task

    def _before_start(self, subscription: Subscription[T], upstream: Subscription[Any]) -> None:
        pass


class MapStream(OperatorStream[U]):
    def __init__(self, source: Stream[Any], fn: Callable[[Any], U]):
        super().__init__(source, "map")
        self.fn = fn

    def _observer(self, downstream: Subscription[U]) -> Observer[Any]:
        return _Map(downstream, self.fn)


class FilterStream(OperatorStream[T]):
    def __init__(self, source: Stream[T], predicate: Callable[[T], bool]):
        super().__init__(source, "filter")
        self.predicate = predicate

    def _observer(self, downstream: Subscription[T]) -> Observer[Any]:
        return _Filter(downstream, self.predicate)


class _Sampler:
    """Holds the latest upstream value and forwards it at each period boundary.

    on_next only touches `_lock` briefly, so a fast producer is never held up
    by a slow consumer. `_emit_lock` orders boundary emissions against the
    terminal signals.
    """

    def __init__(self, downstream: Subscription[Any], period_s: float):
        self.downstream = downstream
        self.period_s = period_s
        self._lock = threading.Lock()
        self._emit_lock = threading.Lock()
        self._latest: Any = None
        self._has_value = False
        self._upstream_done = False
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._tick_loop,
            name=f"reportstream-sample-{downstream.id}",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def on_next(self, value: Any) -> None:
        with self._lock:
            self._latest = value
            self._has_value = True

    def on_error(self, error: BaseException) -> None:
        self.stop()
        with self._emit_lock:
            self.downstream.fail(error)

    def on_complete(self) -> None:
        with self._emit_lock:
            with self._lock:
                if self._has_value:
                    # Flushed at the next boundary.
                    self._upstream_done = True
                    return
            self.stop()
            self.downstream.complete()

    def _tick_loop(self) -> None:
        while not self._stop.wait(self.period_s):
            self._tick()

    def _tick(self) -> None:
        with self._emit_lock:
            with self._lock:
                emit = self._has_value
                value = self._latest
                done = self._upstream_done
                self._has_value = False
                self._latest = None

            try:
                if emit:
                    self.downstream.next(value)
            except Exception as e:
                self.stop()
                self._fail_from_ticker(e)
                return

            if done:
                self.stop()
                try:
                    self.downstream.complete()
                except Exception:
                    log.exception(f"[{self.downstream.label}] completion handler error")

    def _fail_from_ticker(self, error: Exception) -> None:
        try:
            self.downstream.fail(error)
        except Exception:
            log.exception(f"[{self.downstream.label}] consumer error in sample")


class SampleStream(OperatorStream[T]):
    def __init__(self, source: Stream[T], period_s: float):
        if period_s <= 0:
            raise ValueError(f"sample period must be positive, got {period_s!r}")
        super().__init__(source, f"sample({period_s}s)")
        self.period_s = period_s

    def _run(self, subscription: Subscription[T]) -> None:
        sampler = _Sampler(subscription, self.period_s)
        subscription.add_teardown(sampler.stop)
        upstream = self.source.open(sampler)
        subscription.add_teardown(upstream.dispose)
        try:
            sampler.start()
            self.source.start(upstream)
        except BaseException:
            subscription.dispose()
            raise
        subscription.task = upstream.task


class TimeoutStream(OperatorStream[T]):
    """Fails with StreamTimeoutError if the source has not terminated in time.

    On expiry the upstream subscription is disposed, which sets a cooperative
    producer's cancel signal.
    """

    def __init__(self, source: Stream[T], seconds: float):
        if seconds <= 0:
            raise ValueError(f"timeout must be positive, got {seconds!r}")
        super().__init__(source, f"timeout({seconds}s)")
        self.seconds = seconds

    def _before_start(self, subscription: Subscription[T], upstream: Subscription[Any]) -> None:
        def _expire() -> None:
            error = StreamTimeoutError(f"{self.source.name} did not finish within {self.seconds}s")
            try:
                if subscription.fail(error):
                    log.info(f"[{subscription.label}] timed out after {self.seconds}s")
            except StreamError:
                log.warning(f"[{subscription.label}] timed out after {self.seconds}s with no error handler")

        timer = threading.Timer(self.seconds, _expire)
        timer.daemon = True
        subscription.add_teardown(timer.cancel)
        timer.start()


def map_values(fn: Callable[[T], U]) -> Operator:
    def _op(source: Stream[Any]) -> Stream[Any]:
        return MapStream(source, fn)

    return _op


def filter_values(predicate: Callable[[T], bool]) -> Operator:
    def _op(source: Stream[Any]) -> Stream[Any]:
        return FilterStream(source, predicate)

    return _op


def sample(period_s: float | None = None) -> Operator:
    """Forward only the latest value per period (default: REPORTSTREAM_SAMPLE_PERIOD_S)."""
    period = load_config().sample_period_s if period_s is None else period_s

    def _op(source: Stream[Any]) -> Stream[Any]:
        return SampleStream(source, period)

    return _op


def timeout(seconds: float) -> Operator:
    def _op(source: Stream[Any]) -> Stream[Any]:
        return TimeoutStream(source, seconds)

    return _op
