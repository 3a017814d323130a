"""Cold stream base class.

A Stream holds no per-execution state. Every subscribe() opens a fresh
Subscription and runs the stream's logic for it, so re-subscribing re-runs the
producer from scratch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, AsyncIterator, Callable, Generic, TypeVar

from reportstream.ports import Observer, OnComplete, OnError, OnNext
from reportstream.subscription import CallbackObserver, Subscription

if TYPE_CHECKING:
    from reportstream.operators import Operator


T = TypeVar("T")
U = TypeVar("U")


class Stream(Generic[T]):
    """Base for adapter streams and operator chains.

    Subclasses implement _run(subscription). `blocking` is True when
    subscribe() runs the producer on the caller's thread until it finishes;
    `cancellable` is True when disposal reaches the producer as a signal.
    """

    blocking: bool = False
    cancellable: bool = False
    name: str = "stream"

    def open(self, observer: Observer[T]) -> Subscription[T]:
        """Create a subscription without starting it."""
        return Subscription(observer, cancellable=self.cancellable, name=self.name)

    def start(self, subscription: Subscription[T]) -> None:
        """Run this stream for an opened subscription."""
        if not subscription.start():
            return
        self._run(subscription)

    def _run(self, subscription: Subscription[T]) -> None:
        raise NotImplementedError

    def subscribe(
        self,
        on_next: OnNext | None = None,
        on_error: OnError | None = None,
        on_complete: OnComplete | None = None,
    ) -> Subscription[T]:
        return self.subscribe_observer(CallbackObserver(on_next, on_error, on_complete))

    def subscribe_observer(self, observer: Observer[T]) -> Subscription[T]:
        subscription = self.open(observer)
        self.start(subscription)
        return subscription

    def pipe(self, *operators: "Operator") -> "Stream":
        stream: Stream = self
        for op in operators:
            stream = op(stream)
        return stream

    def map(self, fn: Callable[[T], U]) -> "Stream[U]":
        from reportstream.operators import map_values

        return map_values(fn)(self)

    def filter(self, predicate: Callable[[T], bool]) -> "Stream[T]":
        from reportstream.operators import filter_values

        return filter_values(predicate)(self)

    def sample(self, period_s: float | None = None) -> "Stream[T]":
        from reportstream.operators import sample

        return sample(period_s)(self)

    def timeout(self, seconds: float) -> "Stream[T]":
        from reportstream.operators import timeout

        return timeout(seconds)(self)

    def __aiter__(self) -> AsyncIterator[T]:
        from reportstream.pipeline import iter_stream

        return iter_stream(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
