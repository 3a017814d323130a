"""Ports (interfaces) for stream producers and consumers.

Adapters, operators and the pipeline depend on these contracts rather than on
each other's concrete classes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from reportstream.cancellation import CancelSignal
    from reportstream.reporter import Reporter
    from reportstream.subscription import Subscription


T_contra = TypeVar("T_contra", contravariant=True)

# Event tuple used by the async pipeline: ("next", value) | ("error", exc) | ("complete", None)
StreamEvent = tuple[str, object]

OnNext = Callable[[Any], None]
OnError = Callable[[BaseException], None]
OnComplete = Callable[[], None]

SyncProducer = Callable[["Reporter[Any]"], None]
AsyncProducer = Callable[["Reporter[Any]"], Awaitable[None]]
CancellableProducer = Callable[["Reporter[Any]", "CancelSignal"], Awaitable[None]]


@runtime_checkable
class Observer(Protocol[T_contra]):
    """A consumer of one subscription's signals."""

    def on_next(self, value: T_contra) -> None:
        ...

    def on_error(self, error: BaseException) -> None:
        ...

    def on_complete(self) -> None:
        ...


@runtime_checkable
class StreamSource(Protocol):
    """Anything that can be subscribed to (adapter streams and operator chains)."""

    blocking: bool
    cancellable: bool

    def subscribe(
        self,
        on_next: OnNext | None = None,
        on_error: OnError | None = None,
        on_complete: OnComplete | None = None,
    ) -> "Subscription":
        ...
