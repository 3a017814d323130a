"""Subscription handles and the per-subscription state machine.

One Subscription is one execution of a producer. It owns:
- the terminal guard (a re-entrant lock plus the state field)
- the optional CancelSignal handed to cooperative producers
- teardown callbacks (upstream disposal, operator timers)
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from reportstream.cancellation import CancelSignal
from reportstream.config import StreamConfig, load_config
from reportstream.errors import CancellationUnsupportedError
from reportstream.ports import Observer, OnComplete, OnError, OnNext
from reportstream.report_logging import format_value_preview

log = logging.getLogger("reportstream.subscription")

T = TypeVar("T")

_ids = itertools.count(1)


class SubscriptionState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset(
    {SubscriptionState.COMPLETED, SubscriptionState.FAILED, SubscriptionState.CANCELLED}
)


@dataclass
class CallbackObserver:
    """Observer built from plain callbacks; any of them may be omitted.

    A missing on_error re-raises the failure to whoever signalled it.
    """

    next_fn: OnNext | None = None
    error_fn: OnError | None = None
    complete_fn: OnComplete | None = None

    def on_next(self, value: Any) -> None:
        if self.next_fn is not None:
            self.next_fn(value)

    def on_error(self, error: BaseException) -> None:
        if self.error_fn is None:
            raise error
        self.error_fn(error)

    def on_complete(self) -> None:
        if self.complete_fn is not None:
            self.complete_fn()


class Subscription(Generic[T]):
    """Handle for one running execution of a stream."""

    def __init__(
        self,
        observer: Observer[T],
        *,
        cancellable: bool = False,
        name: str = "stream",
        config: StreamConfig | None = None,
    ):
        self.id = next(_ids)
        self.name = name
        self.cancel_signal: CancelSignal | None = CancelSignal() if cancellable else None
        # asyncio.Task or concurrent.futures.Future for coroutine producers
        self.task: Any = None

        self._observer = observer
        self._lock = threading.RLock()
        self._state = SubscriptionState.CREATED
        self._teardowns: list[Callable[[], None]] = []
        self._torn_down = False

        cfg = config or load_config()
        self._trace = cfg.log_reports
        self._trace_max_len = cfg.log_value_max_len

    @property
    def label(self) -> str:
        return f"{self.name}#{self.id}"

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state.terminal

    @property
    def cancellable(self) -> bool:
        """True if dispose() also asks the producer to stop."""
        return self.cancel_signal is not None

    def start(self) -> bool:
        """Move CREATED -> RUNNING. False if the subscription was disposed first."""
        with self._lock:
            if self._state is not SubscriptionState.CREATED:
                return False
            self._state = SubscriptionState.RUNNING
        log.debug(f"[{self.label}] running")
        return True

    def next(self, value: T) -> None:
        """Forward one value; inert unless RUNNING."""
        with self._lock:
            if self._state is not SubscriptionState.RUNNING:
                return
            if self._trace:
                log.debug(f"[{self.label}] next {format_value_preview(value, self._trace_max_len)}")
            self._observer.on_next(value)

    def complete(self) -> bool:
        if not self._transition(SubscriptionState.COMPLETED):
            return False
        log.debug(f"[{self.label}] completed")
        try:
            self._observer.on_complete()
        finally:
            self._run_teardowns()
        return True

    def fail(self, error: BaseException) -> bool:
        if not self._transition(SubscriptionState.FAILED):
            return False
        log.debug(f"[{self.label}] failed: {error!r}")
        try:
            self._observer.on_error(error)
        finally:
            self._run_teardowns()
        return True

    def dispose(self) -> None:
        """Stop forwarding; signal a cooperative producer to stop. Idempotent."""
        if not self._transition(SubscriptionState.CANCELLED):
            return
        log.debug(f"[{self.label}] disposed")
        try:
            self._run_teardowns()
        finally:
            if self.cancel_signal is not None:
                self.cancel_signal.cancel()

    unsubscribe = dispose

    def cancel(self) -> None:
        """Dispose and require that the producer be told to stop."""
        if self.cancel_signal is None:
            raise CancellationUnsupportedError(
                f"{self.label}: producer does not accept a cancel signal; use dispose() to stop forwarding"
            )
        self.dispose()

    def add_teardown(self, fn: Callable[[], None]) -> None:
        """Register fn to run once at the terminal state (immediately if already past it)."""
        with self._lock:
            if not self._torn_down:
                self._teardowns.append(fn)
                return
        fn()

    def _transition(self, target: SubscriptionState) -> bool:
        # Waits for an in-flight next() on another thread; nothing is forwarded afterwards.
        with self._lock:
            if self._state.terminal:
                return False
            self._state = target
            return True

    def _run_teardowns(self) -> None:
        with self._lock:
            if self._torn_down:
                return
            self._torn_down = True
            teardowns = self._teardowns
            self._teardowns = []
        for fn in teardowns:
            fn()

    def __repr__(self) -> str:
        return f"Subscription({self.label}, state={self._state.value}, cancellable={self.cancellable})"
