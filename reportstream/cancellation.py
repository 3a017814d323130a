"""Cooperative cancellation signal for producers."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable

from reportstream.errors import ProducerCancelled

log = logging.getLogger("reportstream.cancellation")


class CancelSignal:
    """Set once when the owning subscription is disposed.

    Producers may poll `cancelled`, call `raise_if_cancelled()`, await
    `wait()` from a coroutine, or block on `wait_sync()` from a thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = self._callbacks
            self._callbacks = []

        for cb in callbacks:
            try:
                cb()
            except Exception:
                log.exception("Cancel callback error")

    def add_callback(self, cb: Callable[[], None]) -> None:
        """Run cb once the signal is set (immediately if it already is)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(cb)
                return
        cb()

    def remove_callback(self, cb: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(cb)
            except ValueError:
                pass

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ProducerCancelled("producer cancelled")

    def wait_sync(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    async def wait(self) -> None:
        """Suspend until the signal is set. Safe to set from any thread."""
        if self._event.is_set():
            return

        loop = asyncio.get_running_loop()
        fut: asyncio.Future[None] = loop.create_future()

        def _resolve() -> None:
            if not fut.done():
                fut.set_result(None)

        def _wake() -> None:
            loop.call_soon_threadsafe(_resolve)

        self.add_callback(_wake)
        try:
            await fut
        finally:
            self.remove_callback(_wake)

    def __repr__(self) -> str:
        return f"CancelSignal(cancelled={self.cancelled})"
