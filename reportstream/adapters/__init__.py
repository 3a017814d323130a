"""Adapters that turn reporting producers into cold streams."""

from reportstream.adapters.cancellable import CancellableStream, from_cancellable
from reportstream.adapters.coroutine import AsyncStream, from_async
from reportstream.adapters.sync import SyncStream, from_sync

__all__ = [
    "AsyncStream",
    "CancellableStream",
    "SyncStream",
    "from_async",
    "from_cancellable",
    "from_sync",
]
