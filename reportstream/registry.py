"""Adapter registry.

Maps a producer kind to its adapter so callers holding a kind name (from
config or a plugin table) don't need to import each adapter. Callers should
depend on the `StreamSource` port.
"""

from __future__ import annotations

from typing import Any, Callable

from reportstream.ports import StreamSource

STREAM_KINDS = ("sync", "async", "cancellable")


def create_stream(kind: str, producer: Callable[..., Any], **kwargs: Any) -> StreamSource:
    kind = (kind or "").strip().lower()

    if kind == "sync":
        from reportstream.adapters.sync import from_sync

        if kwargs:
            # A synchronous producer runs on the subscriber's thread; there is nothing to configure.
            raise TypeError(f"sync streams do not accept extra args: {sorted(kwargs.keys())}")
        stream = from_sync(producer)
        if not isinstance(stream, StreamSource):
            raise TypeError("sync adapter does not satisfy StreamSource port")
        return stream

    if kind == "async":
        from reportstream.adapters.coroutine import from_async

        stream = from_async(producer, **kwargs)
        if not isinstance(stream, StreamSource):
            raise TypeError("async adapter does not satisfy StreamSource port")
        return stream

    if kind == "cancellable":
        from reportstream.adapters.cancellable import from_cancellable

        stream = from_cancellable(producer, **kwargs)
        if not isinstance(stream, StreamSource):
            raise TypeError("cancellable adapter does not satisfy StreamSource port")
        return stream

    raise ValueError(f"Unknown stream kind: {kind!r}, expected one of {STREAM_KINDS}")
