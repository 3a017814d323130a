"""Bridge callback-reporting producers into cold, composable streams."""

from reportstream.adapters import (
    AsyncStream,
    CancellableStream,
    SyncStream,
    from_async,
    from_cancellable,
    from_sync,
)
from reportstream.cancellation import CancelSignal
from reportstream.config import StreamConfig, load_config
from reportstream.errors import (
    CancellationUnsupportedError,
    ProducerCancelled,
    StreamError,
    StreamTimeoutError,
)
from reportstream.operators import filter_values, map_values, sample, timeout
from reportstream.pipeline import collect, iter_stream
from reportstream.ports import Observer, StreamSource
from reportstream.registry import create_stream
from reportstream.reporter import Reporter
from reportstream.stream import Stream
from reportstream.subscription import CallbackObserver, Subscription, SubscriptionState

__all__ = [
    "AsyncStream",
    "CallbackObserver",
    "CancelSignal",
    "CancellableStream",
    "CancellationUnsupportedError",
    "Observer",
    "ProducerCancelled",
    "Reporter",
    "Stream",
    "StreamConfig",
    "StreamError",
    "StreamSource",
    "StreamTimeoutError",
    "Subscription",
    "SubscriptionState",
    "SyncStream",
    "collect",
    "create_stream",
    "filter_values",
    "from_async",
    "from_cancellable",
    "from_sync",
    "iter_stream",
    "load_config",
    "map_values",
    "sample",
    "timeout",
]
