"""Exceptions raised by reportstream."""

from __future__ import annotations


class StreamError(Exception):
    """Base class for reportstream errors."""


class CancellationUnsupportedError(StreamError):
    """Raised when cancel() is requested on a subscription whose producer cannot be stopped."""


class StreamTimeoutError(StreamError, TimeoutError):
    """Raised when a stream does not terminate (or go quiet) within its deadline."""


class ProducerCancelled(StreamError):
    """Raised by a cooperative producer once its cancel signal is set."""
