"""The Reporter handed to producers."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class Reporter(Generic[T]):
    """Forwards each reported value straight downstream.

    No buffering, batching or deduplication: every report() is exactly one
    call of the forwarding function. Exceptions raised downstream propagate
    back to the producer. Whether a report still reaches a consumer is decided
    by the forwarding function (a subscription ignores reports once it has
    terminated).
    """

    __slots__ = ("_forward",)

    def __init__(self, forward: Callable[[T], None]):
        self._forward = forward

    def report(self, value: T) -> None:
        self._forward(value)

    def __repr__(self) -> str:
        return f"Reporter({self._forward!r})"
