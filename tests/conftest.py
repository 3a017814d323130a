"""Shared fixtures for reportstream tests."""

import asyncio
import threading
import time

import pytest


class Recorder:
    """Observer that records every signal it receives."""

    def __init__(self):
        self.events = []
        self.values = []
        self.errors = []
        self.completions = 0
        self.done = threading.Event()

    def on_next(self, value):
        self.values.append(value)
        self.events.append(("next", value))

    def on_error(self, error):
        self.errors.append(error)
        self.events.append(("error", error))
        self.done.set()

    def on_complete(self):
        self.completions += 1
        self.events.append(("complete", None))
        self.done.set()

    def subscribe(self, stream):
        return stream.subscribe(self.on_next, self.on_error, self.on_complete)

    def wait(self, timeout=3.0):
        assert self.done.wait(timeout), "stream did not terminate in time"

    async def settle(self, timeout=3.0):
        deadline = time.monotonic() + timeout
        while not self.done.is_set():
            if time.monotonic() > deadline:
                raise AssertionError("stream did not terminate in time")
            await asyncio.sleep(0.005)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_recorder():
    return Recorder


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "REPORTSTREAM_LOG_REPORTS",
        "REPORTSTREAM_LOG_VALUE_MAX",
        "REPORTSTREAM_LOG_REDACT",
        "REPORTSTREAM_POLL_INTERVAL_S",
        "REPORTSTREAM_IDLE_TIMEOUT_S",
        "REPORTSTREAM_SAMPLE_PERIOD_S",
    ):
        monkeypatch.delenv(name, raising=False)
