"""Tests for the synchronous-producer adapter."""

import threading
import time

import pytest

from reportstream import (
    CancellationUnsupportedError,
    SubscriptionState,
    from_sync,
)


def count_to_ten(reporter):
    for i in range(10):
        reporter.report(i)


class TestSyncStream:
    def test_reports_then_single_completion(self, recorder):
        sub = recorder.subscribe(from_sync(count_to_ten))

        assert recorder.events == [("next", i) for i in range(10)] + [("complete", None)]
        assert recorder.errors == []
        assert sub.state is SubscriptionState.COMPLETED

    def test_cold_until_subscribed(self, recorder):
        calls = []

        def producer(reporter):
            calls.append(1)
            reporter.report("x")

        stream = from_sync(producer)
        assert calls == []

        recorder.subscribe(stream)
        assert calls == [1]

    def test_each_subscription_reruns_producer(self, make_recorder):
        calls = []

        def producer(reporter):
            calls.append(1)
            run = len(calls)
            reporter.report(("run", run))

        stream = from_sync(producer)
        first, second = make_recorder(), make_recorder()
        first.subscribe(stream)
        second.subscribe(stream)

        assert len(calls) == 2
        assert first.values == [("run", 1)]
        assert second.values == [("run", 2)]
        assert first.completions == second.completions == 1

    def test_failure_after_prefix(self, recorder):
        boom = ValueError("disk on fire")

        def producer(reporter):
            reporter.report(1)
            reporter.report(2)
            raise boom

        sub = recorder.subscribe(from_sync(producer))

        assert recorder.values == [1, 2]
        assert recorder.errors == [boom]
        assert recorder.completions == 0
        assert sub.state is SubscriptionState.FAILED

    def test_failure_without_error_handler_raises(self):
        def producer(reporter):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            from_sync(producer).subscribe(lambda v: None)

    def test_dispose_inside_on_next_silences_rest(self):
        reported = []
        seen = []
        holder = {}

        def producer(reporter):
            for i in range(10):
                reported.append(i)
                reporter.report(i)

        def on_next(value):
            seen.append(value)
            if value == 2:
                holder["sub"].dispose()

        stream = from_sync(producer)
        sub = stream.open(_Callbacks(on_next))
        holder["sub"] = sub
        stream.start(sub)

        assert seen == [0, 1, 2]
        # The producer is not interrupted, only silenced.
        assert reported == list(range(10))
        assert sub.state is SubscriptionState.CANCELLED

    def test_cancellation_unsupported(self, recorder):
        sub = recorder.subscribe(from_sync(count_to_ten))

        assert sub.cancellable is False
        assert sub.cancel_signal is None
        with pytest.raises(CancellationUnsupportedError):
            sub.cancel()

    def test_dispose_is_idempotent_and_keeps_terminal_state(self, recorder):
        sub = recorder.subscribe(from_sync(count_to_ten))

        sub.dispose()
        sub.unsubscribe()

        assert sub.state is SubscriptionState.COMPLETED
        assert recorder.completions == 1

    def test_report_after_completion_is_inert(self, recorder):
        stash = {}

        def producer(reporter):
            stash["reporter"] = reporter
            reporter.report("live")

        recorder.subscribe(from_sync(producer))
        stash["reporter"].report("late")

        assert recorder.values == ["live"]
        assert recorder.completions == 1

    def test_consumer_error_propagates_into_producer(self, recorder):
        caught = []

        def producer(reporter):
            for i in range(5):
                try:
                    reporter.report(i)
                except RuntimeError as e:
                    caught.append(str(e))

        def on_next(value):
            if value == 3:
                raise RuntimeError("consumer rejected 3")
            recorder.values.append(value)

        from_sync(producer).subscribe(on_next, recorder.on_error, recorder.on_complete)

        assert caught == ["consumer rejected 3"]
        assert recorder.values == [0, 1, 2, 4]
        assert recorder.completions == 1

    def test_consumer_error_unhandled_fails_stream(self, recorder):
        def on_next(value):
            raise RuntimeError("nope")

        from_sync(count_to_ten).subscribe(on_next, recorder.on_error, recorder.on_complete)

        assert len(recorder.errors) == 1
        assert str(recorder.errors[0]) == "nope"
        assert recorder.completions == 0

    def test_concurrent_reports_are_serialized(self, recorder):
        active = []
        overlaps = []

        def producer(reporter):
            def worker(base):
                for i in range(200):
                    reporter.report(base + i)

            threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        def on_next(value):
            active.append(value)
            if len(active) > 1:
                overlaps.append(value)
            time.sleep(0)
            active.remove(value)
            recorder.values.append(value)

        from_sync(producer).subscribe(on_next, recorder.on_error, recorder.on_complete)

        assert overlaps == []
        assert len(recorder.values) == 800
        assert recorder.completions == 1

    def test_no_delivery_after_dispose_returns_across_threads(self, recorder):
        disposed = threading.Event()
        late = []
        stop = threading.Event()

        def producer(reporter):
            i = 0
            while not stop.is_set():
                reporter.report(i)
                i += 1

        def on_next(value):
            if disposed.is_set():
                late.append(value)
            recorder.values.append(value)

        stream = from_sync(producer)
        sub = stream.open(_Callbacks(on_next))
        worker = threading.Thread(target=stream.start, args=(sub,), daemon=True)
        worker.start()

        deadline = time.monotonic() + 3.0
        while len(recorder.values) < 100 and time.monotonic() < deadline:
            time.sleep(0.001)
        sub.dispose()
        disposed.set()
        delivered = len(recorder.values)

        time.sleep(0.05)
        stop.set()
        worker.join(3.0)

        assert delivered >= 100
        assert late == []
        assert len(recorder.values) == delivered
        assert sub.state is SubscriptionState.CANCELLED


class _Callbacks:
    def __init__(self, on_next):
        self._on_next = on_next

    def on_next(self, value):
        self._on_next(value)

    def on_error(self, error):
        raise error

    def on_complete(self):
        pass
