import logging
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from datastore.reading_store import JsonReadingStore
from models.errors import EmptyWindowError, StoreUnavailableError
from models.records import AggregateSnapshot, Grade, Reading
from services.aggregator import AggregationEngine
from services.scheduler import AggregationScheduler

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _reading(taken_at: datetime) -> Reading:
    return Reading(
        luminosity=100.0,
        luminosity_grade=Grade.good,
        sound=30.0,
        sound_grade=Grade.good,
        temperature=20.0,
        temperature_grade=Grade.moderate,
        humidity=40.0,
        humidity_grade=Grade.poor,
        taken_at=taken_at,
    )


class CountingStore(JsonReadingStore):
    def __init__(self) -> None:
        super().__init__(name="test")
        self.snapshot_writes = 0

    def write_snapshot(self, snapshot: AggregateSnapshot) -> None:
        self.snapshot_writes += 1
        super().write_snapshot(snapshot)


class GatedEngine(AggregationEngine):
    """Blocks inside ``run`` until the test opens the gate."""

    def __init__(self, store: JsonReadingStore) -> None:
        super().__init__(store, clock=lambda: NOW)
        self.started = threading.Event()
        self.gate = threading.Event()

    def run(self, now=None):
        self.started.set()
        assert self.gate.wait(timeout=5)
        return super().run(now)


def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.01)
    pytest.fail("Condition not reached before timeout")


def test_tick_during_slow_run_is_skipped_not_queued(caplog) -> None:
    store = CountingStore()
    store.add_reading(_reading(NOW - timedelta(minutes=1)))
    engine = GatedEngine(store)
    scheduler = AggregationScheduler(engine, interval_seconds=60)

    try:
        first = scheduler.tick()
        assert first is not None
        assert engine.started.wait(timeout=5)

        with caplog.at_level(logging.WARNING):
            second = scheduler.tick()

        assert second is None
        assert scheduler.skipped_ticks == 1
        assert any("Skipped aggregation tick" in r.getMessage() for r in caplog.records)

        engine.gate.set()
        first.result(timeout=5)
    finally:
        engine.gate.set()
        scheduler.stop()

    assert store.snapshot_writes == 1


def test_tick_after_run_completes_is_accepted() -> None:
    store = CountingStore()
    store.add_reading(_reading(NOW - timedelta(minutes=1)))
    engine = AggregationEngine(store, clock=lambda: NOW)
    scheduler = AggregationScheduler(engine, interval_seconds=60)

    try:
        for _ in range(3):
            future = scheduler.tick()
            assert future is not None
            future.result(timeout=5)
    finally:
        scheduler.stop()

    assert store.snapshot_writes == 3
    assert scheduler.skipped_ticks == 0


def test_empty_window_is_logged_and_absorbed(caplog) -> None:
    store = CountingStore()
    engine = AggregationEngine(store, clock=lambda: NOW)
    scheduler = AggregationScheduler(engine, interval_seconds=60)

    try:
        with caplog.at_level(logging.INFO):
            future = scheduler.tick()
            assert future is not None
            future.result(timeout=5)
    finally:
        scheduler.stop()

    assert store.snapshot_writes == 0
    assert any(
        getattr(record, "reason", None) == "empty window" for record in caplog.records
    )


def test_store_failure_does_not_stop_later_ticks(caplog) -> None:
    calls = []

    class FlakyEngine(AggregationEngine):
        def run(self, now=None):
            calls.append(now)
            if len(calls) == 1:
                raise StoreUnavailableError("store offline")
            raise EmptyWindowError()

    scheduler = AggregationScheduler(FlakyEngine(CountingStore()), interval_seconds=60)

    try:
        with caplog.at_level(logging.INFO):
            scheduler.tick().result(timeout=5)
            scheduler.tick().result(timeout=5)
    finally:
        scheduler.stop()

    assert len(calls) == 2
    reasons = [getattr(record, "reason", None) for record in caplog.records]
    assert "store unavailable" in reasons
    assert "empty window" in reasons


def test_background_loop_ticks_until_stopped() -> None:
    store = CountingStore()
    store.add_reading(_reading(NOW - timedelta(minutes=1)))
    engine = AggregationEngine(store, clock=lambda: NOW)
    scheduler = AggregationScheduler(engine, interval_seconds=0.01)

    scheduler.start()
    try:
        assert scheduler.running
        _wait_for(lambda: store.snapshot_writes >= 2)
    finally:
        scheduler.stop()

    assert not scheduler.running
    writes_after_stop = store.snapshot_writes
    time.sleep(0.05)
    assert store.snapshot_writes == writes_after_stop


def test_stop_waits_for_in_flight_run() -> None:
    store = CountingStore()
    store.add_reading(_reading(NOW - timedelta(minutes=1)))
    engine = GatedEngine(store)
    scheduler = AggregationScheduler(engine, interval_seconds=60)

    future = scheduler.tick()
    assert engine.started.wait(timeout=5)

    stopper = threading.Thread(target=scheduler.stop)
    stopper.start()
    stopper.join(timeout=0.1)
    assert stopper.is_alive()

    engine.gate.set()
    stopper.join(timeout=5)

    assert not stopper.is_alive()
    assert future.done()
    assert store.snapshot_writes == 1
    assert scheduler.tick() is None


def test_scheduler_rejects_non_positive_interval() -> None:
    engine = AggregationEngine(CountingStore())

    with pytest.raises(ValueError):
        AggregationScheduler(engine, interval_seconds=0)


def test_restart_after_stop_runs_aggregation_again() -> None:
    store = CountingStore()
    store.add_reading(_reading(NOW - timedelta(minutes=1)))
    engine = AggregationEngine(store, clock=lambda: NOW)
    scheduler = AggregationScheduler(engine, interval_seconds=60)

    scheduler.start()
    scheduler.stop()
    scheduler.start()
    try:
        assert scheduler.running
        future = scheduler.tick()
        assert future is not None
        future.result(timeout=5)
    finally:
        scheduler.stop()

    assert store.snapshot_writes == 1


def test_tick_after_stop_is_logged(caplog) -> None:
    scheduler = AggregationScheduler(AggregationEngine(CountingStore()), interval_seconds=60)
    scheduler.stop()

    with caplog.at_level(logging.WARNING):
        assert scheduler.tick() is None

    assert any(
        getattr(record, "reason", None) == "executor shut down" for record in caplog.records
    )
