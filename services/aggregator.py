"""Windowed aggregation of environmental readings."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, Optional

from datastore.reading_store import ReadingStore
from models.errors import EmptyWindowError
from models.records import MEASUREMENTS, AggregateSnapshot, Reading, grade_field
from services.grades import decode, encode

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_WINDOW = timedelta(minutes=5)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AggregationEngine:
    """Computes the rolling snapshot over a trailing window of readings."""

    def __init__(
        self,
        store: ReadingStore,
        window: timedelta = DEFAULT_WINDOW,
        clock: Clock = utc_now,
    ) -> None:
        if window <= timedelta(0):
            raise ValueError("Aggregation window must be positive.")
        self.store = store
        self.window = window
        self._clock = clock

    def aggregate(self, readings: Iterable[Reading]) -> AggregateSnapshot:
        """Average every measurement and grade; raises on an empty input."""
        count = 0
        totals: Dict[str, float] = {name: 0.0 for name in MEASUREMENTS}
        scores: Dict[str, int] = {name: 0 for name in MEASUREMENTS}

        for reading in readings:
            count += 1
            for name in MEASUREMENTS:
                totals[name] += getattr(reading, name)
                scores[name] += encode(getattr(reading, grade_field(name)))

        if not count:
            raise EmptyWindowError()

        fields: Dict[str, object] = {"reading_count": count}
        for name in MEASUREMENTS:
            fields[name] = totals[name] / count
            fields[grade_field(name)] = decode(scores[name] / count)
        return AggregateSnapshot(**fields)

    def run(self, now: Optional[datetime] = None) -> AggregateSnapshot:
        """Aggregate ``[now - window, now]`` and replace the stored snapshot.

        Raises ``EmptyWindowError`` without touching the store when no
        reading falls inside the window.
        """
        start_time = time.perf_counter()
        until = now if now is not None else self._clock()
        since = until - self.window

        readings = [
            reading for reading in self.store.get_window(since) if reading.taken_at <= until
        ]
        if not readings:
            raise EmptyWindowError(since, until)

        snapshot = self.aggregate(readings)
        self.store.write_snapshot(snapshot)

        logger.info(
            "Wrote aggregate snapshot",
            extra={
                "reading_count": snapshot.reading_count,
                "window_seconds": self.window.total_seconds(),
                "since": since.isoformat(),
                "duration_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return snapshot
