"""Periodic trigger for the aggregation engine."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Event, Lock, Thread
from typing import Optional

from models.errors import EmptyWindowError, StoreUnavailableError
from services.aggregator import AggregationEngine

logger = logging.getLogger(__name__)


class AggregationScheduler:
    """Runs the engine every ``interval_seconds`` on a background thread.

    Ticks come from a timer thread; runs execute on a single worker. A tick
    that fires while a run is still in flight is dropped rather than queued,
    which keeps snapshot writes ordered by tick.
    """

    def __init__(self, engine: AggregationEngine, interval_seconds: float = 10.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("Scheduler interval must be positive.")
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="aggregation")
        self.skipped_ticks = 0
        self._run_lock = Lock()
        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        self._executor_closed = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        if self._executor_closed:
            self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="aggregation")
            self._executor_closed = False
        self._stop_event.clear()
        self._thread = Thread(
            target=self._tick_loop, name="aggregation-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            "Aggregation scheduler started",
            extra={"interval_seconds": self.interval_seconds},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop ticking and wait for an in-flight run to finish."""
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
        self.executor.shutdown(wait=True)
        self._executor_closed = True
        logger.info("Aggregation scheduler stopped", extra={"skipped_ticks": self.skipped_ticks})

    def tick(self) -> Optional[Future[None]]:
        """Submit one aggregation run unless another is still in flight.

        Returns the run's future, or ``None`` when the tick was skipped.
        """
        if not self._run_lock.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.warning(
                "Skipped aggregation tick; previous run still in progress",
                extra={"skipped_ticks": self.skipped_ticks},
            )
            return None
        try:
            return self.executor.submit(self._run_once)
        except RuntimeError:
            self._run_lock.release()
            logger.warning(
                "Dropped aggregation tick; scheduler is stopped",
                extra={"reason": "executor shut down"},
            )
            return None

    def _tick_loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.tick()

    def _run_once(self) -> None:
        try:
            self.engine.run()
        except EmptyWindowError as exc:
            logger.info("Aggregation skipped: %s", exc, extra={"reason": "empty window"})
        except StoreUnavailableError as exc:
            logger.error("Aggregation failed: %s", exc, extra={"reason": "store unavailable"})
        except Exception:
            logger.exception("Unexpected aggregation failure")
            raise
        finally:
            self._run_lock.release()
