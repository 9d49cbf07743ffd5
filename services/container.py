"""Explicit composition of the store, engine, scheduler and dispatcher."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from datastore.reading_store import ReadingStore, build_store
from services.aggregator import AggregationEngine, Clock, utc_now
from services.commands import register_query_commands
from services.dispatcher import CommandDispatcher
from services.scheduler import AggregationScheduler
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    store: ReadingStore
    engine: AggregationEngine
    scheduler: AggregationScheduler
    dispatcher: CommandDispatcher

    def start(self) -> None:
        if self.settings.scheduler_enabled:
            self.scheduler.start()
        else:
            logger.info("Aggregation scheduler disabled by configuration")

    def shutdown(self) -> None:
        self.scheduler.stop()


def build_container(
    settings: Optional[Settings] = None,
    store: Optional[ReadingStore] = None,
    clock: Clock = utc_now,
) -> ServiceContainer:
    """Wire every component from ``settings``; nothing is cached globally."""
    settings = settings or get_settings()
    if store is None:
        store = build_store(settings.store_name, settings.store_path)

    engine = AggregationEngine(
        store,
        window=timedelta(seconds=settings.aggregation_window_seconds),
        clock=clock,
    )
    scheduler = AggregationScheduler(
        engine, interval_seconds=settings.aggregation_interval_seconds
    )
    dispatcher = register_query_commands(
        CommandDispatcher(),
        store,
        recent_window=timedelta(seconds=settings.recent_window_seconds),
        clock=clock,
    )
    return ServiceContainer(
        settings=settings,
        store=store,
        engine=engine,
        scheduler=scheduler,
        dispatcher=dispatcher,
    )
