"""Query handlers exposed through the command dispatcher."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from datastore.reading_store import ReadingStore
from models.records import AggregateSnapshot, Reading
from services.aggregator import Clock, utc_now
from services.dispatcher import CommandDispatcher, CommandHandler

LIST_READINGS = "list-readings"
GET_LATEST_READING = "get-latest-reading"
GET_READING_WINDOW = "get-reading-window"
GET_CURRENT_SNAPSHOT = "get-current-snapshot"


class ListReadingsCommand(CommandHandler[None, List[Reading]]):
    def __init__(self, store: ReadingStore) -> None:
        self.store = store

    def execute(self, payload: None = None) -> List[Reading]:
        return self.store.list_all()


class GetLatestReadingCommand(CommandHandler[None, Reading]):
    def __init__(self, store: ReadingStore) -> None:
        self.store = store

    def execute(self, payload: None = None) -> Reading:
        return self.store.get_latest()


class GetReadingWindowCommand(CommandHandler[Optional[timedelta], List[Reading]]):
    """Readings from the trailing ``duration``; falls back to the default window."""

    def __init__(
        self,
        store: ReadingStore,
        default_duration: timedelta = timedelta(minutes=30),
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.default_duration = default_duration
        self._clock = clock

    def execute(self, payload: Optional[timedelta] = None) -> List[Reading]:
        duration = self.default_duration if payload is None else payload
        if duration <= timedelta(0):
            raise ValueError("Window duration must be positive.")
        try:
            since = self._clock() - duration
        except OverflowError as exc:
            raise ValueError("Window duration is too large.") from exc
        return self.store.get_window(since)


class GetCurrentSnapshotCommand(CommandHandler[None, AggregateSnapshot]):
    def __init__(self, store: ReadingStore) -> None:
        self.store = store

    def execute(self, payload: None = None) -> AggregateSnapshot:
        return self.store.read_snapshot()


def register_query_commands(
    dispatcher: CommandDispatcher,
    store: ReadingStore,
    recent_window: timedelta = timedelta(minutes=30),
    clock: Clock = utc_now,
) -> CommandDispatcher:
    dispatcher.register(LIST_READINGS, ListReadingsCommand(store))
    dispatcher.register(GET_LATEST_READING, GetLatestReadingCommand(store))
    dispatcher.register(
        GET_READING_WINDOW,
        GetReadingWindowCommand(store, default_duration=recent_window, clock=clock),
    )
    dispatcher.register(GET_CURRENT_SNAPSHOT, GetCurrentSnapshotCommand(store))
    return dispatcher
