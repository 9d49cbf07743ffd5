from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from bisect import bisect_left, insort
from datetime import datetime
from operator import attrgetter
from pathlib import Path
from threading import Lock
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from app.schemas import ReadingRecord, SnapshotRecord
from models.errors import NotFoundError, StoreUnavailableError
from models.records import AggregateSnapshot, Reading

logger = logging.getLogger(__name__)

_taken_at = attrgetter("taken_at")


class ReadingStore(ABC):
    """Source of raw readings and holder of the single aggregate snapshot slot."""

    @abstractmethod
    def list_all(self) -> List[Reading]:
        """Return every reading in chronological order."""

    @abstractmethod
    def get_latest(self) -> Reading:
        """Return the most recent reading or raise ``NotFoundError``."""

    @abstractmethod
    def get_window(self, since: datetime) -> List[Reading]:
        """Return readings with ``taken_at >= since`` in chronological order."""

    @abstractmethod
    def write_snapshot(self, snapshot: AggregateSnapshot) -> None:
        """Replace the stored snapshot wholesale."""

    @abstractmethod
    def read_snapshot(self) -> AggregateSnapshot:
        """Return the last written snapshot or raise ``NotFoundError``."""

    @abstractmethod
    def add_reading(self, reading: Reading) -> None:
        """Insert a reading at its chronological position."""


class JsonReadingStore(ReadingStore):
    """Thread-safe in-memory store, optionally mirrored to a JSON file.

    The file holds ``{"readings": [...], "snapshot": {...}}``. Readings may
    also be a mapping keyed by push id, which is how the original realtime
    database exported them; only the values are used.
    """

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self.persistence_path = persistence_path
        self._readings: List[Reading] = []
        self._snapshot: Optional[AggregateSnapshot] = None
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def list_all(self) -> List[Reading]:
        with self._lock:
            return list(self._readings)

    def get_latest(self) -> Reading:
        with self._lock:
            if not self._readings:
                raise NotFoundError(f"Store {self.name!r} has no readings yet.")
            return self._readings[-1]

    def get_window(self, since: datetime) -> List[Reading]:
        with self._lock:
            start = bisect_left(self._readings, since, key=_taken_at)
            return self._readings[start:]

    def write_snapshot(self, snapshot: AggregateSnapshot) -> None:
        with self._lock:
            previous = self._snapshot
            self._snapshot = snapshot
            try:
                self._persist()
            except StoreUnavailableError:
                self._snapshot = previous
                raise

    def read_snapshot(self) -> AggregateSnapshot:
        with self._lock:
            if self._snapshot is None:
                raise NotFoundError(
                    f"No aggregate snapshot has been computed for store {self.name!r}."
                )
            return self._snapshot

    def add_reading(self, reading: Reading) -> None:
        with self._lock:
            insort(self._readings, reading, key=_taken_at)
            try:
                self._persist()
            except StoreUnavailableError:
                self._readings.remove(reading)
                raise

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            "readings": [
                ReadingRecord.from_reading(reading).model_dump(mode="json")
                for reading in self._readings
            ],
            "snapshot": (
                SnapshotRecord.from_snapshot(self._snapshot).model_dump(mode="json")
                if self._snapshot is not None
                else None
            ),
        }
        staging = self.persistence_path.with_name(self.persistence_path.name + ".tmp")
        try:
            staging.write_text(json.dumps(payload, indent=2, sort_keys=True))
            staging.replace(self.persistence_path)
        except OSError as exc:
            raise StoreUnavailableError(
                f"Could not write store {self.name!r} to {self.persistence_path}: {exc}"
            ) from exc

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
        except OSError as exc:
            raise StoreUnavailableError(
                f"Could not read store {self.name!r} from {self.persistence_path}: {exc}"
            ) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "Ignoring unreadable store file",
                extra={"store": self.name, "reason": "invalid JSON"},
            )
            return
        if not isinstance(data, dict) or not data.keys() & {"readings", "snapshot"}:
            # Bare export of the readings collection.
            data = {"readings": data}

        for index, payload in enumerate(_iter_records(data.get("readings"), self.name)):
            try:
                reading = ReadingRecord.model_validate(payload).to_reading()
            except ValidationError as exc:
                logger.warning(
                    "Skipping stored reading %s",
                    index,
                    extra={"store": self.name, "reason": exc.errors()[0]["msg"]},
                )
                continue
            self._readings.append(reading)
        self._readings.sort(key=_taken_at)

        snapshot = data.get("snapshot")
        if snapshot:
            try:
                self._snapshot = SnapshotRecord.model_validate(snapshot).to_snapshot()
            except ValidationError as exc:
                logger.warning(
                    "Ignoring stored snapshot",
                    extra={"store": self.name, "reason": exc.errors()[0]["msg"]},
                )

        logger.info(
            "Loaded reading store",
            extra={"store": self.name, "reading_count": len(self._readings)},
        )


def _iter_records(raw: Any, store_name: str) -> Iterable[Any]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        return raw.values()
    if isinstance(raw, list):
        return raw
    logger.warning(
        "Ignoring stored readings of type %s",
        type(raw).__name__,
        extra={"store": store_name, "reason": "not a list or mapping"},
    )
    return []


def build_store(name: str, path: Optional[str] = None) -> JsonReadingStore:
    persistence = Path(path) if path else None
    return JsonReadingStore(name=name, persistence_path=persistence)
