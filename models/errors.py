"""Error taxonomy for the aggregation core."""

from __future__ import annotations

from datetime import datetime
from typing import Optional


class SensorHubError(Exception):
    """Base class for all domain errors."""


class EmptyWindowError(SensorHubError):
    """The aggregation window contained no readings."""

    def __init__(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> None:
        if since is not None and until is not None:
            message = f"No readings between {since.isoformat()} and {until.isoformat()}."
        else:
            message = "No readings to aggregate."
        super().__init__(message)
        self.since = since
        self.until = until


class NotFoundError(SensorHubError, LookupError):
    """A requested entity (latest reading, snapshot) does not exist yet."""


class UnknownCommandError(SensorHubError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No command registered under {name!r}.")
        self.name = name


class DuplicateCommandError(SensorHubError, ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"A command is already registered under {name!r}.")
        self.name = name


class StoreUnavailableError(SensorHubError):
    """The reading store could not complete an I/O operation."""
