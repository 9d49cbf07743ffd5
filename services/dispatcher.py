"""Name-based routing from callers to command handlers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Dict, Generic, List, TypeVar

from models.errors import DuplicateCommandError, UnknownCommandError

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class CommandHandler(ABC, Generic[InputT, OutputT]):
    """A single named operation the dispatcher can route to."""

    @abstractmethod
    def execute(self, payload: InputT) -> OutputT:
        ...


class CommandDispatcher:
    """Registry of command handlers populated once at startup.

    Registering a name twice raises immediately so wiring mistakes surface
    at startup instead of on the first request. Dispatch does no retrying or
    caching; handler results and exceptions pass through unchanged.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, CommandHandler[Any, Any]] = {}
        self._lock = Lock()

    def register(self, name: str, handler: CommandHandler[Any, Any]) -> None:
        if not name or not name.strip():
            raise ValueError("Command name must be a non-empty string.")
        with self._lock:
            if name in self._handlers:
                raise DuplicateCommandError(name)
            self._handlers[name] = handler
        logger.debug("Registered command %s", type(handler).__name__, extra={"command": name})

    def dispatch(self, name: str, payload: Any = None) -> Any:
        with self._lock:
            handler = self._handlers.get(name)
        if handler is None:
            raise UnknownCommandError(name)
        logger.debug("Dispatching command", extra={"command": name})
        return handler.execute(payload)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._handlers
