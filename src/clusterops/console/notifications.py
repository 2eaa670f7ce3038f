"""User-facing notifications."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger("clusterops.console")


class Level(str, Enum):
    """Notification severity."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A message shown to the operator."""

    level: Level
    message: str
    action_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[Notification], None]


class NotificationCenter:
    """Bounded notification history plus a single stale-data warning slot.

    The stale slot is set by failed polls and cleared by the next
    successful one, so a transient outage shows one warning rather than one
    per tick.
    """

    def __init__(self, max_history: int = 50) -> None:
        self._history: deque[Notification] = deque(maxlen=max_history)
        self._stale: Notification | None = None
        self._listeners: list[Listener] = []

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    @property
    def stale(self) -> Notification | None:
        """Current stale-data warning, if the last poll failed."""
        return self._stale

    @property
    def last(self) -> Notification | None:
        return self._history[-1] if self._history else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, level: Level, message: str, *, action_id: str | None = None) -> Notification:
        notification = Notification(level=level, message=message, action_id=action_id)
        self._history.append(notification)
        for listener in list(self._listeners):
            listener(notification)
        return notification

    def info(self, message: str, **kwargs: str | None) -> Notification:
        return self.notify(Level.INFO, message, **kwargs)

    def success(self, message: str, **kwargs: str | None) -> Notification:
        return self.notify(Level.SUCCESS, message, **kwargs)

    def warning(self, message: str, **kwargs: str | None) -> Notification:
        return self.notify(Level.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: str | None) -> Notification:
        return self.notify(Level.ERROR, message, **kwargs)

    def set_stale(self, message: str) -> Notification:
        """Raise the stale-data warning. Repeats do not grow the history."""
        if self._stale is not None and self._stale.message == message:
            return self._stale
        first = self._stale is None
        self._stale = Notification(level=Level.WARNING, message=message)
        if first:
            self._history.append(self._stale)
            for listener in list(self._listeners):
                listener(self._stale)
        return self._stale

    def clear_stale(self) -> None:
        if self._stale is not None:
            logger.debug("Cluster view is fresh again")
        self._stale = None
