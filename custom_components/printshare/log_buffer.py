"""
LogBuffer: bounded, ordered activity log with subscriber notification.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import collections
import datetime
import logging
from typing import Callable

from .const import LOG_CAPACITY, LOG_TIME_FORMAT
from .models import LogEntry, LogLevel

_LOGGER = logging.getLogger(__name__)

LogListener = Callable[[list[LogEntry]], None]

_PYTHON_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def _default_clock() -> str:
    return datetime.datetime.now().strftime(LOG_TIME_FORMAT)


class LogBuffer:
    """
    Append-only log of at most `capacity` entries, oldest evicted first.

    Every append/clear hands each subscriber a fresh copy of the whole ordered
    sequence, so a subscriber can never mutate the buffer through it.
    """

    def __init__(
        self,
        capacity: int = LOG_CAPACITY,
        clock: Callable[[], str] = _default_clock,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._entries: collections.deque[LogEntry] = collections.deque(maxlen=capacity)
        self._listeners: list[LogListener] = []
        self._clock = clock

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, message: str, level: LogLevel | str = LogLevel.INFO) -> LogEntry:
        """Append a timestamped entry and notify subscribers."""
        level = LogLevel(level)
        entry = LogEntry(timestamp=self._clock(), message=message, level=level)
        # deque(maxlen) drops the oldest entry on overflow
        self._entries.append(entry)
        _LOGGER.log(_PYTHON_LEVELS[level], "[%s] %s", level.value, message)
        self._notify()
        return entry

    def clear(self) -> None:
        """Drop every entry and notify subscribers with an empty sequence."""
        self._entries.clear()
        self._notify()

    def snapshot(self) -> list[LogEntry]:
        """Return the current ordered sequence without touching state."""
        return list(self._entries)

    def subscribe(self, listener: LogListener) -> Callable[[], None]:
        """
        Register a listener for every future append/clear.

        Registering the same callable twice keeps a single registration.
        Returns a callable that removes the listener.
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.snapshot())
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Log listener %s failed", listener)
