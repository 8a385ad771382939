"""
LocaleSignal: process-wide current locale with change notification.
"""
from __future__ import annotations

import logging
from typing import Callable

from .const import DEFAULT_LOCALE
from .errors import InvalidLocale

_LOGGER = logging.getLogger(__name__)

EVENT_LOCALE_CHANGED = "changed"

LocaleListener = Callable[[str], None]


class LocaleSignal:
    """
    Holds exactly one active locale code.

    Listeners run synchronously, in registration order, after a new value has
    been committed. Committing the value that is already active does nothing.
    """

    def __init__(self, initial: str = DEFAULT_LOCALE) -> None:
        self._current = self._validate(initial)
        self._listeners: dict[str, list[LocaleListener]] = {EVENT_LOCALE_CHANGED: []}

    @staticmethod
    def _validate(code) -> str:
        if not isinstance(code, str) or not code.strip():
            raise InvalidLocale(code)
        return code.strip()

    def current(self) -> str:
        return self._current

    def set(self, code: str) -> bool:
        """Commit a new locale; return True if listeners were notified."""
        code = self._validate(code)
        if code == self._current:
            return False

        previous, self._current = self._current, code
        _LOGGER.debug("Locale changed from %s to %s", previous, code)
        for listener in list(self._listeners[EVENT_LOCALE_CHANGED]):
            try:
                listener(code)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Locale listener %s failed", listener)
        return True

    def on(self, event: str, listener: LocaleListener) -> Callable[[], None]:
        """
        Register a listener keyed by identity and return its disposal handle.

        The presentation layer must call the handle on teardown.
        """
        listeners = self._listeners_for(event)
        if listener not in listeners:
            listeners.append(listener)
        return lambda: self.off(event, listener)

    def off(self, event: str, listener: LocaleListener) -> None:
        listeners = self._listeners_for(event)
        if listener in listeners:
            listeners.remove(listener)

    def dispose(self) -> None:
        """Drop every listener (used when the host unloads)."""
        for listeners in self._listeners.values():
            listeners.clear()

    def _listeners_for(self, event: str) -> list[LocaleListener]:
        try:
            return self._listeners[event]
        except KeyError:
            raise ValueError(f"Unknown locale event: {event}") from None
