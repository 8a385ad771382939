"""
PrintShareEngine: the in-process interface offered to the presentation layer.

Wires LogBuffer, LocaleSignal, DeviceDirectory, PendingOverlay and
ShareToggleController together and re-projects the view model whenever one
of the stores changes:

- a directory commit (refresh or confirmed toggle)
- a pending-overlay transition (toggle start / settle)
- a locale change

LogBuffer and LocaleSignal are constructed by the host and injected, so they
can be shared with other consumers for the lifetime of the process.
"""
from __future__ import annotations

import logging
from typing import Callable

from .controller import ShareToggleController
from .directory import DeviceDirectory, DirectoryData, DirectoryListener
from .errors import InvalidLocale
from .locale_signal import EVENT_LOCALE_CHANGED, LocaleListener, LocaleSignal
from .log_buffer import LogBuffer, LogListener
from .models import DeviceView, LogLevel
from .pending_overlay import PendingOverlay
from .projector import project
from .translations import Translator

_LOGGER = logging.getLogger(__name__)

ViewListener = Callable[[list[DeviceView]], None]


class PrintShareEngine:
    """Reconciliation engine for shareable printers."""

    def __init__(
        self,
        api,
        log: LogBuffer,
        locale: LocaleSignal,
        translator: Translator | None = None,
    ) -> None:
        self._api = api
        self.log = log
        self.locale = locale
        self.translator = translator or Translator(locale)
        self.directory = DeviceDirectory(api, log, self.translator.translate)
        self.overlay = PendingOverlay()
        self._controller = ShareToggleController(
            api,
            self.directory,
            self.overlay,
            log,
            self.translator.translate,
            on_change=self._reproject,
        )
        self._view_listeners: list[ViewListener] = []

        # Registered first, so the view is current before other locale
        # listeners run.
        self._unsubs: list[Callable[[], None]] = [
            self.directory.subscribe(self._handle_directory_commit),
            self.locale.on(EVENT_LOCALE_CHANGED, self._handle_locale_change),
        ]

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        return self.directory.available

    @property
    def last_error(self) -> str | None:
        return self.directory.last_error

    def get_view_model(self) -> list[DeviceView]:
        return project(
            self.directory.data,
            self.overlay.snapshot(),
            self.locale.current(),
            self.translator,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def refresh(self) -> DirectoryData:
        return await self.directory.refresh()

    async def toggle(self, device_id: str) -> bool:
        return await self._controller.toggle(device_id)

    def clear_log(self) -> None:
        self.log.clear()

    async def set_locale(self, code: str) -> bool:
        """
        Switch the active locale, then tell the backend (best effort).

        Raises InvalidLocale for an empty or blank code; the previous locale
        stays active. Returns False when the locale was already active.
        """
        try:
            changed = self.locale.set(code)
        except InvalidLocale:
            _LOGGER.warning("Rejected locale code %r", code)
            self.log.append(self.translator.translate("errors.invalid_locale", code=code), LogLevel.WARNING)
            raise

        if not changed:
            return False

        active = self.locale.current()
        self.log.append(self.translator.translate("messages.lang_switched", code=active), LogLevel.INFO)
        try:
            await self._api.notify_locale_change(active)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("Backend did not accept locale %s: %s", active, exc)
            self.log.append(
                self.translator.translate("errors.locale_sync_failed", error=str(exc)),
                LogLevel.WARNING,
            )
        return True

    # ------------------------------------------------------------------
    # Subscriptions (each returns its disposal handle)
    # ------------------------------------------------------------------

    def subscribe_to_directory(self, listener: DirectoryListener) -> Callable[[], None]:
        return self.directory.subscribe(listener)

    def subscribe_to_log(self, listener: LogListener) -> Callable[[], None]:
        return self.log.subscribe(listener)

    def subscribe_to_locale(self, listener: LocaleListener) -> Callable[[], None]:
        return self.locale.on(EVENT_LOCALE_CHANGED, listener)

    def subscribe_to_view(self, listener: ViewListener) -> Callable[[], None]:
        if listener not in self._view_listeners:
            self._view_listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._view_listeners:
                self._view_listeners.remove(listener)

        return remove_listener

    def dispose(self) -> None:
        """Detach from the injected services; the engine is unusable afterwards."""
        for unsub in self._unsubs:
            unsub()
        self._unsubs.clear()
        self._view_listeners.clear()

    # ------------------------------------------------------------------
    # Re-projection
    # ------------------------------------------------------------------

    def _handle_directory_commit(self, data: DirectoryData) -> None:
        self._reproject()

    def _handle_locale_change(self, code: str) -> None:
        self._reproject()

    def _reproject(self) -> None:
        view = self.get_view_model()
        for listener in list(self._view_listeners):
            listener(view)
