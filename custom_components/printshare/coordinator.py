"""
DataUpdateCoordinator for the PrintShare integration.

Responsibilities:
- Own the PrintShareApi client, LogBuffer, LocaleSignal and PrintShareEngine
  for the lifetime of a config entry.
- Run a directory refresh every scan_interval seconds.
- Push every re-projected view model to entities as soon as it changes
  (toggle start, toggle settle, locale change), without waiting for a poll.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import PrintShareApi
from .const import (
    CONF_HOST,
    CONF_LANGUAGE,
    CONF_SCAN_INTERVAL,
    DEFAULT_LOCALE,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    VERSION,
)
from .engine import PrintShareEngine
from .errors import FetchFailed, InvalidLocale
from .locale_signal import LocaleSignal
from .log_buffer import LogBuffer
from .models import DeviceView

_LOGGER = logging.getLogger(__name__)


def _initial_locale(code) -> str:
    """Configured language, or the default when it is missing or blank."""
    try:
        return LocaleSignal(code).current()
    except InvalidLocale:
        _LOGGER.warning("Invalid language %r in config entry, using %s", code, DEFAULT_LOCALE)
        return DEFAULT_LOCALE


class PrintShareCoordinator(DataUpdateCoordinator[list[DeviceView]]):
    """
    Coordinator for the PrintShare integration.

    `data` is always the latest view model produced by the engine.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry_data: dict,
        config_entry: ConfigEntry | None = None,
        api: PrintShareApi | None = None,
    ) -> None:
        """Initialize the coordinator from config-entry data."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(
                seconds=entry_data.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)
            ),
        )
        self._entry_data = entry_data
        self.api = api or PrintShareApi(entry_data[CONF_HOST])
        self.log = LogBuffer()
        self.locale = LocaleSignal(_initial_locale(entry_data.get(CONF_LANGUAGE)))
        self.engine = PrintShareEngine(self.api, self.log, self.locale)
        self._unsub_view = self.engine.subscribe_to_view(self._handle_view_update)

        # Snapshot starts empty; entities must handle a missing row until first refresh
        self.data = []

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> list[DeviceView]:
        """
        Called by HA on every update_interval tick.

        A failed refresh only marks the update as failed when there has never
        been a directory; afterwards the last list stays visible and the
        failure is exposed through `last_error`.
        """
        try:
            await self.engine.refresh()
        except FetchFailed as exc:
            if not self.engine.available:
                raise UpdateFailed(f"PrintShare backend unavailable: {exc.detail}") from exc
            _LOGGER.debug("Keeping last printer list after failed refresh: %s", exc.detail)
        return self.engine.get_view_model()

    def _handle_view_update(self, view: list[DeviceView]) -> None:
        self.async_set_updated_data(view)

    # ------------------------------------------------------------------
    # Entity helpers
    # ------------------------------------------------------------------

    @property
    def last_error(self) -> str | None:
        return self.engine.last_error

    def get_view(self, device_id: str) -> DeviceView | None:
        for view in self.data or []:
            if view.id == device_id:
                return view
        return None

    def get_device_info(self, device_id: str) -> dict | None:
        """Return the HA DeviceInfo dict for the given printer."""
        view = self.get_view(device_id)
        if view is None:
            return None
        return {
            "identifiers": {(DOMAIN, f"{self._entry_data['guid']}_{device_id}")},
            "name": view.name,
            "manufacturer": "PrintShare",
            "model": "Printer",
            "sw_version": VERSION,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_shutdown(self) -> None:
        """Detach the engine from its services."""
        self._unsub_view()
        self.engine.dispose()
        self.locale.dispose()
        await super().async_shutdown()

    @property
    def entry_data(self):
        return self._entry_data
