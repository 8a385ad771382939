"""
Platform for the PrintShare activity log.
A single sensor per config entry: its state is the latest log message and its
attributes hold the whole buffer, oldest first. It is pushed by the LogBuffer,
so appends and clear_log show up immediately.
"""
from __future__ import annotations

import logging

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback

from .const import CONF_ENTRY_NAME, DOMAIN
from .coordinator import PrintShareCoordinator
from .models import LogEntry

_LOGGER = logging.getLogger(__name__)

# Home Assistant rejects longer states
MAX_STATE_LENGTH = 255


class PrintShareLogSensor(SensorEntity):
    """Latest activity log message; full buffer in the attributes."""

    _attr_icon = "mdi:text-box-outline"
    _attr_should_poll = False

    def __init__(self, coordinator: PrintShareCoordinator) -> None:
        self.coordinator = coordinator
        entry_data = coordinator.entry_data
        self._attr_unique_id = f"{DOMAIN}_{entry_data['guid']}_activity_log"
        self._attr_name = f"{entry_data.get(CONF_ENTRY_NAME, DOMAIN)} Activity Log"
        self._entries: list[LogEntry] = coordinator.log.snapshot()

    async def async_added_to_hass(self) -> None:
        """Follow the LogBuffer until the entity is removed."""
        self._entries = self.coordinator.log.snapshot()
        self.async_on_remove(
            self.coordinator.engine.subscribe_to_log(self._handle_log_update)
        )

    @callback
    def _handle_log_update(self, entries: list[LogEntry]) -> None:
        self._entries = entries
        self.async_write_ha_state()

    @property
    def native_value(self) -> str | None:
        if not self._entries:
            return None
        return self._entries[-1].message[:MAX_STATE_LENGTH]

    @property
    def extra_state_attributes(self) -> dict:
        last = self._entries[-1] if self._entries else None
        return {
            "level": last.level.value if last else None,
            "timestamp": last.timestamp if last else None,
            "entries": [
                {"timestamp": e.timestamp, "message": e.message, "level": e.level.value}
                for e in self._entries
            ],
        }


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities,
):
    """Add the activity log sensor for this entry."""
    coordinator: PrintShareCoordinator = config_entry.runtime_data
    async_add_entities([PrintShareLogSensor(coordinator)])
