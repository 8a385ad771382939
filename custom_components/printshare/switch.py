"""
Platform for PrintShare switches.
One switch per printer: on = shared over AirPrint. State comes from the
coordinator's view model, so the switch shows the pending state of an
in-flight toggle even when a refresh lands in between.
"""
from __future__ import annotations

import logging

from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, VARIANT_PENDING, VARIANT_SUCCESS
from .coordinator import PrintShareCoordinator
from .errors import PrintShareError
from .models import DeviceView, PendingOp

_LOGGER = logging.getLogger(__name__)

_ICONS = {
    VARIANT_SUCCESS: "mdi:printer-check",
    VARIANT_PENDING: "mdi:printer-settings",
}


class PrintShareSwitch(CoordinatorEntity[PrintShareCoordinator], SwitchEntity):
    """Share switch for a single printer."""

    _attr_device_class = SwitchDeviceClass.SWITCH

    def __init__(self, coordinator: PrintShareCoordinator, device_id: str) -> None:
        super().__init__(coordinator)
        self._device_id = device_id
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_data['guid']}_{device_id}_share"
        view = coordinator.get_view(device_id)
        self._attr_name = f"{view.name if view else device_id} Sharing"

    @property
    def _view(self) -> DeviceView | None:
        return self.coordinator.get_view(self._device_id)

    @property
    def available(self) -> bool:
        """Unavailable while the share control is disabled (pending or offline)."""
        view = self._view
        return super().available and view is not None and view.share_button_enabled

    @property
    def is_on(self) -> bool | None:
        view = self._view
        if view is None:
            return None
        return view.is_shared

    @property
    def icon(self) -> str:
        view = self._view
        if view is None:
            return "mdi:printer-off"
        return _ICONS.get(view.share_button_variant, "mdi:printer")

    @property
    def device_info(self):
        return self.coordinator.get_device_info(self._device_id)

    @property
    def extra_state_attributes(self) -> dict:
        view = self._view
        if view is None:
            return {}
        return {
            "status": view.display_status,
            "button_label": view.share_button_label,
            "button_variant": view.share_button_variant,
            "pending": view.pending.value if view.pending is not PendingOp.NONE else None,
            "last_error": self.coordinator.last_error,
        }

    async def async_turn_on(self, **kwargs) -> None:
        """Start sharing the printer."""
        await self._async_set_shared(True)

    async def async_turn_off(self, **kwargs) -> None:
        """Stop sharing the printer."""
        await self._async_set_shared(False)

    async def _async_set_shared(self, shared: bool) -> None:
        view = self._view
        if view is not None and view.is_shared == shared and view.pending is PendingOp.NONE:
            return
        try:
            await self.coordinator.engine.toggle(self._device_id)
        except PrintShareError as exc:
            raise HomeAssistantError(str(exc)) from exc


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities,
):
    """Add a share switch for every printer known to the coordinator."""
    coordinator: PrintShareCoordinator = config_entry.runtime_data
    known: set[str] = set()

    @callback
    def _add_new_printers() -> None:
        new_entities = [
            PrintShareSwitch(coordinator, view.id)
            for view in coordinator.data or []
            if view.id not in known
        ]
        if new_entities:
            _LOGGER.debug("Adding %s printer switch(es)", len(new_entities))
            known.update(entity._device_id for entity in new_entities)
            async_add_entities(new_entities)

    _add_new_printers()
    config_entry.async_on_unload(coordinator.async_add_listener(_add_new_printers))
