import logging

import homeassistant.helpers.config_validation as cv
import voluptuous as vol
from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ConfigEntryNotReady, HomeAssistantError

from .config_flow import _validate_backend
from .const import (
    ATTR_LOCALE,
    CONF_HOST,
    DOMAIN,
    SERVICE_CLEAR_LOG,
    SERVICE_REFRESH,
    SERVICE_SET_LOCALE,
)
from .coordinator import PrintShareCoordinator
from .errors import PrintShareError

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.SWITCH]
_LOGGER = logging.getLogger(__name__)

SET_LOCALE_SCHEMA = vol.Schema({vol.Required(ATTR_LOCALE): cv.string})


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    entry_data = {**entry.data, **entry.options}

    error = await _validate_backend(entry_data[CONF_HOST])
    if error is not None:
        raise ConfigEntryNotReady(
            f"PrintShare backend at {entry_data[CONF_HOST]} is not reachable"
        )

    coordinator = PrintShareCoordinator(hass, entry_data, config_entry=entry)
    await coordinator.async_config_entry_first_refresh()
    entry.runtime_data = coordinator

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    _async_register_services(hass)
    return True


def _coordinators(hass: HomeAssistant) -> list[PrintShareCoordinator]:
    return [
        entry.runtime_data
        for entry in hass.config_entries.async_loaded_entries(DOMAIN)
    ]


def _async_register_services(hass: HomeAssistant) -> None:
    """Register the integration-wide services once."""
    if hass.services.has_service(DOMAIN, SERVICE_REFRESH):
        return

    async def _refresh(call: ServiceCall) -> None:
        for coordinator in _coordinators(hass):
            await coordinator.async_request_refresh()

    async def _clear_log(call: ServiceCall) -> None:
        for coordinator in _coordinators(hass):
            coordinator.engine.clear_log()

    async def _set_locale(call: ServiceCall) -> None:
        for coordinator in _coordinators(hass):
            try:
                await coordinator.engine.set_locale(call.data[ATTR_LOCALE])
            except PrintShareError as exc:
                raise HomeAssistantError(str(exc)) from exc

    hass.services.async_register(DOMAIN, SERVICE_REFRESH, _refresh)
    hass.services.async_register(DOMAIN, SERVICE_CLEAR_LOG, _clear_log)
    hass.services.async_register(
        DOMAIN, SERVICE_SET_LOCALE, _set_locale, schema=SET_LOCALE_SCHEMA
    )


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok and not [
        other
        for other in hass.config_entries.async_loaded_entries(DOMAIN)
        if other.entry_id != entry.entry_id
    ]:
        for service in (SERVICE_REFRESH, SERVICE_CLEAR_LOG, SERVICE_SET_LOCALE):
            hass.services.async_remove(DOMAIN, service)
    return unload_ok
