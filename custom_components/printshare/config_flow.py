"""Config flow for the PrintShare integration."""
from __future__ import annotations
import logging
import uuid
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    CONF_ENTRY_NAME,
    CONF_HOST,
    CONF_LANGUAGE,
    CONF_SCAN_INTERVAL,
    DEFAULT_ENTRY_NAME,
    DEFAULT_HOST,
    DEFAULT_LOCALE,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    MIN_SCAN_INTERVAL,
    SUPPORTED_LOCALES,
)
from .requests import check_backend_availability

scan_interval = vol.All(vol.Coerce(int), vol.Range(min=MIN_SCAN_INTERVAL))
host_validator = vol.All(cv.string, vol.Length(min=1), vol.Match(r"^https?://[^\s/]+"))

_LOGGER = logging.getLogger(__name__)


async def _validate_backend(host: str) -> str | None:
    """Return None when the backend answers, or an error key for the form."""
    if not await check_backend_availability(host):
        return "cannot_connect"
    return None


def _options_schema(language: str, interval: int) -> vol.Schema:
    return vol.Schema(
        {
            vol.Required(CONF_LANGUAGE, default=language): vol.In(SUPPORTED_LOCALES),
            vol.Required(CONF_SCAN_INTERVAL, default=interval): scan_interval,
        }
    )


CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default=DEFAULT_ENTRY_NAME): cv.string,
                vol.Required(CONF_HOST, default=DEFAULT_HOST): host_validator,
                vol.Required(CONF_LANGUAGE, default=DEFAULT_LOCALE): vol.In(SUPPORTED_LOCALES),
                vol.Required(CONF_SCAN_INTERVAL, default=DEFAULT_SCAN_INTERVAL): scan_interval,
            }
        )


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = dict(user_input)
            # If entry_name is null or empty string, add error
            if not self.data.get(CONF_ENTRY_NAME, "").strip():
                errors['base'] = 'entry_name_required'
            # If host is null or empty string, add error
            elif not self.data.get(CONF_HOST, "").strip():
                errors['base'] = 'host_required'
            else:
                self.data[CONF_HOST] = self.data[CONF_HOST].strip().rstrip("/")
                self._async_abort_entries_match({CONF_HOST: self.data[CONF_HOST]})
                error = await _validate_backend(self.data[CONF_HOST])
                if error is not None:
                    errors["base"] = error
            if not errors:
                # Create new guid for the entry
                self.data['guid'] = str(uuid.uuid4())
                return self.async_create_entry(title=self.data[CONF_ENTRY_NAME], data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler()


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Edits language and refresh interval; the entry reloads afterwards."""

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ):
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        current = {**self.config_entry.data, **self.config_entry.options}
        return self.async_show_form(
            step_id="init",
            data_schema=_options_schema(
                current.get(CONF_LANGUAGE, DEFAULT_LOCALE),
                current.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL),
            ),
        )
