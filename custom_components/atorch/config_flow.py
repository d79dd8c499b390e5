"""
# ATorch config flow

There is nothing to discover or authenticate here: devices announce
themselves over MQTT, the broker connection belongs to the MQTT integration.
The flow only collects the bridge settings:

- discovery prefix the devices publish under
- cleanup window, in hours, after which silent devices are removed
- debug logging toggle

Only one bridge can be configured. The cleanup window and debug toggle can be
changed later from the options flow, which reloads the entry.
"""
from __future__ import annotations
from typing import Any, Dict, Optional

import logging
import voluptuous as vol

from homeassistant.config_entries import ConfigEntry, ConfigFlow, OptionsFlow
from homeassistant.core import callback

from .atorch.const import (
    CONF_CLEANUP,
    CONF_DEBUG,
    CONF_DISCOVERY_PREFIX,
    DEFAULT_CLEANUP,
    DEFAULT_DEBUG,
    DEFAULT_DISCOVERY_PREFIX,
    DOMAIN,
    PLUGIN_NAME,
)


def _settings_schema(defaults: Dict[str, Any], include_prefix: bool) -> vol.Schema:
    fields: Dict[Any, Any] = {}
    if include_prefix:
        fields[vol.Required(
            CONF_DISCOVERY_PREFIX,
            default=defaults.get(CONF_DISCOVERY_PREFIX, DEFAULT_DISCOVERY_PREFIX),
        )] = str
    fields[vol.Required(
        CONF_CLEANUP, default=defaults.get(CONF_CLEANUP, DEFAULT_CLEANUP)
    )] = vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))
    fields[vol.Required(
        CONF_DEBUG, default=defaults.get(CONF_DEBUG, DEFAULT_DEBUG)
    )] = bool
    return vol.Schema(fields)


class AtorchConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for atorch"""

    VERSION = 1
    MINOR_VERSION = 1

    def __init__(self) -> None:
        """Initialize the ATorch flow."""
        self.logger: logging.Logger = logging.getLogger(__name__)

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Handle a flow initialized by the user."""
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        errors: Dict[str, str] = {}
        if user_input is not None:
            prefix = user_input[CONF_DISCOVERY_PREFIX].strip().strip("/")
            if not prefix or "#" in prefix or "+" in prefix:
                errors[CONF_DISCOVERY_PREFIX] = "invalid_prefix"
            else:
                user_input[CONF_DISCOVERY_PREFIX] = prefix
                self.logger.info(f"Creating ATorch bridge on discovery prefix '{prefix}'")
                return self.async_create_entry(title=PLUGIN_NAME, data=user_input)

        return self.async_show_form(
            step_id="user",
            data_schema=_settings_schema(user_input or {}, include_prefix=True),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:
        return AtorchOptionsFlow()


class AtorchOptionsFlow(OptionsFlow):
    """Edit the cleanup window and debug toggle."""

    async def async_step_init(self, user_input: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        current = {**self.config_entry.data, **self.config_entry.options}
        return self.async_show_form(
            step_id="init",
            data_schema=_settings_schema(current, include_prefix=False),
        )
