from __future__ import annotations

import logging
from typing import Any, Dict

from homeassistant.components import mqtt
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .atorch.bus import MqttBusClient
from .atorch.const import (
    CONF_CLEANUP,
    CONF_DEBUG,
    CONF_DISCOVERY_PREFIX,
    DEFAULT_CLEANUP,
    DEFAULT_DEBUG,
    DEFAULT_DISCOVERY_PREFIX,
    DOMAIN,
    PLATFORMS,
)
from .atorch.host import HomeAssistantHost
from .atorch.registry import AccessoryRegistry

logger: logging.Logger = logging.getLogger(__name__)


def entry_options(config_entry: ConfigEntry) -> Dict[str, Any]:
    """Merged view of a config entry, options override data."""
    options = {
        CONF_DISCOVERY_PREFIX: DEFAULT_DISCOVERY_PREFIX,
        CONF_CLEANUP: DEFAULT_CLEANUP,
        CONF_DEBUG: DEFAULT_DEBUG,
    }
    options.update(config_entry.data or {})
    options.update(config_entry.options or {})
    return options


def apply_log_level(debug: bool) -> None:
    # NOTSET hands the level back to the logger configuration
    logging.getLogger(__package__).setLevel(logging.DEBUG if debug else logging.NOTSET)


async def async_setup_entry(hass: HomeAssistant, config_entry: ConfigEntry) -> bool:
    """Set up the ATorch bridge from a config entry.

    Restored accessories are tracked (and their expiry timers armed) before
    discovery starts, so a rediscovered device updates its cached accessory
    instead of registering a duplicate.
    """
    options = entry_options(config_entry)
    apply_log_level(options[CONF_DEBUG])

    if not await mqtt.async_wait_for_mqtt_client(hass):
        raise ConfigEntryNotReady("MQTT integration is not available")

    host = HomeAssistantHost(hass, config_entry)
    bus = MqttBusClient(hass, options[CONF_DISCOVERY_PREFIX])
    registry = AccessoryRegistry(host, bus, hass.loop, options[CONF_CLEANUP])
    hass.data.setdefault(DOMAIN, {})[config_entry.entry_id] = registry

    # Platforms must be listening before the first service is handed over
    await hass.config_entries.async_forward_entry_setups(config_entry, PLATFORMS)

    for accessory in await host.async_load():
        registry.restore_accessory(accessory)

    await bus.async_start(registry.handle_discovered, registry.handle_removed)
    logger.info(f"ATorch bridge ready, {len(registry.accessories)} accessories restored")

    config_entry.async_on_unload(config_entry.add_update_listener(async_reload_entry))
    return True


async def async_unload_entry(hass: HomeAssistant, config_entry: ConfigEntry) -> bool:
    """Unload a config entry.

    Stops discovery, cancels timers and subscriptions and writes the final
    snapshot. Accessories stay registered for the next start.
    """
    registry: AccessoryRegistry = hass.data[DOMAIN][config_entry.entry_id]
    registry.bus.async_stop()
    registry.async_shutdown()
    await registry.host.async_flush()

    unload_ok = await hass.config_entries.async_unload_platforms(config_entry, PLATFORMS)
    if unload_ok:
        hass.data[DOMAIN].pop(config_entry.entry_id)
    return unload_ok


async def async_reload_entry(hass: HomeAssistant, config_entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(config_entry.entry_id)
