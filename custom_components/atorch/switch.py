from __future__ import annotations

import logging
from typing import Any, Optional

from homeassistant.components.switch import SwitchEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .atorch.accessory import AtorchAccessory
from .atorch.base_entity import AtorchBaseEntity
from .atorch.const import DEFAULT_PAYLOAD_OFF, DEFAULT_PAYLOAD_ON
from .atorch.platform import generic_setup

async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the switch platform.

    Switches arrive at runtime from discovery, the registry hands each new
    one to this platform.
    """
    await generic_setup(hass, config_entry, "switch", async_add_entities)

class AtorchSwitch(AtorchBaseEntity, SwitchEntity):
    """Switch capability of an ATorch accessory (relay / power output)."""

    kind = "switch"

    def __init__(self, registry, accessory: AtorchAccessory, key: str) -> None:
        """Initialize the switch entity."""
        super().__init__(registry, accessory, key)
        self.logger: logging.Logger = logging.getLogger(__name__)
        self._is_on: Optional[bool] = None

    @property
    def is_on(self) -> Optional[bool]:
        """Return True if the switch is on."""
        return self._is_on

    def _handle_state(self, value: str) -> None:
        if value == self.payload_on:
            self._is_on = True
        elif value == self.payload_off:
            self._is_on = False

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the switch on by publishing the on payload to the command topic."""
        self.send_command(self.message.get("pl_on", DEFAULT_PAYLOAD_ON))

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the switch off by publishing the off payload to the command topic."""
        self.send_command(self.message.get("pl_off", DEFAULT_PAYLOAD_OFF))
