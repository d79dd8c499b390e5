from __future__ import annotations

import logging
from typing import Any, Optional

from homeassistant.components.light import ColorMode, LightEntity
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
    """Set up the light platform."""
    await generic_setup(hass, config_entry, "light", async_add_entities)

class AtorchLight(AtorchBaseEntity, LightEntity):
    """Light capability of an ATorch accessory.

    Only on/off is supported, discovery brightness keys are ignored.
    """

    kind = "light"

    _attr_color_mode = ColorMode.ONOFF
    _attr_supported_color_modes = {ColorMode.ONOFF}

    def __init__(self, registry, accessory: AtorchAccessory, key: str) -> None:
        super().__init__(registry, accessory, key)
        self.logger: logging.Logger = logging.getLogger(__name__)
        self._is_on: Optional[bool] = None

    @property
    def is_on(self) -> Optional[bool]:
        return self._is_on

    def _handle_state(self, value: str) -> None:
        if value == self.payload_on:
            self._is_on = True
        elif value == self.payload_off:
            self._is_on = False

    async def async_turn_on(self, **kwargs: Any) -> None:
        self.send_command(self.message.get("pl_on", DEFAULT_PAYLOAD_ON))

    async def async_turn_off(self, **kwargs: Any) -> None:
        self.send_command(self.message.get("pl_off", DEFAULT_PAYLOAD_OFF))
