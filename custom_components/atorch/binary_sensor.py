from __future__ import annotations

import logging
from typing import Optional

from homeassistant.components.binary_sensor import BinarySensorDeviceClass, BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .atorch.accessory import AtorchAccessory
from .atorch.base_entity import AtorchBaseEntity
from .atorch.platform import generic_setup

async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the binary_sensor platform.

    Binary sensors (button / switch inputs) arrive at runtime from discovery.
    """
    await generic_setup(hass, config_entry, "binary_sensor", async_add_entities)

class AtorchBinarySensor(AtorchBaseEntity, BinarySensorEntity):
    """Binary sensor capability of an ATorch accessory."""

    kind = "binary_sensor"

    def __init__(self, registry, accessory: AtorchAccessory, key: str) -> None:
        """Initialize the binary sensor entity."""
        super().__init__(registry, accessory, key)
        self.logger: logging.Logger = logging.getLogger(__name__)
        self._is_on: Optional[bool] = None

    @property
    def device_class(self) -> Optional[BinarySensorDeviceClass]:
        """Return the device class of the binary sensor."""
        try:
            return BinarySensorDeviceClass(self.message.get("dev_cla"))
        except ValueError:
            return None

    @property
    def is_on(self) -> Optional[bool]:
        """Return True if the binary sensor is on."""
        return self._is_on

    def _handle_state(self, value: str) -> None:
        if value == self.payload_on:
            self._is_on = True
        elif value == self.payload_off:
            self._is_on = False
