from __future__ import annotations

import logging
from typing import Optional

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EntityCategory
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
    """Set up the sensor platform.

    Sensors arrive at runtime from discovery, including the per-device
    status sensor.
    """
    await generic_setup(hass, config_entry, "sensor", async_add_entities)

class AtorchSensor(AtorchBaseEntity, SensorEntity):
    """Sensor capability of an ATorch accessory.

    A sensor without a device class is the device status sensor (uptime,
    signal, ...), it is exposed as a diagnostic entity.
    """

    kind = "sensor"

    def __init__(self, registry, accessory: AtorchAccessory, key: str) -> None:
        """Initialize the sensor entity."""
        super().__init__(registry, accessory, key)
        self.logger: logging.Logger = logging.getLogger(__name__)

    @property
    def is_status_sensor(self) -> bool:
        return not self.message.get("dev_cla")

    @property
    def native_value(self) -> Optional[str]:
        return self._state_value

    @property
    def native_unit_of_measurement(self) -> Optional[str]:
        return self.message.get("unit_of_meas")

    @property
    def device_class(self) -> Optional[SensorDeviceClass]:
        if self.is_status_sensor:
            return None
        try:
            return SensorDeviceClass(self.message.get("dev_cla"))
        except ValueError:
            return None

    @property
    def entity_category(self) -> Optional[EntityCategory]:
        if self.is_status_sensor:
            return EntityCategory.DIAGNOSTIC
        return None
