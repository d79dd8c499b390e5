"""
# ATorch accessory

One accessory per physical device. The accessory owns a context bag that is
persisted verbatim across restarts (only the `device` map is durable, the bus
reference and the expiry timer are runtime state).
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from homeassistant.helpers.device_registry import DeviceInfo

from .const import DOMAIN, PLUGIN_NAME, AtorchDeviceMetadata

if TYPE_CHECKING:
    from .base_entity import AtorchBaseEntity
    from .bus import MqttBusClient


@dataclass
class AccessoryContext:
    device: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    bus: Optional["MqttBusClient"] = None
    timeout: Optional[asyncio.TimerHandle] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"device": self.device}


class AtorchAccessory:
    """A physical device exposed to Home Assistant as one device entry."""

    def __init__(
        self,
        display_name: str,
        accessory_id: str,
        context: Optional[AccessoryContext] = None,
    ) -> None:
        self.id: str = accessory_id
        self.display_name: str = display_name
        self.context: AccessoryContext = context or AccessoryContext()
        self.services: Dict[str, AtorchBaseEntity] = {}

    def __repr__(self) -> str:
        return f"<AtorchAccessory {self.display_name} ({self.id})>"

    def add_service(self, service: AtorchBaseEntity) -> None:
        self.services[service.key] = service

    def remove_service(self, service: AtorchBaseEntity) -> None:
        if self.services.get(service.key) is service:
            del self.services[service.key]

    @property
    def device_metadata(self) -> AtorchDeviceMetadata:
        """Device block of the most recently seen message that carried one."""
        for message in reversed(list(self.context.device.values())):
            device = message.get("dev")
            if isinstance(device, dict):
                return device
        return {}

    @property
    def device_info(self) -> DeviceInfo:
        """Translate between the discovery device block and hass device info."""
        device = self.device_metadata
        return DeviceInfo(
            identifiers={(DOMAIN, self.id)},
            name=device.get("name") or self.display_name,
            manufacturer=device.get("mf") or PLUGIN_NAME,
            model=device.get("mdl"),
            sw_version=device.get("sw"),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "context": self.context.as_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AtorchAccessory:
        context = data.get("context") or {}
        return cls(
            data.get("display_name") or data["id"],
            data["id"],
            AccessoryContext(device=dict(context.get("device") or {})),
        )
