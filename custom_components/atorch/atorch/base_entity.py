"""
# ATorch base entity

Every capability (switch, light, sensor, binary sensor) of an accessory is a
service, and every service is a Home Assistant entity. This base class:
- associates the entity with its accessory's device
- subscribes to the status and availability topics
- implements the create / refresh / teardown lifecycle the registry drives

It is up to the capability classes to:
- extend this
- set `kind`
- interpret the state payload (`_handle_state`)
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity import Entity

from .accessory import AtorchAccessory
from .bus import Subscription
from .const import (
    DEFAULT_PAYLOAD_AVAILABLE,
    DEFAULT_PAYLOAD_NOT_AVAILABLE,
    DEFAULT_PAYLOAD_OFF,
    DEFAULT_PAYLOAD_ON,
    AtorchDiscoveryMessage,
)
from .helpers import payload_to_str, render_value

if TYPE_CHECKING:
    from .registry import AccessoryRegistry


class AtorchBaseEntity(Entity):
    """Base entity class for all ATorch services."""

    kind: str = ""

    _attr_should_poll = False

    def __init__(
        self,
        registry: AccessoryRegistry,
        accessory: AtorchAccessory,
        key: str,
    ) -> None:
        """Initialize the service.

        Args:
            registry: Registry that owns this service
            accessory: Accessory the service belongs to
            key: Service key (the message unique id)
        """
        self.logger: logging.Logger = logging.getLogger(__name__)
        self.registry: AccessoryRegistry = registry
        self.accessory: AtorchAccessory = accessory
        self.key: str = key
        self.status_subscription: Optional[Subscription] = None
        self.availability_subscription: Optional[Subscription] = None
        self._state_value: Optional[str] = None
        self._available: bool = True

    @property
    def message(self) -> AtorchDiscoveryMessage:
        """Last discovery message seen for this service."""
        return self.accessory.context.device.get(self.key, {})

    @property
    def unique_id(self) -> str:
        return self.key

    @property
    def name(self) -> Optional[str]:
        return self.message.get("name")

    @property
    def device_info(self) -> DeviceInfo:
        return self.accessory.device_info

    @property
    def available(self) -> bool:
        return self._available

    @property
    def payload_on(self) -> str:
        return self.message.get("stat_on") or self.message.get("pl_on") or DEFAULT_PAYLOAD_ON

    @property
    def payload_off(self) -> str:
        return self.message.get("stat_off") or self.message.get("pl_off") or DEFAULT_PAYLOAD_OFF

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        return {"accessory_id": self.accessory.id}

    def create(self) -> None:
        """Subscribe to the service's topics and add it to Home Assistant."""
        self.logger.debug(f"Creating {self.kind} service {self.key}")
        self.accessory.add_service(self)
        self._subscribe()
        self.registry.host.add_service(self)

    def refresh(self) -> None:
        """Re-read the last message, re-subscribe and re-push state."""
        self.logger.debug(f"Refreshing {self.kind} service {self.key}")
        self.unsubscribe()
        self._subscribe()
        self._write_state()

    def teardown(self) -> None:
        """Cancel both subscriptions and drop the entity."""
        self.logger.debug(f"Tearing down {self.kind} service {self.key}")
        self.unsubscribe()
        self.accessory.remove_service(self)
        self.registry.host.remove_service(self)

    def _subscribe(self) -> None:
        bus = self.accessory.context.bus
        if bus is None:
            self.logger.warning(f"No bus client for {self.key}, skipping subscriptions")
            return
        state_topic = self.message.get("stat_t")
        if state_topic:
            self.status_subscription = bus.subscribe(state_topic, self._handle_state_message)
        availability_topic = self.message.get("avty_t")
        if availability_topic:
            self.availability_subscription = bus.subscribe(
                availability_topic, self._handle_availability_message
            )

    def unsubscribe(self) -> None:
        for subscription in (self.status_subscription, self.availability_subscription):
            if subscription is not None:
                subscription.cancel()
        self.status_subscription = None
        self.availability_subscription = None

    @callback
    def _handle_state_message(self, msg: Any) -> None:
        value = render_value(self.message.get("val_tpl"), msg.payload)
        if value is None:
            self.logger.debug(f"{self.key}: no value in state payload on {msg.topic}")
            return
        self._state_value = value
        self._handle_state(value)
        self._write_state()

    @callback
    def _handle_availability_message(self, msg: Any) -> None:
        payload = payload_to_str(msg.payload)
        if payload == self.message.get("pl_avail", DEFAULT_PAYLOAD_AVAILABLE):
            self._available = True
        elif payload == self.message.get("pl_not_avail", DEFAULT_PAYLOAD_NOT_AVAILABLE):
            self._available = False
        else:
            return
        self._write_state()

    def send_command(self, payload: str) -> bool:
        """Publish a payload on the command topic, if the service has one."""
        command_topic = self.message.get("cmd_t")
        bus = self.accessory.context.bus
        if not command_topic or bus is None:
            self.logger.warning(f"{self.name} has no command topic, ignoring command")
            return False
        bus.publish(command_topic, payload)
        return True

    def _handle_state(self, value: str) -> None:
        """Interpret a rendered state value, override per capability."""

    def _write_state(self) -> None:
        if self.hass is not None and self.entity_id is not None:
            self.async_write_ha_state()
