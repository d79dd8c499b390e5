"""
# ATorch MQTT bus client

Thin adapter over the Home Assistant MQTT integration.

## Discovery

Devices announce themselves on `<prefix>/<component>/[<node_id>/]<object_id>/config`:

- a JSON payload is a `Discovered(topic, message)` event, the component
  segment is copied into the message as `atorchType`
- an empty (retained clear) payload is a `Removed(topic)` event

## Services

Services use `subscribe` / `publish` for their state, availability and
command topics. MQTT subscribe is a coroutine, handlers are not, so each
subscription is started as a task and wrapped in a `Subscription` handle
that can be cancelled at any point.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

from homeassistant.components import mqtt
from homeassistant.core import HomeAssistant, callback

from .const import ENTITY_TYPE_KEY
from .helpers import payload_to_str

DiscoveredCallback = Callable[[str, Dict[str, Any]], None]
RemovedCallback = Callable[[str], None]
MessageCallback = Callable[[Any], None]

_LOGGER = logging.getLogger(__name__)


class Subscription:
    """Handle for one MQTT subscription, cancellable before or after it is live."""

    def __init__(self, event: str, task: asyncio.Future) -> None:
        self.event: str = event
        self._task = task
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._cancelled = False
        task.add_done_callback(self._subscribed)

    def _subscribed(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        if task.exception() is not None:
            _LOGGER.error(f"Failed to subscribe to {self.event}: {task.exception()}")
            return
        self._unsubscribe = task.result()
        if self._cancelled:
            self._release()

    def _release(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    @property
    def active(self) -> bool:
        return not self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._unsubscribe is not None:
            self._release()
        elif not self._task.done():
            self._task.cancel()


def parse_discovery_topic(prefix: str, topic: str) -> Optional[str]:
    """Return the component segment of a discovery config topic, or None."""
    parts = topic.split("/")
    if parts[-1] != "config" or not topic.startswith(f"{prefix}/"):
        return None
    segments = parts[len(prefix.split("/")):-1]
    if len(segments) not in (2, 3):
        return None
    return segments[0]


class MqttBusClient:
    """Bus client collaborator backed by Home Assistant's MQTT integration."""

    def __init__(self, hass: HomeAssistant, discovery_prefix: str) -> None:
        self.logger: logging.Logger = logging.getLogger(__name__)
        self.hass: HomeAssistant = hass
        self.discovery_prefix: str = discovery_prefix.rstrip("/")
        self._on_discovered: Optional[DiscoveredCallback] = None
        self._on_removed: Optional[RemovedCallback] = None
        self._discovery_unsubscribe: Optional[Callable[[], None]] = None

    async def async_start(self, on_discovered: DiscoveredCallback, on_removed: RemovedCallback) -> None:
        """Subscribe to the discovery tree and start dispatching events."""
        self._on_discovered = on_discovered
        self._on_removed = on_removed
        topic = f"{self.discovery_prefix}/#"
        self.logger.info(f"Listening for discovery messages on {topic}")
        self._discovery_unsubscribe = await mqtt.async_subscribe(
            self.hass, topic, self._handle_discovery_message
        )

    @callback
    def async_stop(self) -> None:
        if self._discovery_unsubscribe is not None:
            self._discovery_unsubscribe()
            self._discovery_unsubscribe = None

    @callback
    def _handle_discovery_message(self, msg: Any) -> None:
        component = parse_discovery_topic(self.discovery_prefix, msg.topic)
        if component is None:
            return

        payload = payload_to_str(msg.payload).strip()
        if not payload:
            self.logger.debug(f"Remove -> {msg.topic}")
            if self._on_removed is not None:
                self._on_removed(msg.topic)
            return

        try:
            message = json.loads(payload)
        except ValueError as err:
            self.logger.warning(f"Invalid discovery payload on {msg.topic}: {err}")
            return
        if not isinstance(message, dict):
            self.logger.warning(f"Discovery payload on {msg.topic} is not an object")
            return

        message[ENTITY_TYPE_KEY] = component
        if self._on_discovered is not None:
            self._on_discovered(msg.topic, message)

    @callback
    def subscribe(self, topic: str, msg_callback: MessageCallback) -> Subscription:
        """Start a subscription without waiting for the broker."""
        task = self.hass.async_create_task(
            mqtt.async_subscribe(self.hass, topic, msg_callback)
        )
        return Subscription(topic, task)

    @callback
    def publish(self, topic: str, payload: str, retain: bool = False) -> None:
        self.hass.async_create_task(
            mqtt.async_publish(self.hass, topic, payload, 0, retain)
        )
