"""
# ATorch accessory registry

The registry is constructed once per config entry and owns every accessory
and every service. All reconciliation happens here, leaving Home Assistant
plumbing to the host and MQTT plumbing to the bus client.

## Discovered(topic, message)

1. Normalize the message and derive (accessory id, service key)
2. Find the accessory among known (live + restored) accessories, or create
   and register a new one
3. Record the message in the accessory context
4. Refresh the service when its key is already live, otherwise construct a
   service of the message's entity type
5. Classify the topic (device status sensor -> whole accessory)
6. Persist the accessory and reset its expiry timer

## Removed(topic)

1. Route the topic through the discovery topic map
2. Tear down one service, or every service plus the accessory itself
3. Forget the topic

## Concurrency

Handlers are synchronous callbacks on the event loop and never await, so a
handler run is never interleaved with another handler or an expiry timer.
"""
from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Protocol, Type

from homeassistant.core import callback

from .accessory import AtorchAccessory
from .base_entity import AtorchBaseEntity
from .bus import MqttBusClient
from .capabilities import SERVICE_TYPES
from .const import DEFAULT_CLEANUP, ENTITY_TYPE_KEY, EntityKind
from .exceptions import InvalidMessage, OrphanRemoval, UnknownEntityType
from .expiry import ExpiryScheduler
from .identity import derive_identity
from .normalize import normalize_message
from .topic_map import DiscoveryEntry, DiscoveryTopicMap, classify


class AccessoryHost(Protocol):
    """What the registry needs from the host platform."""

    def generate_id(self, seed: str) -> str: ...
    def register_accessories(self, accessories: List[AtorchAccessory]) -> None: ...
    def update_accessories(self, accessories: List[AtorchAccessory]) -> None: ...
    def unregister_accessories(self, accessories: List[AtorchAccessory]) -> None: ...
    def add_service(self, service: AtorchBaseEntity) -> None: ...
    def remove_service(self, service: AtorchBaseEntity) -> None: ...


class AccessoryRegistry:
    """
    - Track known accessories and live services
    - Reconcile discovery and removal events
    - Reap accessories that stop reporting
    """
    def __init__(
        self,
        host: AccessoryHost,
        bus: MqttBusClient,
        loop: asyncio.AbstractEventLoop,
        cleanup: float = DEFAULT_CLEANUP,
        service_types: Optional[Mapping[str, Type[AtorchBaseEntity]]] = None,
    ) -> None:
        """Initialize the registry.

        Args:
            host: Host platform adapter (device registry, storage, entities)
            bus: Bus client handed to every accessory context
            loop: Event loop the expiry timers run on
            cleanup: Hours without discovery before an accessory is removed
            service_types: Capability class per entity type
        """
        self.logger: logging.Logger = logging.getLogger(__name__)
        self.host: AccessoryHost = host
        self.bus: MqttBusClient = bus
        self.service_types: Mapping[str, Type[AtorchBaseEntity]] = service_types or SERVICE_TYPES
        self.expiry: ExpiryScheduler = ExpiryScheduler(loop, cleanup, self._handle_expiry)
        self.topic_map: DiscoveryTopicMap = DiscoveryTopicMap()
        self._accessories: Dict[str, AtorchAccessory] = {}
        self._services: Dict[str, AtorchBaseEntity] = {}

    @property
    def accessories(self) -> Mapping[str, AtorchAccessory]:
        return MappingProxyType(self._accessories)

    @property
    def services(self) -> Mapping[str, AtorchBaseEntity]:
        return MappingProxyType(self._services)

    def get_accessory(self, accessory_id: str) -> Optional[AtorchAccessory]:
        return self._accessories.get(accessory_id)

    @callback
    def restore_accessory(self, accessory: AtorchAccessory) -> None:
        """Track an accessory restored from storage.

        Its expiry timer starts right away, so a device that never announces
        itself again after a restart is still removed.
        """
        self.logger.info(f"Loading accessory from cache: {accessory.display_name}")
        accessory.context.bus = self.bus
        self._accessories[accessory.id] = accessory
        self.expiry.reset(accessory)

    @callback
    def handle_discovered(self, topic: str, config: Dict[str, Any]) -> None:
        """Create, update or restore the accessory and service a message describes."""
        message = normalize_message(config)
        self.logger.debug(f"Discovered -> {topic} {message.get('name')}")

        try:
            accessory_id, service_key = derive_identity(message, self.host.generate_id)
        except InvalidMessage as err:
            self.logger.warning(f"Skipping discovery message on {topic}: {err}")
            return

        accessory = self._accessories.get(accessory_id)
        if accessory is None:
            self.logger.info(f"Adding new accessory: {message.get('name')}")
            accessory = AtorchAccessory(message.get("name") or service_key, accessory_id)
            accessory.context.device[service_key] = message
            accessory.context.bus = self.bus
            self.host.register_accessories([accessory])
            self._accessories[accessory_id] = accessory
        else:
            self.logger.info(f"Found existing accessory: {message.get('name')}")
            accessory.context.bus = self.bus
            accessory.context.device[service_key] = message

        self._sync_service(accessory, service_key, message)

        self.topic_map.set(
            topic,
            DiscoveryEntry(
                topic=topic,
                kind=classify(message),
                service_key=service_key,
                accessory_id=accessory_id,
            ),
        )

        self.host.update_accessories([accessory])
        self.expiry.reset(accessory)

    def _sync_service(self, accessory: AtorchAccessory, service_key: str, message: Dict[str, Any]) -> None:
        service = self._services.get(service_key)
        if service is not None and service.accessory is not accessory:
            # Owning accessory expired and came back, rebuild on the live one
            self.logger.info(f"Rebuilding service for returning accessory: {message.get('name')}")
            service.teardown()
            del self._services[service_key]
            service = None

        if service is not None:
            self.logger.info(f"Refreshing existing service: {message.get('name')}")
            service.refresh()
            return

        try:
            service = self._build_service(accessory, service_key, message)
        except UnknownEntityType as err:
            self.logger.warning(f"Warning: {err}")
            return
        self.logger.info(f"Creating service: {message.get('name')} {service.kind}")
        self._services[service_key] = service
        service.create()

    def _build_service(self, accessory: AtorchAccessory, service_key: str, message: Dict[str, Any]) -> AtorchBaseEntity:
        entity_type = message.get(ENTITY_TYPE_KEY)
        service_type = self.service_types.get(entity_type)
        if service_type is None:
            raise UnknownEntityType(entity_type)
        return service_type(self, accessory, service_key)

    @callback
    def handle_removed(self, topic: str) -> None:
        """Tear down whatever a discovery topic created."""
        entry = self.topic_map.get(topic)
        if entry is None:
            self.logger.debug(f"Remove ignored, no discovery entry for {topic}")
            return

        try:
            accessory = self._resolve_removal(entry)
        except OrphanRemoval as err:
            self.logger.debug(f"{err}")
            self.topic_map.remove(topic)
            return

        if entry.kind is EntityKind.SERVICE:
            self._teardown_service(entry.service_key, accessory)
        else:
            self._teardown_accessory(accessory)

        self.topic_map.remove(topic)

    def _resolve_removal(self, entry: DiscoveryEntry) -> AtorchAccessory:
        accessory = self._accessories.get(entry.accessory_id)
        if accessory is None:
            raise OrphanRemoval(f"Missing accessory {entry.accessory_id} for {entry.topic}")
        return accessory

    def _teardown_service(self, service_key: str, accessory: AtorchAccessory, persist: bool = True) -> None:
        service = self._services.get(service_key)
        if service is None:
            self.logger.debug(f"No service {service_key}")
            return

        self.logger.info(f"Removing service: {service.name}")
        service.teardown()
        del self._services[service_key]
        accessory.context.device.pop(service_key, None)
        if persist:
            self.host.update_accessories([accessory])

    def _teardown_accessory(self, accessory: AtorchAccessory) -> None:
        self.logger.info(f"Removing accessory: {accessory.display_name}")

        owned = [
            key for key, service in self._services.items()
            if service.accessory.id == accessory.id
        ]
        for service_key in owned:
            self._teardown_service(service_key, accessory, persist=False)

        for entry in self.topic_map.entries_for(accessory.id):
            self.topic_map.remove(entry.topic)

        self.expiry.cancel(accessory)
        del self._accessories[accessory.id]
        self.host.unregister_accessories([accessory])

    @callback
    def _handle_expiry(self, accessory: AtorchAccessory) -> None:
        """Unregister an accessory that stopped reporting.

        Service subscriptions are left alone, unlike an explicit removal.
        """
        if self._accessories.get(accessory.id) is not accessory:
            self.logger.debug(f"Expired accessory {accessory.display_name} already removed")
            return

        self.logger.error(f"Removing {accessory.display_name}")
        del self._accessories[accessory.id]
        self.host.unregister_accessories([accessory])

    @callback
    def async_shutdown(self) -> None:
        """Cancel every timer and subscription, leaving accessories registered."""
        self.expiry.cancel_all(self._accessories.values())
        for service in self._services.values():
            service.unsubscribe()
