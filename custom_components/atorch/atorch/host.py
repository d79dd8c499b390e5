"""
# ATorch host platform

Everything the registry needs from Home Assistant goes through here:

- accessories map onto device registry entries
- services map onto entities, handed to their platform over the dispatcher
- the accessory context is snapshotted into a `Store`, restored at startup
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import device_registry as dr, entity_registry as er
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.storage import Store

from .accessory import AtorchAccessory
from .base_entity import AtorchBaseEntity
from .const import DOMAIN, SIGNAL_ADD_SERVICE, STORAGE_SAVE_DELAY, STORAGE_VERSION
from .identity import generate_uuid


class HomeAssistantHost:
    """Host platform collaborator backed by the device registry and a Store."""

    def __init__(self, hass: HomeAssistant, config_entry: ConfigEntry) -> None:
        self.logger: logging.Logger = logging.getLogger(__name__)
        self.hass: HomeAssistant = hass
        self.config_entry: ConfigEntry = config_entry
        self._store: Store = Store(hass, STORAGE_VERSION, f"{DOMAIN}.{config_entry.entry_id}")
        self._snapshot: Dict[str, Dict[str, Any]] = {}

    async def async_load(self) -> List[AtorchAccessory]:
        """Load the persisted accessories, in the order they were saved."""
        data = await self._store.async_load() or {}
        accessories: List[AtorchAccessory] = []
        for accessory_id, stored in (data.get("accessories") or {}).items():
            try:
                accessory = AtorchAccessory.from_dict({"id": accessory_id, **stored})
            except (KeyError, TypeError) as err:
                self.logger.warning(f"Skipping unreadable cached accessory {accessory_id}: {err}")
                continue
            self._snapshot[accessory.id] = accessory.as_dict()
            accessories.append(accessory)
        self.logger.debug(f"Loaded {len(accessories)} accessories from storage")
        return accessories

    async def async_flush(self) -> None:
        await self._store.async_save(self._data_to_save())

    def generate_id(self, seed: str) -> str:
        return generate_uuid(seed)

    @callback
    def register_accessories(self, accessories: Iterable[AtorchAccessory]) -> None:
        for accessory in accessories:
            self._update_device(accessory)
            self._snapshot[accessory.id] = accessory.as_dict()
        self._schedule_save()

    @callback
    def update_accessories(self, accessories: Iterable[AtorchAccessory]) -> None:
        for accessory in accessories:
            self._update_device(accessory)
            self._snapshot[accessory.id] = accessory.as_dict()
        self._schedule_save()

    @callback
    def unregister_accessories(self, accessories: Iterable[AtorchAccessory]) -> None:
        device_registry = dr.async_get(self.hass)
        for accessory in accessories:
            self._snapshot.pop(accessory.id, None)
            device_entry = device_registry.async_get_device(identifiers={(DOMAIN, accessory.id)})
            if device_entry:
                device_registry.async_remove_device(device_entry.id)
                self.logger.info(f"Removed device: {accessory.display_name}")
        self._schedule_save()

    @callback
    def add_service(self, service: AtorchBaseEntity) -> None:
        """Hand a new service to its entity platform."""
        async_dispatcher_send(self.hass, SIGNAL_ADD_SERVICE.format(service.kind), service)

    @callback
    def remove_service(self, service: AtorchBaseEntity) -> None:
        """Drop a service's entity, from the entity registry when it made it there."""
        entity_registry = er.async_get(self.hass)
        entity_id = entity_registry.async_get_entity_id(service.kind, DOMAIN, service.key)
        if entity_id:
            # Registry removal makes the live entity remove itself
            entity_registry.async_remove(entity_id)
        elif service.hass is not None and service.platform is not None:
            self.hass.async_create_task(service.async_remove(force_remove=True))

    def _update_device(self, accessory: AtorchAccessory) -> None:
        device_registry = dr.async_get(self.hass)
        device_registry.async_get_or_create(
            config_entry_id=self.config_entry.entry_id,
            **accessory.device_info,
        )

    def _data_to_save(self) -> Dict[str, Any]:
        return {
            "accessories": {
                accessory_id: {key: value for key, value in stored.items() if key != "id"}
                for accessory_id, stored in self._snapshot.items()
            }
        }

    def _schedule_save(self) -> None:
        self._store.async_delay_save(self._data_to_save, STORAGE_SAVE_DELAY)
