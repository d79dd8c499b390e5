"""
Tests for the Home Assistant host adapter.

Tests cover:
- Loading cached accessories from the Store (unreadable entries skipped)
- Snapshot updates and the saved layout
- Device registry registration and removal
- Entity removal and hand-off of new services to their platform
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.atorch.atorch import host as host_module
from custom_components.atorch.atorch.accessory import AccessoryContext, AtorchAccessory
from custom_components.atorch.atorch.const import DOMAIN, STORAGE_VERSION
from custom_components.atorch.atorch.host import HomeAssistantHost


@pytest.fixture
def store():
    store = MagicMock()
    store.async_load = AsyncMock(return_value=None)
    store.async_save = AsyncMock()
    return store


@pytest.fixture
def device_registry():
    registry = MagicMock()
    registry.async_get_device.return_value = None
    return registry


@pytest.fixture
def entity_registry():
    registry = MagicMock()
    registry.async_get_entity_id.return_value = None
    return registry


@pytest.fixture
def host(monkeypatch, store, device_registry, entity_registry):
    store_class = MagicMock(return_value=store)
    monkeypatch.setattr(host_module, "Store", store_class)
    monkeypatch.setattr(host_module.dr, "async_get", lambda hass: device_registry)
    monkeypatch.setattr(host_module.er, "async_get", lambda hass: entity_registry)
    host = HomeAssistantHost(MagicMock(), SimpleNamespace(entry_id="entry1"))
    store_class.assert_called_once_with(host.hass, STORAGE_VERSION, f"{DOMAIN}.entry1")
    return host


def saved_data(store):
    """Run the data callback handed to the last delayed save."""
    data_func, _ = store.async_delay_save.call_args.args
    return data_func()


def meter(accessory_id="acc1"):
    return AtorchAccessory("Meter", accessory_id, AccessoryContext(device={
        "a1": {"uniq_id": "a1", "dev": {"ids": ["dev1"], "mdl": "DL24"}},
    }))


class TestLoad:
    @pytest.mark.asyncio
    async def test_empty_store(self, host):
        assert await host.async_load() == []

    @pytest.mark.asyncio
    async def test_round_trip(self, host, store):
        store.async_load.return_value = {
            "accessories": {
                "acc1": {"display_name": "Meter", "context": {"device": {"a1": {"uniq_id": "a1"}}}},
            }
        }

        restored, = await host.async_load()
        host.register_accessories([meter("acc2")])
        await host.async_flush()

        assert restored.id == "acc1"
        assert restored.display_name == "Meter"
        assert restored.context.device == {"a1": {"uniq_id": "a1"}}
        (data,), _ = store.async_save.call_args
        assert data == {
            "accessories": {
                "acc1": {"display_name": "Meter", "context": {"device": {"a1": {"uniq_id": "a1"}}}},
                "acc2": {
                    "display_name": "Meter",
                    "context": {"device": {"a1": {"uniq_id": "a1", "dev": {"ids": ["dev1"], "mdl": "DL24"}}}},
                },
            }
        }

    @pytest.mark.asyncio
    async def test_unreadable_entries_skipped(self, host, store):
        store.async_load.return_value = {
            "accessories": {
                "broken": "not a mapping",
                "bad_context": {"display_name": "Bad", "context": {"device": 5}},
                "acc1": {"display_name": "Meter", "context": {"device": {}}},
            }
        }

        restored = await host.async_load()

        assert [accessory.id for accessory in restored] == ["acc1"]
        await host.async_flush()
        (data,), _ = store.async_save.call_args
        assert list(data["accessories"]) == ["acc1"]


class TestSnapshot:
    def test_register_creates_device_and_schedules_save(self, host, store, device_registry):
        accessory = meter()

        host.register_accessories([accessory])

        _, kwargs = device_registry.async_get_or_create.call_args
        assert kwargs["config_entry_id"] == "entry1"
        assert kwargs["identifiers"] == {(DOMAIN, "acc1")}
        assert kwargs["model"] == "DL24"
        assert "id" not in saved_data(store)["accessories"]["acc1"]

    def test_update_replaces_snapshot(self, host, store):
        accessory = meter()
        host.register_accessories([accessory])

        accessory.context.device["a2"] = {"uniq_id": "a2"}
        host.update_accessories([accessory])

        assert set(saved_data(store)["accessories"]["acc1"]["context"]["device"]) == {"a1", "a2"}

    def test_runtime_state_not_saved(self, host, store):
        accessory = meter()
        accessory.context.bus = MagicMock()
        accessory.context.timeout = MagicMock()

        host.update_accessories([accessory])

        assert saved_data(store)["accessories"]["acc1"]["context"] == {"device": accessory.context.device}

    def test_unregister_removes_device_and_snapshot(self, host, store, device_registry):
        device_registry.async_get_device.return_value = SimpleNamespace(id="device-1")
        keeper, gone = meter("acc1"), meter("acc2")
        host.register_accessories([keeper, gone])

        host.unregister_accessories([gone])

        device_registry.async_get_device.assert_called_with(identifiers={(DOMAIN, "acc2")})
        device_registry.async_remove_device.assert_called_once_with("device-1")
        assert list(saved_data(store)["accessories"]) == ["acc1"]

    def test_unregister_without_device(self, host, store, device_registry):
        host.register_accessories([meter()])

        host.unregister_accessories([meter()])

        device_registry.async_remove_device.assert_not_called()
        assert saved_data(store) == {"accessories": {}}


class TestServices:
    def service(self, **attrs):
        service = MagicMock(kind="switch", key="a1", hass=None, platform=None)
        for name, value in attrs.items():
            setattr(service, name, value)
        return service

    def test_add_service_dispatches_to_platform(self, host, monkeypatch):
        send = MagicMock()
        monkeypatch.setattr(host_module, "async_dispatcher_send", send)
        service = self.service()

        host.add_service(service)

        send.assert_called_once_with(host.hass, f"{DOMAIN}_add_service_switch", service)

    def test_remove_registered_entity(self, host, entity_registry):
        entity_registry.async_get_entity_id.return_value = "switch.meter_power"

        host.remove_service(self.service())

        entity_registry.async_get_entity_id.assert_called_once_with("switch", DOMAIN, "a1")
        entity_registry.async_remove.assert_called_once_with("switch.meter_power")
        host.hass.async_create_task.assert_not_called()

    def test_remove_unregistered_live_entity(self, host, entity_registry):
        service = self.service(hass=host.hass, platform=MagicMock())

        host.remove_service(service)

        entity_registry.async_remove.assert_not_called()
        service.async_remove.assert_called_once_with(force_remove=True)
        host.hass.async_create_task.assert_called_once_with(service.async_remove.return_value)

    def test_remove_entity_never_added(self, host, entity_registry):
        service = self.service()

        host.remove_service(service)

        entity_registry.async_remove.assert_not_called()
        host.hass.async_create_task.assert_not_called()
