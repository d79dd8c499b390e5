"""Tests for the MQTT bus client adapter."""
import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from custom_components.atorch.atorch.bus import MqttBusClient, Subscription, parse_discovery_topic


class TestParseDiscoveryTopic:
    @pytest.mark.parametrize(
        "topic, component",
        [
            ("homeassistant/switch/dl24_1/config", "switch"),
            ("homeassistant/sensor/dl24_1/voltage/config", "sensor"),
        ],
    )
    def test_config_topics(self, topic, component):
        assert parse_discovery_topic("homeassistant", topic) == component

    @pytest.mark.parametrize(
        "topic",
        [
            "homeassistant/switch/dl24_1/state",
            "homeassistant/switch/config",
            "homeassistant/sensor/a/b/c/config",
            "other/switch/dl24_1/config",
            "homeassistantx/switch/dl24_1/config",
        ],
    )
    def test_other_topics_ignored(self, topic):
        assert parse_discovery_topic("homeassistant", topic) is None

    def test_nested_prefix(self):
        assert parse_discovery_topic("site/ha", "site/ha/light/lamp/config") == "light"


class TestDiscoveryDispatch:
    @pytest.fixture
    def client(self):
        client = MqttBusClient(MagicMock(), "homeassistant/")
        client._on_discovered = MagicMock()
        client._on_removed = MagicMock()
        return client

    def deliver(self, client, topic, payload):
        client._handle_discovery_message(SimpleNamespace(topic=topic, payload=payload))

    def test_prefix_trailing_slash_stripped(self, client):
        assert client.discovery_prefix == "homeassistant"

    def test_json_payload_is_discovered_with_type(self, client):
        self.deliver(client, "homeassistant/light/lamp/config", '{"uniq_id": "a1"}')

        client._on_discovered.assert_called_once_with(
            "homeassistant/light/lamp/config", {"uniq_id": "a1", "atorchType": "light"}
        )
        client._on_removed.assert_not_called()

    @pytest.mark.parametrize("payload", ["", b"", "  "])
    def test_empty_payload_is_removal(self, client, payload):
        self.deliver(client, "homeassistant/light/lamp/config", payload)

        client._on_removed.assert_called_once_with("homeassistant/light/lamp/config")
        client._on_discovered.assert_not_called()

    def test_invalid_json_dropped(self, client, caplog):
        with caplog.at_level(logging.WARNING):
            self.deliver(client, "homeassistant/light/lamp/config", "{not json")

        client._on_discovered.assert_not_called()
        client._on_removed.assert_not_called()
        assert "Invalid discovery payload" in caplog.text

    def test_non_object_payload_dropped(self, client):
        self.deliver(client, "homeassistant/light/lamp/config", "[1, 2]")

        client._on_discovered.assert_not_called()

    def test_non_config_topic_ignored(self, client):
        self.deliver(client, "homeassistant/light/lamp/state", '{"uniq_id": "a1"}')

        client._on_discovered.assert_not_called()
        client._on_removed.assert_not_called()

    def test_stop_unsubscribes(self, client):
        unsubscribe = MagicMock()
        client._discovery_unsubscribe = unsubscribe

        client.async_stop()
        client.async_stop()

        unsubscribe.assert_called_once()


class TestSubscription:
    @pytest.mark.asyncio
    async def test_cancel_after_subscribed_releases(self):
        future = asyncio.get_running_loop().create_future()
        unsubscribe = MagicMock()
        subscription = Subscription("stat/dev1/POWER", future)

        future.set_result(unsubscribe)
        await asyncio.sleep(0)
        subscription.cancel()

        unsubscribe.assert_called_once()
        assert not subscription.active

    @pytest.mark.asyncio
    async def test_cancel_before_subscribed_releases_on_arrival(self):
        future = asyncio.get_running_loop().create_future()
        unsubscribe = MagicMock()
        subscription = Subscription("stat/dev1/POWER", future)

        subscription.cancel()

        assert future.cancelled()
        unsubscribe.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_while_result_pending_callback(self):
        future = asyncio.get_running_loop().create_future()
        unsubscribe = MagicMock()
        subscription = Subscription("stat/dev1/POWER", future)

        future.set_result(unsubscribe)
        subscription.cancel()
        await asyncio.sleep(0)

        unsubscribe.assert_called_once()

    @pytest.mark.asyncio
    async def test_failed_subscribe_logged(self, caplog):
        future = asyncio.get_running_loop().create_future()
        subscription = Subscription("stat/dev1/POWER", future)

        with caplog.at_level(logging.ERROR):
            future.set_exception(RuntimeError("broker gone"))
            await asyncio.sleep(0)

        assert "Failed to subscribe to stat/dev1/POWER" in caplog.text
        subscription.cancel()
