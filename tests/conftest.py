import asyncio

import pytest

from custom_components.atorch.atorch.registry import AccessoryRegistry

from fakes import FakeBus, make_host


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def host():
    return make_host()


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def registry(host, bus, loop) -> AccessoryRegistry:
    return AccessoryRegistry(host, bus, loop, cleanup=24)
