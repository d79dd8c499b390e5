from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import SIGNAL_ADD_SERVICE
import logging

_LOGGER = logging.getLogger(__name__)

async def generic_setup(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    kind: str,
    async_add_entities: AddEntitiesCallback,
) -> bool:
    """Connect a platform to the services the registry creates for it.

    Services are created at runtime as discovery messages arrive, the host
    hands each one over the dispatcher and it is added here.
    """

    @callback
    def handle_new_service(service) -> None:
        _LOGGER.debug(f"{kind} adding {service.name}")
        async_add_entities([service])

    config_entry.async_on_unload(
        async_dispatcher_connect(hass, SIGNAL_ADD_SERVICE.format(kind), handle_new_service)
    )

    return True
