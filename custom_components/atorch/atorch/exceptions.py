"""Errors raised while reconciling discovery traffic.

None of these are fatal: the registry catches each one where it is raised,
logs it and drops the offending update.
"""
from homeassistant.exceptions import HomeAssistantError


class AtorchError(HomeAssistantError):
    """Base class for ATorch bridge errors."""


class InvalidMessage(AtorchError):
    """Discovery message lacks a unique id or device identifiers."""


class UnknownEntityType(AtorchError):
    """Discovery message names a capability kind the bridge cannot build."""

    def __init__(self, entity_type: str | None) -> None:
        super().__init__(f"Unhandled ATorch device type {entity_type}")
        self.entity_type = entity_type


class MisconfiguredTopic(AtorchError):
    """State topic collides with a generic default topic."""

    def __init__(self, name: str | None, topic: str) -> None:
        super().__init__(
            f"{name} has an incorrectly configured MQTT topic ({topic}), please make it unique"
        )
        self.topic = topic


class OrphanRemoval(AtorchError):
    """Removal refers to a topic, accessory or service no longer tracked."""
