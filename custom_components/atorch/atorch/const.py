"""
Constants and type definitions for the ATorch integration.

This module contains all configuration constants, discovery key tables and
type definitions used throughout the ATorch custom component.
"""
import uuid
from enum import Enum

DOMAIN = "atorch"  # Home Assistant domain name
PLUGIN_NAME = "ATorch"

# Configuration keys
CONF_CLEANUP = "cleanup"
CONF_DEBUG = "debug"
CONF_DISCOVERY_PREFIX = "discovery_prefix"

DEFAULT_CLEANUP = 24  # hours - removal of defunct devices
DEFAULT_DEBUG = False
DEFAULT_DISCOVERY_PREFIX = "homeassistant"

# Persistence
STORAGE_VERSION = 1
STORAGE_SAVE_DELAY = 10  # seconds - debounce for snapshot writes

# Seed namespace for accessory ids (deterministic, content addressed)
ATORCH_NAMESPACE = uuid.UUID("6f1c3b52-61a4-4b0e-9d7e-2b5f0a9c8e41")

# Dispatcher signal used to hand new services to their entity platform
SIGNAL_ADD_SERVICE = f"{DOMAIN}_add_service_{{}}"

# Discovery placeholder expanded into every string of a message
TOPIC_PLACEHOLDER = "~"

# Generic default topics, sharing them means devices interfere with each other
DEFAULT_STATE_TOPICS = ("sonoff/tele/STATE", "atorch/tele/STATE")

# Long vendor key names folded into their abbreviated canonical form
KEY_TRANSLATION: dict[str, str] = {
    "unique_id": "uniq_id",
    "device_class": "dev_cla",
    "payload_on": "pl_on",
    "payload_off": "pl_off",
    "device": "dev",
    "model": "mdl",
    "sw_version": "sw",
    "manufacturer": "mf",
    "identifiers": "ids",
    "state_topic": "stat_t",
    "availability_topic": "avty_t",
    "command_topic": "cmd_t",
    "value_template": "val_tpl",
    "payload_available": "pl_avail",
    "payload_not_available": "pl_not_avail",
    "state_on": "stat_on",
    "state_off": "stat_off",
    "unit_of_measurement": "unit_of_meas",
}

# Key holding the capability kind, derived from the discovery topic
ENTITY_TYPE_KEY = "atorchType"

DEFAULT_PAYLOAD_ON = "ON"
DEFAULT_PAYLOAD_OFF = "OFF"
DEFAULT_PAYLOAD_AVAILABLE = "online"
DEFAULT_PAYLOAD_NOT_AVAILABLE = "offline"


class EntityKind(str, Enum):
    """What a discovery topic tears down when it is removed."""
    SERVICE = "Service"
    ACCESSORY = "Accessory"


# Supported entity platforms, one capability type each
PLATFORMS: list[str] = [
    "binary_sensor",
    "light",
    "sensor",
    "switch",
]


class AtorchDeviceMetadata:
    """Device block of a discovery message (after normalization)."""
    ids: list[str]
    mdl: str | None
    mf: str | None
    name: str | None
    sw: str | None


class AtorchDiscoveryMessage:
    """Canonical discovery message.

    Only the keys the bridge reads are listed, vendors send many more.
    """
    atorchType: str
    avty_t: str | None
    cmd_t: str | None
    dev: AtorchDeviceMetadata
    dev_cla: str | None
    name: str
    pl_avail: str | None
    pl_not_avail: str | None
    pl_off: str | None
    pl_on: str | None
    stat_t: str | None
    uniq_id: str
    unit_of_meas: str | None
    val_tpl: str | None
