"""Capability class per discovery entity type."""
from typing import Dict, Type

from ..binary_sensor import AtorchBinarySensor
from ..light import AtorchLight
from ..sensor import AtorchSensor
from ..switch import AtorchSwitch
from .base_entity import AtorchBaseEntity

SERVICE_TYPES: Dict[str, Type[AtorchBaseEntity]] = {
    "binary_sensor": AtorchBinarySensor,
    "light": AtorchLight,
    "sensor": AtorchSensor,
    "switch": AtorchSwitch,
}
