"""Routing table from discovery topic to the registry entries it created.

Rebuilt from live discovery traffic only, nothing here is persisted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .const import ENTITY_TYPE_KEY, EntityKind


@dataclass(frozen=True)
class DiscoveryEntry:
    topic: str
    kind: EntityKind
    service_key: str
    accessory_id: str


def classify(message: Mapping[str, Any]) -> EntityKind:
    """Return what removing this message's topic should tear down.

    A sensor without a device class is the device status sensor, its topic
    going away means the whole device went away.
    """
    if message.get(ENTITY_TYPE_KEY) == "sensor" and not message.get("dev_cla"):
        return EntityKind.ACCESSORY
    return EntityKind.SERVICE


class DiscoveryTopicMap:
    """Non-owning topic -> identity map used to route removals."""

    def __init__(self) -> None:
        self._entries: Dict[str, DiscoveryEntry] = {}

    def set(self, topic: str, entry: DiscoveryEntry) -> None:
        self._entries[topic] = entry

    def get(self, topic: str) -> Optional[DiscoveryEntry]:
        return self._entries.get(topic)

    def remove(self, topic: str) -> None:
        self._entries.pop(topic, None)

    def entries_for(self, accessory_id: str) -> List[DiscoveryEntry]:
        return [entry for entry in self._entries.values() if entry.accessory_id == accessory_id]

    def __contains__(self, topic: object) -> bool:
        return topic in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
