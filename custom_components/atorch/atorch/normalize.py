"""
# ATorch message normalizer

The various ATorch / Tasmota firmwares publish slightly different flavors of
the same discovery message. Before anything else looks at a message it is
brought into one canonical shape:

1. every key is renamed through `KEY_TRANSLATION`, at any depth
2. the `~` topic prefix is expanded into every string value
3. the state topic is checked against the generic default topics
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional

from .const import DEFAULT_STATE_TOPICS, KEY_TRANSLATION, TOPIC_PLACEHOLDER
from .exceptions import MisconfiguredTopic

logger: logging.Logger = logging.getLogger(__name__)


def rename_keys(value: Any, translation: Mapping[str, str] = KEY_TRANSLATION) -> Any:
    """Recursively rename mapping keys, descending into mappings and sequences alike."""
    if isinstance(value, Mapping):
        return {
            translation.get(key, key): rename_keys(item, translation)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [rename_keys(item, translation) for item in value]
    return value


def replace_strings(
    value: Dict[str, Any],
    find: str,
    replace: str,
    _cache: Optional[Dict[int, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Replace `find` with `replace` in every string of a mapping.

    Nested mappings are walked, sequences are copied through as-is, so
    strings inside lists keep the placeholder.
    """
    if _cache is None:
        _cache = {}
    if id(value) in _cache:
        return _cache[id(value)]

    pattern = re.compile(re.escape(find), re.IGNORECASE)
    result: Dict[str, Any] = {}
    _cache[id(value)] = result

    for key, item in value.items():
        if isinstance(item, str):
            result[key] = pattern.sub(lambda _: replace, item)
        elif isinstance(item, Mapping):
            result[key] = replace_strings(item, find, replace, _cache)
        else:
            result[key] = item
    return result


def check_topic(message: Mapping[str, Any]) -> None:
    """Raise MisconfiguredTopic when the state topic is a shared default."""
    state_topic = message.get("stat_t")
    if state_topic in DEFAULT_STATE_TOPICS:
        raise MisconfiguredTopic(message.get("name"), state_topic)


def normalize_message(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate a raw discovery payload into a canonical message.

    Never mutates `raw`. A misconfigured state topic is only logged.
    """
    message = rename_keys(raw)

    prefix = message.get(TOPIC_PLACEHOLDER)
    if prefix:
        message = replace_strings(message, TOPIC_PLACEHOLDER, str(prefix))

    try:
        check_topic(message)
    except MisconfiguredTopic as err:
        logger.warning(f"ERROR: {err}")

    return message
