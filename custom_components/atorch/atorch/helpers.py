import json
import logging
import re
from typing import Any, List, Optional, Union

_LOGGER = logging.getLogger(__name__)

_TEMPLATE = re.compile(r"^\{\{\s*value_json((?:\.\w+|\[\s*(?:'[^']*'|\"[^\"]*\"|\d+)\s*\])*)\s*\}\}$")
_SEGMENT = re.compile(r"\.(\w+)|\[\s*'([^']*)'\s*\]|\[\s*\"([^\"]*)\"\s*\]|\[\s*(\d+)\s*\]")


def payload_to_str(payload: Union[str, bytes, None]) -> str:
    """Return an MQTT payload as text, whether it arrived as bytes, str or None."""
    if payload is None:
        return ""
    if isinstance(payload, bytes):
        return payload.decode("utf-8", "ignore")
    return str(payload)


def template_path(template: str) -> Optional[List[Union[str, int]]]:
    """Parse a `{{ value_json.A['B'][0] }}` template into its lookup path.

    Returns None for anything that is not a plain value_json lookup.
    """
    match = _TEMPLATE.match(template.strip())
    if match is None:
        return None
    path: List[Union[str, int]] = []
    for attr, single, double, index in _SEGMENT.findall(match.group(1)):
        if index:
            path.append(int(index))
        else:
            path.append(attr or single or double)
    return path


def render_value(template: Optional[str], payload: Union[str, bytes, None]) -> Optional[str]:
    """Extract a state value from a payload using a discovery value template.

    Without a template the payload is returned as text. Returns None when the
    template does not resolve against the payload.
    """
    text = payload_to_str(payload)
    if not template:
        return text

    path = template_path(template)
    if path is None:
        _LOGGER.debug(f"Unsupported value template {template}, using raw payload")
        return text

    try:
        value: Any = json.loads(text)
    except ValueError:
        return None

    for segment in path:
        try:
            value = value[segment]
        except (KeyError, IndexError, TypeError):
            return None

    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    return str(value)
