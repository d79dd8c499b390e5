from __future__ import annotations

import uuid
from typing import Any, Callable, Mapping, Tuple

from .const import ATORCH_NAMESPACE
from .exceptions import InvalidMessage


def generate_uuid(seed: str) -> str:
    """Derive a stable accessory id from a device identifier.

    Same seed always yields the same id, across restarts and hosts.
    """
    return str(uuid.uuid5(ATORCH_NAMESPACE, str(seed)))


def derive_identity(
    message: Mapping[str, Any],
    generate_id: Callable[[str], str] = generate_uuid,
) -> Tuple[str, str]:
    """Return (accessory_id, service_key) for a canonical message.

    The first device identifier is unique per accessory, `uniq_id` is unique
    per service. Service keys are not checked for fleet-wide uniqueness.

    Raises:
        InvalidMessage: `uniq_id` or the device identifiers are missing or malformed
    """
    service_key = message.get("uniq_id")
    if not service_key or not isinstance(service_key, str):
        raise InvalidMessage(f"Discovery message '{message.get('name')}' has no unique id")

    device = message.get("dev")
    identifiers = device.get("ids") if isinstance(device, Mapping) else None
    if isinstance(identifiers, str):
        identifiers = [identifiers]
    if (
        not isinstance(identifiers, (list, tuple))
        or not identifiers
        or not isinstance(identifiers[0], str)
        or not identifiers[0]
    ):
        raise InvalidMessage(f"Discovery message '{message.get('name')}' has no device identifiers")

    return generate_id(identifiers[0]), service_key
