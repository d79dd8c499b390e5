from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Optional

from .accessory import AtorchAccessory


class ExpiryScheduler:
    """Per-accessory removal timer.

    Each accessory owns at most one timer handle, kept in
    `accessory.context.timeout`. Any activity resets it; when it fires the
    `on_expire` callback receives the accessory.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        hours: float,
        on_expire: Callable[[AtorchAccessory], None],
    ) -> None:
        self.logger: logging.Logger = logging.getLogger(__name__)
        self._loop = loop
        self._on_expire = on_expire
        self.delay: float = float(hours) * 60 * 60  # seconds

    def reset(self, accessory: AtorchAccessory) -> asyncio.TimerHandle:
        """Cancel the accessory's previous timer, then arm a fresh one."""
        self.cancel(accessory)
        handle = self._loop.call_later(self.delay, self._fire, accessory)
        accessory.context.timeout = handle
        return handle

    def cancel(self, accessory: AtorchAccessory) -> None:
        handle: Optional[asyncio.TimerHandle] = accessory.context.timeout
        if handle is not None:
            handle.cancel()
            accessory.context.timeout = None

    def cancel_all(self, accessories: Iterable[AtorchAccessory]) -> None:
        for accessory in accessories:
            self.cancel(accessory)

    def _fire(self, accessory: AtorchAccessory) -> None:
        accessory.context.timeout = None
        self.logger.debug(f"Expiry timer fired for {accessory.display_name}")
        self._on_expire(accessory)
