"""
sos_trigger.py — The SOS button.

Three ways in, one way out:

    click           → trigger now
    press + hold 3s → trigger (releasing earlier cancels)
    shake           → trigger

While an alert is active further triggers are ignored until reset().
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

HOLD_SECONDS = 3.0


class SosTrigger:
    def __init__(
        self,
        on_trigger: Callable[[], Any],
        *,
        hold_seconds: float = HOLD_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._on_trigger = on_trigger
        self.hold_seconds = hold_seconds
        self._sleep = sleep
        self._hold_task: Optional[asyncio.Task] = None
        self.is_active = False
        self.is_pressed = False

    async def click(self) -> bool:
        return await self._fire("click")

    async def handle_shake(self) -> bool:
        return await self._fire("shake")

    def press(self) -> None:
        """Start the hold timer."""
        self.is_pressed = True
        self._cancel_hold()
        self._hold_task = asyncio.create_task(self._hold())

    def release(self) -> None:
        self.is_pressed = False
        self._cancel_hold()

    def reset(self) -> None:
        """Re-arm after the alert is closed."""
        self.is_active = False
        self._cancel_hold()

    async def _hold(self) -> None:
        await self._sleep(self.hold_seconds)
        self._hold_task = None
        await self._fire("hold")

    async def _fire(self, source: str) -> bool:
        if self.is_active:
            logger.debug("SOS %s ignored: alert already active", source)
            return False
        self.is_active = True
        logger.warning("🆘 SOS triggered by %s", source)
        result = self._on_trigger()
        if inspect.isawaitable(result):
            await result
        return True

    def _cancel_hold(self) -> None:
        if self._hold_task is not None and not self._hold_task.done():
            self._hold_task.cancel()
        self._hold_task = None
