"""
location_observer.py — Periodic device position tracking.

═══════════════════════════════════════════════════════════════════════════
SCHEDULE
═══════════════════════════════════════════════════════════════════════════

    start()        fix #1 immediately
      │
      ├── 30 min ── fix #2
      ├── 30 min ── fix #3
      ⋮
    stop()

Each fix asks the provider for a high-accuracy position, accepts a cached
fix up to 5 minutes old, and gives up after 10 seconds. A failed fix is
logged and the previous position is kept; the schedule carries on.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

UPDATE_INTERVAL_SECONDS = 30 * 60


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_seconds: float = 10.0
    maximum_age_seconds: float = 5 * 60


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    captured_at: datetime = field(default_factory=_now)


PositionProvider = Callable[[PositionOptions], Awaitable[Position]]


class LocationObserver:
    """
    Keeps the freshest known device position.

    Parameters
    ----------
    provider : async callable
        ``provider(options) -> Position``; raises when no fix is available.
    interval_seconds : float
        Time between scheduled fixes.
    on_update : callable | None
        Called with each new Position.
    clock : callable
        Returns the current aware datetime.
    sleep : coroutine function
        Interval sleep; tests inject a controllable one.
    """

    def __init__(
        self,
        provider: PositionProvider,
        *,
        interval_seconds: float = UPDATE_INTERVAL_SECONDS,
        options: PositionOptions = PositionOptions(),
        on_update: Optional[Callable[[Position], None]] = None,
        clock: Callable[[], datetime] = _now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._provider = provider
        self.interval_seconds = interval_seconds
        self.options = options
        self._on_update = on_update
        self._clock = clock
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

        self.position: Optional[Position] = None
        self.last_updated: Optional[datetime] = None
        self.is_tracking = False

    async def start(self) -> None:
        """Fetch a fix now, then every interval until stopped."""
        await self._cancel_task()

        self.is_tracking = True
        self.last_updated = self._clock()
        await self.force_update()

        self._task = asyncio.create_task(self._run())
        logger.info(
            "📍 Location tracking started - will update every %d minutes",
            int(self.interval_seconds // 60),
        )

    async def stop(self) -> None:
        await self._cancel_task()
        self.is_tracking = False
        logger.info("📍 Location tracking stopped")

    async def force_update(self) -> Optional[Position]:
        """One fix attempt; returns the new position or None."""
        try:
            position = await asyncio.wait_for(
                self._provider(self.options),
                timeout=self.options.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("Error getting location: timed out after %.0fs",
                         self.options.timeout_seconds)
            return None
        except Exception as exc:
            logger.error("Error getting location: %s", exc)
            return None

        self.position = position
        self.last_updated = self._clock()
        if self._on_update is not None:
            self._on_update(position)
        return position

    def next_update_time(self) -> Optional[datetime]:
        if self.last_updated is None:
            return None
        return self.last_updated + timedelta(seconds=self.interval_seconds)

    def time_until_next_update(self) -> Optional[str]:
        """``"{m}m {s}s"`` until the next scheduled fix."""
        next_update = self.next_update_time()
        if next_update is None:
            return None

        remaining = (next_update - self._clock()).total_seconds()
        if remaining <= 0:
            return "Updating now..."

        minutes, seconds = divmod(int(remaining), 60)
        return f"{minutes}m {seconds}s"

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval_seconds)
            await self.force_update()
            self.last_updated = self._clock()
            logger.info("📍 Location updated automatically")

    async def _cancel_task(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
