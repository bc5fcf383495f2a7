"""
shake_observer.py — Turn device-motion samples into a "shake detected" signal.

═══════════════════════════════════════════════════════════════════════════
DETECTION RULE
═══════════════════════════════════════════════════════════════════════════

    magnitude = |x| + |y| + |z|        (acceleration incl. gravity, m/s²)

    magnitude > 25     → qualifying sample, count += 1
    2 s without one    → count = 0
    count reaches 3    → emit once, count = 0

At rest the magnitude sits near 9.8 (gravity on one axis), so ordinary
handling stays well under the threshold.

``ShakeDetector`` is the pure rule over timestamped samples.
``ShakeObserver`` pumps samples from a ``MotionSource`` into it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)

SHAKE_THRESHOLD = 25.0
SHAKE_RESET_SECONDS = 2.0
SHAKES_TO_TRIGGER = 3


@dataclass(frozen=True)
class MotionSample:
    x: Optional[float]
    y: Optional[float]
    z: Optional[float]
    timestamp: float  # monotonic seconds

    @property
    def magnitude(self) -> float:
        return abs(self.x or 0.0) + abs(self.y or 0.0) + abs(self.z or 0.0)


class ShakeDetector:
    def __init__(
        self,
        *,
        threshold: float = SHAKE_THRESHOLD,
        reset_after_seconds: float = SHAKE_RESET_SECONDS,
        shakes_required: int = SHAKES_TO_TRIGGER,
    ):
        self.threshold = threshold
        self.reset_after_seconds = reset_after_seconds
        self.shakes_required = shakes_required
        self.count = 0
        self._last_hit: Optional[float] = None

    def expire(self, now: float) -> None:
        """Drop the count once the inactivity window has passed."""
        if self._last_hit is not None and now - self._last_hit >= self.reset_after_seconds:
            self.reset()

    def feed(self, sample: MotionSample) -> bool:
        """Account for one sample; True exactly when a shake is detected."""
        self.expire(sample.timestamp)
        if sample.magnitude <= self.threshold:
            return False

        self.count += 1
        self._last_hit = sample.timestamp

        if self.count >= self.shakes_required:
            self.reset()
            return True
        return False

    def reset(self) -> None:
        self.count = 0
        self._last_hit = None


class MotionSource(ABC):
    """Accelerometer feed."""

    async def request_permission(self) -> bool:
        """Platforms that gate motion events ask the user here."""
        return True

    @abstractmethod
    def samples(self) -> AsyncIterator[MotionSample]: ...


class ShakeObserver:
    """
    Runs a ShakeDetector over a MotionSource until stopped.

    ``on_shake`` may be a plain function or a coroutine function.
    """

    def __init__(
        self,
        source: MotionSource,
        on_shake: Callable[[], Any],
        *,
        detector: Optional[ShakeDetector] = None,
        enabled: bool = True,
    ):
        self._source = source
        self._on_shake = on_shake
        self.detector = detector or ShakeDetector()
        self.enabled = enabled
        self.permission_granted: Optional[bool] = None
        self.shakes_detected = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> bool:
        """Begin listening; False when disabled or permission is refused."""
        if not self.enabled:
            logger.info("Shake detection disabled in settings")
            return False
        if self.is_running:
            return True

        try:
            self.permission_granted = await self._source.request_permission()
        except Exception as exc:
            logger.warning("Motion permission request failed: %s", exc)
            self.permission_granted = False

        if not self.permission_granted:
            logger.warning("Motion events unavailable; shake trigger off")
            return False

        self._task = asyncio.create_task(self._pump())
        return True

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.detector.reset()

    async def _pump(self) -> None:
        async for sample in self._source.samples():
            if self.detector.feed(sample):
                self.shakes_detected += 1
                logger.warning("📳 Shake detected")
                result = self._on_shake()
                if inspect.isawaitable(result):
                    await result
