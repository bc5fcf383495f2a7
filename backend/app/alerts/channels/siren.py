"""
siren.py — On-device siren.

═══════════════════════════════════════════════════════════════════════════
SIREN PATTERN
═══════════════════════════════════════════════════════════════════════════

One sweep per cycle, repeated until the emergency is cancelled:

    t = 0.0 s    800 Hz
    t = 0.5 s   1200 Hz
    t = 1.0 s    800 Hz   (gain ramps 0.1 → 0.01 across the sweep)
    t = 1.5 s   next sweep

The audio itself is produced by a ``SirenDevice``; this module only
decides whether and how to drive it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from backend.app.alerts.models import (
    DeliveryAttempt,
    DeliveryChannel,
    DeliveryStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SirenPattern:
    frequencies_hz: Tuple[float, ...] = (800.0, 1200.0, 800.0)
    step_seconds: float = 0.5
    repeat_seconds: float = 1.5
    start_gain: float = 0.1
    end_gain: float = 0.01


WAIL = SirenPattern()


class SirenDevice(ABC):
    """Speaker output capable of looping a siren pattern."""

    @abstractmethod
    def start(self, pattern: SirenPattern) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...


class NullSiren(SirenDevice):
    """Device without audio output: remembers the pattern instead of sounding."""

    def __init__(self):
        self.playing: Optional[SirenPattern] = None

    def start(self, pattern: SirenPattern) -> None:
        self.playing = pattern

    def stop(self) -> None:
        self.playing = None


def activate(device: SirenDevice, pattern: SirenPattern = WAIL) -> DeliveryAttempt:
    """Start the siren loop."""
    attempt = DeliveryAttempt(channel=DeliveryChannel.SIREN, status=DeliveryStatus.SENDING)
    try:
        device.start(pattern)
    except Exception as exc:
        logger.warning("Could not play siren: %s", exc)
        return attempt.finish(DeliveryStatus.FAILED, str(exc))

    logger.info("🔊 Siren activated")
    attempt.provider_response = {"pattern_hz": list(pattern.frequencies_hz)}
    return attempt.finish(DeliveryStatus.DELIVERED)


def deactivate(device: SirenDevice) -> None:
    try:
        device.stop()
    except Exception as exc:
        logger.warning("Could not stop siren: %s", exc)
        return
    logger.info("🔇 Siren deactivated")
