"""
flashlight.py — Rear-camera torch.

Torch control is best effort: many browsers expose the camera track but
not the ``torch`` capability. A device without the capability yields a
SKIPPED attempt rather than an error.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from backend.app.alerts.models import (
    DeliveryAttempt,
    DeliveryChannel,
    DeliveryStatus,
)

logger = logging.getLogger(__name__)


class TorchDevice(ABC):
    """Camera track that may support a torch."""

    @abstractmethod
    async def supports_torch(self) -> bool: ...

    @abstractmethod
    async def set_torch(self, on: bool) -> None: ...

    @abstractmethod
    async def release(self) -> None: ...


class NullTorch(TorchDevice):
    """Device without a camera."""

    async def supports_torch(self) -> bool:
        return False

    async def set_torch(self, on: bool) -> None:
        return None

    async def release(self) -> None:
        return None


async def activate(device: TorchDevice) -> DeliveryAttempt:
    attempt = DeliveryAttempt(channel=DeliveryChannel.FLASHLIGHT, status=DeliveryStatus.SENDING)
    try:
        if not await device.supports_torch():
            return attempt.finish(DeliveryStatus.SKIPPED, "Torch not supported")
        await device.set_torch(True)
    except Exception as exc:
        logger.warning("Could not activate flashlight: %s", exc)
        return attempt.finish(DeliveryStatus.FAILED, str(exc))

    logger.info("🔦 Flashlight activated")
    return attempt.finish(DeliveryStatus.DELIVERED)


async def deactivate(device: TorchDevice) -> None:
    try:
        await device.set_torch(False)
        await device.release()
    except Exception as exc:
        logger.warning("Could not deactivate flashlight: %s", exc)
        return
    logger.info("🔦 Flashlight deactivated")
