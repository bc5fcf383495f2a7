"""
effects.py — Siren and flashlight for the duration of an emergency.

trigger() while already active is a no-op; cancel() always tears both
down, whether or not they came up.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from backend.app.alerts.channels import flashlight, siren
from backend.app.alerts.channels.flashlight import NullTorch, TorchDevice
from backend.app.alerts.channels.siren import NullSiren, SirenDevice
from backend.app.alerts.models import DeliveryAttempt

logger = logging.getLogger(__name__)


class EmergencyEffects:
    def __init__(
        self,
        siren_device: Optional[SirenDevice] = None,
        torch_device: Optional[TorchDevice] = None,
    ):
        self.siren_device = siren_device or NullSiren()
        self.torch_device = torch_device or NullTorch()
        self.is_active = False
        self.attempts: List[DeliveryAttempt] = []

    async def trigger(self, *, use_siren: bool = True, use_flashlight: bool = True) -> bool:
        """Start the effects; False when already running."""
        if self.is_active:
            return False

        self.is_active = True
        self.attempts = []
        logger.warning("🚨 Emergency sequence activated")

        if use_siren:
            self.attempts.append(siren.activate(self.siren_device))
        if use_flashlight:
            self.attempts.append(await flashlight.activate(self.torch_device))
        return True

    async def cancel(self) -> None:
        self.is_active = False
        logger.info("❌ Emergency sequence cancelled")
        siren.deactivate(self.siren_device)
        await flashlight.deactivate(self.torch_device)
