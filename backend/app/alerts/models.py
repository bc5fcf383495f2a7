"""
models.py — Shared data structures for notification delivery.

Defines:
    • DeliveryChannel — how a notification leaves the system
    • DeliveryStatus  — per-attempt delivery state
    • DeliveryAttempt — record of a single send / activation

═══════════════════════════════════════════════════════════════════════════
CHANNELS
═══════════════════════════════════════════════════════════════════════════

    Channel       Runs on    Effect
    ──────────    ───────    ─────────────────────────────────────────
    SMS           server     text with map link to the primary contact
    VOICE_CALL    client     tel: link to the primary contact
    SIREN         client     looping tone on the device speaker
    FLASHLIGHT    client     torch on the rear camera, where supported

None of these talk to a real carrier by default. Every channel returns a
DeliveryAttempt so the simulated and real backends are interchangeable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class DeliveryChannel(str, Enum):
    SMS        = "sms"
    VOICE_CALL = "voice_call"
    SIREN      = "siren"
    FLASHLIGHT = "flashlight"


class DeliveryStatus(str, Enum):
    """Delivery state machine per attempt."""
    PENDING   = "pending"      # created, not yet sent
    SENDING   = "sending"      # send in progress
    DELIVERED = "delivered"    # accepted by the backend / device
    FAILED    = "failed"       # backend refused or errored
    SKIPPED   = "skipped"      # channel not applicable


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DeliveryAttempt:
    """Record of a single delivery attempt via one channel."""
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    channel: DeliveryChannel = DeliveryChannel.SMS
    recipient: str = ""
    status: DeliveryStatus = DeliveryStatus.PENDING
    attempted_at: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    provider_response: Optional[Dict[str, Any]] = None

    @property
    def delivered(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED

    def finish(self, status: DeliveryStatus, error: Optional[str] = None) -> "DeliveryAttempt":
        """Stamp completion and return self."""
        self.status = status
        self.error_message = error
        self.completed_at = _now()
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "channel": self.channel.value,
            "recipient": self.recipient,
            "status": self.status.value,
            "attempted_at": self.attempted_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "error_message": self.error_message,
        }
