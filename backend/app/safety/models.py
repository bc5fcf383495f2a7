"""
models.py — Entities owned by the in-memory store.

Defines:
    • AlertStatus      — known alert status values
    • EmergencyContact — a person notified during an emergency
    • EmergencyAlert   — one triggered emergency
    • AppSettings      — feature toggles + message template (singleton)

Python attributes are snake_case; ``to_dict()`` renders the camelCase wire
format the mobile client consumes (``isPrimary``, ``contactsNotified``, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class AlertStatus(str, Enum):
    """
    Alert lifecycle values used by the app.

    ``EmergencyAlert.status`` is a plain string; these are the values the
    client understands, not a closed set.
    """
    ACTIVE    = "active"
    CANCELLED = "cancelled"
    RESOLVED  = "resolved"


DEFAULT_EMERGENCY_MESSAGE = "Emergency! I need help. My location:"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EmergencyContact:
    id: int
    name: str
    phone: str
    relationship: Optional[str] = None
    is_primary: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "relationship": self.relationship,
            "isPrimary": self.is_primary,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class EmergencyAlert:
    """
    A triggered emergency.

    Coordinates are kept as the strings the client sent (or null) so a
    stored alert echoes back exactly what was received.
    """
    id: int
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    timestamp: datetime = field(default_factory=_now)
    audio_recording_path: Optional[str] = None
    status: str = AlertStatus.ACTIVE.value
    contacts_notified: Optional[List[str]] = None

    @property
    def has_location(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": self.timestamp.isoformat(),
            "audioRecordingPath": self.audio_recording_path,
            "status": self.status,
            "contactsNotified": (
                list(self.contacts_notified)
                if self.contacts_notified is not None else None
            ),
        }


@dataclass
class AppSettings:
    id: int = 1
    shake_detection_enabled: bool = True
    audio_recording_enabled: bool = True
    flashlight_enabled: bool = True
    siren_enabled: bool = True
    emergency_message: str = DEFAULT_EMERGENCY_MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shakeDetectionEnabled": self.shake_detection_enabled,
            "audioRecordingEnabled": self.audio_recording_enabled,
            "flashlightEnabled": self.flashlight_enabled,
            "sirenEnabled": self.siren_enabled,
            "emergencyMessage": self.emergency_message,
        }

