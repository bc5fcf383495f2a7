"""
storage.py — In-memory store for contacts, alerts and app settings.

═══════════════════════════════════════════════════════════════════════════
OWNERSHIP & LIFETIME
═══════════════════════════════════════════════════════════════════════════

One ``MemStorage`` is built in the FastAPI lifespan and hung on
``app.state``; request handlers receive it through a dependency. Nothing
here is a module global, so tests build as many stores as they like.

    Entity            Keyed by     Create      Update        Delete
    ──────────────    ─────────    ────────    ──────────    ──────
    EmergencyContact  int id       yes         partial       yes
    EmergencyAlert    int id       yes         partial       never
    AppSettings       singleton    at init     partial       never

Ids come from per-entity counters starting at 1 and are never reused.
Every read-modify-write runs under a single lock so id assignment and map
mutation stay atomic even when handlers run in the threadpool.

═══════════════════════════════════════════════════════════════════════════
PRIMARY CONTACT
═══════════════════════════════════════════════════════════════════════════

Nothing stops two contacts from both having ``is_primary=True``. The
primary lookup returns the first active match in insertion order, so a
later duplicate is silently shadowed by the earlier one.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from backend.app.safety.models import (
    AlertStatus,
    AppSettings,
    EmergencyAlert,
    EmergencyContact,
)

logger = logging.getLogger(__name__)


DEFAULT_CONTACTS: List[Dict[str, Any]] = [
    {
        "name": "Primary Contact",
        "phone": "+923001234567",
        "relationship": "Family",
        "is_primary": True,
        "is_active": True,
    },
    {
        "name": "Secondary Contact",
        "phone": "+919876543210",
        "relationship": "Friend",
        "is_primary": False,
        "is_active": True,
    },
    {
        "name": "Third Contact",
        "phone": "+15553456789",
        "relationship": "Emergency",
        "is_primary": False,
        "is_active": True,
    },
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemStorage:
    """
    Map-backed store. Callers get the stored dataclass instances back;
    mutate them only through the store methods.

    Parameters
    ----------
    seed_default_contacts : bool
        Start with the three sample contacts (first one primary).
    """

    def __init__(self, *, seed_default_contacts: bool = False):
        self._lock = threading.Lock()
        self._contacts: Dict[int, EmergencyContact] = {}
        self._alerts: Dict[int, EmergencyAlert] = {}
        self._contact_ids = itertools.count(1)
        self._alert_ids = itertools.count(1)
        self._settings = AppSettings()

        if seed_default_contacts:
            for contact in DEFAULT_CONTACTS:
                self.create_emergency_contact(contact)
            logger.info("Seeded %d default emergency contacts", len(DEFAULT_CONTACTS))

    # ── Emergency contacts ──

    def get_emergency_contacts(self) -> List[EmergencyContact]:
        """Active contacts in insertion order."""
        with self._lock:
            return [c for c in self._contacts.values() if c.is_active]

    def get_emergency_contact(self, contact_id: int) -> Optional[EmergencyContact]:
        with self._lock:
            return self._contacts.get(contact_id)

    def get_primary_emergency_contact(self) -> Optional[EmergencyContact]:
        """First active contact flagged primary, or None."""
        with self._lock:
            return next(
                (c for c in self._contacts.values() if c.is_primary and c.is_active),
                None,
            )

    def create_emergency_contact(self, data: Mapping[str, Any]) -> EmergencyContact:
        with self._lock:
            contact = EmergencyContact(
                id=next(self._contact_ids),
                name=data["name"],
                phone=data["phone"],
                relationship=data.get("relationship") or None,
                is_primary=bool(data.get("is_primary") or False),
                is_active=(
                    data["is_active"] if data.get("is_active") is not None else True
                ),
                created_at=_now(),
            )
            self._contacts[contact.id] = contact

        logger.debug("Created contact %d", contact.id, extra={"contact_id": contact.id})
        return contact

    def update_emergency_contact(
        self, contact_id: int, patch: Mapping[str, Any],
    ) -> Optional[EmergencyContact]:
        """Merge *patch* into the contact; None when the id is unknown."""
        with self._lock:
            existing = self._contacts.get(contact_id)
            if existing is None:
                return None
            updated = replace(existing, **dict(patch))
            self._contacts[contact_id] = updated
            return updated

    def delete_emergency_contact(self, contact_id: int) -> bool:
        with self._lock:
            return self._contacts.pop(contact_id, None) is not None

    def count_emergency_contacts(self) -> int:
        """Active contacts currently on file."""
        return len(self.get_emergency_contacts())

    # ── Emergency alerts ──

    def get_emergency_alerts(self) -> List[EmergencyAlert]:
        with self._lock:
            return list(self._alerts.values())

    def get_emergency_alert(self, alert_id: int) -> Optional[EmergencyAlert]:
        with self._lock:
            return self._alerts.get(alert_id)

    def create_emergency_alert(self, data: Mapping[str, Any]) -> EmergencyAlert:
        notified = data.get("contacts_notified")
        with self._lock:
            alert = EmergencyAlert(
                id=next(self._alert_ids),
                latitude=data.get("latitude") or None,
                longitude=data.get("longitude") or None,
                timestamp=_now(),
                audio_recording_path=data.get("audio_recording_path") or None,
                status=data.get("status") or AlertStatus.ACTIVE.value,
                contacts_notified=list(notified) if notified is not None else None,
            )
            self._alerts[alert.id] = alert

        logger.debug("Created alert %d", alert.id, extra={"alert_id": alert.id})
        return alert

    def update_emergency_alert(
        self, alert_id: int, patch: Mapping[str, Any],
    ) -> Optional[EmergencyAlert]:
        with self._lock:
            existing = self._alerts.get(alert_id)
            if existing is None:
                return None
            updated = replace(existing, **dict(patch))
            self._alerts[alert_id] = updated
            return updated

    # ── App settings ──

    def get_app_settings(self) -> AppSettings:
        with self._lock:
            return self._settings

    def update_app_settings(self, patch: Mapping[str, Any]) -> AppSettings:
        with self._lock:
            self._settings = replace(self._settings, **dict(patch))
            return self._settings

    # ── Introspection ──

    def stats(self) -> Dict[str, int]:
        """Row counts for the health probe."""
        with self._lock:
            return {
                "contacts": len(self._contacts),
                "active_contacts": sum(1 for c in self._contacts.values() if c.is_active),
                "alerts": len(self._alerts),
            }
