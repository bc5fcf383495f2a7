"""
trigger_service.py — The emergency trigger sequence.

═══════════════════════════════════════════════════════════════════════════
FLOW
═══════════════════════════════════════════════════════════════════════════

    latitude?, longitude?
          │
          ▼
    1. Primary contact     none → PrimaryContactMissingError (400),
          │                       nothing is written
          ▼
    2. Alert record        status=active, coordinates as text,
          │                contactsNotified=[primary.phone]
          ▼
    3. Persist             MemStorage.create_emergency_alert
          │
          ▼
    4. Location reference  map link, or "Location unavailable"
          │
          ▼
    5. Message             fixed template embedding the reference
          │
          ▼
    6. Deliver             NotificationDelivery.send_sms (simulated delay)
          │
          ▼
    TriggerResult          alert + primary contact + success flag

Delivery is best effort: one attempt, no retry. The alert is already
stored by the time the SMS goes out, so ``success`` reflects that the
alert was raised while ``sms_sent`` reflects the delivery outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from backend.app.alerts.models import DeliveryAttempt
from backend.app.alerts.notifier import NotificationDelivery
from backend.app.core.errors import PrimaryContactMissingError
from backend.app.safety.models import AlertStatus, EmergencyAlert, EmergencyContact
from backend.app.safety.storage import MemStorage

logger = logging.getLogger(__name__)

Coordinate = Union[float, int, str, None]

LOCATION_UNAVAILABLE = "Location unavailable"
DEFAULT_MAP_BASE_URL = "https://maps.google.com/maps"

EMERGENCY_SMS_TEMPLATE = (
    "🚨 EMERGENCY ALERT: I need help! My current location: {location}. "
    "Please contact me immediately or call emergency services."
)


@dataclass
class TriggerResult:
    alert: EmergencyAlert
    primary_contact: EmergencyContact
    message_text: str
    location_reference: str
    delivery: DeliveryAttempt
    success: bool = True

    @property
    def sms_sent(self) -> bool:
        return self.delivery.delivered

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "alert": self.alert.to_dict(),
            "primaryContact": self.primary_contact.to_dict(),
            "smsSent": self.sms_sent,
            "message": (
                "Emergency alert sent to primary contact"
                if self.sms_sent
                else "Emergency alert recorded; SMS delivery failed"
            ),
        }


def coordinate_text(value: Coordinate) -> Optional[str]:
    """Render a coordinate as stored text; None and blank strings mean absent."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return str(value)


def build_location_reference(
    latitude: Optional[str],
    longitude: Optional[str],
    *,
    base_url: str = DEFAULT_MAP_BASE_URL,
) -> str:
    """Map link for the coordinates, or the unavailable marker."""
    if latitude and longitude:
        return f"{base_url}?q={latitude},{longitude}"
    return LOCATION_UNAVAILABLE


def compose_emergency_message(location_reference: str) -> str:
    return EMERGENCY_SMS_TEMPLATE.format(location=location_reference)


async def trigger_emergency(
    storage: MemStorage,
    notifier: NotificationDelivery,
    latitude: Coordinate = None,
    longitude: Coordinate = None,
    *,
    map_base_url: str = DEFAULT_MAP_BASE_URL,
    delay_seconds: Optional[float] = None,
) -> TriggerResult:
    """
    Raise an emergency alert and text the primary contact.

    Raises
    ------
    PrimaryContactMissingError
        No active contact is flagged primary.
    """
    primary = storage.get_primary_emergency_contact()
    if primary is None:
        logger.warning("Emergency trigger rejected: no primary contact configured")
        raise PrimaryContactMissingError()

    lat_text = coordinate_text(latitude)
    lon_text = coordinate_text(longitude)

    alert = storage.create_emergency_alert({
        "latitude": lat_text,
        "longitude": lon_text,
        "status": AlertStatus.ACTIVE.value,
        "contacts_notified": [primary.phone],
    })

    location_reference = build_location_reference(
        lat_text, lon_text, base_url=map_base_url,
    )
    message_text = compose_emergency_message(location_reference)

    delivery = await notifier.send_sms(
        primary.phone, message_text, delay_seconds=delay_seconds,
    )

    log = logger.warning if delivery.delivered else logger.error
    log(
        "🚨 Emergency alert %d → %s (%s) sms=%s",
        alert.id, primary.name, primary.phone, delivery.status.value,
        extra={"alert_id": alert.id, "phone": primary.phone, "channel": "sms"},
    )

    return TriggerResult(
        alert=alert,
        primary_contact=primary,
        message_text=message_text,
        location_reference=location_reference,
        delivery=delivery,
    )
