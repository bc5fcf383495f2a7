"""
FastAPI routes: emergency actions.

    POST /api/send-sms            — send one text (simulated, ~1s delay)
    POST /api/emergency-trigger   — raise an alert and text the primary contact
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.app.alerts.notifier import NotificationDelivery
from backend.app.alerts.trigger_service import trigger_emergency
from backend.app.api.deps import get_notifier, get_storage
from backend.app.api.schemas import SmsRequest, TriggerRequest
from backend.app.core.config import settings
from backend.app.core.errors import DeliveryError
from backend.app.safety.storage import MemStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["emergency"])


@router.post("/send-sms", summary="Send an SMS")
async def send_sms(
    body: SmsRequest,
    notifier: NotificationDelivery = Depends(get_notifier),
):
    attempt = await notifier.send_sms(
        body.phone, body.message,
        delay_seconds=settings.SMS_SIMULATED_DELAY_SECONDS,
    )
    if not attempt.delivered:
        raise DeliveryError("sms", attempt.error_message or "", phone=body.phone)

    return {
        "success": True,
        "message": "SMS sent successfully",
        "phone": body.phone,
        "sentAt": (attempt.completed_at or attempt.attempted_at).isoformat(),
    }


@router.post("/emergency-trigger", summary="Trigger an emergency alert")
async def emergency_trigger(
    body: TriggerRequest,
    storage: MemStorage = Depends(get_storage),
    notifier: NotificationDelivery = Depends(get_notifier),
):
    result = await trigger_emergency(
        storage, notifier,
        body.latitude, body.longitude,
        map_base_url=settings.MAP_LINK_BASE_URL,
        delay_seconds=settings.TRIGGER_SMS_DELAY_SECONDS,
    )
    return result.to_dict()
