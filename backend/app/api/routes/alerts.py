"""
FastAPI routes: emergency alert records.

    GET  /api/emergency-alerts        — every alert, oldest first
    POST /api/emergency-alerts        — record an alert, notify all active contacts
    PUT  /api/emergency-alerts/{id}   — partial update (e.g. status=resolved)

Alerts are never deleted.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_storage
from backend.app.api.schemas import AlertCreate, AlertUpdate
from backend.app.core.errors import NotFoundError
from backend.app.safety.storage import MemStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["emergency-alerts"])


@router.get("/emergency-alerts", summary="List all emergency alerts")
async def list_alerts(storage: MemStorage = Depends(get_storage)):
    return [a.to_dict() for a in storage.get_emergency_alerts()]


@router.post("/emergency-alerts", summary="Record an emergency alert")
async def create_alert(
    body: AlertCreate,
    storage: MemStorage = Depends(get_storage),
):
    alert = storage.create_emergency_alert(body.model_dump(exclude_unset=True))

    # Simulated broadcast: every active contact counts as notified
    phones = [c.phone for c in storage.get_emergency_contacts()]
    alert = storage.update_emergency_alert(alert.id, {"contacts_notified": phones})

    logger.info(
        "Alert %d recorded, %d contacts notified", alert.id, len(phones),
        extra={"alert_id": alert.id},
    )
    return alert.to_dict()


@router.put("/emergency-alerts/{alert_id}", summary="Update an emergency alert")
async def update_alert(
    alert_id: int,
    body: AlertUpdate,
    storage: MemStorage = Depends(get_storage),
):
    alert = storage.update_emergency_alert(alert_id, body.model_dump(exclude_unset=True))
    if alert is None:
        raise NotFoundError("Emergency alert", id=alert_id)
    return alert.to_dict()
