"""
FastAPI routes: emergency contacts.

    GET    /api/emergency-contacts        — active contacts
    GET    /api/primary-contact           — primary contact or null
    POST   /api/emergency-contacts        — add a contact (E.164 phone)
    PUT    /api/emergency-contacts/{id}   — partial update
    DELETE /api/emergency-contacts/{id}   — remove
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_storage
from backend.app.api.schemas import ContactCreate, ContactUpdate
from backend.app.core.config import settings
from backend.app.core.errors import ContactLimitError, NotFoundError
from backend.app.safety.storage import MemStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["emergency-contacts"])


@router.get("/emergency-contacts", summary="List active emergency contacts")
async def list_contacts(storage: MemStorage = Depends(get_storage)):
    return [c.to_dict() for c in storage.get_emergency_contacts()]


@router.get("/primary-contact", summary="Get the primary contact")
async def primary_contact(storage: MemStorage = Depends(get_storage)):
    contact = storage.get_primary_emergency_contact()
    return contact.to_dict() if contact else None


@router.post("/emergency-contacts", summary="Add an emergency contact")
async def create_contact(
    body: ContactCreate,
    storage: MemStorage = Depends(get_storage),
):
    limit = settings.MAX_EMERGENCY_CONTACTS
    if limit and storage.count_emergency_contacts() >= limit:
        raise ContactLimitError(limit)

    contact = storage.create_emergency_contact(body.model_dump())
    logger.info(
        "Added contact %d (%s)%s",
        contact.id, contact.name, " [primary]" if contact.is_primary else "",
        extra={"contact_id": contact.id},
    )
    return contact.to_dict()


@router.put("/emergency-contacts/{contact_id}", summary="Update an emergency contact")
async def update_contact(
    contact_id: int,
    body: ContactUpdate,
    storage: MemStorage = Depends(get_storage),
):
    contact = storage.update_emergency_contact(
        contact_id, body.model_dump(exclude_unset=True),
    )
    if contact is None:
        raise NotFoundError("Emergency contact", id=contact_id)
    return contact.to_dict()


@router.delete("/emergency-contacts/{contact_id}", summary="Delete an emergency contact")
async def delete_contact(
    contact_id: int,
    storage: MemStorage = Depends(get_storage),
):
    if not storage.delete_emergency_contact(contact_id):
        raise NotFoundError("Emergency contact", id=contact_id)
    logger.info("Deleted contact %d", contact_id, extra={"contact_id": contact_id})
    return {"message": "Emergency contact deleted successfully"}
