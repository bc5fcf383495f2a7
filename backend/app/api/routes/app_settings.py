"""
FastAPI routes: app settings singleton.

    GET /api/settings   — current toggles and message template
    PUT /api/settings   — partial update
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_storage
from backend.app.api.schemas import SettingsUpdate
from backend.app.safety.storage import MemStorage

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings", summary="Get app settings")
async def get_settings(storage: MemStorage = Depends(get_storage)):
    return storage.get_app_settings().to_dict()


@router.put("/settings", summary="Update app settings")
async def update_settings(
    body: SettingsUpdate,
    storage: MemStorage = Depends(get_storage),
):
    return storage.update_app_settings(body.model_dump(exclude_unset=True)).to_dict()
