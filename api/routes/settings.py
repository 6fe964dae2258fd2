"""
Extension settings route handlers.
"""
import logging

from fastapi import APIRouter, HTTPException

from autoscrape.database import db_get_settings, db_update_settings

from ..database import get_db_connection
from ..models import SettingsOut, SettingsUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/extension", tags=["settings"])


@router.get("/settings", response_model=SettingsOut)
async def get_settings():
    try:
        with get_db_connection() as conn:
            return SettingsOut(**db_get_settings(conn))

    except Exception as e:
        logger.error(f"Failed to fetch extension settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch extension settings")


@router.put("/settings", response_model=SettingsOut)
async def update_settings(updates: SettingsUpdate):
    try:
        with get_db_connection() as conn:
            return SettingsOut(**db_update_settings(conn, updates.model_dump(exclude_unset=True, exclude_none=True)))

    except Exception as e:
        logger.error(f"Failed to update extension settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to update extension settings")
