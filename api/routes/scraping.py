"""
Scraping session route handlers.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from autoscrape.database import (
    db_create_session,
    db_get_active_session,
    db_get_session,
    db_update_session,
)

from ..database import get_db_connection
from ..models import SessionIn, SessionOut, SessionUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/scraping", tags=["scraping"])


@router.post("/start", response_model=SessionOut, status_code=201)
async def start_session(session: SessionIn):
    try:
        with get_db_connection() as conn:
            row = db_create_session(conn, session.model_dump())
        logger.info(f"Scraping session started: {row['id']}")
        return SessionOut(**row)

    except Exception as e:
        logger.error(f"Failed to start scraping session: {e}")
        raise HTTPException(status_code=500, detail="Failed to start scraping session")


@router.get("/active", response_model=Optional[SessionOut])
async def get_active_session():
    """Latest active session, or null."""
    try:
        with get_db_connection() as conn:
            row = db_get_active_session(conn)
        return SessionOut(**row) if row else None

    except Exception as e:
        logger.error(f"Failed to fetch active session: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch active session")


@router.get("/progress/{session_id}", response_model=SessionOut)
async def get_progress(session_id: str):
    try:
        with get_db_connection() as conn:
            row = db_get_session(conn, session_id)
        if not row:
            raise HTTPException(status_code=404, detail="Scraping session not found")
        return SessionOut(**row)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch scraping progress: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch scraping progress")


@router.put("/{session_id}", response_model=SessionOut)
async def update_session(session_id: str, updates: SessionUpdate):
    try:
        with get_db_connection() as conn:
            row = db_update_session(conn, session_id, updates.model_dump(exclude_unset=True))
        if not row:
            raise HTTPException(status_code=404, detail="Scraping session not found")
        return SessionOut(**row)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update scraping session: {e}")
        raise HTTPException(status_code=500, detail="Failed to update scraping session")
