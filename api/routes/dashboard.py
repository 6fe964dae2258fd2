"""
Dashboard statistics and activity feed route handlers.
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from autoscrape.database import db_dashboard_stats, db_recent_activity

from ..config import config
from ..database import get_db_connection
from ..models import ActivityOut, DashboardStats

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard/stats", response_model=DashboardStats)
async def get_dashboard_stats():
    try:
        with get_db_connection() as conn:
            return DashboardStats(**db_dashboard_stats(conn))

    except Exception as e:
        logger.error(f"Failed to fetch dashboard stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard stats")


@router.get("/activity", response_model=List[ActivityOut])
async def get_activity(limit: int = Query(config.DEFAULT_ACTIVITY_LIMIT, ge=1, le=config.MAX_ACTIVITY_LIMIT)):
    """Most recent activity first."""
    try:
        with get_db_connection() as conn:
            return [ActivityOut(**a) for a in db_recent_activity(conn, limit)]

    except Exception as e:
        logger.error(f"Failed to fetch activity logs: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch activity logs")
