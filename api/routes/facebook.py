"""
Facebook Marketplace description route handlers.

Posts are only prepared here; nothing is sent to Facebook.
"""
import logging

from fastapi import APIRouter, HTTPException

from autoscrape.database import db_get_vehicle
from autoscrape.description import generate_facebook_description

from ..database import get_db_connection
from ..models import (
    DescriptionRequest,
    DescriptionResponse,
    QuickPostRequest,
    QuickPostResponse,
    QuickPostResult,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/facebook", tags=["facebook"])


@router.post("/generate-description", response_model=DescriptionResponse)
async def generate_description(req: DescriptionRequest):
    try:
        with get_db_connection() as conn:
            vehicle = db_get_vehicle(conn, req.vehicle_id)
        if not vehicle:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        return DescriptionResponse(description=generate_facebook_description(vehicle))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to generate Facebook description: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate Facebook description")


@router.post("/quick-post", response_model=QuickPostResponse)
async def quick_post(req: QuickPostRequest):
    """Prepare one post per vehicle and group; unknown vehicles are skipped."""
    try:
        results = []
        with get_db_connection() as conn:
            for vehicle_id in req.vehicle_ids:
                vehicle = db_get_vehicle(conn, vehicle_id)
                if not vehicle:
                    logger.warning(f"Quick post: vehicle {vehicle_id} not found")
                    continue

                description = generate_facebook_description(vehicle)
                for group_id in req.group_ids:
                    results.append(QuickPostResult(
                        vehicle_id=vehicle_id,
                        group_id=group_id,
                        description=description,
                    ))

        return QuickPostResponse(results=results)

    except Exception as e:
        logger.error(f"Failed to prepare Facebook posts: {e}")
        raise HTTPException(status_code=500, detail="Failed to prepare Facebook posts")
