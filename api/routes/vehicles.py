"""
API route handlers for vehicle endpoints.
"""
import logging
import math
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response
from fastapi.responses import StreamingResponse

from autoscrape.database import (
    db_count_vehicles,
    db_delete_vehicle,
    db_get_vehicle,
    db_insert_vehicle,
    db_list_vehicles,
    db_log_activity,
    db_update_vehicle,
)
from autoscrape.export import export_vehicles

from ..config import config
from ..database import get_db_connection
from ..models import Pagination, VehicleIn, VehicleOut, VehiclesResponse, VehicleUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["vehicles"])


@router.get("/vehicles", response_model=VehiclesResponse)
async def list_vehicles(
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    source: Optional[str] = None,
    status: Optional[str] = None,
):
    """Get vehicles, newest first, with optional source/status filters."""
    try:
        with get_db_connection() as conn:
            rows = db_list_vehicles(conn, page=page, limit=limit, source=source, status=status)
            total = db_count_vehicles(conn, source=source, status=status)

        return VehiclesResponse(
            vehicles=[VehicleOut(**r) for r in rows],
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )

    except Exception as e:
        logger.error(f"Failed to fetch vehicles: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch vehicles")


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
async def get_vehicle(vehicle_id: str):
    """Get a specific vehicle by ID."""
    try:
        with get_db_connection() as conn:
            row = db_get_vehicle(conn, vehicle_id)
        if not row:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        return VehicleOut(**row)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch vehicle")


@router.post("/vehicles", response_model=VehicleOut, status_code=201)
async def create_vehicle(vehicle: VehicleIn):
    """Store a vehicle and log the scrape."""
    try:
        with get_db_connection() as conn:
            row = db_insert_vehicle(conn, vehicle.model_dump())
            title = " ".join(str(p) for p in (row["year"], row["make"], row["model"]) if p)
            db_log_activity(
                conn, "scrape_success", f"Successfully scraped {title} data",
                vehicle_id=row["id"], metadata={"source": row["source"]},
            )

        return VehicleOut(**row)

    except Exception as e:
        logger.error(f"Failed to create vehicle: {e}")
        raise HTTPException(status_code=500, detail="Failed to create vehicle")


@router.put("/vehicles/{vehicle_id}", response_model=VehicleOut)
async def update_vehicle(vehicle_id: str, updates: VehicleUpdate):
    """Apply the fields that were sent."""
    try:
        with get_db_connection() as conn:
            row = db_update_vehicle(conn, vehicle_id, updates.model_dump(exclude_unset=True))
        if not row:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        return VehicleOut(**row)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update vehicle")


@router.delete("/vehicles/{vehicle_id}", status_code=204)
async def delete_vehicle(vehicle_id: str):
    try:
        with get_db_connection() as conn:
            deleted = db_delete_vehicle(conn, vehicle_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        return Response(status_code=204)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete vehicle")


@router.get("/export/csv")
async def export_vehicles_csv(source: Optional[str] = None):
    """Export stored vehicles as CSV."""
    try:
        with get_db_connection() as conn:
            df = export_vehicles(conn, source=source)

        csv_content = df.to_csv(index=False).encode('utf-8')

        return StreamingResponse(
            iter([csv_content]),
            media_type='text/csv',
            headers={'Content-Disposition': 'attachment; filename="autoscrape_vehicles.csv"'}
        )

    except Exception as e:
        logger.error(f"Error exporting CSV: {e}")
        raise HTTPException(status_code=500, detail="Error generating CSV export")
