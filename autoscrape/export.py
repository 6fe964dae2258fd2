"""
Export utilities for extracted vehicles.
"""
import logging
import sqlite3
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from .models import ExtractedVehicle

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "source", "source_url", "vin", "year", "make", "model", "trim", "price",
    "mileage", "location", "description", "images", "features",
]


def _row(vehicle: Union[ExtractedVehicle, Dict[str, Any]]) -> Dict[str, Any]:
    data = vehicle.to_dict() if isinstance(vehicle, ExtractedVehicle) else dict(vehicle)
    data["images"] = "|".join(data.get("images") or [])
    data["features"] = "|".join(sorted(data.get("features") or []))
    return data


def vehicles_to_frame(vehicles: Iterable[Union[ExtractedVehicle, Dict[str, Any]]]) -> pd.DataFrame:
    """Flatten vehicles into a DataFrame; list fields are pipe-joined."""
    rows = [_row(v) for v in vehicles]
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=EXPORT_COLUMNS)
    extra = [c for c in df.columns if c not in EXPORT_COLUMNS]
    return df.reindex(columns=EXPORT_COLUMNS + extra)


def write_frame(df: pd.DataFrame, out_path: str) -> None:
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)


def save_vehicles(vehicles: Iterable[Union[ExtractedVehicle, Dict[str, Any]]], out_path: str) -> int:
    """Save vehicles to CSV or Excel file; returns the row count."""
    df = vehicles_to_frame(vehicles)
    write_frame(df, out_path)
    logger.info(f">>> Saved {len(df)} rows to {out_path}")
    return len(df)


def export_vehicles(conn: sqlite3.Connection, source: Optional[str] = None) -> pd.DataFrame:
    """All stored vehicles (optionally one site), newest first."""
    q = "SELECT * FROM vehicles"
    params: tuple = ()
    if source:
        q += " WHERE source = ?"
        params = (source,)
    q += " ORDER BY extracted_at DESC"
    return pd.read_sql_query(q, conn, params=params)
