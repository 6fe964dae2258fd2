"""
SQLite storage for extracted vehicles, scraping sessions, activity and settings.
"""
import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple, Union

from .models import ExtractedVehicle
from .utils import new_id, now_iso

logger = logging.getLogger(__name__)

# Schema definitions
DDL_VEHICLES = """
CREATE TABLE IF NOT EXISTS vehicles (
  id TEXT PRIMARY KEY,
  vin TEXT,
  year INTEGER,
  make TEXT NOT NULL,
  model TEXT NOT NULL,
  trim TEXT,
  price REAL,
  mileage INTEGER,
  location TEXT,
  description TEXT,
  features TEXT,
  images TEXT,
  source TEXT NOT NULL,
  source_url TEXT,
  status TEXT NOT NULL DEFAULT 'extracted',
  facebook_post_id TEXT,
  extracted_at TEXT,
  last_updated TEXT
);
"""

DDL_SESSIONS = """
CREATE TABLE IF NOT EXISTS scraping_sessions (
  id TEXT PRIMARY KEY,
  status TEXT NOT NULL DEFAULT 'active',
  current_site TEXT,
  progress INTEGER DEFAULT 0,
  total_items INTEGER DEFAULT 0,
  completed_items INTEGER DEFAULT 0,
  current_action TEXT,
  started_at TEXT,
  completed_at TEXT,
  error_message TEXT
);
"""

DDL_ACTIVITY = """
CREATE TABLE IF NOT EXISTS activity_logs (
  id TEXT PRIMARY KEY,
  type TEXT NOT NULL,
  description TEXT NOT NULL,
  vehicle_id TEXT,
  session_id TEXT,
  metadata TEXT,
  created_at TEXT
);
"""

DDL_SETTINGS = """
CREATE TABLE IF NOT EXISTS extension_settings (
  id TEXT PRIMARY KEY,
  auto_extract_vin INTEGER DEFAULT 1,
  auto_post_facebook INTEGER DEFAULT 0,
  lazy_load_images INTEGER DEFAULT 1,
  scraping_delay INTEGER DEFAULT 2000,
  max_retries INTEGER DEFAULT 3,
  settings TEXT,
  updated_at TEXT
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_vehicles_extracted_at ON vehicles(extracted_at);",
    "CREATE INDEX IF NOT EXISTS idx_vehicles_source_url ON vehicles(source_url);",
    "CREATE INDEX IF NOT EXISTS idx_activity_created_at ON activity_logs(created_at);",
]

VEHICLE_STATUSES = ("extracted", "posted", "failed")
SESSION_STATUSES = ("active", "completed", "failed", "stopped")
FINISHED_SESSION_STATUSES = ("completed", "failed", "stopped")

VEHICLE_FIELDS = (
    "vin", "year", "make", "model", "trim", "price", "mileage", "location",
    "description", "features", "images", "source", "source_url", "status",
    "facebook_post_id",
)
SESSION_FIELDS = (
    "status", "current_site", "progress", "total_items", "completed_items",
    "current_action", "error_message",
)
SETTINGS_FLAGS = ("auto_extract_vin", "auto_post_facebook", "lazy_load_images")
SETTINGS_FIELDS = SETTINGS_FLAGS + ("scraping_delay", "max_retries", "settings")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "auto_extract_vin": True,
    "auto_post_facebook": False,
    "lazy_load_images": True,
    "scraping_delay": 2000,
    "max_retries": 3,
    "settings": {},
}

VehicleData = Union[ExtractedVehicle, Dict[str, Any]]


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    for ddl in (DDL_VEHICLES, DDL_SESSIONS, DDL_ACTIVITY, DDL_SETTINGS):
        conn.execute(ddl)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


def row_to_dict(cur, row):
    """Convert a result row to a dictionary."""
    return {desc[0]: row[i] for i, desc in enumerate(cur.description)}


def _fetch_one(conn: sqlite3.Connection, sql: str, params=()) -> Optional[Dict]:
    cur = conn.cursor()
    cur.execute(sql, params)
    r = cur.fetchone()
    if not r:
        return None
    return row_to_dict(cur, r)


def _fetch_all(conn: sqlite3.Connection, sql: str, params=()) -> List[Dict]:
    cur = conn.cursor()
    cur.execute(sql, params)
    return [row_to_dict(cur, r) for r in cur.fetchall()]


def _pick(data: Dict[str, Any], allowed) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k in allowed}


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------

def _encode_vehicle(values: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(values)
    for key in ("features", "images"):
        if key in out:
            out[key] = json.dumps(list(out[key] or []), ensure_ascii=False)
    if out.get("price") is not None:
        out["price"] = float(out["price"])
    return out


def _decode_vehicle(row: Optional[Dict]) -> Optional[Dict]:
    if row is None:
        return None
    for key in ("features", "images"):
        row[key] = json.loads(row[key]) if row.get(key) else []
    return row


def _vehicle_values(vehicle: VehicleData) -> Dict[str, Any]:
    data = vehicle.to_dict() if isinstance(vehicle, ExtractedVehicle) else dict(vehicle)
    return _pick(data, VEHICLE_FIELDS)


def db_insert_vehicle(conn: sqlite3.Connection, vehicle: VehicleData, status: str = "extracted") -> Dict:
    """Insert a vehicle and return the stored row."""
    values = _vehicle_values(vehicle)
    values.setdefault("status", status)
    values = _encode_vehicle(values)
    ts = now_iso()
    values.update(id=new_id(), extracted_at=ts, last_updated=ts)

    cols = ",".join(values)
    marks = ",".join("?" for _ in values)
    conn.execute(f"INSERT INTO vehicles ({cols}) VALUES ({marks})", tuple(values.values()))
    conn.commit()
    return db_get_vehicle(conn, values["id"])


def db_get_vehicle(conn: sqlite3.Connection, vehicle_id: str) -> Optional[Dict]:
    return _decode_vehicle(_fetch_one(conn, "SELECT * FROM vehicles WHERE id = ?", (vehicle_id,)))


def db_find_vehicle_by_url(conn: sqlite3.Connection, source_url: str) -> Optional[Dict]:
    return _decode_vehicle(_fetch_one(
        conn,
        "SELECT * FROM vehicles WHERE source_url = ? ORDER BY extracted_at DESC LIMIT 1",
        (source_url,),
    ))


def _vehicle_where(source: Optional[str], status: Optional[str]) -> Tuple[str, List[Any]]:
    conditions, params = [], []
    if source:
        conditions.append("source = ?")
        params.append(source)
    if status:
        conditions.append("status = ?")
        params.append(status)
    where = " WHERE " + " AND ".join(conditions) if conditions else ""
    return where, params


def db_list_vehicles(
    conn: sqlite3.Connection,
    page: int = 1,
    limit: int = 10,
    source: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dict]:
    """Newest vehicles first, paginated."""
    where, params = _vehicle_where(source, status)
    offset = (max(page, 1) - 1) * limit
    rows = _fetch_all(
        conn,
        f"SELECT * FROM vehicles{where} ORDER BY extracted_at DESC LIMIT ? OFFSET ?",
        params + [limit, offset],
    )
    return [_decode_vehicle(r) for r in rows]


def db_count_vehicles(conn: sqlite3.Connection, source: Optional[str] = None, status: Optional[str] = None) -> int:
    where, params = _vehicle_where(source, status)
    return conn.execute(f"SELECT COUNT(*) FROM vehicles{where}", params).fetchone()[0]


def db_update_vehicle(conn: sqlite3.Connection, vehicle_id: str, updates: Dict[str, Any]) -> Optional[Dict]:
    """Apply a partial update. Unknown keys are ignored. Returns None if not found."""
    if db_get_vehicle(conn, vehicle_id) is None:
        return None
    values = _encode_vehicle(_pick(updates, VEHICLE_FIELDS))
    values["last_updated"] = now_iso()
    assignments = ", ".join(f"{k}=?" for k in values)
    conn.execute(f"UPDATE vehicles SET {assignments} WHERE id=?", tuple(values.values()) + (vehicle_id,))
    conn.commit()
    return db_get_vehicle(conn, vehicle_id)


def db_delete_vehicle(conn: sqlite3.Connection, vehicle_id: str) -> bool:
    cur = conn.execute("DELETE FROM vehicles WHERE id = ?", (vehicle_id,))
    conn.commit()
    return cur.rowcount > 0


def upsert_vehicle(conn: sqlite3.Connection, vehicle: ExtractedVehicle) -> Tuple[str, bool]:
    """
    Insert or refresh a vehicle keyed on its source URL.

    Returns:
        Tuple of (vehicle_id, is_new)
    """
    existing = db_find_vehicle_by_url(conn, vehicle.source_url)
    if existing is None:
        row = db_insert_vehicle(conn, vehicle)
        return row["id"], True

    updates = _vehicle_values(vehicle)
    updates.pop("status", None)
    db_update_vehicle(conn, existing["id"], updates)
    return existing["id"], False


# ---------------------------------------------------------------------------
# Scraping sessions
# ---------------------------------------------------------------------------

def db_create_session(conn: sqlite3.Connection, data: Optional[Dict[str, Any]] = None) -> Dict:
    values = _pick(data or {}, SESSION_FIELDS)
    values.setdefault("status", "active")
    values.update(id=new_id(), started_at=now_iso())
    cols = ",".join(values)
    marks = ",".join("?" for _ in values)
    conn.execute(f"INSERT INTO scraping_sessions ({cols}) VALUES ({marks})", tuple(values.values()))
    conn.commit()
    return db_get_session(conn, values["id"])


def db_get_session(conn: sqlite3.Connection, session_id: str) -> Optional[Dict]:
    return _fetch_one(conn, "SELECT * FROM scraping_sessions WHERE id = ?", (session_id,))


def db_update_session(conn: sqlite3.Connection, session_id: str, updates: Dict[str, Any]) -> Optional[Dict]:
    """Partial update; finishing statuses stamp ``completed_at``."""
    if db_get_session(conn, session_id) is None:
        return None
    values = _pick(updates, SESSION_FIELDS)
    if values.get("status") in FINISHED_SESSION_STATUSES:
        values["completed_at"] = now_iso()
    if values:
        assignments = ", ".join(f"{k}=?" for k in values)
        conn.execute(
            f"UPDATE scraping_sessions SET {assignments} WHERE id=?",
            tuple(values.values()) + (session_id,),
        )
        conn.commit()
    return db_get_session(conn, session_id)


def db_get_active_session(conn: sqlite3.Connection) -> Optional[Dict]:
    return _fetch_one(
        conn,
        "SELECT * FROM scraping_sessions WHERE status = 'active' ORDER BY started_at DESC LIMIT 1",
    )


# ---------------------------------------------------------------------------
# Activity log
# ---------------------------------------------------------------------------

def db_log_activity(
    conn: sqlite3.Connection,
    type: str,
    description: str,
    vehicle_id: Optional[str] = None,
    session_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict:
    activity_id = new_id()
    conn.execute(
        """
        INSERT INTO activity_logs (id, type, description, vehicle_id, session_id, metadata, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            activity_id, type, description, vehicle_id, session_id,
            json.dumps(metadata, ensure_ascii=False) if metadata is not None else None,
            now_iso(),
        ),
    )
    conn.commit()
    return _decode_activity(_fetch_one(conn, "SELECT * FROM activity_logs WHERE id = ?", (activity_id,)))


def _decode_activity(row: Dict) -> Dict:
    row["metadata"] = json.loads(row["metadata"]) if row.get("metadata") else None
    return row


def db_recent_activity(conn: sqlite3.Connection, limit: int = 10) -> List[Dict]:
    rows = _fetch_all(conn, "SELECT * FROM activity_logs ORDER BY created_at DESC LIMIT ?", (limit,))
    return [_decode_activity(r) for r in rows]


# ---------------------------------------------------------------------------
# Dashboard statistics
# ---------------------------------------------------------------------------

def db_dashboard_stats(conn: sqlite3.Connection) -> Dict[str, int]:
    by_status = dict(conn.execute("SELECT status, COUNT(*) FROM vehicles GROUP BY status").fetchall())
    return {
        "total_vehicles": sum(by_status.values()),
        "successful_scrapes": by_status.get("extracted", 0),
        "facebook_posts": by_status.get("posted", 0),
        "failed_extractions": by_status.get("failed", 0),
    }


# ---------------------------------------------------------------------------
# Extension settings
# ---------------------------------------------------------------------------

def _decode_settings(row: Dict) -> Dict:
    for flag in SETTINGS_FLAGS:
        row[flag] = bool(row[flag])
    row["settings"] = json.loads(row["settings"]) if row.get("settings") else {}
    return row


def db_get_settings(conn: sqlite3.Connection) -> Dict[str, Any]:
    """Stored settings, or the defaults when nothing has been saved yet."""
    row = _fetch_one(conn, "SELECT * FROM extension_settings ORDER BY updated_at DESC LIMIT 1")
    if row is None:
        return {**DEFAULT_SETTINGS, "settings": {}}
    return _decode_settings(row)


def db_update_settings(conn: sqlite3.Connection, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``updates`` into the single settings row, creating it if needed."""
    current = db_get_settings(conn)
    merged = {k: current.get(k, DEFAULT_SETTINGS[k]) for k in SETTINGS_FIELDS}
    merged.update(_pick(updates, SETTINGS_FIELDS))

    values = {k: int(bool(merged[k])) for k in SETTINGS_FLAGS}
    values["scraping_delay"] = int(merged["scraping_delay"])
    values["max_retries"] = int(merged["max_retries"])
    values["settings"] = json.dumps(merged["settings"] or {}, ensure_ascii=False)
    values["updated_at"] = now_iso()

    settings_id = current.get("id")
    if settings_id:
        assignments = ", ".join(f"{k}=?" for k in values)
        conn.execute(
            f"UPDATE extension_settings SET {assignments} WHERE id=?",
            tuple(values.values()) + (settings_id,),
        )
    else:
        values["id"] = new_id()
        cols = ",".join(values)
        marks = ",".join("?" for _ in values)
        conn.execute(f"INSERT INTO extension_settings ({cols}) VALUES ({marks})", tuple(values.values()))
    conn.commit()
    logger.debug(f"Extension settings updated: {sorted(updates)}")
    return db_get_settings(conn)
