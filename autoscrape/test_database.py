#!/usr/bin/env python3
"""
Tests for SQLite storage and outcome persistence.
"""
from decimal import Decimal

import pytest

from autoscrape.core import ExtractionOutcome, store_outcomes
from autoscrape.database import (
    DEFAULT_SETTINGS,
    db_connect,
    db_count_vehicles,
    db_create_session,
    db_dashboard_stats,
    db_delete_vehicle,
    db_get_active_session,
    db_get_session,
    db_get_settings,
    db_get_vehicle,
    db_init,
    db_insert_vehicle,
    db_list_vehicles,
    db_log_activity,
    db_recent_activity,
    db_update_session,
    db_update_settings,
    db_update_vehicle,
    upsert_vehicle,
)
from autoscrape.errors import IncompleteDataError, UnsupportedSiteError
from autoscrape.models import ExtractedVehicle


@pytest.fixture
def conn(tmp_path):
    c = db_connect(str(tmp_path / "test.db"))
    db_init(c)
    yield c
    c.close()


def camry(**overrides):
    values = dict(
        source="cars.com",
        source_url="https://www.cars.com/vehicledetail/1/",
        vin="1HGCM82633A004352",
        year=2021,
        make="Toyota",
        model="Camry",
        trim="SE",
        price=Decimal("22999"),
        mileage=31480,
        images=("https://images.cars.com/1.jpg",),
        features=frozenset({"Bluetooth", "Backup Camera"}),
    )
    values.update(overrides)
    return ExtractedVehicle(**values)


def test_insert_and_get_vehicle(conn):
    row = db_insert_vehicle(conn, camry())

    assert len(row["id"]) == 32
    assert row["status"] == "extracted"
    assert row["price"] == 22999.0
    assert row["images"] == ["https://images.cars.com/1.jpg"]
    assert row["features"] == ["Backup Camera", "Bluetooth"]
    assert row["extracted_at"] == row["last_updated"]
    assert db_get_vehicle(conn, row["id"]) == row
    assert db_get_vehicle(conn, "missing") is None


def test_list_filter_and_paginate(conn):
    for i in range(3):
        db_insert_vehicle(conn, camry(source_url=f"https://www.cars.com/vehicledetail/{i}/"))
    db_insert_vehicle(conn, camry(source="autotrader.com", source_url="https://www.autotrader.com/a"))

    assert db_count_vehicles(conn) == 4
    assert db_count_vehicles(conn, source="cars.com") == 3
    assert len(db_list_vehicles(conn, page=1, limit=3)) == 3
    assert len(db_list_vehicles(conn, page=2, limit=3)) == 1
    assert [v["source"] for v in db_list_vehicles(conn, source="autotrader.com")] == ["autotrader.com"]


def test_update_and_delete_vehicle(conn):
    row = db_insert_vehicle(conn, camry())

    updated = db_update_vehicle(conn, row["id"], {"status": "posted", "features": ["Sunroof"], "bogus": 1})
    assert updated["status"] == "posted"
    assert updated["features"] == ["Sunroof"]
    assert updated["make"] == "Toyota"

    assert db_update_vehicle(conn, "missing", {"status": "posted"}) is None
    assert db_delete_vehicle(conn, row["id"]) is True
    assert db_delete_vehicle(conn, row["id"]) is False


def test_upsert_keys_on_source_url(conn):
    first_id, is_new = upsert_vehicle(conn, camry())
    assert is_new

    second_id, is_new = upsert_vehicle(conn, camry(price=Decimal("21500")))
    assert not is_new
    assert second_id == first_id
    assert db_get_vehicle(conn, first_id)["price"] == 21500.0
    assert db_count_vehicles(conn) == 1


def test_sessions(conn):
    session = db_create_session(conn, {"total_items": 4, "current_site": "cars.com"})
    assert session["status"] == "active"
    assert session["completed_at"] is None
    assert db_get_active_session(conn)["id"] == session["id"]

    done = db_update_session(conn, session["id"], {"status": "completed", "progress": 100})
    assert done["completed_at"] is not None
    assert db_get_active_session(conn) is None
    assert db_update_session(conn, "missing", {"progress": 5}) is None


def test_activity_log(conn):
    db_log_activity(conn, "scrape_success", "first", metadata={"source": "cars.com"})
    db_log_activity(conn, "scrape_failed", "second")

    recent = db_recent_activity(conn, limit=10)
    assert {a["description"] for a in recent} == {"first", "second"}
    first = next(a for a in recent if a["description"] == "first")
    assert first["metadata"] == {"source": "cars.com"}
    assert len(db_recent_activity(conn, limit=1)) == 1


def test_dashboard_stats(conn):
    db_insert_vehicle(conn, camry(source_url="a"))
    db_insert_vehicle(conn, camry(source_url="b"), status="posted")
    db_insert_vehicle(conn, camry(source_url="c"), status="failed")
    db_insert_vehicle(conn, camry(source_url="d"))

    assert db_dashboard_stats(conn) == {
        "total_vehicles": 4,
        "successful_scrapes": 2,
        "facebook_posts": 1,
        "failed_extractions": 1,
    }


def test_settings_defaults_and_merge(conn):
    settings = db_get_settings(conn)
    assert settings == DEFAULT_SETTINGS
    settings["settings"]["x"] = 1
    assert DEFAULT_SETTINGS["settings"] == {}

    saved = db_update_settings(conn, {"auto_extract_vin": False, "settings": {"theme": "dark"}})
    assert saved["auto_extract_vin"] is False
    assert saved["lazy_load_images"] is True
    assert saved["settings"] == {"theme": "dark"}

    saved = db_update_settings(conn, {"scraping_delay": 500})
    assert saved["auto_extract_vin"] is False
    assert saved["scraping_delay"] == 500
    assert conn.execute("SELECT COUNT(*) FROM extension_settings").fetchone()[0] == 1


def test_store_outcomes_updates_session(conn):
    session = db_create_session(conn, {"total_items": 4})
    outcomes = [
        ExtractionOutcome(url="https://www.cars.com/vehicledetail/1/", vehicle=camry()),
        ExtractionOutcome(url="https://www.cars.com/vehicledetail/1/", vehicle=camry(mileage=32000)),
        ExtractionOutcome(url="https://www.ebay.com/itm/9", error=UnsupportedSiteError("www.ebay.com")),
        ExtractionOutcome(url="https://www.cars.com/vehicledetail/2/"),
    ]

    counts = store_outcomes(conn, outcomes, session_id=session["id"])

    assert counts == {"new": 1, "updated": 1, "failed": 1, "skipped": 1}
    assert db_count_vehicles(conn) == 1

    session = db_get_session(conn, session["id"])
    assert session["completed_items"] == 4
    assert session["progress"] == 100
    assert session["current_site"] == "cars.com"

    types = sorted(a["type"] for a in db_recent_activity(conn, limit=10))
    assert types == ["scrape_failed", "scrape_success", "scrape_success"]
    failed = next(a for a in db_recent_activity(conn) if a["type"] == "scrape_failed")
    assert failed["metadata"]["kind"] == "unsupported_site"


def test_incomplete_outcome_is_not_ok():
    outcome = ExtractionOutcome(url="u", error=IncompleteDataError(["model"]))
    assert not outcome.ok
