#!/usr/bin/env python3
"""
Tests for the command-line entry point, using a saved page instead of a browser.
"""
import os

import pandas as pd
import pytest

from autoscrape.cli import main, parse_args
from autoscrape.database import db_connect, db_count_vehicles, db_get_active_session, db_recent_activity

LISTING = os.path.join(os.path.dirname(__file__), "testdata", "cars_com_listing.html")


def run_cli(tmp_path, *extra):
    db = str(tmp_path / "db" / "autoscrape.db")
    argv = [
        "--html-file", LISTING,
        "--db", db,
        "--no-file-log",
        "--no-lazy-wait",
        *extra,
    ]
    return main(argv), db


def test_requires_a_target():
    with pytest.raises(SystemExit):
        parse_args([])
    with pytest.raises(SystemExit):
        parse_args(["--html-file", LISTING])
    with pytest.raises(SystemExit):
        parse_args(["--url", "https://www.cars.com/vehicledetail/1/", "--html-file", LISTING,
                    "--page-url", "https://www.cars.com/vehicledetail/1/"])
    args = parse_args(["--url", "https://www.cars.com/a", "--url", "https://www.cargurus.com/b"])
    assert args.html_file is None
    assert len(args.url) == 2


def test_html_file_run_stores_vehicle(tmp_path):
    out = str(tmp_path / "vehicles.csv")
    code, db = run_cli(tmp_path, "--page-url", "https://www.cars.com/vehicledetail/8c1f2a/", "--out", out)

    assert code == 0
    conn = db_connect(db)
    try:
        assert db_count_vehicles(conn) == 1
        assert db_get_active_session(conn) is None
        assert [a["type"] for a in db_recent_activity(conn)] == ["scrape_success"]
    finally:
        conn.close()

    df = pd.read_csv(out)
    assert df.loc[0, "make"] == "Toyota"
    assert df.loc[0, "source"] == "cars.com"


def test_unsupported_page_fails_run(tmp_path):
    code, db = run_cli(tmp_path, "--page-url", "https://www.ebay.com/itm/1")

    assert code == 1
    conn = db_connect(db)
    try:
        assert db_count_vehicles(conn) == 0
        session = conn.execute("SELECT status, error_message FROM scraping_sessions").fetchone()
        assert session == ("failed", "No vehicle data extracted")
    finally:
        conn.close()
