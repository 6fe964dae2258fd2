"""
Command-line entry point: extract vehicles from listing pages into SQLite.
"""
import argparse
import asyncio
import os
import sys

from .core import extract_html_file, run_extraction, store_outcomes
from .database import (
    db_connect,
    db_create_session,
    db_get_settings,
    db_init,
    db_update_session,
)
from .export import save_vehicles
from .readiness import DEFAULT_LAZY_TIMEOUT, DEFAULT_POLL_INTERVAL, ReadinessGate
from .sites import is_supported
from .utils import init_logger, now_iso

STORAGE_STATE_FILE_DEFAULT = "storage_state.json"


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Vehicle listing extractor (AutoTrader, Cars.com, CarGurus, Dealer.com) with SQLite storage")
    target = ap.add_mutually_exclusive_group()
    target.add_argument("--url", action="append", default=[], help="Listing URL to open (repeatable)")
    target.add_argument("--html-file", type=str, default=None, help="Extract from a saved HTML page instead of a live browser")
    ap.add_argument("--page-url", type=str, default="", help="Original URL of --html-file (selects the site adapter)")
    ap.add_argument("--headless", action="store_true", help="Run without UI")
    ap.add_argument("--storage-state", type=str, default=STORAGE_STATE_FILE_DEFAULT, help="Path to storage_state.json")
    ap.add_argument("--db", type=str, default=os.getenv("AUTOSCRAPE_DB", "autoscrape.db"), help="Path to SQLite DB")
    ap.add_argument("--out", type=str, default="", help="CSV/XLSX file for the vehicles extracted in this run")
    ap.add_argument("--auto", action="store_true",
                    help="Extract only when the stored auto_extract_vin setting is on, as on page load")
    # Readiness
    ap.add_argument("--no-lazy-wait", action="store_true", help="Skip waiting for lazy-loaded images")
    ap.add_argument("--poll-interval", type=float, default=DEFAULT_POLL_INTERVAL, help="Lazy image poll interval, seconds")
    ap.add_argument("--lazy-timeout", type=float, default=DEFAULT_LAZY_TIMEOUT, help="Max wait for lazy images, seconds")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "autoscrape.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or autoscrape.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")

    args = ap.parse_args(argv)
    if not args.url and not args.html_file:
        ap.error("one of --url or --html-file is required")
    if args.html_file and not args.page_url:
        ap.error("--html-file requires --page-url")
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.info(f">>> Run started at {now_iso()}")

    os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    conn = db_connect(args.db)
    db_init(conn)
    try:
        settings = db_get_settings(conn)
        gate = ReadinessGate(
            poll_interval=args.poll_interval,
            timeout=args.lazy_timeout,
            wait_for_images=settings["lazy_load_images"] and not args.no_lazy_wait,
        )

        for u in args.url:
            if not is_supported(u):
                logger.warning(f"No adapter for {u}; it will be reported as unsupported")

        targets = args.url or [args.page_url]
        session = db_create_session(conn, {
            "current_site": targets[0],
            "total_items": len(targets),
            "current_action": "Starting extraction",
        })

        try:
            if args.html_file:
                outcomes = [asyncio.run(extract_html_file(
                    args.html_file, args.page_url, gate=gate,
                    auto_settings=settings if args.auto else None,
                ))]
            else:
                outcomes = asyncio.run(run_extraction(
                    args.url,
                    headless=args.headless,
                    storage_state_path=args.storage_state,
                    gate=gate,
                    delay_ms=settings["scraping_delay"],
                    auto_settings=settings if args.auto else None,
                ))
        except Exception as e:
            db_update_session(conn, session["id"], {"status": "failed", "error_message": str(e)})
            raise

        counts = store_outcomes(conn, outcomes, session_id=session["id"])
        all_failed = counts["failed"] and counts["failed"] == len(outcomes)
        db_update_session(conn, session["id"], {
            "status": "failed" if all_failed or not outcomes else "completed",
            "current_action": "Finished",
            "error_message": "No vehicle data extracted" if all_failed or not outcomes else None,
        })
        logger.info(
            f">>> In DB: new vehicles: {counts['new']}, updated: {counts['updated']}, failed pages: {counts['failed']}, skipped: {counts['skipped']}"
        )

        if args.out:
            save_vehicles([o.vehicle for o in outcomes if o.ok], args.out)
    finally:
        conn.close()

    return 0 if counts["new"] + counts["updated"] > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
