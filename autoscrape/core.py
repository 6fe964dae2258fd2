"""
Browser lifecycle and extraction runs over one or more listing pages.
"""
import asyncio
import logging
import os
import random
import sqlite3
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from playwright.async_api import async_playwright

from .database import db_log_activity, db_update_session, upsert_vehicle
from .dom import HtmlDocument, PlaywrightDocument
from .errors import ExtractionError
from .extractor import VehicleExtractor, auto_extract_on_load
from .models import ExtractedVehicle
from .readiness import ReadinessGate
from .sites import normalize_site

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


@dataclass
class ExtractionOutcome:
    """Result of one page: a vehicle, the error that stopped it, or neither when skipped."""

    url: str
    vehicle: Optional[ExtractedVehicle] = None
    error: Optional[ExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.vehicle is not None


async def extract_document(
    document,
    gate: Optional[ReadinessGate] = None,
    auto_settings: Optional[Dict] = None,
) -> ExtractionOutcome:
    """
    Run one extraction and fold expected failures into the outcome.

    With ``auto_settings`` the page is handled the way a freshly loaded tab is:
    extraction only happens when auto-extract is enabled, otherwise the
    outcome carries neither a vehicle nor an error.
    """
    extractor = VehicleExtractor(document, gate=gate)
    try:
        if auto_settings is not None:
            vehicle = await auto_extract_on_load(extractor, auto_settings)
            if vehicle is None:
                logger.info(f">>> Auto-extract skipped for {document.url}")
        else:
            vehicle = await extractor.extract()
        return ExtractionOutcome(url=document.url, vehicle=vehicle)
    except ExtractionError as e:
        logger.error(f"Extraction failed for {document.url}: {e}")
        return ExtractionOutcome(url=document.url, error=e)


async def extract_html_file(
    path: str,
    page_url: str,
    gate: Optional[ReadinessGate] = None,
    auto_settings: Optional[Dict] = None,
) -> ExtractionOutcome:
    """Extract from a saved page, using ``page_url`` to pick the adapter."""
    document = HtmlDocument.from_file(path, url=page_url)
    return await extract_document(document, gate=gate, auto_settings=auto_settings)


async def run_extraction(
    urls: Iterable[str],
    headless: bool = True,
    storage_state_path: Optional[str] = None,
    gate: Optional[ReadinessGate] = None,
    delay_ms: int = 2000,
    auto_settings: Optional[Dict] = None,
) -> List[ExtractionOutcome]:
    """
    Open each URL in Chromium and extract one vehicle per page.

    Pages are visited one after another with a jittered pause of about
    ``delay_ms`` between them. Navigation errors are logged and the URL is
    skipped; extraction errors come back inside the outcome.
    """
    urls = list(urls)
    outcomes: List[ExtractionOutcome] = []
    is_headless = bool(headless) or os.getenv("HEADLESS", "").strip().lower() in ("1", "true")

    launch_args = ["--disable-blink-features=AutomationControlled"]
    if is_headless:
        launch_args += ["--disable-dev-shm-usage", "--no-sandbox", "--disable-gpu"]

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=is_headless, args=launch_args)
        logger.info(f">>> Headless mode: {is_headless}")

        ctx_kwargs = {}
        if storage_state_path and os.path.exists(storage_state_path):
            ctx_kwargs["storage_state"] = storage_state_path
            logger.info(f">>> Using existing storage state: {storage_state_path}")

        context = await browser.new_context(
            **ctx_kwargs,
            viewport={"width": 1280, "height": 900},
            user_agent=USER_AGENT,
            locale="en-US",
        )
        context.set_default_timeout(30_000)
        context.set_default_navigation_timeout(45_000)

        try:
            page = await context.new_page()
            for i, url in enumerate(urls):
                logger.info(f">>> Opening listing: {url}")
                try:
                    await page.goto(url, timeout=120_000, wait_until="domcontentloaded")
                except Exception as e:
                    logger.error(f"Navigation failed for {url}: {e}")
                    if page.is_closed():
                        page = await context.new_page()
                    continue

                outcomes.append(await extract_document(
                    PlaywrightDocument(page), gate=gate, auto_settings=auto_settings
                ))

                if i < len(urls) - 1:
                    await asyncio.sleep(delay_ms / 1000 * random.uniform(0.8, 1.2))
        finally:
            await context.close()
            await browser.close()

    return outcomes


def store_outcomes(
    conn: sqlite3.Connection,
    outcomes: Iterable[ExtractionOutcome],
    session_id: Optional[str] = None,
) -> Dict[str, int]:
    """
    Persist successful vehicles and log every outcome as activity.

    Session progress is updated per outcome when ``session_id`` is given.

    Returns:
        Counters: new, updated, failed, skipped.
    """
    counts = {"new": 0, "updated": 0, "failed": 0, "skipped": 0}
    outcomes = list(outcomes)
    for done, outcome in enumerate(outcomes, 1):
        site = normalize_site(outcome.url)
        if outcome.ok:
            v = outcome.vehicle
            vehicle_id, is_new = upsert_vehicle(conn, v)
            counts["new" if is_new else "updated"] += 1
            db_log_activity(
                conn, "scrape_success", f"Successfully scraped {v.title} data",
                vehicle_id=vehicle_id, session_id=session_id,
                metadata={"source": site, "url": outcome.url, "new": is_new},
            )
            action = f"Scraped {v.title}"
        elif outcome.error is None:
            counts["skipped"] += 1
            action = f"Skipped {outcome.url}"
        else:
            counts["failed"] += 1
            err = outcome.error
            db_log_activity(
                conn, "scrape_failed", str(err), session_id=session_id,
                metadata={"source": site, "url": outcome.url, "kind": getattr(err, "kind", None)},
            )
            action = f"Failed {outcome.url}"

        if session_id:
            db_update_session(conn, session_id, {
                "current_site": site,
                "completed_items": done,
                "progress": int(done * 100 / len(outcomes)),
                "current_action": action,
            })
    return counts
