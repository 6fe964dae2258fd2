"""
Extraction orchestration: adapter lookup, readiness wait, field extraction
and validation of one vehicle record per call.
"""
import asyncio
import enum
import logging
from typing import Mapping, Optional

from .errors import AlreadyExtractingError, IncompleteDataError, UnsupportedSiteError
from .fields import (
    extract_features,
    extract_images,
    extract_mileage,
    extract_price,
    extract_text,
    extract_vin,
    extract_year,
)
from .models import ExtractedVehicle
from .readiness import ReadinessGate
from .sites import SITE_ADAPTERS, SiteAdapter, normalize_site

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("make", "model")
AUTO_EXTRACT_DELAY = 2.0


class ExtractionState(enum.Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"


class VehicleExtractor:
    """
    Extracts a vehicle record from one document.

    The instance owns a two-state flag. A call made while another call on the
    same instance is still running fails with ``AlreadyExtractingError``; the
    flag always drops back to idle when a call settles, whether it succeeded
    or not. This only guards re-entrant calls on one instance, it is not a lock.
    """

    def __init__(
        self,
        document,
        gate: Optional[ReadinessGate] = None,
        adapters: Mapping[str, SiteAdapter] = SITE_ADAPTERS,
    ):
        self.document = document
        self.gate = gate or ReadinessGate()
        self.adapters = adapters
        self._state = ExtractionState.IDLE

    @property
    def state(self) -> ExtractionState:
        return self._state

    @property
    def is_extracting(self) -> bool:
        return self._state is ExtractionState.EXTRACTING

    @property
    def site(self) -> str:
        return normalize_site(self.document.url)

    def _begin(self) -> None:
        if self._state is ExtractionState.EXTRACTING:
            raise AlreadyExtractingError()
        self._state = ExtractionState.EXTRACTING

    def _finish(self) -> None:
        self._state = ExtractionState.IDLE

    async def extract(self) -> ExtractedVehicle:
        """
        Extract and validate the vehicle on the current page.

        Raises:
            AlreadyExtractingError: another extract() on this instance is pending.
            UnsupportedSiteError: no adapter for the page's site.
            IncompleteDataError: make or model could not be found.
        """
        self._begin()
        try:
            site = self.site
            adapter = self.adapters.get(site)
            if adapter is None:
                raise UnsupportedSiteError(site)

            await self.gate.wait(self.document)

            vehicle = await self._extract_fields(site, adapter)
            missing = [f for f in REQUIRED_FIELDS if getattr(vehicle, f) is None]
            if missing:
                raise IncompleteDataError(missing, url=vehicle.source_url)

            logger.info(f">>> Extracted {vehicle.title} from {site}")
            return vehicle
        finally:
            self._finish()

    async def _extract_fields(self, site: str, adapter: SiteAdapter) -> ExtractedVehicle:
        doc = self.document
        return ExtractedVehicle(
            source=site,
            source_url=doc.url,
            vin=await extract_vin(doc, adapter["vin"]),
            year=await extract_year(doc, adapter["year"]),
            make=await extract_text(doc, adapter["make"]),
            model=await extract_text(doc, adapter["model"]),
            trim=await extract_text(doc, adapter["trim"]),
            price=await extract_price(doc, adapter["price"]),
            mileage=await extract_mileage(doc, adapter["mileage"]),
            location=await extract_text(doc, adapter["location"]),
            description=await extract_text(doc, adapter["description"]),
            images=await extract_images(doc, adapter["images"]),
            features=await extract_features(doc, adapter["features"]),
        )


async def auto_extract_on_load(
    extractor: VehicleExtractor,
    settings,
    delay: float = AUTO_EXTRACT_DELAY,
) -> Optional[ExtractedVehicle]:
    """
    Run an extraction shortly after page load when auto-extract is enabled.

    ``settings`` is anything with an ``auto_extract_vin`` attribute or key.
    Returns None when the site is unsupported, the setting is off, or an
    extraction is already underway once the delay has passed.
    """
    if extractor.site not in extractor.adapters:
        return None

    enabled = settings.get("auto_extract_vin") if isinstance(settings, Mapping) else getattr(settings, "auto_extract_vin", False)
    if not enabled:
        return None

    logger.info(f">>> Auto-extract scheduled on {extractor.site} in {delay:.1f}s")
    await asyncio.sleep(delay)
    if extractor.is_extracting:
        logger.debug("Auto-extract skipped: extraction already running")
        return None
    return await extractor.extract()
