"""
Vehicle listing extraction package.
"""
from .models import ExtractedVehicle
from .errors import (
    ExtractionError,
    UnsupportedSiteError,
    IncompleteDataError,
    AlreadyExtractingError
)
from .sites import SITE_ADAPTERS, normalize_site, get_adapter, is_supported
from .dom import HtmlDocument, PlaywrightDocument
from .readiness import ReadinessGate
from .extractor import VehicleExtractor, ExtractionState, auto_extract_on_load
from .core import run_extraction, extract_document, store_outcomes
from .description import generate_facebook_description
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "ExtractedVehicle",
    "ExtractionError",
    "UnsupportedSiteError",
    "IncompleteDataError",
    "AlreadyExtractingError",
    "SITE_ADAPTERS",
    "normalize_site",
    "get_adapter",
    "is_supported",
    "HtmlDocument",
    "PlaywrightDocument",
    "ReadinessGate",
    "VehicleExtractor",
    "ExtractionState",
    "auto_extract_on_load",
    "run_extraction",
    "extract_document",
    "store_outcomes",
    "generate_facebook_description",
    "init_logger",
    "now_iso"
]
