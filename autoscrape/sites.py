"""
Per-site selector tables and hostname normalization.

Each adapter maps a vehicle field to an ordered tuple of CSS selectors.
Selectors are tried in declaration order and the first match wins, so the
order encodes fallback priority.
"""
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
from urllib.parse import urlparse

SiteAdapter = Mapping[str, Tuple[str, ...]]

FIELDS = (
    "vin", "year", "make", "model", "trim", "price", "mileage",
    "location", "description", "images", "features",
)


def _adapter(**selectors: Tuple[str, ...]) -> SiteAdapter:
    missing = set(FIELDS) - set(selectors)
    if missing:
        raise ValueError(f"Adapter is missing selectors for: {sorted(missing)}")
    return MappingProxyType(dict(selectors))


SITE_ADAPTERS: Mapping[str, SiteAdapter] = MappingProxyType({
    "autotrader.com": _adapter(
        vin=('[data-cmp="vin"]', ".vin-number", '[data-qaid="cntnr-vin"]'),
        year=('[data-cmp="year"]', ".vehicle-year", ".listing-year"),
        make=('[data-cmp="make"]', ".vehicle-make", ".listing-make"),
        model=('[data-cmp="model"]', ".vehicle-model", ".listing-model"),
        trim=('[data-cmp="trim"]', ".vehicle-trim", ".listing-trim"),
        price=('[data-cmp="price"]', ".first-price", ".listing-price"),
        mileage=('[data-cmp="mileage"]', ".vehicle-mileage", ".listing-mileage"),
        location=('[data-cmp="location"]', ".dealer-address", ".listing-location"),
        description=('[data-cmp="description"]', ".vehicle-description", ".listing-description"),
        images=(".media-viewer-thumbnail img", ".carousel-inner img", ".vehicle-image img"),
        features=(".vehicle-features li", ".equipment-list li", ".features-list li"),
    ),
    "cars.com": _adapter(
        vin=(".vin-display", '[data-linkname="vin"]', ".vehicle-vin"),
        year=(".vehicle-year", ".listing-year", '[data-linkname="year"]'),
        make=(".vehicle-make", ".listing-make", '[data-linkname="make"]'),
        model=(".vehicle-model", ".listing-model", '[data-linkname="model"]'),
        trim=(".vehicle-trim", ".listing-trim", '[data-linkname="trim"]'),
        price=(".primary-price", ".vehicle-price", '[data-linkname="price"]'),
        mileage=(".vehicle-mileage", ".listing-mileage", '[data-linkname="mileage"]'),
        location=(".dealer-address", ".listing-location", '[data-linkname="dealer-address"]'),
        description=(".vehicle-description", ".listing-description"),
        images=(".media-gallery img", ".vehicle-photos img", ".carousel img"),
        features=(".vehicle-features li", ".features-section li"),
    ),
    "cargurus.com": _adapter(
        vin=(".vin-number", '[data-cg-ft="vin"]', ".vehicle-vin"),
        year=(".vehicle-year", '[data-cg-ft="year"]', ".listing-year"),
        make=(".vehicle-make", '[data-cg-ft="make"]', ".listing-make"),
        model=(".vehicle-model", '[data-cg-ft="model"]', ".listing-model"),
        trim=(".vehicle-trim", '[data-cg-ft="trim"]', ".listing-trim"),
        price=(".price-section", '[data-cg-ft="price"]', ".vehicle-price"),
        mileage=(".vehicle-mileage", '[data-cg-ft="mileage"]', ".listing-mileage"),
        location=(".dealer-distance", '[data-cg-ft="dealer"]', ".listing-location"),
        description=(".listing-description", ".vehicle-description"),
        images=(".media-viewer img", ".listing-photos img", ".vehicle-images img"),
        features=(".vehicle-features li", ".listing-features li"),
    ),
    "dealer.com": _adapter(
        vin=(".vehicle-vin", ".vin-display", '[data-field="vin"]'),
        year=(".vehicle-year", ".year-display", '[data-field="year"]'),
        make=(".vehicle-make", ".make-display", '[data-field="make"]'),
        model=(".vehicle-model", ".model-display", '[data-field="model"]'),
        trim=(".vehicle-trim", ".trim-display", '[data-field="trim"]'),
        price=(".vehicle-price", ".price-display", '[data-field="price"]'),
        mileage=(".vehicle-mileage", ".mileage-display", '[data-field="mileage"]'),
        location=(".dealer-location", ".location-display", '[data-field="location"]'),
        description=(".vehicle-description", ".description-display"),
        images=(".vehicle-gallery img", ".photo-gallery img", ".vehicle-photos img"),
        features=(".vehicle-features li", ".equipment-list li"),
    ),
})

# (hostname fragment, site id); checked in order
HOST_PATTERNS = (
    ("autotrader", "autotrader.com"),
    ("cars.com", "cars.com"),
    ("cargurus", "cargurus.com"),
    ("dealer", "dealer.com"),
)


def normalize_site(host_or_url: str) -> str:
    """
    Map a hostname (or full URL) to a site identifier.

    Known sites are matched by substring, e.g. ``www.autotrader.com`` and
    ``autotrader.ca`` both become ``autotrader.com``. Anything else comes back
    as the lower-cased hostname.
    """
    if not host_or_url:
        return ""
    host = host_or_url.strip()
    if "://" in host:
        host = urlparse(host).hostname or ""
    host = host.lower()

    for fragment, site in HOST_PATTERNS:
        if fragment in host:
            return site
    return host


def get_adapter(site: str) -> Optional[SiteAdapter]:
    """Return the selector table for a normalized site id, or None."""
    return SITE_ADAPTERS.get(site)


def is_supported(host_or_url: str) -> bool:
    return get_adapter(normalize_site(host_or_url)) is not None
