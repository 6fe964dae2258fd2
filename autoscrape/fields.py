"""
Field extractors and the text parsers behind them.

Extractors never raise for missing data: a field that cannot be found or
parsed resolves to None (or an empty collection). Deciding whether a record
is usable is left to the orchestrator.
"""
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

MAX_IMAGES = 10
MIN_YEAR = 1900

VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$", re.I)
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
PRICE_RE = re.compile(r"\$?\s?(\d[\d,]*(?:\.\d+)?)")
MILEAGE_RE = re.compile(r"(\d[\d,]*)\s*(?:miles|mi|km)\b", re.I)
IMAGE_ATTRS = ("data-src", "data-original")

Validator = Callable[[str], bool]


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def is_valid_vin(text: Optional[str]) -> bool:
    """17 characters, letters I, O and Q excluded, case-insensitive."""
    if not text:
        return False
    return bool(VIN_RE.match(re.sub(r"\s", "", text)))


def parse_year(text: Optional[str], max_year: Optional[int] = None) -> Optional[int]:
    """First 19xx/20xx token within [1900, next year]."""
    if not text:
        return None
    if max_year is None:
        max_year = datetime.now(timezone.utc).year + 1
    for m in YEAR_RE.finditer(text):
        year = int(m.group(0))
        if MIN_YEAR <= year <= max_year:
            return year
    return None


def parse_price(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a currency-formatted amount.

    "$24,500" -> 24500, "Price: $1,000,000 OBO" -> 1000000.
    """
    if not text:
        return None
    m = PRICE_RE.search(text.replace("\xa0", " "))
    if not m:
        return None
    try:
        return Decimal(m.group(1).replace(",", ""))
    except InvalidOperation:
        return None


def parse_mileage(text: Optional[str]) -> Optional[int]:
    """A number directly followed by mi/miles/km, e.g. "45,230 miles"."""
    if not text:
        return None
    m = MILEAGE_RE.search(text)
    if not m:
        return None
    try:
        return int(m.group(1).replace(",", ""))
    except ValueError:
        return None


def dedupe(values: Iterable[str]) -> List[str]:
    """Remove duplicates, keeping first-seen order."""
    seen, out = set(), []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def is_usable_image_url(url: Optional[str]) -> bool:
    return bool(url) and url.startswith("http") and "placeholder" not in url


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

async def _iter_elements(document, selectors: Iterable[str]):
    for selector in selectors:
        for element in await document.query_all(selector):
            yield element


async def extract_text(document, selectors: Iterable[str], validator: Optional[Validator] = None) -> Optional[str]:
    """First non-empty trimmed text, in selector order, that passes ``validator``."""
    async for element in _iter_elements(document, selectors):
        text = (await element.text()).strip()
        if text and (validator is None or validator(text)):
            return text
    return None


async def extract_vin(document, selectors: Iterable[str]) -> Optional[str]:
    text = await extract_text(document, selectors, validator=is_valid_vin)
    if text is None:
        return None
    return re.sub(r"\s", "", text).upper()


async def extract_year(document, selectors: Iterable[str]) -> Optional[int]:
    return parse_year(await extract_text(document, selectors))


async def extract_price(document, selectors: Iterable[str]) -> Optional[Decimal]:
    return parse_price(await extract_text(document, selectors))


async def extract_mileage(document, selectors: Iterable[str]) -> Optional[int]:
    return parse_mileage(await extract_text(document, selectors))


async def extract_images(document, selectors: Iterable[str], limit: int = MAX_IMAGES) -> Tuple[str, ...]:
    """Absolute image URLs from src (or data-src / data-original), deduplicated and capped."""
    urls: List[str] = []
    async for element in _iter_elements(document, selectors):
        src = await element.src()
        if not src:
            for attr in IMAGE_ATTRS:
                src = await element.attribute(attr)
                if src:
                    break
        if is_usable_image_url(src):
            urls.append(src)
    return tuple(dedupe(urls)[:limit])


async def extract_features(document, selectors: Iterable[str]) -> FrozenSet[str]:
    """Short text items (3 to 99 characters) from feature lists."""
    features = set()
    async for element in _iter_elements(document, selectors):
        text = (await element.text()).strip()
        if 2 < len(text) < 100:
            features.add(text)
    return frozenset(features)
