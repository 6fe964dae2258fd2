"""
Errors raised at the extraction boundary.
"""
from typing import Iterable, Optional


class ExtractionError(Exception):
    """Base class for every failure reported by the extractor."""

    kind = "extraction_error"


class UnsupportedSiteError(ExtractionError):
    """No adapter is registered for the current page's site."""

    kind = "unsupported_site"

    def __init__(self, site: str):
        self.site = site
        super().__init__(f"Unsupported site: {site}")


class IncompleteDataError(ExtractionError):
    """Required fields were not found on the page."""

    kind = "incomplete_data"

    def __init__(self, missing: Iterable[str], url: Optional[str] = None):
        self.missing = list(missing)
        self.url = url
        msg = f"Failed to extract essential vehicle data ({'/'.join(self.missing)})"
        if url:
            msg += f" from {url}"
        super().__init__(msg)


class AlreadyExtractingError(ExtractionError):
    """A second extraction was requested while one is still running."""

    kind = "already_extracting"

    def __init__(self):
        super().__init__("Extraction already in progress")
