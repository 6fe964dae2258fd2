"""
DOM access used by the extractors.

Two backends share the same small async interface:

* ``PlaywrightDocument`` wraps a live Playwright page.
* ``HtmlDocument`` wraps a saved HTML string parsed with BeautifulSoup, which is
  what offline runs and the tests use.

Extractors only ever call ``query_all`` and the element readers below, so a
page can be swapped for a snapshot without touching field logic.
"""
import asyncio
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup


class PlaywrightElement:
    """Read-only view over a Playwright ``ElementHandle``."""

    def __init__(self, handle):
        self._handle = handle

    async def text(self) -> str:
        return await self._handle.text_content() or ""

    async def attribute(self, name: str) -> Optional[str]:
        return await self._handle.get_attribute(name)

    async def src(self) -> str:
        # The DOM property is already resolved against the page URL
        return await self._handle.evaluate("(el) => el.src || ''") or ""


class PlaywrightDocument:
    """Document backed by a live Playwright page."""

    def __init__(self, page):
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    async def ready_state(self) -> str:
        return await self.page.evaluate("() => document.readyState")

    async def wait_for_load(self) -> None:
        await self.page.wait_for_load_state("load")

    async def query_all(self, selector: str) -> List[PlaywrightElement]:
        handles = await self.page.query_selector_all(selector)
        return [PlaywrightElement(h) for h in handles]


class HtmlElement:
    """Read-only view over a BeautifulSoup tag."""

    def __init__(self, tag, base_url: str = ""):
        self._tag = tag
        self._base_url = base_url

    async def text(self) -> str:
        return self._tag.get_text()

    async def attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):  # multi-valued attributes such as class
            return " ".join(value)
        return value

    async def src(self) -> str:
        raw = self._tag.get("src")
        if not raw:
            return ""
        return urljoin(self._base_url, raw)


class HtmlDocument:
    """
    Document backed by static HTML.

    ``ready_state`` starts as "complete" unless told otherwise; a document
    created as "loading" resolves its load wait once ``mark_loaded`` is called.
    """

    LAZY_ATTRS = ("data-src", "loading")

    def __init__(self, html: str, url: str = "", ready_state: str = "complete"):
        self.soup = BeautifulSoup(html or "", "html.parser")
        self.url = url
        self._ready_state = ready_state
        self._loaded: Optional[asyncio.Event] = None

    @classmethod
    def from_file(cls, path: str, url: str = "") -> "HtmlDocument":
        with open(path, "r", encoding="utf-8") as f:
            return cls(f.read(), url=url)

    async def ready_state(self) -> str:
        return self._ready_state

    async def wait_for_load(self) -> None:
        if self._ready_state == "complete":
            return
        if self._loaded is None:
            self._loaded = asyncio.Event()
        await self._loaded.wait()

    def mark_loaded(self) -> None:
        self._ready_state = "complete"
        if self._loaded is not None:
            self._loaded.set()

    def settle_images(self) -> None:
        """Drop lazy-loading markers, as a browser does once images arrive."""
        for img in self.soup.select('img[data-src], img[loading="lazy"]'):
            if img.get("data-src") and not img.get("src"):
                img["src"] = img["data-src"]
            for attr in self.LAZY_ATTRS:
                if attr in img.attrs:
                    del img[attr]

    async def query_all(self, selector: str) -> List[HtmlElement]:
        return [HtmlElement(tag, self.url) for tag in self.soup.select(selector)]
