"""
Page readiness: wait for the document to load and for lazy images to settle.
"""
import asyncio
import logging

logger = logging.getLogger(__name__)

LAZY_IMAGE_SELECTOR = 'img[data-src], img[loading="lazy"]'
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_LAZY_TIMEOUT = 5.0


async def wait_for_page_load(document) -> None:
    """Return once the document reports a complete load."""
    if await document.ready_state() == "complete":
        return
    logger.debug(f"Waiting for page load: {document.url}")
    await document.wait_for_load()


async def _poll_until_no_lazy_images(document, interval: float) -> None:
    while await document.query_all(LAZY_IMAGE_SELECTOR):
        await asyncio.sleep(interval)


async def wait_for_lazy_images(
    document,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_LAZY_TIMEOUT,
) -> bool:
    """
    Wait until no lazily-loaded images remain on the page.

    Returns True when the page settled, False when ``timeout`` ran out first.
    A timeout is not an error: extraction proceeds with whatever images are
    present at that point.
    """
    try:
        await asyncio.wait_for(_poll_until_no_lazy_images(document, interval), timeout)
        return True
    except asyncio.TimeoutError:
        logger.debug(f"Lazy images still pending after {timeout:.1f}s on {document.url}")
        return False


class ReadinessGate:
    """Load wait followed by the lazy-image settle wait."""

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_LAZY_TIMEOUT,
        wait_for_images: bool = True,
    ):
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.wait_for_images = wait_for_images

    async def wait(self, document) -> None:
        await wait_for_page_load(document)
        if self.wait_for_images:
            await wait_for_lazy_images(document, self.poll_interval, self.timeout)
