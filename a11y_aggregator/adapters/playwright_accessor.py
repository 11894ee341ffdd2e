from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional
import logging

from playwright.async_api import ElementHandle, Page, async_playwright

logger = logging.getLogger(__name__)


class PlaywrightElementAccessor:
    """ElementAccessor over an open Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    async def resolve(self, selector: str) -> Optional[ElementHandle]:
        # selectors starting with "/" are treated as XPath by Playwright
        return await self.page.query_selector(selector)

    def viewport(self) -> Optional[Dict[str, int]]:
        return self.page.viewport_size


@asynccontextmanager
async def open_page_accessor(
    url: str,
    viewport: Optional[Dict[str, int]] = None,
    timeout_ms: int = 60000,
) -> AsyncIterator[PlaywrightElementAccessor]:
    """Launch headless Chromium, load url and yield an accessor for it."""
    viewport = viewport or {"width": 1280, "height": 720}
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        context = None
        try:
            context = await browser.new_context(viewport=viewport)
            page = await context.new_page()
            logger.info(f"Loading {url} at {viewport['width']}x{viewport['height']}")
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            yield PlaywrightElementAccessor(page)
        finally:
            if context is not None:
                await context.close()
            await browser.close()
