#!/usr/bin/env python3
"""
Playwright implementation of the Browser Session Adapter.

Usage:
    async with PlaywrightSessionAdapter.launch(config) as adapter:
        outcome = await adapter.search("budget laptops")
        html = await adapter.page_html()
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional
from urllib.parse import parse_qs, quote_plus, urlparse

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ..config import Config, config as default_config
from ..exceptions import ElementNotFoundError, ExtractionError, TabCreationError
from .adapter import BrowserSessionAdapter, NavigationOutcome

logger = logging.getLogger(__name__)


LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

CLICK_SCRIPT = """
(sel) => {
    let el = null;
    try { el = document.querySelector(sel); } catch (e) { el = null; }
    if (!el) {
        const needle = sel.trim().toLowerCase();
        const candidates = Array.from(document.querySelectorAll('a, button, [role="button"], input[type="submit"]'));
        el = candidates.find(c => (c.innerText || c.value || '').trim().toLowerCase().includes(needle)) || null;
    }
    if (!el) return false;
    el.click();
    return true;
}
"""

TYPE_SCRIPT = """
([sel, txt]) => {
    let el = null;
    try { el = document.querySelector(sel); } catch (e) { el = null; }
    if (!el) return false;
    el.focus();
    el.value = txt;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    return true;
}
"""


class PlaywrightSessionAdapter(BrowserSessionAdapter):
    """Every navigate opens a new page in one shared browser context."""

    def __init__(self, context: BrowserContext, config: Optional[Config] = None):
        self.context = context
        self.config = config or default_config
        self._pages: List[Page] = []

    @classmethod
    @asynccontextmanager
    async def launch(cls, config: Optional[Config] = None) -> AsyncIterator["PlaywrightSessionAdapter"]:
        config = config or default_config
        launch_args: Dict = {"headless": bool(config.headless), "args": list(LAUNCH_ARGS)}
        if config.proxy:
            launch_args["proxy"] = {"server": config.proxy}

        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(**launch_args)
            try:
                context = await browser.new_context(
                    locale=config.locale,
                    extra_http_headers={"Accept-Language": f"{config.locale},en;q=0.8"},
                    accept_downloads=True,
                )
                logger.info(f"Browser launched (headless={config.headless})")
                yield cls(context, config)
            finally:
                await browser.close()

    @property
    def active_page(self) -> Optional[Page]:
        while self._pages and self._pages[-1].is_closed():
            self._pages.pop()
        return self._pages[-1] if self._pages else None

    def _require_page(self) -> Page:
        page = self.active_page
        if page is None:
            raise ElementNotFoundError("No active tab")
        return page

    async def navigate(self, url: str) -> NavigationOutcome:
        try:
            page = await self.context.new_page()
        except PlaywrightError as e:
            raise TabCreationError(f"Could not open tab for {url}: {e}") from e
        self._pages.append(page)

        timed_out = False
        try:
            await page.goto(url, wait_until="load", timeout=self.config.navigation_timeout_ms)
        except PlaywrightTimeoutError:
            timed_out = True
            logger.warning(f"Navigation to {url} timed out after {self.config.navigation_timeout_ms}ms")

        # Client-side redirects land after the load event
        await page.wait_for_timeout(self.config.settle_delay_ms)
        final_url = page.url
        logger.info(f"Navigated to {final_url}")
        return NavigationOutcome(tab=page, final_url=final_url, timed_out=timed_out)

    def search_url(self, query: str) -> str:
        return self.config.search_url_template.format(query=quote_plus(query))

    async def search(self, query: str) -> NavigationOutcome:
        outcome = await self.navigate(self.search_url(query))
        params = parse_qs(urlparse(outcome.final_url).query)
        outcome.query_verified = bool(params.get(self.config.search_query_param))
        if not outcome.query_verified:
            logger.warning(f"Search URL lost its query parameter: {outcome.final_url}")
        return outcome

    async def click(self, selector: str) -> None:
        page = self._require_page()
        clicked = await page.evaluate(CLICK_SCRIPT, selector)
        if not clicked:
            raise ElementNotFoundError(f"No element matches {selector!r}")
        await page.wait_for_timeout(self.config.click_settle_ms)

    async def type_text(self, selector: str, text: str) -> None:
        page = self._require_page()
        typed = await page.evaluate(TYPE_SCRIPT, [selector, text])
        if not typed:
            raise ElementNotFoundError(f"No input matches {selector!r}")

    async def scroll(self) -> None:
        page = self._require_page()
        await page.evaluate("window.scrollBy(0, window.innerHeight);")
        await page.wait_for_timeout(self.config.scroll_settle_ms)

    async def page_html(self) -> str:
        page = self.active_page
        if page is None:
            return ""
        try:
            return await page.content()
        except PlaywrightError as e:
            raise ExtractionError(f"Could not read page content: {e}") from e

    async def current_url(self) -> str:
        page = self.active_page
        return page.url if page is not None else ""
