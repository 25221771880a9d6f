"""
Test doubles for the browser, spreadsheet and download collaborators.
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote_plus

from tabrunner_core.browser.adapter import BrowserSessionAdapter, NavigationOutcome
from tabrunner_core.exceptions import (
    DownloadError,
    ElementNotFoundError,
    SpreadsheetError,
    TabCreationError,
)
from tabrunner_core.output.services import DownloadService, SpreadsheetService

SEARCH_URL = "https://www.google.com/search?q={query}"


def google_results_html(results: Sequence[Tuple[str, str, str]], noise: bool = True) -> str:
    """Minimal Google-like results page: one data-ved container per result."""
    blocks = []
    for i, (title, url, description) in enumerate(results):
        blocks.append(
            f'<div class="g"><div data-ved="r{i}">'
            f'<a href="{url}"><h3>{title}</h3></a>'
            f'<div class="VwiC3b"><span>{description}</span></div>'
            f'</div></div>'
        )
    if noise:
        blocks.append('<div data-ved="n1"><a href="/search?q=related+things"><h3>People also ask</h3></a></div>')
        blocks.append('<div data-ved="n2"><a href="https://www.google.com/maps?q=shop"><h3>Maps results nearby</h3></a></div>')
    return (
        "<html><head><style>.g{display:flex;}</style></head><body>"
        '<div id="search"><div id="rso">' + "".join(blocks) + "</div></div>"
        "</body></html>"
    )


HEADPHONE_RESULTS = [
    ("Best Cheap Noise-Cancelling Headphones 2024", "https://www.example.com/cheap-anc",
     "We tested dozens of budget headphones to find the best noise cancelling pairs under $100."),
    ("Budget ANC Headphones Reviewed", "/url?q=https://reviews.example.org/anc&sa=U",
     "Our reviewers compare affordable active noise cancelling headphones side by side."),
    ("Top 5 Affordable Noise Cancelling Headphones", "https://shop.example.net/top-5",
     'A "quick" guide to headphones that block noise without breaking the bank.'),
]


class FakeBrowserAdapter(BrowserSessionAdapter):
    """
    Serves canned HTML instead of driving a browser.

    pages maps URL -> HTML for navigate(); search() serves search_html.
    html_sequence, when given, is consumed one entry per page_html() call
    (the last entry repeats), to simulate results appearing late.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        search_html: str = "",
        html_sequence: Optional[List[str]] = None,
        missing_selectors: Sequence[str] = (),
        fail_tab_creation: bool = False,
        drop_query: bool = False,
        timeout_urls: Sequence[str] = (),
        gate: Optional[asyncio.Event] = None,
    ):
        self.pages = pages or {}
        self.search_html = search_html
        self.html_sequence = list(html_sequence) if html_sequence else None
        self.missing_selectors = set(missing_selectors)
        self.fail_tab_creation = fail_tab_creation
        self.drop_query = drop_query
        self.timeout_urls = set(timeout_urls)
        self.gate = gate
        self.calls: List[Tuple] = []
        self.tabs = 0
        self._url = ""
        self._html = ""

    async def _open(self, url: str, html: str) -> NavigationOutcome:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_tab_creation:
            raise TabCreationError(f"Could not open tab for {url}")
        self.tabs += 1
        self._url = url
        self._html = html
        return NavigationOutcome(tab=self.tabs, final_url=url, timed_out=url in self.timeout_urls)

    async def navigate(self, url: str) -> NavigationOutcome:
        self.calls.append(("navigate", url))
        return await self._open(url, self.pages.get(url, "<html><body></body></html>"))

    async def search(self, query: str) -> NavigationOutcome:
        self.calls.append(("search", query))
        url = SEARCH_URL.format(query=quote_plus(query))
        if self.drop_query:
            url = "https://www.google.com/"
        outcome = await self._open(url, self.search_html)
        outcome.query_verified = not self.drop_query
        return outcome

    async def click(self, selector: str) -> None:
        self.calls.append(("click", selector))
        if selector in self.missing_selectors:
            raise ElementNotFoundError(f"No element matches {selector!r}")

    async def type_text(self, selector: str, text: str) -> None:
        self.calls.append(("type", selector, text))
        if selector in self.missing_selectors:
            raise ElementNotFoundError(f"No input matches {selector!r}")

    async def scroll(self) -> None:
        self.calls.append(("scroll",))

    async def wait(self, duration_ms: int) -> None:
        self.calls.append(("wait", duration_ms))
        await asyncio.sleep(0)

    async def page_html(self) -> str:
        self.calls.append(("page_html",))
        if self.html_sequence:
            if len(self.html_sequence) > 1:
                return self.html_sequence.pop(0)
            return self.html_sequence[0]
        return self._html

    async def current_url(self) -> str:
        return self._url

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


class MemoryDownloadService(DownloadService):
    def __init__(self, fail: bool = False):
        self.downloads: List[Tuple[str, str]] = []
        self.fail = fail

    async def trigger_download(self, payload: str, filename: str) -> str:
        if self.fail:
            raise DownloadError("disk full")
        self.downloads.append((filename, payload))
        return f"memory://{filename}"


class FakeSpreadsheetService(SpreadsheetService):
    def __init__(self, fail_create: bool = False, fail_write: bool = False, write_error: Optional[Exception] = None):
        self.fail_create = fail_create
        self.fail_write = fail_write
        self.write_error = write_error
        self.created: List[str] = []
        self.written: Dict[str, List[List]] = {}

    async def create_spreadsheet(self, title: str) -> str:
        if self.fail_create:
            raise SpreadsheetError("quota exceeded")
        handle = f"sheet-{len(self.created) + 1}"
        self.created.append(handle)
        return handle

    async def write_rows(self, handle: str, rows) -> bool:
        if self.write_error is not None:
            raise self.write_error
        if self.fail_write:
            raise SpreadsheetError("permission denied")
        self.written[handle] = [list(r) for r in rows]
        return True

    def get_shareable_url(self, handle: str) -> str:
        return f"https://docs.google.com/spreadsheets/d/{handle}/edit"
