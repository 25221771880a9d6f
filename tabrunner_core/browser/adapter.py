"""
Browser Session Adapter - the only seam that talks to a real browser

Executors never touch Playwright (or any other driver) directly; they get a
BrowserSessionAdapter and call its coroutines. Tests pass a fake with canned
HTML instead.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class NavigationOutcome:
    """Where a navigate/search ended up"""
    tab: Any
    final_url: str
    timed_out: bool = False
    # None when no verification was attempted (plain navigate)
    query_verified: Optional[bool] = None

    @property
    def warning(self) -> Optional[str]:
        """Cautionary note for an uncertain navigation, None when it looks fine"""
        if self.timed_out:
            return f"page still loading at {self.final_url}"
        if self.query_verified is False:
            return "search results may still be loading"
        return None


class BrowserSessionAdapter(ABC):
    """Operations the execution controller needs from a browser session"""

    @abstractmethod
    async def navigate(self, url: str) -> NavigationOutcome:
        """Open url in a new tab, wait for load plus settle delay"""

    @abstractmethod
    async def search(self, query: str) -> NavigationOutcome:
        """Navigate to the search engine results page for query"""

    @abstractmethod
    async def click(self, selector: str) -> None:
        """Click an element on the active tab"""

    @abstractmethod
    async def type_text(self, selector: str, text: str) -> None:
        """Set an input's value on the active tab, firing input and change"""

    @abstractmethod
    async def scroll(self) -> None:
        """Scroll the active tab by one viewport"""

    @abstractmethod
    async def page_html(self) -> str:
        """Serialised DOM of the active tab"""

    @abstractmethod
    async def current_url(self) -> str:
        """URL currently loaded in the active tab ('' when no tab is open)"""

    async def wait(self, duration_ms: int) -> None:
        await asyncio.sleep(max(duration_ms, 0) / 1000)
