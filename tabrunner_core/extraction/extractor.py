"""
Search result extractor.

Reads the live DOM of the active tab through the browser adapter, runs the
layered strategies and turns the first validated batch into Records.
"""

import logging
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup

from ..browser.adapter import BrowserSessionAdapter
from ..config import Config, config as default_config
from ..planning.steps import AUTO_SELECTOR_HINT, Record
from .strategies import SEARCH_RESULT_STRATEGIES, Candidate
from .urls import is_search_results_url
from .validators import is_valid_candidate

logger = logging.getLogger(__name__)

RESULT_HINT_KEYWORDS = ("result", "search", "serp")


def hint_indicates_results(selector_hint: Optional[str]) -> bool:
    """True only for an explicit results hint; "auto" defers to the tab URL"""
    hint = (selector_hint or "").lower()
    return any(k in hint for k in RESULT_HINT_KEYWORDS)


def iter_candidates(html: str, base_url: str = "") -> Iterator[Candidate]:
    """Validated candidates of the first strategy that finds any"""
    soup = BeautifulSoup(html or "", "html.parser")
    for strategy in SEARCH_RESULT_STRATEGIES:
        found = [c for c in strategy(soup, base_url) if is_valid_candidate(c.title, c.url)]
        if found:
            logger.debug(f"{strategy.__name__} found {len(found)} candidate(s)")
            yield from found
            return


def parse_records(html: str, base_url: str = "", limit: int = 10) -> List[Record]:
    """Deduplicated, capped records ranked from 1 in page order"""
    records: List[Record] = []
    seen = set()
    for candidate in iter_candidates(html, base_url):
        key = candidate.url.rstrip("/").lower()
        if key in seen:
            continue
        seen.add(key)
        records.append(Record(
            name=candidate.title,
            url=candidate.url,
            description=candidate.description,
            rank=len(records) + 1,
        ))
        if len(records) >= limit:
            break
    return records


class SearchResultExtractor:
    """
    Extract search results from the active tab.

    Usage:
        extractor = SearchResultExtractor()
        records = await extractor.extract(adapter)
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config

    async def is_results_page(self, adapter: BrowserSessionAdapter, selector_hint: Optional[str]) -> bool:
        if hint_indicates_results(selector_hint):
            return True
        return is_search_results_url(await adapter.current_url())

    async def extract(self, adapter: BrowserSessionAdapter, selector_hint: Optional[str] = AUTO_SELECTOR_HINT) -> List[Record]:
        if not await self.is_results_page(adapter, selector_hint):
            logger.info(f"Not a search results page for hint {selector_hint!r}; nothing extracted")
            return []

        records = await self._scan(adapter)
        if not records:
            # Results are often rendered a moment after load
            logger.info(f"No results yet, retrying in {self.config.extract_retry_delay_ms}ms")
            await adapter.wait(self.config.extract_retry_delay_ms)
            records = await self._scan(adapter)

        logger.info(f"Extracted {len(records)} record(s)")
        return records

    async def _scan(self, adapter: BrowserSessionAdapter) -> List[Record]:
        html = await adapter.page_html()
        base_url = await adapter.current_url()
        return parse_records(html, base_url, self.config.extract_limit)
