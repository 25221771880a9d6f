"""
Search-result extraction strategies.

Each strategy is a pure function over a parsed DOM snapshot:

    strategy(root, base_url="") -> List[Candidate]

Strategies try their selectors in order and return the validated candidates
of the first selector that produced any. SEARCH_RESULT_STRATEGIES fixes the
order the extractor runs them in.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .urls import unwrap_redirect_url
from .validators import is_valid_candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """Title/link/snippet found in a result container"""
    title: str
    url: str
    description: str = ""


ATTRIBUTE_SELECTORS = [
    'div[data-ved]',
    'div[data-sokoban-container]',
    'div[data-entityname]',
    'div[jscontroller]',
]

CLASS_SELECTORS = [
    'div.g',
    'div[class*="g "]',
    'div.tF2Cxc',
    'li.b_algo',
    'div.result',
    'article[data-testid="result"]',
]

DESCRIPTION_SELECTORS = [
    '.VwiC3b',
    'span[style*="-webkit-line-clamp"]',
    '.s',
    '.b_caption p',
    '.result__snippet',
]

HEADING_TAGS = ["h3", "h2"]
MIN_SNIPPET_LENGTH = 50
MAX_SNIPPET_LENGTH = 500


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return " ".join(node.get_text(" ", strip=True).split())


def _heading(container: Tag) -> Optional[Tag]:
    for tag in HEADING_TAGS:
        found = container.find(tag)
        if found is not None:
            return found
    return None


def _is_within(node: Tag, container: Tag) -> bool:
    return node is container or any(parent is container for parent in node.parents)


def _link_for(heading: Tag, container: Tag) -> Optional[Tag]:
    anchor = heading.find_parent("a", href=True)
    if anchor is not None and _is_within(anchor, container):
        return anchor
    inner = heading.find("a", href=True)
    if inner is not None:
        return inner
    return container.find("a", href=True)


def _description_for(container: Tag, title: str) -> str:
    for selector in DESCRIPTION_SELECTORS:
        node = container.select_one(selector)
        if node is not None and _text(node):
            return _text(node)
    for span in container.find_all("span"):
        text = _text(span)
        if MIN_SNIPPET_LENGTH < len(text) < MAX_SNIPPET_LENGTH and text != title:
            return text
    return ""


def resolve_url(href: Optional[str], base_url: str = "") -> str:
    url = unwrap_redirect_url(href)
    if url and base_url:
        url = urljoin(base_url, url)
        # a relative /url?q= only becomes recognisable once joined
        url = unwrap_redirect_url(url)
    return url


def candidate_from_container(container: Tag, base_url: str = "") -> Optional[Candidate]:
    heading = _heading(container)
    if heading is None:
        return None
    title = _text(heading)
    link = _link_for(heading, container)
    if not title or link is None:
        return None
    return Candidate(
        title=title,
        url=resolve_url(link.get("href"), base_url),
        description=_description_for(container, title),
    )


def _innermost(containers: List[Tag]) -> List[Tag]:
    """Drop containers that wrap another matched container"""
    ids = {id(c) for c in containers}
    result = []
    for container in containers:
        nested = any(id(d) in ids for d in container.find_all(True))
        if not nested:
            result.append(container)
    return result


def _valid(candidates: Iterable[Optional[Candidate]]) -> List[Candidate]:
    return [c for c in candidates if c is not None and is_valid_candidate(c.title, c.url)]


def _by_selectors(root: BeautifulSoup, selectors: List[str], base_url: str) -> List[Candidate]:
    for selector in selectors:
        containers = [c for c in root.select(selector) if _heading(c) is not None]
        if not containers:
            continue
        found = _valid(candidate_from_container(c, base_url) for c in _innermost(containers))
        if found:
            logger.debug(f"Selector {selector!r} yielded {len(found)} candidate(s)")
            return found
    return []


def attribute_containers(root: BeautifulSoup, base_url: str = "") -> List[Candidate]:
    """Result containers recognised by data-* / jscontroller attributes"""
    return _by_selectors(root, ATTRIBUTE_SELECTORS, base_url)


def class_containers(root: BeautifulSoup, base_url: str = "") -> List[Candidate]:
    """Result containers recognised by well-known class names"""
    return _by_selectors(root, CLASS_SELECTORS, base_url)


def heading_with_link(root: BeautifulSoup, base_url: str = "") -> List[Candidate]:
    """Any heading whose nearest ancestor holding a link is treated as a result"""
    candidates = []
    for tag in HEADING_TAGS:
        for heading in root.find_all(tag):
            container = heading
            while container is not None and container.find("a", href=True) is None:
                container = container.parent if isinstance(container.parent, Tag) else None
            if container is None:
                continue
            title = _text(heading)
            link = _link_for(heading, container)
            if not title or link is None:
                continue
            candidates.append(Candidate(
                title=title,
                url=resolve_url(link.get("href"), base_url),
                description=_description_for(container, title),
            ))
        found = _valid(candidates)
        if found:
            return found
    return []


Strategy = Callable[..., List[Candidate]]

SEARCH_RESULT_STRATEGIES: List[Strategy] = [
    attribute_containers,
    class_containers,
    heading_with_link,
]
