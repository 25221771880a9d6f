"""
URL helpers for search-result extraction
"""

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

# google.com, google.co.uk, google.de ... but not developers.google.com
GOOGLE_HOST_PATTERN = re.compile(r"^(?:www\.)?google(?:\.[a-z]{2,3}){1,2}$")
SEARCH_ENGINE_DOMAINS = ("bing.com", "duckduckgo.com")

# Paths of the search engine itself that never point at a result
INTERNAL_PATHS = ("/search", "/url", "/maps", "/webhp", "/imgres", "/preferences", "/advanced_search")


def _host(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def is_search_engine_host(url: str) -> bool:
    host = _host(url)
    if GOOGLE_HOST_PATTERN.match(host):
        return True
    return any(host == d or host.endswith("." + d) for d in SEARCH_ENGINE_DOMAINS)


def unwrap_redirect_url(url: Optional[str]) -> str:
    """
    Unwrap '/url?q=<target>' style redirect links.

    >>> unwrap_redirect_url("/url?q=https://example.com/page&sa=U")
    'https://example.com/page'
    """
    if not url:
        return ""
    parsed = urlparse(url)
    if parsed.path == "/url" and (not parsed.netloc or is_search_engine_host(url)):
        params = parse_qs(parsed.query)
        target = (params.get("q") or params.get("url") or [""])[0]
        if target:
            return target
    return url


def is_internal_search_url(url: str) -> bool:
    """True for search, redirect, maps and home endpoints of a search engine"""
    if not is_search_engine_host(url):
        return False
    path = urlparse(url).path or "/"
    if path == "/":
        return True
    return any(path == p or path.startswith(p + "/") for p in INTERNAL_PATHS)


def is_search_results_url(url: Optional[str]) -> bool:
    if not url or not is_search_engine_host(url):
        return False
    parsed = urlparse(url)
    if not parsed.path.startswith("/search") and "duckduckgo" not in (parsed.hostname or ""):
        return False
    params = parse_qs(parsed.query)
    return bool(params.get("q"))
