"""
Candidate validity rules for search-result extraction.

Pure functions of (text, url): the same candidate always gets the same
decision, which keeps the strategies testable without a browser.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from .urls import is_internal_search_url

MIN_TEXT_LENGTH = 5
MIN_SINGLE_WORD_LENGTH = 8

LETTER_PATTERN = re.compile(r"[^\W\d_]", re.UNICODE)
# Minified declarations such as "display:flex;" (no space after the colon)
CSS_DECLARATION_PATTERN = re.compile(r"(?:^|[;{\s])[a-z-]{2,}:[^\s;{}][^;{}]*;")
CODE_MARKERS = ("var(", "function(", "function (", "=>", "@media", "!important")
SENTENCE_BREAK = re.compile(r"[.!?…]+\s*")

# Labels and messages that show up inside result containers but are not results
UI_PHRASES = (
    "something went wrong",
    "try again",
    "an error occurred",
    "page not found",
    "upload file",
    "upload image",
    "drop files here",
    "choose file",
    "sign in",
    "log in",
    "skip to main content",
    "accessibility help",
    "accessibility feedback",
    "people also ask",
    "related searches",
    "more results",
    "send feedback",
    "search settings",
    "privacy terms",
    "all images videos",
    "javascript is disabled",
    "enable javascript",
)


def _looks_like_code(text: str) -> bool:
    if ("{" in text or "}" in text) and ":" in text:
        return True
    lowered = text.lower()
    if any(marker in lowered for marker in CODE_MARKERS):
        return True
    return bool(CSS_DECLARATION_PATTERN.search(text))


def _is_ui_phrase(text: str) -> bool:
    # Every sentence must be a whole label; "Sign in with Passkeys explained" is a title
    lowered = " ".join(text.lower().split())
    sentences = [s.strip(" :;,") for s in SENTENCE_BREAK.split(lowered)]
    sentences = [s for s in sentences if s]
    return bool(sentences) and all(s in UI_PHRASES for s in sentences)


def rejection_reason(text: Optional[str], url: Optional[str] = None) -> Optional[str]:
    """Why a candidate is rejected, or None when it is valid"""
    text = (text or "").strip()
    if len(text) < MIN_TEXT_LENGTH:
        return "too short"
    if not LETTER_PATTERN.search(text):
        return "no letters"
    if _looks_like_code(text):
        return "looks like CSS/JS"
    if _is_ui_phrase(text):
        return "UI phrase"
    words = text.split()
    if len(words) < 2 and len(words[0]) < MIN_SINGLE_WORD_LENGTH:
        return "single short word"
    if url is not None:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return "link not absolute http(s)"
        if is_internal_search_url(url):
            return "internal search-engine link"
    return None


def is_valid_candidate(text: Optional[str], url: Optional[str] = None) -> bool:
    """
    Accept a candidate only if every rule holds.

    >>> is_valid_candidate("display:flex; background-color:#fff")
    False
    >>> is_valid_candidate("Top 10 Budget Laptops of 2024", "https://example.com/laptops")
    True
    """
    return rejection_reason(text, url) is None
