"""
Plan step classification table.

Every free-text plan step is matched against CLASSIFICATION_RULES in order;
the first rule whose pattern matches decides what the step becomes. The
table is the single source of truth for the compiler's priority:

    output/creation > extraction/listing > new tab > navigation with URL >
    search > click > type > scroll > wait > navigation without URL > no-op
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from .steps import AUTO_SELECTOR_HINT, StepKind

logger = logging.getLogger(__name__)


class Marker(Enum):
    """Classifications that do not become executable steps"""
    NEW_TAB = "new_tab"     # satisfied by the next step that opens a tab
    DROP = "drop"           # navigation without a concrete URL
    NOOP = "noop"           # nothing executable, reported with the previous step


URL_PATTERN = re.compile(r"https?://[^\s'\"<>)\]]+", re.IGNORECASE)
BARE_DOMAIN_PATTERN = re.compile(
    r"\b((?:www\.)?[a-z0-9][-a-z0-9]*(?:\.[a-z0-9][-a-z0-9]*)*"
    r"\.(?:com|org|net|io|co|ai|dev|app|edu|gov|info|uk|de|pl|fr|eu)(?:/[^\s'\"<>)]*)?)",
    re.IGNORECASE,
)
QUOTED_PATTERN = re.compile(r"[\"“']([^\"”']+)[\"”']")
CSS_TOKEN_PATTERN = re.compile(r"(?<![\w.])([#.][a-zA-Z][\w-]*|[a-z]+\[[^\]]+\]|(?:div|span|a|li|ul|ol|button|input|select|section|article|h[1-6]|p|td|tr|table|form)[#.][a-zA-Z][\w-]*)")


def find_url(text: str) -> Optional[str]:
    """Return the first URL in text, normalising bare domains to https://"""
    match = URL_PATTERN.search(text or "")
    if match:
        return match.group(0).rstrip(".,;:!?")
    match = BARE_DOMAIN_PATTERN.search(text or "")
    if match:
        return "https://" + match.group(1).rstrip(".,;:!?")
    return None


def _has_url(text: str) -> bool:
    return find_url(text) is not None


def without_urls(text: str) -> str:
    """Text with URL and bare-domain spans blanked out"""
    return BARE_DOMAIN_PATTERN.sub(" ", URL_PATTERN.sub(" ", text or ""))


NAVIGATION_VERBS = re.compile(
    r"\b(?:go\s+to|goto|navigate|open|visit|load|browse|head\s+to|access|launch)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the classification table"""
    name: str
    pattern: re.Pattern
    action: Union[StepKind, Marker]
    # Extra condition on the raw text, evaluated after the pattern matched
    requires: Optional[Callable[[str], bool]] = None
    # Match the pattern against the text with URLs removed ("/list" is a path, not a verb)
    ignore_urls: bool = False

    def matches(self, text: str) -> bool:
        if not self.pattern.search(without_urls(text) if self.ignore_urls else text):
            return False
        if self.requires is not None and not self.requires(text):
            return False
        return True


CLASSIFICATION_RULES: List[ClassificationRule] = [
    ClassificationRule(
        name="output",
        pattern=re.compile(
            r"\b(?:create|make|generate|export|build|produce|save|write|put|add|download|prepare|"
            r"compile\s+(?:into|to|as))\b.*\b(?:csv|spreadsheet|sheets?|table|excel|file|report|"
            r"document|output)\b",
            re.IGNORECASE,
        ),
        action=StepKind.PRODUCE_OUTPUT,
        ignore_urls=True,
    ),
    ClassificationRule(
        name="extract",
        pattern=re.compile(
            r"\b(?:extract|scrape|collect|gather|list|compile|pull\s+out|capture|note\s+down|grab)\b"
            r"|\bget\s+(?:the\s+)?(?:top\s+|first\s+)?(?:\d+\s+)?"
            r"(?:results?|names?|titles?|links?|urls?|data|details)\b",
            re.IGNORECASE,
        ),
        action=StepKind.EXTRACT,
        ignore_urls=True,
    ),
    ClassificationRule(
        name="new_tab",
        pattern=re.compile(r"\bnew\s+(?:browser\s+)?tab\b", re.IGNORECASE),
        action=Marker.NEW_TAB,
        requires=lambda text: not _has_url(text),
    ),
    ClassificationRule(
        name="navigate",
        pattern=NAVIGATION_VERBS,
        action=StepKind.NAVIGATE,
        requires=_has_url,
    ),
    ClassificationRule(
        name="navigate_bare_url",
        pattern=re.compile(r"^\s*(?:https?://|www\.)", re.IGNORECASE),
        action=StepKind.NAVIGATE,
    ),
    ClassificationRule(
        name="search",
        # "the search box" / "google search button" name a page element, and
        # "the search results" names the page a search produced; neither is a search
        pattern=re.compile(
            r"\b(?:search|google|look\s+up|lookup|query|find|bing)\b"
            r"(?!\s+(?:search\s+)?(?:box|field|bar|input|button|icon|results?|page|engine)\b)",
            re.IGNORECASE,
        ),
        action=StepKind.SEARCH,
        ignore_urls=True,
    ),
    ClassificationRule(
        name="click",
        pattern=re.compile(r"\b(?:click|press|tap)\b", re.IGNORECASE),
        action=StepKind.CLICK,
    ),
    ClassificationRule(
        name="type",
        pattern=re.compile(r"\b(?:type|enter|fill\s+in|fill|input)\b", re.IGNORECASE),
        action=StepKind.TYPE,
    ),
    ClassificationRule(
        name="scroll",
        pattern=re.compile(r"\bscroll", re.IGNORECASE),
        action=StepKind.SCROLL,
    ),
    ClassificationRule(
        name="wait",
        pattern=re.compile(r"\b(?:wait|pause|sleep)\b", re.IGNORECASE),
        action=StepKind.WAIT,
    ),
    ClassificationRule(
        name="navigate_without_url",
        pattern=NAVIGATION_VERBS,
        action=Marker.DROP,
    ),
]

DEFAULT_RULE = ClassificationRule(name="noop", pattern=re.compile(r""), action=Marker.NOOP)


def classify(text: str) -> ClassificationRule:
    """Return the first rule matching a plan step description"""
    for rule in CLASSIFICATION_RULES:
        if rule.matches(text or ""):
            logger.debug(f"Classified {text!r} as {rule.name}")
            return rule
    return DEFAULT_RULE


# --- Parameter extraction -------------------------------------------------

SEARCH_LEAD_IN = re.compile(
    r"^.*?\b(?:search(?:\s+(?:google|bing|the\s+web|online|on\s+google))?(?:\s+for)?|"
    r"google(?:\s+for)?|look\s+up|lookup|query(?:\s+for)?|find)\s+",
    re.IGNORECASE,
)
SEARCH_TRAIL = re.compile(
    r"\s+(?:on|using|via|with|in)\s+(?:google|bing|the\s+web|a\s+search\s+engine)\s*$",
    re.IGNORECASE,
)
DURATION_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)\s*(ms|milliseconds?|s|secs?|seconds?|m|mins?|minutes?)\b",
    re.IGNORECASE,
)
TYPE_TARGET_PATTERN = re.compile(
    r"\b(?:into|in)\s+(?:the\s+)?(.+?)(?:\s+(?:field|box|input|bar))?\s*$",
    re.IGNORECASE,
)
CLICK_TARGET_PATTERN = re.compile(
    r"\b(?:click|press|tap)\s+(?:on\s+)?(?:the\s+)?(.+?)(?:\s+(?:button|link|tab))?\s*$",
    re.IGNORECASE,
)
DEFAULT_INPUT_SELECTOR = 'input[type="search"], input[type="text"], textarea'
DEFAULT_WAIT_MS = 1000


def _quoted(text: str) -> Optional[str]:
    match = QUOTED_PATTERN.search(text or "")
    return match.group(1).strip() if match else None


def _css_token(text: str) -> Optional[str]:
    match = CSS_TOKEN_PATTERN.search(text or "")
    return match.group(1) if match else None


def extract_search_query(text: str) -> str:
    quoted = _quoted(text)
    if quoted:
        return quoted
    query = SEARCH_LEAD_IN.sub("", text.strip(), count=1)
    query = SEARCH_TRAIL.sub("", query)
    query = query.strip().rstrip(".!?").strip()
    return query or text.strip()


def extract_click_target(text: str) -> str:
    css = _css_token(text)
    if css:
        return css
    quoted = _quoted(text)
    if quoted:
        return quoted
    match = CLICK_TARGET_PATTERN.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip().rstrip(".")
    return text.strip()


def extract_type_params(text: str):
    """Return (selector, text_to_type)"""
    value = _quoted(text) or ""
    remainder = QUOTED_PATTERN.sub("", text)
    selector = _css_token(remainder)
    if not selector:
        match = TYPE_TARGET_PATTERN.search(remainder)
        if match and match.group(1).strip() and "search" in match.group(1).lower():
            selector = 'input[type="search"], input[name="q"], textarea[name="q"]'
    return selector or DEFAULT_INPUT_SELECTOR, value


def extract_duration_ms(text: str) -> int:
    match = DURATION_PATTERN.search(text or "")
    if not match:
        return DEFAULT_WAIT_MS
    amount = float(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith("ms") or unit.startswith("milli"):
        return int(amount)
    if unit.startswith("m"):
        return int(amount * 60_000)
    return int(amount * 1000)


def extract_selector_hint(text: str) -> str:
    css = _css_token(text)
    if css:
        return css
    return AUTO_SELECTOR_HINT
