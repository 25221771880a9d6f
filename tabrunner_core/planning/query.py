"""
Search query derivation for discovery-style requests.

The query is cut out of the user's own words instead of a paraphrase, so
counts, prices and qualifiers ("top 7", "under $500", "budget") survive
verbatim. Only the imperative lead-in and trailing delivery/source clauses
are removed.
"""

import re

DISCOVERY_PATTERN = re.compile(
    r"\b(?:find|discover|top|best|search\s+for|look\s+(?:for|up)|recommend\w*|list\s+of|compare)\b",
    re.IGNORECASE,
)

LEADING_POLITENESS = re.compile(
    r"^\s*(?:(?:please|kindly|can\s+you|could\s+you|would\s+you|i\s+want\s+you\s+to|"
    r"i\s+need\s+you\s+to|help\s+me(?:\s+to)?|i\s+want\s+to|i\s+need\s+to)\s*,?\s+)+",
    re.IGNORECASE,
)

LEADING_VERBS = re.compile(
    r"^\s*(?:(?:find|discover|search(?:\s+(?:google|the\s+web|online))?(?:\s+for)?|"
    r"look\s+(?:up|for)|show|get|give|list|tell|identify|research|compile|gather|"
    r"collect|fetch|extract|locate|recommend|suggest)\s+(?:me\s+|us\s+)?)+",
    re.IGNORECASE,
)

TRAILING_QUALIFIERS = [
    # "... and put them in a spreadsheet"
    re.compile(
        r"\s*[,;]?\s*\b(?:and|then)\s+(?:put|save|export|create|make|add|write|store|compile|"
        r"organi[sz]e|download|list|show)\b.*$",
        re.IGNORECASE,
    ),
    # "... on a reliable website", "... from trusted sources"
    re.compile(
        r"(?:^|\s+)(?:on|from|using|via|at|through)\s+(?:(?:a|an|the|some|any)\s+)?"
        r"(?:(?:reliable|trusted|reputable|credible|good|popular|trustworthy|official)\s+)*"
        r"(?:websites?|sites?|sources?|web|internet|online|google|search\s+engines?)\b.*$",
        re.IGNORECASE,
    ),
    # "... in a csv", "... as a google sheet"
    re.compile(
        r"(?:^|\s+)(?:in|into|as|to)\s+(?:(?:a|an|the)\s+)?"
        r"(?:csv|spreadsheet|google\s+sheets?|sheet|table|excel|file)\b.*$",
        re.IGNORECASE,
    ),
]

TRAILING_PUNCTUATION = re.compile(r"[\s.!?,;:]+$")


def is_discovery_intent(text: str) -> bool:
    """True when the request reads as an open-ended find/top/best task."""
    return bool(text and DISCOVERY_PATTERN.search(text))


def derive_search_query(original: str) -> str:
    """
    Derive a search query from the original user request.

    Example:
        >>> derive_search_query("find the top 7 budget laptops under $500 on a reliable website")
        'the top 7 budget laptops under $500'

    Falls back to the unmodified (trimmed) text when stripping leaves nothing.
    """
    text = (original or "").strip()
    if not text:
        return text

    query = LEADING_POLITENESS.sub("", text)
    query = LEADING_VERBS.sub("", query)
    for pattern in TRAILING_QUALIFIERS:
        query = pattern.sub("", query)
    query = TRAILING_PUNCTUATION.sub("", query)
    query = query.strip().strip("\"'").strip()

    if not query:
        return text
    return query
