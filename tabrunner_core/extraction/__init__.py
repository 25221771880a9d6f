"""
Extraction module - search result heuristics
"""

from .extractor import SearchResultExtractor, parse_records
from .strategies import Candidate, SEARCH_RESULT_STRATEGIES
from .validators import is_valid_candidate, rejection_reason
from .urls import unwrap_redirect_url, is_internal_search_url, is_search_results_url

__all__ = [
    'SearchResultExtractor',
    'parse_records',
    'Candidate',
    'SEARCH_RESULT_STRATEGIES',
    'is_valid_candidate',
    'rejection_reason',
    'unwrap_redirect_url',
    'is_internal_search_url',
    'is_search_results_url',
]
