"""
Step Error Handler.

Converts exceptions raised inside a step into the status text shown in the
progress trail, so a failed step reads as a sentence instead of a traceback.
"""

from typing import Dict, Optional
import logging

from .exceptions import (
    DownloadError,
    ElementNotFoundError,
    ExtractionError,
    NoDataError,
    SpreadsheetError,
    TabCreationError,
)

logger = logging.getLogger(__name__)


# Matched against the exception type first, then by substring on the message.
TYPE_MAPPINGS = {
    NoDataError: {
        "message": "No data to export",
        "suggestion": "Make sure extraction steps ran successfully before creating output",
        "severity": "error",
        "can_retry": False,
    },
    TabCreationError: {
        "message": "Could not open a browser tab",
        "suggestion": "Check that the browser is still running and retry the plan",
        "severity": "critical",
        "can_retry": True,
    },
    ElementNotFoundError: {
        "message": "Element not found on the page",
        "suggestion": "The page may have changed; check the selector in the plan step",
        "severity": "warning",
        "can_retry": True,
    },
    ExtractionError: {
        "message": "Could not read the page",
        "suggestion": "The tab may have closed or navigated away; retry the plan",
        "severity": "error",
        "can_retry": True,
    },
    SpreadsheetError: {
        "message": "Spreadsheet could not be created",
        "suggestion": "Check the spreadsheet credentials or export as CSV instead",
        "severity": "error",
        "can_retry": True,
    },
    DownloadError: {
        "message": "Download failed",
        "suggestion": "Check that the downloads directory is writable",
        "severity": "error",
        "can_retry": True,
    },
}

ERROR_MAPPINGS = {
    "timeout": {
        "message": "The page took too long to respond",
        "suggestion": "Check the connection or whether the site is reachable, then retry",
        "severity": "warning",
        "can_retry": True,
    },
    "net::err": {
        "message": "Could not reach the page",
        "suggestion": "Check that the URL is correct and the site is reachable",
        "severity": "error",
        "can_retry": True,
    },
    "connection refused": {
        "message": "Could not connect to the site",
        "suggestion": "Check that the URL is correct and the site is reachable",
        "severity": "error",
        "can_retry": True,
    },
    "target closed": {
        "message": "The browser tab was closed during the step",
        "suggestion": "Run the plan again",
        "severity": "error",
        "can_retry": True,
    },
    "selector": {
        "message": "Element not found on the page",
        "suggestion": "The element may not exist or the page has changed",
        "severity": "warning",
        "can_retry": True,
    },
}


def format_user_friendly_error(
    error: Exception,
    context: str = "general",
    technical_details: Optional[str] = None
) -> Dict:
    """
    Convert a step exception to a user-facing description.

    Returns:
        {"message", "suggestion", "technical", "severity", "can_retry"}
    """
    error_str = str(error)

    for error_type, friendly_error in TYPE_MAPPINGS.items():
        if isinstance(error, error_type):
            result = friendly_error.copy()
            result["technical"] = technical_details or error_str
            return result

    for pattern, friendly_error in ERROR_MAPPINGS.items():
        if pattern in error_str.lower():
            result = friendly_error.copy()
            result["technical"] = technical_details or error_str
            logger.debug(f"Mapped error to user-friendly: {result['message']}")
            return result

    return {
        "message": "Error",
        "suggestion": "Check the run log for details",
        "technical": technical_details or error_str,
        "severity": "error",
        "can_retry": True,
    }


def format_step_error(error: Exception, context: str = "") -> str:
    """Status line for a failed step, e.g. 'No data to export'."""
    friendly = format_user_friendly_error(error, context)
    return friendly["message"]


def format_error_for_logging(error: Exception, context: str = "") -> str:
    """
    Format error for structured logging.

    Args:
        error: The exception
        context: Additional context, usually the step description

    Returns:
        Multi-line string for logs
    """
    friendly = format_user_friendly_error(error, context)

    lines = [
        f"{friendly['message']}",
        f"Suggestion: {friendly['suggestion']}",
        f"Technical: {friendly['technical']}",
    ]

    if context:
        lines.insert(0, f"Context: {context}")

    return "\n".join(lines)
