"""
Unit tests for the step error handler.

Tests how step exceptions become progress-trail status lines.
"""

import pytest
from tabrunner_core.error_handler import (
    format_error_for_logging,
    format_step_error,
    format_user_friendly_error,
)
from tabrunner_core.exceptions import (
    ElementNotFoundError,
    NoDataError,
    SpreadsheetError,
    TabCreationError,
)


def test_no_data_error():
    """Output without records reads 'No data to export'."""
    result = format_user_friendly_error(NoDataError("No data to export as csv"))

    assert result["message"] == "No data to export"
    assert result["can_retry"] is False
    assert result["technical"] == "No data to export as csv"


def test_type_mapping_wins_over_message():
    error = ElementNotFoundError("timeout waiting for selector '#buy'")

    assert format_step_error(error) == "Element not found on the page"


def test_format_timeout_error():
    """Test timeout error mapping."""
    error = TimeoutError("Page timeout exceeded")

    result = format_user_friendly_error(error)

    assert result["message"] == "The page took too long to respond"
    assert result["severity"] == "warning"
    assert result["can_retry"] is True


def test_format_unknown_error():
    """Test unknown error fallback."""
    result = format_user_friendly_error(RuntimeError("Some random error"))

    assert result["message"] == "Error"
    assert "run log" in result["suggestion"]
    assert result["technical"] == "Some random error"


@pytest.mark.parametrize("error,expected", [
    (TabCreationError("browser gone"), "Could not open a browser tab"),
    (SpreadsheetError("quota"), "Spreadsheet could not be created"),
    (RuntimeError("net::ERR_NAME_NOT_RESOLVED at https://nope.invalid"), "Could not reach the page"),
])
def test_format_step_error(error, expected):
    assert format_step_error(error) == expected


def test_format_error_for_logging():
    """Logged errors carry context, suggestion and technical detail."""
    formatted = format_error_for_logging(TimeoutError("Page timeout"), context="Navigate to https://example.com")

    assert "Context: Navigate to https://example.com" in formatted
    assert "Suggestion:" in formatted
    assert "Technical: Page timeout" in formatted
