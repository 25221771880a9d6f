import pytest

from tabrunner_core.planning.query import derive_search_query, is_discovery_intent


@pytest.mark.parametrize("original,expected", [
    ("find the top 7 budget laptops under $500 on a reliable website", "the top 7 budget laptops under $500"),
    ("Please find the best mechanical keyboards and put them in a spreadsheet", "the best mechanical keyboards"),
    ("Can you look up cheap flights to Lisbon in a csv", "cheap flights to Lisbon"),
    ("search for 4k monitors under 300 euro.", "4k monitors under 300 euro"),
    ("best budget phones 2024", "best budget phones 2024"),
])
def test_derive_keeps_qualifiers(original, expected):
    assert derive_search_query(original) == expected


def test_derive_falls_back_to_original_when_nothing_left():
    assert derive_search_query("find on a reliable website") == "find on a reliable website"


def test_derive_trims_whitespace():
    assert derive_search_query("   ") == ""
    assert derive_search_query(None) == ""


@pytest.mark.parametrize("text,expected", [
    ("find the top 7 budget laptops", True),
    ("What are the best headphones?", True),
    ("compare vpn providers", True),
    ("open my calendar", False),
    ("", False),
])
def test_is_discovery_intent(text, expected):
    assert is_discovery_intent(text) is expected
