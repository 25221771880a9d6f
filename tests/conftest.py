import pytest

from tabrunner_core.config import config

from fakes import HEADPHONE_RESULTS, FakeBrowserAdapter, google_results_html


@pytest.fixture
def test_config(tmp_path):
    """Config without pacing delays, writing into tmp_path"""
    return config.from_overrides(
        step_delay_ms=0,
        implied_wait_ms=2000,
        extract_retry_delay_ms=10,
        extract_limit=10,
        downloads_dir=tmp_path / "downloads",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def serp_html():
    return google_results_html(HEADPHONE_RESULTS)


@pytest.fixture
def serp_adapter(serp_html):
    return FakeBrowserAdapter(search_html=serp_html)
