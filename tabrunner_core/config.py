#!/usr/bin/env python3
from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Config:
    """Application configuration"""
    # Browser
    headless: bool = os.getenv("TABRUNNER_HEADLESS", "true").lower() == "true"
    locale: str = os.getenv("TABRUNNER_LOCALE", os.getenv("LOCALE", "en-US"))
    proxy: Optional[str] = (os.getenv("TABRUNNER_PROXY") or os.getenv("HTTPS_PROXY") or os.getenv("HTTP_PROXY") or None)
    navigation_timeout_ms: int = int(os.getenv("TABRUNNER_NAVIGATION_TIMEOUT_MS", "15000"))
    settle_delay_ms: int = int(os.getenv("TABRUNNER_SETTLE_DELAY_MS", "1500"))
    scroll_settle_ms: int = int(os.getenv("TABRUNNER_SCROLL_SETTLE_MS", "1000"))
    click_settle_ms: int = int(os.getenv("TABRUNNER_CLICK_SETTLE_MS", "1000"))
    search_url_template: str = os.getenv("TABRUNNER_SEARCH_URL", "https://www.google.com/search?q={query}")
    search_query_param: str = os.getenv("TABRUNNER_SEARCH_QUERY_PARAM", "q")

    # Execution
    step_delay_ms: int = int(os.getenv("TABRUNNER_STEP_DELAY_MS", "500"))
    implied_wait_ms: int = int(os.getenv("TABRUNNER_IMPLIED_WAIT_MS", "2000"))

    # Extraction
    extract_limit: int = int(os.getenv("TABRUNNER_EXTRACT_LIMIT", "10"))
    extract_retry_delay_ms: int = int(os.getenv("TABRUNNER_EXTRACT_RETRY_DELAY_MS", "1500"))

    # Output
    downloads_dir: Path = Path(os.getenv("TABRUNNER_DOWNLOADS_DIR", "./downloads"))
    export_filename_prefix: str = os.getenv("TABRUNNER_EXPORT_PREFIX", "extracted-data")
    sheets_access_token: Optional[str] = os.getenv("TABRUNNER_SHEETS_TOKEN") or None
    sheets_timeout: int = int(os.getenv("TABRUNNER_SHEETS_TIMEOUT", "30"))

    # Logging
    enable_debug: bool = os.getenv("TABRUNNER_DEBUG", "false").lower() == "true"
    log_dir: Path = Path(os.getenv("TABRUNNER_LOG_DIR", "./logs"))
    run_log_enabled: bool = os.getenv("TABRUNNER_RUN_LOG", "false").lower() in ["true", "1", "yes"]

    def from_overrides(self, **overrides) -> "Config":
        """Copy of this config with selected fields replaced (used by tests and the CLI)."""
        return replace(self, **overrides)

config = Config()
