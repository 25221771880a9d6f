"""
Output collaborators: spreadsheet creation and file delivery.

The OutputBuilder only sees the abstract services; which concrete service is
plugged in is decided by whoever builds the runner.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import Config, config as default_config
from ..exceptions import DownloadError, SpreadsheetError

logger = logging.getLogger(__name__)


class SpreadsheetService(ABC):
    @abstractmethod
    async def create_spreadsheet(self, title: str) -> str:
        """Create an empty spreadsheet and return its handle"""

    @abstractmethod
    async def write_rows(self, handle: str, rows: List[List[Any]]) -> bool:
        """Write rows starting at the top-left cell; False or raise on failure"""

    @abstractmethod
    def get_shareable_url(self, handle: str) -> str:
        """URL the user can open"""


class DownloadService(ABC):
    @abstractmethod
    async def trigger_download(self, payload: str, filename: str) -> str:
        """Deliver a text payload as a file; returns where it went"""


class GoogleSheetsService(SpreadsheetService):
    """
    Google Sheets v4 REST client.

    Needs an OAuth access token with the spreadsheets scope; acquiring it is
    the caller's business.
    """

    API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
    SHEET_TITLE = "Sheet1"

    def __init__(self, access_token: Optional[str] = None, config: Optional[Config] = None):
        self.config = config or default_config
        self.access_token = access_token or self.config.sheets_access_token
        if not self.access_token:
            raise SpreadsheetError("No Google Sheets access token configured")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.sheets_timeout)

    async def create_spreadsheet(self, title: str) -> str:
        try:
            return await self._create(title)
        # ValueError covers non-JSON bodies such as a proxy error page
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise SpreadsheetError(f"Failed to create spreadsheet: {e}") from e

    async def _create(self, title: str) -> str:
        body = {
            "properties": {"title": title},
            "sheets": [{"properties": {"title": self.SHEET_TITLE}}],
        }
        async with aiohttp.ClientSession(headers=self._headers(), timeout=self._timeout()) as session:
            async with session.post(self.API_BASE, json=body) as resp:
                data = await resp.json(content_type=None)
                if resp.status >= 400 or not isinstance(data, dict) or "spreadsheetId" not in data:
                    raise SpreadsheetError(f"Failed to create spreadsheet ({resp.status}): {data}")
        spreadsheet_id = data["spreadsheetId"]
        logger.info(f"Created spreadsheet {spreadsheet_id}")
        return spreadsheet_id

    async def write_rows(self, handle: str, rows: List[List[Any]]) -> bool:
        try:
            return await self._write(handle, rows)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise SpreadsheetError(f"Failed to write rows to {handle}: {e}") from e

    async def _write(self, handle: str, rows: List[List[Any]]) -> bool:
        body = {"values": rows}
        update_url = f"{self.API_BASE}/{handle}/values/A1?valueInputOption=RAW"
        append_url = (
            f"{self.API_BASE}/{handle}/values/{self.SHEET_TITLE}!A1:append"
            "?valueInputOption=RAW&insertDataOption=OVERWRITE"
        )
        async with aiohttp.ClientSession(headers=self._headers(), timeout=self._timeout()) as session:
            async with session.put(update_url, json=body) as resp:
                if resp.status < 400:
                    return True
                logger.warning(f"Sheet update failed ({resp.status}), trying append")
            async with session.post(append_url, json=body) as resp:
                if resp.status < 400:
                    return True
                text = await resp.text()
        raise SpreadsheetError(f"Failed to write rows to {handle}: {text[:200]}")

    def get_shareable_url(self, handle: str) -> str:
        return f"https://docs.google.com/spreadsheets/d/{handle}/edit"


class LocalDownloadService(DownloadService):
    """Writes payloads into the downloads directory"""

    def __init__(self, downloads_dir: Optional[Path] = None, config: Optional[Config] = None):
        config = config or default_config
        self.downloads_dir = Path(downloads_dir or config.downloads_dir)

    async def trigger_download(self, payload: str, filename: str) -> str:
        try:
            self.downloads_dir.mkdir(parents=True, exist_ok=True)
            path = self.downloads_dir / Path(filename).name
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise DownloadError(f"Could not write {filename}: {e}") from e
        logger.info(f"Saved {path}")
        return str(path)
