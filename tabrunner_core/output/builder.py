"""
Output Builder - turn collected records into something the user can open
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from ..config import Config, config as default_config
from ..data_export import DataExporter, render_csv
from ..exceptions import NoDataError, SpreadsheetError
from ..planning.steps import OutputFormat, Record
from .services import DownloadService, SpreadsheetService

logger = logging.getLogger(__name__)


@dataclass
class OutputArtifact:
    """What the output stage produced"""
    output_format: OutputFormat
    status_message: str
    payload: Any = None
    url: Optional[str] = None
    download_path: Optional[str] = None
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "format": self.output_format.value,
            "status_message": self.status_message,
        }
        if self.payload is not None:
            data["payload"] = self.payload
        if self.url:
            data["url"] = self.url
        if self.download_path:
            data["download_path"] = self.download_path
        if self.warning:
            data["warning"] = self.warning
        return data


class OutputBuilder:
    """
    Build output artifacts from records.

    Usage:
        builder = OutputBuilder(LocalDownloadService(), GoogleSheetsService(token))
        artifact = await builder.build("sheet", records)
    """

    def __init__(
        self,
        download_service: DownloadService,
        spreadsheet_service: Optional[SpreadsheetService] = None,
        config: Optional[Config] = None,
    ):
        self.download_service = download_service
        self.spreadsheet_service = spreadsheet_service
        self.config = config or default_config

    async def build(self, output_format: Union[str, OutputFormat], records: Sequence[Record]) -> OutputArtifact:
        """
        Raises:
            NoDataError: records is empty (for every format)
        """
        fmt = OutputFormat.parse(output_format)
        if not records:
            raise NoDataError(f"No data to export as {fmt.value}")

        rows = [r.to_row() if isinstance(r, Record) else dict(r) for r in records]
        logger.info(f"Building {fmt.value} output from {len(rows)} record(s)")

        if fmt is OutputFormat.CSV:
            return await self._build_csv(rows)
        if fmt is OutputFormat.SHEET:
            return await self._build_sheet(rows)
        if fmt is OutputFormat.TEXT:
            return OutputArtifact(
                output_format=fmt,
                status_message=f"Listed {len(rows)} items",
                payload=DataExporter(rows).to_text(),
            )
        return OutputArtifact(
            output_format=OutputFormat.TABLE,
            status_message=f"Table with {len(rows)} rows",
            payload=rows,
        )

    def csv_filename(self) -> str:
        return f"{self.config.export_filename_prefix}-{int(time.time() * 1000)}.csv"

    async def _build_csv(self, rows: List[Dict[str, Any]]) -> OutputArtifact:
        payload = render_csv(rows)
        path = await self.download_service.trigger_download(payload, self.csv_filename())
        return OutputArtifact(
            output_format=OutputFormat.CSV,
            status_message=f"CSV with {len(rows)} rows downloaded",
            payload=payload,
            download_path=path,
        )

    async def _build_sheet(self, rows: List[Dict[str, Any]]) -> OutputArtifact:
        if self.spreadsheet_service is None:
            logger.info("No spreadsheet service configured, exporting CSV instead")
            artifact = await self._build_csv(rows)
            artifact.warning = "Spreadsheet unavailable, exported CSV instead"
            return artifact

        title = f"Extracted Data {datetime.now().strftime('%Y-%m-%d %H:%M')}"
        try:
            handle = await self.spreadsheet_service.create_spreadsheet(title)
        except SpreadsheetError as e:
            logger.warning(f"Spreadsheet creation failed: {e}")
            artifact = await self._build_csv(rows)
            artifact.warning = "Spreadsheet could not be created, exported CSV instead"
            return artifact

        url = self.spreadsheet_service.get_shareable_url(handle)
        columns = list(rows[0].keys())
        values = [columns] + [[row.get(col, "") for col in columns] for row in rows]

        try:
            written = await self.spreadsheet_service.write_rows(handle, values)
        except Exception as e:
            # The sheet already exists, so any write failure still hands over its URL
            logger.warning(f"Writing rows to {handle} failed: {e}")
            written = False

        if written:
            return OutputArtifact(
                output_format=OutputFormat.SHEET,
                status_message=f"Spreadsheet created with {len(rows)} rows",
                url=url,
            )

        # The sheet exists but is empty; hand over both the sheet and the data
        path = (await self._build_csv(rows)).download_path
        return OutputArtifact(
            output_format=OutputFormat.SHEET,
            status_message="Spreadsheet created, data downloaded as CSV",
            url=url,
            download_path=path,
            warning="Rows could not be written to the spreadsheet",
        )
