"""
Tests for the exporter, the output builder and the delivery services.
"""

import csv
import io

import pytest
from aiohttp import web

from tabrunner_core.data_export import DataExporter, render_csv
from tabrunner_core.exceptions import DownloadError, NoDataError, SpreadsheetError
from tabrunner_core.output import GoogleSheetsService, LocalDownloadService, OutputBuilder
from tabrunner_core.planning import OutputFormat, Record

from fakes import FakeSpreadsheetService, MemoryDownloadService


@pytest.fixture
def records():
    return [
        Record("Best Cheap Headphones", "https://www.example.com/cheap", 'A "quick" guide, with commas', 1),
        Record("Budget ANC Reviewed", "https://reviews.example.org/anc", "", 2),
    ]


class TestDataExporter:

    def test_csv_quotes_every_field(self, records):
        payload = DataExporter([r.to_row() for r in records]).to_csv()
        lines = payload.splitlines()

        assert lines[0] == '"Name","URL","Description","Rank"'
        assert lines[1] == '"Best Cheap Headphones","https://www.example.com/cheap","A ""quick"" guide, with commas","1"'
        assert lines[2].endswith('"","2"')

    def test_csv_parses_back(self, records):
        payload = render_csv([r.to_row() for r in records])
        rows = list(csv.DictReader(io.StringIO(payload)))

        assert rows[0]["Description"] == 'A "quick" guide, with commas'
        assert rows[1]["Rank"] == "2"

    def test_nested_values_written_as_json(self):
        payload = render_csv([{"Name": "x", "Tags": ["a", "b"], "Meta": None}])
        assert '"[""a"", ""b""]"' in payload
        assert payload.splitlines()[1].endswith(',""')

    def test_empty(self):
        assert render_csv([]) == ""

    def test_text_listing(self, records):
        text = DataExporter([r.to_row() for r in records]).to_text()

        assert text.splitlines()[0] == "1. Best Cheap Headphones"
        assert "   URL: https://www.example.com/cheap" in text
        assert "2. Budget ANC Reviewed" in text
        assert "Rank" not in text


class TestOutputBuilder:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fmt", list(OutputFormat))
    async def test_no_records_fails_for_every_format(self, fmt, test_config):
        builder = OutputBuilder(MemoryDownloadService(), FakeSpreadsheetService(), config=test_config)

        with pytest.raises(NoDataError):
            await builder.build(fmt, [])

    @pytest.mark.asyncio
    async def test_csv(self, records, test_config):
        downloads = MemoryDownloadService()
        artifact = await OutputBuilder(downloads, config=test_config).build("csv", records)

        assert artifact.status_message == "CSV with 2 rows downloaded"
        filename, payload = downloads.downloads[0]
        assert filename.startswith(test_config.export_filename_prefix + "-")
        assert filename.endswith(".csv")
        assert payload == artifact.payload
        assert artifact.download_path == f"memory://{filename}"

    @pytest.mark.asyncio
    async def test_sheet(self, records, test_config):
        sheets = FakeSpreadsheetService()
        downloads = MemoryDownloadService()
        artifact = await OutputBuilder(downloads, sheets, config=test_config).build(OutputFormat.SHEET, records)

        assert artifact.status_message == "Spreadsheet created with 2 rows"
        assert artifact.url == "https://docs.google.com/spreadsheets/d/sheet-1/edit"
        assert sheets.written["sheet-1"][0] == ["Name", "URL", "Description", "Rank"]
        assert len(sheets.written["sheet-1"]) == 3
        assert downloads.downloads == []

    @pytest.mark.asyncio
    async def test_sheet_create_failure_falls_back_to_csv(self, records, test_config):
        downloads = MemoryDownloadService()
        builder = OutputBuilder(downloads, FakeSpreadsheetService(fail_create=True), config=test_config)

        artifact = await builder.build("sheet", records)

        assert artifact.output_format is OutputFormat.CSV
        assert artifact.status_message == "CSV with 2 rows downloaded"
        assert artifact.warning
        assert len(downloads.downloads) == 1

    @pytest.mark.asyncio
    async def test_sheet_without_service_falls_back_to_csv(self, records, test_config):
        artifact = await OutputBuilder(MemoryDownloadService(), config=test_config).build("sheet", records)
        assert artifact.output_format is OutputFormat.CSV

    @pytest.mark.asyncio
    async def test_sheet_write_failure_keeps_url_and_downloads(self, records, test_config):
        downloads = MemoryDownloadService()
        builder = OutputBuilder(downloads, FakeSpreadsheetService(fail_write=True), config=test_config)

        artifact = await builder.build("sheet", records)

        assert artifact.status_message == "Spreadsheet created, data downloaded as CSV"
        assert artifact.url.endswith("/sheet-1/edit")
        assert artifact.download_path.startswith("memory://")
        assert len(downloads.downloads) == 1

    @pytest.mark.asyncio
    async def test_any_write_failure_keeps_url_and_downloads(self, records, test_config):
        downloads = MemoryDownloadService()
        sheets = FakeSpreadsheetService(write_error=RuntimeError("connection reset"))

        artifact = await OutputBuilder(downloads, sheets, config=test_config).build("sheet", records)

        assert artifact.output_format is OutputFormat.SHEET
        assert artifact.status_message == "Spreadsheet created, data downloaded as CSV"
        assert artifact.url.endswith("/sheet-1/edit")
        assert len(downloads.downloads) == 1

    @pytest.mark.asyncio
    async def test_text(self, records, test_config):
        artifact = await OutputBuilder(MemoryDownloadService(), config=test_config).build("text", records)

        assert artifact.status_message == "Listed 2 items"
        assert artifact.payload.startswith("1. Best Cheap Headphones")

    @pytest.mark.asyncio
    async def test_table(self, records, test_config):
        artifact = await OutputBuilder(MemoryDownloadService(), config=test_config).build("table", records)

        assert artifact.status_message == "Table with 2 rows"
        assert artifact.payload[1]["Name"] == "Budget ANC Reviewed"
        assert artifact.to_dict()["format"] == "table"

    @pytest.mark.asyncio
    async def test_download_failure_propagates(self, records, test_config):
        builder = OutputBuilder(MemoryDownloadService(fail=True), config=test_config)

        with pytest.raises(DownloadError):
            await builder.build("csv", records)


class TestServices:

    @pytest.mark.asyncio
    async def test_local_download_writes_file(self, tmp_path):
        service = LocalDownloadService(tmp_path / "out")

        path = await service.trigger_download('"Name"\n"x"\n', "../escape.csv")

        assert path == str(tmp_path / "out" / "escape.csv")
        assert (tmp_path / "out" / "escape.csv").read_text(encoding="utf-8") == '"Name"\n"x"\n'

    @pytest.mark.asyncio
    async def test_local_download_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        service = LocalDownloadService(blocker / "sub")

        with pytest.raises(DownloadError):
            await service.trigger_download("data", "a.csv")

    def test_sheets_service_needs_token(self, test_config):
        with pytest.raises(SpreadsheetError):
            GoogleSheetsService(config=test_config.from_overrides(sheets_access_token=None))

    def test_sheets_shareable_url(self, test_config):
        service = GoogleSheetsService("token", config=test_config)
        assert service.get_shareable_url("abc") == "https://docs.google.com/spreadsheets/d/abc/edit"


async def _serve_bad_gateway():
    """Local server answering every request with an HTML 502 page"""
    async def bad_gateway(request):
        return web.Response(status=502, text="<html>Bad Gateway</html>", content_type="text/html")

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", bad_gateway)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    return runner, f"http://{host}:{port}/v4/spreadsheets"


class TestGoogleSheetsErrors:

    @pytest.mark.asyncio
    async def test_html_error_body_becomes_spreadsheet_error(self, test_config):
        runner, api_base = await _serve_bad_gateway()
        try:
            service = GoogleSheetsService("token", config=test_config)
            service.API_BASE = api_base

            with pytest.raises(SpreadsheetError):
                await service.create_spreadsheet("Extracted Data")
        finally:
            await runner.cleanup()

    @pytest.mark.asyncio
    async def test_html_error_body_falls_back_to_csv(self, records, test_config):
        runner, api_base = await _serve_bad_gateway()
        try:
            service = GoogleSheetsService("token", config=test_config)
            service.API_BASE = api_base
            downloads = MemoryDownloadService()

            artifact = await OutputBuilder(downloads, service, config=test_config).build("sheet", records)

            assert artifact.output_format is OutputFormat.CSV
            assert artifact.warning == "Spreadsheet could not be created, exported CSV instead"
            assert len(downloads.downloads) == 1
        finally:
            await runner.cleanup()
