import asyncio
import logging
import threading
from datetime import date

from dolar_scraper import main as pipeline
from dolar_scraper.config.enums import Status
from dolar_scraper.core.exceptions import TableNotFoundError
from dolar_scraper.exporters.google_sheets import GoogleSheetsExporter
from dolar_scraper.extractors.rendered_page import RenderedPageExtractor
from dolar_scraper.extractors.static_html import StaticHtmlExtractor

from tests.fakes import FakeSheetsService

FETCHED = [["name", "buy", "sell"], ["USD", "3.50", "3.60"], ["EUR", "4.10", "4.20"]]


class FakeExtractor:
    def __init__(self, rows=None, error=None):
        self.rows = rows
        self.error = error
        self.urls = []

    async def fetch_rows(self, url):
        self.urls.append(url)
        if self.error:
            raise self.error
        return [list(row) for row in self.rows]


class RendezvousExtractor(FakeExtractor):
    """Only returns once sheet creation has started on its worker thread"""

    def __init__(self, rows, sheet_requested, rows_fetched):
        super().__init__(rows=rows)
        self.sheet_requested = sheet_requested
        self.rows_fetched = rows_fetched

    async def fetch_rows(self, url):
        for _ in range(500):
            if self.sheet_requested.is_set():
                break
            await asyncio.sleep(0.01)
        else:
            raise AssertionError("sheet creation never started while fetching")

        self.rows_fetched.set()
        return await super().fetch_rows(url)


class RendezvousExporter(GoogleSheetsExporter):
    """Blocks sheet creation until the rows have been fetched"""

    def __init__(self, service, spreadsheet_id, sheet_requested, rows_fetched):
        super().__init__(service, spreadsheet_id)
        self.sheet_requested = sheet_requested
        self.rows_fetched = rows_fetched

    def add_sheet(self, title):
        self.sheet_requested.set()
        if not self.rows_fetched.wait(timeout=5):
            raise AssertionError("rows were never fetched while creating the sheet")
        return super().add_sheet(title)


def _existing(count):
    return [(100 + i, f"tab-{i}") for i in range(count)]


def _run(settings, service, extractor):
    scraper = pipeline.DolarScraper(
        settings,
        GoogleSheetsExporter(service, settings.spreadsheet_id),
        extractor=extractor,
        today=date(2024, 5, 3),
    )
    return asyncio.run(scraper.run())


def test_below_cap_writes_sorted_rows_without_deleting(make_settings):
    service = FakeSheetsService(sheets=_existing(199), new_sheet_id=4242)
    extractor = FakeExtractor(rows=FETCHED)

    result = _run(make_settings(), service, extractor)

    assert result.status == Status.OK
    assert result.ok
    assert result.sheet_name == "2024-05-03"
    assert result.sheet_id == 4242
    assert result.rows_written == 3
    assert result.deleted_sheet_id is None
    assert extractor.urls == ["https://example.com/dolar"]

    requests = service.batch_requests()
    assert not any("deleteSheet" in request for request in requests)
    assert requests[0] == {"addSheet": {"properties": {"title": "2024-05-03", "index": 0}}}

    update = next(kwargs for name, kwargs in service.calls if name == "values.update")
    assert update["range"] == "'2024-05-03'!A1:C3"
    assert update["body"]["values"] == [
        ["name", "buy", "sell"],
        ["EUR", "4.10", "4.20"],
        ["USD", "3.50", "3.60"],
    ]

    formatting = requests[1:]
    assert formatting[0]["updateBorders"]["range"]["endRowIndex"] == 3
    assert formatting[0]["updateBorders"]["range"]["endColumnIndex"] == 3
    assert formatting[1]["repeatCell"]["range"]["endRowIndex"] == 1
    assert formatting[2]["repeatCell"]["range"]["startColumnIndex"] == 1
    assert formatting[3]["updateSheetProperties"]["properties"]["gridProperties"] == {
        "rowCount": 3, "columnCount": 3
    }
    assert formatting[4]["autoResizeDimensions"]["dimensions"]["endIndex"] == 3


def test_at_cap_deletes_last_listed_sheet_before_creating(make_settings):
    service = FakeSheetsService(sheets=_existing(200))

    result = _run(make_settings(), service, FakeExtractor(rows=FETCHED))

    assert result.ok
    assert result.deleted_sheet_id == 299

    requests = service.batch_requests()
    deletes = [request for request in requests if "deleteSheet" in request]
    assert deletes == [{"deleteSheet": {"sheetId": 299}}]
    assert requests.index(deletes[0]) < next(i for i, r in enumerate(requests) if "addSheet" in r)


def test_fetch_failure_skips_write_and_format(make_settings, caplog):
    service = FakeSheetsService(sheets=_existing(3))
    extractor = FakeExtractor(error=TableNotFoundError("#ctl00_PlaceHolderMainContent_GridViewDolar"))

    with caplog.at_level(logging.ERROR, logger="dolar_scraper"):
        result = _run(make_settings(), service, extractor)

    assert result.status == Status.FAILED
    assert "Table not found" in result.error
    assert "values.update" not in service.call_names()
    # The concurrent addSheet still lands; nothing is formatted
    assert service.batch_requests() == [
        {"addSheet": {"properties": {"title": "2024-05-03", "index": 0}}}
    ]
    assert result.sheet_id == 999
    assert "There was an error" in caplog.text


def test_sheet_creation_and_fetch_overlap(make_settings):
    settings = make_settings()
    service = FakeSheetsService(sheets=_existing(2), new_sheet_id=77)
    sheet_requested = threading.Event()
    rows_fetched = threading.Event()

    scraper = pipeline.DolarScraper(
        settings,
        RendezvousExporter(service, settings.spreadsheet_id, sheet_requested, rows_fetched),
        extractor=RendezvousExtractor(FETCHED, sheet_requested, rows_fetched),
        today=date(2024, 5, 3),
    )
    result = asyncio.run(scraper.run())

    assert result.ok, result.error
    assert result.sheet_id == 77
    assert sheet_requested.is_set()
    assert rows_fetched.is_set()


def test_sheet_creation_failure_is_reported(make_settings):
    service = FakeSheetsService(sheets=[])
    service.add_sheet_error = RuntimeError("duplicate sheet name")

    result = _run(make_settings(), service, FakeExtractor(rows=FETCHED))

    assert result.status == Status.FAILED
    assert result.error == "duplicate sheet name"
    assert "values.update" not in service.call_names()


def test_extractor_selected_by_strategy(make_settings):
    from dolar_scraper.config.enums import FetchStrategy

    assert isinstance(pipeline.get_extractor(make_settings()), StaticHtmlExtractor)
    assert isinstance(
        pipeline.get_extractor(make_settings(fetch_strategy=FetchStrategy.RENDERED)), RenderedPageExtractor
    )


def test_handler_returns_failure_on_bad_config():
    result = asyncio.run(pipeline.handler({}))

    assert result.status == Status.FAILED
    assert "Missing required environment variables" in result.error


def test_handler_returns_failure_on_auth_error():
    env = {
        "GOOGLE_SPREADSHEET_ID": "spreadsheet-123",
        "CRAWL_URL": "https://example.com/dolar",
        "GOOGLE_SERVICE_ACCOUNT_EMAIL": "bot@example.iam.gserviceaccount.com",
        "GOOGLE_PRIVATE_KEY": "garbage",
    }

    result = asyncio.run(pipeline.handler(env))

    assert result.status == Status.FAILED
    assert "AUTHENTICATION_ERROR" in result.error


def test_handler_runs_pipeline_with_built_client(monkeypatch):
    env = {
        "GOOGLE_SPREADSHEET_ID": "spreadsheet-123",
        "CRAWL_URL": "https://example.com/dolar",
        "GOOGLE_SERVICE_ACCOUNT_EMAIL": "bot@example.iam.gserviceaccount.com",
        "GOOGLE_PRIVATE_KEY": "key",
    }
    service = FakeSheetsService(sheets=_existing(1))

    monkeypatch.setattr(pipeline, "build_credentials", lambda settings: "credentials")
    monkeypatch.setattr(pipeline, "build_sheets_service", lambda credentials: service)
    monkeypatch.setattr(pipeline, "get_extractor", lambda settings: FakeExtractor(rows=FETCHED))

    result = asyncio.run(pipeline.handler(env))

    assert result.ok
    assert result.rows_written == 3
    assert "values.update" in service.call_names()


def test_handler_returns_failure_on_unknown_log_level():
    env = {
        "GOOGLE_SPREADSHEET_ID": "spreadsheet-123",
        "CRAWL_URL": "https://example.com/dolar",
        "GOOGLE_SERVICE_ACCOUNT_EMAIL": "bot@example.iam.gserviceaccount.com",
        "GOOGLE_PRIVATE_KEY": "key",
        "LOG_LEVEL": "verbose",
    }

    result = asyncio.run(pipeline.handler(env))

    assert result.status == Status.FAILED
    assert "CONFIGURATION_ERROR" in result.error
    assert "verbose" in result.error


def test_handler_returns_failure_when_log_dir_is_unusable(monkeypatch, tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied", encoding="utf-8")
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(f"settings:\n  log_dir: '{blocker}'\n", encoding="utf-8")
    env = {
        "GOOGLE_SPREADSHEET_ID": "spreadsheet-123",
        "CRAWL_URL": "https://example.com/dolar",
        "GOOGLE_SERVICE_ACCOUNT_EMAIL": "bot@example.iam.gserviceaccount.com",
        "GOOGLE_PRIVATE_KEY": "key",
        "DOLAR_SETTINGS_FILE": str(settings_file),
    }
    # Start from a bare logger so the file handler is actually attempted
    monkeypatch.setattr(logging.getLogger("dolar_scraper"), "handlers", [])

    result = asyncio.run(pipeline.handler(env))

    assert result.status == Status.FAILED
    assert result.error


def test_module_logs_under_package_logger():
    assert pipeline.logger.name == "dolar_scraper.main"
    assert pipeline.logger.parent is logging.getLogger("dolar_scraper")
