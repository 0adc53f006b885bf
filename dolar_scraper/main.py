"""
Main execution script: scrape the rate table into a new dated sheet
"""
import asyncio
import logging
import sys
import time
from datetime import date, datetime, timezone
from typing import Mapping, Optional

from .config.enums import FetchStrategy, Status
from .config.loader import load_settings
from .config.schema import RunResult, Settings
from .core.auth import build_credentials, build_sheets_service
from .core.logger import setup_logger
from .core.retention import choose_sheet_to_delete
from .core.utils import sort_rows
from .exporters.google_sheets import GoogleSheetsExporter
from .extractors.base_extractor import BaseExtractor
from .extractors.rendered_page import RenderedPageExtractor
from .extractors.static_html import StaticHtmlExtractor

logger = logging.getLogger("dolar_scraper.main")

def get_extractor_class(strategy: FetchStrategy):
    """Get extractor class by fetch strategy"""
    extractor_mapping = {
        FetchStrategy.STATIC: StaticHtmlExtractor,
        FetchStrategy.RENDERED: RenderedPageExtractor,
    }

    return extractor_mapping[strategy]

def get_extractor(settings: Settings) -> BaseExtractor:
    return get_extractor_class(settings.fetch_strategy)(settings)

class DolarScraper:
    """One invocation of the scrape-sort-write-format pipeline"""

    def __init__(self, settings: Settings, exporter: GoogleSheetsExporter,
                 extractor: Optional[BaseExtractor] = None, today: Optional[date] = None):
        self.settings = settings
        self.exporter = exporter
        self.extractor = extractor or get_extractor(settings)
        self.today = today or datetime.now(timezone.utc).date()

    @property
    def sheet_name(self) -> str:
        return self.today.isoformat()

    async def enforce_retention(self) -> Optional[int]:
        """Delete one old sheet if the spreadsheet is at the cap; return its id"""
        sheets = await asyncio.to_thread(self.exporter.list_sheets)

        victim = choose_sheet_to_delete(sheets, self.settings.retention_cap, self.settings.retention_order)
        if victim is None:
            return None

        logger.info(
            f"{len(sheets)} sheets reached the cap of {self.settings.retention_cap}, "
            f"deleting sheet {victim.sheet_id} ({victim.title!r})"
        )
        await asyncio.to_thread(self.exporter.delete_sheet, victim.sheet_id)
        return victim.sheet_id

    async def run(self) -> RunResult:
        """
        Execute the pipeline; failures are logged and reported, never raised

        A sheet created before a later step fails is left in place, and its
        id is still reported in the result.
        """
        started = time.perf_counter()
        sheet_name = self.sheet_name
        result = RunResult(status=Status.FAILED, sheet_name=sheet_name)

        try:
            result.deleted_sheet_id = await self.enforce_retention()

            # Both branches settle before any error is raised
            sheet, rows = await asyncio.gather(
                asyncio.to_thread(self.exporter.add_sheet, sheet_name),
                self.extractor.fetch_rows(self.settings.crawl_url),
                return_exceptions=True,
            )
            if not isinstance(sheet, BaseException):
                result.sheet_id = sheet.sheet_id
            for outcome in (sheet, rows):
                if isinstance(outcome, BaseException):
                    raise outcome

            sorted_rows = sort_rows(rows)
            await asyncio.to_thread(self.exporter.write_rows, sheet_name, sorted_rows)
            await asyncio.to_thread(self.exporter.format_sheet, sheet.sheet_id, sorted_rows)

            result.rows_written = len(sorted_rows)
            result.status = Status.OK
            logger.info(f'Finished writing data and formatting sheetId {sheet.sheet_id} (name "{sheet_name}")')

        except Exception as e:
            logger.exception(f"There was an error: {e}")
            result.error = str(e)

        finally:
            result.duration_seconds = time.perf_counter() - started

        return result

async def handler(env: Optional[Mapping[str, str]] = None) -> RunResult:
    """Entry point for schedulers: build everything from the environment and run once"""
    started = time.perf_counter()

    try:
        settings = load_settings(env)
    except Exception as e:
        setup_logger()
        logger.exception(f"Failed to load settings: {e}")
        return RunResult(status=Status.FAILED, error=str(e), duration_seconds=time.perf_counter() - started)

    try:
        setup_logger(log_level=settings.log_level, log_dir=settings.log_dir)
    except Exception as e:
        setup_logger()
        logger.exception(f"Failed to set up logging: {e}")
        return RunResult(status=Status.FAILED, error=str(e), duration_seconds=time.perf_counter() - started)

    logger.info(
        f"=== DOLAR SCRAPER STARTED === strategy={settings.fetch_strategy.value}, "
        f"auth={settings.auth_scheme.value}"
    )

    try:
        credentials = build_credentials(settings)
        service = build_sheets_service(credentials)
    except Exception as e:
        logger.exception(f"Failed to authenticate with Google Sheets: {e}")
        return RunResult(status=Status.FAILED, error=str(e), duration_seconds=time.perf_counter() - started)

    exporter = GoogleSheetsExporter(service, settings.spreadsheet_id)
    scraper = DolarScraper(settings, exporter)
    result = await scraper.run()

    if result.ok:
        logger.info(f"=== SCRAPING COMPLETED === {exporter.sheet_url}")
    else:
        logger.error(f"=== SCRAPING FAILED === {result.error}")
    logger.info(f"Run result: {result.to_dict()}")
    return result

def cli() -> int:
    """Run once from the command line; exit status 1 signals a failed run"""
    result = asyncio.run(handler())
    return 0 if result.ok else 1

if __name__ == "__main__":
    sys.exit(cli())
