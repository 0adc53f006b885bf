"""
Base extractor class for both table fetch strategies
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from ..config.schema import Row, Settings
from ..core.utils import rows_from_cells

logger = logging.getLogger(__name__)

class BaseExtractor(ABC):
    """Abstract base class for the exchange-rate table extractors"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.table_selector = settings.table_selector

    @abstractmethod
    async def extract_raw_rows(self, url: str) -> List[List[Optional[str]]]:
        """
        Locate the table and return the raw text of every cell, row by row

        Returns:
            One list of cell texts per table row, in DOM order, header first.
            Texts are untrimmed; normalisation happens in fetch_rows.
        """
        pass

    async def fetch_rows(self, url: str) -> List[Row]:
        """
        Fetch the table and return 3-column rows, header first

        This is the method the pipeline calls; it times the extraction and
        applies the shared cell normalisation.
        """
        logger.info(f"Starting to get data from {url}")
        started = time.perf_counter()

        raw_rows = await self.extract_raw_rows(url)
        rows = rows_from_cells(raw_rows, url=url)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"Finished getting {len(rows)} rows in {elapsed_ms:.0f} milliseconds")
        return rows
