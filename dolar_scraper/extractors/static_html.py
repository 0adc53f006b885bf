"""
Static strategy: plain HTTP GET parsed with BeautifulSoup, no page scripts
"""
import asyncio
import logging
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from .base_extractor import BaseExtractor
from ..config.schema import Settings
from ..core.exceptions import TableNotFoundError

logger = logging.getLogger(__name__)

# The table's own rows, wherever the parser put them; rows of nested tables are excluded
TABLE_ROWS_SELECTOR = ':scope > tr, :scope > thead > tr, :scope > tbody > tr, :scope > tfoot > tr'

class StaticHtmlExtractor(BaseExtractor):
    """Extract the rate table from the raw HTML response"""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        super().__init__(settings)
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': settings.user_agent})

    def download(self, url: str) -> str:
        """Blocking GET; HTTP error statuses raise"""
        logger.info(f"HTTP request to {url}")

        response = self.session.get(url, timeout=self.settings.http_timeout)
        response.raise_for_status()

        logger.debug(f"HTTP request successful ({len(response.text)} chars)")
        return response.text

    def parse_table(self, html: str, url: Optional[str] = None) -> List[List[str]]:
        """Find the table by selector and return each row's cell texts"""
        soup = BeautifulSoup(html, 'html.parser')

        table = soup.select_one(self.table_selector)
        if table is None:
            raise TableNotFoundError(self.table_selector, url=url)

        raw_rows = []
        for tr in table.select(TABLE_ROWS_SELECTOR):
            cells = tr.find_all(['td', 'th'], recursive=False)
            raw_rows.append([cell.get_text() for cell in cells])

        return raw_rows

    async def extract_raw_rows(self, url: str) -> List[List[str]]:
        html = await asyncio.to_thread(self.download, url)
        return self.parse_table(html, url=url)
