"""
Rendered strategy: headless Chromium navigation with in-page extraction
"""
import logging
from typing import Callable, List, Optional

from .base_extractor import BaseExtractor
from ..config.schema import Settings
from ..core.browser import BrowserManager
from ..core.exceptions import TableNotFoundError

logger = logging.getLogger(__name__)

# Runs in the page against the located table element
EXTRACT_ROWS_SCRIPT = """
table => Array.from(table.rows, row =>
    Array.from(row.cells, cell => cell.innerText)
)
"""

class RenderedPageExtractor(BaseExtractor):
    """Extract the rate table from a browser-rendered page"""

    def __init__(self, settings: Settings,
                 browser_factory: Optional[Callable[[], BrowserManager]] = None):
        super().__init__(settings)
        self.browser_factory = browser_factory or self._default_browser

    def _default_browser(self) -> BrowserManager:
        return BrowserManager(self.settings.browser, user_agent=self.settings.user_agent)

    async def extract_raw_rows(self, url: str) -> List[List[Optional[str]]]:
        # The browser is torn down whether extraction succeeds or not
        async with self.browser_factory() as browser:
            page = await browser.load_page(url)

            table = await page.query_selector(self.table_selector)
            if table is None:
                raise TableNotFoundError(self.table_selector, url=url)

            raw_rows = await table.evaluate(EXTRACT_ROWS_SCRIPT)
            logger.debug(f"Extracted {len(raw_rows)} rows in page context")
            return raw_rows
