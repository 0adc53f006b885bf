"""
Browser management using Playwright
"""
import logging
from typing import Optional
from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Route

from ..config.schema import BrowserSettings

logger = logging.getLogger(__name__)

class BrowserManager:
    """Manage one short-lived Playwright browser with page scripts disabled"""

    def __init__(self, settings: Optional[BrowserSettings] = None, user_agent: Optional[str] = None):
        self.settings = settings or BrowserSettings()
        self.user_agent = user_agent
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None

    async def start(self):
        """Start the browser"""
        try:
            self.playwright = await async_playwright().start()

            launch_options = {
                'headless': self.settings.headless,
                'args': self.settings.args,
            }
            if self.settings.executable_path:
                launch_options['executable_path'] = self.settings.executable_path

            self.browser = await self.playwright.chromium.launch(**launch_options)

            # Page content never runs its own scripts; evaluate() still works
            context_options = {'java_script_enabled': False}
            if self.user_agent:
                context_options['user_agent'] = self.user_agent

            self.context = await self.browser.new_context(**context_options)
            self.context.set_default_timeout(self.settings.timeout)

            logger.info("Browser started successfully")

        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            # __aexit__ does not run when __aenter__ raises
            await self.close()
            raise

    async def _route_request(self, route: Route):
        """Abort blocked resource types (images by default), let everything else through"""
        if route.request.resource_type in self.settings.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def new_page(self) -> Page:
        """Create a new page with resource blocking installed"""
        if not self.context:
            await self.start()

        page = await self.context.new_page()
        if self.settings.blocked_resource_types:
            await page.route("**/*", self._route_request)

        return page

    async def load_page(self, url: str, page: Optional[Page] = None) -> Page:
        """Load a page with the given URL and wait for the load event"""
        if page is None:
            page = await self.new_page()

        try:
            logger.info(f"Loading page: {url}")

            response = await page.goto(url, wait_until='load')

            if response and response.status >= 400:
                logger.warning(f"Page loaded with status {response.status}: {url}")

            logger.info(f"Page loaded successfully: {url}")
            return page

        except Exception as e:
            logger.error(f"Failed to load page {url}: {e}")
            raise

    async def close(self):
        """Close the browser"""
        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
            if self.playwright:
                await self.playwright.stop()

            logger.info("Browser closed successfully")

        except Exception as e:
            logger.error(f"Error closing browser: {e}")

        finally:
            self.context = None
            self.browser = None
            self.playwright = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
