"""
Browser lifecycle management using Playwright.

Launches the configured engine, creates isolated contexts, and hands out
a PageEnvironment opened on the target documentation site.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Playwright,
)

from doc_harvester.browser.page_environment import PageEnvironment
from doc_harvester.config.settings import BrowserSettings
from doc_harvester.core.exceptions import BrowserError
from doc_harvester.utils.logging import get_logger

logger = get_logger(__name__)


class BrowserManager:
    """
    Manages Playwright browser lifecycle.

    Example:
        >>> async with BrowserManager(settings.browser) as manager:
        ...     async with manager.open_environment(url) as env:
        ...         profile = await SiteStructureAnalyzer(env).analyze()
    """

    def __init__(self, settings: BrowserSettings) -> None:
        self.settings = settings
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def start(self) -> None:
        """
        Start Playwright and launch the browser.

        Raises:
            BrowserError: If the browser fails to launch
        """
        if self._browser is not None:
            logger.warning("Browser already started, skipping launch")
            return

        try:
            logger.info(
                f"Starting {self.settings.browser_type} browser "
                f"(headless={self.settings.headless})"
            )
            self._playwright = await async_playwright().start()
            browser_type = getattr(self._playwright, self.settings.browser_type)
            self._browser = await browser_type.launch(headless=self.settings.headless)
        except Exception as e:
            await self._cleanup()
            raise BrowserError(
                f"Failed to launch browser: {e}",
                details={"browser_type": self.settings.browser_type},
            ) from e

    async def stop(self) -> None:
        """Close the browser and stop Playwright. Safe to call twice."""
        await self._cleanup()
        logger.info("Browser stopped")

    async def _cleanup(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self._playwright = None

    async def new_context(self) -> BrowserContext:
        """
        Create a browser context with the configured viewport and timeouts.

        Raises:
            BrowserError: If the browser is not started or context creation fails
        """
        if self._browser is None:
            raise BrowserError("Browser not started. Call start() first.")

        context_options: dict = {
            "viewport": {
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            },
            "ignore_https_errors": self.settings.ignore_https_errors,
        }
        if self.settings.user_agent:
            context_options["user_agent"] = self.settings.user_agent

        try:
            context = await self._browser.new_context(**context_options)
        except Exception as e:
            raise BrowserError(f"Failed to create browser context: {e}") from e

        context.set_default_timeout(self.settings.timeout_ms)
        context.set_default_navigation_timeout(self.settings.navigation_timeout_ms)
        return context

    @asynccontextmanager
    async def open_environment(self, url: str) -> AsyncGenerator[PageEnvironment, None]:
        """
        Open ``url`` in a fresh context and yield its PageEnvironment.

        The context is closed on exit.
        """
        context = await self.new_context()
        try:
            page = await context.new_page()
            env = PageEnvironment(page)
            await env.open(url)
            yield env
        finally:
            await context.close()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
