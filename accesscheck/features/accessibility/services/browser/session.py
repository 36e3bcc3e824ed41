"""
Browser session manager

Owns the lifecycle of one browser process per scan: pick the launch
strategy, start the browser, and tear it down on every exit path.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Set

from accesscheck.features.accessibility.exceptions import LaunchFailure
from accesscheck.features.accessibility.services.browser.driver import (
    BrowserDriver,
    BrowserHandle,
    PageHandle,
)
from accesscheck.features.accessibility.services.browser.strategies import (
    LaunchStrategy,
    resolve_strategy,
)
from accesscheck.platform.config import Settings, settings as default_settings
from accesscheck.platform.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BrowserSession:
    """A launched browser plus the single page a scan is allowed to open."""
    browser: BrowserHandle
    strategy: str
    page: Optional[PageHandle] = None
    released: bool = False

    async def open_page(self) -> PageHandle:
        if self.released:
            raise RuntimeError("Browser session already released")
        if self.page is not None:
            raise RuntimeError("Browser session already has an open page")
        self.page = await self.browser.new_page()
        return self.page


class BrowserSessionManager:
    def __init__(self, driver: BrowserDriver, settings: Settings = default_settings):
        self.driver = driver
        self.settings = settings
        self._cleanups: Set[asyncio.Task] = set()

    def resolve_strategy(self) -> LaunchStrategy:
        return resolve_strategy(self.settings)

    async def acquire(self) -> BrowserSession:
        """
        Launch a fresh browser for one scan. Not retried here.

        The launch runs shielded from cancellation: if the caller is
        cancelled while the browser is still starting, the browser is closed
        as soon as the launch completes.

        Raises:
            LaunchFailure: if the strategy cannot be resolved or the process
                does not start.
        """
        strategy = self.resolve_strategy()
        logger.info(f"Launching browser with {strategy.kind.value} strategy")

        try:
            options = strategy.launch_options()
            launch = asyncio.ensure_future(self.driver.launch(options))
            browser = await asyncio.shield(launch)
        except asyncio.CancelledError:
            launch.add_done_callback(self._close_abandoned_launch)
            raise
        except LaunchFailure as e:
            logger.error(f"Browser launch failed ({strategy.kind.value}): {e.detail}")
            raise
        except Exception as e:
            logger.error(f"Browser launch failed ({strategy.kind.value}): {e}")
            raise LaunchFailure(detail=str(e)) from e

        return BrowserSession(browser=browser, strategy=strategy.kind.value)

    def _close_abandoned_launch(self, launch: "asyncio.Future[BrowserHandle]") -> None:
        if launch.cancelled():
            return
        if launch.exception() is not None:
            logger.warning(f"Abandoned browser launch failed: {launch.exception()}")
            return

        logger.warning("Scan cancelled during browser launch; closing the browser")
        cleanup = asyncio.ensure_future(self._close_browser(launch.result()))
        self._cleanups.add(cleanup)
        cleanup.add_done_callback(self._cleanups.discard)

    @staticmethod
    async def _close_browser(browser: BrowserHandle) -> None:
        try:
            await browser.close()
        except Exception as e:
            logger.warning(f"Ignoring error while closing browser: {e}")

    async def release(self, session: Optional[BrowserSession]) -> None:
        """Close the page, then the browser. Idempotent; never raises."""
        if session is None or session.released:
            return
        session.released = True

        page, session.page = session.page, None
        if page is not None:
            try:
                await page.close()
            except Exception as e:
                logger.warning(f"Ignoring error while closing page: {e}")

        await self._close_browser(session.browser)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        session = await self.acquire()
        try:
            yield session
        finally:
            await self.release(session)
