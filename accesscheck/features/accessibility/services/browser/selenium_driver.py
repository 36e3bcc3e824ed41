"""
Selenium-backed implementation of the browser driver contract.

Selenium is blocking, so every call is pushed onto a worker thread with
asyncio.to_thread and the event loop stays free while Chrome works.
"""
import asyncio
import shutil
import tempfile
import time
from typing import Any, Optional

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from accesscheck.features.accessibility.services.browser.driver import (
    NETWORK_ERROR_MARKER,
    DriverNetworkError,
    DriverTimeoutError,
    LaunchOptions,
)
from accesscheck.platform.logger import get_logger

logger = get_logger(__name__)

# Counts finished resource requests with a PerformanceObserver. The
# resource-timing buffer stops growing once full (250 entries by default),
# so it only seeds the initial count.
_RESOURCE_COUNT_SCRIPT = """
if (window.__accesscheckResourceCount === undefined) {
    window.__accesscheckResourceCount = performance.getEntriesByType('resource').length;
    new PerformanceObserver(function (list) {
        window.__accesscheckResourceCount += list.getEntries().length;
    }).observe({type: 'resource'});
}
return window.__accesscheckResourceCount;
"""
_READY_STATE_SCRIPT = "return document.readyState"

# Same tolerance as an "at most two open connections" idle rule.
MAX_BACKGROUND_REQUESTS = 2


class network_settled:
    """
    WebDriverWait condition: the document is loaded and the network has
    stayed quiet for ``quiet_ms``.

    Quiet means that no more than ``max_background`` requests finished
    between two consecutive samples. A page that keeps polling or sending
    beacons in the background still settles; a burst of requests restarts
    the quiet period.
    """

    def __init__(self, quiet_ms: int, max_background: int = MAX_BACKGROUND_REQUESTS):
        self.quiet_seconds = quiet_ms / 1000
        self.max_background = max_background
        self._last_count: Optional[int] = None
        self._quiet_since = 0.0

    def __call__(self, driver) -> bool:
        ready = driver.execute_script(_READY_STATE_SCRIPT) == "complete"
        count = driver.execute_script(_RESOURCE_COUNT_SCRIPT)
        now = time.monotonic()

        last_count, self._last_count = self._last_count, count
        if not ready or last_count is None or count - last_count > self.max_background:
            self._quiet_since = now
            return False

        return now - self._quiet_since >= self.quiet_seconds


class SeleniumPage:
    """One browser tab. Closing it switches back to the browser's first tab."""

    def __init__(self, driver: webdriver.Chrome, handle: str, parent_handle: str):
        self._driver = driver
        self.handle = handle
        self.parent_handle = parent_handle

    async def set_viewport(self, width: int, height: int) -> None:
        await asyncio.to_thread(self._driver.set_window_size, width, height)

    async def set_user_agent(self, user_agent: str) -> None:
        await asyncio.to_thread(
            self._driver.execute_cdp_cmd,
            "Network.setUserAgentOverride",
            {"userAgent": user_agent},
        )

    def _goto(self, url: str, timeout_ms: int, idle_ms: int) -> None:
        deadline = time.monotonic() + timeout_ms / 1000
        self._driver.set_page_load_timeout(timeout_ms / 1000)

        try:
            self._driver.get(url)
        except TimeoutException as e:
            raise DriverTimeoutError(f"Navigation timeout of {timeout_ms} ms exceeded") from e
        except WebDriverException as e:
            if NETWORK_ERROR_MARKER in (e.msg or str(e)):
                raise DriverNetworkError(e.msg or str(e)) from e
            raise

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise DriverTimeoutError(f"Navigation timeout of {timeout_ms} ms exceeded")

        try:
            WebDriverWait(self._driver, remaining, poll_frequency=0.1).until(network_settled(idle_ms))
        except TimeoutException as e:
            raise DriverTimeoutError(
                f"Network did not settle within the {timeout_ms} ms navigation timeout"
            ) from e

    async def goto(self, url: str, timeout_ms: int, idle_ms: int = 500) -> None:
        await asyncio.to_thread(self._goto, url, timeout_ms, idle_ms)

    async def run_script(self, script: str, *args: Any) -> Any:
        return await asyncio.to_thread(self._driver.execute_script, script, *args)

    async def run_async_script(self, script: str, *args: Any) -> Any:
        return await asyncio.to_thread(self._driver.execute_async_script, script, *args)

    def _close(self) -> None:
        if self.handle in self._driver.window_handles:
            self._driver.switch_to.window(self.handle)
            self._driver.close()
        self._driver.switch_to.window(self.parent_handle)

    async def close(self) -> None:
        await asyncio.to_thread(self._close)


class SeleniumBrowser:
    def __init__(self, driver: webdriver.Chrome, profile_dir: Optional[str] = None):
        self._driver = driver
        self._profile_dir = profile_dir

    def _new_page(self) -> SeleniumPage:
        parent_handle = self._driver.current_window_handle
        self._driver.switch_to.new_window("tab")
        return SeleniumPage(self._driver, self._driver.current_window_handle, parent_handle)

    async def new_page(self) -> SeleniumPage:
        return await asyncio.to_thread(self._new_page)

    def _close(self) -> None:
        try:
            self._driver.quit()
        finally:
            if self._profile_dir:
                shutil.rmtree(self._profile_dir, ignore_errors=True)

    async def close(self) -> None:
        await asyncio.to_thread(self._close)


class SeleniumDriver:
    """Launches Chrome/Chromium through chromedriver."""

    @staticmethod
    def build_options(options: LaunchOptions, profile_dir: str) -> Options:
        chrome_options = Options()
        if options.headless:
            chrome_options.add_argument("--headless=new")
        for arg in options.args:
            chrome_options.add_argument(arg)
        chrome_options.add_argument(f"--user-data-dir={profile_dir}")
        if options.executable_path:
            chrome_options.binary_location = options.executable_path
        chrome_options.page_load_strategy = "normal"
        return chrome_options

    @staticmethod
    def build_service(options: LaunchOptions) -> Service:
        if options.driver_path:
            return Service(executable_path=options.driver_path)
        if options.use_webdriver_manager:
            return Service(ChromeDriverManager().install())
        return Service()

    def _launch(self, options: LaunchOptions) -> SeleniumBrowser:
        profile_dir = tempfile.mkdtemp(prefix="chrome-profile-")
        try:
            driver = webdriver.Chrome(
                service=self.build_service(options),
                options=self.build_options(options, profile_dir),
            )
        except Exception:
            shutil.rmtree(profile_dir, ignore_errors=True)
            raise

        logger.info(f"Browser started ({options.strategy}), session {driver.session_id}")
        return SeleniumBrowser(driver, profile_dir)

    async def launch(self, options: LaunchOptions) -> SeleniumBrowser:
        return await asyncio.to_thread(self._launch, options)
