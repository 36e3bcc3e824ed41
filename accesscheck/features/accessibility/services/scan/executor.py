from typing import Optional, Protocol

from accesscheck.features.accessibility.exceptions import (
    NavigationTimeout,
    ScanError,
    SiteUnreachable,
    UnknownExecutionError,
)
from accesscheck.features.accessibility.schemas.scan import RawEvaluation
from accesscheck.features.accessibility.services.browser.driver import (
    NETWORK_ERROR_MARKER,
    VIEWPORT,
    DriverNetworkError,
    DriverTimeoutError,
    PageHandle,
)
from accesscheck.features.accessibility.services.browser.session import BrowserSession
from accesscheck.features.accessibility.utils.url_validator import ScanTarget
from accesscheck.platform.config import Settings, settings as default_settings
from accesscheck.platform.logger import get_logger

logger = get_logger(__name__)


class Evaluator(Protocol):
    async def evaluate(self, page: PageHandle, url: str) -> RawEvaluation: ...


class ScanExecutor:
    """
    Opens the session's single page, navigates to the target and hands the
    rendered page to the rules evaluator.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        navigation_timeout_ms: int = default_settings.SCAN_NAVIGATION_TIMEOUT_MS,
        network_idle_ms: int = default_settings.SCAN_NETWORK_IDLE_MS,
        user_agent: str = default_settings.SCAN_USER_AGENT,
    ):
        self.evaluator = evaluator
        self.navigation_timeout_ms = navigation_timeout_ms
        self.network_idle_ms = network_idle_ms
        self.user_agent = user_agent

    @classmethod
    def from_settings(cls, evaluator: Evaluator, settings: Settings = default_settings) -> "ScanExecutor":
        return cls(
            evaluator,
            navigation_timeout_ms=settings.SCAN_NAVIGATION_TIMEOUT_MS,
            network_idle_ms=settings.SCAN_NETWORK_IDLE_MS,
            user_agent=settings.SCAN_USER_AGENT,
        )

    async def execute(self, target: ScanTarget, session: BrowserSession) -> RawEvaluation:
        page = await self._open_page(target, session)
        await self._navigate(target, page)

        try:
            return await self.evaluator.evaluate(page, target.url)
        except ScanError:
            raise
        except Exception as e:
            logger.exception(f"Evaluation failed for {target.url}")
            raise UnknownExecutionError(_message(e), url=target.url, detail=repr(e)) from e

    async def _open_page(self, target: ScanTarget, session: BrowserSession) -> PageHandle:
        try:
            page = await session.open_page()
            await page.set_viewport(*VIEWPORT)
            await page.set_user_agent(self.user_agent)
        except Exception as e:
            logger.exception(f"Could not prepare page for {target.url}")
            raise UnknownExecutionError(_message(e), url=target.url, detail=repr(e)) from e
        return page

    async def _navigate(self, target: ScanTarget, page: PageHandle) -> None:
        logger.info(f"Navigating to {target.url} (timeout {self.navigation_timeout_ms}ms)")
        try:
            await page.goto(target.url, timeout_ms=self.navigation_timeout_ms, idle_ms=self.network_idle_ms)
        except DriverTimeoutError as e:
            logger.warning(f"Navigation timeout for {target.url}: {e}")
            raise NavigationTimeout(url=target.url, detail=str(e)) from e
        except DriverNetworkError as e:
            logger.warning(f"Site unreachable {target.url}: {e}")
            raise SiteUnreachable(url=target.url, detail=str(e)) from e
        except Exception as e:
            if NETWORK_ERROR_MARKER in str(e):
                logger.warning(f"Site unreachable {target.url}: {e}")
                raise SiteUnreachable(url=target.url, detail=str(e)) from e
            logger.exception(f"Navigation failed for {target.url}")
            raise UnknownExecutionError(_message(e), url=target.url, detail=repr(e)) from e


def _message(exc: Exception) -> Optional[str]:
    return str(exc) or None
