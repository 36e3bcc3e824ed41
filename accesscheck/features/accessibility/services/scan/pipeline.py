"""
Scan pipeline

Validate -> launch -> execute -> reduce, strictly in order and without
retries. Every failure leaves as a ScanError, and the browser session is
released before control returns to the caller.
"""
import time
from typing import Callable, Optional

from accesscheck.features.accessibility.exceptions import (
    RateLimitedError,
    ScanError,
    UnknownExecutionError,
    UrlValidationError,
)
from accesscheck.features.accessibility.schemas.scan import ScanResult
from accesscheck.features.accessibility.services.analysis.result_reducer import ResultReducer
from accesscheck.features.accessibility.services.browser.session import BrowserSessionManager
from accesscheck.features.accessibility.services.scan.executor import ScanExecutor
from accesscheck.features.accessibility.utils.url_validator import ScanTarget, validate_url
from accesscheck.platform.logger import get_logger
from accesscheck.platform.utils.rate_limit import RateLimitDecision, RateLimiter

logger = get_logger(__name__)


class ScanPipeline:
    def __init__(
        self,
        session_manager: BrowserSessionManager,
        executor: ScanExecutor,
        reducer: Optional[ResultReducer] = None,
        rate_limiter: Optional[RateLimiter] = None,
        validator: Callable[[str], ScanTarget] = validate_url,
    ):
        self.session_manager = session_manager
        self.executor = executor
        self.reducer = reducer or ResultReducer()
        self.rate_limiter = rate_limiter
        self.validator = validator

    def admit(self, client_id: str) -> Optional[RateLimitDecision]:
        """Count a request against ``client_id``; raises RateLimitedError when over the limit."""
        if self.rate_limiter is None:
            return None

        decision = self.rate_limiter.check(client_id)
        if decision.limited:
            logger.warning(f"Rate limit exceeded for client {client_id}")
            raise RateLimitedError(decision, limit=self.rate_limiter.max_requests)
        return decision

    async def scan(self, url: str) -> ScanResult:
        try:
            target = self.validator(url)
        except UrlValidationError as e:
            logger.info(f"Rejected scan target {url!r}: {e.kind.value}")
            raise

        started = time.perf_counter()
        session = await self.session_manager.acquire()
        try:
            raw = await self.executor.execute(target, session)
            result = self.reducer.reduce(raw)
        except ScanError as e:
            logger.warning(f"Scan of {target.url} failed with {e.kind.value}: {e.message}")
            raise
        except Exception as e:
            logger.exception(f"Unexpected failure while scanning {target.url}")
            raise UnknownExecutionError(str(e) or None, url=target.url, detail=repr(e)) from e
        finally:
            await self.session_manager.release(session)

        logger.info(
            f"Scan of {target.url} finished in {time.perf_counter() - started:.2f}s: "
            f"score={result.score}, issues={result.summary.total}"
        )
        return result

    async def run(self, url: str, client_id: str) -> ScanResult:
        """Entry point: admission check, then the full scan."""
        self.admit(client_id)
        return await self.scan(url)
