"""
Fixed-window, in-memory rate limiter.

Per-process only: several workers each keep their own counts. A client can
get up to 2N-1 requests through across a window boundary; that is a
property of the fixed window, not a bug.
"""
import asyncio
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

from accesscheck.platform.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_REQUESTS = 5
DEFAULT_WINDOW_MS = 60_000
DEFAULT_CLEANUP_INTERVAL_MS = 5 * 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class RateLimitRecord:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    limited: bool
    remaining: int
    reset_at: float


class RateLimiter:
    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_ms: int = DEFAULT_WINDOW_MS,
        cleanup_interval_ms: int = DEFAULT_CLEANUP_INTERVAL_MS,
        clock: Callable[[], float] = _now_ms,
    ):
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.cleanup_interval_ms = cleanup_interval_ms
        self._clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    def check(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and report whether it is over the limit."""
        with self._lock:
            now = self._clock()
            record = self._records.get(key)

            if record is None or now > record.reset_at:
                record = RateLimitRecord(count=1, reset_at=now + self.window_ms)
                self._records[key] = record
                return RateLimitDecision(False, self.max_requests - 1, record.reset_at)

            record.count += 1
            if record.count > self.max_requests:
                return RateLimitDecision(True, 0, record.reset_at)

            return RateLimitDecision(False, self.max_requests - record.count, record.reset_at)

    def reset(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def sweep(self) -> int:
        """Drop expired records. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, record in self._records.items() if now > record.reset_at]
            for key in expired:
                del self._records[key]
        if expired:
            logger.debug(f"Rate limiter sweep removed {len(expired)} expired records")
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)

    # ── Background sweep ────────────────────────

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval_ms / 1000)
            self.sweep()

    def start(self) -> None:
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_forever())
            logger.info(
                f"Rate limiter started: {self.max_requests} requests / {self.window_ms}ms, "
                f"sweep every {self.cleanup_interval_ms}ms"
            )

    async def stop(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


def rate_limit_headers(decision: RateLimitDecision, limit: int, now_ms: Optional[float] = None) -> Dict[str, str]:
    """Response metadata for a rate-limit decision; adds Retry-After when limited."""
    headers = {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(int(decision.reset_at)),
    }
    if decision.limited:
        now_ms = _now_ms() if now_ms is None else now_ms
        headers["Retry-After"] = str(max(0, math.ceil((decision.reset_at - now_ms) / 1000)))
    return headers
