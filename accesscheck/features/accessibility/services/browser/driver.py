"""
Browser driver contract

The scan code only talks to these protocols, so it can run against the
Selenium adapter in production and against in-memory fakes in tests.
"""
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple

VIEWPORT = (1920, 1080)

# Chrome reports network-level navigation failures as net::ERR_* codes.
NETWORK_ERROR_MARKER = "net::ERR_"


class DriverError(Exception):
    """Base for failures the driver adapter has already classified."""


class DriverTimeoutError(DriverError):
    """Navigation did not finish within its timeout."""


class DriverNetworkError(DriverError):
    """DNS, connection or TLS failure while reaching the target."""


@dataclass(frozen=True)
class LaunchOptions:
    args: Tuple[str, ...] = ()
    executable_path: Optional[str] = None
    driver_path: Optional[str] = None
    use_webdriver_manager: bool = False
    headless: bool = True
    viewport: Tuple[int, int] = VIEWPORT
    strategy: str = "local"


class PageHandle(Protocol):
    async def set_viewport(self, width: int, height: int) -> None: ...

    async def set_user_agent(self, user_agent: str) -> None: ...

    async def goto(self, url: str, timeout_ms: int, idle_ms: int = 500) -> None:
        """Navigate and wait for network activity to settle.

        Raises DriverTimeoutError / DriverNetworkError for the two failures
        the caller distinguishes; anything else propagates as-is.
        """
        ...

    async def run_script(self, script: str, *args: Any) -> Any: ...

    async def run_async_script(self, script: str, *args: Any) -> Any: ...

    async def close(self) -> None: ...


class BrowserHandle(Protocol):
    async def new_page(self) -> PageHandle: ...

    async def close(self) -> None: ...


class BrowserDriver(Protocol):
    async def launch(self, options: LaunchOptions) -> BrowserHandle: ...
