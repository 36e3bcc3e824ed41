from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "Accessibility Checker"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Browser launch ──────────────────────────
    # Setting an executable path selects the containerized strategy.
    BROWSER_EXECUTABLE_PATH: Optional[str] = None
    DEPLOYMENT_MODE: Literal["local", "serverless"] = "local"
    CHROMEDRIVER_PATH: Optional[str] = None
    USE_WEBDRIVER_MANAGER: bool = False
    SERVERLESS_CHROMIUM_PATH: str = "/opt/chrome/chrome"
    SERVERLESS_CHROMEDRIVER_PATH: str = "/opt/chromedriver"
    BROWSER_DISABLE_SANDBOX: Optional[bool] = None
    BROWSER_EXTRA_ARGS: List[str] = []

    # ── Scanning ────────────────────────────────
    SCAN_NAVIGATION_TIMEOUT_MS: int = 30000
    SCAN_NETWORK_IDLE_MS: int = 500
    SCAN_USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 AccessibilityChecker/1.0"
    )
    AXE_SCRIPT_PATH: Optional[str] = None
    AXE_SCRIPT_URL: str = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.9.1/axe.min.js"

    # ── Rate limiting ───────────────────────────
    RATE_LIMIT_REQUESTS: int = 5
    RATE_LIMIT_WINDOW: int = 60000  # milliseconds
    RATE_LIMIT_CLEANUP_INTERVAL: int = 300000  # milliseconds

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
