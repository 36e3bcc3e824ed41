"""
Browser launch strategies

Exactly one strategy applies per scan, resolved from configuration in this
order: a configured executable path (container), serverless deployment mode,
then local development. Sandboxing is a deployment concern: each strategy
has a default, and BROWSER_DISABLE_SANDBOX overrides it.
"""
import os
from enum import Enum
from typing import Optional, Tuple

from accesscheck.features.accessibility.exceptions import LaunchFailure
from accesscheck.features.accessibility.services.browser.driver import VIEWPORT, LaunchOptions
from accesscheck.platform.config import Settings

SANDBOX_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")
WINDOW_SIZE_ARG = f"--window-size={VIEWPORT[0]},{VIEWPORT[1]}"

CONTAINER_ARGS = (
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-sync",
    "--metrics-recording-only",
    "--mute-audio",
    "--no-first-run",
    "--safebrowsing-disable-auto-update",
    "--single-process",
    "--no-zygote",
    "--disable-crash-reporter",
    "--disable-breakpad",
)

SERVERLESS_ARGS = (
    "--allow-pre-commit-input",
    "--disable-background-networking",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-breakpad",
    "--disable-client-side-phishing-detection",
    "--disable-component-update",
    "--disable-default-apps",
    "--disable-dev-shm-usage",
    "--disable-extensions",
    "--disable-gpu",
    "--disable-hang-monitor",
    "--disable-ipc-flooding-protection",
    "--disable-popup-blocking",
    "--disable-prompt-on-repost",
    "--disable-renderer-backgrounding",
    "--disable-sync",
    "--hide-scrollbars",
    "--metrics-recording-only",
    "--mute-audio",
    "--no-first-run",
    "--no-zygote",
    "--single-process",
    "--password-store=basic",
    "--use-mock-keychain",
)

LOCAL_ARGS = (
    "--disable-dev-shm-usage",
    "--disable-gpu",
)


class StrategyKind(str, Enum):
    CONTAINER = "container"
    SERVERLESS = "serverless"
    LOCAL = "local"


class LaunchStrategy:
    kind: StrategyKind
    base_args: Tuple[str, ...] = ()
    sandbox_disabled_by_default = True

    def __init__(self, settings: Settings):
        self.settings = settings

    def disable_sandbox(self) -> bool:
        override: Optional[bool] = self.settings.BROWSER_DISABLE_SANDBOX
        return self.sandbox_disabled_by_default if override is None else override

    def build_args(self) -> Tuple[str, ...]:
        args = list(self.base_args)
        if self.disable_sandbox():
            args.extend(SANDBOX_ARGS)
        args.append(WINDOW_SIZE_ARG)
        args.extend(self.settings.BROWSER_EXTRA_ARGS)
        return tuple(args)

    def launch_options(self) -> LaunchOptions:
        raise NotImplementedError


class ContainerStrategy(LaunchStrategy):
    """System Chromium installed in the image, pointed to by BROWSER_EXECUTABLE_PATH."""

    kind = StrategyKind.CONTAINER
    base_args = CONTAINER_ARGS

    def launch_options(self) -> LaunchOptions:
        return LaunchOptions(
            args=self.build_args(),
            executable_path=self.settings.BROWSER_EXECUTABLE_PATH,
            driver_path=self.settings.CHROMEDRIVER_PATH,
            strategy=self.kind.value,
        )


class ServerlessStrategy(LaunchStrategy):
    """Managed headless Chromium shipped in a function layer.

    The binaries are looked up when a scan starts, not at import time, so the
    module stays importable on machines without the layer.
    """

    kind = StrategyKind.SERVERLESS
    base_args = SERVERLESS_ARGS

    def launch_options(self) -> LaunchOptions:
        chromium_path = self.settings.SERVERLESS_CHROMIUM_PATH
        if not os.path.exists(chromium_path):
            raise LaunchFailure(detail=f"Serverless Chromium binary not found at {chromium_path}")

        driver_path = self.settings.CHROMEDRIVER_PATH or self.settings.SERVERLESS_CHROMEDRIVER_PATH
        if not os.path.exists(driver_path):
            raise LaunchFailure(detail=f"Serverless chromedriver not found at {driver_path}")

        return LaunchOptions(
            args=self.build_args(),
            executable_path=chromium_path,
            driver_path=driver_path,
            strategy=self.kind.value,
        )


class LocalStrategy(LaunchStrategy):
    """Developer machine: whatever Chrome and chromedriver are installed locally."""

    kind = StrategyKind.LOCAL
    base_args = LOCAL_ARGS
    sandbox_disabled_by_default = False

    def launch_options(self) -> LaunchOptions:
        return LaunchOptions(
            args=self.build_args(),
            driver_path=self.settings.CHROMEDRIVER_PATH,
            use_webdriver_manager=self.settings.USE_WEBDRIVER_MANAGER,
            strategy=self.kind.value,
        )


def resolve_strategy(settings: Settings) -> LaunchStrategy:
    if settings.BROWSER_EXECUTABLE_PATH:
        return ContainerStrategy(settings)
    if settings.DEPLOYMENT_MODE == "serverless":
        return ServerlessStrategy(settings)
    return LocalStrategy(settings)
