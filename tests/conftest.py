"""
Test configuration and fixtures for the Accessibility Checker API.

Scan tests run against the in-memory browser and evaluator in tests/fakes.py
so no Chrome process is ever launched.
"""
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from accesscheck.features.accessibility.services.scan.executor import ScanExecutor
from accesscheck.features.accessibility.services.scan.pipeline import ScanPipeline
from accesscheck.platform.config import Settings
from accesscheck.platform.utils.rate_limit import RateLimiter
from tests.fakes import (
    CountingSessionManager,
    FakeBrowser,
    FakeDriver,
    FakeEvaluator,
    FakePage,
    make_violation,
)


@pytest.fixture
def local_settings() -> Settings:
    return Settings(
        BROWSER_EXECUTABLE_PATH=None,
        DEPLOYMENT_MODE="local",
        CHROMEDRIVER_PATH=None,
        BROWSER_DISABLE_SANDBOX=None,
        BROWSER_EXTRA_ARGS=[],
    )


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def fake_driver(fake_page) -> FakeDriver:
    return FakeDriver(FakeBrowser(fake_page))


@pytest.fixture
def fake_evaluator() -> FakeEvaluator:
    return FakeEvaluator(
        violations=[
            make_violation("color-contrast", "serious", node_count=2),
            make_violation("region", "minor", node_count=1),
        ],
        passes=[{"id": "html-has-lang"}, {"id": "document-title"}],
        incomplete=[{"id": "aria-hidden-focus"}],
    )


@pytest.fixture
def make_pipeline(local_settings):
    def _make(driver=None, evaluator=None, rate_limiter=None):
        manager = CountingSessionManager(driver or FakeDriver(), local_settings)
        executor = ScanExecutor(evaluator or FakeEvaluator(), navigation_timeout_ms=30000, network_idle_ms=500)
        return ScanPipeline(session_manager=manager, executor=executor, rate_limiter=rate_limiter)

    return _make


@pytest.fixture
def test_app():
    """Create a fresh FastAPI application."""
    from accesscheck.main import create_app

    return create_app()


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def scan_client(test_app, fake_driver, fake_evaluator, make_pipeline):
    """Client whose scan pipeline runs against the in-memory browser."""
    from accesscheck.features.accessibility.dependencies import get_scan_pipeline

    pipeline = make_pipeline(
        driver=fake_driver,
        evaluator=fake_evaluator,
        rate_limiter=RateLimiter(max_requests=5, window_ms=60000),
    )
    test_app.dependency_overrides[get_scan_pipeline] = lambda: pipeline

    with TestClient(test_app) as test_client:
        test_client.pipeline = pipeline
        yield test_client

    test_app.dependency_overrides.pop(get_scan_pipeline, None)
