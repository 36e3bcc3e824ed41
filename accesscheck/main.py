import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accesscheck.api_routers.v1 import api_router
from accesscheck.features.accessibility.services.analysis.result_reducer import ResultReducer
from accesscheck.features.accessibility.services.browser.selenium_driver import SeleniumDriver
from accesscheck.features.accessibility.services.browser.session import BrowserSessionManager
from accesscheck.features.accessibility.services.evaluation.axe_evaluator import AxeEvaluator
from accesscheck.features.accessibility.services.scan.executor import ScanExecutor
from accesscheck.features.accessibility.services.scan.pipeline import ScanPipeline
from accesscheck.features.health.routes.health import router as health_router
from accesscheck.platform.config import Settings, get_settings
from accesscheck.platform.exceptions import add_exception_handlers
from accesscheck.platform.utils.rate_limit import RateLimiter

# Configure logging to show INFO level messages
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def build_rate_limiter(settings: Settings) -> RateLimiter:
    return RateLimiter(
        max_requests=settings.RATE_LIMIT_REQUESTS,
        window_ms=settings.RATE_LIMIT_WINDOW,
        cleanup_interval_ms=settings.RATE_LIMIT_CLEANUP_INTERVAL,
    )


def build_scan_pipeline(settings: Settings, rate_limiter: RateLimiter) -> ScanPipeline:
    return ScanPipeline(
        session_manager=BrowserSessionManager(SeleniumDriver(), settings),
        executor=ScanExecutor.from_settings(AxeEvaluator.from_settings(settings), settings),
        reducer=ResultReducer(),
        rate_limiter=rate_limiter,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    rate_limiter = build_rate_limiter(settings)
    app.state.rate_limiter = rate_limiter
    app.state.scan_pipeline = build_scan_pipeline(settings, rate_limiter)

    rate_limiter.start()
    try:
        yield
    finally:
        await rate_limiter.stop()


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Automated WCAG accessibility checks for public web pages",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # Root endpoint for basic info
    @app.get("/", tags=["Info"])
    def root():
        return {
            "app_name": f"{settings.APP_NAME} API",
            "description": "Scans a public URL against WCAG 2.0/2.1 A and AA rules.",
            "version": "1.0.0",
            "docs_url": "/docs",
            "api_base": "/api/v1",
        }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
