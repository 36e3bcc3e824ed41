import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from accesscheck.features.accessibility.exceptions import RateLimitedError, ScanError
from accesscheck.platform.response import api_response
from accesscheck.platform.utils.rate_limit import rate_limit_headers

logger = logging.getLogger(__name__)


def add_exception_handlers(app):
    @app.exception_handler(ScanError)
    async def scan_exception_handler(request: Request, exc: ScanError):
        headers = None
        message = exc.message

        if isinstance(exc, RateLimitedError):
            headers = rate_limit_headers(exc.decision, exc.limit)
            message = f"Too many requests. Try again in {headers['Retry-After']} seconds."
        elif exc.status_code >= 500:
            logger.error(f"Scan failed with {exc.kind.value}: {exc.detail or exc.message}")

        data = exc.to_dict()
        data["message"] = message
        return api_response(data=data, message=message, status_code=exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(
            message=str(exc.detail) or "Error",
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
