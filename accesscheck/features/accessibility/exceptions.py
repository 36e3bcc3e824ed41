"""
Scan errors

Closed vocabulary of failures the scan pipeline can surface. Every failure
raised past the pipeline boundary is one of these; route handlers map the
kind to an HTTP status without inspecting messages.
"""
from enum import Enum
from typing import Optional

from fastapi import status


class ScanErrorKind(str, Enum):
    INVALID_FORMAT = "INVALID_FORMAT"
    UNSUPPORTED_SCHEME = "UNSUPPORTED_SCHEME"
    INTERNAL_TARGET = "INTERNAL_TARGET"
    TOO_LONG = "TOO_LONG"
    RATE_LIMITED = "RATE_LIMITED"
    LAUNCH_FAILURE = "LAUNCH_FAILURE"
    NAVIGATION_TIMEOUT = "NAVIGATION_TIMEOUT"
    SITE_UNREACHABLE = "SITE_UNREACHABLE"
    UNKNOWN_EXECUTION_ERROR = "UNKNOWN_EXECUTION_ERROR"


ERROR_STATUS_CODES = {
    ScanErrorKind.INVALID_FORMAT: status.HTTP_400_BAD_REQUEST,
    ScanErrorKind.UNSUPPORTED_SCHEME: status.HTTP_400_BAD_REQUEST,
    ScanErrorKind.INTERNAL_TARGET: status.HTTP_400_BAD_REQUEST,
    ScanErrorKind.TOO_LONG: status.HTTP_400_BAD_REQUEST,
    ScanErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ScanErrorKind.LAUNCH_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ScanErrorKind.NAVIGATION_TIMEOUT: status.HTTP_408_REQUEST_TIMEOUT,
    ScanErrorKind.SITE_UNREACHABLE: status.HTTP_400_BAD_REQUEST,
    ScanErrorKind.UNKNOWN_EXECUTION_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ScanError(Exception):
    kind: ScanErrorKind = ScanErrorKind.UNKNOWN_EXECUTION_ERROR
    default_message = "The site could not be scanned."

    def __init__(self, message: Optional[str] = None, *, url: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.url = url
        self.detail = detail
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES[self.kind]

    def to_dict(self) -> dict:
        data = {"error": self.kind.value, "message": self.message}
        if self.url:
            data["url"] = self.url
        return data


class UrlValidationError(ScanError):
    """Raised by the URL validator; ``kind`` names the rejected rule."""

    default_message = "Invalid URL."

    def __init__(self, kind: ScanErrorKind, message: Optional[str] = None, *, url: Optional[str] = None):
        self.kind = kind
        super().__init__(message, url=url)


class RateLimitedError(ScanError):
    kind = ScanErrorKind.RATE_LIMITED
    default_message = "Too many requests."

    def __init__(self, decision, limit: int, message: Optional[str] = None):
        self.decision = decision
        self.limit = limit
        super().__init__(message)


class LaunchFailure(ScanError):
    kind = ScanErrorKind.LAUNCH_FAILURE
    default_message = "The browser could not be started. Try again later."


class NavigationTimeout(ScanError):
    kind = ScanErrorKind.NAVIGATION_TIMEOUT
    default_message = "Timeout: the site took too long to load (>30s)."


class SiteUnreachable(ScanError):
    kind = ScanErrorKind.SITE_UNREACHABLE
    default_message = "The site could not be reached. Check that the URL is online."


class UnknownExecutionError(ScanError):
    kind = ScanErrorKind.UNKNOWN_EXECUTION_ERROR
