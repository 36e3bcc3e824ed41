from dataclasses import dataclass
from urllib.parse import quote, urlparse

from accesscheck.features.accessibility.exceptions import ScanErrorKind, UrlValidationError

MAX_URL_LENGTH = 2000
ALLOWED_SCHEMES = ("http", "https")
BLOCKED_HOSTS = ("localhost", "127.0.0.1")
BLOCKED_HOST_PREFIXES = ("192.168.", "10.", "172.")

# Browsers drop tabs and newlines anywhere in a URL before parsing it.
_DROPPED_CHARS = str.maketrans("", "", "\t\n\r")


@dataclass(frozen=True)
class ScanTarget:
    """A URL that passed validation. Only ``validate_url`` builds these."""
    url: str
    scheme: str
    hostname: str


def _encode_whitespace(part: str) -> str:
    return "".join(quote(ch) if ch.isspace() else ch for ch in part)


def validate_url(url: str) -> ScanTarget:
    """
    Purely lexical check of a candidate scan URL. Never prepends a scheme
    and never touches the network.

    Whitespace is handled the way a browser's URL parser does: leading and
    trailing whitespace is stripped, tabs and newlines are dropped, and any
    other whitespace in the path, query or fragment is percent-encoded into
    ``ScanTarget.url``. Whitespace inside the host is rejected.

    Raises:
        UrlValidationError: with kind INVALID_FORMAT, UNSUPPORTED_SCHEME,
            INTERNAL_TARGET or TOO_LONG.
    """
    if not isinstance(url, str) or not url.strip():
        raise UrlValidationError(ScanErrorKind.INVALID_FORMAT, "Invalid URL format.", url=url)

    candidate = url.strip().translate(_DROPPED_CHARS)
    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
        parsed.port  # raises ValueError on a malformed port
    except ValueError:
        raise UrlValidationError(ScanErrorKind.INVALID_FORMAT, "Invalid URL format.", url=url)

    if not parsed.scheme:
        raise UrlValidationError(ScanErrorKind.INVALID_FORMAT, "Invalid URL format.", url=url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise UrlValidationError(
            ScanErrorKind.UNSUPPORTED_SCHEME,
            f"Invalid URL scheme: {parsed.scheme} (must be http or https)",
            url=url,
        )

    if not parsed.netloc or not hostname:
        raise UrlValidationError(ScanErrorKind.INVALID_FORMAT, "Invalid URL format: missing domain", url=url)

    if any(ch.isspace() for ch in parsed.netloc):
        raise UrlValidationError(ScanErrorKind.INVALID_FORMAT, "Invalid URL format.", url=url)

    hostname = hostname.lower()
    if hostname in BLOCKED_HOSTS or hostname.startswith(BLOCKED_HOST_PREFIXES):
        raise UrlValidationError(
            ScanErrorKind.INTERNAL_TARGET,
            "Local or internal URLs cannot be scanned.",
            url=url,
        )

    if len(url) > MAX_URL_LENGTH:
        raise UrlValidationError(ScanErrorKind.TOO_LONG, "URL is too long.", url=url)

    return ScanTarget(url=_encode_whitespace(candidate), scheme=parsed.scheme, hostname=hostname)
