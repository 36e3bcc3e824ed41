from fastapi import Request

from accesscheck.platform.logger import get_logger

logger = get_logger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Best-effort client address for rate limiting.

    Prefers the first hop of X-Forwarded-For, then X-Real-IP (both set by
    the reverse proxy in front of the service), then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    logger.warning("Could not determine client IP, falling back to shared 'unknown' bucket")
    return "unknown"
