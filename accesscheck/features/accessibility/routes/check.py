from fastapi import APIRouter, Depends, Request, status

from accesscheck.features.accessibility.dependencies import get_scan_pipeline
from accesscheck.features.accessibility.schemas.scan import CheckRequest, CheckResponse
from accesscheck.features.accessibility.services.analysis.score_calculator import (
    score_color,
    score_label,
)
from accesscheck.features.accessibility.services.scan.pipeline import ScanPipeline
from accesscheck.platform.logger import get_logger
from accesscheck.platform.response import api_response
from accesscheck.platform.utils.device import get_client_ip
from accesscheck.platform.utils.rate_limit import rate_limit_headers

logger = get_logger(__name__)

router = APIRouter(tags=["accessibility"])


def _bad_request(error: str, message: str, headers=None):
    return api_response(
        data={"error": error, "message": message},
        message=message,
        status_code=status.HTTP_400_BAD_REQUEST,
        headers=headers,
    )


@router.post("/check")
async def check_accessibility(
    request: Request,
    pipeline: ScanPipeline = Depends(get_scan_pipeline),
):
    """
    Scan a single public URL for WCAG 2.0/2.1 A and AA violations.

    Body: {"url": "https://example.com"}
    """
    # 1. Admission control, before any parsing work
    client_ip = get_client_ip(request)
    decision = pipeline.admit(client_ip)
    headers = None
    if decision is not None:
        headers = rate_limit_headers(decision, pipeline.rate_limiter.max_requests)

    # 2. Body
    try:
        body = CheckRequest.model_validate(await request.json())
    except ValueError:
        return _bad_request("INVALID_JSON", "Request body must be valid JSON.", headers)

    if not body.url or not isinstance(body.url, str):
        return _bad_request("MISSING_URL", 'The "url" field is required and must be a string.', headers)

    url = body.url.strip()
    if not url:
        return _bad_request("EMPTY_URL", "The URL cannot be empty.", headers)

    # 3. Scan; ScanError is rendered by the app-level handler
    logger.info(f"Accessibility check requested for {url} by {client_ip}")
    result = await pipeline.scan(url)

    response = CheckResponse(
        **result.model_dump(),
        score_label=score_label(result.score),
        score_color=score_color(result.score),
    )
    return api_response(
        data=response.model_dump(by_alias=True),
        message="Scan completed",
        status_code=status.HTTP_200_OK,
        headers=headers,
    )
