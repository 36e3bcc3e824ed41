from fastapi import Request

from accesscheck.features.accessibility.services.scan.pipeline import ScanPipeline


def get_scan_pipeline(request: Request) -> ScanPipeline:
    """The process-wide pipeline built at startup (see accesscheck.main.lifespan)."""
    return request.app.state.scan_pipeline
