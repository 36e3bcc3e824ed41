"""
Scan Schemas

Request and response models for the accessibility check endpoint, plus the
raw evaluator payload handed from the executor to the reducer.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"


# ============================================================================
# Evaluator output
# ============================================================================

class RawEvaluation(BaseModel):
    """Evaluator collections exactly as returned, not yet interpreted."""
    url: str
    violations: List[Dict[str, Any]] = Field(default_factory=list)
    passes: List[Dict[str, Any]] = Field(default_factory=list)
    incomplete: List[Dict[str, Any]] = Field(default_factory=list)


# ============================================================================
# Scan result
# ============================================================================

class ViolationNode(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    html: str
    target: List[str]
    failure_summary: str = Field("", alias="failureSummary")


class Violation(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    # Kept as a plain string so an unexpected severity never fails a scan.
    impact: Optional[str] = None
    description: str = ""
    help: str = ""
    help_url: str = Field("", alias="helpUrl")
    tags: List[str] = Field(default_factory=list)
    nodes: List[ViolationNode] = Field(default_factory=list)


class ScanSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0
    total: int = 0


class ScanResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    score: int = Field(..., ge=0, le=100)
    timestamp: datetime
    violations: List[Violation]
    passes: int
    incomplete: int
    summary: ScanSummary


# ============================================================================
# API
# ============================================================================

class CheckRequest(BaseModel):
    """Body of POST /check. ``url`` is checked by hand so errors keep their codes."""
    url: Optional[Any] = None

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com",
            }
        }


class CheckResponse(ScanResult):
    score_label: str = Field(..., alias="scoreLabel")
    score_color: str = Field(..., alias="scoreColor")
