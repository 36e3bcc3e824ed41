from datetime import datetime, timezone
from typing import Any, Dict, List

from accesscheck.features.accessibility.schemas.scan import (
    RawEvaluation,
    ScanResult,
    Violation,
    ViolationNode,
)
from accesscheck.features.accessibility.services.analysis.score_calculator import (
    calculate_score,
    calculate_summary,
)


class ResultReducer:
    """Turns raw evaluator output into an immutable ScanResult."""

    @staticmethod
    def transform_node(raw_node: Dict[str, Any]) -> ViolationNode:
        return ViolationNode(
            html=raw_node.get("html") or "",
            target=[_selector(selector) for selector in raw_node.get("target") or []],
            failure_summary=raw_node.get("failureSummary") or "",
        )

    @staticmethod
    def transform_violations(raw_violations: List[Dict[str, Any]]) -> List[Violation]:
        """Map evaluator violations 1:1, keeping the evaluator's order."""
        return [
            Violation(
                id=raw["id"],
                impact=raw.get("impact"),
                description=raw.get("description") or "",
                help=raw.get("help") or "",
                help_url=raw.get("helpUrl") or "",
                tags=list(raw.get("tags") or []),
                nodes=[ResultReducer.transform_node(node) for node in raw.get("nodes") or []],
            )
            for raw in raw_violations
        ]

    def reduce(self, raw: RawEvaluation) -> ScanResult:
        violations = self.transform_violations(raw.violations)

        return ScanResult(
            url=raw.url,
            score=calculate_score(violations),
            timestamp=datetime.now(timezone.utc),
            violations=violations,
            passes=len(raw.passes),
            incomplete=len(raw.incomplete),
            summary=calculate_summary(violations),
        )


def _selector(selector: Any) -> str:
    # Shadow DOM targets arrive as a list of selectors, outermost host first.
    if isinstance(selector, (list, tuple)):
        return " ".join(str(part) for part in selector)
    return str(selector)
