from typing import Iterable

from accesscheck.features.accessibility.schemas.scan import ScanSummary, Severity, Violation

SEVERITY_PENALTIES = {
    Severity.CRITICAL.value: 10,
    Severity.SERIOUS.value: 5,
    Severity.MODERATE.value: 3,
    Severity.MINOR.value: 1,
}

MAX_SCORE = 100
MIN_SCORE = 0


def calculate_score(violations: Iterable[Violation]) -> int:
    """
    Calculate accessibility score (0-100) from violations.

    Starts at 100 and subtracts ``len(nodes) * penalty(impact)`` per violation:
    critical 10, serious 5, moderate 3, minor 1. Unknown impacts cost nothing.
    The total is clamped once, after every violation has been counted.
    """
    score = MAX_SCORE
    for violation in violations:
        score -= len(violation.nodes) * SEVERITY_PENALTIES.get(violation.impact, 0)

    return max(MIN_SCORE, min(MAX_SCORE, score))


def calculate_summary(violations: Iterable[Violation]) -> ScanSummary:
    """Count affected nodes (not violation records) per severity."""
    counts = {severity.value: 0 for severity in Severity}
    total = 0

    for violation in violations:
        count = len(violation.nodes)
        if violation.impact in counts:
            counts[violation.impact] += count
        total += count

    return ScanSummary(total=total, **counts)


def score_color(score: int) -> str:
    if score >= 90:
        return "green"
    elif score >= 70:
        return "yellow"
    elif score >= 50:
        return "orange"
    return "red"


def score_label(score: int) -> str:
    """Return a short verdict for the score, used by the results view."""
    if score >= 90:
        return "Excellent"
    elif score >= 70:
        return "Good"
    elif score >= 50:
        return "Needs Attention"
    return "Critical"
