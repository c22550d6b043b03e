"""Score aggregation and routing.

The score is DETERMINISTIC: same input + same history = same output.
Triggered heuristics add their weight, and the total is capped at 100.
Routing thresholds are closed on the lower bound:
  - score >= critical -> BLOCK
  - score >= high     -> REVIEW (allowed, queued for a human)
  - otherwise         -> ALLOW
"""

from checkout_risk.models import RiskAction, RiskAssessment, RuleResult


def aggregate_results(rule_results: list[RuleResult]) -> RiskAssessment:
    """Combine heuristic results into a single assessment.

    Details are kept for every triggered heuristic, and for heuristics that
    failed open so the failure stays visible.
    """
    total_score = 0
    factors: list[str] = []
    details: dict = {}

    for result in rule_results:
        if result.triggered:
            total_score += result.score_delta
            factors.append(result.factor)
            details[result.detail_key] = result.details
        elif result.error is not None:
            details[result.detail_key] = result.details

    # Cap the cumulative score at 100
    total_score = max(0, min(total_score, 100))

    return RiskAssessment(score=total_score, factors=factors, details=details)


def route(score: int, high_threshold: int = 60, critical_threshold: int = 80) -> RiskAction:
    if score >= critical_threshold:
        return RiskAction.BLOCK
    if score >= high_threshold:
        return RiskAction.REVIEW
    return RiskAction.ALLOW
