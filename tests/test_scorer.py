"""Tests for score aggregation and routing."""

from checkout_risk.models import RiskAction, RuleResult
from checkout_risk.screening.scorer import aggregate_results, route


def fired(factor, delta, key=None):
    return RuleResult(
        factor=factor,
        detail_key=key or factor.lower(),
        triggered=True,
        score_delta=delta,
        details={"fired": True},
    )


def quiet(factor):
    return RuleResult(factor=factor, detail_key=factor.lower(), triggered=False, score_delta=0)


class TestAggregateResults:
    def test_nothing_triggered(self):
        assessment = aggregate_results([quiet("A"), quiet("B")])
        assert assessment.score == 0
        assert assessment.factors == []
        assert assessment.details == {}

    def test_scores_sum(self):
        assessment = aggregate_results([fired("A", 25), quiet("B"), fired("C", 15)])
        assert assessment.score == 40
        assert assessment.factors == ["A", "C"]
        assert set(assessment.details) == {"a", "c"}

    def test_score_capped_at_100(self):
        assessment = aggregate_results([fired("A", 60), fired("B", 60)])
        assert assessment.score == 100

    def test_adding_a_factor_never_lowers_score(self):
        base = [fired("A", 25), fired("B", 20)]
        extra = fired("C", 15)
        assert aggregate_results(base + [extra]).score > aggregate_results(base).score

    def test_order_independent(self):
        results = [fired("A", 25), fired("B", 20), fired("C", 15)]
        assert aggregate_results(results).score == aggregate_results(results[::-1]).score

    def test_failed_open_details_kept(self):
        failed = RuleResult(
            factor="Unusual location",
            detail_key="locationAnalysis",
            triggered=False,
            score_delta=0,
            details={"error": "Failed to check location"},
            error="timeout",
        )
        assessment = aggregate_results([failed])
        assert assessment.score == 0
        assert assessment.factors == []
        assert assessment.details == {"locationAnalysis": {"error": "Failed to check location"}}

    def test_empty_results(self):
        assessment = aggregate_results([])
        assert assessment.score == 0


class TestRoute:
    def test_score_59_allows(self):
        assert route(59) is RiskAction.ALLOW

    def test_score_60_reviews(self):
        assert route(60) is RiskAction.REVIEW

    def test_score_79_reviews(self):
        assert route(79) is RiskAction.REVIEW

    def test_score_80_blocks(self):
        assert route(80) is RiskAction.BLOCK

    def test_custom_thresholds(self):
        assert route(50, high_threshold=40, critical_threshold=90) is RiskAction.REVIEW
        assert route(90, high_threshold=40, critical_threshold=90) is RiskAction.BLOCK
