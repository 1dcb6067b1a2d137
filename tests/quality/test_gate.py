"""Tests for quality gate evaluation."""

import pytest

from changecov.quality.gate import GateThresholds, QualityGateEvaluator


@pytest.fixture
def evaluator() -> QualityGateEvaluator:
    return QualityGateEvaluator()


class TestCoverageGate:
    @pytest.mark.parametrize(("rate", "passed"), [(80, True), (100, True), (79, False), (0, False)])
    def test_threshold_is_inclusive(
        self, evaluator: QualityGateEvaluator, rate: int, passed: bool
    ) -> None:
        verdict = evaluator.evaluate(rate, 0, GateThresholds(min_coverage_rate=80))

        assert verdict.passed is passed
        assert verdict.gates[0].name == "coverage"
        assert verdict.gates[0].passed is passed

    def test_failure_message(self, evaluator: QualityGateEvaluator) -> None:
        verdict = evaluator.evaluate(50, 0, GateThresholds(min_coverage_rate=80))

        assert verdict.gates[0].message == "Incremental coverage 50% is below 80%"


class TestImpactGate:
    def test_within_limit(self, evaluator: QualityGateEvaluator) -> None:
        verdict = evaluator.evaluate(
            100, 5, GateThresholds(min_coverage_rate=None, max_impact_size=5)
        )

        assert verdict.passed
        assert [g.name for g in verdict.gates] == ["impact"]

    def test_exceeds_limit(self, evaluator: QualityGateEvaluator) -> None:
        verdict = evaluator.evaluate(
            100, 6, GateThresholds(min_coverage_rate=None, max_impact_size=5)
        )

        assert not verdict.passed
        assert verdict.gates[0].message == "6 impacted pages/components exceeds limit 5"


class TestVerdict:
    def test_partial_failure_is_reported_per_gate(self, evaluator: QualityGateEvaluator) -> None:
        verdict = evaluator.evaluate(90, 12, GateThresholds(min_coverage_rate=80, max_impact_size=10))

        assert not verdict.passed
        assert [g.passed for g in verdict.gates] == [True, False]
        assert [g.name for g in verdict.failed_gates] == ["impact"]

    def test_no_configured_gates_pass(self, evaluator: QualityGateEvaluator) -> None:
        verdict = evaluator.evaluate(0, 100, GateThresholds(min_coverage_rate=None))

        assert verdict.passed
        assert verdict.gates == []

    def test_to_dict(self, evaluator: QualityGateEvaluator) -> None:
        verdict = evaluator.evaluate(85, 0, GateThresholds(min_coverage_rate=80))

        assert verdict.to_dict() == {
            "passed": True,
            "gates": [
                {
                    "name": "coverage",
                    "passed": True,
                    "value": 85,
                    "threshold": 80,
                    "message": "Incremental coverage 85% meets 80%",
                }
            ],
        }
