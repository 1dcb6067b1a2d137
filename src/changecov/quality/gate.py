"""Pass/fail verdicts against configured thresholds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class GateThresholds:
    """A threshold of None leaves that gate unconfigured."""

    min_coverage_rate: float | None = 80.0
    max_impact_size: int | None = None


@dataclass(frozen=True, slots=True)
class GateResult:
    name: str
    passed: bool
    value: float
    threshold: float
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "value": self.value,
            "threshold": self.threshold,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class GateVerdict:
    passed: bool
    gates: list[GateResult] = field(default_factory=list)

    @property
    def failed_gates(self) -> list[GateResult]:
        return [g for g in self.gates if not g.passed]

    def to_dict(self) -> dict[str, Any]:
        return {"passed": self.passed, "gates": [g.to_dict() for g in self.gates]}


class QualityGateEvaluator:
    """Evaluates coverage and impact size; never raises on a failing gate."""

    def evaluate(
        self, coverage_rate: float, impact_size: int, thresholds: GateThresholds
    ) -> GateVerdict:
        gates: list[GateResult] = []

        if thresholds.min_coverage_rate is not None:
            passed = coverage_rate >= thresholds.min_coverage_rate
            gates.append(
                GateResult(
                    name="coverage",
                    passed=passed,
                    value=coverage_rate,
                    threshold=thresholds.min_coverage_rate,
                    message=(
                        f"Incremental coverage {coverage_rate:g}% "
                        f"{'meets' if passed else 'is below'} {thresholds.min_coverage_rate:g}%"
                    ),
                )
            )

        if thresholds.max_impact_size is not None:
            passed = impact_size <= thresholds.max_impact_size
            gates.append(
                GateResult(
                    name="impact",
                    passed=passed,
                    value=impact_size,
                    threshold=thresholds.max_impact_size,
                    message=(
                        f"{impact_size} impacted pages/components "
                        f"{'within' if passed else 'exceeds'} limit {thresholds.max_impact_size}"
                    ),
                )
            )

        return GateVerdict(passed=all(g.passed for g in gates), gates=gates)
