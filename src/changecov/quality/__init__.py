"""Quality gates."""

from changecov.quality.gate import GateResult, GateThresholds, GateVerdict, QualityGateEvaluator

__all__ = [
    "GateResult",
    "GateThresholds",
    "GateVerdict",
    "QualityGateEvaluator",
]
