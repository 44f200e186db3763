# src/hexguard/evaluation/safety.py
"""Safety gate over a batch of assessments.

Pure function: scans in order and stops at the FIRST unsafe assessment.
Later unsafe assessments in the same batch are not reported.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from hexguard.contracts import SafetyMode
from hexguard.evaluation.schema import Assessment

_BLOCK_REASONS = {
    SafetyMode.STRICT: "unsafe or incompatible dependency change",
    SafetyMode.SECURITY_ONLY: "security concern detected in dependency change",
}


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the safety gate."""

    allowed: bool
    reason: str | None = None
    assessment: Assessment | None = None

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(allowed=True)

    @classmethod
    def block(cls, reason: str, assessment: Assessment) -> "GateDecision":
        return cls(allowed=False, reason=reason, assessment=assessment)


def ensure_safe(
    assessments: Sequence[Assessment],
    mode: SafetyMode = SafetyMode.SECURITY_ONLY,
) -> GateDecision:
    """Block on the first assessment that is unsafe under the policy mode."""
    for assessment in assessments:
        if assessment.evaluation.is_unsafe(mode):
            return GateDecision.block(_BLOCK_REASONS[mode], assessment)
    return GateDecision.allow()
