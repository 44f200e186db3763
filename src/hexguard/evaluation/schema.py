# src/hexguard/evaluation/schema.py
"""Schema and normalization for model-produced evaluations.

The evaluator's JSON is untrusted. It crosses into the system only through
normalize(), which:
1. rejects any key outside the twelve recognized fields
2. fills defaults (change_summary falls back to notes, then a fixed text;
   free-text fields default to "")
3. validates types and enums with Pydantic (extra fields forbidden)

An Assessment can only be built around a validated Evaluation, so nothing
partially validated ever reaches the safety gate.
"""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hexguard.contracts import DependencyKind, SafetyMode

SecurityStatus = Literal["none", "concern", "unknown"]
BreakingStatus = Literal["none", "concern", "unknown"]
Compatibility = Literal["compatible", "incompatible", "unknown"]

ALLOWED_KEYS: tuple[str, ...] = (
    "safe",
    "security_status",
    "security_concerns",
    "breaking_status",
    "breaking_changes",
    "compatibility",
    "security_change_summary",
    "security_notes",
    "compatibility_change_summary",
    "compatibility_notes",
    "change_summary",
    "notes",
)
TEXT_KEYS: tuple[str, ...] = (
    "security_change_summary",
    "security_notes",
    "compatibility_change_summary",
    "compatibility_notes",
    "notes",
)
FALLBACK_CHANGE_SUMMARY = "No summary provided by evaluator."

_BLOCKING_SECURITY: frozenset[str] = frozenset({"concern", "unknown"})
_BLOCKING_BREAKING: frozenset[str] = frozenset({"concern", "unknown"})
_BLOCKING_COMPATIBILITY: frozenset[str] = frozenset({"incompatible", "unknown"})


class Evaluation(BaseModel):
    """A validated risk evaluation of one version change."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=False)

    safe: bool
    security_status: SecurityStatus
    security_concerns: tuple[str, ...]
    breaking_status: BreakingStatus
    breaking_changes: tuple[str, ...]
    compatibility: Compatibility
    security_change_summary: str = ""
    security_notes: str = ""
    compatibility_change_summary: str = ""
    compatibility_notes: str = ""
    change_summary: str = Field(min_length=1)
    notes: str = ""

    def is_unsafe(self, mode: SafetyMode = SafetyMode.SECURITY_ONLY) -> bool:
        """Whether this evaluation must block the update under the given policy.

        Security verdicts block in every mode; breaking-change and
        compatibility verdicts block only in STRICT mode.
        """
        if not self.safe or self.security_status in _BLOCKING_SECURITY:
            return True
        if mode is SafetyMode.STRICT:
            return (
                self.breaking_status in _BLOCKING_BREAKING
                or self.compatibility in _BLOCKING_COMPATIBILITY
            )
        return False


class Assessment(BaseModel):
    """An Evaluation plus the provenance of the change it describes."""

    model_config = ConfigDict(frozen=True)

    dep: str
    from_version: str
    to_version: str
    kind: DependencyKind
    diff_url: str
    diff_path: str
    evaluation: Evaluation

    @property
    def label(self) -> str:
        return f"{self.dep} {self.from_version} -> {self.to_version}"

    def to_context(self) -> dict[str, Any]:
        """Plain-data form for blocked reports."""
        return self.model_dump(mode="json")


@dataclass(frozen=True)
class EvaluationResult:
    """Result of normalizing an evaluator payload.

    Use the factory methods to create instances.
    """

    status: Literal["success", "error"]
    evaluation: Evaluation | None
    reason: str | None

    @classmethod
    def success(cls, evaluation: Evaluation) -> "EvaluationResult":
        return cls(status="success", evaluation=evaluation, reason=None)

    @classmethod
    def error(cls, reason: str) -> "EvaluationResult":
        return cls(status="error", evaluation=None, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == "success"


def normalize(parsed: Any) -> EvaluationResult:
    """Validate and normalize a decoded evaluator payload.

    Args:
        parsed: Value decoded from the evaluator's JSON reply

    Returns:
        EvaluationResult.success with a frozen Evaluation, or
        EvaluationResult.error naming the problem. Never raises.
    """
    if not isinstance(parsed, dict):
        return EvaluationResult.error("opencode output did not decode to a JSON object")

    unknown_keys = [key for key in parsed if key not in ALLOWED_KEYS]
    if unknown_keys:
        return EvaluationResult.error(
            f"opencode output included unexpected keys: {', '.join(map(str, unknown_keys))}"
        )

    payload = dict(parsed)
    for key in TEXT_KEYS:
        if payload.get(key) is None:
            payload[key] = ""
    if parsed.get("change_summary") is not None:
        payload["change_summary"] = parsed["change_summary"]
    elif parsed.get("notes") is not None:
        payload["change_summary"] = parsed["notes"]
    else:
        payload["change_summary"] = FALLBACK_CHANGE_SUMMARY

    try:
        evaluation = Evaluation.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc']) or '<root>'}: {error['msg']}"
            for error in e.errors()
        )
        return EvaluationResult.error(
            f"opencode output did not match expected schema: {problems}"
        )
    return EvaluationResult.success(evaluation)
