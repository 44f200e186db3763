"""Evaluation of dependency diffs: schema, decoding, safety gate, simulation."""

from hexguard.evaluation.output import (
    EvaluationError,
    decode_json_from_output,
    extract_text_output,
    merge_evaluations,
)
from hexguard.evaluation.safety import GateDecision, ensure_safe
from hexguard.evaluation.schema import (
    ALLOWED_KEYS,
    FALLBACK_CHANGE_SUMMARY,
    Assessment,
    Evaluation,
    EvaluationResult,
    normalize,
)
from hexguard.evaluation.simulation import marker_present

__all__ = [
    "ALLOWED_KEYS",
    "FALLBACK_CHANGE_SUMMARY",
    "Assessment",
    "Evaluation",
    "EvaluationError",
    "EvaluationResult",
    "GateDecision",
    "decode_json_from_output",
    "ensure_safe",
    "extract_text_output",
    "marker_present",
    "merge_evaluations",
    "normalize",
]
