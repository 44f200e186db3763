# src/hexguard/evaluation/output.py
"""Extracting the evaluator's JSON reply from opencode output.

opencode run --format json prints event lines; the model's answer lives in
the text events. The answer must be exactly one JSON object, optionally
fenced in a ```json block. Anything looser is rejected rather than guessed at.
"""

import json
import re
from typing import Any

from hexguard.evaluation.schema import FALLBACK_CHANGE_SUMMARY

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class EvaluationError(Exception):
    """The evaluator's output could not be turned into a JSON object."""


def extract_text_output(output: str) -> str:
    """Join the text parts of opencode JSON events.

    Falls back to the raw output when it holds no text events.
    """
    texts: list[str] = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(event, dict) or event.get("type") != "text":
            continue
        part = event.get("part")
        if isinstance(part, dict) and isinstance(part.get("text"), str):
            texts.append(part["text"])

    text = "\n".join(texts)
    return text if text else output


def decode_json_from_output(output: str) -> Any:
    """Decode the evaluator reply.

    Accepts a reply that is entirely JSON, or a fenced JSON object.

    Raises:
        EvaluationError: If no strict JSON can be found
    """
    trimmed = output.strip()
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        pass

    match = _FENCED_JSON.search(trimmed)
    if match is None:
        raise EvaluationError("could not find strict JSON in opencode output")
    try:
        return json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise EvaluationError(f"fenced JSON in opencode output is invalid: {e}") from e


def _text_or_none(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def merge_evaluations(security: Any, compatibility: Any) -> dict[str, Any]:
    """Combine the security and compatibility verdicts into one payload.

    The security run decides safe/security_*; the compatibility run decides
    breaking_*/compatibility. The merged payload still goes through normalize().

    Raises:
        EvaluationError: If either verdict is not a JSON object
    """
    if not isinstance(security, dict):
        raise EvaluationError("security evaluation did not decode to a JSON object")
    if not isinstance(compatibility, dict):
        raise EvaluationError("compatibility evaluation did not decode to a JSON object")

    security_summary = _text_or_none(security.get("change_summary"))
    security_notes = _text_or_none(security.get("notes"))
    compatibility_summary = _text_or_none(compatibility.get("change_summary"))
    compatibility_notes = _text_or_none(compatibility.get("notes"))

    return {
        "safe": security.get("safe"),
        "security_status": security.get("security_status"),
        "security_concerns": security.get("security_concerns", []),
        "breaking_status": compatibility.get("breaking_status"),
        "breaking_changes": compatibility.get("breaking_changes", []),
        "compatibility": compatibility.get("compatibility"),
        "security_change_summary": security_summary,
        "security_notes": security_notes,
        "compatibility_change_summary": compatibility_summary,
        "compatibility_notes": compatibility_notes,
        "change_summary": compatibility_summary or security_summary or FALLBACK_CHANGE_SUMMARY,
        "notes": compatibility_notes or security_notes or "",
    }
