# tests/evaluation/test_schema.py
"""Tests for evaluator payload normalization and the unsafe predicate."""

from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

Payload = Callable[..., dict[str, Any]]


class TestNormalize:
    """normalize() is the only way into an Evaluation."""

    def test_valid_payload(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import normalize

        result = normalize(evaluation_payload())

        assert result.is_ok
        assert result.evaluation is not None
        assert result.evaluation.safe is True
        assert result.evaluation.security_concerns == ()
        assert result.evaluation.change_summary == "Routine patch release."

    def test_non_object_rejected(self) -> None:
        from hexguard.evaluation import normalize

        result = normalize(["safe"])

        assert result.status == "error"
        assert result.reason == "opencode output did not decode to a JSON object"

    def test_unexpected_key_rejected(self, evaluation_payload: Payload) -> None:
        """Extra keys are never silently dropped."""
        from hexguard.evaluation import normalize

        result = normalize(evaluation_payload(risk_score=0.1))

        assert result.status == "error"
        assert result.reason == "opencode output included unexpected keys: risk_score"

    def test_enum_violation_rejected(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import normalize

        result = normalize(evaluation_payload(compatibility="probably"))

        assert result.status == "error"
        assert result.reason is not None
        assert result.reason.startswith("opencode output did not match expected schema: compatibility")

    def test_missing_required_field_rejected(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import normalize

        payload = evaluation_payload()
        del payload["safe"]

        result = normalize(payload)

        assert result.status == "error"
        assert "safe" in (result.reason or "")

    def test_non_string_concern_rejected(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import normalize

        result = normalize(evaluation_payload(security_concerns=["ok", 3]))

        assert result.status == "error"

    def test_change_summary_falls_back_to_notes(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import normalize

        payload = evaluation_payload(notes="Renamed an internal module.")
        del payload["change_summary"]

        result = normalize(payload)

        assert result.evaluation is not None
        assert result.evaluation.change_summary == "Renamed an internal module."

    def test_change_summary_fixed_fallback(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import FALLBACK_CHANGE_SUMMARY, normalize

        payload = evaluation_payload()
        del payload["change_summary"]
        del payload["notes"]

        result = normalize(payload)

        assert result.evaluation is not None
        assert result.evaluation.change_summary == FALLBACK_CHANGE_SUMMARY
        assert result.evaluation.notes == ""

    def test_null_text_fields_default_to_empty(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import normalize

        result = normalize(evaluation_payload(security_notes=None, compatibility_notes=None))

        assert result.evaluation is not None
        assert result.evaluation.security_notes == ""
        assert result.evaluation.compatibility_notes == ""

    def test_evaluation_is_frozen(self, evaluation_payload: Payload) -> None:
        from pydantic import ValidationError

        from hexguard.evaluation import normalize

        evaluation = normalize(evaluation_payload()).evaluation
        assert evaluation is not None

        with pytest.raises(ValidationError):
            evaluation.safe = False  # type: ignore[misc]

    @given(
        extra=st.dictionaries(
            st.text(min_size=1, max_size=12).filter(
                lambda key: key
                not in {
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
                }
            ),
            st.none() | st.booleans() | st.text(max_size=5),
            min_size=1,
            max_size=3,
        )
    )
    def test_any_unknown_key_is_an_error(self, extra: dict[str, Any]) -> None:
        """Whatever else the payload holds, an unknown key fails validation."""
        from hexguard.evaluation import normalize

        payload: dict[str, Any] = {
            "safe": True,
            "security_status": "none",
            "security_concerns": [],
            "breaking_status": "none",
            "breaking_changes": [],
            "compatibility": "compatible",
        }
        payload.update(extra)

        result = normalize(payload)

        assert result.status == "error"
        assert result.reason is not None
        assert result.reason.startswith("opencode output included unexpected keys")


class TestIsUnsafe:
    """Policy predicate over a validated evaluation."""

    @pytest.mark.parametrize(
        ("overrides", "security_only", "strict"),
        [
            ({}, False, False),
            ({"safe": False}, True, True),
            ({"security_status": "concern"}, True, True),
            ({"security_status": "unknown"}, True, True),
            ({"breaking_status": "concern"}, False, True),
            ({"breaking_status": "unknown"}, False, True),
            ({"compatibility": "incompatible"}, False, True),
            ({"compatibility": "unknown"}, False, True),
        ],
    )
    def test_modes(
        self,
        evaluation_payload: Payload,
        overrides: dict[str, Any],
        security_only: bool,
        strict: bool,
    ) -> None:
        from hexguard.contracts import SafetyMode
        from hexguard.evaluation import normalize

        evaluation = normalize(evaluation_payload(**overrides)).evaluation
        assert evaluation is not None

        assert evaluation.is_unsafe(SafetyMode.SECURITY_ONLY) is security_only
        assert evaluation.is_unsafe(SafetyMode.STRICT) is strict

    def test_default_mode_is_security_only(self, evaluation_payload: Payload) -> None:
        from hexguard.evaluation import normalize

        evaluation = normalize(evaluation_payload(breaking_status="concern")).evaluation
        assert evaluation is not None

        assert evaluation.is_unsafe() is False
