# tests/evaluation/test_safety.py
"""Tests for the safety gate."""

from collections.abc import Callable
from typing import Any

import pytest

Payload = Callable[..., dict[str, Any]]


@pytest.fixture
def make_assessment(evaluation_payload: Payload) -> Callable[..., Any]:
    from hexguard.contracts import DependencyKind
    from hexguard.evaluation import Assessment, normalize

    def build(dep: str, **overrides: Any) -> Assessment:
        evaluation = normalize(evaluation_payload(**overrides)).evaluation
        assert evaluation is not None
        return Assessment(
            dep=dep,
            from_version="1.0.0",
            to_version="1.1.0",
            kind=DependencyKind.TRANSITIVE,
            diff_url=f"https://diff.hex.pm/diff/{dep}/1.0.0..1.1.0",
            diff_path=f"tmp/dependency_diffs/{dep}.1.0.0..1.1.0.md",
            evaluation=evaluation,
        )

    return build


class TestEnsureSafe:
    """First unsafe assessment wins."""

    def test_empty_batch_allowed(self) -> None:
        from hexguard.evaluation import ensure_safe

        assert ensure_safe([]).allowed is True

    def test_all_safe_allowed(self, make_assessment: Callable[..., Any]) -> None:
        from hexguard.contracts import SafetyMode
        from hexguard.evaluation import ensure_safe

        decision = ensure_safe([make_assessment("a"), make_assessment("b")], SafetyMode.STRICT)

        assert decision.allowed is True
        assert decision.assessment is None

    def test_security_only_reason(self, make_assessment: Callable[..., Any]) -> None:
        from hexguard.contracts import SafetyMode
        from hexguard.evaluation import ensure_safe

        unsafe = make_assessment("jason", safe=False, security_status="concern")

        decision = ensure_safe([make_assessment("a"), unsafe], SafetyMode.SECURITY_ONLY)

        assert decision.allowed is False
        assert decision.reason == "security concern detected in dependency change"
        assert decision.assessment is unsafe

    def test_strict_reason(self, make_assessment: Callable[..., Any]) -> None:
        from hexguard.contracts import SafetyMode
        from hexguard.evaluation import ensure_safe

        decision = ensure_safe([make_assessment("a", compatibility="unknown")], SafetyMode.STRICT)

        assert decision.allowed is False
        assert decision.reason == "unsafe or incompatible dependency change"

    def test_compatibility_ignored_in_security_only(self, make_assessment: Callable[..., Any]) -> None:
        from hexguard.contracts import SafetyMode
        from hexguard.evaluation import ensure_safe

        decision = ensure_safe(
            [make_assessment("a", breaking_status="concern", compatibility="incompatible")],
            SafetyMode.SECURITY_ONLY,
        )

        assert decision.allowed is True

    def test_only_first_unsafe_is_reported(self, make_assessment: Callable[..., Any]) -> None:
        from hexguard.evaluation import ensure_safe

        first = make_assessment("first", safe=False)
        second = make_assessment("second", security_status="unknown")

        decision = ensure_safe([first, second])

        assert decision.assessment is first


class TestAssessmentContext:
    """Blocked context snapshot."""

    def test_to_context_is_plain_data(self, make_assessment: Callable[..., Any]) -> None:
        assessment = make_assessment("plug", safe=False, security_concerns=["eval of diff text"])

        context = assessment.to_context()

        assert context["dep"] == "plug"
        assert context["kind"] == "transitive"
        assert context["evaluation"]["security_concerns"] == ["eval of diff text"]
        assert assessment.label == "plug 1.0.0 -> 1.1.0"
