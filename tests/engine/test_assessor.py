# tests/engine/test_assessor.py
"""Tests for diff assessment."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def assessor(tmp_path: Path, fake_runner: Any, quiet_logger: Any) -> Any:
    from hexguard.clients import MixClient, OpencodeClient
    from hexguard.core.config import OpencodeSettings
    from hexguard.engine.assessor import Assessor

    mix = MixClient(fake_runner, quiet_logger, default_timeout=300)
    opencode = OpencodeClient(
        fake_runner,
        quiet_logger,
        OpencodeSettings(),
        workdir=tmp_path,
        default_timeout=300,
        environ={},
    )
    return Assessor(
        mix,
        opencode,
        quiet_logger,
        model="openai/gpt-5.3-codex",
        diff_dir=tmp_path / "tmp" / "dependency_diffs",
        evaluation_timeout=600,
    )


def _diff(fake_runner: Any, text: bytes = b"diff --git a/lib/ash.ex b/lib/ash.ex\n") -> None:
    from hexguard.contracts import CommandResult

    fake_runner.on("mix", "hex.package", "diff", result=CommandResult.ok(text))


class TestAssess:
    """Fetch, persist, evaluate."""

    def test_successful_assessment(
        self, assessor: Any, fake_runner: Any, evaluator: Callable[..., Any], tmp_path: Path
    ) -> None:
        from hexguard.contracts import DependencyKind

        _diff(fake_runner)
        evaluator()

        result = assessor.assess("ash", "3.14.0", "3.15.0", DependencyKind.DIRECT)

        assert result.is_ok
        assessment = result.unwrap()
        assert assessment.diff_url == "https://diff.hex.pm/diff/ash/3.14.0..3.15.0"
        diff_file = tmp_path / "tmp" / "dependency_diffs" / "ash.3.14.0..3.15.0.md"
        assert assessment.diff_path == str(diff_file)
        assert diff_file.read_text() == "diff --git a/lib/ash.ex b/lib/ash.ex\n"
        assert assessment.evaluation.change_summary == "Bug fixes only; no app changes needed."
        assert assessment.evaluation.security_change_summary == "No security-relevant changes."

    def test_security_review_is_isolated(
        self, assessor: Any, fake_runner: Any, evaluator: Callable[..., Any], tmp_path: Path
    ) -> None:
        """The hardened run sees only the diff, read-only, at a fixed path."""
        from hexguard.contracts import DependencyKind

        _diff(fake_runner)
        evaluator()

        assessor.assess("ash", "3.14.0", "3.15.0", DependencyKind.DIRECT)

        [security] = fake_runner.security_runs()
        [compatibility] = fake_runner.compatibility_runs()
        diff_file = (tmp_path / "tmp" / "dependency_diffs" / "ash.3.14.0..3.15.0.md").resolve()

        assert f"{diff_file}:/tmp/dependency_diff.md:ro" in security.args
        assert not any(arg.endswith(":/workspace") for arg in security.args)
        assert security.args[-1].rstrip().endswith("/tmp/dependency_diff.md")
        assert security.args[-2] == "Reply ONLY with JSON."
        assert security.options.timeout == 600

        assert "/workspace" in compatibility.args
        assert compatibility.args[-1].rstrip().endswith(
            "/workspace/tmp/dependency_diffs/ash.3.14.0..3.15.0.md"
        )
        model_flag = compatibility.args.index("--model")
        assert compatibility.args[model_flag + 1] == "openai/gpt-5.3-codex"

    def test_diff_fetch_failure_blocks(self, assessor: Any, fake_runner: Any) -> None:
        from hexguard.contracts import CommandResult, DependencyKind

        fake_runner.on(
            "mix",
            "hex.package",
            result=CommandResult.failure(2, b"** (Mix) No package", command=("mix", "hex.package")),
        )

        result = assessor.assess("ash", "3.14.0", "3.15.0", DependencyKind.DIRECT)

        assert result.status == "blocked"
        assert result.reason == "failed to evaluate dependency diff"
        assert result.context["dep"] == "ash"
        assert result.context["from"] == "3.14.0"
        assert result.context["to"] == "3.15.0"
        assert "status 2" in result.context["reason"]
        assert fake_runner.security_runs() == []

    def test_evaluator_command_failure_blocks(self, assessor: Any, fake_runner: Any) -> None:
        from hexguard.contracts import CommandResult, DependencyKind

        _diff(fake_runner)
        fake_runner.on(
            "docker",
            result=CommandResult.execution_error(
                "command timed out after 600000ms: docker run", command=("docker", "run")
            ),
        )

        result = assessor.assess("ash", "3.14.0", "3.15.0", DependencyKind.TRANSITIVE)

        assert result.status == "blocked"
        assert result.context["reason"] == "command timed out after 600000ms: docker run"
        assert len(fake_runner.matching(lambda spec: spec.program == "docker")) == 1

    def test_non_json_reply_blocks(self, assessor: Any, fake_runner: Any) -> None:
        from hexguard.contracts import CommandResult, DependencyKind

        _diff(fake_runner)
        fake_runner.on("docker", result=CommandResult.ok(b"I think it's fine!"))

        result = assessor.assess("ash", "3.14.0", "3.15.0", DependencyKind.DIRECT)

        assert result.status == "blocked"
        assert result.context["reason"] == "could not find strict JSON in opencode output"

    def test_schema_violation_blocks(
        self, assessor: Any, fake_runner: Any, evaluator: Callable[..., Any]
    ) -> None:
        from hexguard.contracts import DependencyKind

        _diff(fake_runner)
        evaluator(security={"safe": "maybe", "security_status": "none", "security_concerns": []})

        result = assessor.assess("ash", "3.14.0", "3.15.0", DependencyKind.DIRECT)

        assert result.status == "blocked"
        assert result.context["reason"].startswith("opencode output did not match expected schema")


class TestHelpers:
    """Diff naming."""

    def test_diff_url_and_filename(self) -> None:
        from hexguard.engine.assessor import diff_filename, diff_url

        assert diff_url("phoenix", "1.8.1", "1.8.2") == "https://diff.hex.pm/diff/phoenix/1.8.1..1.8.2"
        assert diff_filename("phoenix", "1.8.1", "1.8.2") == "phoenix.1.8.1..1.8.2.md"
