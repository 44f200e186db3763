# tests/conftest.py
"""Shared test fixtures and helpers.

This module provides a scripted stand-in for the command engine so pipeline
stages can be exercised without git, gh, mix, docker or opencode installed.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/engine/
"""

import json
import os
from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from hexguard.contracts import CommandResult
from hexguard.core.logging import RunLogger
from hexguard.engine.runner import CommandSpec

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Scripted command engine
# =============================================================================

Response = CommandResult | Callable[[CommandSpec], CommandResult]


class FakeRunner:
    """Records every CommandSpec and answers from scripted rules.

    The most recently registered matching rule wins, so a test can override
    a fixture's defaults. Commands with no matching rule succeed with empty
    output.

    Usage:
        runner = FakeRunner()
        runner.on("mix", "hex.outdated", result=CommandResult.ok(b"..."))
        runner.on_match(lambda spec: "--cap-drop" in spec.args, result=...)
    """

    def __init__(self) -> None:
        self.specs: list[CommandSpec] = []
        self._rules: list[tuple[Callable[[CommandSpec], bool], Response]] = []

    def on(self, program: str, *args_prefix: str, result: Response) -> "FakeRunner":
        def matches(spec: CommandSpec) -> bool:
            return spec.program == program and spec.args[: len(args_prefix)] == args_prefix

        self._rules.append((matches, result))
        return self

    def on_match(self, predicate: Callable[[CommandSpec], bool], *, result: Response) -> "FakeRunner":
        self._rules.append((predicate, result))
        return self

    def execute(self, spec: CommandSpec) -> CommandResult:
        self.specs.append(spec)
        for predicate, response in reversed(self._rules):
            if predicate(spec):
                return response(spec) if callable(response) else response
        return CommandResult.ok(b"", command=spec.argv)

    @property
    def command_lines(self) -> list[str]:
        return [spec.command_line for spec in self.specs]

    def ran(self, program: str, *args_prefix: str) -> bool:
        return any(
            spec.program == program and spec.args[: len(args_prefix)] == args_prefix
            for spec in self.specs
        )

    def matching(self, predicate: Callable[[CommandSpec], bool]) -> list[CommandSpec]:
        return [spec for spec in self.specs if predicate(spec)]

    def security_runs(self) -> list[CommandSpec]:
        return self.matching(is_security_run)

    def compatibility_runs(self) -> list[CommandSpec]:
        return self.matching(is_compatibility_run)


def opencode_reply(payload: dict[str, Any]) -> bytes:
    """opencode --format json output whose text event carries the payload."""
    events = [
        {"type": "step_start", "part": {}},
        {"type": "text", "part": {"text": json.dumps(payload)}},
        {"type": "step_finish", "part": {"reason": "stop"}},
    ]
    return "\n".join(json.dumps(event) for event in events).encode() + b"\n"


SAFE_SECURITY: dict[str, Any] = {
    "safe": True,
    "security_status": "none",
    "security_concerns": [],
    "change_summary": "No security-relevant changes.",
    "notes": "Only documentation and internal refactors.",
}

SAFE_COMPATIBILITY: dict[str, Any] = {
    "breaking_status": "none",
    "breaking_changes": [],
    "compatibility": "compatible",
    "change_summary": "Bug fixes only; no app changes needed.",
    "notes": "Public API unchanged.",
}


def is_security_run(spec: CommandSpec) -> bool:
    return spec.program == "docker" and "--cap-drop" in spec.args


def is_compatibility_run(spec: CommandSpec) -> bool:
    return spec.program == "docker" and "--cap-drop" not in spec.args


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def quiet_logger() -> RunLogger:
    return RunLogger(verbose=False)


@pytest.fixture
def evaluator(fake_runner: FakeRunner) -> Callable[..., FakeRunner]:
    """Script both docker reviews.

    Usage:
        evaluator(security={"safe": False, ...})
    """

    def script(
        security: dict[str, Any] | None = None,
        compatibility: dict[str, Any] | None = None,
    ) -> FakeRunner:
        fake_runner.on_match(
            is_security_run,
            result=CommandResult.ok(opencode_reply(security or SAFE_SECURITY)),
        )
        fake_runner.on_match(
            is_compatibility_run,
            result=CommandResult.ok(opencode_reply(compatibility or SAFE_COMPATIBILITY)),
        )
        return fake_runner

    return script


@pytest.fixture
def evaluation_payload() -> Callable[..., dict[str, Any]]:
    """Build a complete evaluator payload with overrides."""

    def build(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "safe": True,
            "security_status": "none",
            "security_concerns": [],
            "breaking_status": "none",
            "breaking_changes": [],
            "compatibility": "compatible",
            "change_summary": "Routine patch release.",
            "notes": "",
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def opencode_output() -> Callable[[dict[str, Any]], bytes]:
    return opencode_reply
