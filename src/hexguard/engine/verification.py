# src/hexguard/engine/verification.py
"""Compile/test verification with one bounded remediation attempt.

Flow:
1. mix deps.compile, mix compile --warnings-as-errors --no-deps-check, mix test
2. On the first failing check, and only outside dry-run, hand the failure to
   a local opencode run that may edit the project
3. Re-run mix compile --warnings-as-errors and mix test once

There is never a second remediation attempt.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from hexguard.clients import MixClient, OpencodeClient
from hexguard.contracts import StageResult, VerificationResult
from hexguard.core.logging import RunLogger
from hexguard.engine.runner import format_reason
from hexguard.templates.prompts import remediation_prompt

VERIFICATION_CHECKS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("deps compile", ("deps.compile",)),
    ("compile", ("compile", "--warnings-as-errors", "--no-deps-check")),
    ("test", ("test",)),
)
REMEDIATION_CHECKS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("compile", ("compile", "--warnings-as-errors")),
    ("test", ("test",)),
)
REMEDIATION_SUMMARY = (
    "This update required compatibility changes in the app; "
    "I applied them and compile/tests now pass."
)


@dataclass(frozen=True)
class CheckFailure:
    """First failing check: its command line and captured output."""

    step: str
    output: str

    def to_context(self) -> dict[str, str]:
        return {"step": self.step, "output": self.output}


class Verifier:
    """Runs the project checks after a dependency update."""

    def __init__(
        self,
        mix: MixClient,
        opencode: OpencodeClient,
        logger: RunLogger,
        *,
        model: str | None,
        dry_run: bool,
        diff_dir: str,
        branch: str,
        check_timeout: float,
        remediation_timeout: float,
    ) -> None:
        self._mix = mix
        self._opencode = opencode
        self._logger = logger
        self._model = model
        self._dry_run = dry_run
        self._diff_dir = diff_dir
        self._branch = branch
        self._check_timeout = check_timeout
        self._remediation_timeout = remediation_timeout

    def verify(self) -> StageResult[VerificationResult]:
        self._logger.step("running verification", steps=["compile", "test"])
        failure = self.run_checks(VERIFICATION_CHECKS)
        if failure is None:
            self._logger.step("verification passed")
            return StageResult.ok(VerificationResult())

        self._logger.step("verification failed, attempting autofix", step=failure.step)
        if self._dry_run:
            return StageResult.blocked("verification failed in dry-run mode", failure.to_context())
        return self._remediate(failure)

    def run_checks(self, checks: Sequence[tuple[str, Sequence[str]]]) -> CheckFailure | None:
        """Run checks in order, stopping at the first failure."""
        for title, args in checks:
            command_line = " ".join(["mix", *args])
            self._logger.step(f"verification: {title}", command=command_line)
            result = self._mix.check(args, timeout=self._check_timeout)
            if result.is_ok:
                continue
            if result.status == "failure":
                return CheckFailure(step=command_line, output=result.output)
            return CheckFailure(step=command_line, output=format_reason(result))
        return None

    def _remediate(self, failure: CheckFailure) -> StageResult[VerificationResult]:
        self._logger.step("running compatibility autofix with local opencode", model=self._model)
        prompt = remediation_prompt(
            failure.step, failure.output, diff_dir=self._diff_dir, branch=self._branch
        )
        model_args = ["--model", self._model] if self._model else []

        result = self._opencode.run_local(
            ["run", *model_args, prompt], timeout=self._remediation_timeout
        )
        if not result.is_ok:
            return StageResult.blocked("opencode autofix failed", {"reason": format_reason(result)})

        failure_after = self.run_checks(REMEDIATION_CHECKS)
        if failure_after is not None:
            return StageResult.blocked(
                "verification failed after opencode autofix", failure_after.to_context()
            )
        return StageResult.ok(
            VerificationResult(remediation_applied=True, remediation_summary=REMEDIATION_SUMMARY)
        )
