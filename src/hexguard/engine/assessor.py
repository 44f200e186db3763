# src/hexguard/engine/assessor.py
"""Diff-based risk assessment of one dependency version change.

Each change is reviewed twice by the opencode assistant:
1. Security review in the hardened container. The diff is the only file it
   can see, mounted read-only; no workspace, no config.
2. Compatibility review with the project checkout mounted, so the model can
   check how the app uses the dependency.

The two verdicts are merged and normalized into one Evaluation. Any failure
along the way blocks the run; nothing is retried.
"""

from pathlib import Path

from hexguard.clients import DockerProfile, MixClient, Mount, OpencodeClient
from hexguard.contracts import CommandResult, DependencyKind, StageResult
from hexguard.core.logging import RunLogger
from hexguard.engine.runner import format_reason
from hexguard.evaluation import (
    Assessment,
    EvaluationError,
    EvaluationResult,
    decode_json_from_output,
    extract_text_output,
    merge_evaluations,
    normalize,
)
from hexguard.templates.prompts import REPLY_INSTRUCTION, compatibility_prompt, security_prompt

ASSESSMENT_FAILED = "failed to evaluate dependency diff"
DIFF_URL_TEMPLATE = "https://diff.hex.pm/diff/{dep}/{from_version}..{to_version}"


def diff_url(dep: str, from_version: str, to_version: str) -> str:
    return DIFF_URL_TEMPLATE.format(dep=dep, from_version=from_version, to_version=to_version)


def diff_filename(dep: str, from_version: str, to_version: str) -> str:
    return f"{dep}.{from_version}..{to_version}.md"


class Assessor:
    """Fetches, stores and evaluates dependency diffs."""

    def __init__(
        self,
        mix: MixClient,
        opencode: OpencodeClient,
        logger: RunLogger,
        *,
        model: str | None,
        diff_dir: Path,
        evaluation_timeout: float,
    ) -> None:
        self._mix = mix
        self._opencode = opencode
        self._logger = logger
        self._model = model
        self._diff_dir = diff_dir
        self._evaluation_timeout = evaluation_timeout

    def assess(
        self,
        dep: str,
        from_version: str,
        to_version: str,
        kind: DependencyKind,
    ) -> StageResult[Assessment]:
        """Assess one version change.

        Returns:
            ok with the Assessment, or blocked with
            {dep, from, to, reason} when any step fails
        """
        self._logger.step(
            "assessing dependency diff",
            dep=dep,
            from_version=from_version,
            to_version=to_version,
            kind=kind.value,
        )

        def blocked(reason: str) -> StageResult[Assessment]:
            return StageResult.blocked(
                ASSESSMENT_FAILED,
                {"dep": dep, "from": from_version, "to": to_version, "reason": reason},
            )

        url = diff_url(dep, from_version, to_version)
        self._logger.step("fetching dependency diff", url=url)
        diff = self._mix.package_diff(dep, from_version, to_version)
        if not diff.is_ok:
            return blocked(diff.reason or "failed to fetch dependency diff")

        try:
            diff_path = self._persist(dep, from_version, to_version, diff.unwrap())
        except OSError as e:
            return blocked(f"failed to write diff file: {e}")

        result = self.evaluate(dep, from_version, to_version, diff_path, kind)
        if not result.is_ok or result.evaluation is None:
            return blocked(result.reason or "evaluation failed")

        assessment = Assessment(
            dep=dep,
            from_version=from_version,
            to_version=to_version,
            kind=kind,
            diff_url=url,
            diff_path=str(diff_path),
            evaluation=result.evaluation,
        )
        self._logger.step(
            "assessment complete",
            dep=dep,
            safe=assessment.evaluation.safe,
            compatibility=assessment.evaluation.compatibility,
        )
        return StageResult.ok(assessment)

    def evaluate(
        self,
        dep: str,
        from_version: str,
        to_version: str,
        diff_path: Path,
        kind: DependencyKind,
    ) -> EvaluationResult:
        """Run both reviews on a diff file and normalize the merged verdict."""
        self._logger.step(
            "evaluating security diff in restricted opencode container",
            dep=dep,
            kind=kind.value,
            model=self._model,
        )
        security_args = self._opencode_args(
            security_prompt(dep, from_version, to_version, kind, self._opencode.security_diff_path)
        )
        security_profile = DockerProfile(
            workspace_mount=False,
            hardened=True,
            mount_config=False,
            extra_mounts=(
                Mount(str(diff_path), self._opencode.security_diff_path, read_only=True),
            ),
        )

        self._logger.step(
            "evaluating compatibility diff in docker with workspace mount",
            dep=dep,
            kind=kind.value,
            model=self._model,
        )
        compatibility_args = self._opencode_args(
            compatibility_prompt(
                dep,
                from_version,
                to_version,
                kind,
                self._opencode.docker_workspace_path(diff_path),
            )
        )

        try:
            security = self._decode(
                self._opencode.run_docker(
                    security_args, security_profile, timeout=self._evaluation_timeout
                )
            )
            compatibility = self._decode(
                self._opencode.run_docker(
                    compatibility_args, DockerProfile(), timeout=self._evaluation_timeout
                )
            )
            merged = merge_evaluations(security, compatibility)
        except EvaluationError as e:
            return EvaluationResult.error(str(e))
        return normalize(merged)

    def _opencode_args(self, prompt: str) -> list[str]:
        model_args = ["--model", self._model] if self._model else []
        return ["run", "--format", "json", *model_args, REPLY_INSTRUCTION, prompt]

    def _decode(self, result: CommandResult) -> object:
        if not result.is_ok:
            raise EvaluationError(format_reason(result))
        return decode_json_from_output(extract_text_output(result.output))

    def _persist(self, dep: str, from_version: str, to_version: str, diff: str) -> Path:
        self._diff_dir.mkdir(parents=True, exist_ok=True)
        path = self._diff_dir / diff_filename(dep, from_version, to_version)
        path.write_text(diff, encoding="utf-8")
        self._logger.step("saved dependency diff", path=str(path))
        return path
