# src/hexguard/engine/orchestrator.py
"""Orchestrator: one dependency update, start to finish.

Stages run strictly in order and the first one that does not return ok
ends the run:
1. Clean worktree check (skipped with --allow-dirty or --dry-run)
2. Lockfile snapshot, outdated table, target selection
3. Direct diff assessment, safety gate
4. Branch, mix deps.update, second lockfile snapshot
5. Transitive diff assessments, safety gate
6. Verification (with at most one remediation attempt)
7. Commit, push, pull request

A blocked run is reported: printed in dry-run, filed as an issue otherwise.
"""

import random
from pathlib import Path
from typing import Any

from hexguard.clients import GitClient, GitHubClient, MixClient, OpencodeClient
from hexguard.contracts import (
    DependencyKind,
    LockChange,
    OutdatedRow,
    SimulationResult,
    StageResult,
    VerificationResult,
    WorkflowOutcome,
)
from hexguard.core.config import HexguardSettings
from hexguard.core.deps import (
    filter_update_candidates,
    lock_changes,
    parse_outdated_table,
    read_lock_versions,
)
from hexguard.core.logging import RunLogger
from hexguard.engine.assessor import Assessor
from hexguard.engine.runner import CommandRunner
from hexguard.engine.verification import Verifier
from hexguard.evaluation import Assessment, ensure_safe, marker_present
from hexguard.templates import reports

LOCKFILE = "mix.lock"
DRY_RUN_PR_REFERENCE = "dry-run: skipped PR creation"
SIMULATION_DEP = "injection-simulation"
SIMULATION_FROM = "0.0.0"
SIMULATION_TO = "0.0.1"


class Orchestrator:
    """Runs the dependency update pipeline for one settings snapshot.

    Example:
        orchestrator = Orchestrator(settings, RunLogger(verbose=True))
        outcome = orchestrator.run()
    """

    def __init__(
        self,
        settings: HexguardSettings,
        logger: RunLogger,
        *,
        runner: CommandRunner | None = None,
        workdir: Path | None = None,
        rng: random.Random | None = None,
        environ: dict[str, str] | None = None,
    ) -> None:
        self._settings = settings
        self._logger = logger
        self._runner = runner if runner is not None else CommandRunner()
        self._workdir = (workdir if workdir is not None else Path.cwd()).resolve()
        self._rng = rng if rng is not None else random.Random()

        commands = settings.commands
        self._git = GitClient(
            self._runner,
            logger,
            default_timeout=commands.default_timeout_seconds,
            push_timeout=commands.push_timeout_seconds,
        )
        self._github = GitHubClient(
            self._runner, logger, default_timeout=commands.default_timeout_seconds
        )
        self._mix = MixClient(self._runner, logger, default_timeout=commands.default_timeout_seconds)
        self._opencode = OpencodeClient(
            self._runner,
            logger,
            settings.opencode,
            workdir=self._workdir,
            default_timeout=commands.default_timeout_seconds,
            environ=environ,
        )
        self._assessor = Assessor(
            self._mix,
            self._opencode,
            logger,
            model=settings.model,
            diff_dir=self._workdir / settings.diff_dir,
            evaluation_timeout=commands.evaluation_timeout_seconds,
        )

    def run(self) -> WorkflowOutcome:
        """Execute the pipeline and report a blocked run.

        Returns:
            completed with the PR reference, blocked with the report or the
            filed issue, or error with a formatted failure message
        """
        self._logger.step("starting dependency update workflow")
        self._logger.verbose("options parsed", **self._settings.model_dump(mode="json"))

        result = self._execute()
        if result.status == "ok":
            pr_reference = result.unwrap()
            self._logger.info(f"Dependency update completed: {pr_reference}")
            return WorkflowOutcome.completed(pr_reference)
        if result.status == "blocked":
            return self._handle_blocked(result.reason or "blocked", result.context)
        return WorkflowOutcome.error(result.reason or "workflow failed")

    def _execute(self) -> StageResult[Any]:
        settings = self._settings

        if not (settings.allow_dirty or settings.dry_run):
            self._logger.step("checking git worktree cleanliness")
            clean = self._git.ensure_clean_worktree()
            if not clean.is_ok:
                return clean
            self._logger.step("git worktree is clean")

        lock_before = self._read_lock()
        if not lock_before.is_ok:
            return lock_before

        rows = self._fetch_outdated()
        if not rows.is_ok:
            return rows
        selected = self._select_target(rows.unwrap())
        if not selected.is_ok:
            return selected
        target = selected.unwrap()

        direct = self._assessor.assess(
            target.dep, target.current, target.latest, DependencyKind.DIRECT
        )
        if not direct.is_ok:
            return direct
        gate = self._gate([direct.unwrap()])
        if not gate.is_ok:
            return gate

        branch = reports.branch_name(target.dep, target.latest)
        if not settings.dry_run:
            self._logger.step("creating branch", branch=branch)
            created = self._git.create_branch(branch)
            if not created.is_ok:
                return created

        self._logger.step("updating dependency", dep=target.dep)
        updated = self._mix.update(target.dep)
        if not updated.is_ok:
            return updated

        lock_after = self._read_lock()
        if not lock_after.is_ok:
            return lock_after
        changes = lock_changes(lock_before.unwrap(), lock_after.unwrap())
        self._logger.step("computed lockfile changes", count=len(changes))

        transitive = self._assess_transitive(changes, target.dep)
        if not transitive.is_ok:
            return transitive
        gate = self._gate(transitive.unwrap())
        if not gate.is_ok:
            return gate

        verification = self._verifier(branch).verify()
        if not verification.is_ok:
            return verification

        if settings.dry_run:
            return StageResult.ok(DRY_RUN_PR_REFERENCE)

        message = reports.commit_message(target.dep, target.current, target.latest)
        self._logger.step("creating commit", message=message)
        committed = self._git.commit_all(message)
        if not committed.is_ok:
            return committed

        return self._publish(
            target, branch, changes, [direct.unwrap(), *transitive.unwrap()], verification.unwrap()
        )

    def _read_lock(self) -> StageResult[dict[str, str]]:
        self._logger.step("reading lockfile versions")
        try:
            return StageResult.ok(read_lock_versions(self._workdir / LOCKFILE))
        except (OSError, UnicodeDecodeError) as e:
            return StageResult.error(f"failed to read {LOCKFILE}: {e}")

    def _fetch_outdated(self) -> StageResult[list[OutdatedRow]]:
        self._logger.step("fetching outdated dependencies")
        outdated = self._mix.outdated()
        if not outdated.is_ok:
            return StageResult.error(outdated.reason or "mix hex.outdated failed")

        rows = parse_outdated_table(outdated.unwrap())
        self._logger.step(
            "outdated dependencies parsed",
            rows_count=len(rows),
            update_possible_count=len(filter_update_candidates(rows)),
        )
        return StageResult.ok(rows)

    def _select_target(self, rows: list[OutdatedRow]) -> StageResult[OutdatedRow]:
        """Pick the dependency to update.

        Random selection draws uniformly from "Update possible" rows; an
        explicit name must exist and be updatable.
        """
        dep = self._settings.dep
        if self._settings.random:
            candidates = filter_update_candidates(rows)
            if not candidates:
                return StageResult.error("no dependencies with status 'Update possible' found")
            selected = self._rng.choice(candidates)
        elif dep is not None:
            match = next((row for row in rows if row.dep == dep), None)
            if match is None:
                return StageResult.error(
                    f"dependency '{dep}' was not found in mix hex.outdated output"
                )
            if not match.updatable:
                return StageResult.error(
                    f"dependency '{dep}' is not updatable (status: {match.status})"
                )
            selected = match
        else:
            return StageResult.error(
                "please provide a dependency name (e.g. `hexguard update ash`) or use --random"
            )

        self._logger.step(
            "selected dependency",
            dep=selected.dep,
            from_version=selected.current,
            to_version=selected.latest,
        )
        return StageResult.ok(selected)

    def _assess_transitive(
        self, changes: list[LockChange], direct_dep: str
    ) -> StageResult[list[Assessment]]:
        """Assess every lock change except the target, stopping at the first failure."""
        assessments: list[Assessment] = []
        for change in changes:
            if change.dep == direct_dep:
                continue
            assessed = self._assessor.assess(
                change.dep, change.from_version, change.to_version, DependencyKind.TRANSITIVE
            )
            if not assessed.is_ok:
                return StageResult(
                    status=assessed.status, reason=assessed.reason, context=assessed.context
                )
            assessments.append(assessed.unwrap())
        return StageResult.ok(assessments)

    def _gate(self, assessments: list[Assessment]) -> StageResult[None]:
        mode = self._settings.safety_mode
        decision = ensure_safe(assessments, mode)
        if decision.allowed or decision.assessment is None:
            self._logger.step("all assessments passed safety checks", mode=mode.value)
            return StageResult.ok()
        return StageResult.blocked(
            decision.reason or "unsafe dependency change", decision.assessment.to_context()
        )

    def _verifier(self, branch: str) -> Verifier:
        commands = self._settings.commands
        return Verifier(
            self._mix,
            self._opencode,
            self._logger,
            model=self._settings.model,
            dry_run=self._settings.dry_run,
            diff_dir=str(self._settings.diff_dir),
            branch=branch,
            check_timeout=commands.verification_timeout_seconds,
            remediation_timeout=commands.remediation_timeout_seconds,
        )

    def _publish(
        self,
        target: OutdatedRow,
        branch: str,
        changes: list[LockChange],
        assessments: list[Assessment],
        verification: VerificationResult,
    ) -> StageResult[str]:
        title = reports.pr_title(target.dep, target.latest)
        body = reports.pr_body(changes, assessments, verification)
        self._logger.step(
            "creating pull request", branch=branch, base=self._settings.base, title=title
        )

        pushed = self._git.push_origin(branch)
        if not pushed.is_ok:
            return StageResult.error(pushed.reason or "git push failed")
        return self._github.create_pull_request(self._settings.base, branch, title, body)

    def _handle_blocked(self, reason: str, context: dict[str, Any]) -> WorkflowOutcome:
        report = reports.issue_body(reason, context)
        if self._settings.dry_run:
            self._logger.error(f"Blocked: {reason}")
            self._logger.error(f"Context: {reports.format_context(context)}")
            return WorkflowOutcome.blocked(reason, context, report=report)

        issue = self._github.create_issue(reports.issue_title(reason), report)
        if not issue.is_ok:
            return WorkflowOutcome.error(
                f"workflow blocked and issue creation failed: {issue.reason}"
            )
        return WorkflowOutcome.blocked(
            reason, context, report=report, issue_reference=issue.unwrap()
        )

    def simulate_injection(self) -> StageResult[SimulationResult]:
        """Evaluate the injection fixture and check whether the marker leaked.

        Nothing in the repository is touched: no worktree check, no lockfile,
        no branch, no issue.
        """
        fixture = self._settings.injection_fixture
        if fixture is None:
            return StageResult.error("--simulate-injection requires --injection-fixture PATH")
        fixture_path = (self._workdir / fixture.expanduser()).resolve()
        marker = self._settings.injection_marker

        self._logger.step("running prompt-injection simulation", fixture=str(fixture_path))
        if not fixture_path.is_file():
            return StageResult.error(f"injection fixture file not found: {fixture_path}")

        result = self._assessor.evaluate(
            SIMULATION_DEP, SIMULATION_FROM, SIMULATION_TO, fixture_path, DependencyKind.DIRECT
        )
        if not result.is_ok or result.evaluation is None:
            return StageResult.error(f"simulation failed: {result.reason}")

        evaluation = result.evaluation.model_dump(mode="json")
        verdict = "vulnerable" if marker_present(evaluation, marker) else "resisted"
        self._logger.info(f"[hexguard][simulation] verdict={verdict.upper()} marker={marker}")
        self._logger.info(f"[hexguard][simulation] evaluation={reports.format_context(evaluation)}")
        return StageResult.ok(SimulationResult(verdict=verdict, marker=marker, evaluation=evaluation))
