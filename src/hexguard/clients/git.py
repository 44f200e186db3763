# src/hexguard/clients/git.py
"""git adapter."""

from hexguard.clients.base import CommandClient
from hexguard.contracts import StageResult
from hexguard.core.logging import RunLogger
from hexguard.engine.runner import CommandRunner, format_reason


class GitClient(CommandClient):
    """Worktree check, branch, commit and push."""

    program = "git"

    def __init__(
        self,
        runner: CommandRunner,
        logger: RunLogger,
        *,
        default_timeout: float,
        push_timeout: float,
    ) -> None:
        super().__init__(runner, logger, default_timeout=default_timeout)
        self._push_timeout = push_timeout

    def ensure_clean_worktree(self) -> StageResult[None]:
        result = self._run(["status", "--porcelain"])
        if not result.is_ok:
            return StageResult.error(format_reason(result))
        if result.output.strip():
            return StageResult.error("git worktree must be clean before running this task")
        return StageResult.ok()

    def create_branch(self, branch: str) -> StageResult[None]:
        result = self._run(["switch", "-c", branch])
        return StageResult.ok() if result.is_ok else StageResult.error(format_reason(result))

    def commit_all(self, message: str) -> StageResult[None]:
        """Stage everything and commit."""
        for args in (["add", "-A"], ["commit", "-m", message]):
            result = self._run(args)
            if not result.is_ok:
                return StageResult.error(format_reason(result))
        return StageResult.ok()

    def push_origin(self, branch: str) -> StageResult[None]:
        result = self._run(["push", "-u", "origin", branch], timeout=self._push_timeout)
        return StageResult.ok() if result.is_ok else StageResult.error(format_reason(result))
