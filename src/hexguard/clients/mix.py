# src/hexguard/clients/mix.py
"""Mix / Hex adapter."""

from collections.abc import Sequence

from hexguard.clients.base import CommandClient
from hexguard.contracts import CommandResult, StageResult
from hexguard.engine.runner import format_reason


class MixClient(CommandClient):
    program = "mix"

    def outdated(self) -> StageResult[str]:
        """Raw `mix hex.outdated --all` table (exits 1 when anything is outdated)."""
        result = self._run(["hex.outdated", "--all"], allowed_exit_codes=(0, 1))
        if not result.is_ok:
            return StageResult.error(format_reason(result))
        return StageResult.ok(result.output)

    def package_diff(self, dep: str, from_version: str, to_version: str) -> StageResult[str]:
        """Markdown diff between two published versions of a package."""
        result = self._run(
            ["hex.package", "diff", dep, f"{from_version}..{to_version}"],
            allowed_exit_codes=(0, 1),
        )
        if not result.is_ok:
            return StageResult.error(format_reason(result))
        return StageResult.ok(result.output)

    def update(self, dep: str) -> StageResult[None]:
        result = self._run(["deps.update", dep])
        return StageResult.ok() if result.is_ok else StageResult.error(format_reason(result))

    def check(self, args: Sequence[str], *, timeout: float) -> CommandResult:
        """Run a verification command with live output."""
        return self._run(args, timeout=timeout, streaming=True)
