# src/hexguard/clients/github.py
"""GitHub CLI (gh) adapter. Both operations return the created URL."""

from hexguard.clients.base import CommandClient
from hexguard.contracts import StageResult
from hexguard.engine.runner import format_reason


class GitHubClient(CommandClient):
    program = "gh"

    def create_pull_request(self, base: str, head: str, title: str, body: str) -> StageResult[str]:
        result = self._run(
            [
                "pr",
                "create",
                "--base",
                base,
                "--head",
                head,
                "--title",
                title,
                "--body",
                body,
            ]
        )
        if not result.is_ok:
            return StageResult.error(format_reason(result))
        return StageResult.ok(result.output.strip())

    def create_issue(self, title: str, body: str) -> StageResult[str]:
        result = self._run(["issue", "create", "--title", title, "--body", body])
        if not result.is_ok:
            return StageResult.error(format_reason(result))
        return StageResult.ok(result.output.strip())
