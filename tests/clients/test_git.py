# tests/clients/test_git.py
"""Tests for the git adapter."""

from typing import Any

import pytest


@pytest.fixture
def git(fake_runner: Any, quiet_logger: Any) -> Any:
    from hexguard.clients import GitClient

    return GitClient(fake_runner, quiet_logger, default_timeout=300, push_timeout=600)


class TestGitClient:
    """Worktree, branch, commit and push."""

    def test_clean_worktree(self, git: Any, fake_runner: Any) -> None:
        assert git.ensure_clean_worktree().is_ok
        assert fake_runner.command_lines == ["git status --porcelain"]

    def test_dirty_worktree(self, git: Any, fake_runner: Any) -> None:
        from hexguard.contracts import CommandResult

        fake_runner.on("git", "status", result=CommandResult.ok(b" M mix.exs\n"))

        result = git.ensure_clean_worktree()

        assert result.status == "error"
        assert result.reason == "git worktree must be clean before running this task"

    def test_commit_all_stops_at_failed_add(self, git: Any, fake_runner: Any) -> None:
        from hexguard.contracts import CommandResult

        fake_runner.on(
            "git", "add", result=CommandResult.failure(128, b"fatal: not a repo", command=("git", "add", "-A"))
        )

        result = git.commit_all("chore(deps): update ash from 3.14.0 to 3.15.0")

        assert result.status == "error"
        assert result.reason == "command failed: git add -A (status 128)\nfatal: not a repo"
        assert not fake_runner.ran("git", "commit")

    def test_push_uses_push_timeout(self, git: Any, fake_runner: Any) -> None:
        git.push_origin("chore/deps/ash-3.15.0")

        spec = fake_runner.specs[0]
        assert spec.command_line == "git push -u origin chore/deps/ash-3.15.0"
        assert spec.options.timeout == 600
