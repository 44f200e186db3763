# src/hexguard/clients/opencode.py
"""opencode assistant adapter.

Two ways to run it:
- locally, against the real checkout (remediation)
- inside docker, either with the workspace mounted (compatibility review) or
  in the hardened profile: no workspace, no config mount, dropped
  capabilities, capped resources, and only the diff mounted read-only
  (security review)
"""

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from hexguard.clients.base import CommandClient
from hexguard.contracts import CommandResult
from hexguard.core.config import OpencodeSettings
from hexguard.core.logging import RunLogger
from hexguard.engine.runner import CommandRunner

HARDENED_FLAGS: tuple[str, ...] = (
    "--cap-drop",
    "ALL",
    "--security-opt",
    "no-new-privileges:true",
    "--pids-limit",
    "128",
    "--memory",
    "1g",
    "--cpus",
    "1.0",
    "-e",
    "SHELL=/nonexistent",
)


@dataclass(frozen=True)
class Mount:
    host_path: str
    container_path: str
    read_only: bool = False

    def to_arg(self) -> str:
        volume = f"{Path(self.host_path).expanduser().resolve()}:{self.container_path}"
        return f"{volume}:ro" if self.read_only else volume


@dataclass(frozen=True)
class DockerProfile:
    """Isolation settings for one containerized opencode run."""

    workspace_mount: bool = True
    hardened: bool = False
    mount_config: bool = True
    mount_data: bool = True
    extra_mounts: tuple[Mount, ...] = ()


class OpencodeClient(CommandClient):
    program = "opencode"

    def __init__(
        self,
        runner: CommandRunner,
        logger: RunLogger,
        settings: OpencodeSettings,
        *,
        workdir: Path,
        default_timeout: float,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(runner, logger, default_timeout=default_timeout)
        self._settings = settings
        self._workdir = workdir.resolve()
        self._environ = environ if environ is not None else os.environ

    @property
    def security_diff_path(self) -> str:
        return self._settings.security_diff_path

    def run_local(self, args: Sequence[str], *, timeout: float, streaming: bool = True) -> CommandResult:
        return self._run(args, timeout=timeout, streaming=streaming)

    def run_docker(self, args: Sequence[str], profile: DockerProfile, *, timeout: float) -> CommandResult:
        return self._run(self.docker_args(args, profile), timeout=timeout, program="docker")

    def docker_args(self, args: Sequence[str], profile: DockerProfile) -> list[str]:
        """Build the `docker run` argument list for a profile."""
        settings = self._settings
        docker_args = ["run", "--rm"]

        for name in settings.passthrough_env:
            if self._environ.get(name):
                docker_args += ["-e", name]

        if profile.mount_config:
            docker_args += ["-v", f"{settings.config_dir.expanduser()}:/root/.config/opencode"]
        if profile.mount_data:
            docker_args += ["-v", f"{settings.data_dir.expanduser()}:/root/.local/share/opencode"]
        if profile.hardened:
            docker_args += HARDENED_FLAGS
        if profile.workspace_mount:
            docker_args += [
                "-v",
                f"{self._workdir}:{settings.workspace_path}",
                "-w",
                settings.workspace_path,
            ]
        for mount in profile.extra_mounts:
            docker_args += ["-v", mount.to_arg()]

        return [*docker_args, settings.image, *args]

    def docker_workspace_path(self, path: str | Path) -> str:
        """Translate a host path into the container's workspace mount.

        Paths outside the checkout stay as absolute host paths.
        """
        absolute = (self._workdir / Path(path).expanduser()).resolve()
        try:
            relative = absolute.relative_to(self._workdir)
        except ValueError:
            return str(absolute)
        return f"{self._settings.workspace_path.rstrip('/')}/{relative.as_posix()}"
