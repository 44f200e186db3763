# src/hexguard/clients/base.py
"""Shared plumbing for command-line tool adapters."""

from collections.abc import Iterable

from hexguard.contracts import CommandResult
from hexguard.core.logging import RunLogger
from hexguard.engine.runner import CommandOptions, CommandRunner, CommandSpec


class CommandClient:
    """Base class for adapters that shell out through the command engine.

    Every command inherits the run's verbose sink and live output sink from
    the RunLogger, so verbosity is never read from global state.
    """

    program: str

    def __init__(
        self,
        runner: CommandRunner,
        logger: RunLogger,
        *,
        default_timeout: float,
    ) -> None:
        self._runner = runner
        self._logger = logger
        self._default_timeout = default_timeout

    def _run(
        self,
        args: Iterable[str],
        *,
        allowed_exit_codes: Iterable[int] = (0,),
        timeout: float | None = None,
        streaming: bool = False,
        program: str | None = None,
    ) -> CommandResult:
        options = CommandOptions(
            allowed_exit_codes=frozenset(allowed_exit_codes),
            timeout=timeout if timeout is not None else self._default_timeout,
            streaming=streaming,
            verbose_sink=self._logger.verbose,
            output_sink=self._logger.write,
        )
        spec = CommandSpec(program or self.program, tuple(args), options)
        return self._runner.execute(spec)
