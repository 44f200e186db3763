# src/hexguard/core/logging.py
"""Console progress and structured verbose logging.

Step lines are always shown; verbose events go through structlog and are
emitted only when the run was started with --verbose. Verbosity is carried
by the RunLogger instance handed to every component, never by global state.
"""

import logging
import sys
from typing import Any

import structlog
import typer


def configure_logging(*, colors: bool | None = None) -> None:
    """Configure structlog for console output on stderr.

    Args:
        colors: Force ANSI colors on or off (default: only on a TTY)
    """
    if colors is None:
        colors = sys.stderr.isatty()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


class RunLogger:
    """Progress reporter for one run.

    Usage:
        logger = RunLogger(verbose=True)
        logger.step("selected dependency", dep="ash", to="3.15.0")
        options = CommandOptions(verbose_sink=logger.verbose, output_sink=logger.write)
    """

    def __init__(self, verbose: bool = False, *, logger: Any = None) -> None:
        self._verbose = verbose
        self._logger = logger if logger is not None else structlog.get_logger("hexguard")

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    def step(self, message: str, **metadata: Any) -> None:
        """Print a progress line, plus its metadata when verbose."""
        typer.secho(f"[hexguard] {message}", fg=typer.colors.CYAN, bold=True)
        if metadata:
            self.verbose(message, **metadata)

    def verbose(self, message: str, **metadata: Any) -> None:
        """Log a debug event; no-op unless verbose."""
        if self._verbose:
            self._logger.debug(message, **metadata)

    def info(self, message: str) -> None:
        typer.echo(message)

    def error(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.RED, err=True)

    def write(self, text: str) -> None:
        """Write live command output without adding a newline."""
        typer.echo(text, nl=False)
