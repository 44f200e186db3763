# src/hexguard/cli.py
"""Hexguard Command Line Interface.

Entry point for the hexguard CLI tool.
"""

from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from hexguard import __version__
from hexguard.contracts import (
    HexguardError,
    SimulationError,
    WorkflowBlockedError,
    WorkflowFailedError,
    WorkflowOutcome,
)
from hexguard.core.config import HexguardSettings, load_settings
from hexguard.core.logging import RunLogger, configure_logging

app = typer.Typer(
    name="hexguard",
    help="Hexguard: risk-gated dependency updates for Mix projects.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"hexguard version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Hexguard: risk-gated dependency updates for Mix projects."""
    pass


@app.command()
def update(
    dep: str | None = typer.Argument(
        None,
        help="Dependency to update (as listed by mix hex.outdated).",
    ),
    random_dep: bool = typer.Option(
        False,
        "--random",
        help="Pick a random dependency with status 'Update possible'.",
    ),
    base: str | None = typer.Option(
        None,
        "--base",
        "-b",
        help="Base branch for the pull request (default: main).",
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        help="Model passed to opencode run --model.",
    ),
    block_breaking: bool = typer.Option(
        False,
        "--block-breaking-changes",
        help="Also block on breaking-change and compatibility concerns.",
    ),
    simulate_injection: bool = typer.Option(
        False,
        "--simulate-injection",
        help="Run a harmless prompt-injection simulation and exit (requires --dry-run).",
    ),
    injection_fixture: Path | None = typer.Option(
        None,
        "--injection-fixture",
        help="Markdown fixture evaluated by --simulate-injection.",
    ),
    injection_marker: str | None = typer.Option(
        None,
        "--injection-marker",
        help="Marker expected in the evaluation when the injection succeeds.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print detailed command and debug output.",
    ),
    allow_dirty: bool = typer.Option(
        False,
        "--allow-dirty",
        help="Skip the clean git worktree pre-check.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Skip branch creation, commits, pushes, pull requests and issues.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a hexguard YAML settings file.",
    ),
) -> None:
    """Update one dependency after an AI review of its diff.

    Blocked updates are filed as GitHub issues (printed instead with --dry-run).
    """
    overrides = _overrides(
        dep=dep,
        random=random_dep,
        base=base,
        model=model,
        block_breaking=block_breaking,
        simulate_injection=simulate_injection,
        injection_fixture=injection_fixture,
        injection_marker=injection_marker,
        verbose=verbose,
        allow_dirty=allow_dirty,
        dry_run=dry_run,
    )

    try:
        settings = load_settings(config, overrides)
    except FileNotFoundError:
        typer.echo(f"Error: Config file not found: {config}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            prefix = f"{loc}: " if loc else ""
            typer.echo(f"  - {prefix}{_validation_message(error['msg'])}", err=True)
        raise typer.Exit(1) from None

    configure_logging()
    logger = RunLogger(verbose=settings.verbose)

    try:
        if settings.simulate_injection:
            _run_simulation(settings, logger)
        else:
            _finish(_run_workflow(settings, logger))
    except HexguardError as e:
        logger.error(str(e))
        raise typer.Exit(1) from None


def _overrides(**values: Any) -> dict[str, Any]:
    """CLI values that were actually given; unset flags leave config untouched."""
    return {key: value for key, value in values.items() if value not in (None, False)}


def _validation_message(message: str) -> str:
    # Pydantic prefixes errors raised inside validators
    return message.removeprefix("Value error, ")


def _run_workflow(settings: HexguardSettings, logger: RunLogger) -> WorkflowOutcome:
    from hexguard.engine.orchestrator import Orchestrator

    return Orchestrator(settings, logger).run()


def _finish(outcome: WorkflowOutcome) -> None:
    """Map a terminal outcome to success or a CLI error."""
    if outcome.status == "completed":
        return
    if outcome.status == "blocked":
        if outcome.issue_reference is None:
            # dry-run: the report was printed and nothing else is expected
            return
        raise WorkflowBlockedError(outcome.reason or "blocked", outcome.issue_reference)
    raise WorkflowFailedError(outcome.reason or "workflow failed")


def _run_simulation(settings: HexguardSettings, logger: RunLogger) -> None:
    from hexguard.engine.orchestrator import Orchestrator

    result = Orchestrator(settings, logger).simulate_injection()
    if not result.is_ok:
        raise SimulationError(result.reason or "simulation failed")
    simulation = result.unwrap()
    if simulation.vulnerable:
        raise SimulationError(
            f"prompt-injection simulation triggered marker {simulation.marker}"
        )


if __name__ == "__main__":
    app()
