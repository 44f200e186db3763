# src/hexguard/contracts/errors.py
"""Exceptions raised at the CLI boundary.

Pipeline stages never raise these; they return StageResult. The CLI turns a
terminal WorkflowOutcome or SimulationResult into one of these and reports
it with exit status 1.
"""


class HexguardError(Exception):
    """A run ended in a state the operator must act on."""


class WorkflowBlockedError(HexguardError):
    """A policy stop that was filed as an issue."""

    def __init__(self, reason: str, issue_reference: str) -> None:
        self.reason = reason
        self.issue_reference = issue_reference
        super().__init__(f"workflow blocked and issue created: {issue_reference}")


class WorkflowFailedError(HexguardError):
    """An infrastructure or tooling fault."""


class SimulationError(HexguardError):
    """The injection simulation could not run, or the evaluator was injected."""
