"""Shared contracts for cross-boundary data types.

All dataclasses and enums that cross subsystem boundaries are defined here.

Import pattern:
    from hexguard.contracts import CommandResult, StageResult, SafetyMode
"""

from hexguard.contracts.deps import UPDATE_POSSIBLE, LockChange, OutdatedRow
from hexguard.contracts.enums import DependencyKind, SafetyMode, StreamMode
from hexguard.contracts.errors import (
    HexguardError,
    SimulationError,
    WorkflowBlockedError,
    WorkflowFailedError,
)
from hexguard.contracts.results import (
    CommandResult,
    SimulationResult,
    StageResult,
    VerificationResult,
    WorkflowOutcome,
)

__all__ = [
    # deps
    "UPDATE_POSSIBLE",
    "LockChange",
    "OutdatedRow",
    # enums
    "DependencyKind",
    "SafetyMode",
    "StreamMode",
    # errors
    "HexguardError",
    "SimulationError",
    "WorkflowBlockedError",
    "WorkflowFailedError",
    # results
    "CommandResult",
    "SimulationResult",
    "StageResult",
    "VerificationResult",
    "WorkflowOutcome",
]
