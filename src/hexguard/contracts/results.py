"""Operation outcomes and results.

These types answer: "What did an operation produce?"

IMPORTANT:
- Every status uses a Literal, NOT an enum, so results compare and pattern-match cheaply
- Use the factory methods to create instances; never build a result with an
  inconsistent status/payload combination by hand
- CommandResult.raw_output is ALWAYS the complete stdout+stderr of the process,
  independent of whether the output was also rendered live
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CommandResult:
    """Result of one external command invocation.

    Three shapes:
    - ok: exit status was in the allowed set
    - failure: the process ran but exited with a disallowed status
    - error: the process could not be run to completion (missing executable,
      timeout, internal fault)
    """

    status: Literal["ok", "failure", "error"]
    command: tuple[str, ...] = ()
    raw_output: bytes = b""
    exit_code: int | None = None
    message: str | None = None

    @classmethod
    def ok(cls, raw_output: bytes, *, command: tuple[str, ...] = (), exit_code: int = 0) -> "CommandResult":
        """Create result for an allowed exit status."""
        return cls(status="ok", command=command, raw_output=raw_output, exit_code=exit_code)

    @classmethod
    def failure(
        cls,
        exit_code: int,
        raw_output: bytes,
        *,
        command: tuple[str, ...] = (),
    ) -> "CommandResult":
        """Create result for a disallowed exit status."""
        return cls(
            status="failure",
            command=command,
            raw_output=raw_output,
            exit_code=exit_code,
        )

    @classmethod
    def execution_error(cls, message: str, *, command: tuple[str, ...] = ()) -> "CommandResult":
        """Create result for a command that could not run to completion."""
        return cls(status="error", command=command, message=message)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def output(self) -> str:
        """Raw output decoded as UTF-8 (undecodable bytes replaced)."""
        return self.raw_output.decode("utf-8", errors="replace")

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Result of one pipeline stage.

    The orchestrator stops at the first result that is not ok:
    - blocked: a deliberate policy stop (unsafe change, failed verification)
    - error: an infrastructure or tooling fault
    """

    status: Literal["ok", "blocked", "error"]
    value: T | None = None
    reason: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, value: T | None = None) -> "StageResult[T]":
        """Create successful stage result carrying a value."""
        return cls(status="ok", value=value)

    @classmethod
    def blocked(cls, reason: str, context: dict[str, Any] | None = None) -> "StageResult[T]":
        """Create policy-stop result with a context snapshot for the report."""
        return cls(status="blocked", reason=reason, context=dict(context or {}))

    @classmethod
    def error(cls, reason: str) -> "StageResult[T]":
        """Create infrastructure-fault result."""
        return cls(status="error", reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    def unwrap(self) -> T:
        """Return the value of an ok result.

        Raises:
            ValueError: If the result is not ok
        """
        if self.status != "ok":
            raise ValueError(f"cannot unwrap {self.status} stage result: {self.reason}")
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a successful verification stage."""

    remediation_applied: bool = False
    remediation_summary: str | None = None


@dataclass(frozen=True)
class WorkflowOutcome:
    """Terminal result of one orchestrator run."""

    status: Literal["completed", "blocked", "error"]
    pr_reference: str | None = None
    reason: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    report: str | None = None
    issue_reference: str | None = None

    @classmethod
    def completed(cls, pr_reference: str) -> "WorkflowOutcome":
        return cls(status="completed", pr_reference=pr_reference)

    @classmethod
    def blocked(
        cls,
        reason: str,
        context: dict[str, Any],
        *,
        report: str | None = None,
        issue_reference: str | None = None,
    ) -> "WorkflowOutcome":
        return cls(
            status="blocked",
            reason=reason,
            context=context,
            report=report,
            issue_reference=issue_reference,
        )

    @classmethod
    def error(cls, reason: str) -> "WorkflowOutcome":
        return cls(status="error", reason=reason)


@dataclass(frozen=True)
class SimulationResult:
    """Verdict of a prompt-injection simulation."""

    verdict: Literal["vulnerable", "resisted"]
    marker: str
    evaluation: dict[str, Any]

    @property
    def vulnerable(self) -> bool:
        return self.verdict == "vulnerable"
