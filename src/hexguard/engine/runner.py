# src/hexguard/engine/runner.py
"""Command execution engine.

Every external tool the pipeline uses (git, gh, mix, docker, opencode) is run
through CommandRunner.execute(). The engine:
- resolves the executable on PATH
- runs the process either buffered (polled every 5s) or streamed through a
  pseudo-terminal (polled every 1s), rendering output live
- enforces an absolute timeout measured on the monotonic clock and kills the
  whole process group when it fires
- classifies the exit status against the caller's allow-list

execute() never raises: every fault becomes CommandResult.execution_error().
"""

import os
import queue
import shutil
import signal
import subprocess
import sys
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Protocol

from hexguard.contracts import CommandResult
from hexguard.engine.stream import StreamState, render, stream_mode_for

DEFAULT_TIMEOUT_SECONDS = 300.0
BUFFERED_POLL_SECONDS = 5.0
STREAMING_POLL_SECONDS = 1.0
_READ_SIZE = 65536


class VerboseSink(Protocol):
    """Receives progress events: sink("command start", command="git status")."""

    def __call__(self, message: str, **metadata: Any) -> None: ...


def _discard(message: str, **metadata: Any) -> None:
    pass


def _write_stdout(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


@dataclass(frozen=True)
class CommandOptions:
    """Per-invocation execution options.

    Attributes:
        allowed_exit_codes: Exit statuses that count as success
        timeout: Absolute time limit in seconds
        streaming: Run attached to a pseudo-terminal and render output live
        verbose_sink: Progress events (no-op by default)
        output_sink: Live rendered output in streaming mode
    """

    allowed_exit_codes: frozenset[int] = frozenset({0})
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    streaming: bool = False
    verbose_sink: VerboseSink = _discard
    output_sink: Callable[[str], None] = _write_stdout


@dataclass(frozen=True)
class CommandSpec:
    """One command invocation. Immutable."""

    program: str
    args: tuple[str, ...] = ()
    options: CommandOptions = field(default_factory=CommandOptions)

    @property
    def argv(self) -> tuple[str, ...]:
        return (self.program, *self.args)

    @property
    def command_line(self) -> str:
        return " ".join(self.argv)


def format_reason(result: CommandResult) -> str:
    """Human-readable description of a command that did not succeed."""
    if result.status == "failure":
        return f"command failed: {result.command_line} (status {result.exit_code})\n{result.output}"
    if result.status == "error":
        return result.message or f"command failed: {result.command_line}"
    return f"command succeeded: {result.command_line}"


class CommandTimeoutError(Exception):
    """Raised internally when a command exceeds its timeout."""

    def __init__(self, timeout: float, command_line: str) -> None:
        self.timeout = timeout
        self.command_line = command_line
        super().__init__(f"command timed out after {int(timeout * 1000)}ms: {command_line}")


class CommandRunner:
    """Runs external commands and classifies their results.

    The poll intervals bound timeout-detection latency without busy-spinning;
    a wait never extends past the deadline.
    """

    def __init__(
        self,
        *,
        buffered_poll_seconds: float = BUFFERED_POLL_SECONDS,
        streaming_poll_seconds: float = STREAMING_POLL_SECONDS,
    ) -> None:
        self._buffered_poll = buffered_poll_seconds
        self._streaming_poll = streaming_poll_seconds

    def execute(self, spec: CommandSpec) -> CommandResult:
        """Run a command to completion.

        Args:
            spec: Program, arguments and options

        Returns:
            ok if the exit status is allowed, failure if not, error if the
            command could not be run or timed out
        """
        options = spec.options
        sink = options.verbose_sink
        started_at = time.monotonic()

        try:
            sink("command start", command=spec.command_line)

            executable = shutil.which(spec.program)
            if executable is None:
                return CommandResult.execution_error(
                    f"executable not found: {spec.program}", command=spec.argv
                )

            if options.streaming:
                output, status = self._collect_streaming(executable, spec)
            else:
                output, status = self._collect_buffered(executable, spec)
        except CommandTimeoutError as e:
            sink("command timed out", command=spec.command_line, timeout_ms=int(e.timeout * 1000))
            return CommandResult.execution_error(str(e), command=spec.argv)
        except Exception as e:
            # Engine boundary: faults are reported as results, never raised
            return CommandResult.execution_error(
                f"{type(e).__name__}: {e}", command=spec.argv
            )

        elapsed_ms = int((time.monotonic() - started_at) * 1000)
        if status in options.allowed_exit_codes:
            sink("command finish", command=spec.command_line, status=status, elapsed_ms=elapsed_ms)
            return CommandResult.ok(output, command=spec.argv, exit_code=status)

        sink("command failed", command=spec.command_line, status=status, elapsed_ms=elapsed_ms)
        return CommandResult.failure(status, output, command=spec.argv)

    def _collect_buffered(self, executable: str, spec: CommandSpec) -> tuple[bytes, int]:
        """Run the process as one background task and poll it until done."""
        options = spec.options
        process = subprocess.Popen(
            [executable, *spec.args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
        started_at = time.monotonic()

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="hexguard-cmd") as pool:
            task = pool.submit(process.communicate)
            while True:
                remaining = options.timeout - (time.monotonic() - started_at)
                try:
                    output, _ = task.result(timeout=max(0.0, min(self._buffered_poll, remaining)))
                    return output or b"", process.returncode
                except TimeoutError:
                    elapsed = time.monotonic() - started_at
                    if elapsed >= options.timeout:
                        _kill(process)
                        raise CommandTimeoutError(options.timeout, spec.command_line) from None
                    options.verbose_sink(
                        "command still running",
                        command=spec.command_line,
                        elapsed_ms=int(elapsed * 1000),
                    )

    def _collect_streaming(self, executable: str, spec: CommandSpec) -> tuple[bytes, int]:
        """Run the process on a pseudo-terminal, rendering output as it arrives.

        The command leads its own session, so one killpg reaches everything
        it started, including children that ignore SIGHUP.
        """
        options = spec.options
        mode = stream_mode_for(spec.program, spec.args)

        master, slave = os.openpty()
        try:
            process = subprocess.Popen(
                [executable, *spec.args],
                stdin=slave,
                stdout=slave,
                stderr=slave,
                start_new_session=True,
            )
        except BaseException:
            os.close(master)
            raise
        finally:
            os.close(slave)

        chunks: queue.Queue[bytes | None] = queue.Queue()
        reader = threading.Thread(
            target=_pump, args=(master, chunks), name="hexguard-pty", daemon=True
        )
        reader.start()

        raw = bytearray()
        state = StreamState()
        started_at = time.monotonic()

        try:
            while True:
                remaining = options.timeout - (time.monotonic() - started_at)
                if remaining <= 0:
                    _kill(process)
                    raise CommandTimeoutError(options.timeout, spec.command_line)
                try:
                    chunk = chunks.get(timeout=min(self._streaming_poll, remaining))
                except queue.Empty:
                    continue
                if chunk is None:
                    break
                raw.extend(chunk)
                rendered, state = render(mode, chunk, state)
                if rendered:
                    options.output_sink(rendered)

            remaining = options.timeout - (time.monotonic() - started_at)
            try:
                status = process.wait(timeout=max(0.0, remaining))
            except subprocess.TimeoutExpired:
                _kill(process)
                raise CommandTimeoutError(options.timeout, spec.command_line) from None
        finally:
            if process.returncode is None:
                _kill(process)
            reader.join(timeout=self._streaming_poll)
            os.close(master)

        rendered, _ = render(mode, b"\n", state)
        if rendered:
            options.output_sink(rendered)
        return bytes(raw), status


def _pump(fd: int, chunks: "queue.Queue[bytes | None]") -> None:
    """Forward raw reads from the pty master; None marks end of stream."""
    try:
        while True:
            data = os.read(fd, _READ_SIZE)
            if not data:
                break
            chunks.put(data)
    except OSError:
        # EIO once no process holds the terminal open, EBADF after close
        pass
    finally:
        chunks.put(None)


def _kill(process: subprocess.Popen[bytes]) -> None:
    """SIGKILL the process group; no graceful shutdown."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    process.wait()
