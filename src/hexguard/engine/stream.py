# src/hexguard/engine/stream.py
"""Incremental rendering of streamed command output.

opencode run --format json emits one JSON event per line. Process output
arrives in arbitrary chunks, so a line can be split across reads; the
unterminated tail is carried in an explicit StreamState that the caller
passes back with the next chunk.

render() is pure: it never writes anywhere. The command engine decides
where rendered text goes.
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import typer

from hexguard.contracts import StreamMode

_PREFIX = "[opencode]"


@dataclass(frozen=True)
class StreamState:
    """Bytes after the last newline of everything rendered so far.

    Kept as bytes so a multi-byte character split across chunks is
    reassembled before decoding.
    """

    pending_tail: bytes = b""


def stream_mode_for(program: str, args: Sequence[str]) -> StreamMode:
    """Pick the rendering mode for a command.

    Only `opencode ... --format json` (or `--format=json`) produces JSON events.
    """
    if program != "opencode":
        return StreamMode.RAW
    if "--format=json" in args:
        return StreamMode.OPENCODE_JSON
    for flag, value in zip(args, args[1:]):
        if flag == "--format" and value == "json":
            return StreamMode.OPENCODE_JSON
    return StreamMode.RAW


def render(mode: StreamMode, chunk: bytes, state: StreamState) -> tuple[str, StreamState]:
    """Render one chunk of output.

    Args:
        mode: Rendering mode for the command
        chunk: Bytes just read from the process
        state: State returned by the previous call (StreamState() initially)

    Returns:
        (rendered text, new state). In RAW mode the chunk is returned as-is
        and the state stays empty. Call once more with b"\\n" at stream end to
        flush a final unterminated line.
    """
    if mode is StreamMode.RAW:
        return chunk.decode("utf-8", errors="replace"), StreamState()

    *complete_lines, tail = (state.pending_tail + chunk).split(b"\n")
    rendered = "".join(
        render_event_line(line.decode("utf-8", errors="replace")) for line in complete_lines
    )
    return rendered, StreamState(pending_tail=tail)


def render_event_line(line: str) -> str:
    """Render one opencode JSON event line.

    Blank lines, undecodable lines and unknown event types render as "".
    """
    line = line.strip()
    if not line:
        return ""
    try:
        event = json.loads(line)
    except json.JSONDecodeError:
        return ""
    if not isinstance(event, dict):
        return ""

    event_type = event.get("type")
    part = event.get("part")
    part = part if isinstance(part, dict) else {}

    if event_type == "text":
        text = part.get("text")
        return text + "\n" if isinstance(text, str) else ""

    if event_type == "tool_use":
        tool = part.get("tool")
        tool_state = part.get("state")
        if isinstance(tool, str) and isinstance(tool_state, dict):
            return _render_tool_use(tool, tool_state)
        return ""

    if event_type == "step_start":
        return typer.style(f"{_PREFIX} step started", fg=typer.colors.BRIGHT_BLACK) + "\n"

    if event_type == "step_finish":
        reason = part.get("reason")
        if isinstance(reason, str):
            return (
                typer.style(f"{_PREFIX} step finished ({reason})", fg=typer.colors.BRIGHT_BLACK)
                + "\n"
            )
        return ""

    if event_type == "error":
        message = _nested_get(event, "error", "data", "message")
        if isinstance(message, str):
            return typer.style(f"{_PREFIX} error: {message}", fg=typer.colors.RED) + "\n"
        return ""

    return ""


def _render_tool_use(tool: str, state: dict[str, Any]) -> str:
    status = state.get("status", "unknown")
    title = state.get("title")
    header = f"{_PREFIX}[tool] {tool} ({status})"
    if isinstance(title, str) and title:
        header = f"{header}: {title}"
    header = typer.style(header, fg=typer.colors.YELLOW)

    output = state.get("output")
    if isinstance(output, str) and output:
        return f"{header}\n{output}\n"
    return f"{header}\n"


def _nested_get(data: dict[str, Any], *path: str) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current
