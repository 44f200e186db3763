"""Pipeline engine: command execution, output rendering, and the orchestrator.

The orchestrator and its stages are imported from their modules directly:
    from hexguard.engine.orchestrator import Orchestrator
"""

from hexguard.engine.runner import (
    CommandOptions,
    CommandRunner,
    CommandSpec,
    format_reason,
)
from hexguard.engine.stream import StreamState, render, render_event_line, stream_mode_for

__all__ = [
    "CommandOptions",
    "CommandRunner",
    "CommandSpec",
    "StreamState",
    "format_reason",
    "render",
    "render_event_line",
    "stream_mode_for",
]
