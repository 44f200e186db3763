"""Modes and kinds shared across subsystem boundaries."""

from enum import Enum


class SafetyMode(str, Enum):
    """Policy used by the safety gate.

    SECURITY_ONLY blocks on security verdicts alone.
    STRICT additionally blocks on breaking-change and compatibility verdicts.
    """

    SECURITY_ONLY = "security_only"
    STRICT = "strict"


class DependencyKind(str, Enum):
    """Whether a version change was requested directly or pulled in by the lockfile."""

    DIRECT = "direct"
    TRANSITIVE = "transitive"


class StreamMode(str, Enum):
    """How streamed command output is rendered for display.

    Values:
        RAW: Chunks are passed through verbatim
        OPENCODE_JSON: Chunks are newline-delimited opencode JSON events
    """

    RAW = "raw"
    OPENCODE_JSON = "opencode_json"
