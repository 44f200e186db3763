# src/hexguard/core/deps.py
"""Parsers for package-manager output and the Mix lockfile."""

import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from hexguard.contracts import LockChange, OutdatedRow

_COLUMN_SPLIT = re.compile(r"\s{2,}")
_METADATA_PREFIXES = (
    "Dependency",
    "Run `mix hex.outdated",
    "To view the diffs",
    "https://",
)

# "ash": {:hex, :ash, "3.14.0", ...}  (package atom may be quoted)
_HEX_LOCK_ENTRY = re.compile(
    r'(?:^|%\{)\s*"(?P<name>[^"]+)"\s*:\s*\{\s*:hex\s*,\s*:(?:"[^"]+"|[\w.]+)\s*,\s*"(?P<version>[^"]+)"',
    re.MULTILINE,
)


def parse_outdated_table(output: str) -> list[OutdatedRow]:
    """Parse `mix hex.outdated --all` output into rows.

    Header and footer lines are skipped. Columns are separated by two or
    more spaces; rows carrying the optional lock-marker column are accepted.
    Lines that fit neither shape are dropped.
    """
    rows: list[OutdatedRow] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith(_METADATA_PREFIXES):
            continue
        columns = [col for col in _COLUMN_SPLIT.split(line) if col]
        if len(columns) == 4:
            dep, current, latest, status = columns
        elif len(columns) == 5:
            dep, _marker, current, latest, status = columns
        else:
            continue
        rows.append(OutdatedRow(dep=dep, current=current, latest=latest, status=status))
    return rows


def filter_update_candidates(rows: Iterable[OutdatedRow]) -> list[OutdatedRow]:
    """Keep only rows whose status allows an update."""
    return [row for row in rows if row.updatable]


def parse_lock_versions(text: str) -> dict[str, str]:
    """Map dependency name -> locked version for every hex entry.

    git and path dependencies carry no hex version and are skipped.
    """
    return {m.group("name"): m.group("version") for m in _HEX_LOCK_ENTRY.finditer(text)}


def read_lock_versions(lock_path: Path) -> dict[str, str]:
    """Read hex versions from a mix.lock file.

    A missing lockfile is an empty lock, matching Mix.

    Raises:
        OSError: If the file exists but cannot be read
        UnicodeDecodeError: If the file is not UTF-8
    """
    if not lock_path.exists():
        return {}
    return parse_lock_versions(lock_path.read_text(encoding="utf-8"))


def lock_changes(before: Mapping[str, str], after: Mapping[str, str]) -> list[LockChange]:
    """Compute version deltas between two lock snapshots.

    Only dependencies present on both sides with differing versions count;
    additions and removals are not deltas. Order follows first appearance in
    the before snapshot, then the after snapshot.
    """
    changes: list[LockChange] = []
    for dep in dict.fromkeys([*before.keys(), *after.keys()]):
        from_version = before.get(dep)
        to_version = after.get(dep)
        if from_version is None or to_version is None or from_version == to_version:
            continue
        changes.append(LockChange(dep=dep, from_version=from_version, to_version=to_version))
    return changes
