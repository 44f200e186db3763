"""Dependency records produced by the package-manager adapters."""

from dataclasses import dataclass

UPDATE_POSSIBLE = "Update possible"


@dataclass(frozen=True)
class OutdatedRow:
    """One row of the `mix hex.outdated` table."""

    dep: str
    current: str
    latest: str
    status: str

    @property
    def updatable(self) -> bool:
        return self.status == UPDATE_POSSIBLE


@dataclass(frozen=True)
class LockChange:
    """A dependency whose locked version differs between two lockfile snapshots."""

    dep: str
    from_version: str
    to_version: str

    def __str__(self) -> str:
        return f"{self.dep}: {self.from_version} -> {self.to_version}"
