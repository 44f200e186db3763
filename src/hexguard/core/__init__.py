"""Core infrastructure: configuration, logging, lockfile and table parsing."""

from hexguard.core.config import HexguardSettings, load_settings
from hexguard.core.logging import RunLogger, configure_logging

__all__ = [
    "HexguardSettings",
    "RunLogger",
    "configure_logging",
    "load_settings",
]
