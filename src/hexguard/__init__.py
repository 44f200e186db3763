"""Hexguard: risk-gated dependency updates for Mix projects."""

__version__ = "0.2.0"
