"""Core utilities for VPS Monitor."""

from __future__ import annotations

from .config import APP_NAME, HISTORY, LIMITS, SAMPLING, load_server_config

__all__ = [
    "APP_NAME",
    "HISTORY",
    "LIMITS",
    "SAMPLING",
    "load_server_config",
]
