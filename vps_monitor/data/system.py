"""Host uptime."""

from __future__ import annotations

import time

import psutil


def collect_uptime() -> float:
    return max(0.0, time.time() - float(psutil.boot_time()))
