"""Filesystem usage collection."""

from __future__ import annotations

import logging

import psutil

from vps_monitor.models import FilesystemUsage

logger = logging.getLogger(__name__)


def collect_filesystems() -> tuple[FilesystemUsage, ...]:
    """Usage of every mounted physical filesystem, in partition-table order."""

    filesystems: list[FilesystemUsage] = []
    seen: set[str] = set()
    for part in psutil.disk_partitions(all=False):
        if part.device in seen:
            continue
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except (PermissionError, OSError) as exc:  # pragma: no cover - mountpoint permissions
            logger.debug("Sin acceso a %s: %s", part.mountpoint, exc)
            continue
        seen.add(part.device)
        filesystems.append(
            FilesystemUsage(
                fs=part.device,
                type=part.fstype,
                size_bytes=int(usage.total),
                used_bytes=int(usage.used),
                available_bytes=int(usage.free),
                used_percent=float(usage.percent),
            )
        )
    return tuple(filesystems)
