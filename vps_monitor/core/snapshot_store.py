"""Single owner of the latest merged telemetry reading."""

from __future__ import annotations

import threading
from typing import Any

from vps_monitor.core.errors import UnknownFacetError
from vps_monitor.models import CPUInfo, FilesystemUsage, MemoryInfo, NetworkInterfaceRate, Snapshot

_FACET_TYPES: dict[str, type | tuple[type, ...]] = {
    "cpu": CPUInfo,
    "memory": MemoryInfo,
    "network": NetworkInterfaceRate,
    "disk": FilesystemUsage,
    "uptime": (int, float),
}
_SEQUENCE_FACETS = frozenset({"network", "disk"})

FACETS: tuple[str, ...] = tuple(_FACET_TYPES)


def _coerce(facet: str, value: Any) -> Any:
    if facet not in _FACET_TYPES:
        raise UnknownFacetError(facet)
    expected = _FACET_TYPES[facet]
    if facet in _SEQUENCE_FACETS:
        items = tuple(value)
        for item in items:
            if not isinstance(item, expected):
                raise TypeError(f"{facet} entries must be {expected.__name__}, got {type(item).__name__}")
        return items
    if isinstance(value, bool) or not isinstance(value, expected):
        raise TypeError(f"{facet} must be {expected}, got {type(value).__name__}")
    if facet == "uptime":
        return float(value)
    return value


class SnapshotStore:
    """Holds one value per facet and hands out immutable :class:`Snapshot` views.

    Facet values are frozen, so replacing the reference under the lock is
    enough to make each update all-or-nothing for readers. Different facets
    can be refreshed at different times; ``read`` always reflects the most
    recently completed update of each.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        initial = Snapshot()
        self._facets: dict[str, Any] = {name: getattr(initial, name) for name in FACETS}
        self._versions: dict[str, int] = {name: 0 for name in FACETS}

    def update(self, facet: str, value: Any) -> None:
        """Atomically replace one facet."""

        self.update_many(**{facet: value})

    def update_many(self, **facets: Any) -> None:
        """Replace several facets under a single lock acquisition."""

        coerced = {name: _coerce(name, value) for name, value in facets.items()}
        with self._lock:
            for name, value in coerced.items():
                if name == "uptime":
                    # uptime never moves backwards, even if an older sample lands last
                    value = max(self._facets["uptime"], value)
                self._facets[name] = value
                self._versions[name] += 1

    def read(self) -> Snapshot:
        with self._lock:
            return Snapshot(**self._facets)

    def version(self, facet: str) -> int:
        """Number of completed updates applied to ``facet``."""

        if facet not in self._versions:
            raise UnknownFacetError(facet)
        with self._lock:
            return self._versions[facet]
