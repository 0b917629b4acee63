"""Exception hierarchy shared by the monitor components."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for errors raised by the monitor core."""


class UnknownFacetError(MonitorError, ValueError):
    """Raised when a snapshot update names a facet that does not exist."""

    def __init__(self, facet: str) -> None:
        super().__init__(f"Unknown snapshot facet: {facet!r}")
        self.facet = facet


class HistoryStoreError(MonitorError):
    """A durable-store operation (insert, delete, range scan) failed."""


class HistoryUnavailableError(MonitorError):
    """History could not be read; surfaced to callers as a request error."""
