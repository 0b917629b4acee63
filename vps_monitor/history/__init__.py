"""Durable history: store, recorder, retention and queries."""

from __future__ import annotations

from .janitor import RetentionJanitor
from .query import HistoryQueryService, resolve_range
from .recorder import HistoryRecorder
from .store import HistoryStore

__all__ = [
    "HistoryQueryService",
    "HistoryRecorder",
    "HistoryStore",
    "RetentionJanitor",
    "resolve_range",
]
