"""In-process memoization of projected bill dates.

Projection results depend only on a bill's recurrence fields (anchor,
frequency, skip), the input date and, for ``next_expected_match``, the
journals linked to the bill. Entries are keyed by a typed
``(bill_id, operation, on)`` tuple and never expire on their own; writers
that change any of those inputs call :meth:`DateMatchCache.invalidate_bill`.
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import NamedTuple

from .logging_setup import get_logger

_logger = get_logger(__name__)


class MatchOperation(StrEnum):
    NEXT_DATE_MATCH = "next_date_match"
    NEXT_EXPECTED_MATCH = "next_expected_match"


class CacheKey(NamedTuple):
    bill_id: int
    operation: MatchOperation
    on: date


class DateMatchCache:
    """A plain key/value store for projected dates with per-bill invalidation."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, date] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> date | None:
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, key: CacheKey, value: date) -> None:
        self._entries[key] = value

    def invalidate_bill(self, bill_id: int) -> int:
        """Drop every entry for ``bill_id`` and return how many were removed."""

        stale = [k for k in self._entries if k.bill_id == bill_id]
        for k in stale:
            del self._entries[k]
        if stale:
            _logger.debug("cache:invalidate bill_id=%d removed=%d", bill_id, len(stale))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0


__all__ = [
    "MatchOperation",
    "CacheKey",
    "DateMatchCache",
]
