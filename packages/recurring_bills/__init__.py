"""Public interface for the ``recurring_bills`` package.

This module only re-exports the stable import surface; the logic lives in the
submodules (``navigation``, ``recurrence``, ``aggregator``, ``store`` and
``repository``).
"""

from .aggregator import BillAggregator, expected_amount
from .cache import CacheKey, DateMatchCache, MatchOperation
from .errors import BillError, BillNotFound, InvalidBillDefinition, InvalidRecurrenceRule
from .models import BillCreate, BillUpdate
from .navigation import RepeatFrequency, add_period, parse_frequency
from .recurrence import BillSchedule, RecurrenceEngine
from .repository import BillRepository
from .store import SqlBillStore

__all__ = [
    # Engine
    "RepeatFrequency",
    "add_period",
    "parse_frequency",
    "BillSchedule",
    "RecurrenceEngine",
    "MatchOperation",
    "CacheKey",
    "DateMatchCache",
    # Aggregates and persistence
    "BillAggregator",
    "expected_amount",
    "SqlBillStore",
    "BillRepository",
    # Payloads
    "BillCreate",
    "BillUpdate",
    # Errors
    "BillError",
    "BillNotFound",
    "InvalidBillDefinition",
    "InvalidRecurrenceRule",
]
