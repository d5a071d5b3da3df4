"""Calendar stepping for bill recurrence rules.

A recurrence rule is a ``(frequency, skip)`` pair. One step advances a date by
``1 + skip`` periods of ``frequency``; ``skip=1`` therefore means "every other
period". Month-based steps clamp to the last day of the target month, so
``2016-01-31`` plus one month is ``2016-02-29``.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from enum import StrEnum
from typing import TypeAlias

from dateutil.relativedelta import relativedelta

from .errors import InvalidRecurrenceRule


class RepeatFrequency(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEAR = "half-year"
    YEARLY = "yearly"


# One period of each frequency, before multiplying by ``1 + skip``.
_PERIODS: dict[RepeatFrequency, relativedelta] = {
    RepeatFrequency.WEEKLY: relativedelta(weeks=1),
    RepeatFrequency.MONTHLY: relativedelta(months=1),
    RepeatFrequency.QUARTERLY: relativedelta(months=3),
    RepeatFrequency.HALF_YEAR: relativedelta(months=6),
    RepeatFrequency.YEARLY: relativedelta(years=1),
}

AddPeriod: TypeAlias = Callable[[date, RepeatFrequency, int], date]
"""Signature of :func:`add_period`; injected into the recurrence engine."""


def parse_frequency(value: str | RepeatFrequency) -> RepeatFrequency:
    """Return the :class:`RepeatFrequency` for ``value`` or raise ``InvalidRecurrenceRule``."""

    if isinstance(value, RepeatFrequency):
        return value
    try:
        return RepeatFrequency(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(f.value for f in RepeatFrequency)
        raise InvalidRecurrenceRule(
            f"Unsupported repeat frequency {value!r}; expected one of: {allowed}"
        ) from None


def validate_skip(skip: int) -> int:
    # bool is an int; a True skip is almost certainly a caller bug.
    if isinstance(skip, bool) or not isinstance(skip, int) or skip < 0:
        raise InvalidRecurrenceRule(f"skip must be a non-negative integer, got {skip!r}")
    return skip


def add_period(start: date, frequency: str | RepeatFrequency, skip: int = 0) -> date:
    """Advance ``start`` by ``1 + skip`` periods of ``frequency``.

    The multiplier is applied to the period before adding, so a monthly step
    with ``skip=1`` from Jan 31 lands on Mar 31 rather than drifting through
    Feb 29.
    """

    freq = parse_frequency(frequency)
    times = validate_skip(skip) + 1
    return start + _PERIODS[freq] * times


__all__ = [
    "RepeatFrequency",
    "AddPeriod",
    "parse_frequency",
    "validate_skip",
    "add_period",
]
