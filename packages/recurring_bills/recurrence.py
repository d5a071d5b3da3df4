"""Recurring-date projection for bills.

Given a bill's recurrence rule and anchor date, :class:`RecurrenceEngine`
answers three questions:

- ``next_date_match(bill, on)``: the first occurrence on or after ``on``.
- ``next_expected_match(bill, on)``: the same, but skipping one interval when
  a linked journal already paid the bill inside ``[start, end)``.
- ``get_pay_dates_in_range(bill, start, end)``: every occurrence inside
  ``[start, end]``, in increasing order.

Occurrences are reached by stepping forward from the anchor one
``add_period`` at a time, so the cost grows with the number of periods
between the anchor and the queried date. Results are memoized in a
:class:`~recurring_bills.cache.DateMatchCache`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

from .cache import CacheKey, DateMatchCache, MatchOperation
from .logging_setup import get_logger
from .navigation import AddPeriod, RepeatFrequency, add_period, parse_frequency, validate_skip

_logger = get_logger(__name__)


class RecurringBill(Protocol):
    """The bill fields the engine reads; satisfied by ``db.models.Bill``."""

    id: int
    name: str
    date: date
    repeat_freq: str
    skip: int


class JournalWindowCounter(Protocol):
    def count_journals_for_bill_in_range(
        self, bill_id: int, start: date, end: date, *, inclusive_end: bool = True
    ) -> int: ...


@dataclass(frozen=True, slots=True)
class BillSchedule:
    """A validated recurrence rule anchored at a bill's first occurrence."""

    bill_id: int | None
    anchor: date
    frequency: RepeatFrequency
    skip: int

    @classmethod
    def from_bill(cls, bill: RecurringBill) -> BillSchedule:
        # Validation happens here, before any stepping loop can start.
        return cls(
            bill_id=bill.id,
            anchor=bill.date,
            frequency=parse_frequency(bill.repeat_freq),
            skip=validate_skip(bill.skip),
        )


class RecurrenceEngine:
    """Project bill occurrences and reconcile them against linked journals.

    Parameters
    ----------
    journals:
        Collaborator counting journals linked to a bill inside a date window
        (``SqlBillStore`` in production).
    cache:
        Memo store for projected dates. A fresh cache is created per engine
        when omitted, which scopes memoization to one request.
    step:
        The calendar step function; defaults to
        :func:`recurring_bills.navigation.add_period`.
    """

    def __init__(
        self,
        journals: JournalWindowCounter,
        *,
        cache: DateMatchCache | None = None,
        step: AddPeriod = add_period,
    ) -> None:
        self._journals = journals
        self.cache = cache if cache is not None else DateMatchCache()
        self._step = step

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def _advance(self, schedule: BillSchedule, start: date) -> date:
        return self._step(start, schedule.frequency, schedule.skip)

    def _first_on_or_after(self, schedule: BillSchedule, on: date) -> date:
        start = schedule.anchor
        while start < on:
            start = self._advance(schedule, start)
        return start

    def _cached(
        self, schedule: BillSchedule, operation: MatchOperation, on: date
    ) -> tuple[CacheKey | None, date | None]:
        if schedule.bill_id is None:
            # Transient bills have no stable identity to key on.
            return None, None
        key = CacheKey(schedule.bill_id, operation, on)
        return key, self.cache.get(key)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def next_date_match(self, bill: RecurringBill, on: date) -> date:
        """Return the first occurrence of ``bill`` on or after ``on``.

        Whether a journal was already recorded for it is not relevant here.
        When the anchor is already on or after ``on`` the anchor is returned.
        """

        schedule = BillSchedule.from_bill(bill)
        key, hit = self._cached(schedule, MatchOperation.NEXT_DATE_MATCH, on)
        if hit is not None:
            return hit

        start = self._first_on_or_after(schedule, on)
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "next_date_match: bill_id=%s on=%s start=%s end=%s",
                schedule.bill_id,
                on.isoformat(),
                start.isoformat(),
                self._advance(schedule, start).isoformat(),
            )
        if key is not None:
            self.cache.put(key, start)
        return start

    def next_expected_match(self, bill: RecurringBill, on: date) -> date:
        """Return the occurrence at which ``bill`` is next expected to be paid.

        Finds the interval ``[start, end)`` as :meth:`next_date_match` does; if
        a linked journal falls inside it the bill already fired for that
        interval and the following occurrence is returned instead.
        """

        schedule = BillSchedule.from_bill(bill)
        key, hit = self._cached(schedule, MatchOperation.NEXT_EXPECTED_MATCH, on)
        if hit is not None:
            return hit

        start = self._first_on_or_after(schedule, on)
        end = self._advance(schedule, start)
        journal_count = 0
        if schedule.bill_id is not None:
            journal_count = self._journals.count_journals_for_bill_in_range(
                schedule.bill_id, start, end, inclusive_end=False
            )
        if journal_count > 0:
            _logger.debug(
                "next_expected_match: bill_id=%s paid %d time(s) in [%s, %s); start becomes %s",
                schedule.bill_id,
                journal_count,
                start.isoformat(),
                end.isoformat(),
                end.isoformat(),
            )
            start = end
        _logger.debug(
            "next_expected_match: bill_id=%s on=%s start=%s",
            schedule.bill_id,
            on.isoformat(),
            start.isoformat(),
        )
        if key is not None:
            self.cache.put(key, start)
        return start

    def get_pay_dates_in_range(self, bill: RecurringBill, start: date, end: date) -> list[date]:
        """Return the dates inside ``[start, end]`` at which ``bill`` is expected to hit.

        An inverted range (``start > end``) yields an empty list.
        """

        dates: list[date] = []
        if start > end:
            _logger.debug(
                "get_pay_dates_in_range: empty range %s > %s", start.isoformat(), end.isoformat()
            )
            return dates

        current = start
        while current <= end:
            match = self.next_date_match(bill, current)
            if match > end:
                break
            dates.append(match)
            current = match + timedelta(days=1)

        _logger.debug(
            "get_pay_dates_in_range: bill %r (%s) between %s and %s: %s",
            bill.name,
            bill.repeat_freq,
            start.isoformat(),
            end.isoformat(),
            [d.isoformat() for d in dates],
        )
        return dates


__all__ = [
    "RecurringBill",
    "JournalWindowCounter",
    "BillSchedule",
    "RecurrenceEngine",
]
