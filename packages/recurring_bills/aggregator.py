"""Monetary aggregates over a user's bills.

All arithmetic is exact ``decimal.Decimal``; nothing is routed through floats.
Paid totals are negative (money left the user's accounts); unpaid estimates
are positive.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import Protocol

from .logging_setup import get_logger
from .recurrence import RecurrenceEngine, RecurringBill

_logger = get_logger(__name__)

_ZERO = Decimal("0")
_TWO = Decimal("2")


class BillAmounts(RecurringBill, Protocol):
    amount_min: Decimal
    amount_max: Decimal


class AggregateStore(Protocol):
    def list_bills_for_user(
        self, user_id: int, *, active: bool | None = None
    ) -> Sequence[BillAmounts]: ...

    def count_journals_for_bill_in_range(
        self, bill_id: int, start: date, end: date, *, inclusive_end: bool = True
    ) -> int: ...

    def sum_signed_amount_for_bill_in_range(
        self, bill_id: int, start: date, end: date, *, negative: bool = True
    ) -> Decimal: ...

    def journal_totals_for_bill(self, bill_id: int, *, year: int | None = None) -> list[Decimal]: ...


def expected_amount(bill: BillAmounts) -> Decimal:
    """Midpoint of the bill's expected charge: ``(amount_min + amount_max) / 2``."""

    return (bill.amount_min + bill.amount_max) / _TWO


def _mean(values: Sequence[Decimal]) -> Decimal:
    if not values:
        return _ZERO
    return sum(values, _ZERO) / Decimal(len(values))


class BillAggregator:
    """Paid/unpaid sums and averages computed from the store and the engine."""

    def __init__(self, store: AggregateStore, engine: RecurrenceEngine) -> None:
        self.store = store
        self.engine = engine

    def get_bills_paid_in_range(self, user_id: int, start: date, end: date) -> Decimal:
        """Total of the negative legs of journals linked to active bills in ``[start, end]``."""

        total = _ZERO
        for bill in self.store.list_bills_for_user(user_id, active=True):
            amount = self.store.sum_signed_amount_for_bill_in_range(
                bill.id, start, end, negative=True
            )
            if amount:
                total += amount
                _logger.debug(
                    "paid: bill #%d (%s) adds %s, total becomes %s", bill.id, bill.name, amount, total
                )
        return total

    def get_bills_unpaid_in_range(self, user_id: int, start: date, end: date) -> Decimal:
        """Estimate the value of expected-but-unrecorded occurrences in ``[start, end]``.

        For each active bill, every projected pay date not matched by a linked
        journal in the range adds the bill's expected amount.
        """

        total = _ZERO
        for bill in self.store.list_bills_for_user(user_id, active=True):
            expected = len(self.engine.get_pay_dates_in_range(bill, start, end))
            actual = self.store.count_journals_for_bill_in_range(bill.id, start, end)
            missing = expected - actual
            _logger.debug(
                "unpaid: bill #%d (%s) dates=%d journals=%d missing=%d",
                bill.id,
                bill.name,
                expected,
                actual,
                missing,
            )
            if missing > 0:
                amount = expected_amount(bill) * missing
                total += amount
                _logger.debug("unpaid: add %s, total becomes %s", amount, total)
        return total

    def get_overall_average(self, bill: BillAmounts) -> Decimal:
        """Mean journal total over every journal linked to ``bill``; ``0`` when none."""

        return _mean(self.store.journal_totals_for_bill(bill.id))

    def get_year_average(self, bill: BillAmounts, year: int) -> Decimal:
        """Mean journal total over the journals linked to ``bill`` in calendar ``year``."""

        return _mean(self.store.journal_totals_for_bill(bill.id, year=year))


__all__ = [
    "BillAggregator",
    "expected_amount",
]
