"""SQLAlchemy-backed store for bills and their linked journals.

:class:`SqlBillStore` wraps a caller-owned ``Session``; it never commits.
Every bill lookup is scoped by an explicit ``user_id``. Journal queries ignore
soft-deleted rows (``deleted_at IS NOT NULL``).

Date windows are inclusive on both ends unless ``inclusive_end=False`` is
passed, which makes the window half-open (``[start, end)``) as required by
reconciliation in ``RecurrenceEngine.next_expected_match``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any, NamedTuple

from db.models.bills import Bill, Transaction, TransactionJournal
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from .errors import BillError
from .logging_setup import get_logger

_logger = get_logger(__name__)

_ZERO = Decimal("0")


class LinkResult(NamedTuple):
    linked: int
    previous_bill_ids: frozenset[int]


def _journal_window(bill_id: int, start: date, end: date, *, inclusive_end: bool = True):
    """Return WHERE clauses selecting live journals of ``bill_id`` inside the window."""

    upper = TransactionJournal.date <= end if inclusive_end else TransactionJournal.date < end
    return (
        TransactionJournal.bill_id == bill_id,
        TransactionJournal.deleted_at.is_(None),
        TransactionJournal.date >= start,
        upper,
    )


def _active_first_by_name(bill: Bill) -> tuple[int, str]:
    return (0 if bill.active else 1, bill.name.casefold())


class SqlBillStore:
    """Query and persistence collaborator used by the engine and aggregator."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Bill lookups
    # ------------------------------------------------------------------

    def list_bills_for_user(self, user_id: int, *, active: bool | None = None) -> list[Bill]:
        """Return the user's bills ordered by name, optionally filtered on ``active``."""

        stmt = select(Bill).where(Bill.user_id == user_id)
        if active is not None:
            stmt = stmt.where(Bill.active == active)
        stmt = stmt.order_by(Bill.name, Bill.id)
        return list(self.session.scalars(stmt).all())

    def find_bill_by_id(self, user_id: int, bill_id: int) -> Bill | None:
        stmt = select(Bill).where(Bill.user_id == user_id, Bill.id == bill_id)
        return self.session.scalars(stmt).first()

    def find_bill_by_name(self, user_id: int, name: str) -> Bill | None:
        # Exact, case-sensitive match; the first bill by id wins on duplicates.
        stmt = select(Bill).where(Bill.user_id == user_id, Bill.name == name).order_by(Bill.id)
        return self.session.scalars(stmt).first()

    def get_bills_by_ids(self, user_id: int, bill_ids: Iterable[int]) -> list[Bill]:
        ids = list(bill_ids)
        if not ids:
            return []
        stmt = select(Bill).where(Bill.user_id == user_id, Bill.id.in_(ids)).order_by(Bill.id)
        return list(self.session.scalars(stmt).all())

    def bills_for_accounts(self, user_id: int, account_ids: Iterable[int]) -> list[Bill]:
        """Return bills with a linked journal that withdrew from one of ``account_ids``.

        Ordered with active bills first, then case-insensitively by name.
        """

        ids = list(account_ids)
        if not ids:
            return []
        stmt = (
            select(Bill)
            .join(
                TransactionJournal,
                and_(
                    TransactionJournal.bill_id == Bill.id,
                    TransactionJournal.deleted_at.is_(None),
                ),
            )
            .join(Transaction, Transaction.journal_id == TransactionJournal.id)
            .where(
                Bill.user_id == user_id,
                Transaction.amount < 0,
                Transaction.account_id.in_(ids),
            )
            .distinct()
        )
        return sorted(self.session.scalars(stmt).all(), key=_active_first_by_name)

    # ------------------------------------------------------------------
    # Bill writes
    # ------------------------------------------------------------------

    def create_bill(self, user_id: int, values: Mapping[str, Any]) -> Bill:
        bill = Bill(user_id=user_id, **values)
        self.session.add(bill)
        self.session.flush()
        _logger.debug("store:create_bill id=%d user_id=%d name=%r", bill.id, user_id, bill.name)
        return bill

    def update_bill(self, bill: Bill, values: Mapping[str, Any]) -> Bill:
        for field, value in values.items():
            setattr(bill, field, value)
        self.session.flush()
        _logger.debug("store:update_bill id=%d fields=%s", bill.id, sorted(values))
        return bill

    def delete_bill(self, bill: Bill) -> None:
        # Linked journals survive; the relationship nulls their bill_id.
        bill_id = bill.id
        self.session.delete(bill)
        self.session.flush()
        _logger.debug("store:delete_bill id=%d", bill_id)

    def link_transactions_to_bill(
        self, bill: Bill, transactions: Iterable[Transaction]
    ) -> LinkResult:
        """Point the journal of every transaction at ``bill``.

        Returns how many journals were linked and the ids of the bills they
        were linked to before, whose projections are now stale as well.
        """

        journals: dict[int, TransactionJournal] = {}
        for tx in transactions:
            journal = tx.journal
            if journal.user_id != bill.user_id:
                raise BillError(
                    f"journal #{journal.id} belongs to a different user than bill #{bill.id}"
                )
            journals[journal.id] = journal

        previous: set[int] = set()
        for journal in journals.values():
            if journal.bill_id is not None and journal.bill_id != bill.id:
                previous.add(journal.bill_id)
            journal.bill = bill
            _logger.debug("Linked journal #%d to bill #%d", journal.id, bill.id)
        self.session.flush()
        for old_id in previous:
            # Drop the moved journals from a previously loaded collection.
            old = self.session.get(Bill, old_id)
            if old is not None:
                self.session.expire(old, ["journals"])
        return LinkResult(linked=len(journals), previous_bill_ids=frozenset(previous))

    # ------------------------------------------------------------------
    # Journal aggregates
    # ------------------------------------------------------------------

    def count_journals_for_bill_in_range(
        self, bill_id: int, start: date, end: date, *, inclusive_end: bool = True
    ) -> int:
        stmt = select(func.count(TransactionJournal.id)).where(
            *_journal_window(bill_id, start, end, inclusive_end=inclusive_end)
        )
        return int(self.session.execute(stmt).scalar_one())

    def journal_dates_for_bill_in_range(self, bill_id: int, start: date, end: date) -> list[date]:
        stmt = (
            select(TransactionJournal.date)
            .where(*_journal_window(bill_id, start, end))
            .order_by(TransactionJournal.date, TransactionJournal.id)
        )
        return list(self.session.scalars(stmt).all())

    def sum_signed_amount_for_bill_in_range(
        self, bill_id: int, start: date, end: date, *, negative: bool = True
    ) -> Decimal:
        """Sum the negative (or positive) legs of the bill's journals in ``[start, end]``."""

        sign = Transaction.amount < 0 if negative else Transaction.amount > 0
        stmt = (
            select(func.sum(Transaction.amount))
            .select_from(Transaction)
            .join(TransactionJournal, Transaction.journal_id == TransactionJournal.id)
            .where(*_journal_window(bill_id, start, end), sign)
        )
        total = self.session.execute(stmt).scalar_one()
        return _ZERO if total is None else total

    def journal_totals_for_bill(self, bill_id: int, *, year: int | None = None) -> list[Decimal]:
        """Return one total per linked journal: the sum of its positive legs.

        With ``year`` set, only journals dated inside that calendar year count.
        """

        stmt = (
            select(TransactionJournal)
            .where(
                TransactionJournal.bill_id == bill_id,
                TransactionJournal.deleted_at.is_(None),
            )
            .options(selectinload(TransactionJournal.transactions))
            .order_by(TransactionJournal.date, TransactionJournal.id)
        )
        if year is not None:
            stmt = stmt.where(
                TransactionJournal.date >= date(year, 1, 1),
                TransactionJournal.date <= date(year, 12, 31),
            )
        totals: list[Decimal] = []
        for journal in self.session.scalars(stmt).all():
            totals.append(sum((t.amount for t in journal.transactions if t.amount > 0), _ZERO))
        return totals


__all__ = ["LinkResult", "SqlBillStore"]
