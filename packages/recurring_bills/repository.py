"""User-scoped bill repository.

:class:`BillRepository` is the single entry point higher layers use. It wires
the SQL store, the recurrence engine (with its memo cache) and the aggregator
around one caller-owned ``Session``. Every operation takes the owning
``user_id`` (or a bill already loaded for that user) explicitly; there is no
ambient "current user".

Writes validate first and afterwards invalidate the cached projections of
every bill they touch, so an edited anchor, frequency or skip, or a journal
linked to (or moved away from) a bill, is visible to the next projection call.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from db.models.bills import Bill, Transaction
from sqlalchemy.orm import Session

from .aggregator import BillAggregator
from .cache import DateMatchCache
from .errors import BillNotFound, InvalidBillDefinition
from .logging_setup import get_logger
from .models import BillCreate, BillUpdate
from .navigation import parse_frequency, validate_skip
from .recurrence import RecurrenceEngine
from .store import SqlBillStore

_logger = get_logger(__name__)


def _validate_definition(values: Mapping[str, Any]) -> dict[str, Any]:
    """Check cross-field bill invariants and normalize the recurrence rule.

    Raises ``InvalidBillDefinition`` for an empty name or inverted amount
    bounds and ``InvalidRecurrenceRule`` for a bad frequency or skip.
    """

    out = dict(values)
    name = out.get("name")
    if name is not None and not str(name).strip():
        raise InvalidBillDefinition("bill name must be non-empty")
    amount_min: Decimal = out["amount_min"]
    amount_max: Decimal = out["amount_max"]
    if amount_min > amount_max:
        raise InvalidBillDefinition(
            f"amount_min ({amount_min}) must not exceed amount_max ({amount_max})"
        )
    out["repeat_freq"] = parse_frequency(out["repeat_freq"]).value
    out["skip"] = validate_skip(out["skip"])
    return out


class BillRepository:
    """Bill lookups, writes, projections and aggregates for explicit users."""

    def __init__(self, session: Session, *, cache: DateMatchCache | None = None) -> None:
        self.store = SqlBillStore(session)
        self.engine = RecurrenceEngine(self.store, cache=cache)
        self.aggregator = BillAggregator(self.store, self.engine)

    @property
    def cache(self) -> DateMatchCache:
        return self.engine.cache

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find(self, user_id: int, bill_id: int) -> Bill | None:
        return self.store.find_bill_by_id(user_id, bill_id)

    def get(self, user_id: int, bill_id: int) -> Bill:
        """Like :meth:`find` but raise ``BillNotFound`` instead of returning ``None``."""

        bill = self.find(user_id, bill_id)
        if bill is None:
            raise BillNotFound(f"bill #{bill_id} not found for user #{user_id}")
        return bill

    def find_by_name(self, user_id: int, name: str) -> Bill | None:
        return self.store.find_bill_by_name(user_id, name)

    def get_by_ids(self, user_id: int, bill_ids: Iterable[int]) -> list[Bill]:
        return self.store.get_bills_by_ids(user_id, bill_ids)

    def get_active_bills(self, user_id: int) -> list[Bill]:
        return self.store.list_bills_for_user(user_id, active=True)

    def get_bills(self, user_id: int) -> list[Bill]:
        """All bills of the user: active ones first, each group ordered by name (case-insensitive)."""

        bills = self.store.list_bills_for_user(user_id)
        return sorted(bills, key=lambda b: (0 if b.active else 1, b.name.casefold()))

    def get_bills_for_accounts(self, user_id: int, account_ids: Iterable[int]) -> list[Bill]:
        return self.store.bills_for_accounts(user_id, account_ids)

    def get_paid_dates_in_range(self, bill: Bill, start: date, end: date) -> list[date]:
        """Dates of the journals linked to ``bill`` inside ``[start, end]``."""

        return self.store.journal_dates_for_bill_in_range(bill.id, start, end)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store_bill(self, user_id: int, data: BillCreate | Mapping[str, Any]) -> Bill:
        payload = data if isinstance(data, BillCreate) else BillCreate.model_validate(data)
        values = _validate_definition(payload.model_dump())
        bill = self.store.create_bill(user_id, values)
        _logger.info("Created bill #%d (%s) for user #%d", bill.id, bill.name, user_id)
        return bill

    def update(self, bill: Bill, data: BillUpdate | Mapping[str, Any]) -> Bill:
        payload = data if isinstance(data, BillUpdate) else BillUpdate.model_validate(data)
        changes = payload.changes()
        merged = {
            "name": bill.name,
            "amount_min": bill.amount_min,
            "amount_max": bill.amount_max,
            "repeat_freq": bill.repeat_freq,
            "skip": bill.skip,
            **changes,
        }
        validated = _validate_definition(merged)
        applied = {k: validated.get(k, v) for k, v in changes.items()}
        self.store.update_bill(bill, applied)
        self.cache.invalidate_bill(bill.id)
        _logger.info("Updated bill #%d fields=%s", bill.id, sorted(applied))
        return bill

    def destroy(self, bill: Bill) -> bool:
        bill_id = bill.id
        self.store.delete_bill(bill)
        self.cache.invalidate_bill(bill_id)
        _logger.info("Deleted bill #%d", bill_id)
        return True

    def link_transactions_to_bill(self, bill: Bill, transactions: Iterable[Transaction]) -> int:
        """Link the journals of ``transactions`` to ``bill``; return how many journals.

        Journals moved away from another bill make that bill's projections
        stale too, so its cache entries are dropped along with ``bill``'s.
        """

        result = self.store.link_transactions_to_bill(bill, transactions)
        for bill_id in {bill.id, *result.previous_bill_ids}:
            self.cache.invalidate_bill(bill_id)
        if result.previous_bill_ids:
            _logger.info(
                "Moved %d journal(s) to bill #%d from bill(s) %s",
                result.linked,
                bill.id,
                sorted(result.previous_bill_ids),
            )
        return result.linked

    # ------------------------------------------------------------------
    # Projections and aggregates
    # ------------------------------------------------------------------

    def next_date_match(self, bill: Bill, on: date) -> date:
        return self.engine.next_date_match(bill, on)

    def next_expected_match(self, bill: Bill, on: date) -> date:
        return self.engine.next_expected_match(bill, on)

    def get_pay_dates_in_range(self, bill: Bill, start: date, end: date) -> list[date]:
        return self.engine.get_pay_dates_in_range(bill, start, end)

    def get_bills_paid_in_range(self, user_id: int, start: date, end: date) -> Decimal:
        return self.aggregator.get_bills_paid_in_range(user_id, start, end)

    def get_bills_unpaid_in_range(self, user_id: int, start: date, end: date) -> Decimal:
        return self.aggregator.get_bills_unpaid_in_range(user_id, start, end)

    def get_overall_average(self, bill: Bill) -> Decimal:
        return self.aggregator.get_overall_average(bill)

    def get_year_average(self, bill: Bill, year: int) -> Decimal:
        return self.aggregator.get_year_average(bill, year)


__all__ = ["BillRepository"]
