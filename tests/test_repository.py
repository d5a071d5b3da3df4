from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from db.models.bills import TransactionJournal
from pydantic import ValidationError

from recurring_bills import (
    BillCreate,
    BillError,
    BillNotFound,
    BillRepository,
    BillUpdate,
    InvalidBillDefinition,
    InvalidRecurrenceRule,
)

from tests.helpers.db import add_account, add_bill, add_user, add_withdrawal


def _payload(**overrides):
    data = {
        "name": "Rent",
        "amount_min": "10.00",
        "amount_max": "20.00",
        "date": "2016-01-01",
        "repeat_freq": "monthly",
        "skip": 0,
    }
    data.update(overrides)
    return data


# ---- Writes ------------------------------------------------------------------


def test_store_bill_persists_normalized_values(session, owner):
    repo = BillRepository(session)

    bill = repo.store_bill(owner.id, _payload(name="  Rent ", repeat_freq=" Monthly "))

    assert bill.id is not None
    assert bill.name == "Rent"
    assert bill.repeat_freq == "monthly"
    assert bill.amount_min == Decimal("10.00")
    assert bill.date == date(2016, 1, 1)
    assert bill.active is True
    assert repo.find(owner.id, bill.id) is bill


def test_store_bill_accepts_a_model_instance(session, owner):
    repo = BillRepository(session)
    payload = BillCreate.model_validate(_payload(repeat_freq="half-year", skip=1))

    bill = repo.store_bill(owner.id, payload)

    assert (bill.repeat_freq, bill.skip) == ("half-year", 1)


def test_store_bill_rejects_inverted_amounts(session, owner):
    repo = BillRepository(session)

    with pytest.raises(InvalidBillDefinition):
        repo.store_bill(owner.id, _payload(amount_min="30.00"))
    assert repo.get_bills(owner.id) == []


@pytest.mark.parametrize("overrides", [{"repeat_freq": "daily"}, {"skip": -1}])
def test_store_bill_rejects_bad_recurrence(session, owner, overrides):
    repo = BillRepository(session)

    with pytest.raises(InvalidRecurrenceRule):
        repo.store_bill(owner.id, _payload(**overrides))


def test_store_bill_rejects_blank_name(session, owner):
    with pytest.raises(InvalidBillDefinition):
        BillRepository(session).store_bill(owner.id, _payload(name="   "))


def test_payload_rejects_float_amounts_and_unknown_keys():
    with pytest.raises(ValidationError):
        BillCreate.model_validate(_payload(amount_min=10.5))
    with pytest.raises(ValidationError):
        BillCreate.model_validate(_payload(match="rent,landlord"))


def test_update_validates_against_merged_values(session, owner):
    bill = add_bill(session, owner, amount_min="10.00", amount_max="20.00")
    repo = BillRepository(session)

    with pytest.raises(InvalidBillDefinition):
        repo.update(bill, {"amount_min": "25.00"})

    repo.update(bill, BillUpdate(amount_min=Decimal("12.00"), name="Flat rent"))
    assert bill.amount_min == Decimal("12.00")
    assert bill.name == "Flat rent"
    assert bill.amount_max == Decimal("20.00")


def test_update_invalidates_cached_projections(session, owner):
    bill = add_bill(session, owner)
    repo = BillRepository(session)
    on = date(2016, 1, 15)
    assert repo.next_date_match(bill, on) == date(2016, 2, 1)

    repo.update(bill, {"date": "2016-01-10"})

    assert repo.next_date_match(bill, on) == date(2016, 2, 10)


def test_update_normalizes_frequency(session, owner):
    bill = add_bill(session, owner)
    repo = BillRepository(session)

    repo.update(bill, {"repeat_freq": "WEEKLY"})

    assert bill.repeat_freq == "weekly"
    with pytest.raises(InvalidRecurrenceRule):
        repo.update(bill, {"repeat_freq": "hourly"})


def test_destroy_keeps_journals_but_unlinks_them(session, owner, checking, landlord):
    bill = add_bill(session, owner)
    journal = add_withdrawal(
        session, owner, source=checking, destination=landlord, amount="15.00",
        on=date(2016, 2, 1), bill=bill,
    )
    repo = BillRepository(session)
    bill_id = bill.id
    repo.next_date_match(bill, date(2016, 1, 15))

    assert repo.destroy(bill) is True

    assert repo.find(owner.id, bill_id) is None
    session.refresh(journal)
    assert journal.bill_id is None
    assert session.get(TransactionJournal, journal.id) is not None
    assert len(repo.cache) == 0


# ---- Lookups -----------------------------------------------------------------


def test_lookups_are_scoped_to_the_user(session, owner):
    stranger = add_user(session, "stranger@example.com")
    mine = add_bill(session, owner, name="Rent")
    theirs = add_bill(session, stranger, name="Rent")
    repo = BillRepository(session)

    assert repo.find(owner.id, theirs.id) is None
    assert repo.find_by_name(owner.id, "Rent") is mine
    assert repo.find_by_name(stranger.id, "Rent") is theirs
    assert repo.find_by_name(owner.id, "rent") is None
    assert repo.get_by_ids(owner.id, [mine.id, theirs.id]) == [mine]
    assert repo.get_by_ids(owner.id, []) == []
    with pytest.raises(BillNotFound):
        repo.get(owner.id, theirs.id)


def test_get_bills_lists_active_first_then_by_name(session, owner):
    water = add_bill(session, owner, name="water")
    gym = add_bill(session, owner, name="Gym", active=False)
    internet = add_bill(session, owner, name="Internet")
    archive = add_bill(session, owner, name="archive", active=False)
    repo = BillRepository(session)

    assert repo.get_bills(owner.id) == [internet, water, archive, gym]
    assert repo.get_active_bills(owner.id) == [internet, water]


def test_get_bills_for_accounts_uses_withdrawal_legs(session, owner, checking, landlord):
    savings = add_account(session, owner, "Savings")
    rent = add_bill(session, owner, name="Rent")
    phone = add_bill(session, owner, name="Phone")
    add_bill(session, owner, name="Unlinked")
    add_withdrawal(
        session, owner, source=checking, destination=landlord, amount="15.00",
        on=date(2016, 1, 1), bill=rent,
    )
    add_withdrawal(
        session, owner, source=checking, destination=landlord, amount="15.00",
        on=date(2016, 2, 1), bill=rent,
    )
    add_withdrawal(
        session, owner, source=savings, destination=landlord, amount="30.00",
        on=date(2016, 1, 5), bill=phone,
    )
    repo = BillRepository(session)

    assert repo.get_bills_for_accounts(owner.id, [checking.id]) == [rent]
    assert repo.get_bills_for_accounts(owner.id, [checking.id, savings.id]) == [phone, rent]
    # Deposits into the landlord account are positive legs; they do not count.
    assert repo.get_bills_for_accounts(owner.id, [landlord.id]) == []
    assert repo.get_bills_for_accounts(owner.id, []) == []


def test_get_paid_dates_in_range_is_inclusive(session, owner, checking, landlord):
    bill = add_bill(session, owner)
    for day in (date(2015, 12, 31), date(2016, 1, 1), date(2016, 3, 31), date(2016, 4, 1)):
        add_withdrawal(
            session, owner, source=checking, destination=landlord, amount="15.00",
            on=day, bill=bill,
        )
    repo = BillRepository(session)

    assert repo.get_paid_dates_in_range(bill, date(2016, 1, 1), date(2016, 3, 31)) == [
        date(2016, 1, 1),
        date(2016, 3, 31),
    ]


# ---- Linking -----------------------------------------------------------------


def test_linking_journals_moves_next_expected_match(session, owner, checking, landlord):
    bill = add_bill(session, owner)
    journal = add_withdrawal(
        session, owner, source=checking, destination=landlord, amount="15.00",
        on=date(2016, 2, 3),
    )
    repo = BillRepository(session)
    on = date(2016, 1, 15)
    assert repo.next_expected_match(bill, on) == date(2016, 2, 1)

    linked = repo.link_transactions_to_bill(bill, journal.transactions)

    assert linked == 1
    assert journal.bill_id == bill.id
    assert repo.next_expected_match(bill, on) == date(2016, 3, 1)
    assert repo.next_date_match(bill, on) == date(2016, 2, 1)


def test_linking_another_users_journal_is_refused(session, owner, landlord):
    bill = add_bill(session, owner)
    stranger = add_user(session, "stranger@example.com")
    their_checking = add_account(session, stranger)
    journal = add_withdrawal(
        session, stranger, source=their_checking, destination=landlord, amount="5.00",
        on=date(2016, 2, 3),
    )
    repo = BillRepository(session)

    with pytest.raises(BillError):
        repo.link_transactions_to_bill(bill, journal.transactions)
    assert journal.bill_id is None


def test_moving_a_journal_refreshes_the_bill_it_left(session, owner, checking, landlord):
    rent = add_bill(session, owner, name="Rent")
    parking = add_bill(session, owner, name="Parking")
    journal = add_withdrawal(
        session, owner, source=checking, destination=landlord, amount="15.00",
        on=date(2016, 2, 3), bill=rent,
    )
    repo = BillRepository(session)
    on = date(2016, 1, 15)
    assert repo.next_expected_match(rent, on) == date(2016, 3, 1)
    assert repo.next_expected_match(parking, on) == date(2016, 2, 1)

    assert repo.link_transactions_to_bill(parking, journal.transactions) == 1

    assert journal.bill_id == parking.id
    assert repo.next_expected_match(rent, on) == date(2016, 2, 1)
    assert repo.next_expected_match(parking, on) == date(2016, 3, 1)
    assert rent.journals == []
    assert parking.journals == [journal]


def test_relinking_to_the_same_bill_reports_no_previous_bill(session, owner, checking, landlord):
    rent = add_bill(session, owner)
    journal = add_withdrawal(
        session, owner, source=checking, destination=landlord, amount="15.00",
        on=date(2016, 2, 3), bill=rent,
    )
    repo = BillRepository(session)

    result = repo.store.link_transactions_to_bill(rent, journal.transactions)

    assert result.linked == 1
    assert result.previous_bill_ids == frozenset()


# ---- Amount precision --------------------------------------------------------


@pytest.mark.parametrize("amount", ["10.005", "0.001", Decimal("19.999")])
def test_amounts_with_more_than_two_places_are_rejected(session, owner, amount):
    repo = BillRepository(session)

    with pytest.raises(ValidationError):
        repo.store_bill(owner.id, _payload(amount_min=amount))
    with pytest.raises(ValidationError):
        BillUpdate.model_validate({"amount_max": amount})
    assert repo.get_bills(owner.id) == []


def test_stored_amounts_survive_a_reload_unchanged(session, owner):
    repo = BillRepository(session)
    bill = repo.store_bill(owner.id, _payload(amount_min="10.05", amount_max="20"))
    expected_before = repo.get_bills_unpaid_in_range(
        owner.id, date(2016, 1, 1), date(2016, 1, 31)
    )

    session.commit()
    session.expire_all()

    assert bill.amount_min == Decimal("10.05")
    assert bill.amount_max == Decimal("20.00")
    assert repo.get_bills_unpaid_in_range(
        owner.id, date(2016, 1, 1), date(2016, 1, 31)
    ) == expected_before == Decimal("15.025")
