"""Shared SQLAlchemy models registry for the bills database.

Currently includes the bill, journal and account models used by
``recurring_bills``.
"""

from .bills import REPEAT_FREQUENCIES, Account, Base, Bill, Transaction, TransactionJournal, User

__all__ = [
    "REPEAT_FREQUENCIES",
    "Base",
    "User",
    "Account",
    "Bill",
    "TransactionJournal",
    "Transaction",
]
