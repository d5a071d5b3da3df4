from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import expression as sa_expr

# Recurrence frequencies accepted by the bills check constraint. Mirrors
# ``recurring_bills.navigation.RepeatFrequency``.
REPEAT_FREQUENCIES: tuple[str, ...] = ("weekly", "monthly", "quarterly", "half-year", "yearly")


class Base(DeclarativeBase):
    pass


# SQLite only autoincrements an `INTEGER PRIMARY KEY` (rowid alias).
_PK = BigInteger().with_variant(Integer, "sqlite")


# ---------------------------
# Owners: users, accounts
# ---------------------------


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    # asset, expense, revenue; informational only.
    account_type: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'asset'")
    )


# ---------------------------
# Core: bills
# ---------------------------


class Bill(Base):
    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    amount_min: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    amount_max: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Anchor: the first known occurrence. Every projected date is reached by
    # stepping forward from here.
    date: Mapped[date] = mapped_column(Date, nullable=False)
    repeat_freq: Mapped[str] = mapped_column(String, nullable=False)
    skip: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa_expr.true())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP"),
        onupdate=func.now(),
    )

    journals: Mapped[list[TransactionJournal]] = relationship(back_populates="bill")

    __table_args__ = (
        CheckConstraint("amount_min <= amount_max", name="ck_bills_amount_bounds"),
        CheckConstraint("skip >= 0", name="ck_bills_skip_non_negative"),
        CheckConstraint(
            "repeat_freq in ('weekly','monthly','quarterly','half-year','yearly')",
            name="ck_bills_repeat_freq",
        ),
    )

    def __repr__(self) -> str:
        return f"<Bill id={self.id} user_id={self.user_id} name={self.name!r} freq={self.repeat_freq}>"


# ---------------------------
# Journals and their legs
# ---------------------------


class TransactionJournal(Base):
    __tablename__ = "transaction_journals"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Nullable link; only mutated by the "link transactions to bill" operation.
    bill_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("bills.id", ondelete="SET NULL"), nullable=True, index=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Soft delete; rows with deleted_at set are invisible to bill queries.
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    bill: Mapped[Bill | None] = relationship(back_populates="journals")
    transactions: Mapped[list[Transaction]] = relationship(
        back_populates="journal", cascade="all, delete-orphan"
    )


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    journal_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("transaction_journals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Signed: negative on the source leg, positive on the destination leg.
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    journal: Mapped[TransactionJournal] = relationship(back_populates="transactions")


__all__ = [
    "REPEAT_FREQUENCIES",
    "Base",
    "User",
    "Account",
    "Bill",
    "TransactionJournal",
    "Transaction",
]
