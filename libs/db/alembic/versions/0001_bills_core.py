# ruff: noqa: I001
"""Bills core tables: users, accounts, bills, journals and their legs.

Revision ID: 0001_bills_core
Revises: None
Create Date: 2025-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_bills_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _pk() -> sa.Column:
    return sa.Column(
        "id",
        sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    )


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _pk(),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "accounts",
        _pk(),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("account_type", sa.String(), nullable=False, server_default=sa.text("'asset'")),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])

    op.create_table(
        "bills",
        _pk(),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("amount_min", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount_max", sa.Numeric(18, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("repeat_freq", sa.String(), nullable=False),
        sa.Column("skip", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _created_at("updated_at"),
        sa.CheckConstraint("amount_min <= amount_max", name="ck_bills_amount_bounds"),
        sa.CheckConstraint("skip >= 0", name="ck_bills_skip_non_negative"),
        sa.CheckConstraint(
            "repeat_freq in ('weekly','monthly','quarterly','half-year','yearly')",
            name="ck_bills_repeat_freq",
        ),
    )
    op.create_index("ix_bills_user_id", "bills", ["user_id"])

    op.create_table(
        "transaction_journals",
        _pk(),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "bill_id",
            sa.BigInteger(),
            sa.ForeignKey("bills.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_transaction_journals_user_id", "transaction_journals", ["user_id"])
    op.create_index("ix_transaction_journals_bill_id", "transaction_journals", ["bill_id"])
    op.create_index("ix_transaction_journals_date", "transaction_journals", ["date"])

    op.create_table(
        "transactions",
        _pk(),
        sa.Column(
            "journal_id",
            sa.BigInteger(),
            sa.ForeignKey("transaction_journals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "account_id",
            sa.BigInteger(),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
    )
    op.create_index("ix_transactions_journal_id", "transactions", ["journal_id"])
    op.create_index("ix_transactions_account_id", "transactions", ["account_id"])


def downgrade() -> None:
    op.drop_index("ix_transactions_account_id", table_name="transactions")
    op.drop_index("ix_transactions_journal_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_transaction_journals_date", table_name="transaction_journals")
    op.drop_index("ix_transaction_journals_bill_id", table_name="transaction_journals")
    op.drop_index("ix_transaction_journals_user_id", table_name="transaction_journals")
    op.drop_table("transaction_journals")
    op.drop_index("ix_bills_user_id", table_name="bills")
    op.drop_table("bills")
    op.drop_index("ix_accounts_user_id", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("users")
