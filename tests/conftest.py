"""Pytest configuration for test isolation.

The db client keeps one process-wide engine bound to a single URL. Each test
that touches the database bootstraps its own SQLite file under ``tmp_path``,
so the shared engine is disposed around every test to let the next one bind a
fresh URL.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make the workspace packages importable without an install.
_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIRS = [_ROOT / "packages", _ROOT / "libs/db/src", _ROOT]
sys.path[:0] = [str(p) for p in _SRC_DIRS if str(p) not in sys.path]

from db.client import dispose_engine, get_session  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from tests.helpers.db import (  # noqa: E402
    add_account,
    add_user,
    bootstrap_sqlite_db,
)


@pytest.fixture(autouse=True)
def _fresh_engine(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Never inherit an engine (or DATABASE_URL) from a previous test."""

    monkeypatch.delenv("DATABASE_URL", raising=False)
    dispose_engine()
    yield
    dispose_engine()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "bills.db")


@pytest.fixture
def session(db_url: str) -> Iterator[Session]:
    s = get_session(database_url=db_url)
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture
def owner(session: Session):
    return add_user(session, "owner@example.com")


@pytest.fixture
def checking(session: Session, owner):
    return add_account(session, owner, "Checking")


@pytest.fixture
def landlord(session: Session, owner):
    return add_account(session, owner, "Landlord", account_type="expense")
