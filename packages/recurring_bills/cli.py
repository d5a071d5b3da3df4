# ruff: noqa: I001
"""CLI for the ``recurring_bills`` package.

Command handlers (``cmd_*``) hold the logic and return a process exit code;
the Typer commands below only parse options and delegate. Environment
variables (notably ``DATABASE_URL``) are loaded from a local ``.env`` with
``python-dotenv`` before any command runs.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import typer
from dotenv import load_dotenv

from .errors import BillError
from .logging_setup import configure_logging


def _parse_day(raw: str, *, label: str) -> date:
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        raise BillError(f"{label} must be an ISO date (YYYY-MM-DD), got {raw!r}") from None


def cmd_list_bills(user_id: int, *, database_url: str | None = None) -> int:
    """Print one line per bill: ``<id>\\t<name>\\t<active|inactive>\\t<freq>\\t<expected>``."""

    from db.client import session_scope

    from .aggregator import expected_amount
    from .repository import BillRepository

    with session_scope(database_url=database_url) as session:
        repo = BillRepository(session)
        for bill in repo.get_bills(user_id):
            state = "active" if bill.active else "inactive"
            print(f"{bill.id}\t{bill.name}\t{state}\t{bill.repeat_freq}\t{expected_amount(bill)}")
    return 0


def cmd_pay_dates(
    user_id: int,
    bill_id: int,
    start: str,
    end: str,
    *,
    database_url: str | None = None,
) -> int:
    """Print the projected pay dates of one bill inside ``[start, end]``, one per line."""

    from db.client import session_scope

    from .repository import BillRepository

    try:
        start_d = _parse_day(start, label="--start")
        end_d = _parse_day(end, label="--end")
        with session_scope(database_url=database_url) as session:
            repo = BillRepository(session)
            bill = repo.get(user_id, bill_id)
            dates = repo.get_pay_dates_in_range(bill, start_d, end_d)
    except BillError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for d in dates:
        print(d.isoformat())
    return 0


def cmd_summary(user_id: int, start: str, end: str, *, database_url: str | None = None) -> int:
    """Print paid and unpaid totals for the user's active bills inside ``[start, end]``."""

    from db.client import session_scope

    from .repository import BillRepository

    try:
        start_d = _parse_day(start, label="--start")
        end_d = _parse_day(end, label="--end")
        with session_scope(database_url=database_url) as session:
            repo = BillRepository(session)
            paid = repo.get_bills_paid_in_range(user_id, start_d, end_d)
            unpaid = repo.get_bills_unpaid_in_range(user_id, start_d, end_d)
    except BillError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"paid\t{paid}")
    print(f"unpaid\t{unpaid}")
    return 0


def cmd_average(
    user_id: int,
    bill_id: int,
    *,
    year: int | None = None,
    database_url: str | None = None,
) -> int:
    """Print the average journal total of a bill, overall or for one calendar year."""

    from db.client import session_scope

    from .repository import BillRepository

    try:
        with session_scope(database_url=database_url) as session:
            repo = BillRepository(session)
            bill = repo.get(user_id, bill_id)
            if year is None:
                avg = repo.get_overall_average(bill)
            else:
                avg = repo.get_year_average(bill, year)
    except BillError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(avg)
    return 0


# ---- Typer application ---------------------------------------------------------

app = typer.Typer(add_completion=False, help="Recurring bill projections and totals.")

DATABASE_URL_OPTION = typer.Option(None, help="Override DATABASE_URL (falls back to env var).")


@app.command("bills")
def list_bills_cmd(
    user_id: int = typer.Option(..., help="Owner of the bills."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    raise typer.Exit(cmd_list_bills(user_id, database_url=database_url))


@app.command("pay-dates")
def pay_dates_cmd(
    user_id: int = typer.Option(..., help="Owner of the bill."),
    bill_id: int = typer.Option(..., help="Bill to project."),
    start: str = typer.Option(..., help="First day of the window (YYYY-MM-DD)."),
    end: str = typer.Option(..., help="Last day of the window (YYYY-MM-DD), inclusive."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    raise typer.Exit(cmd_pay_dates(user_id, bill_id, start, end, database_url=database_url))


@app.command("summary")
def summary_cmd(
    user_id: int = typer.Option(..., help="Owner of the bills."),
    start: str = typer.Option(..., help="First day of the window (YYYY-MM-DD)."),
    end: str = typer.Option(..., help="Last day of the window (YYYY-MM-DD), inclusive."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    raise typer.Exit(cmd_summary(user_id, start, end, database_url=database_url))


@app.command("average")
def average_cmd(
    user_id: int = typer.Option(..., help="Owner of the bill."),
    bill_id: int = typer.Option(..., help="Bill to average."),
    year: int | None = typer.Option(None, help="Restrict to one calendar year."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    raise typer.Exit(cmd_average(user_id, bill_id, year=year, database_url=database_url))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to RECURRING_BILLS_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover
    app()
