import logging

import pytest

from recurring_bills.logging_setup import LEVEL_ENV_VAR, get_logger, resolve_level


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("debug", logging.DEBUG),
        (" Warning ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level_accepts_names_and_numbers(raw, expected):
    assert resolve_level(raw) == expected


def test_resolve_level_reads_env_when_unset(monkeypatch):
    monkeypatch.setenv(LEVEL_ENV_VAR, "DEBUG")
    assert resolve_level() == logging.DEBUG

    monkeypatch.delenv(LEVEL_ENV_VAR)
    assert resolve_level() == logging.INFO


def test_get_logger_nests_under_the_package_logger():
    assert get_logger("recurring_bills.store").name == "recurring_bills.store"
    assert get_logger("cli").name == "recurring_bills.cli"
    assert get_logger("recurring_bills").name == "recurring_bills"
