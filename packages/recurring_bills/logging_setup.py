"""Logging for ``recurring_bills``.

Every module logs through a child of the ``recurring_bills`` logger obtained
with :func:`get_logger`. Nothing is printed until an entrypoint calls
:func:`configure_logging`; the CLI does so from its root callback, with the
level taken from ``--log-level`` or ``RECURRING_BILLS_LOG_LEVEL``.

Projection and aggregation detail (each stepped occurrence, each bill's
paid/unpaid contribution) is logged at DEBUG; writes are logged at INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "recurring_bills"
LEVEL_ENV_VAR = "RECURRING_BILLS_LOG_LEVEL"

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the env var when ``None``) into a numeric level.

    Unknown names fall back to ``INFO``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None, *, stream: IO[str] | None = None
) -> logging.Logger:
    """Attach one stream handler to the package logger; later calls are no-ops."""

    global _configured
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _configured:
        return pkg

    for handler in [h for h in pkg.handlers if isinstance(h, logging.NullHandler)]:
        pkg.removeHandler(handler)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    pkg.addHandler(handler)
    pkg.setLevel(resolved)
    pkg.propagate = False

    _configured = True
    return pkg


def get_logger(name: str) -> logging.Logger:
    """Return ``recurring_bills.<name>``; a ``NullHandler`` keeps it quiet until configured."""

    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


__all__ = [
    "PACKAGE_LOGGER",
    "LEVEL_ENV_VAR",
    "resolve_level",
    "configure_logging",
    "get_logger",
]
