"""Domain errors raised by ``recurring_bills``.

All errors derive from :class:`BillError` so entrypoints can report them
uniformly. The validation errors also subclass ``ValueError``.
"""

from __future__ import annotations


class BillError(Exception):
    """Base class for bill domain failures."""


class InvalidRecurrenceRule(BillError, ValueError):
    """Unknown repeat frequency or a negative skip.

    Raised before any date-advancing loop starts; an unrecognized step would
    otherwise never move the cursor forward.
    """


class InvalidBillDefinition(BillError, ValueError):
    """A bill payload violates its invariants (e.g. ``amount_min > amount_max``)."""


class BillNotFound(BillError, LookupError):
    """No bill with the given identifier exists for the user."""


__all__ = [
    "BillError",
    "InvalidRecurrenceRule",
    "InvalidBillDefinition",
    "BillNotFound",
]
