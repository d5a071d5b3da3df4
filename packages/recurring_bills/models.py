"""Write payloads for bills.

``BillCreate`` and ``BillUpdate`` validate the *shape* of incoming data with
pydantic (types, unknown keys, whitespace, at most two decimal places on
amounts). Domain invariants that span fields (``amount_min <= amount_max``)
or that have dedicated error types (unknown repeat frequency) are checked by
the repository, which raises :class:`~recurring_bills.errors.InvalidBillDefinition`
and :class:`~recurring_bills.errors.InvalidRecurrenceRule` respectively.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Matches the Numeric(18, 2) amount columns; more places would be rounded on write.
Money = Annotated[Decimal, Field(max_digits=18, decimal_places=2)]


def _reject_float(v: Any) -> Any:
    # Floats cannot represent most currency amounts exactly.
    if isinstance(v, float):
        raise ValueError("amounts must be given as Decimal, int or str, not float")
    return v


class BillCreate(BaseModel):
    """Fields required to create a bill."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str
    amount_min: Money
    amount_max: Money
    date: dt.date
    repeat_freq: str
    skip: int = 0
    active: bool = True

    @field_validator("amount_min", "amount_max", mode="before")
    @classmethod
    def _amount_not_float(cls, v: Any) -> Any:
        return _reject_float(v)


class BillUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str | None = None
    amount_min: Money | None = None
    amount_max: Money | None = None
    date: dt.date | None = None
    repeat_freq: str | None = None
    skip: int | None = None
    active: bool | None = None

    @field_validator("amount_min", "amount_max", mode="before")
    @classmethod
    def _amount_not_float(cls, v: Any) -> Any:
        return _reject_float(v)

    def changes(self) -> dict[str, Any]:
        """Return the explicitly provided fields, dropping explicit ``None`` values."""

        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


__all__ = [
    "BillCreate",
    "BillUpdate",
]
