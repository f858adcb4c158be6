"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
Derived counters are modelled here so the same comparison is used
wherever a cached value is checked against a recomputed one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from docrecon.domain.exceptions import ValidationError


@dataclass(frozen=True)
class StockLevels:
    """Per-product stock counters derived from Unit states.

    ``available`` is always computed from the other three counters and
    is never tracked on its own.
    """

    origin: int = 0
    destination: int = 0
    in_transit: int = 0
    reserved: int = 0

    def __post_init__(self) -> None:
        for name in ("origin", "destination", "in_transit", "reserved"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValidationError(
                    f"Stock counter '{name}' must be a non-negative integer, got {value!r}"
                )

    @property
    def available(self) -> int:
        return self.origin + self.destination - self.reserved

    def to_fields(self) -> dict[str, int]:
        return {
            "origin_stock": self.origin,
            "destination_stock": self.destination,
            "in_transit_stock": self.in_transit,
            "reserved_stock": self.reserved,
            "available_stock": self.available,
        }


@dataclass(frozen=True)
class ProductCounts:
    """How many products reference an aggregate, and how many are active."""

    total: int = 0
    active: int = 0

    def to_fields(self) -> dict[str, int]:
        return {"total_products": self.total, "active_products": self.active}


def to_decimal(amount: Any) -> Decimal:
    """Coerce a stored amount to Decimal. Missing amounts count as zero."""
    if amount is None or amount == "":
        return Decimal("0")
    try:
        return Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid money amount: {amount!r}") from exc


def money_total(amounts: Iterable[Any]) -> float:
    """Sum stored amounts without floating-point drift.

    Amounts stay in the currency unit they were stored in; the result is
    returned as a float because that is how the store keeps numbers.
    """
    total = Decimal("0")
    for amount in amounts:
        total += to_decimal(amount)
    return float(total)


def as_count(value: Any) -> int | None:
    """Read a cached integer counter, or None when it is missing or malformed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def is_money(amount: Any) -> bool:
    """True when ``amount`` can take part in a money sum."""
    try:
        to_decimal(amount)
    except ValidationError:
        return False
    return True


def as_id(value: Any) -> str | None:
    """Read a stored document reference; anything that is not an id reads as None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None
