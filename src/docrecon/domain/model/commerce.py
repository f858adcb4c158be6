"""Purchase Orders, Sales, Quotes and Expenses.

Orders of every kind hold a list of line items, each referencing a
Product. Their totals are derived sums over the line items and must be
recomputed whenever a line is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docrecon.domain.model.value_objects import as_id, money_total, to_decimal
from docrecon.domain.repository.document_store import Document

PURCHASE_ORDERS = "purchase_orders"
SALES = "sales"
QUOTES = "quotes"
EXPENSES = "expenses"

CANCELLED = "cancelled"


@dataclass(frozen=True)
class LineItem:
    """One order line. ``raw`` keeps every stored key so rewrites are lossless."""

    product_id: str | None
    quantity: int
    subtotal: Any
    raw: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_raw(raw: Any) -> LineItem:
        if not isinstance(raw, dict):
            return LineItem(product_id=None, quantity=0, subtotal=0, raw={})
        quantity = raw.get("quantity") or 0
        return LineItem(
            product_id=as_id(raw.get("product_id")),
            quantity=quantity if isinstance(quantity, int) else 0,
            subtotal=raw.get("subtotal"),
            raw=dict(raw),
        )


def _line_items(document: Document) -> tuple[LineItem, ...]:
    items = document.get("items")
    if not isinstance(items, list):
        return ()
    return tuple(LineItem.from_raw(raw) for raw in items)


@dataclass(frozen=True)
class PurchaseOrder:
    id: str
    supplier_id: str | None
    items: tuple[LineItem, ...]
    total: Any = None
    shipping_cost: Any = None
    other_costs: Any = None

    @staticmethod
    def from_document(document: Document) -> PurchaseOrder:
        return PurchaseOrder(
            id=document.id,
            supplier_id=as_id(document.get("supplier_id")),
            items=_line_items(document),
            total=document.get("total"),
            shipping_cost=document.get("shipping_cost"),
            other_costs=document.get("other_costs"),
        )

    def totals_for(self, items: list[LineItem]) -> dict[str, Any]:
        """Derived totals for the given lines; ``total`` includes freight and extras."""
        subtotal = money_total(item.subtotal for item in items)
        return {
            "items": [item.raw for item in items],
            "subtotal": subtotal,
            "total_units": sum(item.quantity for item in items),
            "total": money_total([subtotal, self.shipping_cost, self.other_costs]),
        }


@dataclass(frozen=True)
class Sale:
    """A Sale or a Quote; both share the same shape."""

    id: str
    client_id: str | None
    items: tuple[LineItem, ...]
    status: str | None = None
    total: Any = None
    discount: Any = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == CANCELLED

    @staticmethod
    def from_document(document: Document) -> Sale:
        return Sale(
            id=document.id,
            client_id=as_id(document.get("client_id")),
            items=_line_items(document),
            status=document.get("status"),
            total=document.get("total"),
            discount=document.get("discount"),
        )

    def totals_for(self, items: list[LineItem]) -> dict[str, Any]:
        subtotal = money_total(item.subtotal for item in items)
        total = to_decimal(subtotal) - to_decimal(self.discount)
        return {
            "items": [item.raw for item in items],
            "subtotal": subtotal,
            "total": float(total),
        }


@dataclass(frozen=True)
class Expense:
    id: str
    sale_id: str | None

    @staticmethod
    def from_document(document: Document) -> Expense:
        return Expense(id=document.id, sale_id=as_id(document.get("sale_id")))
