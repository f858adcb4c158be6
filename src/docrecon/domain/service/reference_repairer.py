"""Domain service: Reference Repairer.

Finds foreign keys that no longer resolve against an ExistenceIndex and
describes the repair. Three policies exist, chosen per relationship:

- nullify-and-label: the dependent document stays meaningful without
  the reference, so the key is cleared and a paired label field is set
  to a fixed "removed" marker;
- cascade-delete: the dependent document only makes sense with its
  parent (a Unit without its Product), so it is deleted;
- list filtering: only the offending entries of a list field are
  dropped and the document's derived totals are recomputed by the caller.

Nothing here touches the store; reconcilers apply the returned updates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from docrecon.domain.model.commerce import LineItem
from docrecon.domain.model.unit import Unit
from docrecon.domain.service.existence_index import ExistenceIndex

CLIENT_REMOVED = "[Client removed]"
SUPPLIER_REMOVED = "[Supplier removed]"
WAREHOUSE_REMOVED = "[Warehouse removed]"


@dataclass(frozen=True)
class Reference:
    """A nullable foreign key and the label field shown in its place."""

    field: str
    label_field: str | None = None
    marker: str | None = None

    def nullified(self) -> dict[str, Any]:
        fields: dict[str, Any] = {self.field: None}
        if self.label_field is not None:
            fields[self.label_field] = self.marker
        return fields


SALE_CLIENT = Reference("client_id", "client_name", CLIENT_REMOVED)
PURCHASE_ORDER_SUPPLIER = Reference("supplier_id", "supplier_name", SUPPLIER_REMOVED)
UNIT_WAREHOUSE = Reference("warehouse_id", "warehouse_name", WAREHOUSE_REMOVED)
TRANSFER_ORIGIN = Reference(
    "origin_warehouse_id", "origin_warehouse_name", WAREHOUSE_REMOVED
)
TRANSFER_DESTINATION = Reference(
    "destination_warehouse_id", "destination_warehouse_name", WAREHOUSE_REMOVED
)
# An expense's sale label is its sale number; it is cleared, not marked
# (see DESIGN.md, open question 8).
EXPENSE_SALE = Reference("sale_id", "sale_number", None)


def nullify_dangling(
    checks: Iterable[tuple[Reference, Any, ExistenceIndex]],
) -> tuple[dict[str, Any], int]:
    """Nullify every (reference, value, index) whose value does not resolve.

    Returns the merged field updates and the number of references cleaned.
    """
    updates: dict[str, Any] = {}
    cleaned = 0
    for reference, value, index in checks:
        if index.is_dangling(value):
            updates.update(reference.nullified())
            cleaned += 1
    return updates, cleaned


def should_cascade_delete(
    unit: Unit, products: ExistenceIndex, purchase_orders: ExistenceIndex
) -> bool:
    """A unit dies with its product (required) or its purchase order (if set)."""
    if unit.product_id not in products:
        return True
    return purchase_orders.is_dangling(unit.purchase_order_id)


def filter_line_items(
    items: Iterable[LineItem], products: ExistenceIndex
) -> tuple[list[LineItem], int]:
    """Keep line items whose product exists; return them and the drop count."""
    kept: list[LineItem] = []
    dropped = 0
    for item in items:
        if item.product_id in products:
            kept.append(item)
        else:
            dropped += 1
    return kept, dropped


def filter_ids(ids: Iterable[str], index: ExistenceIndex) -> tuple[list[str], int]:
    """Keep the ids that still resolve; return them and the drop count."""
    ids = list(ids)
    kept = [value for value in ids if value in index]
    return kept, len(ids) - len(kept)
