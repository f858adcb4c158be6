"""Domain service: Derived Counter Recomputer.

Produces the correct value of every cached counter from the collections
that are the source of truth. All functions are pure: they take record
snapshots and return fresh values; comparing against the cached value
and deciding whether to write is the caller's job.

Every existing aggregate starts at zero so that an aggregate which lost
all its detail records is zeroed rather than left stale.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from decimal import Decimal
from typing import Callable, Iterable

from docrecon.domain.model.commerce import PurchaseOrder, Sale
from docrecon.domain.model.parties import OrderMetrics
from docrecon.domain.model.product import Product
from docrecon.domain.model.unit import (
    IN_TRANSIT_STATES,
    RESERVED_STATES,
    WAREHOUSED_STATES,
    Unit,
    UnitState,
)
from docrecon.domain.model.value_objects import (
    ProductCounts,
    StockLevels,
    money_total,
    to_decimal,
)
from docrecon.domain.service.existence_index import ExistenceIndex

ORIGIN = "origin"
DESTINATION = "destination"
IN_TRANSIT = "in_transit"
RESERVED = "reserved"


def stock_bucket(state: UnitState | None) -> str | None:
    """The product counter a unit in ``state`` contributes to, if any."""
    if state is UnitState.RECEIVED_ORIGIN:
        return ORIGIN
    if state is UnitState.AVAILABLE_DESTINATION:
        return DESTINATION
    if state in IN_TRANSIT_STATES:
        return IN_TRANSIT
    if state in RESERVED_STATES:
        return RESERVED
    return None  # sold, expired or unknown


def recompute_product_stock(
    units: Iterable[Unit], products: ExistenceIndex
) -> tuple[dict[str, StockLevels], list[Unit]]:
    """Group units by product and state.

    Returns the stock levels of every existing product, and the units
    whose product no longer exists. Those orphans are not counted.
    """
    tallies: dict[str, Counter] = {product_id: Counter() for product_id in products.ids}
    orphans: list[Unit] = []

    for unit in units:
        if unit.product_id not in products:
            orphans.append(unit)
            continue
        bucket = stock_bucket(unit.state)
        if bucket is not None:
            tallies[unit.product_id][bucket] += 1

    levels = {
        product_id: StockLevels(
            origin=tally[ORIGIN],
            destination=tally[DESTINATION],
            in_transit=tally[IN_TRANSIT],
            reserved=tally[RESERVED],
        )
        for product_id, tally in tallies.items()
    }
    return levels, orphans


def recompute_warehouse_stock(
    units: Iterable[Unit], warehouses: ExistenceIndex
) -> dict[str, int]:
    """Units physically held by each existing warehouse."""
    stock = {warehouse_id: 0 for warehouse_id in warehouses.ids}
    for unit in units:
        if unit.warehouse_id in stock and unit.state in WAREHOUSED_STATES:
            stock[unit.warehouse_id] += 1
    return stock


def _order_metrics(pairs: Iterable[tuple[str | None, object]]) -> dict[str, OrderMetrics]:
    counts: Counter = Counter()
    amounts: dict[str, list] = defaultdict(list)
    for key, amount in pairs:
        if not key:
            continue
        counts[key] += 1
        amounts[key].append(amount)
    return {
        key: OrderMetrics(count=counts[key], amount=money_total(amounts[key]))
        for key in counts
    }


def recompute_supplier_metrics(
    purchase_orders: Iterable[PurchaseOrder],
) -> dict[str, OrderMetrics]:
    """Order count and total purchase amount per supplier id."""
    return _order_metrics((po.supplier_id, po.total) for po in purchase_orders)


def recompute_client_metrics(sales: Iterable[Sale]) -> dict[str, OrderMetrics]:
    """Sale count and total spent per client id; cancelled sales do not count."""
    return _order_metrics(
        (sale.client_id, sale.total) for sale in sales if not sale.is_cancelled
    )


def count_products_by(
    products: Iterable[Product], keys_of: Callable[[Product], Iterable[str | None]]
) -> dict[str, ProductCounts]:
    """Product totals per key; a product may yield several keys (categories)."""
    totals: Counter = Counter()
    active: Counter = Counter()
    for product in products:
        for key in set(keys_of(product)):
            if not key:
                continue
            totals[key] += 1
            if product.is_active:
                active[key] += 1
    return {key: ProductCounts(total=totals[key], active=active[key]) for key in totals}


def recompute_competitor_metrics(
    products: Iterable[Product],
) -> dict[str, tuple[int, float]]:
    """(products analyzed, average observed price) per competitor id."""
    counts: Counter = Counter()
    price_totals: dict[str, Decimal] = defaultdict(Decimal)
    for product in products:
        for observation in product.competitor_prices:
            counts[observation.competitor_id] += 1
            price_totals[observation.competitor_id] += to_decimal(observation.price)
    return {
        competitor_id: (count, float(price_totals[competitor_id] / count))
        for competitor_id, count in counts.items()
    }
