"""Product record and the classification aggregates that count products.

Products carry cached stock counters; Brands, Categories, Product Types
and Competitors carry cached counts derived from scanning Products.
None of these cached values are authoritative.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docrecon.domain.model.value_objects import (
    ProductCounts,
    as_count,
    as_id,
    is_money,
    to_decimal,
)
from docrecon.domain.repository.document_store import Document

PRODUCTS = "products"
BRANDS = "brands"
CATEGORIES = "categories"
PRODUCT_TYPES = "product_types"
COMPETITORS = "competitors"

ACTIVE = "active"
INACTIVE = "inactive"

STOCK_FIELDS = (
    "origin_stock",
    "destination_stock",
    "in_transit_stock",
    "reserved_stock",
    "available_stock",
)


@dataclass(frozen=True)
class CompetitorPrice:
    """One competitor observation in a product's market research."""

    competitor_id: str
    price: float


@dataclass(frozen=True)
class Product:
    id: str
    status: str | None
    brand_id: str | None = None
    product_type_id: str | None = None
    category_ids: tuple[str, ...] = ()
    cached_stock: dict[str, int | None] = field(default_factory=dict)
    competitor_prices: tuple[CompetitorPrice, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    @property
    def is_inactive(self) -> bool:
        return self.status == INACTIVE

    @staticmethod
    def from_document(document: Document) -> Product:
        category_ids = document.get("category_ids")
        if not isinstance(category_ids, list):
            category_ids = []
        return Product(
            id=document.id,
            status=document.get("status"),
            brand_id=as_id(document.get("brand_id")),
            product_type_id=as_id(document.get("product_type_id")),
            category_ids=tuple(c for c in map(as_id, category_ids) if c),
            cached_stock={name: as_count(document.get(name)) for name in STOCK_FIELDS},
            competitor_prices=_competitor_prices(document.get("research")),
        )


def _competitor_prices(research: Any) -> tuple[CompetitorPrice, ...]:
    """Research entries with a competitor and a readable price; others are skipped."""
    if not isinstance(research, dict):
        return ()
    prices = []
    for entry in research.get("competitors") or []:
        if not isinstance(entry, dict):
            continue
        competitor_id = as_id(entry.get("competitor_id"))
        price = entry.get("price")
        if competitor_id is None or not is_money(price):
            continue
        prices.append(CompetitorPrice(competitor_id, float(to_decimal(price))))
    return tuple(prices)


@dataclass(frozen=True)
class ProductCountHolder:
    """Brand, Category or ProductType: an aggregate with cached product counts.

    Brands and Categories keep the counters as top-level fields; Product
    Types nest them under ``metrics``. ``nested`` records which layout the
    document uses so the write goes back to the same place.
    """

    id: str
    cached: ProductCounts | None
    metrics: dict[str, Any] = field(default_factory=dict)
    nested: bool = False

    @staticmethod
    def from_document(document: Document, nested: bool = False) -> ProductCountHolder:
        metrics = dict(document.get("metrics") or {})
        source = metrics if nested else document.data
        total = as_count(source.get("total_products"))
        active = as_count(source.get("active_products"))
        cached = None
        if total is not None and active is not None:
            cached = ProductCounts(total=total, active=active)
        return ProductCountHolder(
            id=document.id, cached=cached, metrics=metrics, nested=nested
        )

    def counts_update(self, counts: ProductCounts) -> dict[str, Any]:
        if self.nested:
            return {"metrics": {**self.metrics, **counts.to_fields()}}
        return counts.to_fields()


@dataclass(frozen=True)
class Competitor:
    id: str
    products_analyzed: int | None
    average_price: float | None
    metrics: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_document(document: Document) -> Competitor:
        metrics = dict(document.get("metrics") or {})
        return Competitor(
            id=document.id,
            products_analyzed=as_count(metrics.get("products_analyzed")),
            average_price=_cached_price(metrics.get("average_price")),
            metrics=metrics,
        )


def _cached_price(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
