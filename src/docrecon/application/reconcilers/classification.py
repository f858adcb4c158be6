"""Reconcilers for the aggregates that count products.

Product Types, Categories and Brands cache how many products reference
them (and how many of those are active); Competitors cache how many
products were researched against them and the average observed price.
"""

from __future__ import annotations

from typing import Callable, Iterable

from docrecon.application.dto import ModuleResult
from docrecon.application.reconcilers.base import ModuleReconciler
from docrecon.domain.model.product import (
    BRANDS,
    CATEGORIES,
    COMPETITORS,
    PRODUCT_TYPES,
    PRODUCTS,
    Competitor,
    Product,
    ProductCountHolder,
)
from docrecon.domain.model.value_objects import ProductCounts
from docrecon.domain.repository.document_store import Document
from docrecon.domain.service.counter_recomputer import (
    count_products_by,
    recompute_competitor_metrics,
)

# Average prices closer than this are considered equal.
PRICE_TOLERANCE = 0.01


class ProductCountReconciler(ModuleReconciler):
    """Shared pass for aggregates holding ``total_products``/``active_products``."""

    collection: str = ""
    nested_metrics: bool = False
    keys_of: Callable[[Product], Iterable[str | None]]

    def _reconcile(self, result: ModuleResult) -> None:
        holder_documents = self._store.list_documents(self.collection)
        products = self._parsed(result, PRODUCTS, Product.from_document)

        counts = count_products_by(products, self.keys_of)

        with self._batched(result) as batch:
            for holder in self._parsed(
                result, self.collection, self._holder, holder_documents
            ):
                computed = counts.get(holder.id, ProductCounts())
                if holder.cached != computed:
                    batch.update(self.collection, holder.id, holder.counts_update(computed))

    def _holder(self, document: Document) -> ProductCountHolder:
        return ProductCountHolder.from_document(document, nested=self.nested_metrics)


class ProductTypesReconciler(ProductCountReconciler):
    name = "Product Types"
    collection = PRODUCT_TYPES
    nested_metrics = True

    @staticmethod
    def keys_of(product: Product) -> Iterable[str | None]:
        return (product.product_type_id,)


class CategoriesReconciler(ProductCountReconciler):
    name = "Categories"
    collection = CATEGORIES

    @staticmethod
    def keys_of(product: Product) -> Iterable[str | None]:
        return product.category_ids


class BrandsReconciler(ProductCountReconciler):
    name = "Brands"
    collection = BRANDS

    @staticmethod
    def keys_of(product: Product) -> Iterable[str | None]:
        return (product.brand_id,)


class CompetitorsReconciler(ModuleReconciler):
    name = "Competitors"

    def _reconcile(self, result: ModuleResult) -> None:
        competitor_documents = self._store.list_documents(COMPETITORS)
        products = self._parsed(result, PRODUCTS, Product.from_document)

        metrics = recompute_competitor_metrics(products)

        with self._batched(result) as batch:
            for competitor in self._parsed(
                result, COMPETITORS, Competitor.from_document, competitor_documents
            ):
                analyzed, average = metrics.get(competitor.id, (0, 0.0))
                if (
                    competitor.products_analyzed == analyzed
                    and competitor.average_price is not None
                    and abs(competitor.average_price - average) <= PRICE_TOLERANCE
                ):
                    continue
                stamp = self._clock().isoformat()
                batch.update(
                    COMPETITORS,
                    competitor.id,
                    {
                        "metrics": {
                            **competitor.metrics,
                            "products_analyzed": analyzed,
                            "average_price": average,
                            "updated_at": stamp,
                        }
                    },
                )
