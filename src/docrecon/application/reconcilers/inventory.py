"""Reconcilers for the inventory side: Units, Products, Warehouses, Transfers.

Units are cleaned first; Products and Warehouses then recompute their
stock from the already-cleaned Unit collection.
"""

from __future__ import annotations

import logging

from docrecon.application.dto import ModuleResult
from docrecon.application.reconcilers.base import ModuleReconciler
from docrecon.domain.model.commerce import PURCHASE_ORDERS
from docrecon.domain.model.logistics import TRANSFERS, WAREHOUSES, Transfer, Warehouse
from docrecon.domain.model.product import PRODUCTS, Product
from docrecon.domain.model.unit import UNITS, Unit
from docrecon.domain.service.counter_recomputer import (
    recompute_product_stock,
    recompute_warehouse_stock,
)
from docrecon.domain.service.existence_index import ExistenceIndex
from docrecon.domain.service.reference_repairer import (
    TRANSFER_DESTINATION,
    TRANSFER_ORIGIN,
    UNIT_WAREHOUSE,
    filter_ids,
    nullify_dangling,
    should_cascade_delete,
)

logger = logging.getLogger(__name__)


class UnitsReconciler(ModuleReconciler):
    """Deletes units whose product or purchase order vanished; clears dead warehouses."""

    name = "Units"

    def _reconcile(self, result: ModuleResult) -> None:
        products = self._index(PRODUCTS)
        purchase_orders = self._index(PURCHASE_ORDERS)
        warehouses = self._index(WAREHOUSES)

        for unit in self._parsed(result, UNITS, Unit.from_document):
            with self._per_record(result, UNITS, unit.id):
                if should_cascade_delete(unit, products, purchase_orders):
                    self._delete(result, UNITS, unit.id)
                    continue

                updates, cleaned = nullify_dangling(
                    [(UNIT_WAREHOUSE, unit.warehouse_id, warehouses)]
                )
                if updates:
                    self._update(result, UNITS, unit.id, updates, references_cleaned=cleaned)


class ProductsReconciler(ModuleReconciler):
    """Recomputes the four stock counters (and available stock) of every product.

    With ``purge_inactive`` set, inactive products are deleted together
    with their units before stock is recomputed.
    """

    name = "Products"

    def __init__(self, *args, purge_inactive: bool = False, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._purge_inactive = purge_inactive

    def _reconcile(self, result: ModuleResult) -> None:
        if self._purge_inactive:
            self._purge_inactive_products(result)

        product_documents = self._store.list_documents(PRODUCTS)
        products = ExistenceIndex.of(PRODUCTS, product_documents)
        units = self._parsed(result, UNITS, Unit.from_document)

        levels, orphans = recompute_product_stock(units, products)

        for unit in orphans:
            self._delete(result, UNITS, unit.id)

        with self._batched(result) as batch:
            for product in self._parsed(
                result, PRODUCTS, Product.from_document, product_documents
            ):
                fields = levels[product.id].to_fields()
                if product.cached_stock != fields:
                    batch.update(PRODUCTS, product.id, fields)

    def _purge_inactive_products(self, result: ModuleResult) -> None:
        inactive = {
            product.id
            for product in self._parsed(result, PRODUCTS, Product.from_document)
            if product.is_inactive
        }
        if not inactive:
            return
        logger.info("Purging %d inactive products", len(inactive))

        for unit in self._parsed(result, UNITS, Unit.from_document):
            if unit.product_id in inactive:
                self._delete(result, UNITS, unit.id)
        for product_id in sorted(inactive):
            self._delete(result, PRODUCTS, product_id)


class WarehousesReconciler(ModuleReconciler):
    name = "Warehouses"

    def _reconcile(self, result: ModuleResult) -> None:
        warehouse_documents = self._store.list_documents(WAREHOUSES)
        warehouses = ExistenceIndex.of(WAREHOUSES, warehouse_documents)
        units = self._parsed(result, UNITS, Unit.from_document)

        stock = recompute_warehouse_stock(units, warehouses)

        with self._batched(result) as batch:
            for warehouse in self._parsed(
                result, WAREHOUSES, Warehouse.from_document, warehouse_documents
            ):
                if warehouse.current_stock != stock[warehouse.id]:
                    batch.update(WAREHOUSES, warehouse.id, {"current_stock": stock[warehouse.id]})


class TransfersReconciler(ModuleReconciler):
    """Clears dead warehouses and drops unit ids that no longer exist."""

    name = "Transfers"

    def _reconcile(self, result: ModuleResult) -> None:
        warehouses = self._index(WAREHOUSES)
        units = self._index(UNITS)

        for transfer in self._parsed(result, TRANSFERS, Transfer.from_document):
            with self._per_record(result, TRANSFERS, transfer.id):
                self._repair(result, transfer, warehouses, units)

    def _repair(
        self,
        result: ModuleResult,
        transfer: Transfer,
        warehouses: ExistenceIndex,
        units: ExistenceIndex,
    ) -> None:
        updates, cleaned = nullify_dangling(
            [
                (TRANSFER_ORIGIN, transfer.origin_warehouse_id, warehouses),
                (TRANSFER_DESTINATION, transfer.destination_warehouse_id, warehouses),
            ]
        )

        unit_ids, dropped = filter_ids(transfer.unit_ids, units)
        dropped += transfer.malformed_unit_ids
        if dropped:
            updates["unit_ids"] = unit_ids
            cleaned += dropped
        if dropped or transfer.total_units != len(unit_ids):
            updates["total_units"] = len(unit_ids)

        if updates:
            self._update(result, TRANSFERS, transfer.id, updates, references_cleaned=cleaned)
