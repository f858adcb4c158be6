"""Reconcilers for purchasing: Purchase Orders and Suppliers."""

from __future__ import annotations

from docrecon.application.dto import ModuleResult
from docrecon.application.reconcilers.base import ModuleReconciler
from docrecon.domain.model.commerce import PURCHASE_ORDERS, PurchaseOrder
from docrecon.domain.model.parties import SUPPLIERS, OrderMetrics, Supplier
from docrecon.domain.model.product import PRODUCTS
from docrecon.domain.model.value_objects import is_money
from docrecon.domain.service.counter_recomputer import recompute_supplier_metrics
from docrecon.domain.service.existence_index import ExistenceIndex
from docrecon.domain.service.reference_repairer import (
    PURCHASE_ORDER_SUPPLIER,
    filter_line_items,
)


class PurchaseOrdersReconciler(ModuleReconciler):
    """Drops line items whose product vanished and recomputes order totals."""

    name = "Purchase Orders"

    def _reconcile(self, result: ModuleResult) -> None:
        products = self._index(PRODUCTS)

        for order in self._parsed(result, PURCHASE_ORDERS, PurchaseOrder.from_document):
            with self._per_record(result, PURCHASE_ORDERS, order.id):
                kept, dropped = filter_line_items(order.items, products)
                if dropped:
                    self._update(
                        result,
                        PURCHASE_ORDERS,
                        order.id,
                        order.totals_for(kept),
                        references_cleaned=dropped,
                    )


class SuppliersReconciler(ModuleReconciler):
    """Clears dead supplier references, then recomputes supplier metrics.

    Runs after Purchase Orders so metrics read the recomputed order totals.
    A supplier with an order whose total cannot be read keeps its cached
    metrics; the order is reported as an error.
    """

    name = "Suppliers"

    def _reconcile(self, result: ModuleResult) -> None:
        supplier_documents = self._store.list_documents(SUPPLIERS)
        suppliers = ExistenceIndex.of(SUPPLIERS, supplier_documents)

        orders: list[PurchaseOrder] = []
        unreadable: set[str] = set()
        for order in self._parsed(result, PURCHASE_ORDERS, PurchaseOrder.from_document):
            if suppliers.is_dangling(order.supplier_id):
                self._update(
                    result,
                    PURCHASE_ORDERS,
                    order.id,
                    PURCHASE_ORDER_SUPPLIER.nullified(),
                    references_cleaned=1,
                )
                continue
            if order.supplier_id and not is_money(order.total):
                self._record_error(
                    result,
                    f"Error reconciling {PURCHASE_ORDERS}/{order.id}: "
                    f"invalid total {order.total!r}",
                )
                unreadable.add(order.supplier_id)
                continue
            orders.append(order)

        metrics = recompute_supplier_metrics(orders)

        with self._batched(result) as batch:
            for supplier in self._parsed(
                result, SUPPLIERS, Supplier.from_document, supplier_documents
            ):
                if supplier.id in unreadable:
                    continue
                computed = metrics.get(supplier.id, OrderMetrics())
                if supplier.cached != computed:
                    batch.update(SUPPLIERS, supplier.id, supplier.metrics_update(computed))
