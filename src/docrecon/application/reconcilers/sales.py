"""Reconcilers for the sales side: Sales, Quotes, Expenses and Clients."""

from __future__ import annotations

from docrecon.application.dto import ModuleResult
from docrecon.application.reconcilers.base import ModuleReconciler
from docrecon.domain.model.commerce import EXPENSES, QUOTES, SALES, Expense, Sale
from docrecon.domain.model.parties import CLIENTS, Client, OrderMetrics
from docrecon.domain.model.product import PRODUCTS
from docrecon.domain.model.value_objects import is_money
from docrecon.domain.service.counter_recomputer import recompute_client_metrics
from docrecon.domain.service.existence_index import ExistenceIndex
from docrecon.domain.service.reference_repairer import (
    EXPENSE_SALE,
    SALE_CLIENT,
    filter_line_items,
    nullify_dangling,
)


class SalesReconciler(ModuleReconciler):
    """Clears dead client references and drops line items of vanished products."""

    name = "Sales"
    collection = SALES

    def _reconcile(self, result: ModuleResult) -> None:
        products = self._index(PRODUCTS)
        clients = self._index(CLIENTS)

        for sale in self._parsed(result, self.collection, Sale.from_document):
            with self._per_record(result, self.collection, sale.id):
                updates, cleaned = nullify_dangling([(SALE_CLIENT, sale.client_id, clients)])

                kept, dropped = filter_line_items(sale.items, products)
                if dropped:
                    updates.update(sale.totals_for(kept))
                    cleaned += dropped

                if updates:
                    self._update(
                        result, self.collection, sale.id, updates, references_cleaned=cleaned
                    )


class QuotesReconciler(SalesReconciler):
    name = "Quotes"
    collection = QUOTES


class ExpensesReconciler(ModuleReconciler):
    """An expense outlives its sale: only the sale reference is cleared."""

    name = "Expenses"

    def _reconcile(self, result: ModuleResult) -> None:
        sales = self._index(SALES)

        for expense in self._parsed(result, EXPENSES, Expense.from_document):
            updates, cleaned = nullify_dangling([(EXPENSE_SALE, expense.sale_id, sales)])
            if updates:
                self._update(result, EXPENSES, expense.id, updates, references_cleaned=cleaned)


class ClientsReconciler(ModuleReconciler):
    """Recomputes sale count and total spent per client from non-cancelled sales.

    A client with a counted sale whose total cannot be read keeps its
    cached metrics; the sale is reported as an error.
    """

    name = "Clients"

    def _reconcile(self, result: ModuleResult) -> None:
        client_documents = self._store.list_documents(CLIENTS)
        clients = ExistenceIndex.of(CLIENTS, client_documents)

        sales: list[Sale] = []
        unreadable: set[str] = set()
        for sale in self._parsed(result, SALES, Sale.from_document):
            if sale.client_id not in clients or sale.is_cancelled:
                continue
            if not is_money(sale.total):
                self._record_error(
                    result, f"Error reconciling {SALES}/{sale.id}: invalid total {sale.total!r}"
                )
                unreadable.add(sale.client_id)
                continue
            sales.append(sale)

        metrics = recompute_client_metrics(sales)

        with self._batched(result) as batch:
            for client in self._parsed(result, CLIENTS, Client.from_document, client_documents):
                if client.id in unreadable:
                    continue
                computed = metrics.get(client.id, OrderMetrics())
                if client.cached != computed:
                    batch.update(CLIENTS, client.id, client.metrics_update(computed))
