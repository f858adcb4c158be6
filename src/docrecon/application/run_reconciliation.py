"""Application service: Run Reconciliation use case.

Runs every Module Reconciler in a fixed order and folds their results
into one GlobalSummary. Modules run strictly one after another because
later modules read the state earlier ones repaired: Units are cleaned
before Products and Warehouses count them, Purchase Orders before
Suppliers sum them, Sales before Clients sum them.

No module failure changes the path of the run: a failing module is
recorded and the next one starts.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from docrecon.application.dto import GlobalSummary, ModuleResult
from docrecon.application.reconcilers.base import Clock, ModuleReconciler, utc_now
from docrecon.application.reconcilers.classification import (
    BrandsReconciler,
    CategoriesReconciler,
    CompetitorsReconciler,
    ProductTypesReconciler,
)
from docrecon.application.reconcilers.inventory import (
    ProductsReconciler,
    TransfersReconciler,
    UnitsReconciler,
    WarehousesReconciler,
)
from docrecon.application.reconcilers.purchasing import (
    PurchaseOrdersReconciler,
    SuppliersReconciler,
)
from docrecon.application.reconcilers.sales import (
    ClientsReconciler,
    ExpensesReconciler,
    QuotesReconciler,
    SalesReconciler,
)
from docrecon.domain.exceptions import EntityNotFoundError
from docrecon.domain.repository.document_store import DocumentStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]

MODULE_ORDER: tuple[type[ModuleReconciler], ...] = (
    UnitsReconciler,
    ProductsReconciler,
    WarehousesReconciler,
    TransfersReconciler,
    PurchaseOrdersReconciler,
    SuppliersReconciler,
    SalesReconciler,
    QuotesReconciler,
    ExpensesReconciler,
    ClientsReconciler,
    ProductTypesReconciler,
    CategoriesReconciler,
    BrandsReconciler,
    CompetitorsReconciler,
)


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


def module_names() -> list[str]:
    return [reconciler.name for reconciler in MODULE_ORDER]


class ReconciliationHandler:

    def __init__(
        self,
        store: DocumentStore,
        batch_limit: int | None = None,
        purge_inactive_products: bool = False,
        clock: Clock = utc_now,
        modules: list[ModuleReconciler] | None = None,
    ) -> None:
        self._clock = clock
        self._modules = modules if modules is not None else [
            self._build(reconciler, store, batch_limit, purge_inactive_products, clock)
            for reconciler in MODULE_ORDER
        ]
        self.state = RunState.IDLE
        self.current: int | None = None

    def handle(self, progress_callback: ProgressCallback | None = None) -> GlobalSummary:
        """Run every module once and return the global summary."""
        results: list[ModuleResult] = []
        total = len(self._modules)
        self.state = RunState.RUNNING

        for completed, module in enumerate(self._modules):
            self.current = completed
            self._report(progress_callback, f"Reconciling {module.name}...", completed / total * 100)
            results.append(self._run_isolated(module))

        self.state = RunState.COMPLETED
        self.current = None
        self._report(progress_callback, "Reconciliation completed", 100)

        summary = GlobalSummary.of(results, self._clock())
        logger.info(
            "Reconciliation finished: %d updated, %d deleted, %d references cleaned, %d errors",
            summary.totals.updated,
            summary.totals.deleted,
            summary.totals.references_cleaned,
            summary.totals.errors,
        )
        return summary

    def run_module(self, name: str) -> ModuleResult:
        """Run a single module by its name (case-insensitive)."""
        for module in self._modules:
            if module.name.lower() == name.strip().lower():
                return self._run_isolated(module)
        raise EntityNotFoundError(f"Unknown module '{name}'")

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _build(
        reconciler: type[ModuleReconciler],
        store: DocumentStore,
        batch_limit: int | None,
        purge_inactive_products: bool,
        clock: Clock,
    ) -> ModuleReconciler:
        if reconciler is ProductsReconciler:
            return ProductsReconciler(
                store, batch_limit, clock, purge_inactive=purge_inactive_products
            )
        return reconciler(store, batch_limit, clock)

    @staticmethod
    def _run_isolated(module: ModuleReconciler) -> ModuleResult:
        # run() already isolates its own errors; this guards foreign modules.
        try:
            return module.run()
        except Exception as exc:
            logger.exception("Module %s raised past its boundary", module.name)
            return ModuleResult.failed(module.name, str(exc) or exc.__class__.__name__)

    @staticmethod
    def _report(callback: ProgressCallback | None, message: str, percent: float) -> None:
        if callback is not None:
            callback(message, percent)


def run_reconciliation(
    store: DocumentStore,
    progress_callback: ProgressCallback | None = None,
    batch_limit: int | None = None,
    purge_inactive_products: bool = False,
) -> GlobalSummary:
    """Run one full reconciliation pass against ``store``."""
    handler = ReconciliationHandler(
        store,
        batch_limit=batch_limit,
        purge_inactive_products=purge_inactive_products,
    )
    return handler.handle(progress_callback)
