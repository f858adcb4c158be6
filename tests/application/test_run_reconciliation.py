"""Integration tests for the Run Reconciliation use case."""

from datetime import datetime, timezone

import pytest

from docrecon.application.dto import ModuleResult
from docrecon.application.reconcilers.base import ModuleReconciler
from docrecon.application.run_reconciliation import (
    MODULE_ORDER,
    ReconciliationHandler,
    RunState,
    module_names,
    run_reconciliation,
)
from docrecon.domain.exceptions import EntityNotFoundError
from tests.fakes import FakeDocumentStore

NOW = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)


def _units(state, count, prefix):
    return [
        {"id": f"{prefix}{i}", "product_id": "P", "state": state,
         "warehouse_id": "W1", "purchase_order_id": "po1"}
        for i in range(count)
    ]


def _setup():
    """A store where every kind of drift is present at least once."""
    return FakeDocumentStore(
        {
            "products": [
                {
                    "id": "P",
                    "status": "active",
                    "brand_id": "B1",
                    "product_type_id": "T1",
                    "category_ids": ["c1"],
                    "research": {"competitors": [{"competitor_id": "K1", "price": 10.0}]},
                    "origin_stock": 0,
                    "destination_stock": 0,
                    "in_transit_stock": 0,
                    "reserved_stock": 0,
                    "available_stock": 0,
                },
                {"id": "Q", "status": "active"},
            ],
            "units": _units("available_destination", 5, "a")
            + _units("in_transit_destination", 3, "t")
            + _units("assigned_to_order", 2, "r")
            + [
                {"id": "orphan", "product_id": "GONE", "state": "received_origin"},
                {"id": "q0", "product_id": "Q", "state": "received_origin", "warehouse_id": "W9"},
            ],
            "warehouses": [{"id": "W1", "current_stock": 0}],
            "transfers": [
                {
                    "id": "T1",
                    "origin_warehouse_id": "W1",
                    "destination_warehouse_id": "W",
                    "destination_warehouse_name": "Port",
                    "unit_ids": ["t0", "t1", "t2", "lost"],
                    "total_units": 4,
                }
            ],
            "purchase_orders": [
                {
                    "id": "po1",
                    "supplier_id": "S1",
                    "items": [
                        {"product_id": "P", "quantity": 10, "subtotal": 100.0},
                        {"product_id": "GONE", "quantity": 1, "subtotal": 20.0},
                    ],
                    "subtotal": 120.0,
                    "total": 120.0,
                }
            ],
            "suppliers": [{"id": "S1", "metrics": {}}],
            "sales": [
                {"id": "s1", "client_id": "C1", "total": 50.0, "status": "completed",
                 "items": [{"product_id": "P", "quantity": 1, "subtotal": 50.0}]},
                {"id": "s2", "client_id": "C9", "client_name": "Old", "total": 20.0},
            ],
            "clients": [{"id": "C1", "sales_count": 0, "total_spent": 0}],
            "expenses": [{"id": "e1", "sale_id": "s404", "sale_number": "V-404"}],
            "product_types": [{"id": "T1", "metrics": {}}],
            "categories": [{"id": "c1", "total_products": 0, "active_products": 0}],
            "brands": [{"id": "B1", "total_products": 0, "active_products": 0}],
            "competitors": [{"id": "K1", "metrics": {"products_analyzed": 0, "average_price": 0}}],
        }
    )


class TestFullRun:

    def test_repairs_every_kind_of_drift(self):
        store = _setup()

        summary = ReconciliationHandler(store, clock=lambda: NOW).handle()

        assert summary.success
        assert summary.timestamp == NOW
        assert [r.module_name for r in summary.results] == module_names()

        product = store.data("products", "P")
        assert product["destination_stock"] == 5
        assert product["in_transit_stock"] == 3
        assert product["reserved_stock"] == 2
        assert product["available_stock"] == 3
        assert len(store.writes_to("products", "P")) == 1

        assert "orphan" not in store.ids("units")
        assert store.data("units", "q0")["warehouse_id"] is None
        assert store.data("warehouses", "W1")["current_stock"] == 7
        assert store.data("transfers", "T1")["unit_ids"] == ["t0", "t1", "t2"]
        assert store.data("purchase_orders", "po1")["total"] == 100.0
        assert store.data("suppliers", "S1")["metrics"] == {"order_count": 1, "total_purchased": 100.0}
        assert store.data("sales", "s2")["client_id"] is None
        assert store.data("expenses", "e1")["sale_id"] is None
        assert store.data("clients", "C1")["total_spent"] == 50.0
        assert store.data("brands", "B1")["total_products"] == 1
        assert store.data("competitors", "K1")["metrics"]["products_analyzed"] == 1

    def test_transfer_scenario_counts_two_cleaned_references(self):
        store = _setup()

        summary = ReconciliationHandler(store).handle()

        transfers = summary.result_for("Transfers")
        assert transfers.references_cleaned == 2
        assert store.data("transfers", "T1")["total_units"] == 3

    def test_totals_add_up_module_results(self):
        summary = ReconciliationHandler(_setup()).handle()

        assert summary.totals.updated == sum(r.records_updated for r in summary.results)
        assert summary.totals.deleted == sum(r.records_deleted for r in summary.results)
        assert summary.totals.deleted == 1
        assert summary.totals.errors == 0

    def test_second_run_is_a_no_op(self):
        store = _setup()
        ReconciliationHandler(store).handle()
        store.reset_log()

        summary = ReconciliationHandler(store).handle()

        assert store.writes == []
        assert summary.totals.updated == 0
        assert summary.totals.deleted == 0
        assert summary.totals.references_cleaned == 0
        assert summary.success

    def test_convenience_function(self):
        summary = run_reconciliation(_setup())
        assert summary.success
        assert len(summary.results) == len(MODULE_ORDER)


class TestIsolation:

    def test_failing_module_does_not_stop_the_run(self):
        store = _setup()
        store.failing_reads.add("suppliers")

        summary = ReconciliationHandler(store).handle()

        assert not summary.success
        assert summary.result_for("Suppliers").errors == ["read of 'suppliers' failed"]
        assert summary.result_for("Products").records_updated == 2
        assert summary.result_for("Competitors").succeeded
        assert summary.totals.errors == 1

    def test_unreadable_research_price_does_not_abort_any_module(self):
        store = _setup()
        store.seed(
            "products",
            {
                "id": "Q",
                "status": "active",
                "research": {"competitors": [{"competitor_id": "K1", "price": "n/a"}]},
            },
        )

        summary = ReconciliationHandler(store).handle()

        assert summary.success
        assert store.data("products", "P")["destination_stock"] == 5
        assert store.data("competitors", "K1")["metrics"]["products_analyzed"] == 1

    def test_module_raising_past_its_boundary_is_recorded(self):
        class Exploding(ModuleReconciler):
            name = "Exploding"

            def run(self):
                raise RuntimeError("kaboom")

            def _reconcile(self, result):
                pass

        class Quiet(ModuleReconciler):
            name = "Quiet"

            def _reconcile(self, result):
                result.records_updated += 1

        store = FakeDocumentStore()
        handler = ReconciliationHandler(store, modules=[Exploding(store), Quiet(store)])

        summary = handler.handle()

        assert summary.results[0] == ModuleResult.failed("Exploding", "kaboom")
        assert summary.results[1].records_updated == 1


class TestProgress:

    def test_reports_before_each_module_and_at_the_end(self):
        calls = []
        handler = ReconciliationHandler(_setup())

        handler.handle(lambda message, percent: calls.append((message, percent)))

        assert len(calls) == len(MODULE_ORDER) + 1
        assert calls[0] == ("Reconciling Units...", 0.0)
        assert calls[1][0] == "Reconciling Products..."
        assert calls[-1] == ("Reconciliation completed", 100)
        percents = [percent for _, percent in calls]
        assert percents == sorted(percents)

    def test_state_transitions(self):
        handler = ReconciliationHandler(FakeDocumentStore())
        assert handler.state is RunState.IDLE

        seen = []
        handler.handle(lambda message, percent: seen.append((handler.state, handler.current)))

        assert seen[0] == (RunState.RUNNING, 0)
        assert handler.state is RunState.COMPLETED
        assert handler.current is None


class TestRunModule:

    def test_runs_single_module_case_insensitive(self):
        store = _setup()

        result = ReconciliationHandler(store).run_module("transfers")

        assert result.module_name == "Transfers"
        assert result.references_cleaned == 2
        assert store.writes_to("products") == []

    def test_unknown_module_rejected(self):
        with pytest.raises(EntityNotFoundError, match="Unknown module"):
            ReconciliationHandler(FakeDocumentStore()).run_module("Invoices")
