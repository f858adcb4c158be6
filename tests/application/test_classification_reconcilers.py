"""Integration tests for Product Types, Categories, Brands and Competitors."""

from datetime import datetime, timezone

from docrecon.application.reconcilers.classification import (
    BrandsReconciler,
    CategoriesReconciler,
    CompetitorsReconciler,
    ProductTypesReconciler,
)
from tests.fakes import FakeDocumentStore

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _setup():
    return FakeDocumentStore(
        {
            "products": [
                {
                    "id": "p1",
                    "status": "active",
                    "brand_id": "B1",
                    "product_type_id": "T1",
                    "category_ids": ["c1", "c2"],
                    "research": {"competitors": [{"competitor_id": "K1", "price": 10.0}]},
                },
                {
                    "id": "p2",
                    "status": "inactive",
                    "brand_id": "B1",
                    "product_type_id": "T1",
                    "category_ids": ["c2"],
                    "research": {
                        "competitors": [
                            {"competitor_id": "K1", "price": 20.0},
                            {"competitor_id": "K2", "price": 7.5},
                        ]
                    },
                },
            ],
            "brands": [
                {"id": "B1", "name": "Norte", "total_products": 1, "active_products": 1},
                {"id": "B2", "name": "Sur", "total_products": 3, "active_products": 3},
            ],
            "categories": [
                {"id": "c1", "total_products": 1, "active_products": 1},
                {"id": "c2"},
            ],
            "product_types": [
                {"id": "T1", "metrics": {"total_products": 0, "active_products": 0, "margin": 0.3}},
            ],
            "competitors": [
                {"id": "K1", "metrics": {"products_analyzed": 2, "average_price": 15.004}},
                {"id": "K2", "metrics": {"products_analyzed": 1, "average_price": 9.0}},
                {"id": "K3", "metrics": {"products_analyzed": 4, "average_price": 3.0}},
            ],
        }
    )


class TestBrandsReconciler:

    def test_recomputes_total_and_active_counts(self):
        store = _setup()

        result = BrandsReconciler(store).run()

        assert store.data("brands", "B1")["total_products"] == 2
        assert store.data("brands", "B1")["active_products"] == 1
        assert store.data("brands", "B2")["total_products"] == 0
        assert store.data("brands", "B2")["name"] == "Sur"
        assert result.records_updated == 2


class TestCategoriesReconciler:

    def test_product_counts_toward_each_of_its_categories(self):
        store = _setup()

        result = CategoriesReconciler(store, clock=lambda: NOW).run()

        assert store.writes_to("categories", "c1") == []
        assert store.data("categories", "c2") == {
            "total_products": 2,
            "active_products": 1,
            "updated_at": NOW.isoformat(),
        }
        assert result.records_updated == 1


class TestProductTypesReconciler:

    def test_counts_are_nested_under_metrics(self):
        store = _setup()

        ProductTypesReconciler(store).run()

        product_type = store.data("product_types", "T1")
        assert product_type["metrics"] == {"total_products": 2, "active_products": 1, "margin": 0.3}
        assert "total_products" not in product_type

    def test_second_pass_writes_nothing(self):
        store = _setup()
        ProductTypesReconciler(store).run()
        store.reset_log()

        result = ProductTypesReconciler(store).run()

        assert store.writes == []
        assert not result.changed


class TestCompetitorsReconciler:

    def test_average_within_tolerance_not_rewritten(self):
        store = _setup()
        CompetitorsReconciler(store).run()
        assert store.writes_to("competitors", "K1") == []

    def test_stale_metrics_rewritten_with_timestamp(self):
        store = _setup()

        result = CompetitorsReconciler(store, clock=lambda: NOW).run()

        assert store.data("competitors", "K2")["metrics"] == {
            "products_analyzed": 1,
            "average_price": 7.5,
            "updated_at": NOW.isoformat(),
        }
        assert store.data("competitors", "K3")["metrics"]["products_analyzed"] == 0
        assert store.data("competitors", "K3")["metrics"]["average_price"] == 0.0
        assert result.records_updated == 2

    def test_unreadable_price_is_not_analyzed(self):
        store = _setup()
        store.seed(
            "products",
            {
                "id": "p3",
                "status": "active",
                "brand_id": "B2",
                "research": {"competitors": [{"competitor_id": "K2", "price": "n/a"}]},
            },
        )

        result = CompetitorsReconciler(store).run()

        assert store.data("competitors", "K2")["metrics"]["products_analyzed"] == 1
        assert store.data("competitors", "K2")["metrics"]["average_price"] == 7.5
        assert result.errors == []

    def test_unreadable_cached_average_rewritten(self):
        store = FakeDocumentStore(
            {
                "products": [
                    {"id": "p1", "research": {"competitors": [{"competitor_id": "K1", "price": 4}]}},
                ],
                "competitors": [
                    {"id": "K1", "metrics": {"products_analyzed": 1, "average_price": "4.0"}},
                ],
            }
        )

        result = CompetitorsReconciler(store).run()

        assert store.data("competitors", "K1")["metrics"]["average_price"] == 4.0
        assert result.records_updated == 1


class TestUnreadableResearch:

    def test_product_still_counted_toward_its_brand(self):
        store = _setup()
        store.seed(
            "products",
            {
                "id": "p3",
                "status": "active",
                "brand_id": "B2",
                "research": {"competitors": [{"competitor_id": "K2", "price": "n/a"}]},
            },
        )

        result = BrandsReconciler(store).run()

        assert store.data("brands", "B2")["total_products"] == 1
        assert store.data("brands", "B2")["active_products"] == 1
        assert result.errors == []
