"""Suppliers and Clients, with their cached purchasing/sales metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docrecon.domain.model.value_objects import as_count
from docrecon.domain.repository.document_store import Document

SUPPLIERS = "suppliers"
CLIENTS = "clients"


@dataclass(frozen=True)
class OrderMetrics:
    """How many orders reference an entity and what they add up to."""

    count: int = 0
    amount: float = 0.0


@dataclass(frozen=True)
class Supplier:
    id: str
    cached: OrderMetrics | None
    metrics: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_document(document: Document) -> Supplier:
        metrics = dict(document.get("metrics") or {})
        return Supplier(
            id=document.id,
            cached=_cached_metrics(metrics.get("order_count"), metrics.get("total_purchased")),
            metrics=metrics,
        )

    def metrics_update(self, computed: OrderMetrics) -> dict[str, Any]:
        return {
            "metrics": {
                **self.metrics,
                "order_count": computed.count,
                "total_purchased": computed.amount,
            }
        }


@dataclass(frozen=True)
class Client:
    id: str
    cached: OrderMetrics | None

    @staticmethod
    def from_document(document: Document) -> Client:
        return Client(
            id=document.id,
            cached=_cached_metrics(document.get("sales_count"), document.get("total_spent")),
        )

    @staticmethod
    def metrics_update(computed: OrderMetrics) -> dict[str, Any]:
        return {"sales_count": computed.count, "total_spent": computed.amount}


def _cached_metrics(count: Any, amount: Any) -> OrderMetrics | None:
    cached_count = as_count(count)
    if cached_count is None or isinstance(amount, bool):
        return None
    if not isinstance(amount, (int, float)):
        return None
    return OrderMetrics(count=cached_count, amount=float(amount))
