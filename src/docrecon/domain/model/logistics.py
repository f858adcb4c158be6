"""Warehouses and the Transfers that move Units between them."""

from __future__ import annotations

from dataclasses import dataclass

from docrecon.domain.model.value_objects import as_count, as_id
from docrecon.domain.repository.document_store import Document

WAREHOUSES = "warehouses"
TRANSFERS = "transfers"


@dataclass(frozen=True)
class Warehouse:
    id: str
    current_stock: int | None

    @staticmethod
    def from_document(document: Document) -> Warehouse:
        return Warehouse(id=document.id, current_stock=as_count(document.get("current_stock")))


@dataclass(frozen=True)
class Transfer:
    """Invariant: ``total_units`` always equals ``len(unit_ids)``."""

    id: str
    origin_warehouse_id: str | None
    destination_warehouse_id: str | None
    unit_ids: tuple[str, ...]
    total_units: int | None
    # stored unit_ids entries that are not ids; they are dropped on rewrite
    malformed_unit_ids: int = 0

    @staticmethod
    def from_document(document: Document) -> Transfer:
        stored = document.get("unit_ids")
        if stored is None:
            stored = []
        elif not isinstance(stored, list):
            # a scalar in place of the list counts as one malformed entry
            stored = [None]
        unit_ids = tuple(value for value in stored if isinstance(value, str) and value)
        return Transfer(
            id=document.id,
            origin_warehouse_id=as_id(document.get("origin_warehouse_id")),
            destination_warehouse_id=as_id(document.get("destination_warehouse_id")),
            unit_ids=unit_ids,
            total_units=as_count(document.get("total_units")),
            malformed_unit_ids=len(stored) - len(unit_ids),
        )
