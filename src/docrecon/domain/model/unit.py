"""Unit record: one physical inventory item.

Units are the source of truth for every stock counter. Each Unit moves
through a lifecycle of location/ownership states; the state decides
which product counter (if any) it contributes to.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from docrecon.domain.model.value_objects import as_id
from docrecon.domain.repository.document_store import Document

UNITS = "units"


class UnitState(Enum):
    RECEIVED_ORIGIN = "received_origin"
    AVAILABLE_DESTINATION = "available_destination"
    IN_TRANSIT_ORIGIN = "in_transit_origin"
    IN_TRANSIT_DESTINATION = "in_transit_destination"
    ASSIGNED_TO_ORDER = "assigned_to_order"
    IN_DISPATCH = "in_dispatch"
    SOLD = "sold"
    EXPIRED = "expired"

    @staticmethod
    def parse(raw: object) -> UnitState | None:
        """Return the state for a stored value, or None if unrecognised."""
        try:
            return UnitState(raw)
        except (ValueError, TypeError):
            return None


IN_TRANSIT_STATES = frozenset(
    {UnitState.IN_TRANSIT_ORIGIN, UnitState.IN_TRANSIT_DESTINATION}
)
RESERVED_STATES = frozenset({UnitState.ASSIGNED_TO_ORDER, UnitState.IN_DISPATCH})

# States in which a unit physically sits in its current warehouse.
WAREHOUSED_STATES = frozenset(
    {
        UnitState.RECEIVED_ORIGIN,
        UnitState.AVAILABLE_DESTINATION,
        UnitState.ASSIGNED_TO_ORDER,
        UnitState.IN_DISPATCH,
    }
)


@dataclass(frozen=True)
class Unit:
    id: str
    product_id: str | None
    state: UnitState | None
    warehouse_id: str | None = None
    purchase_order_id: str | None = None

    @staticmethod
    def from_document(document: Document) -> Unit:
        return Unit(
            id=document.id,
            product_id=as_id(document.get("product_id")),
            state=UnitState.parse(document.get("state")),
            warehouse_id=as_id(document.get("warehouse_id")),
            purchase_order_id=as_id(document.get("purchase_order_id")),
        )
