"""Data Transfer Objects: the results a reconciliation run exposes.

The global summary is the only artifact handed to callers (CLI, UI);
it carries counts and error strings, never exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class ModuleResult:
    """Outcome of one module pass. Mutated only while the module runs."""

    module_name: str
    records_updated: int = 0
    records_deleted: int = 0
    references_cleaned: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def changed(self) -> bool:
        return bool(self.records_updated or self.records_deleted or self.references_cleaned)

    @staticmethod
    def failed(module_name: str, message: str) -> ModuleResult:
        return ModuleResult(module_name=module_name, errors=[message])

    def to_dict(self) -> dict[str, Any]:
        return {
            "module_name": self.module_name,
            "records_updated": self.records_updated,
            "records_deleted": self.records_deleted,
            "references_cleaned": self.references_cleaned,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class Totals:
    updated: int
    deleted: int
    references_cleaned: int
    errors: int

    @staticmethod
    def of(results: list[ModuleResult]) -> Totals:
        return Totals(
            updated=sum(r.records_updated for r in results),
            deleted=sum(r.records_deleted for r in results),
            references_cleaned=sum(r.references_cleaned for r in results),
            errors=sum(len(r.errors) for r in results),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "updated": self.updated,
            "deleted": self.deleted,
            "references_cleaned": self.references_cleaned,
            "errors": self.errors,
        }


@dataclass(frozen=True)
class GlobalSummary:
    """Result of a full run. Partial success is reported, never hidden."""

    success: bool
    timestamp: datetime
    results: list[ModuleResult]
    totals: Totals

    @staticmethod
    def of(results: list[ModuleResult], timestamp: datetime) -> GlobalSummary:
        totals = Totals.of(results)
        return GlobalSummary(
            success=totals.errors == 0,
            timestamp=timestamp,
            results=list(results),
            totals=totals,
        )

    def result_for(self, module_name: str) -> ModuleResult | None:
        for result in self.results:
            if result.module_name == module_name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
            "results": [r.to_dict() for r in self.results],
            "totals": self.totals.to_dict(),
        }
