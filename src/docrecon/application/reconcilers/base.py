"""Base class for the per-entity Module Reconcilers.

A reconciler composes the domain services (existence indexes, counter
recomputation, reference repair) into one pass over one collection.

Error isolation happens at two scopes:
- per record: a record that fails to parse or repair, or whose point
  write fails, appends an error and the pass continues with the next
  record;
- per module: anything escaping the pass (typically the initial
  full-collection read) becomes a single error entry. ``run()`` never
  raises, so one broken module cannot stop the others.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, TypeVar

from docrecon.application.dto import ModuleResult
from docrecon.domain.exceptions import DomainException
from docrecon.domain.repository.document_store import Document, DocumentStore
from docrecon.domain.service.batch_writer import BatchWriter
from docrecon.domain.service.existence_index import ExistenceIndex, build_existence_index

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ModuleReconciler(ABC):

    name: str = ""

    def __init__(
        self,
        store: DocumentStore,
        batch_limit: int | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._batch_limit = batch_limit
        self._clock = clock

    def run(self) -> ModuleResult:
        result = ModuleResult(module_name=self.name)
        logger.info("Reconciling %s", self.name)
        try:
            self._reconcile(result)
        except Exception as exc:
            logger.exception("%s reconciliation aborted", self.name)
            result.errors.append(str(exc) or exc.__class__.__name__)
        logger.info(
            "%s: %d updated, %d deleted, %d references cleaned, %d errors",
            self.name,
            result.records_updated,
            result.records_deleted,
            result.references_cleaned,
            len(result.errors),
        )
        return result

    @abstractmethod
    def _reconcile(self, result: ModuleResult) -> None:
        """Run the pass, accumulating counts and per-record errors into ``result``."""

    # --- Helpers --------------------------------------------------------------

    def _index(self, collection: str) -> ExistenceIndex:
        return build_existence_index(self._store, collection)

    def _stamped(self, fields: dict[str, Any]) -> dict[str, Any]:
        return {**fields, "updated_at": self._clock().isoformat()}

    def _update(
        self,
        result: ModuleResult,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
        references_cleaned: int = 0,
    ) -> bool:
        """Point-update one document, isolating a failure to this record."""
        try:
            self._store.update_document(collection, document_id, self._stamped(fields))
        except DomainException as exc:
            self._record_error(result, f"Error updating {collection}/{document_id}: {exc}")
            return False
        result.records_updated += 1
        result.references_cleaned += references_cleaned
        logger.debug("Updated %s/%s: %s", collection, document_id, sorted(fields))
        return True

    def _delete(self, result: ModuleResult, collection: str, document_id: str) -> bool:
        """Point-delete one document, isolating a failure to this record."""
        try:
            self._store.delete_document(collection, document_id)
        except DomainException as exc:
            self._record_error(result, f"Error deleting {collection}/{document_id}: {exc}")
            return False
        result.records_deleted += 1
        logger.debug("Deleted %s/%s", collection, document_id)
        return True

    @contextmanager
    def _per_record(
        self, result: ModuleResult, collection: str, document_id: str
    ) -> Iterator[None]:
        """Scope of one record's parse and repair.

        A domain error inside the scope is recorded against the record and
        swallowed, so the pass moves on to the next record.
        """
        try:
            yield
        except DomainException as exc:
            self._record_error(result, f"Error reconciling {collection}/{document_id}: {exc}")

    def _parsed(
        self,
        result: ModuleResult,
        collection: str,
        parse: Callable[[Document], T],
        documents: list[Document] | None = None,
    ) -> list[T]:
        """Typed records of ``collection``; documents that fail to parse are skipped."""
        if documents is None:
            documents = self._store.list_documents(collection)
        records: list[T] = []
        for document in documents:
            with self._per_record(result, collection, document.id):
                records.append(parse(document))
        return records

    @contextmanager
    def _batched(self, result: ModuleResult) -> Iterator[_StampedBatch]:
        """Batched counter writes; committed operations count as updates."""
        writer = BatchWriter(self._store, self._batch_limit)
        try:
            with writer:
                yield _StampedBatch(writer, self._stamped)
        finally:
            result.records_updated += writer.committed
            for message in writer.errors:
                self._record_error(result, message)

    @staticmethod
    def _record_error(result: ModuleResult, message: str) -> None:
        logger.warning(message)
        result.errors.append(message)


class _StampedBatch:
    """Adds the ``updated_at`` stamp to every batched update."""

    def __init__(self, writer: BatchWriter, stamp: Callable[[dict], dict]) -> None:
        self._writer = writer
        self._stamp = stamp

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        self._writer.update(collection, document_id, self._stamp(fields))
