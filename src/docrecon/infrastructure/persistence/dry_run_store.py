"""Dry-run wrapper: reads from a real store, records writes instead of applying them.

Reconciliation counts are then a preview of what a real run would do.
Because nothing is written, modules later in the run see the state
before earlier modules' repairs, so the preview can over-count work
that a real run would cascade away.
"""

from __future__ import annotations

from typing import Any

from docrecon.domain.repository.document_store import (
    DELETE,
    UPDATE,
    Document,
    DocumentStore,
    WriteOperation,
)


class DryRunDocumentStore(DocumentStore):

    def __init__(self, inner: DocumentStore) -> None:
        self._inner = inner
        self.planned_operations: list[WriteOperation] = []

    @property
    def max_batch_operations(self) -> int:
        return self._inner.max_batch_operations

    def list_documents(self, collection: str) -> list[Document]:
        return self._inner.list_documents(collection)

    def get_document(self, collection: str, document_id: str) -> Document | None:
        return self._inner.get_document(collection, document_id)

    def update_document(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        self.planned_operations.append(
            WriteOperation(UPDATE, collection, document_id, dict(fields))
        )

    def delete_document(self, collection: str, document_id: str) -> None:
        self.planned_operations.append(WriteOperation(DELETE, collection, document_id))

    def commit_batch(self, operations: list[WriteOperation]) -> None:
        self.planned_operations.extend(operations)
