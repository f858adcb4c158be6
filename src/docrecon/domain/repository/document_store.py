"""Abstract document store consumed by the reconciliation engine.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON files, in-memory fakes,
dry-run wrappers) live in the infrastructure layer and in the tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from docrecon.domain.exceptions import ValidationError

UPDATE = "update"
DELETE = "delete"


@dataclass(frozen=True)
class Document:
    """A snapshot of one stored document, read at a single point in time."""

    id: str
    data: dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class WriteOperation:
    kind: str  # UPDATE or DELETE
    collection: str
    document_id: str
    fields: dict[str, Any] = field(default_factory=dict)


class DocumentStore(ABC):

    @property
    @abstractmethod
    def max_batch_operations(self) -> int:
        """Maximum number of operations allowed in one committed batch."""

    @abstractmethod
    def list_documents(self, collection: str) -> list[Document]:
        """Return every document in a collection (full, unfiltered scan)."""

    @abstractmethod
    def get_document(self, collection: str, document_id: str) -> Document | None:
        """Return a single document, or None if it does not exist."""

    @abstractmethod
    def update_document(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        """Merge top-level fields into an existing document."""

    @abstractmethod
    def delete_document(self, collection: str, document_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""

    @abstractmethod
    def commit_batch(self, operations: list[WriteOperation]) -> None:
        """Apply all operations atomically, or none of them."""

    def batch(self) -> WriteBatch:
        return WriteBatch(self, self.max_batch_operations)


class WriteBatch:
    """Accumulates write operations up to the store's operation cap.

    A batch is single-use: ``commit()`` hands the operations to the
    store and empties the batch whether or not the commit succeeds.
    """

    def __init__(self, store: DocumentStore, limit: int) -> None:
        self._store = store
        self._limit = limit
        self._operations: list[WriteOperation] = []

    def __len__(self) -> int:
        return len(self._operations)

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        self._add(WriteOperation(UPDATE, collection, document_id, dict(fields)))

    def delete(self, collection: str, document_id: str) -> None:
        self._add(WriteOperation(DELETE, collection, document_id))

    def commit(self) -> None:
        operations, self._operations = self._operations, []
        if operations:
            self._store.commit_batch(operations)

    def _add(self, operation: WriteOperation) -> None:
        if len(self._operations) >= self._limit:
            raise ValidationError(
                f"Batch already holds {self._limit} operations (store limit)"
            )
        self._operations.append(operation)
