"""Domain service: Batch Writer.

Groups writes into batches no larger than the store's operation cap.
Batches are flushed in the order they were filled and a new batch is
only opened after the previous one has been committed. There is no
atomicity across batches: a failed commit loses that batch only, is
recorded as an error, and the writer carries on with a fresh batch.
"""

from __future__ import annotations

import logging
from typing import Any

from docrecon.domain.exceptions import DomainException, ValidationError
from docrecon.domain.repository.document_store import DocumentStore, WriteBatch

logger = logging.getLogger(__name__)


class BatchWriter:

    def __init__(self, store: DocumentStore, limit: int | None = None) -> None:
        cap = store.max_batch_operations
        if limit is None:
            limit = cap
        if limit <= 0:
            raise ValidationError("Batch limit must be positive")
        self._store = store
        self._limit = min(limit, cap)
        self._batch: WriteBatch = store.batch()
        self.committed = 0
        self.errors: list[str] = []

    def __enter__(self) -> BatchWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Pending writes are only flushed when the block finished normally.
        if exc_type is None:
            self.flush()

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        self._batch.update(collection, document_id, fields)
        self._flush_if_full()

    def delete(self, collection: str, document_id: str) -> None:
        self._batch.delete(collection, document_id)
        self._flush_if_full()

    def flush(self) -> None:
        size = len(self._batch)
        if size == 0:
            return
        try:
            self._batch.commit()
        except DomainException as exc:
            message = f"Batch of {size} operations failed: {exc}"
            logger.warning(message)
            self.errors.append(message)
        else:
            self.committed += size
            logger.debug("Committed batch of %d operations", size)
        finally:
            self._batch = self._store.batch()

    def _flush_if_full(self) -> None:
        if len(self._batch) >= self._limit:
            self.flush()
