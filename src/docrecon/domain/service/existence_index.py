"""Domain service: Existence Index.

Loads every document id of a collection into a set so that foreign keys
held by other collections can be checked in constant time. The index
is a snapshot: it must be fully built before any repair decision is
made against it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from docrecon.domain.repository.document_store import Document, DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistenceIndex:
    collection: str
    ids: frozenset[str]

    def __contains__(self, document_id: object) -> bool:
        return document_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)

    def is_dangling(self, value: Any) -> bool:
        """True when ``value`` is a non-empty reference to a missing document."""
        if not value:
            return False
        return value not in self.ids

    @staticmethod
    def of(collection: str, documents: list[Document]) -> ExistenceIndex:
        return ExistenceIndex(collection, frozenset(d.id for d in documents))


def build_existence_index(store: DocumentStore, collection: str) -> ExistenceIndex:
    """Scan ``collection`` once and index its ids. Read failures propagate."""
    index = ExistenceIndex.of(collection, store.list_documents(collection))
    logger.debug("Indexed %d ids from '%s'", len(index), collection)
    return index
