"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from pathlib import Path

from docrecon.application.run_reconciliation import ReconciliationHandler
from docrecon.domain.repository.document_store import DocumentStore
from docrecon.infrastructure.config import Settings, get_settings
from docrecon.infrastructure.persistence.dry_run_store import DryRunDocumentStore
from docrecon.infrastructure.persistence.json_document_store import JsonDocumentStore


def document_store(
    data_dir: Path | None = None,
    dry_run: bool = False,
    settings: Settings | None = None,
) -> DocumentStore:
    settings = settings or get_settings()
    store: DocumentStore = JsonDocumentStore(data_dir or settings.data_dir)
    if dry_run:
        store = DryRunDocumentStore(store)
    return store


def reconciliation_handler(
    store: DocumentStore, settings: Settings | None = None
) -> ReconciliationHandler:
    settings = settings or get_settings()
    return ReconciliationHandler(
        store,
        batch_limit=settings.batch_limit,
        purge_inactive_products=settings.purge_inactive_products,
    )
