"""JSON-file-backed implementation of DocumentStore.

Each collection is one file, ``<data_dir>/<collection>.json``, holding a
list of records with an ``"id"`` key. A missing file is an empty
collection.

A batch is atomic within one collection. Across collections, a failure
while applying or staging leaves every file untouched, but a crash
between two file replaces can leave the batch partly applied.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from docrecon.domain.exceptions import EntityNotFoundError, StoreError, ValidationError
from docrecon.domain.repository.document_store import (
    DELETE,
    UPDATE,
    Document,
    DocumentStore,
    WriteOperation,
)

MAX_BATCH_OPERATIONS = 500


class JsonDocumentStore(DocumentStore):

    def __init__(self, data_dir: Path, max_batch_operations: int = MAX_BATCH_OPERATIONS) -> None:
        self._data_dir = data_dir
        self._max_batch_operations = max_batch_operations

    # --- DocumentStore interface ----------------------------------------------

    @property
    def max_batch_operations(self) -> int:
        return self._max_batch_operations

    def list_documents(self, collection: str) -> list[Document]:
        return [self._to_domain(raw) for raw in self._load_raw(collection)]

    def get_document(self, collection: str, document_id: str) -> Document | None:
        for raw in self._load_raw(collection):
            if str(raw["id"]) == document_id:
                return self._to_domain(raw)
        return None

    def update_document(
        self, collection: str, document_id: str, fields: dict[str, Any]
    ) -> None:
        self.commit_batch([WriteOperation(UPDATE, collection, document_id, fields)])

    def delete_document(self, collection: str, document_id: str) -> None:
        self.commit_batch([WriteOperation(DELETE, collection, document_id)])

    def commit_batch(self, operations: list[WriteOperation]) -> None:
        if len(operations) > self._max_batch_operations:
            raise ValidationError(
                f"Batch of {len(operations)} operations exceeds the limit of "
                f"{self._max_batch_operations}"
            )

        # Load every touched collection and apply in memory first, so a
        # missing target leaves all files untouched.
        collections: dict[str, list[dict]] = {}
        for op in operations:
            if op.collection not in collections:
                collections[op.collection] = self._load_raw(op.collection)
            records = collections[op.collection]
            if op.kind == UPDATE:
                record = self._find(records, op.document_id)
                if record is None:
                    raise EntityNotFoundError(
                        f"Document {op.collection}/{op.document_id} not found"
                    )
                record.update(op.fields)
            elif op.kind == DELETE:
                collections[op.collection] = [
                    r for r in records if str(r["id"]) != op.document_id
                ]
            else:
                raise ValidationError(f"Unknown write operation '{op.kind}'")

        # Stage every file before replacing any, so a failed write leaves
        # all collections untouched. Each replace is atomic on its own.
        staged: list[tuple[Path, Path]] = []
        try:
            for collection, records in collections.items():
                staged.append((self._stage_raw(collection, records), self._path(collection)))
        except StoreError:
            for temp, _ in staged:
                temp.unlink(missing_ok=True)
            raise
        for temp, path in staged:
            try:
                temp.replace(path)
            except OSError as exc:
                raise StoreError(f"Cannot replace {path.name}: {exc}") from exc

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_domain(raw: dict) -> Document:
        data = {key: value for key, value in raw.items() if key != "id"}
        return Document(id=str(raw["id"]), data=data)

    @staticmethod
    def _find(records: list[dict], document_id: str) -> dict | None:
        for record in records:
            if str(record["id"]) == document_id:
                return record
        return None

    # --- File helpers ---------------------------------------------------------

    def _path(self, collection: str) -> Path:
        return self._data_dir / f"{collection}.json"

    def _load_raw(self, collection: str) -> list[dict]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read collection '{collection}': {exc}") from exc
        if not isinstance(records, list) or not all(
            isinstance(r, dict) and "id" in r for r in records
        ):
            raise StoreError(f"Collection '{collection}' is not a list of records with ids")
        return records

    def _stage_raw(self, collection: str, records: list[dict]) -> Path:
        """Write ``records`` next to the collection file and return the temp path."""
        temp = self._path(collection).with_suffix(".json.tmp")
        try:
            temp.parent.mkdir(parents=True, exist_ok=True)
            temp.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            if temp.is_file():
                temp.unlink()
            raise StoreError(f"Cannot write collection '{collection}': {exc}") from exc
        return temp
