"""Key-value document store over the ``documents`` table.

Documents are addressed by a collection path (``users/abc/daily_summary``) and
an id. Writes commit immediately; ``transaction`` gives a locked
read-modify-write for counters such as user points.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from mealbattle.app.db import models

logger = logging.getLogger(__name__)

Data = Dict[str, Any]


def deep_merge(target: Data, patch: Data) -> Data:
    """Merge ``patch`` into a copy of ``target``; nested mappings merge, everything else replaces."""
    merged = copy.deepcopy(target)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def set_path(data: Data, dotted: str, value: Any) -> None:
    parts = dotted.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = copy.deepcopy(value)


class DocumentStore:
    def __init__(self, db: Session):
        self.db = db

    def _row(self, collection: str, doc_id: str, for_update: bool = False) -> Optional[models.Document]:
        stmt = select(models.Document).where(
            models.Document.collection == collection,
            models.Document.doc_id == doc_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _write(self, row: Optional[models.Document], collection: str, doc_id: str, data: Data) -> None:
        if row is None:
            self.db.add(models.Document(collection=collection, doc_id=doc_id, data=data))
        else:
            # Reassign so the JSON column is flagged dirty.
            row.data = data

    def get(self, collection: str, doc_id: str) -> Optional[Data]:
        row = self._row(collection, doc_id)
        return copy.deepcopy(row.data) if row else None

    def exists(self, collection: str, doc_id: str) -> bool:
        return self._row(collection, doc_id) is not None

    def set(self, collection: str, doc_id: str, data: Data, merge: bool = False) -> Data:
        row = self._row(collection, doc_id)
        if merge and row is not None:
            new_data = deep_merge(row.data or {}, data)
        else:
            new_data = copy.deepcopy(data)
        self._write(row, collection, doc_id, new_data)
        self.db.commit()
        return copy.deepcopy(new_data)

    def update(self, collection: str, doc_id: str, fields: Data) -> Data:
        """Apply dotted-path field updates to an existing document."""
        row = self._row(collection, doc_id)
        if row is None:
            raise LookupError(f"Document {collection}/{doc_id} not found")
        new_data = copy.deepcopy(row.data or {})
        for dotted, value in fields.items():
            set_path(new_data, dotted, value)
        self._write(row, collection, doc_id, new_data)
        self.db.commit()
        return copy.deepcopy(new_data)

    def delete(self, collection: str, doc_id: str) -> bool:
        row = self._row(collection, doc_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    def list_ids(self, collection: str) -> List[str]:
        stmt = select(models.Document.doc_id).where(models.Document.collection == collection).order_by(
            models.Document.doc_id
        )
        return list(self.db.execute(stmt).scalars())

    def find(
        self,
        collection: str,
        field: str,
        value: Any,
        limit: Optional[int] = None,
        ignore_case: bool = False,
    ) -> List[Tuple[str, Data]]:
        """Documents whose top-level ``field`` equals ``value``."""
        stmt = select(models.Document).where(models.Document.collection == collection).order_by(
            models.Document.doc_id
        )
        wanted = value.lower() if ignore_case and isinstance(value, str) else value
        matches: List[Tuple[str, Data]] = []
        for row in self.db.execute(stmt).scalars():
            candidate = (row.data or {}).get(field)
            if ignore_case and isinstance(candidate, str):
                candidate = candidate.lower()
            if candidate == wanted:
                matches.append((row.doc_id, copy.deepcopy(row.data)))
                if limit is not None and len(matches) >= limit:
                    break
        return matches

    def transaction(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Optional[Data]], Data],
    ) -> Data:
        """Read the document under a row lock, write back ``fn(current)`` and commit once."""
        try:
            row = self._row(collection, doc_id, for_update=True)
            current = copy.deepcopy(row.data) if row else None
            new_data = fn(current)
            self._write(row, collection, doc_id, new_data)
            self.db.commit()
        except Exception:
            logger.exception("Transaction on %s/%s failed; rolling back", collection, doc_id)
            self.db.rollback()
            raise
        return copy.deepcopy(new_data)
