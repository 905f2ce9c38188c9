"""
Collection-oriented document store over the documents table.

Documents are JSON maps addressed by (collection, doc_id). The store knows
nothing about recipes or users; repositories encode/decode records on top
of it. Every write publishes a change notification for its collection.
"""

import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from cookbook.config import settings
from cookbook.database import SessionLocal, get_db_context
from cookbook.models.document import Document
from cookbook.services.notifier import ChangeNotifier, notifier as default_notifier

logger = logging.getLogger(__name__)

# One lock per document serializes read-modify-write updates across threads
_document_locks: Dict[Tuple[str, str], threading.Lock] = {}
_document_locks_guard = threading.Lock()


def _document_lock(collection: str, doc_id: str) -> threading.Lock:
    with _document_locks_guard:
        return _document_locks.setdefault((collection, doc_id), threading.Lock())


class DocumentNotFoundError(LookupError):
    """Raised by update operations on a missing document."""


class DocumentStore:
    def __init__(
        self,
        session_factory=None,
        notifier: Optional[ChangeNotifier] = None,
        batch_limit: Optional[int] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.notifier = notifier or default_notifier
        self.batch_limit = batch_limit or settings.BATCH_QUERY_LIMIT

    @staticmethod
    def new_id() -> str:
        """Generate a document id."""
        return uuid.uuid4().hex

    def _get_row(self, db: Session, collection: str, doc_id: str) -> Optional[Document]:
        return (
            db.query(Document)
            .filter(Document.collection == collection, Document.doc_id == doc_id)
            .first()
        )

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document map, or None when it does not exist."""
        with get_db_context(self.session_factory) as db:
            row = self._get_row(db, collection, doc_id)
            return dict(row.data) if row is not None else None

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Create or fully overwrite a document."""
        with _document_lock(collection, doc_id), get_db_context(self.session_factory) as db:
            row = self._get_row(db, collection, doc_id)
            if row is None:
                db.add(Document(collection=collection, doc_id=doc_id, data=dict(data)))
            else:
                row.data = dict(data)
            db.commit()
        self.notifier.publish(collection)

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """Merge fields into an existing document."""
        self._mutate(collection, doc_id, lambda data: data.update(fields))

    def array_union(self, collection: str, doc_id: str, field: str, value: Any) -> None:
        """Append value to a list field unless it is already present."""
        def _union(data):
            items = list(data.get(field) or [])
            if value not in items:
                items.append(value)
            data[field] = items

        self._mutate(collection, doc_id, _union)

    def array_remove(self, collection: str, doc_id: str, field: str, value: Any) -> None:
        """Remove every occurrence of value from a list field."""
        def _remove(data):
            data[field] = [item for item in (data.get(field) or []) if item != value]

        self._mutate(collection, doc_id, _remove)

    def _mutate(self, collection: str, doc_id: str, change) -> None:
        with _document_lock(collection, doc_id), get_db_context(self.session_factory) as db:
            row = self._get_row(db, collection, doc_id)
            if row is None:
                raise DocumentNotFoundError(f"No document to update: {collection}/{doc_id}")
            # JSON columns do not track in-place mutation; assign a fresh map
            data = dict(row.data or {})
            change(data)
            row.data = data
            row.updated_at = datetime.utcnow()
            db.commit()
        self.notifier.publish(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        with _document_lock(collection, doc_id), get_db_context(self.session_factory) as db:
            row = self._get_row(db, collection, doc_id)
            if row is not None:
                db.delete(row)
                db.commit()
        self.notifier.publish(collection)

    def query(
        self,
        collection: str,
        where: Optional[Mapping[str, str]] = None,
        where_in: Optional[Tuple[str, Iterable[str]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Query a collection.

        Args:
            collection: Collection name
            where: Equality filters on string fields
            where_in: (field, values) membership filter, at most batch_limit values
            order_by: Field to sort by (applied after fetching)
            descending: Sort direction

        Raises:
            ValueError: where_in holds more values than the store accepts.
        """
        with get_db_context(self.session_factory) as db:
            q = db.query(Document).filter(Document.collection == collection)

            for field, value in (where or {}).items():
                q = q.filter(Document.data[field].as_string() == value)

            if where_in is not None:
                field, values = where_in
                values = list(values)
                if len(values) > self.batch_limit:
                    raise ValueError(
                        f"'in' filters support at most {self.batch_limit} values, got {len(values)}"
                    )
                if not values:
                    return []
                q = q.filter(Document.data[field].as_string().in_(values))

            results = [dict(row.data) for row in q.order_by(Document.created_at).all()]

        if order_by:
            results.sort(key=lambda data: _sort_key(data.get(order_by)), reverse=descending)
        return results


def _sort_key(value: Any):
    # Missing values sort first ascending, last descending
    return (value is not None, value if value is not None else 0)
