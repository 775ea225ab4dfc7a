from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Callable

from ..errors import DataUnavailable

Document = dict[str, Any]
Predicate = Callable[[Document], bool]


class Collection:
    """A named set of documents keyed by ``id``.

    Every method returns copies, so callers never hold a reference into the
    stored state. Single-document writes run under the collection lock and
    are atomic with respect to each other.
    """

    def __init__(self, name: str, owner: DocumentStore) -> None:
        self.name = name
        self._owner = owner
        self._docs: dict[str, Document] = {}
        self._lock = threading.RLock()

    def insert_one(self, doc: Document) -> Document:
        self._owner.ensure_available()
        doc = copy.deepcopy(doc)
        doc.setdefault("id", uuid.uuid4().hex)
        with self._lock:
            self._docs[doc["id"]] = doc
            return copy.deepcopy(doc)

    def find_by_id(self, doc_id: str) -> Document | None:
        self._owner.ensure_available()
        with self._lock:
            doc = self._docs.get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def find_one(self, where: Predicate) -> Document | None:
        matches = self.find(where, limit=1)
        return matches[0] if matches else None

    def find(
        self,
        where: Predicate | None = None,
        *,
        sort_key: Callable[[Document], Any] | None = None,
        descending: bool = False,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Document]:
        """Filtered find with optional sort, skip and limit.

        Sorting is stable, so documents with equal keys keep insertion order.
        """
        self._owner.ensure_available()
        with self._lock:
            docs = [d for d in self._docs.values() if where is None or where(d)]
            if sort_key is not None:
                docs.sort(key=sort_key, reverse=descending)
            end = None if limit is None else skip + limit
            return copy.deepcopy(docs[skip:end])

    def count(self, where: Predicate | None = None) -> int:
        self._owner.ensure_available()
        with self._lock:
            if where is None:
                return len(self._docs)
            return sum(1 for d in self._docs.values() if where(d))

    def update_one(self, doc_id: str, changes: Document) -> Document | None:
        """Merge ``changes`` into the document and return the new state."""
        return self.modify(doc_id, lambda doc: doc.update(copy.deepcopy(changes)))

    def modify(self, doc_id: str, mutate: Callable[[Document], None]) -> Document | None:
        """Atomic read-modify-write on one document.

        ``mutate`` edits the document in place while the collection lock is
        held. Returns the updated document, or ``None`` if it does not exist.
        """
        self._owner.ensure_available()
        with self._lock:
            current = self._docs.get(doc_id)
            if current is None:
                return None
            updated = copy.deepcopy(current)
            mutate(updated)
            updated["id"] = doc_id
            self._docs[doc_id] = updated
            return copy.deepcopy(updated)


class DocumentStore:
    """In-process document store holding the stores, reviews and users."""

    def __init__(self) -> None:
        self._available = True
        self.stores = Collection("stores", self)
        self.reviews = Collection("reviews", self)
        self.users = Collection("users", self)

    def close(self) -> None:
        self._available = False

    def ensure_available(self) -> None:
        if not self._available:
            raise DataUnavailable("The store directory database is unavailable, try again later.")


_db: DocumentStore | None = None


def get_document_store() -> DocumentStore:
    """Return the process-wide document store, creating it on first call."""
    global _db
    if _db is None:
        _db = DocumentStore()
    return _db


def reset_document_store() -> DocumentStore:
    global _db
    _db = DocumentStore()
    return _db
