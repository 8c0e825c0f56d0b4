"""
Document store abstraction for Firestore and an in-memory test implementation.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from firebase_admin import firestore


@dataclass
class StoredDocument:
    id: str
    data: dict

    def as_dict(self) -> dict:
        return {"id": self.id, **self.data}


class DocumentStore(Protocol):
    """Interface for schema-less collection access."""

    def add(self, collection: str, data: dict) -> str:
        ...

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        ...

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = True
    ) -> None:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def list(self, collection: str) -> List[StoredDocument]:
        ...


def _merge_into(target: dict, data: dict) -> None:
    """Overlay data onto target, merging nested maps the way Firestore does."""
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


@dataclass
class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    collections: Dict[str, Dict[str, dict]] = field(default_factory=dict)

    def _collection(self, name: str) -> Dict[str, dict]:
        return self.collections.setdefault(name, {})

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self._collection(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return StoredDocument(id=doc_id, data=copy.deepcopy(data))

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = True
    ) -> None:
        docs = self._collection(collection)
        if merge and doc_id in docs:
            _merge_into(docs[doc_id], data)
        else:
            docs[doc_id] = copy.deepcopy(data)

    def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    def list(self, collection: str) -> List[StoredDocument]:
        return [
            StoredDocument(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
        ]


class FirestoreDocumentStore:
    """Firestore-backed implementation."""

    def __init__(self, client: Any = None, *, app: Any = None):
        self._client = client if client is not None else firestore.client(app=app)

    def add(self, collection: str, data: dict) -> str:
        _, doc_ref = self._client.collection(collection).add(data)
        return doc_ref.id

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        snapshot = self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})

    def set(
        self, collection: str, doc_id: str, data: dict, *, merge: bool = True
    ) -> None:
        self._client.collection(collection).document(doc_id).set(data, merge=merge)

    def delete(self, collection: str, doc_id: str) -> None:
        self._client.collection(collection).document(doc_id).delete()

    def list(self, collection: str) -> List[StoredDocument]:
        return [
            StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})
            for snapshot in self._client.collection(collection).stream()
        ]
