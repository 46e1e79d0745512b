"""
In-memory document store.

Mirrors the parts of MongoDB semantics the reconciler relies on: collections
spring into existence on first use, every collection carries an undroppable
``_id_`` index, and index creation and removal are idempotent.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, Iterable, List

from .base import DocumentStore
from ..exceptions import StoreError


logger = logging.getLogger(__name__)

ID_INDEX = "_id_"


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed ``DocumentStore`` for tests, demos and dry rehearsals."""

    def __init__(self):
        self._collections: Dict[str, List[Dict[str, Any]]] = {}
        self._indexes: Dict[str, Dict[str, Dict[str, int]]] = {}
        self._lock = asyncio.Lock()
        self._closed = False
        self.calls: List[tuple] = []

    def _ensure_collection(self, collection: str) -> None:
        if collection not in self._collections:
            self._collections[collection] = []
            self._indexes[collection] = {ID_INDEX: {"_id": 1}}

    def _check_open(self, collection: str, operation: str) -> None:
        if self._closed:
            raise StoreError("Store is closed", collection=collection, operation=operation)

    async def unset_field(self, collection: str, field: str) -> None:
        async with self._lock:
            self._check_open(collection, "unset_field")
            self.calls.append(("unset_field", collection, field))
            for document in self._collections.get(collection, []):
                document.pop(field, None)

    async def create_index(self, collection: str, field: str, ascending: bool = True) -> None:
        async with self._lock:
            self._check_open(collection, "create_index")
            self.calls.append(("create_index", collection, field, ascending))
            self._ensure_collection(collection)
            name = self.index_name(field, ascending)
            key = {field: 1 if ascending else -1}
            existing = self._indexes[collection].get(name)
            if existing is not None and existing != key:
                raise StoreError(
                    f"Index {name} already exists with a different key",
                    collection=collection,
                    operation="create_index",
                )
            self._indexes[collection][name] = key

    async def drop_index(self, collection: str, field: str) -> None:
        async with self._lock:
            self._check_open(collection, "drop_index")
            self.calls.append(("drop_index", collection, field))
            self._indexes.get(collection, {}).pop(self.index_name(field), None)

    async def delete_all_documents(self, collection: str) -> int:
        async with self._lock:
            self._check_open(collection, "delete_all_documents")
            self.calls.append(("delete_all_documents", collection))
            documents = self._collections.get(collection, [])
            deleted = len(documents)
            documents.clear()
            return deleted

    async def drop_all_indexes(self, collection: str) -> None:
        async with self._lock:
            self._check_open(collection, "drop_all_indexes")
            self.calls.append(("drop_all_indexes", collection))
            if collection in self._indexes:
                self._indexes[collection] = {ID_INDEX: {"_id": 1}}

    async def close(self) -> None:
        self._closed = True

    def insert_many(self, collection: str, documents: Iterable[Dict[str, Any]]) -> None:
        """Seed ``collection`` with copies of ``documents``."""
        self._ensure_collection(collection)
        self._collections[collection].extend(copy.deepcopy(list(documents)))

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._collections.get(collection, []))

    def list_indexes(self, collection: str) -> List[str]:
        return sorted(self._indexes.get(collection, {}))

    def list_collections(self) -> List[str]:
        return sorted(self._collections)

    def clear_calls(self) -> None:
        self.calls.clear()
