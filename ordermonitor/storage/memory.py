"""In-process document store for tests and single-process deployments."""

from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .base import DocumentStore, Filter, StorageError, matches


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed store keeping insertion order per collection."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    async def add(self, collection: str, document: Mapping[str, Any]) -> str:
        key = uuid.uuid4().hex
        self._collections.setdefault(collection, {})[key] = copy.deepcopy(
            dict(document)
        )
        return key

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        document = self._collections.get(collection, {}).get(key)
        return copy.deepcopy(document) if document is not None else None

    async def update(
        self, collection: str, key: str, fields: Mapping[str, Any]
    ) -> None:
        documents = self._collections.get(collection, {})
        if key not in documents:
            raise StorageError(f"Document {collection}/{key} does not exist")
        documents[key].update(copy.deepcopy(dict(fields)))

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        for key, document in self._collections.get(collection, {}).items():
            if matches(document, filters):
                results.append({"_id": key, **copy.deepcopy(document)})
                if limit is not None and len(results) >= limit:
                    break
        return results
