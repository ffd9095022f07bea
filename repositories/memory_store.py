"""In-memory document store for local runs and tests."""

from copy import deepcopy
from typing import MutableMapping, Optional
import structlog

from exceptions import DuplicateRecordError, RecordNotFoundError
from repositories.base import DocumentStore

logger = structlog.get_logger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Document store backed by nested dictionaries."""

    def __init__(self):
        super().__init__()
        self._collections: dict[str, MutableMapping[str, dict]] = {}

    def _bucket(self, collection: str) -> MutableMapping[str, dict]:
        return self._collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self._bucket(collection).get(doc_id)
        return deepcopy(doc) if doc is not None else None

    def list(self, collection: str, **filters) -> list[dict]:
        return [
            deepcopy(doc)
            for doc in self._bucket(collection).values()
            if all(doc.get(key) == value for key, value in filters.items())
        ]

    def create(self, collection: str, doc_id: str, data: dict) -> dict:
        bucket = self._bucket(collection)
        if doc_id in bucket:
            raise DuplicateRecordError(collection, doc_id)
        bucket[doc_id] = deepcopy(data)
        logger.debug("memory_store_created", collection=collection, id=doc_id)
        self._notify(collection)
        return deepcopy(data)

    def set(self, collection: str, doc_id: str, data: dict) -> dict:
        self._bucket(collection)[doc_id] = deepcopy(data)
        self._notify(collection)
        return deepcopy(data)

    def update(self, collection: str, doc_id: str, changes: dict) -> dict:
        bucket = self._bucket(collection)
        if doc_id not in bucket:
            raise RecordNotFoundError(collection, doc_id)
        merged = {**bucket[doc_id], **deepcopy(changes)}
        bucket[doc_id] = merged
        self._notify(collection)
        return deepcopy(merged)

