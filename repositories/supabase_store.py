"""
Supabase-backed document store.

Each logical collection maps to a table with a natural key column
(order_id for orders, lot_number for lots). Reads that fail raise
DatabaseError; writes that fail raise RemoteWriteError so callers can
offer a retry without assuming anything was applied.
"""

from typing import Optional
import structlog
from supabase import Client

from exceptions import (
    DatabaseError,
    DuplicateRecordError,
    RecordNotFoundError,
    RemoteWriteError,
)
from repositories.base import DocumentStore

logger = structlog.get_logger(__name__)


def _is_duplicate_key(error: Exception) -> bool:
    text = str(error).lower()
    return "23505" in text or "duplicate key" in text


class SupabaseDocumentStore(DocumentStore):
    """Document store over Supabase tables."""

    def __init__(self, client: Client, tables: dict[str, tuple[str, str]]):
        """
        Args:
            client: Supabase client
            tables: collection -> (table name, key column)
        """
        super().__init__()
        self.db = client
        self.tables = tables

    def _table(self, collection: str) -> tuple[str, str]:
        try:
            return self.tables[collection]
        except KeyError:
            raise DatabaseError("select", f"unknown collection {collection!r}")

    # ===================
    # READ OPERATIONS
    # ===================

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        table, key = self._table(collection)
        logger.debug("store_get", table=table, id=doc_id)

        try:
            result = (
                self.db.table(table)
                .select("*")
                .eq(key, doc_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("store_get_failed", table=table, id=doc_id, error=str(e))
            raise DatabaseError("select", str(e))

        return result.data[0] if result.data else None

    def list(self, collection: str, **filters) -> list[dict]:
        table, _ = self._table(collection)

        try:
            query = self.db.table(table).select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            result = query.execute()
        except Exception as e:
            logger.error("store_list_failed", table=table, filters=filters, error=str(e))
            raise DatabaseError("select", str(e))

        return list(result.data or [])

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, collection: str, doc_id: str, data: dict) -> dict:
        table, key = self._table(collection)
        payload = {**data, key: doc_id}

        try:
            result = self.db.table(table).insert(payload).execute()
        except Exception as e:
            if _is_duplicate_key(e):
                logger.warning("store_create_conflict", table=table, id=doc_id)
                raise DuplicateRecordError(collection, doc_id)
            logger.error("store_create_failed", table=table, id=doc_id, error=str(e))
            raise RemoteWriteError(collection, doc_id, str(e))

        logger.debug("store_created", table=table, id=doc_id)
        self._notify(collection)
        return result.data[0] if result.data else payload

    def set(self, collection: str, doc_id: str, data: dict) -> dict:
        table, key = self._table(collection)
        payload = {**data, key: doc_id}

        try:
            result = self.db.table(table).upsert(payload, on_conflict=key).execute()
        except Exception as e:
            logger.error("store_set_failed", table=table, id=doc_id, error=str(e))
            raise RemoteWriteError(collection, doc_id, str(e))

        self._notify(collection)
        return result.data[0] if result.data else payload

    def update(self, collection: str, doc_id: str, changes: dict) -> dict:
        table, key = self._table(collection)

        try:
            result = (
                self.db.table(table)
                .update(changes)
                .eq(key, doc_id)
                .execute()
            )
        except Exception as e:
            logger.error("store_update_failed", table=table, id=doc_id, error=str(e))
            raise RemoteWriteError(collection, doc_id, str(e))

        if not result.data:
            raise RecordNotFoundError(collection, doc_id)

        logger.debug("store_updated", table=table, id=doc_id, fields=list(changes.keys()))
        self._notify(collection)
        return result.data[0]
