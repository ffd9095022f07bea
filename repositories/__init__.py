"""
Document store access.

Exports:
    DocumentStore: Store interface
    InMemoryDocumentStore: Dictionary-backed store
    SupabaseDocumentStore: Supabase-backed store
    get_document_store: Shared store for the running application
"""

from typing import Optional

from config import settings, get_supabase_client
from repositories.base import DocumentStore, ChangeListener, ORDERS, LOTS
from repositories.memory_store import InMemoryDocumentStore
from repositories.supabase_store import SupabaseDocumentStore

_document_store: Optional[DocumentStore] = None


def get_document_store() -> DocumentStore:
    """Get or create the shared Supabase document store."""
    global _document_store
    if _document_store is None:
        _document_store = SupabaseDocumentStore(
            get_supabase_client(),
            tables={
                ORDERS: (settings.orders_table, "order_id"),
                LOTS: (settings.lots_table, "lot_number"),
            },
        )
    return _document_store


__all__ = [
    "DocumentStore",
    "ChangeListener",
    "ORDERS",
    "LOTS",
    "InMemoryDocumentStore",
    "SupabaseDocumentStore",
    "get_document_store",
]
