"""
Document store interface.

Services read and write orders and lots only through this interface, so
the lifecycle, routing and aggregation logic runs the same against
Supabase and against the in-memory store used in tests.

Every write is a single document operation. There are no transactions and
no per-record locks; concurrent writers get last-write-wins per document.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Optional
import structlog

logger = structlog.get_logger(__name__)

# Logical collection names
ORDERS = "orders"
LOTS = "lots"

ChangeListener = Callable[[list[dict]], None]


class DocumentStore(ABC):
    """
    Keyed document collections with a change feed.

    Subclasses implement the reads and writes; the base class keeps the
    subscriber registry and pushes the full current collection to every
    subscriber after each successful write.
    """

    def __init__(self):
        self._listeners: dict[str, list[ChangeListener]] = defaultdict(list)

    # ===================
    # READ OPERATIONS
    # ===================

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        """Return the document or None."""

    @abstractmethod
    def list(self, collection: str, **filters) -> list[dict]:
        """Return all documents matching the equality filters."""

    # ===================
    # WRITE OPERATIONS
    # ===================

    @abstractmethod
    def create(self, collection: str, doc_id: str, data: dict) -> dict:
        """
        Insert a new document.

        Raises:
            DuplicateRecordError: If doc_id already exists
            RemoteWriteError: If the write fails
        """

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: dict) -> dict:
        """Insert or fully replace a document."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: dict) -> dict:
        """
        Merge changes into an existing document.

        Raises:
            RecordNotFoundError: If doc_id does not exist
            RemoteWriteError: If the write fails
        """

    # ===================
    # CHANGE FEED
    # ===================

    def subscribe(self, collection: str, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a listener for the full current collection.

        The listener receives the current snapshot immediately and again
        after every write. Returns a function that unsubscribes.
        """
        self._listeners[collection].append(listener)
        logger.debug("store_subscribed", collection=collection)
        listener(self.list(collection))

        def unsubscribe() -> None:
            if listener in self._listeners[collection]:
                self._listeners[collection].remove(listener)
                logger.debug("store_unsubscribed", collection=collection)

        return unsubscribe

    def refresh(self, collection: str) -> None:
        """Re-read a collection and push it to subscribers."""
        self._notify(collection)

    def _notify(self, collection: str) -> None:
        listeners = list(self._listeners.get(collection, ()))
        if not listeners:
            return

        try:
            snapshot = self.list(collection)
        except Exception as e:
            # The write already committed; the next refresh will catch up
            logger.error("change_feed_read_failed", collection=collection, error=str(e))
            return

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(
                    "change_listener_failed",
                    collection=collection,
                    error=str(e),
                    error_type=type(e).__name__
                )
