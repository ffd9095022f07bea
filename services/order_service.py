"""
Order register.

Orders are created by the import pipeline; this service is the point where
they enter the store. Classification is computed once here and carried on
the order, so routing never has to re-parse the item text for new data.
"""

from datetime import date, datetime, timezone
from typing import Optional
import structlog

from exceptions import OrderNotFoundError
from models.order import Order, OrderCreate, OrderStatus
from repositories import DocumentStore, ORDERS, get_document_store
from services.routing_service import classify_item

logger = structlog.get_logger(__name__)


class OrderService:
    """
    Planning order business logic.

    Handles registration, lookups and lifecycle bookkeeping status.
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store if store is not None else get_document_store()

    # ===================
    # READ OPERATIONS
    # ===================

    def get_order(self, order_id: str) -> Order:
        """
        Get a single order by its business key.

        Raises:
            OrderNotFoundError: If order doesn't exist
        """
        doc = self.store.get(ORDERS, order_id.strip().upper())
        if doc is None:
            raise OrderNotFoundError(order_id)
        return Order.model_validate(doc)

    def find_order(self, order_id: str) -> Optional[Order]:
        """Get an order or None."""
        doc = self.store.get(ORDERS, order_id.strip().upper())
        return Order.model_validate(doc) if doc else None

    def list_orders(
        self,
        machine: Optional[str] = None,
        status: Optional[OrderStatus] = None
    ) -> list[Order]:
        """
        List orders with optional filters.

        Sorted by delivery date (undated last), then order id.
        """
        filters = {}
        if machine:
            filters["machine"] = machine.upper()
        if status:
            filters["status"] = status.value

        orders = [Order.model_validate(doc) for doc in self.store.list(ORDERS, **filters)]
        orders.sort(key=lambda o: (o.delivery_date is None, o.delivery_date or date.min, o.order_id))

        logger.debug("orders_listed", count=len(orders), filters=filters)
        return orders

    # ===================
    # WRITE OPERATIONS
    # ===================

    def register_order(self, data: OrderCreate, operator: Optional[str] = None) -> Order:
        """
        Register or refresh an imported order.

        Re-registering an existing order keeps its status and drill-down
        fields; de-duplication itself happens upstream in the import.
        """
        now = datetime.now(timezone.utc)
        existing = self.find_order(data.order_id)
        classification = data.classification or classify_item(data.item)

        base = existing.model_dump() if existing else {"created_at": now}
        order = Order.model_validate({
            **base,
            **data.model_dump(exclude={"classification"}),
            "classification": classification,
            "updated_at": now,
            "last_operator": operator or (existing.last_operator if existing else None),
        })

        self.store.set(ORDERS, order.order_id, order.to_document())

        logger.info(
            "order_registered",
            order_id=order.order_id,
            machine=order.machine,
            plan=order.plan,
            classification=classification.value,
            refreshed=existing is not None
        )
        return order

    def set_status(self, order: Order, status: OrderStatus, operator: Optional[str] = None) -> Order:
        """Write lifecycle bookkeeping status on an order."""
        if order.status == status:
            return order

        now = datetime.now(timezone.utc)
        changes = {
            "status": status.value,
            "updated_at": now.isoformat(),
        }
        if status == OrderStatus.COMPLETED:
            changes["completed_at"] = now.isoformat()
        if operator:
            changes["last_operator"] = operator

        doc = self.store.update(ORDERS, order.order_id, changes)

        logger.info(
            "order_status_updated",
            order_id=order.order_id,
            from_status=order.status.value,
            to_status=status.value
        )
        return Order.model_validate(doc)


# Singleton instance
_order_service: Optional[OrderService] = None


def get_order_service() -> OrderService:
    """Get or create OrderService instance."""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service
