"""
Planning order API routes.

Registration is called by the import pipeline; the drill-down view uses
the PATCH route for labels, notes and identification codes.
"""

from fastapi import APIRouter, Header, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.order import Order, OrderCreate, OrderListResponse, OrderStatus
from models.patch import PatchKind, RecordPatch
from services.order_service import get_order_service
from services.patch_service import get_patch_service
from exceptions import AppError, OrderNotFoundError, ValidationError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=OrderListResponse)
async def list_orders(
    machine: Optional[str] = Query(None, description="Filter by assigned machine"),
    status: Optional[OrderStatus] = Query(None, description="Filter by status")
):
    """
    List planning orders.

    Sorted by delivery date, undated orders last.
    """
    try:
        service = get_order_service()
        orders = service.list_orders(machine=machine, status=status)
        return OrderListResponse(data=orders, total=len(orders))

    except Exception as e:
        return handle_error(e)


@router.get("/{order_id}", response_model=Order)
async def get_order(order_id: str):
    """
    Get a single order.

    Raises:
        404: Order not found
    """
    try:
        service = get_order_service()
        return service.get_order(order_id)

    except OrderNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=Order, status_code=201)
async def register_order(
    data: OrderCreate,
    x_operator: Optional[str] = Header(None)
):
    """
    Register or refresh an imported order.

    Raises:
        422: Validation error
    """
    try:
        service = get_order_service()
        return service.register_order(data, operator=x_operator)

    except Exception as e:
        return handle_error(e)


@router.patch("/{order_id}", response_model=Order)
async def patch_order(
    order_id: str,
    data: RecordPatch,
    x_operator: Optional[str] = Header(None)
):
    """
    Correct label, notes or identification code on an order.

    Raises:
        404: Order not found
        422: Empty patch or lot-only fields
    """
    try:
        service = get_patch_service()
        return service.patch(PatchKind.ORDER, order_id, data, operator=x_operator)

    except (OrderNotFoundError, ValidationError) as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)
