"""
Lot API routes.

Terminals at the machines call these: start a lot, confirm a scan,
advance a step, submit the quality gate, trace a code.
"""

from fastapi import APIRouter, Header, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.lot import (
    DispositionRequest,
    Lot,
    LotListResponse,
    LotStep,
    ProductionStartRequest,
    TraceResult,
)
from models.patch import PatchKind, RecordPatch
from services.lifecycle_service import get_lifecycle_service
from services.quality_gate_service import get_quality_gate_service
from services.patch_service import get_patch_service
from exceptions import (
    AppError,
    InvalidLotTransitionError,
    LotNotFoundError,
    LotNumberExistsError,
    OrderNotFoundError,
)

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
# PRODUCTION START
# ===================

@router.post("/start", response_model=Lot, status_code=201)
async def start_production(
    data: ProductionStartRequest,
    x_operator: Optional[str] = Header(None)
):
    """
    Start a new lot for an order at a station.

    Raises:
        404: Order not found
        409: Lot number already exists
        422: Manual lot number too short
    """
    try:
        service = get_lifecycle_service()
        return service.start_production(
            data.order_id,
            data.station,
            manual_lot_id=data.manual_lot_id,
            operator=x_operator
        )

    except (OrderNotFoundError, LotNumberExistsError) as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


# ===================
# LOOKUPS
# ===================

@router.get("", response_model=LotListResponse)
async def list_lots(
    order_id: Optional[str] = Query(None, description="Filter by order"),
    station: Optional[str] = Query(None, description="Filter by current station"),
    step: Optional[LotStep] = Query(None, description="Filter by current step")
):
    """List lots, sorted by lot number."""
    try:
        service = get_lifecycle_service()
        lots = service.list_lots(order_id=order_id, station=station, step=step)
        return LotListResponse(data=lots, total=len(lots))

    except Exception as e:
        return handle_error(e)


@router.get("/overdue-holds", response_model=LotListResponse)
async def get_overdue_holds():
    """Hold lots waiting longer than the configured number of days."""
    try:
        service = get_lifecycle_service()
        lots = service.overdue_holds()
        return LotListResponse(data=lots, total=len(lots))

    except Exception as e:
        return handle_error(e)


@router.get("/trace/{code}", response_model=TraceResult)
async def trace(code: str):
    """
    Trace a lot number, or an order id with all its lots.

    Raises:
        404: Neither a lot nor an order
    """
    try:
        service = get_lifecycle_service()
        return service.trace(code)

    except LotNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.get("/{code}", response_model=Lot)
async def find_lot(code: str):
    """
    Confirm a scanned or typed lot number.

    Raises:
        404: Lot not found
    """
    try:
        service = get_lifecycle_service()
        return service.find_lot(code)

    except LotNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


# ===================
# TRANSITIONS
# ===================

@router.post("/{code}/advance", response_model=Lot)
async def advance_lot(
    code: str,
    x_operator: Optional[str] = Header(None)
):
    """
    Move a lot one step forward.

    Raises:
        404: Lot not found
        422: Step can't be advanced
    """
    try:
        service = get_lifecycle_service()
        return service.advance(code, operator=x_operator)

    except (LotNotFoundError, InvalidLotTransitionError) as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.post("/{code}/disposition", response_model=Lot)
async def submit_disposition(
    code: str,
    data: DispositionRequest,
    x_operator: Optional[str] = Header(None)
):
    """
    Record the quality gate outcome and route the lot.

    Raises:
        404: Lot not found
        422: Missing reason, missing measurement, bad override or wrong step
    """
    try:
        service = get_quality_gate_service()
        return service.submit_disposition(code, data, operator=x_operator)

    except Exception as e:
        return handle_error(e)


@router.patch("/{code}", response_model=Lot)
async def patch_lot(
    code: str,
    data: RecordPatch,
    x_operator: Optional[str] = Header(None)
):
    """
    Correct a lot outside the state machine.

    Also the way a Hold lot re-enters the flow.

    Raises:
        404: Lot not found
        422: Empty patch
    """
    try:
        service = get_patch_service()
        return service.patch(PatchKind.LOT, code, data, operator=x_operator)

    except LotNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)
