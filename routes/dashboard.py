"""
Dashboard API routes.

Serves live production progress per machine and per order.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.metrics import ProductionMetrics
from services.metrics_service import get_metrics_service, get_production_monitor
from exceptions import AppError

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
# METRICS ROUTES
# ===================

@router.get("/metrics", response_model=ProductionMetrics)
async def get_production_metrics(
    fresh: bool = Query(False, description="Recompute from the store instead of the live monitor")
):
    """
    Get production metrics.

    Returns the monitor's figures while it is running, re-reading the
    store first when they are stale. Otherwise, or with fresh=true, reads
    every order and lot and aggregates.
    """
    try:
        monitor = get_production_monitor()
        if monitor.running and not fresh:
            return monitor.current_metrics()
        return get_metrics_service().get_production_metrics()

    except Exception as e:
        return handle_error(e)
