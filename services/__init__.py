"""
Business logic services.

Each service handles one domain area.
"""

from services.order_service import OrderService, get_order_service
from services.lifecycle_service import LifecycleService, get_lifecycle_service
from services.quality_gate_service import QualityGateService, get_quality_gate_service
from services.patch_service import PatchService, get_patch_service
from services.metrics_service import (
    MetricsService,
    ProductionMonitor,
    aggregate,
    get_metrics_service,
    get_production_monitor,
)
from services.routing_service import RouteDecision, classify_item, resolve_destination
from services.lot_identity_service import generate_lot_number, validate_manual_lot_number

__all__ = [
    "OrderService",
    "get_order_service",
    "LifecycleService",
    "get_lifecycle_service",
    "QualityGateService",
    "get_quality_gate_service",
    "PatchService",
    "get_patch_service",
    "MetricsService",
    "ProductionMonitor",
    "aggregate",
    "get_metrics_service",
    "get_production_monitor",
    "RouteDecision",
    "classify_item",
    "resolve_destination",
    "generate_lot_number",
    "validate_manual_lot_number",
]
