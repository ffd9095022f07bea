"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
)
from models.order import (
    OrderStatus,
    ProductClassification,
    UrgencyLabel,
    OrderCreate,
    Order,
    OrderListResponse,
)
from models.lot import (
    LotStep,
    LotStatus,
    Disposition,
    TERMINAL_STEPS,
    INSPECTION_TEMP_REJECT,
    INSPECTION_REJECT,
    REJECTION_REASONS,
    Inspection,
    Lot,
    ProductionStartRequest,
    DispositionRequest,
    LotListResponse,
    TraceResult,
)
from models.patch import (
    PatchKind,
    LOT_ONLY_FIELDS,
    RecordPatch,
)
from models.metrics import (
    OrderProgress,
    MachineMetrics,
    ProductionMetrics,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",

    # Order
    "OrderStatus",
    "ProductClassification",
    "UrgencyLabel",
    "OrderCreate",
    "Order",
    "OrderListResponse",

    # Lot
    "LotStep",
    "LotStatus",
    "Disposition",
    "TERMINAL_STEPS",
    "INSPECTION_TEMP_REJECT",
    "INSPECTION_REJECT",
    "REJECTION_REASONS",
    "Inspection",
    "Lot",
    "ProductionStartRequest",
    "DispositionRequest",
    "LotListResponse",
    "TraceResult",

    # Patch
    "PatchKind",
    "LOT_ONLY_FIELDS",
    "RecordPatch",

    # Metrics
    "OrderProgress",
    "MachineMetrics",
    "ProductionMetrics",
]
