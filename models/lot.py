"""
Tracked lot schemas.

A lot is one physically tracked unit. Its step is always one of the
LotStep values; every schema that carries a step validates against it.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema, TimestampMixin
from models.order import Order, ProductClassification, UrgencyLabel


class LotStep(str, Enum):
    """Production steps a lot moves through."""
    WIKKELEN = "Wikkelen"
    LOSSEN = "Lossen"
    MAZAK = "Mazak"
    NABEWERKEN = "Nabewerken"
    EINDINSPECTIE = "Eindinspectie"
    FINISHED = "Finished"
    HOLD = "Hold"
    REJECTED = "REJECTED"


class LotStatus(str, Enum):
    """Coarse lot status shown next to the step."""
    ACTIVE = "Active"
    HOLD = "hold"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Disposition(str, Enum):
    """Quality gate decision at unloading."""
    OK = "ok"
    TEMP_REJECT = "temp_reject"
    REJECT = "reject"


TERMINAL_STEPS = frozenset({LotStep.FINISHED, LotStep.REJECTED})

# Inspection status sentinels
INSPECTION_TEMP_REJECT = "Tijdelijke afkeur"
INSPECTION_REJECT = "Afkeur"

REJECTION_REASONS = [
    "Maatvoering onjuist",
    "Beschadiging",
    "Luchtbellen / Blaasjes",
    "Kleurafwijking",
    "Vervuiling",
    "Wanddikte te dun",
    "TF te dun",
    "TW te dun",
    "Bewerking niet correct",
    "Anders, zie opmerking",
]


def _stringify_measurements(value: Any) -> Any:
    if not isinstance(value, dict):
        return value
    return {
        str(key).lower(): ("" if raw is None else str(raw)).strip()
        for key, raw in value.items()
    }


class Inspection(BaseSchema):
    """Inspection outcome recorded at the quality gate."""

    status: str = Field(..., description="Inspection status sentinel")
    note: str = Field(default="", description="Operator comments")
    reason: Optional[str] = Field(None, description="Rejection reason")


class Lot(BaseSchema, TimestampMixin):
    """Stored lot document."""

    lot_number: str = Field(..., description="Unique, immutable lot number")
    order_id: str = Field(..., description="Order this lot was started for")
    item: str = Field(default="")
    drawing: str = Field(default="")
    classification: Optional[ProductClassification] = Field(None)
    origin_machine: str = Field(..., description="Station where the lot was created")
    current_station: str = Field(..., description="Current physical location")
    current_step: LotStep = Field(default=LotStep.WIKKELEN)
    status: LotStatus = Field(default=LotStatus.ACTIVE)

    # Quality gate
    measurements: dict[str, str] = Field(default_factory=dict)
    comments: str = Field(default="")
    rejection_reason: Optional[str] = Field(None)
    inspection: Optional[Inspection] = Field(None)

    # Drill-down fields
    label: Optional[UrgencyLabel] = Field(None)
    notes: Optional[str] = Field(None)
    evt_code: Optional[str] = Field(None)
    last_operator: Optional[str] = Field(None)

    # Step timestamps
    unloaded_at: Optional[datetime] = Field(None)
    transported_at: Optional[datetime] = Field(None)
    inspection_arrived_at: Optional[datetime] = Field(None)
    finished_at: Optional[datetime] = Field(None)

    @field_validator("measurements", mode="before")
    @classmethod
    def stringify_measurements(cls, v: Any) -> Any:
        """Measurements are stored as entered, keyed lowercase."""
        return _stringify_measurements(v)

    @property
    def is_active(self) -> bool:
        return self.current_step not in TERMINAL_STEPS


# ===================
# REQUEST SCHEMAS
# ===================

class ProductionStartRequest(BaseSchema):
    """Start a new lot for an order at a station."""

    order_id: str = Field(..., min_length=1, description="Order to produce for")
    station: str = Field(..., min_length=1, description="Station starting the lot")
    manual_lot_id: Optional[str] = Field(
        None,
        description="Operator supplied lot number; generated when omitted"
    )


class DispositionRequest(BaseSchema):
    """Quality gate submission for one lot."""

    disposition: Disposition = Field(..., description="ok, temp_reject or reject")
    measurements: dict[str, str] = Field(default_factory=dict)
    comments: str = Field(default="", max_length=1000)
    reason: Optional[str] = Field(None, description="Required unless disposition is ok")
    override: Optional[LotStep] = Field(
        None,
        description="Operator chosen destination, only honoured for ok"
    )

    @field_validator("measurements", mode="before")
    @classmethod
    def stringify_measurements(cls, v: Any) -> Any:
        return _stringify_measurements(v)


class LotListResponse(BaseSchema):
    """List of lots."""

    data: list[Lot]
    total: int


class TraceResult(BaseSchema):
    """Outcome of a trace lookup: a single lot, or an order with its lots."""

    kind: str = Field(..., description="'lot' or 'order'")
    lot: Optional[Lot] = None
    order: Optional[Order] = None
    lots: list[Lot] = Field(default_factory=list)
