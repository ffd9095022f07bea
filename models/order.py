"""
Planning order schemas.

Orders arrive from the import pipeline. The lifecycle only touches their
bookkeeping status; patching covers label, notes and identification code.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum
from datetime import date, datetime

from models.base import BaseSchema, TimestampMixin


class OrderStatus(str, Enum):
    """Planning order status values."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProductClassification(str, Enum):
    """Product geometry, decides routing and required measurements."""
    FLANGE = "Flange"
    CB = "CB"
    TB = "TB"
    GENERIC = "generic"


class UrgencyLabel(str, Enum):
    """Manual urgency marker set from the drill-down view."""
    SPOED = "SPOED"
    HOLD = "HOLD"
    NORMAAL = "NORMAAL"


# ===================
# ORDER SCHEMAS
# ===================

class OrderCreate(BaseSchema):
    """
    Register a planning order.

    Required: order_id, machine, item
    Classification is computed from the item when not supplied.
    """

    order_id: str = Field(..., min_length=1, max_length=64, description="Business order number")
    machine: str = Field(..., min_length=1, description="Assigned station or station group")
    item: str = Field(..., description="Product description")
    plan: int = Field(default=0, ge=0, description="Planned quantity")
    delivery_date: Optional[date] = Field(None, description="Requested delivery date")
    drawing: str = Field(default="", description="Drawing reference")
    project: str = Field(default="", description="Project reference")
    classification: Optional[ProductClassification] = Field(
        None,
        description="Explicit classification, overrides the item heuristic"
    )

    @field_validator("order_id", "machine")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        """Codes are stored uppercase."""
        return v.upper()


class Order(BaseSchema, TimestampMixin):
    """Stored planning order."""

    order_id: str = Field(..., description="Business order number")
    machine: str = Field(..., description="Assigned station or station group")
    item: str = Field(default="", description="Product description")
    plan: int = Field(default=0, ge=0, description="Planned quantity")
    delivery_date: Optional[date] = Field(None, description="Requested delivery date")
    drawing: str = Field(default="")
    project: str = Field(default="")
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    classification: Optional[ProductClassification] = Field(None)

    # Drill-down fields
    label: Optional[UrgencyLabel] = Field(None, description="Urgency label")
    notes: Optional[str] = Field(None, description="Instructions for the floor")
    evt_code: Optional[str] = Field(None, description="Identification code")
    last_operator: Optional[str] = Field(None, description="Last operator to write")
    completed_at: Optional[datetime] = Field(None)


class OrderListResponse(BaseSchema):
    """List of orders."""

    data: list[Order]
    total: int
