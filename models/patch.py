"""
Manual override schemas for the drill-down view.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
from enum import Enum

from models.base import BaseSchema
from models.lot import LotStatus, LotStep
from models.order import UrgencyLabel


class PatchKind(str, Enum):
    """Record type a patch applies to."""
    ORDER = "order"
    LOT = "lot"


# Fields that only exist on lots
LOT_ONLY_FIELDS = ("current_step", "current_station", "status")


class RecordPatch(BaseSchema):
    """
    Field-level correction.

    All fields optional - only provided fields are written.
    Step, station and status apply to lots only and can't be cleared.
    """

    label: Optional[UrgencyLabel] = Field(None, description="SPOED, HOLD or NORMAAL")
    notes: Optional[str] = Field(None, max_length=1000)
    evt_code: Optional[str] = Field(None, max_length=64)
    current_step: Optional[LotStep] = Field(None)
    current_station: Optional[str] = Field(None, min_length=1, max_length=32)
    status: Optional[LotStatus] = Field(None)

    @field_validator(*LOT_ONLY_FIELDS)
    @classmethod
    def not_null(cls, v: Any) -> Any:
        """Omit a lot field to leave it alone; null would break the lot."""
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    def provided_fields(self) -> dict:
        """Fields explicitly set by the caller, JSON-ready."""
        return self.model_dump(mode="json", exclude_unset=True)
