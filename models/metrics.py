"""
Metrics models returned by the aggregator and served to dashboards.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

from models.order import OrderStatus, UrgencyLabel


class OrderProgress(BaseModel):
    """Live progress of a single order."""

    order_id: str
    machine: str
    machine_key: str = Field(..., description="Normalized machine bucket")
    item: str = ""
    project: str = ""
    delivery_date: Optional[date] = None
    status: OrderStatus = OrderStatus.PENDING
    label: Optional[UrgencyLabel] = None

    plan: int = Field(..., description="Planned quantity")
    started: int = Field(default=0, description="Lots started for this order")
    live_to_do: int = Field(..., description="max(0, plan - started)")
    live_finish: int = Field(default=0, description="Lots finished for this order")


class MachineMetrics(BaseModel):
    """Running and finished counts for one machine bucket."""

    machine: str = Field(..., description="Normalized machine key")
    plan: int = Field(default=0, description="Sum of plans of orders assigned here")
    running: int = Field(default=0, description="Active lots started here")
    finished: int = Field(default=0, description="Finished lots started here")
    rejected: int = Field(default=0, description="Rejected lots started here")
    orders: list[OrderProgress] = Field(default_factory=list)


class ProductionMetrics(BaseModel):
    """Global, per-machine and per-order production figures."""

    total_planned: int = 0
    active_count: int = 0
    rejected_count: int = 0
    temp_rejected_count: int = 0
    finished_count: int = 0
    per_machine: list[MachineMetrics] = Field(default_factory=list)
    per_order: list[OrderProgress] = Field(default_factory=list)
