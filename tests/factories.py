"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from datetime import datetime, timezone
from typing import Optional


class OrderFactory:
    """
    Factory for creating test order documents.

    Usage:
        # Create with defaults
        order = OrderFactory.create()

        # Create with overrides
        order = OrderFactory.create(order_id="PO-100", plan=10)

        # Create multiple
        orders = OrderFactory.create_batch(5)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        order_id: Optional[str] = None,
        machine: str = "BH11",
        item: str = "Pipe 200mm",
        plan: int = 10,
        status: str = "pending",
        classification: Optional[str] = "generic",
        delivery_date: Optional[str] = None,
        **overrides
    ) -> dict:
        """
        Create a single order dict.

        Returns:
            Order dict matching the stored document shape
        """
        counter = cls._next_counter()
        now = datetime.now(timezone.utc).isoformat()

        return {
            "order_id": order_id or f"PO-{counter:03d}",
            "machine": machine,
            "item": item,
            "plan": plan,
            "delivery_date": delivery_date,
            "drawing": f"DRW-{counter:03d}",
            "project": "PRJ-1",
            "status": status,
            "classification": classification,
            "label": None,
            "notes": None,
            "evt_code": None,
            "last_operator": None,
            "created_at": now,
            "updated_at": now,
            **overrides,
        }

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple orders."""
        return [cls.create(**overrides) for _ in range(count)]


class LotFactory:
    """
    Factory for creating test lot documents.

    Usage:
        lot = LotFactory.create(order_id="PO-100", current_step="Lossen")
        lots = LotFactory.create_batch(4, order_id="PO-100")
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        lot_number: Optional[str] = None,
        order_id: str = "PO-100",
        item: str = "Pipe 200mm",
        classification: Optional[str] = "generic",
        origin_machine: str = "BH11",
        current_station: Optional[str] = None,
        current_step: str = "Wikkelen",
        status: str = "Active",
        **overrides
    ) -> dict:
        """
        Create a single lot dict.

        Returns:
            Lot dict matching the stored document shape
        """
        counter = cls._next_counter()
        now = datetime.now(timezone.utc).isoformat()

        return {
            "lot_number": lot_number or f"LOT-TEST-{counter:06d}",
            "order_id": order_id,
            "item": item,
            "drawing": "",
            "classification": classification,
            "origin_machine": origin_machine,
            "current_station": current_station or origin_machine,
            "current_step": current_step,
            "status": status,
            "measurements": {},
            "comments": "",
            "rejection_reason": None,
            "inspection": None,
            "created_at": now,
            "updated_at": now,
            **overrides,
        }

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple lots."""
        return [cls.create(**overrides) for _ in range(count)]

    @classmethod
    def create_finished(cls, **overrides) -> dict:
        """Lot that went through final inspection."""
        return cls.create(
            current_step="Finished",
            current_station="GEREED",
            status="completed",
            **overrides
        )

    @classmethod
    def create_on_hold(cls, **overrides) -> dict:
        """Lot that was temporarily rejected at the gate."""
        return cls.create(
            current_step="Hold",
            current_station="HOLD_AREA",
            status="hold",
            inspection={"status": "Tijdelijke afkeur", "note": "", "reason": "TF te dun"},
            rejection_reason="TF te dun",
            **overrides
        )
