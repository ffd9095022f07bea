"""
Lot lifecycle: starting lots and moving them forward.

    Wikkelen → Lossen → {Mazak | Nabewerken} → Eindinspectie → Finished
    side states: Hold (recoverable, patch only), REJECTED (terminal)

Transitions are operator-triggered (terminal scan or confirm). Lossen is
left through the quality gate, never through advance(). Hold has no
automatic exit; only a manual patch can put a lot back in the flow.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import structlog

from config import settings
from exceptions import (
    DuplicateRecordError,
    InvalidLotTransitionError,
    LotNotFoundError,
    LotNumberExistsError,
    RemoteWriteError,
    ValidationError,
)
from models.lot import Lot, LotStatus, LotStep, TraceResult
from models.order import Order, OrderStatus
from repositories import DocumentStore, LOTS, get_document_store
from services.lot_identity_service import (
    generate_lot_number,
    looks_like_lot_number,
    validate_manual_lot_number,
)
from services.order_service import OrderService
from services.routing_service import STATION_DONE, STATION_INSPECTION, classify_item
from utils.text_utils import normalize_scan_code

logger = structlog.get_logger(__name__)


# Simple forward progression handled by advance()
ADVANCE_TRANSITIONS = {
    LotStep.WIKKELEN: LotStep.LOSSEN,
    LotStep.MAZAK: LotStep.EINDINSPECTIE,
    LotStep.NABEWERKEN: LotStep.EINDINSPECTIE,
    LotStep.EINDINSPECTIE: LotStep.FINISHED,
}


def next_step(lot: Lot) -> LotStep:
    """
    Step a lot moves to on a plain forward confirmation.

    Raises:
        InvalidLotTransitionError: For Lossen (quality gate), Hold
            (patch only) and the terminal steps
    """
    try:
        return ADVANCE_TRANSITIONS[lot.current_step]
    except KeyError:
        raise InvalidLotTransitionError(lot.lot_number, lot.current_step.value, "advance")


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class LifecycleService:
    """
    Lot lifecycle business logic.

    Handles production start, forward steps and lot lookups.
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store if store is not None else get_document_store()
        self.orders = OrderService(store=self.store)

    # ===================
    # LOOKUPS
    # ===================

    def find_lot(self, code: str) -> Lot:
        """
        Resolve a scanned or typed code to a lot.

        The 15 character / "40" prefix format is only a hint; the lookup is
        always attempted for non-empty input.

        Raises:
            ValidationError: If the input is empty
            LotNotFoundError: If no lot matches (a LookupError)
        """
        cleaned = normalize_scan_code(code)
        if not cleaned:
            raise ValidationError("Scan or type a lot number", code="EMPTY_LOT_CODE")

        if not looks_like_lot_number(cleaned):
            logger.info("lot_code_format_unusual", code=cleaned, length=len(cleaned))

        doc = self.store.get(LOTS, cleaned)
        if doc is None:
            logger.warning("lot_lookup_failed", code=cleaned)
            raise LotNotFoundError(cleaned)

        return Lot.model_validate(doc)

    def list_lots(
        self,
        order_id: Optional[str] = None,
        station: Optional[str] = None,
        step: Optional[LotStep] = None
    ) -> list[Lot]:
        """List lots with optional equality filters, sorted by lot number."""
        filters = {}
        if order_id:
            filters["order_id"] = normalize_scan_code(order_id)
        if station:
            filters["current_station"] = normalize_scan_code(station)
        if step:
            filters["current_step"] = step.value

        lots = [Lot.model_validate(doc) for doc in self.store.list(LOTS, **filters)]
        lots.sort(key=lambda lot: lot.lot_number)
        return lots

    def trace(self, code: str) -> TraceResult:
        """
        Trace a code as a lot number first, then as an order id.

        Raises:
            LotNotFoundError: If the code matches neither
        """
        try:
            return TraceResult(kind="lot", lot=self.find_lot(code))
        except LotNotFoundError:
            order = self.orders.find_order(normalize_scan_code(code))
            if order is None:
                raise
            return TraceResult(
                kind="order",
                order=order,
                lots=self.list_lots(order_id=order.order_id)
            )

    def overdue_holds(self, now: Optional[datetime] = None) -> list[Lot]:
        """
        Hold lots waiting longer than hold_overdue_days.

        Reporting only; nothing is moved out of Hold.
        """
        now = now or datetime.now(timezone.utc)
        limit = timedelta(days=settings.hold_overdue_days)

        overdue = []
        for lot in self.list_lots(step=LotStep.HOLD):
            since = lot.unloaded_at or lot.updated_at or lot.created_at
            if since is None:
                continue
            waiting = now - _as_utc(since)
            if waiting > limit:
                overdue.append(lot)
                logger.warning(
                    "hold_overdue",
                    lot_number=lot.lot_number,
                    station=lot.current_station,
                    days=waiting.days
                )
        return overdue

    # ===================
    # PRODUCTION START
    # ===================

    def start_production(
        self,
        order_id: str,
        station: str,
        manual_lot_id: Optional[str] = None,
        operator: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Lot:
        """
        Start a new lot for an order at a winding station.

        Generated numbers are claimed with an insert-if-absent; on a
        collision the existing lots are re-read and the next sequence is
        tried. Manual numbers are never retried.

        Args:
            order_id: Order to produce for
            station: Station starting the lot (e.g. "BH11")
            manual_lot_id: Operator supplied lot number
            operator: Operator email for audit
            now: Start moment; defaults to the current UTC time

        Returns:
            Created Lot

        Raises:
            OrderNotFoundError: If the order doesn't exist
            InvalidLotNumberError: If the manual number is too short
            LotNumberExistsError: If the number is taken
        """
        now = now or datetime.now(timezone.utc)
        order = self.orders.get_order(order_id)
        station = normalize_scan_code(station)
        if not station:
            raise ValidationError("Station is required", code="STATION_REQUIRED")

        logger.info("starting_production", order_id=order.order_id, station=station)

        if manual_lot_id is not None:
            lot = self._build_lot(order, station, validate_manual_lot_number(manual_lot_id), operator, now)
            try:
                self.store.create(LOTS, lot.lot_number, lot.to_document())
            except DuplicateRecordError:
                raise LotNumberExistsError(lot.lot_number)
        else:
            lot = self._claim_generated_lot(order, station, operator, now)

        logger.info(
            "lot_started",
            lot_number=lot.lot_number,
            order_id=order.order_id,
            station=station,
            manual=manual_lot_id is not None
        )

        if order.status == OrderStatus.PENDING:
            try:
                self.orders.set_status(order, OrderStatus.IN_PROGRESS, operator)
            except RemoteWriteError as e:
                # The lot is persisted; order status is bookkeeping only
                logger.error("order_status_update_failed", order_id=order.order_id, error=e.message)

        return lot

    def _claim_generated_lot(self, order: Order, station: str, operator: Optional[str], now: datetime) -> Lot:
        tried: list[str] = []
        for attempt in range(1, settings.lot_number_retries + 1):
            existing = [doc.get("lot_number", "") for doc in self.store.list(LOTS)]
            lot_number = generate_lot_number(station, existing + tried, now)
            lot = self._build_lot(order, station, lot_number, operator, now)
            try:
                self.store.create(LOTS, lot_number, lot.to_document())
                return lot
            except DuplicateRecordError:
                tried.append(lot_number)
                logger.warning(
                    "lot_number_collision",
                    lot_number=lot_number,
                    station=station,
                    attempt=attempt
                )

        raise LotNumberExistsError(tried[-1])

    def _build_lot(
        self,
        order: Order,
        station: str,
        lot_number: str,
        operator: Optional[str],
        now: datetime
    ) -> Lot:
        return Lot(
            lot_number=lot_number,
            order_id=order.order_id,
            item=order.item,
            drawing=order.drawing,
            classification=order.classification or classify_item(order.item),
            origin_machine=station,
            current_station=station,
            current_step=LotStep.WIKKELEN,
            status=LotStatus.ACTIVE,
            last_operator=operator,
            created_at=now,
            updated_at=now,
        )

    # ===================
    # FORWARD STEPS
    # ===================

    def advance(
        self,
        code: str,
        operator: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Lot:
        """
        Move a lot one step forward.

        Wikkelen → Lossen, Mazak/Nabewerken → Eindinspectie (BM01),
        Eindinspectie → Finished.

        Raises:
            LotNotFoundError: If the code doesn't resolve to a lot
            InvalidLotTransitionError: If the step can't be advanced
        """
        now = now or datetime.now(timezone.utc)
        lot = self.find_lot(code)
        target = next_step(lot)

        changes = {
            "current_step": target.value,
            "updated_at": now.isoformat(),
        }
        if operator:
            changes["last_operator"] = operator

        if target == LotStep.EINDINSPECTIE:
            changes["current_station"] = STATION_INSPECTION
            changes["inspection_arrived_at"] = now.isoformat()
        elif target == LotStep.FINISHED:
            changes["current_station"] = STATION_DONE
            changes["status"] = LotStatus.COMPLETED.value
            changes["finished_at"] = now.isoformat()

        doc = self.store.update(LOTS, lot.lot_number, changes)
        updated = Lot.model_validate(doc)

        logger.info(
            "lot_advanced",
            lot_number=lot.lot_number,
            from_step=lot.current_step.value,
            to_step=target.value,
            station=updated.current_station
        )

        if target == LotStep.FINISHED and settings.auto_complete_orders:
            self._complete_order_if_done(updated.order_id, operator)

        return updated

    def _complete_order_if_done(self, order_id: str, operator: Optional[str]) -> None:
        order = self.orders.find_order(order_id)
        if order is None or order.plan <= 0:
            return
        if order.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
            return

        finished = self.store.list(LOTS, order_id=order.order_id, current_step=LotStep.FINISHED.value)
        if len(finished) >= order.plan:
            self.orders.set_status(order, OrderStatus.COMPLETED, operator)


# Singleton instance
_lifecycle_service: Optional[LifecycleService] = None


def get_lifecycle_service() -> LifecycleService:
    """Get or create LifecycleService instance."""
    global _lifecycle_service
    if _lifecycle_service is None:
        _lifecycle_service = LifecycleService()
    return _lifecycle_service
