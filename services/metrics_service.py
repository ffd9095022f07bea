"""
Production metrics for dashboards.

aggregate() is the single source of truth: same orders and lots in, same
figures out. It makes one pass over the lots and one over the orders, so
it stays linear no matter how often the change feed fires.

    per order    started / finished   → live_to_do, live_finish
    per machine  running / finished / rejected, plan, orders
    global       planned, active, rejected, temp rejected, finished
"""

from collections import defaultdict
from threading import Lock
from time import monotonic
from typing import Callable, Iterable, Optional
import structlog

from config import settings
from models.lot import INSPECTION_TEMP_REJECT, Lot, LotStep
from models.metrics import MachineMetrics, OrderProgress, ProductionMetrics
from models.order import Order
from repositories import DocumentStore, LOTS, ORDERS, get_document_store
from utils.text_utils import normalize_station_code

logger = structlog.get_logger(__name__)


def aggregate(
    orders: Iterable[Order],
    lots: Iterable[Lot],
    stations: Iterable[str] = ()
) -> ProductionMetrics:
    """
    Compute live progress from the full order and lot sets.

    Args:
        orders: Every order
        lots: Every lot
        stations: Machines to show even without data (e.g. dashboard tiles)

    Returns:
        ProductionMetrics with global, per-machine and per-order figures
    """
    orders = list(orders)

    # === 1. ONE PASS OVER LOTS ===

    started: dict[str, int] = defaultdict(int)
    finished: dict[str, int] = defaultdict(int)
    machines: dict[str, MachineMetrics] = {}

    def machine(key: str) -> MachineMetrics:
        if key not in machines:
            machines[key] = MachineMetrics(machine=key)
        return machines[key]

    for station in stations:
        machine(normalize_station_code(station))

    active_count = rejected_count = temp_rejected_count = finished_count = 0

    for lot in lots:
        bucket = machine(normalize_station_code(lot.origin_machine))
        started[lot.order_id] += 1

        if lot.is_active:
            active_count += 1
            bucket.running += 1
        elif lot.current_step == LotStep.FINISHED:
            finished[lot.order_id] += 1
            finished_count += 1
            bucket.finished += 1
        else:
            rejected_count += 1
            bucket.rejected += 1

        # Counted whatever the step; a released Hold lot keeps its mark
        if lot.inspection and lot.inspection.status == INSPECTION_TEMP_REJECT:
            temp_rejected_count += 1

    # === 2. ONE PASS OVER ORDERS ===

    per_order = []
    total_planned = 0
    for order in orders:
        key = normalize_station_code(order.machine)
        progress = OrderProgress(
            order_id=order.order_id,
            machine=order.machine,
            machine_key=key,
            item=order.item,
            project=order.project,
            delivery_date=order.delivery_date,
            status=order.status,
            label=order.label,
            plan=order.plan,
            started=started.get(order.order_id, 0),
            live_to_do=max(0, order.plan - started.get(order.order_id, 0)),
            live_finish=finished.get(order.order_id, 0),
        )
        per_order.append(progress)
        total_planned += order.plan

        bucket = machine(key)
        bucket.plan += order.plan
        bucket.orders.append(progress)

    return ProductionMetrics(
        total_planned=total_planned,
        active_count=active_count,
        rejected_count=rejected_count,
        temp_rejected_count=temp_rejected_count,
        finished_count=finished_count,
        per_machine=[machines[key] for key in sorted(machines)],
        per_order=per_order,
    )


class MetricsService:
    """On-demand metrics straight from the store."""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store if store is not None else get_document_store()

    def get_production_metrics(self) -> ProductionMetrics:
        """Read every order and lot and aggregate."""
        orders = [Order.model_validate(doc) for doc in self.store.list(ORDERS)]
        lots = [Lot.model_validate(doc) for doc in self.store.list(LOTS)]

        metrics = aggregate(orders, lots, settings.dashboard_stations)
        logger.info(
            "production_metrics_calculated",
            orders=len(orders),
            lots=len(lots),
            active=metrics.active_count
        )
        return metrics


class ProductionMonitor:
    """
    Keeps the latest metrics current from the store's change feed.

    Every push carries the full collection; the aggregate is recomputed
    from scratch each time. Pushes only follow writes made through this
    process, so current_metrics() re-reads the store once the last full
    read is older than max_age_seconds.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        stations: Optional[Iterable[str]] = None,
        max_age_seconds: Optional[float] = None
    ):
        self.store = store if store is not None else get_document_store()
        self.stations = list(stations) if stations is not None else list(settings.dashboard_stations)
        self.max_age_seconds = (
            max_age_seconds if max_age_seconds is not None else settings.metrics_max_age_seconds
        )
        self._read_at: Optional[float] = None
        self._orders: list[Order] = []
        self._lots: list[Lot] = []
        self._metrics = aggregate([], [], self.stations)
        self._lock = Lock()
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def metrics(self) -> ProductionMetrics:
        """Latest computed metrics."""
        return self._metrics

    @property
    def running(self) -> bool:
        return bool(self._unsubscribers)

    @property
    def is_stale(self) -> bool:
        """True when the last full read of the store is older than max_age_seconds."""
        if self._read_at is None:
            return True
        return monotonic() - self._read_at >= self.max_age_seconds

    def current_metrics(self) -> ProductionMetrics:
        """Latest metrics, re-reading the store first when they are stale."""
        if self.is_stale:
            self.refresh()
        return self._metrics

    def refresh(self) -> None:
        """Re-read orders and lots, picking up writes from other processes."""
        self.store.refresh(ORDERS)
        self.store.refresh(LOTS)
        self._read_at = monotonic()
        logger.debug("production_monitor_refreshed", active=self._metrics.active_count)

    def start(self) -> None:
        """Subscribe to orders and lots; each delivers a snapshot at once."""
        if self.running:
            return
        self._unsubscribers = [
            self.store.subscribe(ORDERS, self._on_orders),
            self.store.subscribe(LOTS, self._on_lots),
        ]
        self._read_at = monotonic()
        logger.info("production_monitor_started", stations=len(self.stations))

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        logger.info("production_monitor_stopped")

    def _on_orders(self, docs: list[dict]) -> None:
        orders = [Order.model_validate(doc) for doc in docs]
        with self._lock:
            self._orders = orders
            self._recompute()

    def _on_lots(self, docs: list[dict]) -> None:
        lots = [Lot.model_validate(doc) for doc in docs]
        with self._lock:
            self._lots = lots
            self._recompute()

    def _recompute(self) -> None:
        self._metrics = aggregate(self._orders, self._lots, self.stations)
        logger.debug(
            "production_metrics_refreshed",
            orders=len(self._orders),
            lots=len(self._lots),
            active=self._metrics.active_count
        )


# Singleton instances
_metrics_service: Optional[MetricsService] = None
_production_monitor: Optional[ProductionMonitor] = None


def get_metrics_service() -> MetricsService:
    """Get or create MetricsService instance."""
    global _metrics_service
    if _metrics_service is None:
        _metrics_service = MetricsService()
    return _metrics_service


def get_production_monitor() -> ProductionMonitor:
    """Get or create ProductionMonitor instance."""
    global _production_monitor
    if _production_monitor is None:
        _production_monitor = ProductionMonitor()
    return _production_monitor
