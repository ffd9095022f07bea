"""
API route tests.

Service getters are patched to run against the in-memory store.

Run: pytest tests/unit/test_routes.py -v
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from services.lifecycle_service import LifecycleService
from services.metrics_service import MetricsService, ProductionMonitor
from services.order_service import OrderService
from services.patch_service import PatchService
from services.quality_gate_service import QualityGateService
from repositories import LOTS, ORDERS

from tests.factories import LotFactory, OrderFactory


@pytest.fixture
def api(test_client, store):
    """Test client with every service bound to the in-memory store."""
    monitor = ProductionMonitor(store=store, stations=["BH11"])
    with patch("routes.orders.get_order_service", return_value=OrderService(store=store)), \
            patch("routes.orders.get_patch_service", return_value=PatchService(store=store)), \
            patch("routes.lots.get_lifecycle_service", return_value=LifecycleService(store=store)), \
            patch("routes.lots.get_quality_gate_service", return_value=QualityGateService(store=store)), \
            patch("routes.lots.get_patch_service", return_value=PatchService(store=store)), \
            patch("routes.dashboard.get_metrics_service", return_value=MetricsService(store=store)), \
            patch("routes.dashboard.get_production_monitor", return_value=monitor):
        yield test_client


class TestRootRoute:
    def test_root_lists_endpoints(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["lots"] == "/api/lots"


class TestOrderRoutes:
    """Tests for /api/orders"""

    def test_register_order(self, api, store):
        """Should register an order and classify its item."""
        response = api.post(
            "/api/orders",
            json={"order_id": "po-100", "machine": "bh17", "item": "Flange DN200", "plan": 6},
            headers={"X-Operator": "import@floor"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["order_id"] == "PO-100"
        assert body["machine"] == "BH17"
        assert body["classification"] == "Flange"
        assert body["status"] == "pending"
        assert store.get(ORDERS, "PO-100")["last_operator"] == "import@floor"

    def test_negative_plan_rejected(self, api):
        response = api.post("/api/orders", json={"order_id": "PO-1", "machine": "BH11", "item": "x", "plan": -1})

        assert response.status_code == 422

    def test_list_orders(self, api, seed):
        seed(orders=[
            OrderFactory.create(order_id="PO-200", delivery_date="2025-03-01"),
            OrderFactory.create(order_id="PO-100", delivery_date="2025-02-01"),
            OrderFactory.create(order_id="PO-300"),
        ])

        response = api.get("/api/orders")

        assert response.status_code == 200
        assert response.json()["total"] == 3
        assert [o["order_id"] for o in response.json()["data"]] == ["PO-100", "PO-200", "PO-300"]

    def test_get_order_not_found(self, api):
        response = api.get("/api/orders/PO-404")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ORDER_NOT_FOUND"

    def test_patch_order_label(self, api, seed):
        seed(orders=[OrderFactory.create(order_id="PO-100")])

        response = api.patch("/api/orders/PO-100", json={"label": "SPOED"})

        assert response.status_code == 200
        assert response.json()["label"] == "SPOED"

    def test_patch_order_with_lot_fields(self, api, seed):
        seed(orders=[OrderFactory.create(order_id="PO-100")])

        response = api.patch("/api/orders/PO-100", json={"current_station": "NABW"})

        assert response.status_code == 422


class TestLotRoutes:
    """Tests for /api/lots"""

    def test_start_production(self, api, seed, store):
        seed(orders=[OrderFactory.create(order_id="PO-100")])

        response = api.post(
            "/api/lots/start",
            json={"order_id": "PO-100", "station": "BH11"},
            headers={"X-Operator": "op@floor"}
        )

        assert response.status_code == 201
        body = response.json()
        assert len(body["lot_number"]) == 15
        assert body["lot_number"].startswith("40")
        assert body["current_step"] == "Wikkelen"
        assert body["last_operator"] == "op@floor"
        assert store.get(ORDERS, "PO-100")["status"] == "in_progress"

    def test_start_with_duplicate_manual_number(self, api, seed):
        seed(
            orders=[OrderFactory.create(order_id="PO-100")],
            lots=[LotFactory.create(lot_number="MANUAL-0001")]
        )

        response = api.post(
            "/api/lots/start",
            json={"order_id": "PO-100", "station": "BH11", "manual_lot_id": "MANUAL-0001"}
        )

        assert response.status_code == 409

    def test_find_lot_not_found(self, api):
        response = api.get("/api/lots/402505411499999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LOT_NOT_FOUND"

    def test_advance(self, api, seed):
        seed(lots=[LotFactory.create(lot_number="402505411400001")])

        response = api.post("/api/lots/402505411400001/advance")

        assert response.status_code == 200
        assert response.json()["current_step"] == "Lossen"

    def test_advance_from_unloading_refused(self, api, seed):
        seed(lots=[LotFactory.create(lot_number="402505411400001", current_step="Lossen")])

        response = api.post("/api/lots/402505411400001/advance")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_LOT_TRANSITION"

    def test_disposition_requires_reason(self, api, seed, store):
        seed(lots=[LotFactory.create(lot_number="402505411400001", current_step="Lossen")])

        response = api.post(
            "/api/lots/402505411400001/disposition",
            json={"disposition": "reject", "measurements": {"tw": "3.0"}}
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "MISSING_REJECTION_REASON"
        assert store.get(LOTS, "402505411400001")["current_step"] == "Lossen"

    def test_disposition_unknown_value(self, api, seed):
        seed(lots=[LotFactory.create(lot_number="402505411400001", current_step="Lossen")])

        response = api.post("/api/lots/402505411400001/disposition", json={"disposition": "maybe"})

        assert response.status_code == 422

    def test_disposition_temp_reject(self, api, seed):
        seed(lots=[LotFactory.create(lot_number="402505411400001", current_step="Lossen")])

        response = api.post(
            "/api/lots/402505411400001/disposition",
            json={"disposition": "temp_reject", "measurements": {"tw": "5.1"}, "reason": "TF te dun"},
            headers={"X-Operator": "qc@floor"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["current_step"] == "Hold"
        assert body["inspection"]["status"] == "Tijdelijke afkeur"
        assert body["last_operator"] == "qc@floor"

    def test_patch_releases_hold(self, api, seed):
        seed(lots=[LotFactory.create_on_hold(lot_number="402505411400001")])

        response = api.patch(
            "/api/lots/402505411400001",
            json={"current_step": "Nabewerken", "current_station": "NABW", "status": "Active"}
        )

        assert response.status_code == 200
        assert response.json()["current_step"] == "Nabewerken"

    def test_patch_unknown_step(self, api, seed):
        seed(lots=[LotFactory.create_on_hold(lot_number="402505411400001")])

        response = api.patch("/api/lots/402505411400001", json={"current_step": "Painting"})

        assert response.status_code == 422

    def test_patch_null_step(self, api, seed, store):
        """Should answer 422 and leave the stored step alone."""
        seed(lots=[LotFactory.create_on_hold(lot_number="402505411400001")])

        response = api.patch("/api/lots/402505411400001", json={"current_step": None})

        assert response.status_code == 422
        assert store.get(LOTS, "402505411400001")["current_step"] == "Hold"

    def test_trace_order(self, api, seed):
        seed(
            orders=[OrderFactory.create(order_id="PO-100")],
            lots=LotFactory.create_batch(2, order_id="PO-100")
        )

        response = api.get("/api/lots/trace/PO-100")

        assert response.status_code == 200
        assert response.json()["kind"] == "order"
        assert len(response.json()["lots"]) == 2

    def test_list_lots_by_order(self, api, seed):
        seed(lots=[
            LotFactory.create(order_id="PO-100"),
            LotFactory.create(order_id="PO-200"),
        ])

        response = api.get("/api/lots", params={"order_id": "PO-200"})

        assert response.json()["total"] == 1

    def test_overdue_holds(self, api, seed):
        old = (datetime.now(timezone.utc) - timedelta(days=30)).isoformat()
        seed(lots=[LotFactory.create_on_hold(lot_number="402505411400001", unloaded_at=old)])

        response = api.get("/api/lots/overdue-holds")

        assert response.status_code == 200
        assert response.json()["data"][0]["lot_number"] == "402505411400001"


class TestDashboardRoutes:
    """Tests for /api/dashboard"""

    def test_metrics_from_store(self, api, seed):
        """Should aggregate straight from the store when the monitor isn't running."""
        seed(
            orders=[OrderFactory.create(order_id="PO-100", machine="BH11", plan=10)],
            lots=[
                *LotFactory.create_batch(3, order_id="PO-100"),
                LotFactory.create_finished(order_id="PO-100"),
            ]
        )

        response = api.get("/api/dashboard/metrics")

        assert response.status_code == 200
        body = response.json()
        assert body["per_order"][0]["live_to_do"] == 6
        assert body["per_order"][0]["live_finish"] == 1
        assert body["finished_count"] == 1

    def test_metrics_from_running_monitor(self, api, seed, store):
        seed(orders=[OrderFactory.create(order_id="PO-100", plan=4)])

        with patch("routes.dashboard.get_production_monitor") as get_monitor:
            monitor = ProductionMonitor(store=store, stations=[])
            monitor.start()
            get_monitor.return_value = monitor

            response = api.get("/api/dashboard/metrics")

        assert response.json()["total_planned"] == 4
