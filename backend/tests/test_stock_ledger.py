"""
Stock ledger tests.

Verifies:
- Floor-at-zero arithmetic and sign rules for manual movements
- Every change leaves a before/change/after row that matches the product
- Low-stock alerts are raised once per crossing and re-armed by acknowledging
- Role gate on manual movements
"""

import pytest

from stockroom.extensions import db
from stockroom.models import StockMovement, LowStockAlert, Product
from stockroom.services import stock_service
from stockroom.services.session_service import build_context
from stockroom.validation import ValidationError, NotFoundError


# =============================================================================
# PURE RULES
# =============================================================================


@pytest.mark.parametrize(
    "before,change,expected",
    [
        (5, -3, (-3, 2)),
        (2, -5, (-2, 0)),
        (0, -1, (0, 0)),
        (0, 4, (4, 4)),
    ],
)
def test_apply_stock_delta_clamps_at_zero(before, change, expected):
    assert stock_service.apply_stock_delta(before, change) == expected


@pytest.mark.parametrize(
    "movement_type,change",
    [
        ("sale", 1),
        ("waste", 3),
        ("purchase", -1),
        ("return", -2),
        ("adjustment", 0),
        ("theft", -1),
        ("sale", "1.5"),
        ("sale", None),
    ],
)
def test_validate_movement_rejects(movement_type, change):
    with pytest.raises(ValidationError):
        stock_service.validate_movement(movement_type, change)


@pytest.mark.parametrize(
    "movement_type,change",
    [("sale", -1), ("waste", "-2"), ("purchase", 5), ("return", 1), ("adjustment", -7), ("adjustment", 7)],
)
def test_validate_movement_accepts(movement_type, change):
    assert stock_service.validate_movement(movement_type, change) == int(change)


# =============================================================================
# LEDGER THROUGH THE SERVICE
# =============================================================================


def _assert_ledger_consistent(product_id: int):
    db.session.expire_all()
    product = db.session.get(Product, product_id)
    rows = (
        db.session.query(StockMovement)
        .filter_by(product_id=product_id)
        .order_by(StockMovement.id.asc())
        .all()
    )
    for row in rows:
        assert row.quantity_after == row.quantity_before + row.quantity_change
        assert row.quantity_after >= 0
    for prev, nxt in zip(rows, rows[1:]):
        assert nxt.quantity_before == prev.quantity_after
    if rows:
        assert rows[-1].quantity_after == product.quantity_in_stock


class TestLedger:

    def test_opening_stock_is_recorded(self, make_product):
        product = make_product(quantity_in_stock=10, threshold=3)

        rows = db.session.query(StockMovement).filter_by(product_id=product["id"]).all()
        assert len(rows) == 1
        assert rows[0].movement_type == "adjustment"
        assert rows[0].quantity_before == 0
        assert rows[0].quantity_change == 10
        assert rows[0].reason == "Opening stock"

    def test_zero_opening_stock_records_nothing(self, make_product):
        product = make_product()
        assert db.session.query(StockMovement).filter_by(product_id=product["id"]).count() == 0

    def test_deduction_is_clamped(self, manager, make_product):
        product = make_product(quantity_in_stock=2)
        ctx = build_context(manager)

        movement = stock_service.record_movement(ctx, product["id"], -5, "sale", "Rush hour")

        assert movement.quantity_before == 2
        assert movement.quantity_change == -2
        assert movement.quantity_after == 0
        assert movement.user_id == manager.id
        _assert_ledger_consistent(product["id"])

    def test_missing_product_writes_nothing(self, manager):
        ctx = build_context(manager)
        with pytest.raises(NotFoundError):
            stock_service.record_movement(ctx, 999, -1, "waste")
        assert db.session.query(StockMovement).count() == 0

    def test_alert_lifecycle(self, manager, make_product):
        product = make_product(quantity_in_stock=10, threshold=3)
        ctx = build_context(manager)

        stock_service.record_movement(ctx, product["id"], -8, "waste", "Spoiled")
        alerts = db.session.query(LowStockAlert).filter_by(product_id=product["id"]).all()
        assert len(alerts) == 1
        assert alerts[0].severity == "warning"
        assert alerts[0].quantity_at_alert == 2
        assert alerts[0].threshold == 3

        # Still low with an open alert: no duplicate
        stock_service.record_movement(ctx, product["id"], -5, "sale")
        assert db.session.query(LowStockAlert).filter_by(product_id=product["id"]).count() == 1

        stock_service.acknowledge_alert(ctx, alerts[0].id)
        stock_service.record_movement(ctx, product["id"], 1, "purchase")
        stock_service.record_movement(ctx, product["id"], -1, "sale")

        open_alerts = stock_service.list_open_alerts()
        assert len(open_alerts) == 1
        assert open_alerts[0].severity == "critical"
        assert open_alerts[0].quantity_at_alert == 0
        _assert_ledger_consistent(product["id"])

    def test_increase_never_raises_alert(self, manager, make_product):
        product = make_product(threshold=10)
        stock_service.record_movement(build_context(manager), product["id"], 3, "purchase")
        assert db.session.query(LowStockAlert).count() == 0


# =============================================================================
# API
# =============================================================================


class TestStockMovementRoutes:

    def test_supervisor_records_movement(self, client, supervisor_headers, make_product):
        product = make_product(quantity_in_stock=10)

        resp = client.post(
            "/api/stock-movements",
            json={"product_id": product["id"], "movement_type": "waste", "quantity_change": -3, "reason": "Expired"},
            headers=supervisor_headers,
        )

        assert resp.status_code == 201
        data = resp.get_json()
        assert data["movement"]["quantity_after"] == 7
        assert data["movement"]["product_name"] == "Mozzarella"
        assert data["product"]["quantity_in_stock"] == 7

    def test_wrong_sign_rejected(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=10)
        resp = client.post(
            "/api/stock-movements",
            json={"product_id": product["id"], "movement_type": "sale", "quantity_change": 3},
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_missing_product_404(self, client, manager_headers):
        resp = client.post(
            "/api/stock-movements",
            json={"product_id": 404, "movement_type": "adjustment", "quantity_change": 1},
            headers=manager_headers,
        )
        assert resp.status_code == 404

    def test_product_id_must_be_integer(self, client, manager_headers):
        resp = client.post(
            "/api/stock-movements",
            json={"product_id": "1", "movement_type": "adjustment", "quantity_change": 1},
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_non_object_body_rejected(self, client, manager_headers):
        resp = client.post("/api/stock-movements", json=[1], headers=manager_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid JSON payload"
        assert db.session.query(StockMovement).count() == 0

    def test_list_and_filter(self, client, manager_headers, staff_headers, make_product):
        flour = make_product("Farinha", quantity_in_stock=20)
        make_product("Tomate", quantity_in_stock=5)
        client.post(
            "/api/stock-movements",
            json={"product_id": flour["id"], "movement_type": "sale", "quantity_change": -4},
            headers=manager_headers,
        )

        resp = client.get("/api/stock-movements", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.get_json()["count"] == 3

        resp = client.get(f"/api/stock-movements?product_id={flour['id']}", headers=staff_headers)
        items = resp.get_json()["items"]
        assert [m["movement_type"] for m in items] == ["sale", "adjustment"]

        resp = client.get("/api/stock-movements?movement_type=sale", headers=staff_headers)
        assert resp.get_json()["count"] == 1

        resp = client.get("/api/stock-movements?movement_type=bogus", headers=staff_headers)
        assert resp.status_code == 400
