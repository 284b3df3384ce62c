"""
Invoice tests.

Verifies:
- Totals: subtotal = sum of lines, total = subtotal + shipping + tax
- Stock deduction (sale movements) and the deduct_stock switch
- Inline product creation
- All-or-nothing creation
- Header-only updates and delete semantics
"""

import re

from stockroom.extensions import db
from stockroom.models import Invoice, Product, StockMovement


def _create(client, headers, **payload):
    body = {"customer_name": "Mesa 4"}
    body.update(payload)
    return client.post("/api/invoices", json=body, headers=headers)


class TestCreateInvoice:

    def test_totals_and_stock(self, client, manager_headers, make_product):
        cheese = make_product("Mozzarella", quantity_in_stock=10, unit_price_cents=1500)
        flour = make_product("Farinha", quantity_in_stock=3, unit_price_cents=500)

        resp = _create(
            client,
            manager_headers,
            phone_number="+55 11 99999-0000",
            shipping_cents=1000,
            tax_cents=250,
            items=[
                {"product_id": cheese["id"], "quantity": 2},
                {"product_id": flour["id"], "quantity": 5, "price_per_item_cents": 450},
            ],
        )

        assert resp.status_code == 201
        data = resp.get_json()
        assert re.fullmatch(r"INV-\d+", data["invoice_number"])
        assert [i["subtotal_cents"] for i in data["items"]] == [3000, 2250]
        assert data["items"][0]["price_per_item_cents"] == 1500
        assert data["subtotal_cents"] == 5250
        assert data["total_cents"] == 6500

        db.session.expire_all()
        assert db.session.get(Product, cheese["id"]).quantity_in_stock == 8
        # Deduction clamps at zero
        assert db.session.get(Product, flour["id"]).quantity_in_stock == 0

        sales = db.session.query(StockMovement).filter_by(movement_type="sale").order_by(StockMovement.id).all()
        assert [(m.quantity_change, m.invoice_id) for m in sales] == [(-2, data["id"]), (-3, data["id"])]
        assert sales[0].reason == f"Invoice {data['invoice_number']}"

    def test_without_stock_deduction(self, client, manager_headers, make_product):
        cheese = make_product(quantity_in_stock=10)

        resp = _create(client, manager_headers, deduct_stock=False, items=[{"product_id": cheese["id"], "quantity": 2}])

        assert resp.status_code == 201
        assert resp.get_json()["deduct_stock"] is False
        assert db.session.query(StockMovement).filter_by(movement_type="sale").count() == 0

    def test_inline_new_product(self, client, manager_headers):
        resp = _create(
            client,
            manager_headers,
            items=[{
                "new_product": {"name": "Rúcula", "category": "Restaurante", "unit_price_cents": 300, "quantity_in_stock": 5},
                "quantity": 2,
            }],
        )

        assert resp.status_code == 201
        line = resp.get_json()["items"][0]
        assert line["item_name"] == "Rúcula"
        assert line["subtotal_cents"] == 600

        db.session.expire_all()
        product = db.session.get(Product, line["product_id"])
        assert product.quantity_in_stock == 3
        kinds = [m.movement_type for m in db.session.query(StockMovement).order_by(StockMovement.id)]
        assert kinds == ["adjustment", "sale"]

    def test_numbers_are_unique(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=10)
        first = _create(client, manager_headers, items=[{"product_id": product["id"], "quantity": 1}]).get_json()
        second = _create(client, manager_headers, items=[{"product_id": product["id"], "quantity": 1}]).get_json()
        assert first["invoice_number"] != second["invoice_number"]


class TestInvoiceAtomicity:

    def test_bad_line_rolls_back_everything(self, client, manager_headers, make_product):
        cheese = make_product(quantity_in_stock=10)

        resp = _create(
            client,
            manager_headers,
            items=[
                {"product_id": cheese["id"], "quantity": 2},
                {"new_product": {"name": "Rúcula", "category": "Restaurante"}, "quantity": 1},
                {"product_id": cheese["id"], "quantity": 0},
            ],
        )

        assert resp.status_code == 400
        db.session.expire_all()
        assert db.session.query(Invoice).count() == 0
        assert db.session.query(Product).count() == 1
        assert db.session.get(Product, cheese["id"]).quantity_in_stock == 10
        assert db.session.query(StockMovement).filter_by(movement_type="sale").count() == 0

    def test_unknown_product(self, client, manager_headers):
        resp = _create(client, manager_headers, items=[{"product_id": 999, "quantity": 1}])
        assert resp.status_code == 400
        assert "999" in resp.get_json()["error"]

    def test_validation(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=10)
        line = {"product_id": product["id"], "quantity": 1}

        for payload in (
            {"items": []},
            {"items": [{"quantity": 1}]},
            {"items": [line], "customer_name": ""},
            {"items": [line], "deduct_stock": "yes"},
            {"items": [line], "shipping_cents": -5},
            {"items": [{"product_id": product["id"], "quantity": 1, "price_per_item_cents": "abc"}]},
        ):
            resp = _create(client, manager_headers, **payload)
            assert resp.status_code == 400, payload

        resp = client.post("/api/invoices", json={"items": [line]}, headers=manager_headers)
        assert resp.status_code == 400


class TestInvoiceReadUpdateDelete:

    def test_list_get_and_search(self, client, staff_headers, manager_headers, make_product):
        product = make_product(quantity_in_stock=10)
        _create(client, manager_headers, customer_name="Mesa 1", items=[{"product_id": product["id"], "quantity": 1}])
        second = _create(
            client, manager_headers, customer_name="Delivery Ana", items=[{"product_id": product["id"], "quantity": 1}]
        ).get_json()

        data = client.get("/api/invoices", headers=staff_headers).get_json()
        assert [i["customer_name"] for i in data["items"]] == ["Delivery Ana", "Mesa 1"]

        data = client.get("/api/invoices?search=ana", headers=staff_headers).get_json()
        assert data["count"] == 1

        detail = client.get(f"/api/invoices/{second['id']}", headers=staff_headers).get_json()
        assert len(detail["items"]) == 1
        assert client.get("/api/invoices/999", headers=staff_headers).status_code == 404

    def test_update_header_recomputes_total(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=10, unit_price_cents=1000)
        invoice = _create(client, manager_headers, items=[{"product_id": product["id"], "quantity": 2}]).get_json()

        resp = client.put(
            f"/api/invoices/{invoice['id']}",
            json={"shipping_cents": 500, "customer_name": "Mesa 9"},
            headers=manager_headers,
        )

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["customer_name"] == "Mesa 9"
        assert data["total_cents"] == 2500

    def test_lines_are_not_editable(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=10)
        invoice = _create(client, manager_headers, items=[{"product_id": product["id"], "quantity": 2}]).get_json()

        resp = client.put(f"/api/invoices/{invoice['id']}", json={"items": []}, headers=manager_headers)
        assert resp.status_code == 400

    def test_delete_keeps_stock(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=10)
        invoice = _create(client, manager_headers, items=[{"product_id": product["id"], "quantity": 4}]).get_json()

        assert client.delete(f"/api/invoices/{invoice['id']}", headers=manager_headers).status_code == 200
        assert client.get(f"/api/invoices/{invoice['id']}", headers=manager_headers).status_code == 404

        db.session.expire_all()
        assert db.session.get(Product, product["id"]).quantity_in_stock == 6

    def test_supervisor_cannot_delete(self, client, supervisor_headers, manager_headers, make_product):
        product = make_product(quantity_in_stock=10)
        invoice = _create(
            client, supervisor_headers, items=[{"product_id": product["id"], "quantity": 1}]
        ).get_json()

        resp = client.delete(f"/api/invoices/{invoice['id']}", headers=supervisor_headers)
        assert resp.status_code == 403
