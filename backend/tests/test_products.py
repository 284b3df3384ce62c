"""
Product API tests.

Covers validation, stock ownership (quantity only moves through the
ledger), supplier linkage, filters, photos and delete rules.
"""

import io

from stockroom.extensions import db
from stockroom.models import StockMovement, LowStockAlert, InvoiceItem


class TestCreateProduct:

    def test_create(self, client, manager_headers):
        resp = client.post(
            "/api/products",
            json={
                "name": "Queijo Parmesão",
                "category": "Restaurante",
                "unit": "kg",
                "quantity_in_stock": 4,
                "threshold": 2,
                "unit_price_cents": 8990,
                "expiration_date": "2030-01-31",
            },
            headers=manager_headers,
        )

        assert resp.status_code == 201
        data = resp.get_json()
        assert data["quantity_in_stock"] == 4
        assert data["unit_price_cents"] == 8990
        assert data["expiration_date"] == "2030-01-31"
        assert data["is_low_stock"] is False

    def test_defaults(self, client, manager_headers):
        resp = client.post("/api/products", json={"name": "Sal", "category": "Restaurante"}, headers=manager_headers)
        data = resp.get_json()
        assert data["unit"] == "un"
        assert data["threshold"] == 0
        assert data["unit_price_cents"] == 0
        assert data["quantity_in_stock"] == 0

    def test_missing_required_fields(self, client, manager_headers):
        resp = client.post("/api/products", json={"unit": "kg"}, headers=manager_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required fields: category, name"

    def test_unknown_field_rejected(self, client, manager_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Sal", "category": "Restaurante", "id": 99},
            headers=manager_headers,
        )
        assert resp.status_code == 400
        assert "not allowed" in resp.get_json()["error"]

    def test_numeric_rules(self, client, manager_headers):
        for bad in (
            {"unit_price_cents": -1},
            {"unit_price_cents": 1_000_000_000},
            {"threshold": -3},
            {"quantity_in_stock": 1.5},
            {"quantity_in_stock": True},
            {"expiration_date": "31/01/2030"},
        ):
            payload = {"name": "Sal", "category": "Restaurante", **bad}
            resp = client.post("/api/products", json=payload, headers=manager_headers)
            assert resp.status_code == 400, bad

    def test_supplier_fills_vendor_name(self, client, manager_headers, supplier):
        resp = client.post(
            "/api/products",
            json={"name": "Alface", "category": "Restaurante", "supplier_id": supplier["id"]},
            headers=manager_headers,
        )
        assert resp.get_json()["vendor_name"] == "Hortifruti Central"

    def test_unknown_supplier(self, client, manager_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Alface", "category": "Restaurante", "supplier_id": 42},
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_staff_with_grant_can_create(self, client, manager_headers, staff, staff_headers):
        client.post(f"/api/users/{staff.id}/permissions/can_add_products", headers=manager_headers)

        resp = client.post("/api/products", json={"name": "Sal", "category": "Restaurante"}, headers=staff_headers)
        assert resp.status_code == 201


class TestUpdateProduct:

    def test_update_fields(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=3)
        resp = client.put(
            f"/api/products/{product['id']}",
            json={"name": "Mozzarella de Búfala", "threshold": 5, "expiration_date": ""},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["name"] == "Mozzarella de Búfala"
        assert data["threshold"] == 5
        assert data["is_low_stock"] is True
        assert data["expiration_date"] is None

    def test_quantity_cannot_change(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=3)

        resp = client.put(f"/api/products/{product['id']}", json={"quantity_in_stock": 9}, headers=manager_headers)
        assert resp.status_code == 400

        resp = client.put(
            f"/api/products/{product['id']}",
            json={"quantity_in_stock": 3, "unit": "g"},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["quantity_in_stock"] == 3

    def test_not_found(self, client, manager_headers):
        assert client.put("/api/products/999", json={"name": "X"}, headers=manager_headers).status_code == 404

    def test_blank_name_rejected(self, client, manager_headers, make_product):
        product = make_product()
        resp = client.put(f"/api/products/{product['id']}", json={"name": "  "}, headers=manager_headers)
        assert resp.status_code == 400


class TestListProducts:

    def test_filters(self, client, staff_headers, make_product):
        make_product("Farinha", category="Padaria", quantity_in_stock=1, threshold=5)
        make_product("Fermento", category="Padaria", quantity_in_stock=9, threshold=2)
        make_product("Cerveja", category="Bar", quantity_in_stock=24)

        data = client.get("/api/products", headers=staff_headers).get_json()
        assert [p["name"] for p in data["items"]] == ["Cerveja", "Farinha", "Fermento"]
        assert "pagination" not in data

        data = client.get("/api/products?category=Padaria", headers=staff_headers).get_json()
        assert data["count"] == 2

        data = client.get("/api/products?search=ferm", headers=staff_headers).get_json()
        assert [p["name"] for p in data["items"]] == ["Fermento"]

        data = client.get("/api/products?low_stock_only=true", headers=staff_headers).get_json()
        assert [p["name"] for p in data["items"]] == ["Farinha"]

    def test_pagination(self, client, staff_headers, make_product):
        for name in ("A", "B", "C"):
            make_product(name)

        data = client.get("/api/products?page=2&per_page=2", headers=staff_headers).get_json()
        assert [p["name"] for p in data["items"]] == ["C"]
        assert data["pagination"] == {
            "page": 2,
            "per_page": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    def test_categories(self, client, staff_headers, make_product):
        make_product("Farinha", category="Padaria")
        make_product("Cerveja", category="Bar")
        make_product("Vinho", category="Bar")

        data = client.get("/api/products/categories", headers=staff_headers).get_json()
        assert data["items"] == ["Bar", "Padaria"]

    def test_get_one(self, client, staff_headers, make_product):
        product = make_product()
        assert client.get(f"/api/products/{product['id']}", headers=staff_headers).get_json()["name"] == "Mozzarella"
        assert client.get("/api/products/999", headers=staff_headers).status_code == 404


class TestProductPhoto:

    def test_upload_and_serve(self, client, manager_headers, make_product):
        product = make_product()

        resp = client.post(
            f"/api/products/{product['id']}/photo",
            data={"file": (io.BytesIO(b"\x89PNG fake"), "shot.PNG")},
            headers=manager_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200
        url = resp.get_json()["photo_url"]
        assert url.startswith(f"/uploads/product-photos/{product['id']}/")
        assert url.endswith(".png")

        served = client.get(url)
        assert served.status_code == 200
        assert served.data == b"\x89PNG fake"

    def test_rejects_non_image(self, client, manager_headers, make_product):
        product = make_product()
        resp = client.post(
            f"/api/products/{product['id']}/photo",
            data={"file": (io.BytesIO(b"#!/bin/sh"), "evil.sh")},
            headers=manager_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_missing_file(self, client, manager_headers, make_product):
        product = make_product()
        resp = client.post(f"/api/products/{product['id']}/photo", headers=manager_headers)
        assert resp.status_code == 400


class TestDeleteProduct:

    def test_delete_removes_history(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=5, threshold=3)
        client.post(
            "/api/stock-movements",
            json={"product_id": product["id"], "movement_type": "waste", "quantity_change": -4},
            headers=manager_headers,
        )
        assert db.session.query(LowStockAlert).count() == 1

        resp = client.delete(f"/api/products/{product['id']}", headers=manager_headers)

        assert resp.status_code == 200
        assert db.session.query(StockMovement).count() == 0
        assert db.session.query(LowStockAlert).count() == 0
        assert client.get(f"/api/products/{product['id']}", headers=manager_headers).status_code == 404

    def test_invoice_lines_keep_snapshot(self, client, manager_headers, make_product):
        product = make_product(quantity_in_stock=5)
        invoice = client.post(
            "/api/invoices",
            json={"customer_name": "Mesa 1", "items": [{"product_id": product["id"], "quantity": 1}]},
            headers=manager_headers,
        ).get_json()

        assert client.delete(f"/api/products/{product['id']}", headers=manager_headers).status_code == 200

        db.session.expire_all()
        line = db.session.query(InvoiceItem).filter_by(invoice_id=invoice["id"]).one()
        assert line.product_id is None
        assert line.item_name == "Mozzarella"

    def test_referenced_by_purchase_order(self, client, manager_headers, make_product, supplier):
        product = make_product()
        client.post(
            "/api/purchase-orders",
            json={"supplier_id": supplier["id"], "items": [{"product_id": product["id"], "quantity": 2}]},
            headers=manager_headers,
        )

        resp = client.delete(f"/api/products/{product['id']}", headers=manager_headers)
        assert resp.status_code == 409

    def test_not_found(self, client, manager_headers):
        assert client.delete("/api/products/999", headers=manager_headers).status_code == 404
