"""Supplier API tests: CNPJ handling, validation and delete rules."""

from stockroom.extensions import db
from stockroom.models import Product


class TestSupplierCrud:

    def test_create_formats_cnpj(self, client, supplier):
        assert supplier["cnpj"] == "11.222.333/0001-81"
        assert supplier["delivery_lead_time_days"] == 2

    def test_cnpj_optional(self, client, manager_headers):
        resp = client.post("/api/suppliers", json={"name": "Padaria do Bairro", "cnpj": ""}, headers=manager_headers)
        assert resp.status_code == 201
        assert resp.get_json()["cnpj"] is None

    def test_invalid_cnpj(self, client, manager_headers):
        resp = client.post("/api/suppliers", json={"name": "X", "cnpj": "11222333000182"}, headers=manager_headers)
        assert resp.status_code == 400

    def test_duplicate_cnpj_any_format(self, client, manager_headers, supplier):
        resp = client.post(
            "/api/suppliers",
            json={"name": "Outro", "cnpj": "11.222.333/0001-81"},
            headers=manager_headers,
        )
        assert resp.status_code == 409

    def test_update_keeps_own_cnpj(self, client, manager_headers, supplier):
        resp = client.put(
            f"/api/suppliers/{supplier['id']}",
            json={"cnpj": "11222333000181", "contact_name": "Dona Maria"},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["contact_name"] == "Dona Maria"

    def test_update_to_taken_cnpj(self, client, manager_headers, supplier):
        other = client.post(
            "/api/suppliers",
            json={"name": "Bebidas SA", "cnpj": "12.345.678/0001-95"},
            headers=manager_headers,
        ).get_json()

        resp = client.put(
            f"/api/suppliers/{other['id']}",
            json={"cnpj": "11222333000181"},
            headers=manager_headers,
        )
        assert resp.status_code == 409

    def test_field_rules(self, client, manager_headers):
        for bad in ({"email": "not-an-email"}, {"delivery_lead_time_days": -1}):
            resp = client.post("/api/suppliers", json={"name": "X", **bad}, headers=manager_headers)
            assert resp.status_code == 400, bad

    def test_list_and_search(self, client, staff_headers, manager_headers, supplier):
        client.post("/api/suppliers", json={"name": "Adega Sul", "contact_name": "João"}, headers=manager_headers)

        data = client.get("/api/suppliers", headers=staff_headers).get_json()
        assert [s["name"] for s in data["items"]] == ["Adega Sul", "Hortifruti Central"]

        data = client.get("/api/suppliers?search=333", headers=staff_headers).get_json()
        assert [s["name"] for s in data["items"]] == ["Hortifruti Central"]

    def test_get_missing(self, client, staff_headers):
        assert client.get("/api/suppliers/77", headers=staff_headers).status_code == 404

    def test_cnpj_check(self, client, staff_headers):
        data = client.get("/api/suppliers/cnpj/check?value=112223330001", headers=staff_headers).get_json()
        assert data == {"formatted": "11.222.333/0001", "valid": False}

        data = client.get("/api/suppliers/cnpj/check?value=11222333000181", headers=staff_headers).get_json()
        assert data == {"formatted": "11.222.333/0001-81", "valid": True}


class TestSupplierPermissions:

    def test_supervisor_creates_but_cannot_delete(self, client, supervisor_headers):
        created = client.post("/api/suppliers", json={"name": "Laticínios"}, headers=supervisor_headers)
        assert created.status_code == 201

        resp = client.delete(f"/api/suppliers/{created.get_json()['id']}", headers=supervisor_headers)
        assert resp.status_code == 403


class TestDeleteSupplier:

    def test_products_keep_vendor_name(self, client, manager_headers, supplier, make_product):
        product = make_product("Alface", supplier_id=supplier["id"])

        resp = client.delete(f"/api/suppliers/{supplier['id']}", headers=manager_headers)
        assert resp.status_code == 200

        db.session.expire_all()
        stored = db.session.get(Product, product["id"])
        assert stored.supplier_id is None
        assert stored.vendor_name == "Hortifruti Central"

    def test_blocked_by_purchase_orders(self, client, manager_headers, supplier, make_product):
        product = make_product()
        client.post(
            "/api/purchase-orders",
            json={"supplier_id": supplier["id"], "items": [{"product_id": product["id"], "quantity": 1}]},
            headers=manager_headers,
        )

        resp = client.delete(f"/api/suppliers/{supplier['id']}", headers=manager_headers)
        assert resp.status_code == 409

    def test_missing(self, client, manager_headers):
        assert client.delete("/api/suppliers/77", headers=manager_headers).status_code == 404
