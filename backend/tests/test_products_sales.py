"""
Products, sales and purchases.

Verifies:
- Product status, recommendation and reorder point derive from stock
- SKU uniqueness
- Sale totals default to unit_price * quantity
- Invoice and purchase-order PDFs are served with their file names
"""

import pytest


def _create_product(client, headers, **overrides):
    payload = {"name": "Hammer", "sku": "HM-001", "price": "15.00", "sell_price": "15.00"}
    payload.update(overrides)
    return client.post("/api/products", json=payload, headers=headers)


class TestProducts:

    @pytest.mark.parametrize(
        "opening_stock,status,recommendation,reorder_point",
        [
            (60, "In Stock", "Optimal stock level", 12),
            (51, "In Stock", "Optimal stock level", 10),
            (50, "Low Stock", "Consider restocking", 10),
            (5, "Low Stock", "Consider restocking", 10),
            (0, "Out of Stock", "Consider restocking", 10),
        ],
    )
    def test_create_derives_stock_fields(self, client, staff_headers, opening_stock, status, recommendation, reorder_point):
        resp = _create_product(client, staff_headers, opening_stock=opening_stock)
        assert resp.status_code == 201

        product = resp.json["product"]
        assert product["stock"] == opening_stock
        assert product["status"] == status
        assert product["ai_recommendation"] == recommendation
        assert product["reorder_point"] == reorder_point

    def test_explicit_reorder_point_kept(self, client, staff_headers):
        resp = _create_product(client, staff_headers, opening_stock=100, reorder_point=7)
        assert resp.json["product"]["reorder_point"] == 7

    def test_stock_update_rederives_status(self, client, staff_headers):
        product = _create_product(client, staff_headers, opening_stock=80).json["product"]

        resp = client.patch(f"/api/products/{product['id']}", json={"stock": 0}, headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["product"]["status"] == "Out of Stock"
        assert resp.json["product"]["opening_stock"] == 80

    def test_money_serialized_as_strings(self, client, staff_headers):
        product = _create_product(client, staff_headers, price=12.5).json["product"]
        assert product["price"] == "12.50"
        assert product["purchase_price"] == "0.00"

    def test_duplicate_sku(self, client, staff_headers):
        _create_product(client, staff_headers)
        resp = _create_product(client, staff_headers, name="Other Hammer")
        assert resp.status_code == 409
        assert resp.json["kind"] == "already_exists"

    def test_negative_price_rejected(self, client, staff_headers):
        resp = _create_product(client, staff_headers, price="-1")
        assert resp.status_code == 400

    def test_unknown_category_rejected(self, client, staff_headers):
        resp = _create_product(client, staff_headers, category_id="nope")
        assert resp.status_code == 400
        assert resp.json["kind"] == "invalid"

    def test_unknown_field_rejected(self, client, staff_headers):
        resp = _create_product(client, staff_headers, status="In Stock")
        assert resp.status_code == 400

    def test_get_and_delete(self, client, admin_headers):
        product = _create_product(client, admin_headers).json["product"]

        assert client.get(f"/api/products/{product['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/products/{product['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/products/{product['id']}", headers=admin_headers).status_code == 404


class TestSales:

    def test_total_defaults_to_price_times_quantity(self, client, staff_headers):
        resp = client.post("/api/sales", json={
            "product_id": "p-1",
            "product_name": "Hammer",
            "quantity": 4,
            "unit_price": "12.50",
            "date": "2024-05-01",
        }, headers=staff_headers)

        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["total_amount"] == "50.00"
        assert sale["status"] == "Completed"
        assert sale["date"] == "2024-05-01"

    def test_quantity_must_be_positive(self, client, staff_headers):
        resp = client.post("/api/sales", json={
            "product_id": "p-1",
            "product_name": "Hammer",
            "quantity": 0,
            "unit_price": "1.00",
        }, headers=staff_headers)
        assert resp.status_code == 400

    def test_invalid_status(self, client, staff_headers):
        resp = client.post("/api/sales", json={
            "product_id": "p-1",
            "product_name": "Hammer",
            "quantity": 1,
            "unit_price": "1.00",
            "status": "Shipped",
        }, headers=staff_headers)
        assert resp.status_code == 400

    def test_update_recomputes_total(self, client, staff_headers):
        sale = client.post("/api/sales", json={
            "product_id": "p-1", "product_name": "Hammer", "quantity": 2, "unit_price": "3.00",
        }, headers=staff_headers).json["sale"]

        resp = client.patch(f"/api/sales/{sale['id']}", json={"quantity": 5}, headers=staff_headers)
        assert resp.json["sale"]["total_amount"] == "15.00"

    def test_invoice_pdf(self, client, staff_headers):
        sale = client.post("/api/sales", json={
            "product_id": "p-1", "product_name": "Hammer", "quantity": 1, "unit_price": "9.99",
        }, headers=staff_headers).json["sale"]

        resp = client.get(f"/api/sales/{sale['id']}/invoice.pdf", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data.startswith(b"%PDF")
        assert f"sales-invoice-{sale['id']}.pdf" in resp.headers["Content-Disposition"]

    def test_invoice_for_unknown_sale(self, client, staff_headers):
        resp = client.get("/api/sales/missing/invoice.pdf", headers=staff_headers)
        assert resp.status_code == 404


class TestPurchases:

    def _purchase(self, client, headers, **overrides):
        payload = {
            "product_id": "p-1",
            "product_name": "Nails",
            "supplier": "Fasteners Ltd",
            "quantity": 100,
            "unit_price": "0.10",
            "purchase_order_id": "PO-1",
        }
        payload.update(overrides)
        return client.post("/api/purchases", json=payload, headers=headers)

    def test_create_defaults(self, client, staff_headers):
        resp = self._purchase(client, staff_headers)
        assert resp.status_code == 201
        assert resp.json["purchase"]["total_amount"] == "10.00"
        assert resp.json["purchase"]["status"] == "Received"

    def test_supplier_required(self, client, staff_headers):
        resp = client.post("/api/purchases", json={
            "product_id": "p-1", "product_name": "Nails", "quantity": 1, "unit_price": "1.00",
        }, headers=staff_headers)
        assert resp.status_code == 400

    def test_filter_by_order(self, client, staff_headers):
        self._purchase(client, staff_headers)
        self._purchase(client, staff_headers, product_name="Screws")
        self._purchase(client, staff_headers, purchase_order_id="PO-2")

        resp = client.get("/api/purchases?purchase_order_id=PO-1", headers=staff_headers)
        assert sorted(p["product_name"] for p in resp.json["items"]) == ["Nails", "Screws"]

    def test_purchase_order_pdf(self, client, staff_headers):
        purchase = self._purchase(client, staff_headers).json["purchase"]
        self._purchase(client, staff_headers, product_name="Screws")

        resp = client.get(f"/api/purchases/{purchase['id']}/purchase-order.pdf", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.data.startswith(b"%PDF")
        assert "purchase-order-PO-1.pdf" in resp.headers["Content-Disposition"]
