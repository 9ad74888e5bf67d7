"""
Sales and purchase vouchers.

Verifies:
- Totals are recomputed from items; discount cannot exceed the total
- Items are deleted with their voucher
- Sales voucher PDF download
"""

from stockroom.extensions import db
from stockroom.models import SalesVoucherItem


ITEMS = [
    {"product_id": "p-1", "product_name": "Hammer", "quantity": 2, "unit_price": "15.00"},
    {"product_id": "p-2", "product_name": "Nails", "quantity": 100, "unit_price": "0.10"},
]


class TestSalesVouchers:

    def test_create_computes_totals(self, client, staff_headers):
        resp = client.post("/api/sales-vouchers", json={
            "customer_name": "Jane",
            "discount_amount": "5.00",
            "payment_method": "Card",
            "items": ITEMS,
        }, headers=staff_headers)

        assert resp.status_code == 201
        voucher = resp.json["voucher"]
        assert voucher["voucher_number"].startswith("SV")
        assert voucher["total_amount"] == "40.00"
        assert voucher["discount_amount"] == "5.00"
        assert voucher["final_amount"] == "35.00"
        assert [i["total_amount"] for i in voucher["items"]] == ["30.00", "10.00"]

    def test_discount_cannot_exceed_total(self, client, staff_headers):
        resp = client.post("/api/sales-vouchers", json={
            "discount_amount": "100.00",
            "items": ITEMS,
        }, headers=staff_headers)
        assert resp.status_code == 400

    def test_items_required(self, client, staff_headers):
        resp = client.post("/api/sales-vouchers", json={"items": []}, headers=staff_headers)
        assert resp.status_code == 400

    def test_unknown_payment_method(self, client, staff_headers):
        resp = client.post("/api/sales-vouchers", json={
            "payment_method": "Barter",
            "items": ITEMS,
        }, headers=staff_headers)
        assert resp.status_code == 400

    def test_update_header(self, client, staff_headers):
        voucher = client.post("/api/sales-vouchers", json={"items": ITEMS}, headers=staff_headers).json["voucher"]

        resp = client.patch(f"/api/sales-vouchers/{voucher['id']}", json={
            "customer_name": "Walk-in",
            "discount_amount": "10.00",
        }, headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["voucher"]["customer_name"] == "Walk-in"
        assert resp.json["voucher"]["final_amount"] == "30.00"
        assert len(resp.json["voucher"]["items"]) == 2

    def test_delete_removes_items(self, client, admin_headers):
        voucher = client.post("/api/sales-vouchers", json={"items": ITEMS}, headers=admin_headers).json["voucher"]

        resp = client.delete(f"/api/sales-vouchers/{voucher['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.query(SalesVoucherItem).count() == 0
        assert client.get("/api/sales-vouchers", headers=admin_headers).json["items"] == []

    def test_pdf_download(self, client, staff_headers):
        voucher = client.post("/api/sales-vouchers", json={
            "discount_amount": "1.00",
            "items": ITEMS,
        }, headers=staff_headers).json["voucher"]

        resp = client.get(f"/api/sales-vouchers/{voucher['id']}/pdf", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.data.startswith(b"%PDF")
        assert f"sales-voucher-{voucher['voucher_number']}.pdf" in resp.headers["Content-Disposition"]


class TestPurchaseVouchers:

    def test_create(self, client, staff_headers):
        resp = client.post("/api/purchase-vouchers", json={
            "supplier_name": "Fasteners Ltd",
            "items": [dict(item, supplier="Fasteners Ltd") for item in ITEMS],
        }, headers=staff_headers)

        assert resp.status_code == 201
        voucher = resp.json["voucher"]
        assert voucher["voucher_number"].startswith("PV")
        assert voucher["status"] == "Ordered"
        assert voucher["final_amount"] == "40.00"

    def test_supplier_required(self, client, staff_headers):
        resp = client.post("/api/purchase-vouchers", json={"items": ITEMS}, headers=staff_headers)
        assert resp.status_code == 400

    def test_list_and_delete(self, client, admin_headers):
        voucher = client.post("/api/purchase-vouchers", json={
            "supplier_name": "Fasteners Ltd",
            "items": ITEMS,
        }, headers=admin_headers).json["voucher"]

        listed = client.get("/api/purchase-vouchers", headers=admin_headers).json["items"]
        assert [v["id"] for v in listed] == [voucher["id"]]

        assert client.delete(f"/api/purchase-vouchers/{voucher['id']}", headers=admin_headers).status_code == 200
