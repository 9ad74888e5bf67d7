"""
Backup download and restore.

Verifies:
- The backup document carries the four record lists and exported_at
- Restore replaces tables and keeps row ids
- Malformed or incomplete documents are rejected before anything changes
- Non-atomic restore failing midway leaves earlier tables replaced, the
  failing table emptied and later tables untouched; atomic restore changes
  nothing
- Only one restore runs at a time
"""

import json
from datetime import date
from decimal import Decimal
from io import BytesIO

import pytest

from stockroom.errors import BackupParseError, RestoreError, RestoreInProgressError
from stockroom.extensions import db
from stockroom.models import Category, Product, Purchase, PurchaseReturn, Sale
from stockroom.services import backup_service


@pytest.fixture
def seeded(db_session):
    """One row in each backed-up table."""
    db_session.add_all([
        Product(id="prod-old", name="Old Hammer", sku="OLD-1", stock=5, opening_stock=5, status="Low Stock"),
        Sale(
            id="sale-old", product_id="prod-old", product_name="Old Hammer",
            quantity=1, unit_price=Decimal("5.00"), total_amount=Decimal("5.00"), date=date(2024, 1, 2),
        ),
        Purchase(
            id="purchase-old", product_id="prod-old", product_name="Old Hammer", supplier="Acme",
            quantity=5, unit_price=Decimal("3.00"), total_amount=Decimal("15.00"), date=date(2024, 1, 1),
        ),
        PurchaseReturn(
            id="PR-old", purchase_order_id="PO-1", purchase_item_id="purchase-old", product_id="prod-old",
            product_name="Old Hammer", supplier="Acme", original_quantity=5, return_quantity=1,
            unit_price=Decimal("3.00"), total_refund=Decimal("3.00"), reason="Damaged",
        ),
    ])
    db_session.commit()


def _ids(model):
    db.session.expire_all()
    return sorted(row.id for row in db.session.query(model).all())


def _document(**overrides):
    document = {
        "products": [{"id": "prod-new", "name": "New Hammer", "sku": "NEW-1", "stock": 70, "price": "9.50"}],
        "sales": [],
        "purchases": [],
        "purchase_returns": [],
        "exported_at": "2024-06-01T12:00:00Z",
    }
    document.update(overrides)
    return document


def _upload(client, headers, document, query=""):
    body = document if isinstance(document, bytes) else json.dumps(document).encode("utf-8")
    return client.post(
        f"/api/backup/restore{query}",
        data={"file": (BytesIO(body), "backup.json")},
        content_type="multipart/form-data",
        headers=headers,
    )


class TestBackupDownload:

    def test_download_document(self, client, admin_headers, seeded):
        resp = client.get("/api/backup", headers=admin_headers)
        assert resp.status_code == 200

        disposition = resp.headers["Content-Disposition"]
        assert "inventory-backup-" in disposition
        filename = disposition.split("filename=")[1]
        assert ":" not in filename

        document = json.loads(resp.data)
        assert set(document) == {"products", "sales", "purchases", "purchase_returns", "exported_at"}
        assert document["exported_at"].endswith("Z")
        assert document["sales"][0]["unit_price"] == "5.00"
        assert document["sales"][0]["date"] == "2024-01-02"
        assert document["purchase_returns"][0]["id"] == "PR-old"

    def test_backup_filename(self):
        assert backup_service.backup_filename("2024-06-01T12:00:00Z") == "inventory-backup-2024-06-01T12-00-00Z.json"

    def test_staff_cannot_download(self, client, staff_headers):
        resp = client.get("/api/backup", headers=staff_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "backup"


class TestRestore:

    def test_round_trip(self, client, admin_headers, seeded):
        snapshot = client.get("/api/backup", headers=admin_headers).data

        client.delete("/api/products/prod-old", headers=admin_headers)
        assert _ids(Product) == []

        resp = _upload(client, admin_headers, snapshot)
        assert resp.status_code == 200
        assert resp.json["restored"] == {"products": 1, "sales": 1, "purchases": 1, "purchase_returns": 1}
        assert resp.json["atomic"] is False
        assert _ids(Product) == ["prod-old"]
        assert _ids(PurchaseReturn) == ["PR-old"]

    def test_replaces_existing_rows(self, client, admin_headers, seeded):
        resp = _upload(client, admin_headers, _document())
        assert resp.status_code == 200

        assert _ids(Product) == ["prod-new"]
        assert _ids(Sale) == []
        assert _ids(Purchase) == []
        assert _ids(PurchaseReturn) == []

        product = db.session.get(Product, "prod-new")
        assert product.price == Decimal("9.50")

    def test_unknown_keys_ignored_and_missing_ids_generated(self, client, admin_headers, db_session):
        document = _document(sales=[{
            "product_id": "prod-new", "product_name": "New Hammer", "quantity": 2,
            "unit_price": "9.50", "total_amount": "19.00", "date": "2024-05-05",
            "legacyField": "ignored",
        }])
        resp = _upload(client, admin_headers, document)
        assert resp.status_code == 200

        sales = db.session.query(Sale).all()
        assert len(sales) == 1
        assert sales[0].id

    def test_unknown_category_reference_dropped(self, client, admin_headers, db_session):
        db_session.add(Category(id="cat-1", name="Tools"))
        db_session.commit()

        document = _document(products=[
            {"id": "a", "name": "A", "sku": "A", "category_id": "cat-1"},
            {"id": "b", "name": "B", "sku": "B", "category_id": "cat-gone"},
        ])
        assert _upload(client, admin_headers, document).status_code == 200

        db.session.expire_all()
        assert db.session.get(Product, "a").category_id == "cat-1"
        assert db.session.get(Product, "b").category_id is None

    def test_raw_json_body(self, client, admin_headers, db_session):
        resp = client.post(
            "/api/backup/restore?atomic=true",
            data=json.dumps(_document()),
            content_type="application/json",
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["atomic"] is True


class TestRestoreRejects:

    def test_malformed_json(self, client, admin_headers, seeded):
        resp = _upload(client, admin_headers, b"{not json")

        assert resp.status_code == 400
        assert resp.json["kind"] == "malformed_backup"
        assert _ids(Product) == ["prod-old"]

    @pytest.mark.parametrize("missing", ["products", "sales", "purchases", "purchase_returns"])
    def test_missing_record_list(self, client, admin_headers, seeded, missing):
        document = _document()
        del document[missing]

        resp = _upload(client, admin_headers, document)
        assert resp.status_code == 400
        assert missing in resp.json["error"]
        assert _ids(Product) == ["prod-old"]
        assert _ids(Sale) == ["sale-old"]

    def test_parse_backup_rejects_non_object(self):
        with pytest.raises(BackupParseError):
            backup_service.parse_backup(b"[1, 2, 3]")

    def test_guest_cannot_restore(self, client, guest_headers):
        resp = _upload(client, guest_headers, _document())
        assert resp.status_code == 403


class TestRestoreFailureModes:

    # A sale without product_id/product_name violates NOT NULL on insert
    BROKEN_SALES = [{"id": "sale-broken"}]

    def test_non_atomic_failure_is_partial(self, client, admin_headers, seeded):
        resp = _upload(client, admin_headers, _document(sales=self.BROKEN_SALES))

        assert resp.status_code == 500
        assert resp.json["kind"] == "restore_failed"
        assert resp.json["failed_table"] == "sales"
        assert resp.json["completed_tables"] == ["products"]

        assert _ids(Product) == ["prod-new"]
        assert _ids(Sale) == []
        assert _ids(Purchase) == ["purchase-old"]
        assert _ids(PurchaseReturn) == ["PR-old"]

    def test_atomic_failure_changes_nothing(self, client, admin_headers, seeded):
        resp = _upload(client, admin_headers, _document(sales=self.BROKEN_SALES), query="?atomic=true")

        assert resp.status_code == 500
        assert resp.json["atomic"] is True
        assert resp.json["completed_tables"] == []

        assert _ids(Product) == ["prod-old"]
        assert _ids(Sale) == ["sale-old"]
        assert _ids(Purchase) == ["purchase-old"]
        assert _ids(PurchaseReturn) == ["PR-old"]

    def test_atomic_from_config(self, app, seeded):
        app.config["BACKUP_RESTORE_ATOMIC"] = True
        try:
            with pytest.raises(RestoreError) as excinfo:
                backup_service.restore_from_backup(_document(sales=self.BROKEN_SALES))
            assert excinfo.value.atomic is True
        finally:
            app.config["BACKUP_RESTORE_ATOMIC"] = False

        assert _ids(Product) == ["prod-old"]

    def test_second_restore_rejected_while_running(self, db_session):
        assert backup_service._restore_lock.acquire(blocking=False)
        try:
            with pytest.raises(RestoreInProgressError):
                backup_service.restore_from_backup(_document())
        finally:
            backup_service._restore_lock.release()

        assert _ids(Product) == []

    def test_busy_maps_to_409(self, client, admin_headers):
        backup_service._restore_lock.acquire()
        try:
            resp = _upload(client, admin_headers, _document())
        finally:
            backup_service._restore_lock.release()

        assert resp.status_code == 409
        assert resp.json["kind"] == "busy"
