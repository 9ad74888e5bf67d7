"""
Authorization tests for the Stockroom API.

Verifies:
- Unauthenticated requests return 401
- Guest and staff roles are denied writes they do not hold (403)
- Admin-only areas reject managers
- Denials and failed logins leave security events
- The health endpoint is public
"""

import pytest

from conftest import auth_headers, get_auth_token, make_user
from stockroom.models import SecurityEvent


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/categories"),
            ("POST", "/api/units"),
            ("GET", "/api/products"),
            ("GET", "/api/sales"),
            ("GET", "/api/purchases"),
            ("GET", "/api/purchase-returns"),
            ("GET", "/api/sales-returns"),
            ("GET", "/api/sales-vouchers"),
            ("GET", "/api/purchase-vouchers"),
            ("GET", "/api/companies"),
            ("GET", "/api/admin/profiles"),
            ("POST", "/api/admin/create-user"),
            ("GET", "/api/backup"),
            ("POST", "/api/backup/restore"),
            ("GET", "/api/auth/session"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["kind"] == "unauthorized"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/products", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401


# =============================================================================
# ROLE DENIALS - 403
# =============================================================================


class TestPermissionDenied:

    def test_guest_cannot_create_product(self, client, guest_headers):
        resp = client.post("/api/products", json={"name": "Saw", "sku": "SAW-1"}, headers=guest_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "create"

    def test_staff_cannot_delete_sale(self, client, staff_headers):
        resp = client.delete("/api/sales/anything", headers=staff_headers)
        assert resp.status_code == 403

    def test_staff_cannot_download_backup(self, client, staff_headers):
        resp = client.get("/api/backup", headers=staff_headers)
        assert resp.status_code == 403

    def test_manager_cannot_manage_companies(self, client, db_session):
        manager = make_user("manager", "manager")
        headers = auth_headers(get_auth_token(client, manager["email"]))

        assert client.get("/api/companies", headers=headers).status_code == 403
        assert client.get("/api/admin/profiles", headers=headers).status_code == 403

    def test_admin_allowed(self, client, admin_headers):
        assert client.get("/api/companies", headers=admin_headers).status_code == 200
        assert client.get("/api/backup", headers=admin_headers).status_code == 200


# =============================================================================
# SECURITY EVENTS
# =============================================================================


class TestSecurityEvents:

    def test_denial_is_recorded(self, client, staff_user, staff_headers, db_session):
        client.get("/api/backup", headers=staff_headers)

        event = db_session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.user_id == staff_user["id"]
        assert event.resource == "/api/backup"
        assert event.success is False

    def test_failed_login_is_recorded(self, client, staff_user, db_session):
        client.post("/api/auth/login", json={"email": staff_user["email"], "password": "wrong"})

        assert db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1


# =============================================================================
# PUBLIC ENDPOINTS - NO AUTH REQUIRED
# =============================================================================


class TestPublicEndpoints:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["checks"]["database"]["status"] == "healthy"
