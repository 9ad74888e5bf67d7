"""
Privileged user provisioning (POST /api/admin/create-user).

Verifies:
- The caller is re-verified: 401 without a valid token, 403 for non-admins
- Identity and profile are created together
- A failed profile insert removes the identity again
"""

import pytest

from stockroom.extensions import db
from stockroom.models import AuthIdentity, SecurityEvent, UserProfile
from stockroom.permissions import DEFAULT_ROLE_PERMISSIONS
from stockroom.services import profile_service, provisioning_service

from conftest import get_auth_token


def _payload(**overrides):
    payload = {
        "username": "newclerk",
        "email": "newclerk@stockroom.test",
        "password": "secret1",
        "role": "staff",
        "company_id": "none",
    }
    payload.update(overrides)
    return payload


def _identity_count():
    db.session.expire_all()
    return db.session.query(AuthIdentity).count()


class TestCallerVerification:

    def test_missing_token(self, client, db_session):
        resp = client.post("/api/admin/create-user", json=_payload())
        assert resp.status_code == 401
        assert resp.json["error"] == "Unauthorized"
        assert _identity_count() == 0

    def test_invalid_token(self, client, db_session):
        resp = client.post(
            "/api/admin/create-user",
            json=_payload(),
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert resp.status_code == 401

    def test_staff_forbidden(self, client, staff_headers):
        before = _identity_count()
        resp = client.post("/api/admin/create-user", json=_payload(), headers=staff_headers)

        assert resp.status_code == 403
        assert resp.json["error"] == "Insufficient permissions"
        assert _identity_count() == before

        denied = db.session.query(SecurityEvent).filter_by(event_type="ROLE_DENIED").count()
        assert denied == 1

    def test_identity_without_profile_forbidden(self, client, db_session):
        from stockroom.services import auth_service

        auth_service.create_identity("orphan@stockroom.test", "secret1")
        token = get_auth_token(client, "orphan@stockroom.test", "secret1")
        assert token

        resp = client.post(
            "/api/admin/create-user",
            json=_payload(),
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 403


class TestProvisioning:

    def test_admin_creates_user(self, client, admin_headers):
        resp = client.post("/api/admin/create-user", json=_payload(), headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["success"] is True
        user = resp.json["user"]
        assert user["email"] == "newclerk@stockroom.test"
        assert user["username"] == "newclerk"

        identity = db.session.get(AuthIdentity, user["id"])
        assert identity.email_confirmed_at is not None
        assert identity.user_metadata == {"username": "newclerk"}

        profile = db.session.query(UserProfile).filter_by(user_id=user["id"]).one()
        assert profile.role == "staff"
        assert profile.company_id is None
        assert profile.is_active is True
        assert profile.permissions == DEFAULT_ROLE_PERMISSIONS["staff"]

        assert get_auth_token(client, "newclerk", "secret1")

    def test_company_assignment(self, client, admin_headers, company):
        resp = client.post(
            "/api/admin/create-user",
            json=_payload(company_id=company.id),
            headers=admin_headers,
        )
        assert resp.status_code == 200

        profile = db.session.query(UserProfile).filter_by(username="newclerk").one()
        assert profile.company_id == company.id

    def test_duplicate_email(self, client, admin_headers):
        client.post("/api/admin/create-user", json=_payload(), headers=admin_headers)
        before = _identity_count()

        resp = client.post(
            "/api/admin/create-user",
            json=_payload(username="someoneelse"),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "already been registered" in resp.json["error"]
        assert _identity_count() == before

    @pytest.mark.parametrize("password", ["", "12345"])
    def test_weak_password(self, client, admin_headers, password):
        resp = client.post("/api/admin/create-user", json=_payload(password=password), headers=admin_headers)
        assert resp.status_code == 400
        assert db.session.query(AuthIdentity).filter_by(email="newclerk@stockroom.test").count() == 0


class TestProfileFailureCompensation:

    def test_invalid_role_removes_identity(self, client, admin_headers):
        before = _identity_count()
        resp = client.post("/api/admin/create-user", json=_payload(role="owner"), headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["error"].startswith("Failed to create user profile:")
        assert _identity_count() == before
        assert db.session.query(AuthIdentity).filter_by(email="newclerk@stockroom.test").count() == 0

    def test_duplicate_username_removes_identity(self, client, admin_headers):
        resp = client.post(
            "/api/admin/create-user",
            json=_payload(username="admin", email="second-admin@stockroom.test"),
            headers=admin_headers,
        )

        assert resp.status_code == 400
        assert resp.json["error"] == "Failed to create user profile: username may already exist"
        db.session.expire_all()
        assert db.session.query(AuthIdentity).filter_by(email="second-admin@stockroom.test").count() == 0

    def test_unknown_company_removes_identity(self, client, admin_headers):
        resp = client.post(
            "/api/admin/create-user",
            json=_payload(company_id="no-such-company"),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert db.session.query(AuthIdentity).filter_by(email="newclerk@stockroom.test").count() == 0

    def test_non_string_company_removes_identity(self, client, admin_headers):
        resp = client.post(
            "/api/admin/create-user",
            json=_payload(company_id=["a", "b"]),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["kind"] == "provisioning_failed"
        db.session.expire_all()
        assert db.session.query(AuthIdentity).filter_by(email="newclerk@stockroom.test").count() == 0

    def test_unexpected_profile_error_removes_identity(self, client, admin_headers, monkeypatch):
        def broken_build_profile(**kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(profile_service, "build_profile", broken_build_profile)
        resp = client.post("/api/admin/create-user", json=_payload(), headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "Failed to create user profile"
        assert "database went away" not in resp.get_data(as_text=True)
        db.session.expire_all()
        assert db.session.query(AuthIdentity).filter_by(email="newclerk@stockroom.test").count() == 0

    def test_unexpected_failure_hides_details(self, client, admin_headers, monkeypatch):
        def exploding_provision(**kwargs):
            raise RuntimeError("Incorrect number of values in identifier")

        monkeypatch.setattr(provisioning_service, "provision_user", exploding_provision)
        resp = client.post("/api/admin/create-user", json=_payload(), headers=admin_headers)

        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error", "kind": "internal"}
