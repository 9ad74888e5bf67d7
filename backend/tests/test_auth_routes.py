"""
Authentication, profiles and companies.

Verifies:
- Login by email or username; failures are logged as security events
- Deactivated profiles cannot log in
- Refresh rotates the token and logout revokes it
- Administrators manage profiles and companies; others get 403
"""

from stockroom.extensions import db
from stockroom.models import SecurityEvent, SessionToken, UserProfile
from stockroom.permissions import DEFAULT_ROLE_PERMISSIONS

from conftest import TEST_PASSWORD, auth_headers, get_auth_token, make_user


class TestLogin:

    def test_login_by_email(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"email": staff_user["email"], "password": TEST_PASSWORD})

        assert resp.status_code == 200
        assert resp.json["token"]
        assert resp.json["user"]["email"] == staff_user["email"]
        assert resp.json["profile"]["username"] == "staff"
        assert resp.json["profile"]["company"] is None
        assert resp.json["session"]["is_revoked"] is False

    def test_login_by_username_includes_company(self, client, company):
        make_user("clerk", "staff", company_id=company.id)
        resp = client.post("/api/auth/login", json={"username": "clerk", "password": TEST_PASSWORD})

        assert resp.status_code == 200
        assert resp.json["profile"]["company"]["name"] == "Acme Trading"

    def test_wrong_password(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"email": staff_user["email"], "password": "nope"})

        assert resp.status_code == 401
        assert db.session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "x@y.z"})
        assert resp.status_code == 400

    def test_deactivated_profile(self, client, staff_user):
        profile = db.session.query(UserProfile).filter_by(user_id=staff_user["id"]).one()
        profile.is_active = False
        db.session.commit()

        resp = client.post("/api/auth/login", json={"email": staff_user["email"], "password": TEST_PASSWORD})
        assert resp.status_code == 403


class TestSessionLifecycle:

    def test_session_endpoint(self, client, staff_headers):
        resp = client.get("/api/auth/session", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["profile"]["role"] == "staff"
        assert resp.json["profile"]["permissions"] == DEFAULT_ROLE_PERMISSIONS["staff"]

    def test_refresh_rotates_token(self, client, staff_headers):
        resp = client.post("/api/auth/refresh", headers=staff_headers)
        assert resp.status_code == 200

        new_headers = auth_headers(resp.json["token"])
        assert client.get("/api/auth/session", headers=new_headers).status_code == 200
        assert client.get("/api/auth/session", headers=staff_headers).status_code == 401

    def test_logout_revokes(self, client, staff_headers):
        assert client.post("/api/auth/logout", headers=staff_headers).status_code == 200
        assert client.get("/api/auth/session", headers=staff_headers).status_code == 401
        assert client.post("/api/auth/logout", headers=staff_headers).status_code == 401

    def test_deactivation_ends_existing_session(self, client, staff_user, staff_headers):
        profile = db.session.query(UserProfile).filter_by(user_id=staff_user["id"]).one()
        profile.is_active = False
        db.session.commit()

        assert client.get("/api/auth/session", headers=staff_headers).status_code == 401


class TestProfilesAdmin:

    def _profile_id(self, user):
        db.session.expire_all()
        return db.session.query(UserProfile).filter_by(user_id=user["id"]).one().id

    def test_list_profiles(self, client, admin_headers, staff_user):
        resp = client.get("/api/admin/profiles", headers=admin_headers)
        assert resp.status_code == 200
        emails = sorted(p["email"] for p in resp.json["items"])
        assert emails == ["admin@stockroom.test", "staff@stockroom.test"]

    def test_role_change_resets_permissions(self, client, admin_headers, staff_user):
        profile_id = self._profile_id(staff_user)
        resp = client.patch(f"/api/admin/profiles/{profile_id}", json={"role": "guest"}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["profile"]["role"] == "guest"
        assert resp.json["profile"]["permissions"] == ["read"]

    def test_explicit_permissions(self, client, admin_headers, staff_user):
        profile_id = self._profile_id(staff_user)
        resp = client.patch(
            f"/api/admin/profiles/{profile_id}",
            json={"permissions": ["read", "backup", "read"]},
            headers=admin_headers,
        )
        assert resp.json["profile"]["permissions"] == ["read", "backup"]

    def test_unknown_permission_rejected(self, client, admin_headers, staff_user):
        profile_id = self._profile_id(staff_user)
        resp = client.patch(
            f"/api/admin/profiles/{profile_id}",
            json={"permissions": ["launch_rockets"]},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_username_conflict(self, client, admin_headers, staff_user):
        profile_id = self._profile_id(staff_user)
        resp = client.patch(f"/api/admin/profiles/{profile_id}", json={"username": "admin"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_delete_profile_removes_login(self, client, admin_headers, staff_user):
        profile_id = self._profile_id(staff_user)
        assert client.delete(f"/api/admin/profiles/{profile_id}", headers=admin_headers).status_code == 200
        assert get_auth_token(client, staff_user["email"]) is None

    def test_deactivation_revokes_sessions(self, client, admin_headers, staff_user, staff_headers):
        profile_id = self._profile_id(staff_user)
        resp = client.patch(f"/api/admin/profiles/{profile_id}", json={"is_active": False}, headers=admin_headers)
        assert resp.status_code == 200

        db.session.expire_all()
        sessions = db.session.query(SessionToken).filter_by(user_id=staff_user["id"]).all()
        assert sessions
        assert all(s.is_revoked for s in sessions)
        assert {s.revoked_reason for s in sessions} == {"Profile deactivated"}

    def test_cannot_delete_self(self, client, admin_headers, admin_user):
        profile_id = self._profile_id(admin_user)
        resp = client.delete(f"/api/admin/profiles/{profile_id}", headers=admin_headers)
        assert resp.status_code == 400

    def test_staff_forbidden(self, client, staff_headers):
        assert client.get("/api/admin/profiles", headers=staff_headers).status_code == 403
        assert client.get("/api/admin/roles", headers=staff_headers).status_code == 403


class TestCompanies:

    def test_create_blank_optionals_become_null(self, client, admin_headers):
        resp = client.post("/api/companies", json={
            "name": "  Northwind  ",
            "address": "",
            "phone": "",
            "email": "",
        }, headers=admin_headers)

        assert resp.status_code == 201
        company = resp.json["company"]
        assert company["name"] == "Northwind"
        assert company["address"] is None
        assert company["phone"] is None
        assert company["email"] is None
        assert company["user_count"] == 0

    def test_name_required(self, client, admin_headers):
        resp = client.post("/api/companies", json={"name": "  "}, headers=admin_headers)
        assert resp.status_code == 400

    def test_user_count_and_delete_detaches(self, client, admin_headers, company):
        clerk = make_user("clerk", "staff", company_id=company.id)
        company_id = company.id

        listed = client.get("/api/companies", headers=admin_headers).json["items"]
        assert listed[0]["user_count"] == 1

        assert client.delete(f"/api/companies/{company_id}", headers=admin_headers).status_code == 200

        db.session.expire_all()
        profile = db.session.query(UserProfile).filter_by(user_id=clerk["id"]).one()
        assert profile.company_id is None

    def test_update(self, client, admin_headers, company):
        resp = client.patch(f"/api/companies/{company.id}", json={"phone": "555-0199"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["company"]["phone"] == "555-0199"

    def test_staff_forbidden(self, client, staff_headers):
        assert client.get("/api/companies", headers=staff_headers).status_code == 403
