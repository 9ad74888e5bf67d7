"""
Pytest fixtures for Stockroom backend tests.

Provides an in-memory application, per-test table cleanup and logged-in
clients for each role.
"""

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Company
from stockroom.services import provisioning_service


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BACKUP_RESTORE_ATOMIC': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(username: str, role: str, company_id=None) -> dict:
    """Provision identity + profile; returns {id, email, username}."""
    return provisioning_service.provision_user(
        username=username,
        email=f"{username}@stockroom.test",
        password=TEST_PASSWORD,
        role=role,
        company_id=company_id,
    )


def get_auth_token(client, login: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': login,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def company(db_session):
    company = Company(name="Acme Trading", address="1 Market Road", phone="555-0100")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def admin_user(db_session):
    return make_user("admin", "admin")


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user["email"]))


@pytest.fixture(scope='function')
def staff_user(db_session):
    return make_user("staff", "staff")


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(get_auth_token(client, staff_user["email"]))


@pytest.fixture(scope='function')
def guest_headers(client, db_session):
    guest = make_user("guest", "guest")
    return auth_headers(get_auth_token(client, guest["email"]))
