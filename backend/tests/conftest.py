"""
Pytest fixtures for stockroom backend tests.

Each test gets a fresh in-memory database and upload folder, one user per
role and bearer-token headers for them.
"""

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import User
from stockroom.services.auth_service import hash_password
from stockroom.services import session_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(tmp_path / "uploads"),
        'GOOGLE_API_KEY': None,
        'ALLOWED_EMAIL_DOMAIN': '',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def make_user(app, password_hash):
    """Factory: make_user("a@zola-pizza.com", role="staff", status="active")."""
    def _make(email: str, role: str = "staff", status: str = "active", full_name: str | None = None) -> User:
        user = User(
            email=email,
            full_name=full_name,
            password_hash=password_hash,
            role=role,
            status=status,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def manager(make_user):
    return make_user("manager@zola-pizza.com", role="manager", full_name="Manager")


@pytest.fixture(scope='function')
def supervisor(make_user):
    return make_user("supervisor@zola-pizza.com", role="supervisor", full_name="Supervisor")


@pytest.fixture(scope='function')
def staff(make_user):
    return make_user("staff@zola-pizza.com", role="staff", full_name="Staff")


@pytest.fixture(scope='function')
def pending_user(make_user):
    return make_user("new@zola-pizza.com", role="pending", status="pending")


def auth_headers(user: User) -> dict:
    """Open a session for `user` and return its Authorization header."""
    _, token = session_service.create_session(user_id=user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture(scope='function')
def supervisor_headers(supervisor):
    return auth_headers(supervisor)


@pytest.fixture(scope='function')
def staff_headers(staff):
    return auth_headers(staff)


@pytest.fixture(scope='function')
def supplier(client, manager_headers):
    resp = client.post(
        "/api/suppliers",
        json={"name": "Hortifruti Central", "cnpj": "11222333000181", "delivery_lead_time_days": 2},
        headers=manager_headers,
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


@pytest.fixture(scope='function')
def make_product(client, manager_headers):
    """Factory creating products through the API (so opening stock hits the ledger)."""
    def _make(name: str = "Mozzarella", **fields) -> dict:
        payload = {"name": name, "category": "Restaurante", "unit": "kg"}
        payload.update(fields)
        resp = client.post("/api/products", json=payload, headers=manager_headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _make
