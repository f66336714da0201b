"""
Pytest fixtures for Uniform Studio backend tests.

Provides test database setup, per-role users, bearer headers and a test client.
"""

import pytest

from uniform_studio import create_app
from uniform_studio.extensions import db
from uniform_studio.models import ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION
from uniform_studio.services import auth_service, token_service


TEST_PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET_KEY': 'test-jwt-secret',
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
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


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: create a user with the shared test password."""
    def _make(email, role=ROLE_SALES, name=None, organization=None):
        return auth_service.create_user(
            email=email,
            password=TEST_PASSWORD,
            name=name or email.split("@")[0].title(),
            role=role,
            organization=organization,
        )
    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin@us81.test", ROLE_ADMIN, name="System Admin")


@pytest.fixture(scope='function')
def sales_user(make_user):
    return make_user("sales@us81.test", ROLE_SALES, name="Sara Sales", organization="US81")


@pytest.fixture(scope='function')
def production_user(make_user):
    return make_user("floor@us81.test", ROLE_PRODUCTION, name="Pat Floor")


def auth_headers(user) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token_service.issue_token(user)}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture(scope='function')
def sales_headers(sales_user):
    return auth_headers(sales_user)


@pytest.fixture(scope='function')
def production_headers(production_user):
    return auth_headers(production_user)


@pytest.fixture
def order_payload():
    """Factory for a valid flattened order draft."""
    def _payload(order_number="OS-1001", **overrides):
        payload = {
            "orderNumber": order_number,
            "type": "Final Production",
            "clientName": "Al Gurg Group",
            "brand": "CUROSCAPE - ELV",
            "startDate": "2025-01-16T09:00:00Z",
            "deliveryDate": "2025-02-15T17:00:00Z",
            "productName": "SPORTS JERSEY",
            "itemDescription": "Sublimation polo",
            "fabric": ["Dry-fit Mesh"],
            "color": "Teal Blue",
            "sleeve": "Short Sleeve",
            "fabricSupplier": ["Textile Hub"],
            "accessories": ["Rib Collar", "2 Buttons"],
            "patternFollowed": "US-81-STD-01",
            "cmPrice": [22],
            "cmUnit": ["CRT"],
            "cmPartner": "Master Factory",
            "embroideryPrint": ["Chest Print"],
            "sizes": [{"size": "M", "quantity": 4}, {"size": "XL", "quantity": 4}],
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
def create_order(client, sales_headers, order_payload):
    """Factory: POST an order as the sales user and return its JSON."""
    def _create(order_number="OS-1001", headers=None, **overrides):
        resp = client.post(
            "/api/orders",
            json=order_payload(order_number, **overrides),
            headers=headers or sales_headers,
        )
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _create
