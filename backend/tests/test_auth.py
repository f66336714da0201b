"""
Authentication tests.

Verifies:
- Registration validation, duplicate email handling, password hashing
- Login returns a token and records a login notification
- Every protected endpoint rejects missing, malformed, forged and expired tokens
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from uniform_studio.models import User
from uniform_studio.services import auth_service, token_service


def _register(client, **overrides):
    payload = {
        "email": "new@us81.test",
        "password": "secret123",
        "name": "New Person",
        "role": "Sales",
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


# =============================================================================
# REGISTER
# =============================================================================


class TestRegister:

    def test_register_returns_user_and_token(self, client, db_session):
        resp = _register(client, organization="US81")
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["user"]["email"] == "new@us81.test"
        assert data["user"]["role"] == "Sales"
        assert data["user"]["organization"] == "US81"
        assert "password" not in data["user"]
        assert "passwordHash" not in data["user"]

        principal = token_service.verify_token(data["token"])
        assert principal.user_id == data["user"]["id"]
        assert principal.role == "Sales"

    def test_password_is_stored_hashed(self, client, db_session):
        _register(client)
        user = db_session.query(User).filter_by(email="new@us81.test").one()
        assert user.password_hash != "secret123"
        assert user.password_hash.startswith("$2")

    def test_duplicate_email_rejected(self, client, db_session):
        assert _register(client).status_code == 201
        resp = _register(client, email="NEW@us81.test", name="Someone Else")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Email already registered"
        assert db_session.query(User).count() == 1

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"email": "not-an-email"}, "email"),
            ({"password": "12345"}, "password"),
            ({"name": "A"}, "name"),
            ({"role": "Manager"}, "role"),
        ],
    )
    def test_invalid_input_rejected(self, client, db_session, overrides, field):
        resp = _register(client, **overrides)
        assert resp.status_code == 400
        fields = [d["field"] for d in resp.get_json()["details"]]
        assert field in fields
        assert db_session.query(User).count() == 0

    def test_non_json_body_rejected(self, client, db_session):
        resp = client.post("/api/auth/register", data="nope", content_type="text/plain")
        assert resp.status_code == 400


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    def test_login_success(self, client, sales_user):
        resp = client.post("/api/auth/login", json={"email": "sales@us81.test", "password": "secret123"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["user"]["id"] == sales_user.id
        assert token_service.verify_token(data["token"]).email == "sales@us81.test"

    def test_login_is_case_insensitive_on_email(self, client, sales_user):
        resp = client.post("/api/auth/login", json={"email": "Sales@US81.test", "password": "secret123"})
        assert resp.status_code == 200

    def test_login_records_notification(self, client, sales_user):
        resp = client.post("/api/auth/login", json={"email": "sales@us81.test", "password": "secret123"})
        token = resp.get_json()["token"]

        feed = client.get("/api/notifications", headers={"Authorization": f"Bearer {token}"}).get_json()
        assert len(feed) == 1
        assert feed[0]["title"] == "Login Successful"
        assert feed[0]["message"] == "Welcome back, Sara Sales. Session established."
        assert feed[0]["type"] == "success"
        assert feed[0]["read"] is False

    @pytest.mark.parametrize(
        "email,password",
        [
            ("sales@us81.test", "wrong-password"),
            ("nobody@us81.test", "secret123"),
        ],
    )
    def test_invalid_credentials(self, client, sales_user, email, password):
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid credentials"}

    def test_malformed_login_is_400(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "x"})
        assert resp.status_code == 400


# =============================================================================
# CREDENTIAL GATE
# =============================================================================


PROTECTED = [
    ("GET", "/api/orders"),
    ("POST", "/api/orders"),
    ("GET", "/api/orders/1"),
    ("PUT", "/api/orders/1"),
    ("DELETE", "/api/orders/1"),
    ("GET", "/api/orders/stats"),
    ("GET", "/api/sheets"),
    ("GET", "/api/users/me"),
    ("PUT", "/api/users/1"),
    ("GET", "/api/notifications"),
    ("PUT", "/api/notifications/read-all"),
]


class TestCredentialGate:

    @pytest.mark.parametrize("method,path", PROTECTED)
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"error": "Unauthorized"}

    @pytest.mark.parametrize(
        "header",
        [
            "Bearer",
            "Bearer ",
            "Token abc",
            "Bearer not.a.jwt",
        ],
    )
    def test_malformed_header(self, client, db_session, header):
        resp = client.get("/api/orders", headers={"Authorization": header})
        assert resp.status_code == 401

    def test_forged_signature(self, client, sales_user):
        forged = jwt.encode(
            {"sub": str(sales_user.id), "email": sales_user.email, "role": "Admin",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret",
            algorithm="HS256",
        )
        resp = client.get("/api/orders", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401

    def test_expired_token(self, client, app, sales_user):
        expired = jwt.encode(
            {"sub": str(sales_user.id), "email": sales_user.email, "role": "Sales",
             "iat": datetime.now(timezone.utc) - timedelta(days=8),
             "exp": datetime.now(timezone.utc) - timedelta(days=1)},
            app.config["JWT_SECRET_KEY"],
            algorithm="HS256",
        )
        resp = client.get("/api/orders", headers={"Authorization": f"Bearer {expired}"})
        assert resp.status_code == 401

    def test_valid_token_passes(self, client, sales_headers):
        resp = client.get("/api/orders", headers=sales_headers)
        assert resp.status_code == 200


# =============================================================================
# PASSWORD HASHING
# =============================================================================


class TestPasswordHashing:

    def test_hash_verifies_only_its_password(self, app):
        hashed = auth_service.hash_password("secret123")
        assert auth_service.verify_password("secret123", hashed)
        assert not auth_service.verify_password("secret124", hashed)

    def test_hash_is_salted(self, app):
        assert auth_service.hash_password("secret123") != auth_service.hash_password("secret123")

    @pytest.mark.parametrize("password_hash", ["", "not-a-bcrypt-hash", None])
    def test_verify_fails_closed(self, app, password_hash):
        assert auth_service.verify_password("secret123", password_hash) is False


def test_register_then_login(client, db_session):
    registered = _register(client, email="round@us81.test").get_json()
    resp = client.post("/api/auth/login", json={"email": "round@us81.test", "password": "secret123"})
    assert resp.status_code == 200
    principal = token_service.verify_token(resp.get_json()["token"])
    assert principal.user_id == registered["user"]["id"]
