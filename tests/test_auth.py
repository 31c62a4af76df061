"""
Unit tests for authentication functionality
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.config import Settings
from app.database import Database
from main import create_app

API = "/api/v1"
SECRET = "test-secret"

# Test application with its own in-memory database
settings = Settings(
    jwt_secret=SECRET,
    environment="test",
    database_url="sqlite://",
    bcrypt_rounds=4,
    rate_limit_enabled=False,
)
database = Database(settings.database_url)
database.create_all()

app = create_app(settings, database)
client = TestClient(app)


def unique_email(prefix="user"):
    return f"{prefix}-{uuid.uuid4().hex[:10]}@example.com"


class TestUserRegistration:
    """Test cases for user registration"""

    def test_register_success(self):
        """Test successful user registration"""
        email = unique_email()
        response = client.post(f"{API}/auth/register", json={"email": email, "password": "pw1"})
        assert response.status_code == 201

        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["user"]["email"] == email
        assert body["data"]["user"]["id"]
        assert body["data"]["token"]
        assert set(body["data"]["user"]) == {"id", "email"}  # Digest never returned

    def test_register_normalizes_email(self):
        """Emails are stored lower-cased"""
        email = unique_email("MixedCase").replace("example", "EXAMPLE")
        response = client.post(f"{API}/auth/register", json={"email": email, "password": "pw1"})
        assert response.status_code == 201
        assert response.json()["data"]["user"]["email"] == email.lower()

    def test_register_duplicate_email(self):
        """Test registration with duplicate email"""
        email = unique_email("duplicate")

        response1 = client.post(f"{API}/auth/register", json={"email": email, "password": "pw1"})
        assert response1.status_code == 201

        response2 = client.post(f"{API}/auth/register", json={"email": email, "password": "pw2"})
        assert response2.status_code == 400
        assert response2.json() == {"success": False, "message": "Email already registered"}

    def test_register_duplicate_email_case_insensitive(self):
        email = unique_email("case")
        assert client.post(f"{API}/auth/register", json={"email": email, "password": "pw"}).status_code == 201

        response = client.post(f"{API}/auth/register", json={"email": email.upper(), "password": "pw"})
        assert response.status_code == 400

    def test_register_invalid_email(self):
        """Test registration with invalid email"""
        response = client.post(f"{API}/auth/register", json={"email": "not-an-email", "password": "pw1"})
        assert response.status_code == 400

        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation error"
        assert "email" in body["error"]

    def test_register_missing_password(self):
        response = client.post(f"{API}/auth/register", json={"email": unique_email()})
        assert response.status_code == 400
        assert "password" in response.json()["error"]

    def test_register_empty_password(self):
        response = client.post(f"{API}/auth/register", json={"email": unique_email(), "password": ""})
        assert response.status_code == 400

    def test_register_password_over_72_bytes(self):
        # 37 two-byte characters: 74 bytes
        for password in ("a" * 73, "\u00e9" * 37):
            response = client.post(f"{API}/auth/register", json={"email": unique_email(), "password": password})
            assert response.status_code == 400
            assert "72 bytes" in response.json()["error"]

    def test_register_password_of_72_bytes(self):
        response = client.post(f"{API}/auth/register", json={"email": unique_email(), "password": "a" * 72})
        assert response.status_code == 201


class TestUserLogin:
    """Test cases for user login"""

    def setup_method(self):
        """Set up test user for login tests"""
        self.email = unique_email("login")
        self.password = "LoginPass123!"

        response = client.post(f"{API}/auth/register", json={"email": self.email, "password": self.password})
        assert response.status_code == 201
        self.user_id = response.json()["data"]["user"]["id"]

    def test_login_success(self):
        """Test successful login"""
        response = client.post(f"{API}/auth/login", json={"email": self.email, "password": self.password})
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Login successful"
        assert body["data"]["user"] == {"id": self.user_id, "email": self.email}
        assert body["data"]["token"]

    def test_login_email_is_case_insensitive(self):
        response = client.post(f"{API}/auth/login", json={"email": self.email.upper(), "password": self.password})
        assert response.status_code == 200

    def test_token_claims(self):
        """Token carries the user id and email and lives for 24 hours"""
        response = client.post(f"{API}/auth/login", json={"email": self.email, "password": self.password})
        token = response.json()["data"]["token"]

        claims = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert claims["sub"] == self.user_id
        assert claims["email"] == self.email
        assert claims["exp"] - claims["iat"] == 24 * 60 * 60

    def test_login_wrong_password(self):
        """Test login with wrong password"""
        response = client.post(f"{API}/auth/login", json={"email": self.email, "password": "wrong"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}

    def test_login_nonexistent_user(self):
        """Test login with non-existent user"""
        response = client.post(f"{API}/auth/login", json={"email": unique_email("ghost"), "password": "whatever"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}

    def test_login_with_extended_password_rejected(self):
        email = unique_email("long")
        password = "p" * 72
        assert client.post(f"{API}/auth/register", json={"email": email, "password": password}).status_code == 201

        response = client.post(f"{API}/auth/login", json={"email": email, "password": password + "x"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}

    def test_unknown_email_and_wrong_password_are_indistinguishable(self):
        wrong_password = client.post(f"{API}/auth/login", json={"email": self.email, "password": "nope"})
        unknown_email = client.post(f"{API}/auth/login", json={"email": unique_email("nobody"), "password": "nope"})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.content == unknown_email.content

    def test_login_missing_fields(self):
        response = client.post(f"{API}/auth/login", json={"email": self.email})
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestAuthScenario:
    """Register, login, bad login, duplicate register"""

    def test_full_flow(self):
        email = unique_email("a")

        register = client.post(f"{API}/auth/register", json={"email": email, "password": "pw1"})
        assert register.status_code == 201
        assert register.json()["data"]["token"]

        login = client.post(f"{API}/auth/login", json={"email": email, "password": "pw1"})
        assert login.status_code == 200
        assert login.json()["data"]["token"]

        bad_login = client.post(f"{API}/auth/login", json={"email": email, "password": "wrong"})
        assert bad_login.status_code == 401

        again = client.post(f"{API}/auth/register", json={"email": email, "password": "pw2"})
        assert again.status_code == 400


class TestTokenHandling:
    """AuthHandler token issuing and verification"""

    def test_expired_token_rejected(self):
        from app.utils.error_handler import ExpiredToken

        handler = app.state.auth_handler
        token = handler.create_access_token("some-id", "x@example.com", expires_delta=timedelta(seconds=-5))
        with pytest.raises(ExpiredToken):
            handler.verify_token(token)

    def test_foreign_signature_rejected(self):
        from app.utils.error_handler import InvalidToken

        foreign = jwt.encode(
            {"sub": "some-id", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "another-secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            app.state.auth_handler.verify_token(foreign)

    def test_password_digest_is_not_plaintext(self):
        handler = app.state.auth_handler
        digest = handler.get_password_hash("pw1")
        assert digest != "pw1"
        assert handler.verify_password("pw1", digest)
        assert not handler.verify_password("pw2", digest)

    def test_password_longer_than_bcrypt_reads_does_not_match(self):
        handler = app.state.auth_handler
        digest = handler.get_password_hash("a" * 72)
        assert handler.verify_password("a" * 72, digest)
        assert not handler.verify_password("a" * 72 + "x", digest)


class TestMissingSecret:
    """Without a signing secret token issuing is a fatal misconfiguration"""

    def setup_method(self):
        unconfigured = Settings(
            jwt_secret=None,
            environment="test",
            database_url="sqlite://",
            bcrypt_rounds=4,
            rate_limit_enabled=False,
        )
        db = Database(unconfigured.database_url)
        db.create_all()
        self.client = TestClient(create_app(unconfigured, db))

    def test_register_fails_with_server_error(self):
        response = self.client.post(f"{API}/auth/register", json={"email": unique_email(), "password": "pw1"})
        assert response.status_code == 500
        assert response.json()["success"] is False

    def test_protected_route_fails_with_server_error(self):
        response = self.client.get(f"{API}/orders", headers={"Authorization": "Bearer abc.def.ghi"})
        assert response.status_code == 500


if __name__ == "__main__":
    pytest.main([__file__])
