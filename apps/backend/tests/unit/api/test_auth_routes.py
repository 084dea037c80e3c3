"""
Name: Auth Routes Tests

Responsibilities:
  - /api/auth/login: token + perfil, credenciales inválidas, usuario inactivo
  - /api/auth/me: perfil del usuario autenticado
  - Security headers presentes en toda respuesta
"""

from unittest.mock import MagicMock, patch

import pytest
from bizops.api.main import app, fastapi_app
from bizops.container import get_user_repository
from bizops.identity.auth_users import decode_access_token, hash_password
from bizops.identity.users import UserCredentials, UserRole
from fastapi.testclient import TestClient

pytestmark = pytest.mark.unit

_PASSWORD = "s3cret-pass"


@pytest.fixture
def client():
    yield TestClient(app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(scope="module")
def password_hash() -> str:
    return hash_password(_PASSWORD)


def _credentials(password_hash: str, *, is_active: bool = True) -> UserCredentials:
    return UserCredentials(
        id=9,
        email="maria@example.com",
        password_hash=password_hash,
        role=UserRole.MANAGER,
        is_active=is_active,
        first_name="María",
        last_name="Pérez",
    )


def test_login_returns_token_and_profile(client, password_hash):
    with patch(
        "bizops.identity.auth_users.get_credentials_by_email",
        return_value=_credentials(password_hash),
    ) as lookup:
        response = client.post(
            "/api/auth/login",
            json={"email": "  Maria@Example.com ", "password": _PASSWORD},
        )

    assert response.status_code == 200
    lookup.assert_called_once_with("maria@example.com")
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] > 0
    assert body["user"] == {
        "id": 9,
        "email": "maria@example.com",
        "role": "manager",
        "first_name": "María",
        "last_name": "Pérez",
    }
    assert decode_access_token(body["token"]) == 9


def test_login_wrong_password_is_401(client, password_hash):
    with patch(
        "bizops.identity.auth_users.get_credentials_by_email",
        return_value=_credentials(password_hash),
    ):
        response = client.post(
            "/api/auth/login", json={"email": "maria@example.com", "password": "nope"}
        )

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIAL"


def test_login_unknown_email_is_indistinguishable(client):
    with patch(
        "bizops.identity.auth_users.get_credentials_by_email", return_value=None
    ):
        response = client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "x"}
        )

    assert response.status_code == 401
    assert response.json()["error"] == "Credenciales inválidas."


def test_login_inactive_user_is_401(client, password_hash):
    with patch(
        "bizops.identity.auth_users.get_credentials_by_email",
        return_value=_credentials(password_hash, is_active=False),
    ):
        response = client.post(
            "/api/auth/login",
            json={"email": "maria@example.com", "password": _PASSWORD},
        )

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_me_returns_profile(client, auth_headers):
    repo = MagicMock()
    repo.get_user.return_value = {"id": 2, "email": "manager@example.com", "role": "manager"}
    fastapi_app.dependency_overrides[get_user_repository] = lambda: repo

    response = client.get("/api/auth/me", headers=auth_headers(UserRole.MANAGER))

    assert response.status_code == 200
    assert response.json()["email"] == "manager@example.com"
    repo.get_user.assert_called_once_with(2)


def test_me_without_token_is_401(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["code"] == "CREDENTIAL_REQUIRED"


def test_security_headers_on_every_response(client):
    response = client.get("/api/test")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert "Content-Security-Policy" in response.headers
