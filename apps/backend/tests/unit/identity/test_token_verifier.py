"""
Name: Token Verifier Tests

Responsibilities:
  - Missing credential -> CredentialRequiredError (no DB lookup)
  - Malformed, badly signed or expired token -> InvalidCredentialError
  - Unknown or inactive user -> UnauthenticatedError
  - The identity always comes from a fresh lookup (role from DB, not token)
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import jwt
import pytest
from bizops.crosscutting.exceptions import (
    CredentialRequiredError,
    InvalidCredentialError,
    UnauthenticatedError,
)
from bizops.identity.auth_users import (
    AuthSettings,
    create_access_token,
    decode_access_token,
    hash_password,
    resolve_identity,
    verify_password,
)
from bizops.identity.users import Identity, UserRole

pytestmark = pytest.mark.unit

_LOOKUP = "bizops.identity.auth_users.get_identity_by_id"
_SETTINGS = AuthSettings(jwt_secret="unit-secret", jwt_access_ttl_minutes=30)
_USER = Identity(id=42, email="ana@acme.com", role=UserRole.EMPLOYEE)


def _token(identity: Identity = _USER) -> str:
    token, _ = create_access_token(identity, settings=_SETTINGS)
    return token


@pytest.fixture(autouse=True)
def _auth_settings():
    with patch("bizops.identity.auth_users.get_auth_settings", return_value=_SETTINGS):
        yield


def test_missing_header_requires_credential_without_lookup():
    with patch(_LOOKUP) as lookup:
        with pytest.raises(CredentialRequiredError):
            resolve_identity(None)
    lookup.assert_not_called()


@pytest.mark.parametrize("header", ["", "Bearer", "Bearer   ", "Basic abc", "token"])
def test_header_without_bearer_token_requires_credential(header):
    with pytest.raises(CredentialRequiredError):
        resolve_identity(header)


def test_garbage_token_is_invalid():
    with pytest.raises(InvalidCredentialError):
        resolve_identity("Bearer not-a-jwt")


def test_token_signed_with_other_secret_is_invalid():
    forged, _ = create_access_token(
        _USER, settings=AuthSettings(jwt_secret="other", jwt_access_ttl_minutes=30)
    )
    with pytest.raises(InvalidCredentialError):
        decode_access_token(forged)


def test_expired_token_is_invalid():
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    expired = jwt.encode(
        {"sub": "42", "iat": int(past.timestamp()), "exp": int(past.timestamp()) + 60},
        _SETTINGS.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(InvalidCredentialError, match="expirado"):
        decode_access_token(expired)


def test_token_without_subject_is_invalid():
    exp = int((datetime.now(timezone.utc) + timedelta(minutes=5)).timestamp())
    token = jwt.encode({"exp": exp}, _SETTINGS.jwt_secret, algorithm="HS256")
    with pytest.raises(InvalidCredentialError):
        decode_access_token(token)


def test_decode_returns_user_id():
    assert decode_access_token(_token()) == 42


def test_unknown_user_is_unauthenticated():
    with patch(_LOOKUP, return_value=None):
        with pytest.raises(UnauthenticatedError):
            resolve_identity(f"Bearer {_token()}")


def test_inactive_user_is_unauthenticated():
    inactive = Identity(id=42, email="ana@acme.com", role=UserRole.EMPLOYEE, is_active=False)
    with patch(_LOOKUP, return_value=inactive):
        with pytest.raises(UnauthenticatedError):
            resolve_identity(f"Bearer {_token()}")


def test_role_comes_from_fresh_lookup_not_from_token():
    promoted = Identity(id=42, email="ana@acme.com", role=UserRole.MANAGER)
    with patch(_LOOKUP, return_value=promoted) as lookup:
        identity = resolve_identity(f"Bearer {_token()}")

    lookup.assert_called_once_with(42)
    assert identity.role == UserRole.MANAGER


def test_bearer_scheme_is_case_insensitive():
    with patch(_LOOKUP, return_value=_USER):
        assert resolve_identity(f"bearer {_token()}") == _USER


def test_password_hash_roundtrip():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret1", "not-a-hash")
