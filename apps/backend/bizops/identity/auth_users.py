"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Verificador de tokens (JWT) + login

Responsabilidades:
    - Hashear/verificar passwords (Argon2).
    - Emitir JWT de acceso con expiración.
    - Decodificar y validar JWT (firma, exp, claims mínimos).
    - Resolver la identidad actual: token -> user id -> fila fresca en DB.
    - Adjuntar la identidad al request (request.state.user) para el resto
      de la cadena de autorización.

Colaboradores:
    - crosscutting.config.get_settings: secreto y TTL.
    - crosscutting.exceptions: CredentialRequired / InvalidCredential /
      Unauthenticated.
    - infrastructure.repositories.postgres.users: get_identity_by_id,
      get_credentials_by_email.

Reglas:
    - Sin token -> CredentialRequiredError (antes de tocar la base).
    - Token malformado, firma inválida o expirado -> InvalidCredentialError.
    - Usuario inexistente o inactivo -> UnauthenticatedError.
    - El rol del token es informativo: se usa el rol actual de la base.
    - No loguear tokens ni passwords.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Header, Request

from ..context import set_user_context
from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import (
    CredentialRequiredError,
    InvalidCredentialError,
    UnauthenticatedError,
)
from ..crosscutting.logger import logger
from ..infrastructure.repositories.postgres.users import (
    get_credentials_by_email,
    get_identity_by_id,
)
from .users import Identity, UserCredentials

JWT_ALGORITHM: str = "HS256"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"

TOKEN_TYPE_ACCESS: str = "access"

_password_hasher = PasswordHasher()


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Settings de auth (snapshot)."""

    jwt_secret: str
    jwt_access_ttl_minutes: int


def get_auth_settings() -> AuthSettings:
    s = get_settings()
    return AuthSettings(
        jwt_secret=s.jwt_secret, jwt_access_ttl_minutes=s.jwt_access_ttl_minutes
    )


# ---------------------------------------------------------------------------
# Passwords (Argon2)
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def authenticate_user(email: str, password: str) -> UserCredentials | None:
    """Valida credenciales y retorna el usuario activo o None.

    - No diferencia "usuario no existe" de "password incorrecto".
    - Usuario inactivo con password correcto -> UnauthenticatedError.
    """
    normalized_email = (email or "").strip().lower()
    if not normalized_email:
        return None

    user = get_credentials_by_email(normalized_email)
    if not user or not verify_password(password, user.password_hash):
        return None

    if not user.is_active:
        logger.warning("Login rechazado: usuario inactivo", extra={"user": user.id})
        raise UnauthenticatedError("El usuario está inactivo.")

    return user


# ---------------------------------------------------------------------------
# Tokens JWT
# ---------------------------------------------------------------------------


def create_access_token(
    identity: Identity, settings: AuthSettings | None = None
) -> tuple[str, int]:
    """Crea un JWT de acceso firmado. Retorna (token, expires_in_seconds)."""
    auth_settings = settings or get_auth_settings()

    now = datetime.now(timezone.utc)
    expires_in = int(auth_settings.jwt_access_ttl_minutes * 60)

    payload: dict[str, object] = {
        CLAIM_SUB: str(identity.id),
        CLAIM_EMAIL: identity.email,
        CLAIM_ROLE: identity.role.value,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + timedelta(seconds=expires_in)).timestamp()),
        CLAIM_TYP: TOKEN_TYPE_ACCESS,
    }

    token = jwt.encode(payload, auth_settings.jwt_secret, algorithm=JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(token: str, settings: AuthSettings | None = None) -> int:
    """Decodifica un JWT de acceso y devuelve el user id que contiene."""
    auth_settings = settings or get_auth_settings()

    try:
        payload = jwt.decode(
            token,
            auth_settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidCredentialError("Token expirado.") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidCredentialError() from exc

    token_type = payload.get(CLAIM_TYP)
    if token_type is not None and token_type != TOKEN_TYPE_ACCESS:
        raise InvalidCredentialError("Tipo de token inválido.")

    try:
        return int(payload[CLAIM_SUB])
    except (TypeError, ValueError) as exc:
        raise InvalidCredentialError() from exc


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def resolve_identity(authorization: str | None) -> Identity:
    """Token -> Identity activa. Lanza la variante de error que corresponda."""
    token = _extract_bearer_token(authorization)
    if not token:
        raise CredentialRequiredError()

    user_id = decode_access_token(token)

    identity = get_identity_by_id(user_id)
    if identity is None or not identity.is_active:
        logger.info(
            "Token válido para usuario inexistente o inactivo",
            extra={"token_user_id": user_id},
        )
        raise UnauthenticatedError()
    return identity


# ---------------------------------------------------------------------------
# Dependencias FastAPI
# ---------------------------------------------------------------------------


def current_user(
    request: Request,
    authorization: str | None = Header(None, alias="Authorization"),
) -> Identity:
    """Dependency FastAPI: verifica el token y adjunta la identidad al request.

    Es una función de módulo para que FastAPI la cachee por request y los
    guards de rol y de recurso la compartan.
    """
    identity = resolve_identity(authorization)
    request.state.user = identity
    set_user_context(identity.id)
    return identity
