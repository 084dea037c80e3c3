"""
===============================================================================
TARJETA CRC — bizops/api/auth_routes.py (Autenticación)
===============================================================================

Responsabilidades:
  - POST /api/auth/login: credenciales -> JWT de acceso.
  - GET /api/auth/me: identidad actual (releída de la base).

Colaboradores:
  - identity.auth_users: authenticate_user, create_access_token, current_user
  - container.get_user_repository (perfil para /me)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from ..container import get_user_repository
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..crosscutting.exceptions import InvalidCredentialError, NotFoundError
from ..crosscutting.logger import logger
from ..identity.auth_users import authenticate_user, create_access_token, current_user
from ..identity.users import Identity, UserRole
from ..infrastructure.repositories import PostgresUserRepository

router = APIRouter(prefix="/auth", tags=["auth"], responses=OPENAPI_ERROR_RESPONSES)


# -----------------------------------------------------------------------------
# Modelos HTTP (DTOs)
# -----------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=512)

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(BaseModel):
    id: int
    email: str
    role: UserRole
    first_name: str = ""
    last_name: str = ""


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest):
    """
    Inicia sesión y devuelve JWT.

    - No distingue email inexistente de password incorrecto.
    - Usuario inactivo -> 401 Unauthenticated.
    """
    credentials = authenticate_user(req.email, req.password)
    if credentials is None:
        raise InvalidCredentialError("Credenciales inválidas.")

    token, expires_in = create_access_token(credentials.to_identity())
    logger.info("Login exitoso", extra={"user": credentials.id})

    return LoginResponse(
        token=token,
        expires_in=expires_in,
        user=UserResponse(
            id=credentials.id,
            email=credentials.email,
            role=credentials.role,
            first_name=credentials.first_name,
            last_name=credentials.last_name,
        ),
    )


@router.get("/me")
def me(
    identity: Identity = Depends(current_user),
    repo: PostgresUserRepository = Depends(get_user_repository),
):
    """Devuelve el perfil del usuario autenticado."""
    user = repo.get_user(identity.id)
    if user is None:
        raise NotFoundError("Usuario no encontrado.")
    return user
