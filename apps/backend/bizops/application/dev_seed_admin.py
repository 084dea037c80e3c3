# =============================================================================
# FILE: application/dev_seed_admin.py
# =============================================================================
"""
===============================================================================
TASK: Dev Seed Admin (solo desarrollo)
===============================================================================

Qué es:
    Asegura que exista un usuario admin para desarrollo cuando está
    configurado (DEV_SEED_ADMIN=true).

Seguridad:
    - Guard estricto: solo corre con app_env == "development".

CRC:
    Component: ensure_dev_admin
    Responsibilities:
      - Validar guard de ambiente
      - Asegurar usuario (create, o reset si force_reset)
    Collaborators:
      - user_repo (PostgresUserRepository o doble de test)
      - password_hasher
      - Settings
===============================================================================
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Protocol

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..identity.users import UserCredentials, UserRole


class UserPort(Protocol):
    """Puerto de usuarios que necesita el seed."""

    def get_credentials(self, email: str) -> Optional[UserCredentials]: ...

    def create_user(self, data: Mapping[str, Any]) -> int: ...

    def update_user(self, user_id: int, columns: Mapping[str, Any]) -> None: ...


def _assert_allowed_environment(settings: Settings) -> None:
    env = (settings.app_env or "").strip().lower()
    if env != "development":
        raise RuntimeError(
            f"FATAL: DEV_SEED_ADMIN is enabled but APP_ENV is '{env}' "
            "(must be 'development')."
        )


def ensure_dev_admin(
    settings: Settings,
    *,
    user_repo: UserPort,
    password_hasher: Callable[[str], str],
) -> None:
    """
    Crea el admin de desarrollo si falta.

    - Deshabilitado: no-op.
    - Existe y force_reset: resetea password, rol admin y activo.
    - Existe sin force_reset: no toca nada.
    """
    if not settings.dev_seed_admin:
        return

    _assert_allowed_environment(settings)

    email = (settings.dev_seed_admin_email or "").strip().lower()
    password = settings.dev_seed_admin_password or ""
    if not email or not password:
        raise ValueError("Dev seed admin is enabled but email/password are empty")

    existing = user_repo.get_credentials(email)
    if existing is None:
        user_id = user_repo.create_user(
            {
                "email": email,
                "password_hash": password_hasher(password),
                "first_name": settings.dev_seed_admin_first_name,
                "last_name": settings.dev_seed_admin_last_name,
                "role": UserRole.ADMIN.value,
            }
        )
        logger.info("Dev seed admin: user created", extra={"email": email, "user": user_id})
        return

    if settings.dev_seed_admin_force_reset:
        user_repo.update_user(
            existing.id,
            {
                "password_hash": password_hasher(password),
                "role": UserRole.ADMIN.value,
                "is_active": True,
            },
        )
        logger.info("Dev seed admin: user reset applied", extra={"email": email})
        return

    logger.info("Dev seed admin: user exists; skipping", extra={"email": email})
