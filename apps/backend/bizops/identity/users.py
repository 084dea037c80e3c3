"""
===============================================================================
TARJETA CRC — identity/users.py
===============================================================================

Módulo:
    Modelos de identidad (roles + usuario autenticado)

Responsabilidades:
    - Definir el enum cerrado de roles (admin, manager, employee, client).
    - Definir Identity: lo que el verificador de tokens adjunta al request.
    - Definir UserCredentials: fila mínima que necesita el login.

Colaboradores:
    - identity/auth_users.py: construye Identity a partir del token + DB.
    - identity/rbac.py: compara Identity.role contra la tabla de operaciones.
    - identity/access_control.py: evalúa pertenencia de recursos.

Notas:
    - El rol SIEMPRE se toma de la base, nunca del token.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    """Roles del sistema (conjunto cerrado)."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    CLIENT = "client"


# R: jerarquía para políticas de campos ("al menos manager").
ROLE_RANK: dict[UserRole, int] = {
    UserRole.CLIENT: 0,
    UserRole.EMPLOYEE: 1,
    UserRole.MANAGER: 2,
    UserRole.ADMIN: 3,
}


@dataclass(frozen=True, slots=True)
class Identity:
    """Usuario autenticado y activo, resuelto desde la base en cada request."""

    id: int
    email: str
    role: UserRole
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True, slots=True)
class UserCredentials:
    """Registro usado por el login (incluye hash; nunca se serializa)."""

    id: int
    email: str
    password_hash: str
    role: UserRole
    is_active: bool
    first_name: str = ""
    last_name: str = ""

    def to_identity(self) -> Identity:
        return Identity(
            id=self.id, email=self.email, role=self.role, is_active=self.is_active
        )
