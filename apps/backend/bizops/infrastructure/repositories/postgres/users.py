"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/users.py
============================================================
Class: PostgresUserRepository

Responsibilities:
  - Lookups de identidad para el verificador de tokens y el login.
  - CRUD de la tabla `users` para /api/users.
  - Estadísticas de usuarios por rol y departamento.

Collaborators:
  - postgres/base.PostgresRepository
  - identity.users (Identity, UserCredentials, UserRole)

Constraints:
  - Nunca devuelve password_hash fuera de UserCredentials.
  - Orden estable en listados: created_at DESC, id DESC.
============================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ....crosscutting.exceptions import DatabaseError
from ....identity.users import Identity, UserCredentials, UserRole
from .base import Filters, PostgresRepository, Row

_PUBLIC_COLUMNS = (
    "id, email, first_name, last_name, role, department, position, phone, "
    "hire_date, salary, is_active, created_at"
)
_DETAIL_COLUMNS = (
    "id, email, first_name, last_name, role, department, position, phone, "
    "address, hire_date, salary, avatar, is_active, created_at"
)

EMAIL_TAKEN_MSG = "Un usuario con este email ya existe."


def _role_of(value: str) -> UserRole:
    try:
        return UserRole(value)
    except ValueError as exc:
        raise DatabaseError(f"Rol inválido en base de datos: {value}") from exc


class PostgresUserRepository(PostgresRepository):
    """Repositorio de usuarios (identidad + administración)."""

    _SQL_IDENTITY = "SELECT id, email, role, is_active FROM users WHERE id = %s"

    _SQL_CREDENTIALS = """
        SELECT id, email, password_hash, role, is_active, first_name, last_name
        FROM users
        WHERE email = %s
    """

    _SQL_SELECTABLE = """
        SELECT id, first_name, last_name, email, role, department, position
        FROM users
        WHERE role IN ('admin', 'manager', 'employee') AND is_active = TRUE
        ORDER BY first_name, last_name
    """

    _SQL_INSERT = """
        INSERT INTO users (email, password_hash, first_name, last_name, role,
                           department, position, phone, address, salary)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    _SQL_STATS = """
        SELECT
            COUNT(*) AS total_users,
            COUNT(*) FILTER (WHERE is_active) AS active_users,
            COUNT(*) FILTER (WHERE role = 'admin') AS admins,
            COUNT(*) FILTER (WHERE role = 'manager') AS managers,
            COUNT(*) FILTER (WHERE role = 'employee') AS employees,
            COUNT(*) FILTER (WHERE role = 'client') AS clients
        FROM users
    """

    _SQL_DEPARTMENTS = """
        SELECT department, COUNT(*) AS count
        FROM users
        WHERE department IS NOT NULL
        GROUP BY department
        ORDER BY count DESC
    """

    # =========================================================
    # Identidad
    # =========================================================
    def get_identity(self, user_id: int) -> Optional[Identity]:
        row = self._fetchone(
            self._SQL_IDENTITY,
            (user_id,),
            context_msg="PostgresUserRepository: get_identity failed",
            extra={"user_id": user_id},
        )
        if not row:
            return None
        return Identity(
            id=int(row["id"]),
            email=row["email"],
            role=_role_of(row["role"]),
            is_active=bool(row["is_active"]),
        )

    def get_credentials(self, email: str) -> Optional[UserCredentials]:
        row = self._fetchone(
            self._SQL_CREDENTIALS,
            (email,),
            context_msg="PostgresUserRepository: get_credentials failed",
        )
        if not row:
            return None
        return UserCredentials(
            id=int(row["id"]),
            email=row["email"],
            password_hash=row["password_hash"],
            role=_role_of(row["role"]),
            is_active=bool(row["is_active"]),
            first_name=row["first_name"] or "",
            last_name=row["last_name"] or "",
        )

    # =========================================================
    # Administración
    # =========================================================
    def list_users(
        self, *, search: str = "", role: str = "", department: str = ""
    ) -> list[Row]:
        filters = (
            Filters()
            .search(search, "first_name", "last_name", "email")
            .add_if(role, "role = %s")
            .add_if(department, "department = %s")
        )
        return self._fetchall(
            f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE {filters.sql} "
            "ORDER BY created_at DESC, id DESC",
            filters.params,
            context_msg="PostgresUserRepository: list_users failed",
        )

    def list_selectable(self) -> list[Row]:
        return self._fetchall(
            self._SQL_SELECTABLE,
            context_msg="PostgresUserRepository: list_selectable failed",
        )

    def get_user(self, user_id: int) -> Optional[Row]:
        return self._fetchone(
            f"SELECT {_DETAIL_COLUMNS} FROM users WHERE id = %s",
            (user_id,),
            context_msg="PostgresUserRepository: get_user failed",
            extra={"user_id": user_id},
        )

    def exists(self, user_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM users WHERE id = %s",
            (user_id,),
            context_msg="PostgresUserRepository: exists failed",
        )

    def email_taken(self, email: str, *, exclude_id: int | None = None) -> bool:
        if exclude_id is None:
            return self._exists(
                "SELECT 1 FROM users WHERE email = %s",
                (email,),
                context_msg="PostgresUserRepository: email_taken failed",
            )
        return self._exists(
            "SELECT 1 FROM users WHERE email = %s AND id <> %s",
            (email, exclude_id),
            context_msg="PostgresUserRepository: email_taken failed",
        )

    def create_user(self, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            self._SQL_INSERT,
            (
                data["email"],
                data["password_hash"],
                data["first_name"],
                data["last_name"],
                data["role"],
                data.get("department"),
                data.get("position"),
                data.get("phone"),
                data.get("address"),
                data.get("salary"),
            ),
            context_msg="PostgresUserRepository: create_user failed",
            conflict_msg=EMAIL_TAKEN_MSG,
        )

    def update_user(self, user_id: int, columns: Mapping[str, Any]) -> None:
        self._update_columns(
            "users",
            user_id,
            columns,
            context_msg="PostgresUserRepository: update_user failed",
            extra={"user_id": user_id, "columns": sorted(columns)},
            conflict_msg="Este email ya está en uso.",
        )

    def set_password(self, user_id: int, password_hash: str) -> None:
        self._update_columns(
            "users",
            user_id,
            {"password_hash": password_hash},
            context_msg="PostgresUserRepository: set_password failed",
            extra={"user_id": user_id},
        )

    def delete_user(self, user_id: int) -> None:
        self._execute(
            "DELETE FROM users WHERE id = %s",
            (user_id,),
            context_msg="PostgresUserRepository: delete_user failed",
            extra={"user_id": user_id},
        )

    def stats(self) -> dict[str, Any]:
        overview = self._fetchone(
            self._SQL_STATS, context_msg="PostgresUserRepository: stats failed"
        )
        departments = self._fetchall(
            self._SQL_DEPARTMENTS, context_msg="PostgresUserRepository: stats failed"
        )
        return {"overview": overview, "departments": departments}


# ============================================================
# API funcional (usada por identity/auth_users)
# ============================================================
def get_identity_by_id(user_id: int) -> Optional[Identity]:
    """Lectura fresca de la identidad (nunca cacheada entre requests)."""
    return PostgresUserRepository().get_identity(user_id)


def get_credentials_by_email(email: str) -> Optional[UserCredentials]:
    return PostgresUserRepository().get_credentials(email)
