"""
===============================================================================
TARJETA CRC — identity/field_policy.py
===============================================================================

Módulo:
    Política por campo para actualizaciones (campo -> rol mínimo)

Responsabilidades:
    - Declarar qué campos de usuarios/empleados requieren un rol mínimo.
    - Filtrar un diff de actualización en una sola pasada según el actor.

Colaboradores:
    - identity.users.ROLE_RANK: orden de privilegio de los roles.
    - interfaces/api/http/routers/users.py, employees.py

Notas:
    - Un campo no permitido se descarta (no es error) y se loguea.
    - Campos fuera de la tabla: sin restricción de rol.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping

from ..crosscutting.logger import logger
from .users import ROLE_RANK, UserRole

FieldPolicy = Mapping[str, UserRole]

# Columnas de `users` editables solo por admin vía PUT /api/users/{id}.
USER_FIELD_POLICY: FieldPolicy = {
    "role": UserRole.ADMIN,
    "salary": UserRole.ADMIN,
    "is_active": UserRole.ADMIN,
}

EMPLOYEE_FIELD_POLICY: FieldPolicy = {
    "role": UserRole.MANAGER,
    "salary": UserRole.MANAGER,
    "hire_date": UserRole.MANAGER,
    "is_active": UserRole.MANAGER,
}


def can_modify(policy: FieldPolicy, field: str, actor_role: UserRole) -> bool:
    required = policy.get(field)
    if required is None:
        return True
    return ROLE_RANK[actor_role] >= ROLE_RANK[required]


def apply_field_policy(
    policy: FieldPolicy, changes: Mapping[str, Any], actor_role: UserRole
) -> dict[str, Any]:
    """Devuelve solo los cambios que el rol del actor puede aplicar."""
    allowed: dict[str, Any] = {}
    dropped: list[str] = []
    for field, value in changes.items():
        if can_modify(policy, field, actor_role):
            allowed[field] = value
        else:
            dropped.append(field)

    if dropped:
        logger.info(
            "Campos descartados por política de rol",
            extra={"role": actor_role.value, "fields": sorted(dropped)},
        )
    return allowed
