"""
===============================================================================
TARJETA CRC — dependencies.py (Dependencias y helpers comunes)
===============================================================================

Responsabilidades:
  - Centralizar guardas que se repiten en routers:
      * 404 si el registro no existe
      * 400 si un PUT no trae campos aplicables
      * 400 si un borrado tiene registros dependientes
      * "self o rol privilegiado" para recursos de usuario

Colaboradores:
  - crosscutting.exceptions (NotFound / ValidationFailed / InsufficientRole)
  - identity.users.Identity
===============================================================================
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, TypeVar

from bizops.crosscutting.exceptions import (
    InsufficientRoleError,
    NotFoundError,
    ValidationFailedError,
)
from bizops.identity.users import Identity, UserRole

T = TypeVar("T")

NOTHING_TO_UPDATE_MSG = "No hay campos para actualizar."


def require_found(value: Optional[T], message: str) -> T:
    """Devuelve `value` o lanza NotFoundError(message) si es None/False."""
    if value is None or value is False:
        raise NotFoundError(message)
    return value


def require_changes(changes: Mapping[str, Any]) -> Mapping[str, Any]:
    if not changes:
        raise ValidationFailedError(NOTHING_TO_UPDATE_MSG)
    return changes


def reject_if_dependents(counts: Mapping[str, int], message: str) -> None:
    """400 si alguno de los contadores de dependencias es > 0."""
    if any(int(n or 0) > 0 for n in counts.values()):
        raise ValidationFailedError(message)


def require_self_or_roles(
    identity: Identity, target_id: int, roles: Iterable[UserRole]
) -> None:
    if identity.id != target_id and identity.role not in frozenset(roles):
        raise InsufficientRoleError("Permisos insuficientes.")


def created(message: str, **ids: Any) -> dict[str, Any]:
    return {"message": message, **ids}


def done(message: str) -> dict[str, str]:
    return {"message": message}
