"""
===============================================================================
TARJETA CRC — identity/access_control.py
===============================================================================

Módulo:
    Control de acceso por recurso (pertenencia a proyecto / autoría de factura)

Responsabilidades:
    - Mantener un registro extensible tipo de recurso -> predicado.
    - Decidir si una identidad accede a un recurso concreto (admin siempre sí).
    - Exponer la dependencia FastAPI require_resource_access(kind).

Colaboradores:
    - domain.repositories.OwnershipStore: consultas de pertenencia.
    - identity.auth_users.current_user: identidad del request.
    - crosscutting.exceptions: ResourceForbidden / ResourceCheck.

Notas:
    - El predicado se evalúa en cada request, sin cache.
    - "client" y cualquier tipo no registrado: permitir (default allow).
    - Falla de la consulta -> ResourceCheckError (500), nunca un 403.
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional

from fastapi import Depends, Request

from ..crosscutting.exceptions import ResourceCheckError, ResourceForbiddenError
from ..crosscutting.logger import logger
from ..domain.repositories import OwnershipStore
from .auth_users import current_user
from .users import Identity


class ResourceKind(str, Enum):
    PROJECT = "project"
    CLIENT = "client"
    INVOICE = "invoice"


ResourcePredicate = Callable[[Identity, int, OwnershipStore], bool]

_PREDICATES: Dict[str, ResourcePredicate] = {}


def register_resource_predicate(kind: ResourceKind | str, predicate: ResourcePredicate) -> None:
    """Registra (o reemplaza) el predicado de un tipo de recurso."""
    _PREDICATES[_kind_key(kind)] = predicate


def unregister_resource_predicate(kind: ResourceKind | str) -> None:
    _PREDICATES.pop(_kind_key(kind), None)


def registered_kinds() -> frozenset[str]:
    return frozenset(_PREDICATES)


def _kind_key(kind: ResourceKind | str) -> str:
    return kind.value if isinstance(kind, ResourceKind) else str(kind)


def _project_member(identity: Identity, resource_id: int, store: OwnershipStore) -> bool:
    return store.is_project_member(resource_id, identity.id)


def _any_authenticated(identity: Identity, resource_id: int, store: OwnershipStore) -> bool:
    return True


def _invoice_creator(identity: Identity, resource_id: int, store: OwnershipStore) -> bool:
    return store.is_invoice_creator(resource_id, identity.id)


register_resource_predicate(ResourceKind.PROJECT, _project_member)
register_resource_predicate(ResourceKind.CLIENT, _any_authenticated)
register_resource_predicate(ResourceKind.INVOICE, _invoice_creator)


def check_resource_access(
    identity: Identity,
    kind: ResourceKind | str,
    resource_id: int,
    store: OwnershipStore,
) -> None:
    """Lanza ResourceForbiddenError si la identidad no accede al recurso.

    Orden:
        1) admin -> permitir sin consultar.
        2) tipo sin predicado -> permitir.
        3) predicado False -> ResourceForbiddenError.
        4) error del store -> ResourceCheckError.
    """
    if identity.is_admin:
        return

    key = _kind_key(kind)
    predicate = _PREDICATES.get(key)
    if predicate is None:
        logger.debug("Tipo de recurso sin predicado; acceso permitido", extra={"kind": key})
        return

    try:
        granted = predicate(identity, resource_id, store)
    except Exception as exc:
        logger.exception(
            "Fallo verificando acceso a recurso",
            extra={"kind": key, "resource_id": resource_id, "user": identity.id},
        )
        raise ResourceCheckError(original_error=exc) from exc

    if not granted:
        logger.warning(
            "Acceso a recurso denegado",
            extra={"kind": key, "resource_id": resource_id, "user": identity.id},
        )
        raise ResourceForbiddenError()


def get_ownership_store() -> OwnershipStore:
    from ..container import get_ownership_store as _get

    return _get()


def require_resource_access(
    kind: ResourceKind | str, *, param: str = "id"
) -> Callable:
    """Dependency FastAPI: verifica pertenencia al recurso `{param}` del path."""

    def dependency(
        request: Request,
        identity: Identity = Depends(current_user),
        store: OwnershipStore = Depends(get_ownership_store),
    ) -> Identity:
        resource_id = _path_id(request, param)
        if resource_id is not None:
            check_resource_access(identity, kind, resource_id, store)
        return identity

    return dependency


def _path_id(request: Request, param: str) -> Optional[int]:
    # Id no numérico: la validación del path lo rechaza después con 400.
    raw = request.path_params.get(param)
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
