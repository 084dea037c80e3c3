"""
===============================================================================
TARJETA CRC — bizops/interfaces/api/http/routers/clients.py
===============================================================================

Class/Module:
    Clients Router (/api/clients)

Responsibilities:
    - CRUD de clientes con unicidad de email.
    - Suspender / reactivar.
    - Borrado bloqueado si hay proyectos, suscripciones o facturas.

Collaborators:
    - bizops.container.get_client_repository
    - bizops.identity.access_control (ResourceKind.CLIENT)
===============================================================================
"""

from __future__ import annotations

from bizops.container import get_client_repository
from bizops.crosscutting.exceptions import ConflictError, ValidationFailedError
from bizops.crosscutting.logger import logger
from bizops.identity.access_control import ResourceKind, require_resource_access
from bizops.identity.rbac import Operation, require_operation
from bizops.identity.users import Identity
from bizops.infrastructure.repositories import PostgresClientRepository
from bizops.infrastructure.repositories.postgres.clients import EMAIL_TAKEN_MSG
from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    created,
    done,
    reject_if_dependents,
    require_changes,
    require_found,
)
from ..schemas.clients import CreateClientReq, UpdateClientReq
from ..schemas.common import to_record

router = APIRouter(prefix="/clients", tags=["clients"])

_NOT_FOUND = "Cliente no encontrado."
_client_access = require_resource_access(ResourceKind.CLIENT, param="client_id")


@router.get("")
def list_clients(
    search: str = Query(""),
    status: str = Query(""),
    country: str = Query(""),
    repo: PostgresClientRepository = Depends(get_client_repository),
    _actor: Identity = Depends(require_operation(Operation.CLIENTS_LIST)),
):
    return repo.list_clients(search=search, status=status, country=country)


@router.get("/stats/overview")
def clients_stats(
    repo: PostgresClientRepository = Depends(get_client_repository),
    _actor: Identity = Depends(require_operation(Operation.CLIENTS_STATS)),
):
    return repo.stats()


@router.get("/{client_id}")
def get_client(
    client_id: int,
    repo: PostgresClientRepository = Depends(get_client_repository),
    _actor: Identity = Depends(require_operation(Operation.CLIENTS_READ)),
    _access: Identity = Depends(_client_access),
):
    return require_found(repo.get_client(client_id), _NOT_FOUND)


@router.post("", status_code=201)
def create_client(
    req: CreateClientReq,
    repo: PostgresClientRepository = Depends(get_client_repository),
    actor: Identity = Depends(require_operation(Operation.CLIENTS_CREATE)),
):
    if repo.email_taken(req.email):
        raise ConflictError(EMAIL_TAKEN_MSG)

    client_id = repo.create_client(to_record(req))
    logger.info("Cliente creado", extra={"client_id": client_id, "by": actor.id})
    return created("Cliente creado con éxito.", clientId=client_id)


@router.put("/{client_id}")
def update_client(
    client_id: int,
    req: UpdateClientReq,
    repo: PostgresClientRepository = Depends(get_client_repository),
    _actor: Identity = Depends(require_operation(Operation.CLIENTS_UPDATE)),
    _access: Identity = Depends(_client_access),
):
    require_found(repo.exists(client_id), _NOT_FOUND)

    changes = req.changes()
    if changes.get("email") and repo.email_taken(changes["email"], exclude_id=client_id):
        raise ConflictError("Este email ya está en uso.")

    repo.update_client(client_id, require_changes(changes))
    return done("Cliente actualizado con éxito.")


@router.post("/{client_id}/suspend")
def suspend_client(
    client_id: int,
    repo: PostgresClientRepository = Depends(get_client_repository),
    _actor: Identity = Depends(require_operation(Operation.CLIENTS_SET_STATUS)),
):
    status = require_found(repo.get_status(client_id), _NOT_FOUND)
    if status == "suspended":
        raise ValidationFailedError("El cliente ya está suspendido.")
    repo.set_status(client_id, "suspended")
    return done("Cliente suspendido con éxito.")


@router.post("/{client_id}/reactivate")
def reactivate_client(
    client_id: int,
    repo: PostgresClientRepository = Depends(get_client_repository),
    _actor: Identity = Depends(require_operation(Operation.CLIENTS_SET_STATUS)),
):
    status = require_found(repo.get_status(client_id), _NOT_FOUND)
    if status != "suspended":
        raise ValidationFailedError("El cliente no está suspendido.")
    repo.set_status(client_id, "active")
    return done("Cliente reactivado con éxito.")


@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    repo: PostgresClientRepository = Depends(get_client_repository),
    actor: Identity = Depends(require_operation(Operation.CLIENTS_DELETE)),
):
    require_found(repo.exists(client_id), _NOT_FOUND)
    reject_if_dependents(
        repo.dependency_counts(client_id),
        "No se puede eliminar el cliente: tiene proyectos, suscripciones o facturas.",
    )

    repo.delete_client(client_id)
    logger.info("Cliente eliminado", extra={"client_id": client_id, "by": actor.id})
    return done("Cliente eliminado con éxito.")
