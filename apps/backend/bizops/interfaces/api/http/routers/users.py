"""
===============================================================================
TARJETA CRC — bizops/interfaces/api/http/routers/users.py
===============================================================================

Class/Module:
    Users Router (/api/users)

Responsibilities:
    - CRUD de cuentas y estadísticas por rol/departamento.
    - Detalle en camelCase; self o admin/manager para leer, self o admin
      para editar.
    - Aplicar la política por campo (role/salary/is_active solo admin).

Collaborators:
    - bizops.container.get_user_repository
    - bizops.identity.rbac.require_operation
    - bizops.identity.field_policy.USER_FIELD_POLICY
    - schemas.users
===============================================================================
"""

from __future__ import annotations

from bizops.container import get_user_repository
from bizops.crosscutting.exceptions import ConflictError, ValidationFailedError
from bizops.crosscutting.logger import logger
from bizops.identity.auth_users import hash_password
from bizops.identity.field_policy import USER_FIELD_POLICY, apply_field_policy
from bizops.identity.rbac import Operation, require_operation
from bizops.identity.users import Identity, UserRole
from bizops.infrastructure.repositories import PostgresUserRepository
from bizops.infrastructure.repositories.postgres.users import EMAIL_TAKEN_MSG
from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    created,
    done,
    require_changes,
    require_found,
    require_self_or_roles,
)
from ..schemas.common import to_record
from ..schemas.users import CreateUserReq, UpdateUserReq, UserDetailRes

router = APIRouter(prefix="/users", tags=["users"])

_NOT_FOUND = "Usuario no encontrado."


@router.get("")
@router.get("/", include_in_schema=False)
def list_users(
    search: str = Query(""),
    role: str = Query(""),
    department: str = Query(""),
    repo: PostgresUserRepository = Depends(get_user_repository),
    _actor: Identity = Depends(require_operation(Operation.USERS_LIST)),
):
    return repo.list_users(search=search, role=role, department=department)


@router.get("/select")
def list_selectable_users(
    repo: PostgresUserRepository = Depends(get_user_repository),
    _actor: Identity = Depends(require_operation(Operation.USERS_SELECT)),
):
    return repo.list_selectable()


@router.get("/stats/overview")
def users_stats(
    repo: PostgresUserRepository = Depends(get_user_repository),
    _actor: Identity = Depends(require_operation(Operation.USERS_STATS)),
):
    return repo.stats()


@router.get("/{user_id}", response_model=UserDetailRes, response_model_by_alias=True)
def get_user(
    user_id: int,
    repo: PostgresUserRepository = Depends(get_user_repository),
    actor: Identity = Depends(require_operation(Operation.USERS_READ)),
):
    require_self_or_roles(actor, user_id, {UserRole.ADMIN, UserRole.MANAGER})
    return UserDetailRes.model_validate(require_found(repo.get_user(user_id), _NOT_FOUND))


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_user(
    req: CreateUserReq,
    repo: PostgresUserRepository = Depends(get_user_repository),
    actor: Identity = Depends(require_operation(Operation.USERS_CREATE)),
):
    if repo.email_taken(req.email):
        raise ConflictError(EMAIL_TAKEN_MSG)

    data = to_record(req, exclude={"password"})
    data["password_hash"] = hash_password(req.password)
    user_id = repo.create_user(data)

    logger.info("Usuario creado", extra={"user_id": user_id, "by": actor.id})
    return created("Usuario creado con éxito.", userId=user_id)


@router.put("/{user_id}")
def update_user(
    user_id: int,
    req: UpdateUserReq,
    repo: PostgresUserRepository = Depends(get_user_repository),
    actor: Identity = Depends(require_operation(Operation.USERS_UPDATE)),
):
    require_self_or_roles(actor, user_id, {UserRole.ADMIN})
    require_found(repo.exists(user_id), _NOT_FOUND)

    changes = apply_field_policy(USER_FIELD_POLICY, req.changes(), actor.role)
    if changes.get("email") and repo.email_taken(changes["email"], exclude_id=user_id):
        raise ConflictError("Este email ya está en uso.")

    repo.update_user(user_id, require_changes(changes))
    return done("Usuario actualizado con éxito.")


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    repo: PostgresUserRepository = Depends(get_user_repository),
    actor: Identity = Depends(require_operation(Operation.USERS_DELETE)),
):
    if actor.id == user_id:
        raise ValidationFailedError("No podés eliminar tu propia cuenta.")
    require_found(repo.exists(user_id), _NOT_FOUND)

    repo.delete_user(user_id)
    logger.info("Usuario eliminado", extra={"user_id": user_id, "by": actor.id})
    return done("Usuario eliminado con éxito.")
