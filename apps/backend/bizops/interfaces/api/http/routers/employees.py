"""
===============================================================================
TARJETA CRC — bizops/interfaces/api/http/routers/employees.py
===============================================================================

Class/Module:
    Employees Router (/api/employees)

Responsibilities:
    - Listado/detalle del personal (usuarios que no son clientes).
    - Alta, edición (self o admin/manager), activación/desactivación.
    - Borrado bloqueado si el empleado tiene proyectos, tareas u horas.

Collaborators:
    - bizops.container.get_employee_repository
    - bizops.identity.field_policy.EMPLOYEE_FIELD_POLICY
===============================================================================
"""

from __future__ import annotations

from bizops.container import get_employee_repository
from bizops.crosscutting.exceptions import ConflictError, ValidationFailedError
from bizops.crosscutting.logger import logger
from bizops.identity.auth_users import hash_password
from bizops.identity.field_policy import EMPLOYEE_FIELD_POLICY, apply_field_policy
from bizops.identity.rbac import Operation, require_operation
from bizops.identity.users import Identity, UserRole
from bizops.infrastructure.repositories import PostgresEmployeeRepository
from bizops.infrastructure.repositories.postgres.employees import EMAIL_TAKEN_MSG
from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    created,
    done,
    reject_if_dependents,
    require_changes,
    require_found,
    require_self_or_roles,
)
from ..schemas.common import to_record
from ..schemas.employees import CreateEmployeeReq, UpdateEmployeeReq

router = APIRouter(prefix="/employees", tags=["employees"])

_NOT_FOUND = "Empleado no encontrado."


@router.get("")
def list_employees(
    search: str = Query(""),
    role: str = Query(""),
    department: str = Query(""),
    status: str = Query("", pattern="^(active|inactive)?$"),
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    _actor: Identity = Depends(require_operation(Operation.EMPLOYEES_LIST)),
):
    return repo.list_employees(
        search=search, role=role, department=department, status=status
    )


@router.get("/stats/overview")
def employees_stats(
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    _actor: Identity = Depends(require_operation(Operation.EMPLOYEES_STATS)),
):
    return repo.stats()


@router.get("/{employee_id}")
def get_employee(
    employee_id: int,
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    _actor: Identity = Depends(require_operation(Operation.EMPLOYEES_READ)),
):
    return require_found(repo.get_employee(employee_id), _NOT_FOUND)


@router.post("", status_code=201)
def create_employee(
    req: CreateEmployeeReq,
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    actor: Identity = Depends(require_operation(Operation.EMPLOYEES_CREATE)),
):
    if repo.email_taken(req.email):
        raise ConflictError(EMAIL_TAKEN_MSG)

    data = to_record(req, exclude={"password"})
    data["password_hash"] = hash_password(req.password)
    employee_id = repo.create_employee(data)

    logger.info("Empleado creado", extra={"employee_id": employee_id, "by": actor.id})
    return created("Empleado creado con éxito.", employeeId=employee_id)


@router.put("/{employee_id}")
def update_employee(
    employee_id: int,
    req: UpdateEmployeeReq,
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    actor: Identity = Depends(require_operation(Operation.EMPLOYEES_UPDATE)),
):
    require_self_or_roles(actor, employee_id, {UserRole.ADMIN, UserRole.MANAGER})
    require_found(repo.get_status(employee_id) is not None, _NOT_FOUND)

    changes = apply_field_policy(
        EMPLOYEE_FIELD_POLICY, req.changes(exclude={"password"}), actor.role
    )
    if changes.get("email") and repo.email_taken(changes["email"], exclude_id=employee_id):
        raise ConflictError("Este email ya está en uso.")
    if req.password:
        changes["password_hash"] = hash_password(req.password)

    repo.update_employee(employee_id, require_changes(changes))
    return done("Empleado actualizado con éxito.")


def _set_active(
    repo: PostgresEmployeeRepository, employee_id: int, active: bool
) -> None:
    current = repo.get_status(employee_id)
    require_found(current is not None, _NOT_FOUND)
    if current == active:
        raise ValidationFailedError(
            "El empleado ya está activo." if active else "El empleado ya está desactivado."
        )
    repo.set_active(employee_id, active)


@router.post("/{employee_id}/deactivate")
def deactivate_employee(
    employee_id: int,
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    _actor: Identity = Depends(require_operation(Operation.EMPLOYEES_SET_ACTIVE)),
):
    _set_active(repo, employee_id, False)
    return done("Empleado desactivado con éxito.")


@router.post("/{employee_id}/activate")
def activate_employee(
    employee_id: int,
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    _actor: Identity = Depends(require_operation(Operation.EMPLOYEES_SET_ACTIVE)),
):
    _set_active(repo, employee_id, True)
    return done("Empleado activado con éxito.")


@router.delete("/{employee_id}")
def delete_employee(
    employee_id: int,
    repo: PostgresEmployeeRepository = Depends(get_employee_repository),
    actor: Identity = Depends(require_operation(Operation.EMPLOYEES_DELETE)),
):
    require_found(repo.get_status(employee_id) is not None, _NOT_FOUND)
    reject_if_dependents(
        repo.dependency_counts(employee_id),
        "No se puede eliminar el empleado: tiene proyectos, tareas u horas registradas.",
    )

    repo.delete_employee(employee_id)
    logger.info("Empleado eliminado", extra={"employee_id": employee_id, "by": actor.id})
    return done("Empleado eliminado con éxito.")
