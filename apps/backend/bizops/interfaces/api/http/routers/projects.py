"""
===============================================================================
TARJETA CRC — bizops/interfaces/api/http/routers/projects.py
===============================================================================

Class/Module:
    Projects Router (/api/projects)

Responsibilities:
    - Listado filtrado: empleados solo ven proyectos que gestionan o en los
      que tienen tareas.
    - Detalle/edición/alta de tareas protegidos por pertenencia al proyecto.
    - Alta con validación de cliente y manager.

Collaborators:
    - bizops.container.get_project_repository
    - bizops.identity.access_control (ResourceKind.PROJECT)
===============================================================================
"""

from __future__ import annotations

from bizops.container import get_project_repository
from bizops.crosscutting.exceptions import ValidationFailedError
from bizops.crosscutting.logger import logger
from bizops.identity.access_control import ResourceKind, require_resource_access
from bizops.identity.rbac import Operation, require_operation
from bizops.identity.users import Identity, UserRole
from bizops.infrastructure.repositories import PostgresProjectRepository
from fastapi import APIRouter, Depends, Query

from ..dependencies import created, done, require_changes, require_found
from ..schemas.common import to_record
from ..schemas.projects import CreateProjectReq, CreateTaskReq, UpdateProjectReq

router = APIRouter(prefix="/projects", tags=["projects"])

_NOT_FOUND = "Proyecto no encontrado."
_project_access = require_resource_access(ResourceKind.PROJECT, param="project_id")


@router.get("")
def list_projects(
    search: str = Query(""),
    status: str = Query(""),
    priority: str = Query(""),
    client_id: int | None = Query(None),
    repo: PostgresProjectRepository = Depends(get_project_repository),
    actor: Identity = Depends(require_operation(Operation.PROJECTS_LIST)),
):
    # Empleados: solo proyectos propios o con tareas asignadas.
    visible_to = actor.id if actor.role == UserRole.EMPLOYEE else None
    return repo.list_projects(
        visible_to=visible_to,
        search=search,
        status=status,
        priority=priority,
        client_id=client_id,
    )


@router.get("/stats/overview")
def projects_stats(
    repo: PostgresProjectRepository = Depends(get_project_repository),
    _actor: Identity = Depends(require_operation(Operation.PROJECTS_STATS)),
):
    return repo.stats()


@router.get("/{project_id}")
def get_project(
    project_id: int,
    repo: PostgresProjectRepository = Depends(get_project_repository),
    _actor: Identity = Depends(require_operation(Operation.PROJECTS_READ)),
    _access: Identity = Depends(_project_access),
):
    return require_found(repo.get_project(project_id), _NOT_FOUND)


@router.post("", status_code=201)
def create_project(
    req: CreateProjectReq,
    repo: PostgresProjectRepository = Depends(get_project_repository),
    actor: Identity = Depends(require_operation(Operation.PROJECTS_CREATE)),
):
    if req.client_id and not repo.client_exists(req.client_id):
        raise ValidationFailedError("Cliente no encontrado.")
    if req.manager_id and not repo.manager_eligible(req.manager_id):
        raise ValidationFailedError("Manager no encontrado.")

    project_id = repo.create_project(to_record(req))
    logger.info("Proyecto creado", extra={"project_id": project_id, "by": actor.id})
    return created("Proyecto creado con éxito.", projectId=project_id)


@router.put("/{project_id}")
def update_project(
    project_id: int,
    req: UpdateProjectReq,
    repo: PostgresProjectRepository = Depends(get_project_repository),
    _actor: Identity = Depends(require_operation(Operation.PROJECTS_UPDATE)),
    _access: Identity = Depends(_project_access),
):
    require_found(repo.exists(project_id), _NOT_FOUND)
    repo.update_project(project_id, require_changes(req.changes()))
    return done("Proyecto actualizado con éxito.")


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    repo: PostgresProjectRepository = Depends(get_project_repository),
    actor: Identity = Depends(require_operation(Operation.PROJECTS_DELETE)),
):
    require_found(repo.exists(project_id), _NOT_FOUND)
    repo.delete_project(project_id)
    logger.info("Proyecto eliminado", extra={"project_id": project_id, "by": actor.id})
    return done("Proyecto eliminado con éxito.")


@router.post("/{project_id}/tasks", status_code=201)
def create_task(
    project_id: int,
    req: CreateTaskReq,
    repo: PostgresProjectRepository = Depends(get_project_repository),
    _actor: Identity = Depends(require_operation(Operation.PROJECTS_CREATE_TASK)),
    _access: Identity = Depends(_project_access),
):
    require_found(repo.exists(project_id), _NOT_FOUND)
    if not repo.user_exists(req.assigned_to):
        raise ValidationFailedError("Usuario asignado no encontrado.")

    task_id = repo.create_task(project_id, to_record(req))
    return created("Tarea creada con éxito.", taskId=task_id)
