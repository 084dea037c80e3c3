"""
===============================================================================
TARJETA CRC — identity/rbac.py
===============================================================================

Módulo:
    Autorizador por rol (tabla estática operación -> roles)

Responsabilidades:
    - Definir el catálogo de operaciones protegidas (Operation).
    - Mantener la tabla OPERATION_ROLES (declarativa, testeable).
    - Exponer dependencias FastAPI require_roles / require_operation que
      leen la identidad adjuntada por el verificador de tokens.

Colaboradores:
    - identity.auth_users.current_user: corre antes y setea request.state.user.
    - crosscutting.exceptions: Unauthenticated / InsufficientRole.

Notas:
    - Sin identidad en el request -> UnauthenticatedError (el guard de rol
      nunca se monta sin el verificador, pero igual falla cerrado).
    - Rol fuera del conjunto -> InsufficientRoleError ("Rol insuficiente.").
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable

from fastapi import Depends, Request

from ..crosscutting.exceptions import InsufficientRoleError, UnauthenticatedError
from ..crosscutting.logger import logger
from .auth_users import current_user
from .users import Identity, UserRole

_ANY: frozenset[UserRole] = frozenset(UserRole)
_ADMIN: frozenset[UserRole] = frozenset({UserRole.ADMIN})
_ADMIN_MANAGER: frozenset[UserRole] = frozenset({UserRole.ADMIN, UserRole.MANAGER})


class Operation(str, Enum):
    """Operaciones protegidas por rol (recurso:acción)."""

    USERS_LIST = "users:list"
    USERS_SELECT = "users:select"
    USERS_READ = "users:read"
    USERS_CREATE = "users:create"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    USERS_STATS = "users:stats"

    EMPLOYEES_LIST = "employees:list"
    EMPLOYEES_READ = "employees:read"
    EMPLOYEES_CREATE = "employees:create"
    EMPLOYEES_UPDATE = "employees:update"
    EMPLOYEES_SET_ACTIVE = "employees:set_active"
    EMPLOYEES_DELETE = "employees:delete"
    EMPLOYEES_STATS = "employees:stats"

    CLIENTS_LIST = "clients:list"
    CLIENTS_READ = "clients:read"
    CLIENTS_CREATE = "clients:create"
    CLIENTS_UPDATE = "clients:update"
    CLIENTS_SET_STATUS = "clients:set_status"
    CLIENTS_DELETE = "clients:delete"
    CLIENTS_STATS = "clients:stats"

    PROJECTS_LIST = "projects:list"
    PROJECTS_READ = "projects:read"
    PROJECTS_CREATE = "projects:create"
    PROJECTS_UPDATE = "projects:update"
    PROJECTS_DELETE = "projects:delete"
    PROJECTS_CREATE_TASK = "projects:create_task"
    PROJECTS_STATS = "projects:stats"

    INVOICES_LIST = "invoices:list"
    INVOICES_GENERATE_NUMBER = "invoices:generate_number"
    INVOICES_READ = "invoices:read"
    INVOICES_CREATE = "invoices:create"
    INVOICES_UPDATE = "invoices:update"
    INVOICES_SEND = "invoices:send"
    INVOICES_MARK_PAID = "invoices:mark_paid"
    INVOICES_DELETE = "invoices:delete"
    INVOICES_STATS = "invoices:stats"

    SUBSCRIPTIONS_TYPES = "subscriptions:types"
    SUBSCRIPTIONS_LIST = "subscriptions:list"
    SUBSCRIPTIONS_READ = "subscriptions:read"
    SUBSCRIPTIONS_CREATE = "subscriptions:create"
    SUBSCRIPTIONS_UPDATE = "subscriptions:update"
    SUBSCRIPTIONS_SET_STATUS = "subscriptions:set_status"
    SUBSCRIPTIONS_DELETE = "subscriptions:delete"
    SUBSCRIPTIONS_STATS = "subscriptions:stats"

    CATEGORIES_LIST = "categories:list"
    CATEGORIES_CREATE = "categories:create"
    SUPPLIERS_LIST = "suppliers:list"
    SUPPLIERS_CREATE = "suppliers:create"
    SUPPLIERS_RATE = "suppliers:rate"
    PRODUCTS_LIST = "products:list"
    PRODUCTS_CREATE = "products:create"
    PURCHASE_LOTS_LIST = "purchase_lots:list"
    PURCHASE_LOTS_CREATE = "purchase_lots:create"
    SALES_LIST = "sales:list"
    SALES_CREATE = "sales:create"
    EQUIPMENT_STATS = "equipment:stats"


OPERATION_ROLES: dict[Operation, frozenset[UserRole]] = {
    Operation.USERS_LIST: _ADMIN_MANAGER,
    Operation.USERS_SELECT: _ANY,
    Operation.USERS_READ: _ANY,
    Operation.USERS_CREATE: _ADMIN,
    Operation.USERS_UPDATE: _ANY,
    Operation.USERS_DELETE: _ADMIN,
    Operation.USERS_STATS: _ADMIN_MANAGER,
    Operation.EMPLOYEES_LIST: _ANY,
    Operation.EMPLOYEES_READ: _ANY,
    Operation.EMPLOYEES_CREATE: _ADMIN_MANAGER,
    Operation.EMPLOYEES_UPDATE: _ANY,
    Operation.EMPLOYEES_SET_ACTIVE: _ADMIN_MANAGER,
    Operation.EMPLOYEES_DELETE: _ADMIN,
    Operation.EMPLOYEES_STATS: _ADMIN_MANAGER,
    Operation.CLIENTS_LIST: _ANY,
    Operation.CLIENTS_READ: _ANY,
    Operation.CLIENTS_CREATE: _ADMIN_MANAGER,
    Operation.CLIENTS_UPDATE: _ANY,
    Operation.CLIENTS_SET_STATUS: _ADMIN_MANAGER,
    Operation.CLIENTS_DELETE: _ADMIN_MANAGER,
    Operation.CLIENTS_STATS: _ADMIN_MANAGER,
    Operation.PROJECTS_LIST: _ANY,
    Operation.PROJECTS_READ: _ANY,
    Operation.PROJECTS_CREATE: _ADMIN_MANAGER,
    Operation.PROJECTS_UPDATE: _ANY,
    Operation.PROJECTS_DELETE: _ADMIN_MANAGER,
    Operation.PROJECTS_CREATE_TASK: _ANY,
    Operation.PROJECTS_STATS: _ADMIN_MANAGER,
    Operation.INVOICES_LIST: _ANY,
    Operation.INVOICES_GENERATE_NUMBER: _ANY,
    Operation.INVOICES_READ: _ANY,
    Operation.INVOICES_CREATE: _ADMIN_MANAGER,
    Operation.INVOICES_UPDATE: _ANY,
    Operation.INVOICES_SEND: _ADMIN_MANAGER,
    Operation.INVOICES_MARK_PAID: _ADMIN_MANAGER,
    Operation.INVOICES_DELETE: _ADMIN_MANAGER,
    Operation.INVOICES_STATS: _ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_TYPES: _ANY,
    Operation.SUBSCRIPTIONS_LIST: _ANY,
    Operation.SUBSCRIPTIONS_READ: _ANY,
    Operation.SUBSCRIPTIONS_CREATE: _ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_UPDATE: _ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_SET_STATUS: _ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_DELETE: _ADMIN,
    Operation.SUBSCRIPTIONS_STATS: _ADMIN_MANAGER,
    Operation.CATEGORIES_LIST: _ANY,
    Operation.CATEGORIES_CREATE: _ADMIN_MANAGER,
    Operation.SUPPLIERS_LIST: _ANY,
    Operation.SUPPLIERS_CREATE: _ADMIN_MANAGER,
    Operation.SUPPLIERS_RATE: _ANY,
    Operation.PRODUCTS_LIST: _ANY,
    Operation.PRODUCTS_CREATE: _ADMIN_MANAGER,
    Operation.PURCHASE_LOTS_LIST: _ANY,
    Operation.PURCHASE_LOTS_CREATE: _ADMIN_MANAGER,
    Operation.SALES_LIST: _ANY,
    Operation.SALES_CREATE: _ANY,
    Operation.EQUIPMENT_STATS: _ADMIN_MANAGER,
}


def is_allowed(role: UserRole, operation: Operation) -> bool:
    """True si el rol está en el conjunto permitido para la operación."""
    return role in OPERATION_ROLES[operation]


def authorize(
    request: Request, allowed: Iterable[UserRole], *, operation: str = ""
) -> Identity:
    """Chequea la identidad adjuntada al request contra un conjunto de roles."""
    identity: Identity | None = getattr(request.state, "user", None)
    if identity is None:
        raise UnauthenticatedError()

    if identity.role not in frozenset(allowed):
        logger.warning(
            "Rol insuficiente",
            extra={"role": identity.role.value, "operation": operation},
        )
        raise InsufficientRoleError()
    return identity


def require_roles(*roles: UserRole | str) -> Callable:
    """Dependency FastAPI: requiere que el usuario tenga alguno de los roles."""
    allowed = frozenset(UserRole(r) for r in roles)

    def dependency(
        request: Request, _identity: Identity = Depends(current_user)
    ) -> Identity:
        return authorize(request, allowed)

    return dependency


def require_operation(operation: Operation) -> Callable:
    """Dependency FastAPI: aplica la fila de OPERATION_ROLES de la operación."""
    allowed = OPERATION_ROLES[operation]

    def dependency(
        request: Request, _identity: Identity = Depends(current_user)
    ) -> Identity:
        return authorize(request, allowed, operation=operation.value)

    return dependency
