"""
Name: Role Authorizer Tests

Responsibilities:
  - Every operation has an allowed-role row
  - The full operation x role table matches the published access matrix
  - The FastAPI dependency rejects with InsufficientRoleError (403)
"""

import pytest
from bizops.api.exception_handlers import register_exception_handlers
from bizops.identity.rbac import (
    OPERATION_ROLES,
    Operation,
    is_allowed,
    require_operation,
    require_roles,
)
from bizops.identity.users import Identity, UserRole
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

pytestmark = pytest.mark.unit

A, M, E, C = UserRole.ADMIN, UserRole.MANAGER, UserRole.EMPLOYEE, UserRole.CLIENT
ANY = {A, M, E, C}
ADMIN_MANAGER = {A, M}

EXPECTED = {
    Operation.USERS_LIST: ADMIN_MANAGER,
    Operation.USERS_SELECT: ANY,
    Operation.USERS_READ: ANY,
    Operation.USERS_CREATE: {A},
    Operation.USERS_UPDATE: ANY,
    Operation.USERS_DELETE: {A},
    Operation.USERS_STATS: ADMIN_MANAGER,
    Operation.EMPLOYEES_LIST: ANY,
    Operation.EMPLOYEES_READ: ANY,
    Operation.EMPLOYEES_CREATE: ADMIN_MANAGER,
    Operation.EMPLOYEES_UPDATE: ANY,
    Operation.EMPLOYEES_SET_ACTIVE: ADMIN_MANAGER,
    Operation.EMPLOYEES_DELETE: {A},
    Operation.EMPLOYEES_STATS: ADMIN_MANAGER,
    Operation.CLIENTS_LIST: ANY,
    Operation.CLIENTS_READ: ANY,
    Operation.CLIENTS_CREATE: ADMIN_MANAGER,
    Operation.CLIENTS_UPDATE: ANY,
    Operation.CLIENTS_SET_STATUS: ADMIN_MANAGER,
    Operation.CLIENTS_DELETE: ADMIN_MANAGER,
    Operation.CLIENTS_STATS: ADMIN_MANAGER,
    Operation.PROJECTS_LIST: ANY,
    Operation.PROJECTS_READ: ANY,
    Operation.PROJECTS_CREATE: ADMIN_MANAGER,
    Operation.PROJECTS_UPDATE: ANY,
    Operation.PROJECTS_DELETE: ADMIN_MANAGER,
    Operation.PROJECTS_CREATE_TASK: ANY,
    Operation.PROJECTS_STATS: ADMIN_MANAGER,
    Operation.INVOICES_LIST: ANY,
    Operation.INVOICES_GENERATE_NUMBER: ANY,
    Operation.INVOICES_READ: ANY,
    Operation.INVOICES_CREATE: ADMIN_MANAGER,
    Operation.INVOICES_UPDATE: ANY,
    Operation.INVOICES_SEND: ADMIN_MANAGER,
    Operation.INVOICES_MARK_PAID: ADMIN_MANAGER,
    Operation.INVOICES_DELETE: ADMIN_MANAGER,
    Operation.INVOICES_STATS: ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_TYPES: ANY,
    Operation.SUBSCRIPTIONS_LIST: ANY,
    Operation.SUBSCRIPTIONS_READ: ANY,
    Operation.SUBSCRIPTIONS_CREATE: ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_UPDATE: ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_SET_STATUS: ADMIN_MANAGER,
    Operation.SUBSCRIPTIONS_DELETE: {A},
    Operation.SUBSCRIPTIONS_STATS: ADMIN_MANAGER,
    Operation.CATEGORIES_LIST: ANY,
    Operation.CATEGORIES_CREATE: ADMIN_MANAGER,
    Operation.SUPPLIERS_LIST: ANY,
    Operation.SUPPLIERS_CREATE: ADMIN_MANAGER,
    Operation.SUPPLIERS_RATE: ANY,
    Operation.PRODUCTS_LIST: ANY,
    Operation.PRODUCTS_CREATE: ADMIN_MANAGER,
    Operation.PURCHASE_LOTS_LIST: ANY,
    Operation.PURCHASE_LOTS_CREATE: ADMIN_MANAGER,
    Operation.SALES_LIST: ANY,
    Operation.SALES_CREATE: ANY,
    Operation.EQUIPMENT_STATS: ADMIN_MANAGER,
}


def test_every_operation_has_a_row():
    assert set(OPERATION_ROLES) == set(Operation)
    assert set(EXPECTED) == set(Operation)


@pytest.mark.parametrize("operation", list(Operation), ids=lambda op: op.value)
@pytest.mark.parametrize("role", list(UserRole), ids=lambda r: r.value)
def test_operation_role_table(operation, role):
    assert is_allowed(role, operation) is (role in EXPECTED[operation])


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/create-client")
    def create_client(actor: Identity = Depends(require_operation(Operation.CLIENTS_CREATE))):
        return {"id": actor.id}

    @app.get("/admin-only")
    def admin_only(actor: Identity = Depends(require_roles("admin"))):
        return {"id": actor.id}

    return app


@pytest.mark.parametrize(
    "role,expected",
    [(A, 200), (M, 200), (E, 403), (C, 403)],
    ids=lambda v: getattr(v, "value", str(v)),
)
def test_require_operation_dependency(role, expected, auth_headers, identities):
    client = TestClient(_build_app())
    response = client.get("/create-client", headers=auth_headers(role))

    assert response.status_code == expected
    if expected == 403:
        assert response.json()["code"] == "INSUFFICIENT_ROLE"
    else:
        assert response.json() == {"id": identities[role].id}


def test_require_roles_without_token_is_401():
    client = TestClient(_build_app())
    response = client.get("/admin-only")

    assert response.status_code == 401
    assert response.json()["code"] == "CREDENTIAL_REQUIRED"


def test_require_roles_accepts_string_role(auth_headers):
    client = TestClient(_build_app())

    assert client.get("/admin-only", headers=auth_headers("admin")).status_code == 200
    assert client.get("/admin-only", headers=auth_headers("manager")).status_code == 403
