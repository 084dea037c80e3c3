"""
Name: Business Flow Tests (full app)

Responsibilities:
  - Drive the real app (middlewares, /api routers, error handlers)
  - Replace persistence with dependency_overrides (no PostgreSQL)
  - Cover the access matrix end to end for representative operations
"""

import re
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from bizops.api.main import app, fastapi_app
from bizops.application.sequence_allocator import SequenceAllocator
from bizops.container import (
    get_client_repository,
    get_employee_repository,
    get_equipment_repository,
    get_invoice_repository,
    get_project_repository,
    get_sequence_allocator,
    get_subscription_repository,
    get_user_repository,
)
from bizops.domain.sequences import SequenceKind
from bizops.identity import access_control
from bizops.identity.users import UserRole
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

pytestmark = pytest.mark.unit


@pytest.fixture
def client():
    yield TestClient(app)
    fastapi_app.dependency_overrides.clear()


def _override(dependency, value):
    fastapi_app.dependency_overrides[dependency] = lambda: value
    return value


def test_api_test_is_public(client):
    response = client.get("/api/test")

    assert response.status_code == 200
    body = response.json()
    assert body["message"]
    assert body["timestamp"]
    assert body["version"]
    assert response.headers["x-request-id"]


_PUBLIC_PATHS = {"/api/test", "/healthz", "/api/auth/login"}
_PROTECTED = sorted(
    (method, route.path)
    for route in fastapi_app.routes
    if isinstance(route, APIRoute) and route.path not in _PUBLIC_PATHS
    for method in route.methods
)


@pytest.fixture
def mocked_backends():
    """R: Todas las dependencias de persistencia reemplazadas por mocks."""
    getters = [
        get_user_repository,
        get_employee_repository,
        get_client_repository,
        get_project_repository,
        get_invoice_repository,
        get_subscription_repository,
        get_equipment_repository,
        get_sequence_allocator,
        access_control.get_ownership_store,
    ]
    return [_override(getter, MagicMock()) for getter in getters]


@pytest.mark.parametrize(
    "method,path", _PROTECTED, ids=[f"{m} {p}" for m, p in _PROTECTED]
)
def test_protected_route_without_token(client, mocked_backends, method, path):
    url = re.sub(r"\{[^}]+\}", "1", path)

    response = client.request(method, url)

    assert response.status_code == 401
    assert response.json()["code"] == "CREDENTIAL_REQUIRED"
    for backend in mocked_backends:
        assert backend.mock_calls == []


def test_every_business_router_is_protected():
    paths = {path for _, path in _PROTECTED}
    for prefix in ("users", "employees", "clients", "projects", "invoices", "subscriptions", "equipment"):
        assert any(p.startswith(f"/api/{prefix}") for p in paths)


def test_unknown_api_route(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.json() == {**response.json(), "error": "Ruta no encontrada", "path": "/api/unknown"}


# ----------------------------------------------------------------------------
# Clients
# ----------------------------------------------------------------------------


def test_duplicate_client_email_is_400(client, auth_headers):
    repo = _override(get_client_repository, MagicMock())
    repo.email_taken.return_value = True

    response = client.post(
        "/api/clients",
        json={"company_name": "Acme", "contact_person": "Ana", "email": "ANA@acme.com"},
        headers=auth_headers(UserRole.ADMIN),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Un cliente con este email ya existe."
    repo.email_taken.assert_called_once_with("ana@acme.com")
    repo.create_client.assert_not_called()


def test_create_client_validation_lists_fields(client, auth_headers):
    _override(get_client_repository, MagicMock())

    response = client.post(
        "/api/clients",
        json={"company_name": " ", "email": "not-an-email"},
        headers=auth_headers(UserRole.MANAGER),
    )

    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"company_name", "contact_person", "email"} <= fields


def test_create_client_ok(client, auth_headers):
    repo = _override(get_client_repository, MagicMock())
    repo.email_taken.return_value = False
    repo.create_client.return_value = 12

    response = client.post(
        "/api/clients",
        json={"company_name": "Acme", "contact_person": "Ana", "email": "ana@acme.com"},
        headers=auth_headers(UserRole.MANAGER),
    )

    assert response.status_code == 201
    assert response.json()["clientId"] == 12


# ----------------------------------------------------------------------------
# Projects
# ----------------------------------------------------------------------------


def test_create_project_as_employee_is_403(client, auth_headers):
    repo = _override(get_project_repository, MagicMock())

    response = client.post(
        "/api/projects", json={"name": "Portal"}, headers=auth_headers(UserRole.EMPLOYEE)
    )

    assert response.status_code == 403
    assert response.json()["code"] == "INSUFFICIENT_ROLE"
    repo.create_project.assert_not_called()


def test_create_project_as_admin_is_201(client, auth_headers):
    repo = _override(get_project_repository, MagicMock())
    repo.client_exists.return_value = True
    repo.create_project.return_value = 7

    response = client.post(
        "/api/projects",
        json={"name": "Portal", "client_id": 3},
        headers=auth_headers(UserRole.ADMIN),
    )

    assert response.status_code == 201
    assert response.json()["projectId"] == 7
    data = repo.create_project.call_args.args[0]
    assert data["name"] == "Portal"
    assert data["client_id"] == 3


def test_create_project_with_unknown_client_is_400(client, auth_headers):
    repo = _override(get_project_repository, MagicMock())
    repo.client_exists.return_value = False

    response = client.post(
        "/api/projects",
        json={"name": "Portal", "client_id": 99},
        headers=auth_headers(UserRole.MANAGER),
    )

    assert response.status_code == 400
    repo.create_project.assert_not_called()


def test_project_detail_denied_for_non_member(client, auth_headers, ownership_store):
    _override(get_project_repository, MagicMock())
    _override(access_control.get_ownership_store, ownership_store)

    response = client.get("/api/projects/5", headers=auth_headers(UserRole.EMPLOYEE))

    assert response.status_code == 403
    assert response.json()["code"] == "RESOURCE_FORBIDDEN"


def test_project_detail_for_member(client, auth_headers, ownership_store, employee):
    repo = _override(get_project_repository, MagicMock())
    repo.get_project.return_value = {"id": 5, "name": "Portal", "tasks": [], "timeEntries": []}
    ownership_store.add_project_member(5, employee.id)
    _override(access_control.get_ownership_store, ownership_store)

    response = client.get("/api/projects/5", headers=auth_headers(UserRole.EMPLOYEE))

    assert response.status_code == 200
    assert response.json()["name"] == "Portal"


# ----------------------------------------------------------------------------
# Sequence numbers
# ----------------------------------------------------------------------------


def test_generate_number_is_a_preview(client, auth_headers, sequence_store, fixed_clock):
    _override(get_sequence_allocator, SequenceAllocator(sequence_store, clock=fixed_clock))

    first = client.get("/api/invoices/generate-number", headers=auth_headers(UserRole.EMPLOYEE))
    second = client.get("/api/invoices/generate-number", headers=auth_headers(UserRole.EMPLOYEE))

    assert first.status_code == 200
    assert first.json() == {"invoice_number": "INV-2024-0001"}
    assert second.json() == {"invoice_number": "INV-2024-0001"}


def test_generate_number_follows_greatest(client, auth_headers, sequence_store, fixed_clock):
    sequence_store.insert(SequenceKind.INVOICE, "INV-2024-0041")
    _override(get_sequence_allocator, SequenceAllocator(sequence_store, clock=fixed_clock))

    response = client.get("/api/invoices/generate-number", headers=auth_headers(UserRole.ADMIN))

    assert response.json() == {"invoice_number": "INV-2024-0042"}


def test_create_sale_assigns_sale_number(client, auth_headers, sequence_store, fixed_clock):
    _override(get_sequence_allocator, SequenceAllocator(sequence_store, clock=fixed_clock))
    repo = _override(get_equipment_repository, MagicMock())

    def create_sale(code, data, items):
        sequence_store.insert(SequenceKind.SALE, code)
        return 31

    repo.create_sale.side_effect = create_sale
    payload = {
        "items": [{"product_id": 1, "quantity": 2, "unit_price": 5, "total_price": 10}],
        "payment_method": "cash",
        "subtotal": 10,
        "total_amount": 10,
    }

    first = client.post("/api/equipment/sales", json=payload, headers=auth_headers(UserRole.EMPLOYEE))
    second = client.post("/api/equipment/sales", json=payload, headers=auth_headers(UserRole.EMPLOYEE))

    assert first.status_code == 201
    assert first.json()["saleNumber"] == "SALE20240001"
    assert first.json()["saleId"] == 31
    assert second.json()["saleNumber"] == "SALE20240002"
    data = repo.create_sale.call_args.args[1]
    assert data["created_by"] == 3
    assert data["payment_method"] == "cash"


def test_create_sale_requires_items(client, auth_headers):
    repo = _override(get_equipment_repository, MagicMock())

    response = client.post(
        "/api/equipment/sales",
        json={"items": [], "payment_method": "cash", "subtotal": 0, "total_amount": 0},
        headers=auth_headers(UserRole.EMPLOYEE),
    )

    assert response.status_code == 400
    assert "items" in {e["field"] for e in response.json()["errors"]}
    repo.create_sale.assert_not_called()


# ----------------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------------


def test_self_update_drops_admin_only_fields(client, auth_headers):
    repo = _override(get_user_repository, MagicMock())
    repo.exists.return_value = True

    response = client.put(
        "/api/users/3",
        json={"role": "admin", "salary": 99999, "is_active": False, "phone": "555-0100"},
        headers=auth_headers(UserRole.EMPLOYEE),
    )

    assert response.status_code == 200
    repo.update_user.assert_called_once_with(3, {"phone": "555-0100"})


def test_self_update_with_only_restricted_fields_is_400(client, auth_headers):
    repo = _override(get_user_repository, MagicMock())
    repo.exists.return_value = True

    response = client.put(
        "/api/users/3", json={"role": "admin"}, headers=auth_headers(UserRole.EMPLOYEE)
    )

    assert response.status_code == 400
    repo.update_user.assert_not_called()


def test_admin_update_keeps_role_and_salary(client, auth_headers):
    repo = _override(get_user_repository, MagicMock())
    repo.exists.return_value = True

    response = client.put(
        "/api/users/3",
        json={"role": "manager", "salary": "3100.00"},
        headers=auth_headers(UserRole.ADMIN),
    )

    assert response.status_code == 200
    repo.update_user.assert_called_once_with(
        3, {"role": "manager", "salary": Decimal("3100.00")}
    )


def test_update_other_user_as_employee_is_403(client, auth_headers):
    repo = _override(get_user_repository, MagicMock())

    response = client.put(
        "/api/users/1", json={"phone": "555"}, headers=auth_headers(UserRole.EMPLOYEE)
    )

    assert response.status_code == 403
    repo.update_user.assert_not_called()


def test_admin_cannot_delete_own_account(client, auth_headers, admin):
    repo = _override(get_user_repository, MagicMock())

    response = client.delete(f"/api/users/{admin.id}", headers=auth_headers(UserRole.ADMIN))

    assert response.status_code == 400
    assert response.json()["error"] == "No podés eliminar tu propia cuenta."
    repo.delete_user.assert_not_called()


def test_admin_deletes_other_user(client, auth_headers):
    repo = _override(get_user_repository, MagicMock())
    repo.exists.return_value = True

    response = client.delete("/api/users/3", headers=auth_headers(UserRole.ADMIN))

    assert response.status_code == 200
    repo.delete_user.assert_called_once_with(3)


# ----------------------------------------------------------------------------
# Client status
# ----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "action,current,error",
    [
        ("suspend", "suspended", "El cliente ya está suspendido."),
        ("reactivate", "active", "El cliente no está suspendido."),
        ("reactivate", "inactive", "El cliente no está suspendido."),
    ],
)
def test_client_status_transition_errors(client, auth_headers, action, current, error):
    repo = _override(get_client_repository, MagicMock())
    repo.get_status.return_value = current

    response = client.post(f"/api/clients/8/{action}", headers=auth_headers(UserRole.MANAGER))

    assert response.status_code == 400
    assert response.json()["error"] == error
    repo.set_status.assert_not_called()


@pytest.mark.parametrize(
    "action,current,target",
    [("suspend", "active", "suspended"), ("reactivate", "suspended", "active")],
)
def test_client_status_transitions(client, auth_headers, action, current, target):
    repo = _override(get_client_repository, MagicMock())
    repo.get_status.return_value = current

    response = client.post(f"/api/clients/8/{action}", headers=auth_headers(UserRole.ADMIN))

    assert response.status_code == 200
    repo.set_status.assert_called_once_with(8, target)


def test_suspend_unknown_client_is_404(client, auth_headers):
    repo = _override(get_client_repository, MagicMock())
    repo.get_status.return_value = None

    response = client.post("/api/clients/8/suspend", headers=auth_headers(UserRole.ADMIN))

    assert response.status_code == 404
    repo.set_status.assert_not_called()


# ----------------------------------------------------------------------------
# Products and purchase lots
# ----------------------------------------------------------------------------


def test_create_product_returns_category_code(client, auth_headers, sequence_store, fixed_clock):
    _override(get_sequence_allocator, SequenceAllocator(sequence_store, clock=fixed_clock))
    repo = _override(get_equipment_repository, MagicMock())
    repo.create_product.return_value = 44
    sequence_store.insert(SequenceKind.PRODUCT, "CAT007000003")

    response = client.post(
        "/api/equipment/products",
        json={"name": "Taladro", "cost_price": 10, "selling_price": 15, "category_id": 7},
        headers=auth_headers(UserRole.MANAGER),
    )

    assert response.status_code == 201
    assert response.json()["productCode"] == "CAT007000004"
    assert response.json()["productId"] == 44
    assert repo.create_product.call_args.args[0] == "CAT007000004"


def test_create_product_after_degraded_code(client, auth_headers, sequence_store, fixed_clock):
    _override(get_sequence_allocator, SequenceAllocator(sequence_store, clock=fixed_clock))
    repo = _override(get_equipment_repository, MagicMock())
    repo.create_product.return_value = 45
    sequence_store.insert(SequenceKind.PRODUCT, "PRD000001")
    sequence_store.insert(SequenceKind.PRODUCT, "PRD1718000000000")

    response = client.post(
        "/api/equipment/products",
        json={"name": "Cable", "cost_price": 1, "selling_price": 2},
        headers=auth_headers(UserRole.ADMIN),
    )

    assert response.status_code == 201
    assert response.json()["productCode"] == "PRD000002"


def test_create_product_as_employee_is_403(client, auth_headers):
    repo = _override(get_equipment_repository, MagicMock())

    response = client.post(
        "/api/equipment/products",
        json={"name": "Cable", "cost_price": 1, "selling_price": 2},
        headers=auth_headers(UserRole.EMPLOYEE),
    )

    assert response.status_code == 403
    repo.create_product.assert_not_called()


def test_create_purchase_lot_numbers_and_totals(client, auth_headers, sequence_store, fixed_clock):
    _override(get_sequence_allocator, SequenceAllocator(sequence_store, clock=fixed_clock))
    repo = _override(get_equipment_repository, MagicMock())
    repo.create_purchase_lot.return_value = 12
    sequence_store.insert(SequenceKind.LOT, "LOT20240009")

    response = client.post(
        "/api/equipment/purchase-lots",
        json={
            "supplier_id": 2,
            "purchase_date": "2024-03-10",
            "items": [
                {"product_id": 1, "quantity_ordered": 3, "unit_cost": "2.50"},
                {"product_id": 2, "quantity_ordered": 2, "unit_cost": "10"},
            ],
        },
        headers=auth_headers(UserRole.MANAGER),
    )

    assert response.status_code == 201
    assert response.json()["lotNumber"] == "LOT20240010"
    assert response.json()["lotId"] == 12
    code, data, items = repo.create_purchase_lot.call_args.args
    assert code == "LOT20240010"
    assert data["total_amount"] == Decimal("27.50")
    assert data["created_by"] == 2
    assert len(items) == 2
