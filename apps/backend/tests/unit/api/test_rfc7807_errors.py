"""
Name: RFC7807 Error Contract Tests

Responsibilities:
  - Body validation -> 400 VALIDATION_ERROR listing every {field, msg}
  - Typed errors keep their status/code and carry `error`
  - Unknown routes -> 404 "Ruta no encontrada" + path
  - Unhandled errors -> 500 with detail hidden in production
"""

from unittest.mock import patch

import pytest
from bizops.api.exception_handlers import register_exception_handlers
from bizops.crosscutting.exceptions import (
    ConflictError,
    DatabaseError,
    ValidationFailedError,
)
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

pytestmark = pytest.mark.unit

PROBLEM_JSON = "application/problem+json"


class _Payload(BaseModel):
    name: str = Field(min_length=1)
    quantity: int = Field(gt=0)


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.post("/items")
    def create_item(payload: _Payload):
        return payload.model_dump()

    @app.get("/conflict")
    def conflict():
        raise ConflictError("Este email ya está en uso.")

    @app.get("/invalid")
    def invalid():
        raise ValidationFailedError(
            "No hay campos para actualizar.", errors=[{"field": "body", "msg": "vacío"}]
        )

    @app.get("/db")
    def db():
        raise DatabaseError("connection refused to 10.0.0.5")

    @app.get("/boom")
    def boom():
        raise RuntimeError("secret internals")

    return app


def test_body_validation_lists_all_fields():
    client = TestClient(_build_app())
    response = client.post("/items", json={"name": "", "quantity": 0})

    assert response.status_code == 400
    assert response.headers["content-type"].startswith(PROBLEM_JSON)
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["error"] == body["detail"]
    assert {e["field"] for e in body["errors"]} == {"name", "quantity"}
    assert all(e["msg"] for e in body["errors"])


def test_conflict_is_400_with_error_message():
    client = TestClient(_build_app())
    response = client.get("/conflict")

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "CONFLICT"
    assert body["error"] == "Este email ya está en uso."
    assert body["status"] == 400


def test_validation_failed_keeps_errors():
    client = TestClient(_build_app())
    body = client.get("/invalid").json()

    assert body["errors"] == [{"field": "body", "msg": "vacío"}]


def test_unknown_route_reports_path():
    client = TestClient(_build_app())
    response = client.get("/nope/here")

    assert response.status_code == 404
    assert response.json()["error"] == "Ruta no encontrada"
    assert response.json()["path"] == "/nope/here"


def test_internal_error_shows_detail_outside_production():
    client = TestClient(_build_app())
    body = client.get("/db").json()

    assert body["code"] == "DATABASE_ERROR"
    assert "connection refused" in body["error"]


def test_internal_error_hides_detail_in_production():
    client = TestClient(_build_app())
    with patch("bizops.api.exception_handlers.get_settings") as settings:
        settings.return_value.is_production.return_value = True
        response = client.get("/db")

    assert response.status_code == 500
    assert "10.0.0.5" not in response.text
    assert response.json()["error"] == "Error interno del servidor."


def test_unhandled_exception_is_500():
    client = TestClient(_build_app(), raise_server_exceptions=False)
    with patch("bizops.api.exception_handlers.get_settings") as settings:
        settings.return_value.is_production.return_value = True
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
    assert "secret internals" not in response.text
