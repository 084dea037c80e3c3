# apps/backend/bizops/crosscutting/error_responses.py
"""
===============================================================================
MÓDULO: Respuestas de error estándar (RFC 7807 / Problem Details)
===============================================================================

Objetivo
--------
Uniformar TODOS los errores HTTP:
- El frontend lee `error` (mensaje) o `errors` (lista de campos inválidos)
- Los clientes programáticos leen `code` (estable)
- El backend correlaciona por request_id

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  AppHTTPException + ErrorDetail + problem_response()

Responsabilidades:
  - Definir catálogo de códigos de error (ErrorCode)
  - Construir payload RFC7807 extendido con `error`
  - Proveer factories de errores frecuentes en la capa HTTP

Colaboradores:
  - crosscutting/middleware.py (request_id, límite de body)
  - crosscutting/rate_limit.py (429)
  - api/exception_handlers.py (mapea la taxonomía interna)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorCode(str, Enum):
    # 4xx
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CREDENTIAL_REQUIRED = "CREDENTIAL_REQUIRED"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
    RESOURCE_FORBIDDEN = "RESOURCE_FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SEQUENCE_EXHAUSTED = "SEQUENCE_EXHAUSTED"
    RATE_LIMITED = "RATE_LIMITED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # 5xx
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_CHECK_FAILED = "RESOURCE_CHECK_FAILED"
    DATABASE_ERROR = "DATABASE_ERROR"
    SEQUENCE_ALLOCATION_FAILED = "SEQUENCE_ALLOCATION_FAILED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ErrorDetail(BaseModel):
    """
    Modelo RFC 7807 (Problem Details).

    Campos extra:
    - error: mensaje legible (mismo texto que detail)
    - code: error code estable para clientes
    - errors: lista de detalles de validación ([{"field":"x","msg":"..."}])
    - request_id: correlación con logs
    """

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    error: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None
    request_id: str | None = None
    path: str | None = None


PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"

_OPENAPI_ERROR_CONTENT = {
    PROBLEM_JSON_MEDIA_TYPE: {"schema": {"$ref": "#/components/schemas/ErrorDetail"}}
}


def _openapi_entry(description: str) -> dict[str, Any]:
    return {
        "description": f"{description} (RFC7807)",
        "model": ErrorDetail,
        "content": _OPENAPI_ERROR_CONTENT,
    }


OPENAPI_ERROR_RESPONSES = {
    "400": _openapi_entry("Bad Request / Validation / Conflict"),
    "401": _openapi_entry("Unauthorized"),
    "403": _openapi_entry("Forbidden"),
    "404": _openapi_entry("Not Found"),
    "default": _openapi_entry("Error"),
}


class AppHTTPException(HTTPException):
    """
    Clase:
      AppHTTPException

    Responsabilidades:
      - Adjuntar un ErrorCode estable
      - Transportar errores de validación (errors[])
      - Permitir headers custom (Retry-After)
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


# ---------------------------------------------------------------------------
# Factories de error (helpers)
# ---------------------------------------------------------------------------
def validation_error(
    detail: str, errors: list[dict[str, Any]] | None = None
) -> AppHTTPException:
    return AppHTTPException(400, ErrorCode.VALIDATION_ERROR, detail, errors)


def not_found(resource: str) -> AppHTTPException:
    return AppHTTPException(404, ErrorCode.NOT_FOUND, f"{resource} no encontrado")


def rate_limited(retry_after: int = 60) -> AppHTTPException:
    return AppHTTPException(
        429,
        ErrorCode.RATE_LIMITED,
        "Demasiadas solicitudes desde esta IP, reintentá más tarde.",
        headers={"Retry-After": str(retry_after)},
    )


def payload_too_large(max_size: str) -> AppHTTPException:
    return AppHTTPException(
        413,
        ErrorCode.PAYLOAD_TOO_LARGE,
        f"El payload excede el máximo permitido ({max_size})",
    )


# ---------------------------------------------------------------------------
# Construcción de respuestas
# ---------------------------------------------------------------------------
def problem_response(
    request: Request,
    *,
    status_code: int,
    code: ErrorCode,
    detail: str,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
    path: str | None = None,
) -> JSONResponse:
    """Arma la respuesta problem+json común a todos los handlers."""
    request_id = getattr(getattr(request, "state", None), "request_id", None)

    error = ErrorDetail(
        type=f"about:blank/{code.value.lower()}",
        title=code.value.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        error=detail,
        code=code,
        instance=str(request.url),
        errors=errors or None,
        request_id=request_id,
        path=path,
    )
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json", exclude_none=True),
        headers=headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    """Handler para AppHTTPException (propaga headers como Retry-After)."""
    return problem_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        detail=str(exc.detail),
        errors=exc.errors,
        headers=getattr(exc, "headers", None),
    )
