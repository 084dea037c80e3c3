"""
===============================================================================
TARJETA CRC — bizops/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir la taxonomía BizOpsError a respuestas RFC7807 (+ `error`).
  - Uniformar errores de validación de FastAPI: 400 con errors[{field,msg}].
  - 404 de rutas inexistentes con `path`.
  - Evitar filtrar detalles internos en producción.

Patrones aplicados:
  - Exception Mapping (Presentation Layer).
  - Fail-safe: cualquier excepción no tipada -> INTERNAL_ERROR (con logging).

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, problem_response
  - crosscutting.exceptions: BizOpsError y derivadas
  - crosscutting.config.get_settings (nivel de detalle)
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
    problem_response,
)
from ..crosscutting.exceptions import BizOpsError, InternalError, ValidationFailedError
from ..crosscutting.logger import logger

_ROUTE_NOT_FOUND = "Ruta no encontrada"


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def _field_of(loc: tuple | list) -> str:
    # R: ("body", "items", 0, "quantity") -> "items.0.quantity"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


async def bizops_error_handler(request: Request, exc: BizOpsError) -> JSONResponse:
    """BizOpsError -> problem+json con el status y code de su categoría."""
    request_id = _request_id_from(request)
    detail = exc.message
    errors = None

    if isinstance(exc, ValidationFailedError):
        errors = exc.errors or None

    if isinstance(exc, InternalError):
        logger.error(
            "Error interno",
            extra={
                "code": exc.error_code,
                "error_id": exc.error_id,
                "message": exc.message,
                "request_id": request_id,
            },
        )
        if get_settings().is_production():
            detail = "Error interno del servidor."
        errors = [{"error_id": exc.error_id, "request_id": request_id}]
    else:
        logger.info(
            "Request rechazado",
            extra={"code": exc.error_code, "status": exc.status_code},
        )

    return problem_response(
        request,
        status_code=exc.status_code,
        code=ErrorCode(exc.error_code),
        detail=detail,
        errors=errors,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": _field_of(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return problem_response(
        request,
        status_code=400,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Datos inválidos.",
        errors=errors,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """404 de routing con `path`; el resto pasa como problem+json genérico."""
    if isinstance(exc, AppHTTPException):
        return await app_exception_handler(request, exc)

    if exc.status_code == 404:
        return problem_response(
            request,
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail=_ROUTE_NOT_FOUND,
            path=request.url.path,
        )

    code = ErrorCode.INTERNAL_ERROR if exc.status_code >= 500 else ErrorCode.VALIDATION_ERROR
    return problem_response(
        request,
        status_code=exc.status_code,
        code=code,
        detail=str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica en producción.
    """
    request_id = _request_id_from(request)

    logger.error(
        "Excepción no controlada",
        exc_info=True,
        extra={"request_id": request_id, "error": str(exc)},
    )

    # R: En desarrollo ayudamos un poco más; en producción evitamos filtrar detalles.
    detail = "Error interno del servidor." if get_settings().is_production() else str(exc)

    return problem_response(
        request,
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
        errors=[{"request_id": request_id}],
    )


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - AppHTTPException hereda de HTTPException: la resuelve el handler HTTP.
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(BizOpsError, bizops_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
