# apps/backend/bizops/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores internos)
===============================================================================

Objetivo
--------
Excepciones internas coherentes, con:
- error_code estable (coincide con ErrorCode de la capa HTTP)
- status_code HTTP asociado a la categoría
- error_id para correlación con logs
- message humana en español (sin secretos)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  BizOpsError + subclases

Responsabilidades:
  - Estandarizar errores de autenticación, autorización, validación,
    persistencia y asignación de secuencias
  - Generar error_id para rastreo

Colaboradores:
  - api/exception_handlers.py (traduce a problem+json)
  - identity/*, application/*, infrastructure/repositories/* (lanzan)
===============================================================================
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4


class BizOpsError(Exception):
    """
    Clase:
      BizOpsError

    Responsabilidades:
      - Base para errores internos del sistema
      - Proveer error_code + status_code + error_id + message
    """

    error_code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


# -----------------------------------------------------------------------------
# 401: credenciales
# -----------------------------------------------------------------------------
class CredentialRequiredError(BizOpsError):
    """No se presentó un token Bearer."""

    error_code = "CREDENTIAL_REQUIRED"
    status_code = 401

    def __init__(self, message: str = "Token de acceso requerido.", **kwargs):
        super().__init__(message, **kwargs)


class InvalidCredentialError(BizOpsError):
    """Token malformado, con firma inválida o expirado."""

    error_code = "INVALID_CREDENTIAL"
    status_code = 401

    def __init__(self, message: str = "Token inválido o expirado.", **kwargs):
        super().__init__(message, **kwargs)


class UnauthenticatedError(BizOpsError):
    """Token válido pero el usuario no existe o está desactivado."""

    error_code = "UNAUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Usuario no encontrado o inactivo.", **kwargs):
        super().__init__(message, **kwargs)


# -----------------------------------------------------------------------------
# 403: autorización
# -----------------------------------------------------------------------------
class InsufficientRoleError(BizOpsError):
    error_code = "INSUFFICIENT_ROLE"
    status_code = 403

    def __init__(self, message: str = "Rol insuficiente.", **kwargs):
        super().__init__(message, **kwargs)


class ResourceForbiddenError(BizOpsError):
    error_code = "RESOURCE_FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Acceso denegado a este recurso.", **kwargs):
        super().__init__(message, **kwargs)


# -----------------------------------------------------------------------------
# 400 / 404: entrada y existencia
# -----------------------------------------------------------------------------
class ValidationFailedError(BizOpsError):
    """Entrada inválida. `errors` lista TODAS las violaciones detectadas."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Datos inválidos.",
        errors: list[dict[str, Any]] | None = None,
        **kwargs,
    ):
        self.errors = list(errors or [])
        super().__init__(message, **kwargs)


class NotFoundError(BizOpsError):
    error_code = "NOT_FOUND"
    status_code = 404


class ConflictError(BizOpsError):
    """Violación de unicidad (email, número de factura, código)."""

    error_code = "CONFLICT"
    status_code = 400


class SequenceExhaustedError(ConflictError):
    """El modo estricto agotó sus reintentos sin obtener un código libre."""

    error_code = "SEQUENCE_EXHAUSTED"


# -----------------------------------------------------------------------------
# 500: fallas internas
# -----------------------------------------------------------------------------
class InternalError(BizOpsError):
    error_code = "INTERNAL_ERROR"
    status_code = 500


class DatabaseError(InternalError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code = "DATABASE_ERROR"


class ResourceCheckError(InternalError):
    """Falló la consulta de pertenencia de un recurso."""

    error_code = "RESOURCE_CHECK_FAILED"

    def __init__(self, message: str = "Error al verificar acceso.", **kwargs):
        super().__init__(message, **kwargs)


class SequenceAllocationError(InternalError):
    """La secuencia desbordó el ancho fijo de su formato."""

    error_code = "SEQUENCE_ALLOCATION_FAILED"
