"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que se incluye en FastAPI con prefix="/api".
  - Centralizar responses RFC7807 para OpenAPI.
  - Componer routers por recurso.

Colaboradores:
  - crosscutting.error_responses.OPENAPI_ERROR_RESPONSES
  - routers.* (sub-routers por recurso)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers.clients import router as clients_router
from .routers.employees import router as employees_router
from .routers.equipment import router as equipment_router
from .routers.invoices import router as invoices_router
from .routers.projects import router as projects_router
from .routers.subscriptions import router as subscriptions_router
from .routers.users import router as users_router


def build_router() -> APIRouter:
    """Construye el router de negocio (sin auth ni health)."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)

    api_router.include_router(users_router)
    api_router.include_router(employees_router)
    api_router.include_router(clients_router)
    api_router.include_router(projects_router)
    api_router.include_router(invoices_router)
    api_router.include_router(subscriptions_router)
    api_router.include_router(equipment_router)

    return api_router


router = build_router()

__all__ = ["router", "build_router"]
