"""
===============================================================================
TARJETA CRC — bizops/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer repositorios, stores y el allocator de secuencias.
  - Exponer factories para FastAPI (Depends) y para los scripts.
  - Mantener singletons con caching (lru_cache).

Colaboradores:
  - bizops.crosscutting.config.get_settings
  - bizops.domain.repositories.* (puertos)
  - bizops.infrastructure.repositories.* (implementaciones)
  - bizops.application.sequence_allocator

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI. Los tests reemplazan estas
    factories con app.dependency_overrides.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application.sequence_allocator import SequenceAllocator
from .crosscutting.config import get_settings
from .domain.repositories import OwnershipStore, SequenceStore
from .infrastructure.repositories import (
    PostgresClientRepository,
    PostgresEmployeeRepository,
    PostgresEquipmentRepository,
    PostgresInvoiceRepository,
    PostgresOwnershipStore,
    PostgresProjectRepository,
    PostgresSequenceStore,
    PostgresSubscriptionRepository,
    PostgresUserRepository,
)


@lru_cache(maxsize=1)
def get_user_repository() -> PostgresUserRepository:
    return PostgresUserRepository()


@lru_cache(maxsize=1)
def get_employee_repository() -> PostgresEmployeeRepository:
    return PostgresEmployeeRepository()


@lru_cache(maxsize=1)
def get_client_repository() -> PostgresClientRepository:
    return PostgresClientRepository()


@lru_cache(maxsize=1)
def get_project_repository() -> PostgresProjectRepository:
    return PostgresProjectRepository()


@lru_cache(maxsize=1)
def get_invoice_repository() -> PostgresInvoiceRepository:
    return PostgresInvoiceRepository()


@lru_cache(maxsize=1)
def get_subscription_repository() -> PostgresSubscriptionRepository:
    return PostgresSubscriptionRepository()


@lru_cache(maxsize=1)
def get_equipment_repository() -> PostgresEquipmentRepository:
    return PostgresEquipmentRepository()


@lru_cache(maxsize=1)
def get_ownership_store() -> OwnershipStore:
    return PostgresOwnershipStore()


@lru_cache(maxsize=1)
def get_sequence_store() -> SequenceStore:
    return PostgresSequenceStore()


@lru_cache(maxsize=1)
def get_sequence_allocator() -> SequenceAllocator:
    """R: Allocator configurado por Settings (modo y política de reintentos)."""
    settings = get_settings()
    return SequenceAllocator(
        get_sequence_store(),
        mode=settings.sequence_mode,
        max_attempts=settings.sequence_max_attempts,
        backoff_initial_seconds=settings.sequence_backoff_initial_seconds,
        backoff_max_seconds=settings.sequence_backoff_max_seconds,
    )
