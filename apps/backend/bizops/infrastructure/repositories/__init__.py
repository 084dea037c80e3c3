"""
============================================================
TARJETA CRC
============================================================
Class: bizops.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación.

Collaborators:
- Repositorios Postgres (SQL crudo, psycopg3)
- Repositorios InMemory (tests del allocator y del control de acceso)
============================================================
"""

from .in_memory_ownership_store import InMemoryOwnershipStore
from .in_memory_sequence_store import InMemorySequenceStore
from .postgres import (
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

__all__ = [
    "InMemoryOwnershipStore",
    "InMemorySequenceStore",
    "PostgresClientRepository",
    "PostgresEmployeeRepository",
    "PostgresEquipmentRepository",
    "PostgresInvoiceRepository",
    "PostgresOwnershipStore",
    "PostgresProjectRepository",
    "PostgresSequenceStore",
    "PostgresSubscriptionRepository",
    "PostgresUserRepository",
]
