"""Repositorios PostgreSQL (psycopg3 + pool)."""

from .access import PostgresOwnershipStore
from .clients import PostgresClientRepository
from .employees import PostgresEmployeeRepository
from .equipment import PostgresEquipmentRepository
from .invoices import PostgresInvoiceRepository
from .projects import PostgresProjectRepository
from .sequences import PostgresSequenceStore
from .subscriptions import PostgresSubscriptionRepository
from .users import PostgresUserRepository

__all__ = [
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
