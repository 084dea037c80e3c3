"""
Name: PostgreSQL Repository Integration Tests

Responsibilities:
  - UNIQUE reales -> ConflictError (email de cliente, número de factura)
  - Alta de factura con líneas en una única transacción
  - Asignación de números de factura contra la tabla real, incluso en carrera
  - Pertenencia a proyecto y autoría de factura leídas de la base

Notes:
  - Requiere RUN_INTEGRATION=1 y una base PostgreSQL alcanzable
  - Cada test usa datos únicos (uuid) para no depender del orden
"""

from __future__ import annotations

import threading
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from bizops.application.sequence_allocator import SequenceAllocator
from bizops.crosscutting.exceptions import ConflictError
from bizops.domain.sequences import invoice_format
from bizops.identity.auth_users import hash_password
from bizops.infrastructure.repositories.postgres.access import PostgresOwnershipStore
from bizops.infrastructure.repositories.postgres.clients import PostgresClientRepository
from bizops.infrastructure.repositories.postgres.invoices import (
    PostgresInvoiceRepository,
)
from bizops.infrastructure.repositories.postgres.sequences import (
    PostgresSequenceStore,
)
from bizops.infrastructure.repositories.postgres.users import PostgresUserRepository

pytestmark = pytest.mark.integration

# R: Año lejano para no chocar con facturas reales de otras corridas.
_YEAR = 2090 + uuid4().int % 9


def _clock() -> datetime:
    return datetime(_YEAR, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def user_id(db_pool) -> int:
    return PostgresUserRepository().create_user(
        {
            "email": f"it-{uuid4().hex[:10]}@example.com",
            "password_hash": hash_password("secret-123"),
            "first_name": "Test",
            "last_name": "User",
            "role": "employee",
        }
    )


@pytest.fixture
def client_id(db_pool) -> int:
    return PostgresClientRepository().create_client(
        {
            "company_name": "Acme",
            "contact_person": "Ana",
            "email": f"acme-{uuid4().hex[:10]}@example.com",
        }
    )


def _invoice_data(client_id: int, user_id: int, number: str) -> dict:
    return {
        "client_id": client_id,
        "invoice_number": number,
        "issue_date": date(_YEAR, 6, 1),
        "due_date": date(_YEAR, 7, 1),
        "subtotal": Decimal("100.00"),
        "tax_rate": Decimal("21.00"),
        "tax_amount": Decimal("21.00"),
        "total_amount": Decimal("121.00"),
        "created_by": user_id,
    }


_ITEMS = [
    {"description": "Consultoría", "quantity": 2, "unit_price": 50, "total_price": 100}
]


def test_duplicate_client_email_conflicts(db_pool):
    repo = PostgresClientRepository()
    email = f"dup-{uuid4().hex[:10]}@example.com"
    repo.create_client({"company_name": "A", "contact_person": "B", "email": email})

    with pytest.raises(ConflictError):
        repo.create_client({"company_name": "C", "contact_person": "D", "email": email})


def test_create_invoice_with_items(client_id, user_id):
    repo = PostgresInvoiceRepository()
    number = f"IT-{uuid4().hex[:12]}"

    invoice_id = repo.create_invoice(_invoice_data(client_id, user_id, number), _ITEMS)

    invoice = repo.get_invoice(invoice_id)
    assert invoice["invoice_number"] == number
    assert len(invoice["items"]) == 1
    assert PostgresOwnershipStore().is_invoice_creator(invoice_id, user_id)
    assert not PostgresOwnershipStore().is_invoice_creator(invoice_id, user_id + 10_000)


def test_allocator_issues_consecutive_invoice_numbers(client_id, user_id):
    repo = PostgresInvoiceRepository()
    allocator = SequenceAllocator(PostgresSequenceStore(), clock=_clock)
    fmt = invoice_format(_YEAR)

    first, _ = allocator.allocate(
        fmt, lambda code: repo.create_invoice(_invoice_data(client_id, user_id, code), _ITEMS)
    )
    second, _ = allocator.allocate(
        fmt, lambda code: repo.create_invoice(_invoice_data(client_id, user_id, code), _ITEMS)
    )

    assert first.startswith(f"INV-{_YEAR}-")
    assert int(second.rsplit("-", 1)[1]) == int(first.rsplit("-", 1)[1]) + 1


def test_concurrent_allocations_never_duplicate(client_id, user_id):
    repo = PostgresInvoiceRepository()
    allocator = SequenceAllocator(
        PostgresSequenceStore(), mode="strict", max_attempts=8, clock=_clock, sleep=lambda _: None
    )
    fmt = invoice_format(_YEAR)
    barrier = threading.Barrier(4)
    codes: list[str] = []
    errors: list[Exception] = []

    def worker() -> None:
        barrier.wait()
        try:
            code, _ = allocator.allocate(
                fmt,
                lambda c: repo.create_invoice(_invoice_data(client_id, user_id, c), _ITEMS),
            )
            codes.append(code)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(set(codes)) == 4
