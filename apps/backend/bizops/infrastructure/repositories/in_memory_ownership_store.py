"""
CRC — infrastructure/repositories/in_memory_ownership_store.py

Name
- InMemoryOwnershipStore

Responsibilities
- Responder pertenencia a proyectos y autoría de facturas desde sets en
  memoria (tests/local dev).
"""

from __future__ import annotations

from threading import Lock
from typing import Set, Tuple


class InMemoryOwnershipStore:
    """R: Thread-safe in-memory ownership store."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._project_members: Set[Tuple[int, int]] = set()
        self._invoice_creators: Set[Tuple[int, int]] = set()

    def add_project_member(self, project_id: int, user_id: int) -> None:
        with self._lock:
            self._project_members.add((project_id, user_id))

    def add_invoice_creator(self, invoice_id: int, user_id: int) -> None:
        with self._lock:
            self._invoice_creators.add((invoice_id, user_id))

    def is_project_member(self, project_id: int, user_id: int) -> bool:
        with self._lock:
            return (project_id, user_id) in self._project_members

    def is_invoice_creator(self, invoice_id: int, user_id: int) -> bool:
        with self._lock:
            return (invoice_id, user_id) in self._invoice_creators
