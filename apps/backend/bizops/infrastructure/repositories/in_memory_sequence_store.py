"""
CRC — infrastructure/repositories/in_memory_sequence_store.py

Name
- InMemorySequenceStore

Responsibilities
- Guardar códigos emitidos por tipo de secuencia (tests/local dev).
- Emular el UNIQUE de la base: insertar un código repetido -> ConflictError.
- Emular el `ORDER BY code DESC LIMIT 1` de PostgresSequenceStore.

Constraints / Notes
- Thread-safe (Lock): los tests de concurrencia lo comparten entre hilos.
"""

from __future__ import annotations

from threading import Lock
from typing import Dict, Optional, Set

from ...crosscutting.exceptions import ConflictError
from ...domain.sequences import SequenceKind


class InMemorySequenceStore:
    """R: Thread-safe in-memory sequence store."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._codes: Dict[SequenceKind, Set[str]] = {}

    def last_code(
        self, kind: SequenceKind, prefix: str, length: Optional[int] = None
    ) -> Optional[str]:
        with self._lock:
            matching = [
                c
                for c in self._codes.get(kind, ())
                if c.startswith(prefix) and (length is None or len(c) == length)
            ]
        return max(matching) if matching else None

    def insert(self, kind: SequenceKind, code: str) -> None:
        """R: Registra `code`; ConflictError si ya existe (UNIQUE)."""
        with self._lock:
            codes = self._codes.setdefault(kind, set())
            if code in codes:
                raise ConflictError(f"Código duplicado: {code}")
            codes.add(code)

    def codes(self, kind: SequenceKind) -> list[str]:
        with self._lock:
            return sorted(self._codes.get(kind, ()))
