"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Definir los puertos que usan el allocator de secuencias y el control de
  acceso por recurso.
- Mantener application/identity independientes de PostgreSQL.

Collaborators
- infrastructure.repositories: postgres/*, in_memory_*

Constraints
- Solo interfaces: sin I/O, sin SQL.
"""

from typing import Optional, Protocol

from .sequences import SequenceKind


class SequenceStore(Protocol):
    """R: Lectura del último código emitido por tipo y prefijo."""

    def last_code(
        self, kind: SequenceKind, prefix: str, length: Optional[int] = None
    ) -> Optional[str]:
        """R: Mayor código existente que empieza con `prefix` (y mide `length`), o None."""
        ...


class OwnershipStore(Protocol):
    """R: Consultas de pertenencia para el control de acceso por recurso."""

    def is_project_member(self, project_id: int, user_id: int) -> bool:
        """R: True si el usuario gestiona el proyecto o tiene tareas en él."""
        ...

    def is_invoice_creator(self, invoice_id: int, user_id: int) -> bool:
        ...
