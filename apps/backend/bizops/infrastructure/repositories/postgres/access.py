"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/access.py
============================================================
Class: PostgresOwnershipStore

Responsibilities:
  - Responder las consultas de pertenencia que usa el control de
    acceso por recurso (proyecto gestionado/asignado, factura creada).

Constraints:
  - Lecturas frescas en cada llamada, sin cache.
  - Los errores se propagan como DatabaseError; el verificador de
    acceso los convierte en ResourceCheckError.
============================================================
"""

from __future__ import annotations

from .base import PostgresRepository


class PostgresOwnershipStore(PostgresRepository):
    _SQL_PROJECT_ACCESS = """
        SELECT 1
        FROM projects
        WHERE id = %(project_id)s
          AND (manager_id = %(user_id)s
               OR id IN (SELECT project_id FROM project_tasks
                         WHERE assigned_to = %(user_id)s))
    """

    _SQL_INVOICE_CREATOR = """
        SELECT 1 FROM invoices WHERE id = %s AND created_by = %s
    """

    def is_project_member(self, project_id: int, user_id: int) -> bool:
        """True si user gestiona el proyecto o tiene alguna tarea en él."""
        return self._exists(
            self._SQL_PROJECT_ACCESS,
            {"project_id": project_id, "user_id": user_id},
            context_msg="PostgresOwnershipStore: is_project_member failed",
            extra={"project_id": project_id, "user_id": user_id},
        )

    def is_invoice_creator(self, invoice_id: int, user_id: int) -> bool:
        return self._exists(
            self._SQL_INVOICE_CREATOR,
            (invoice_id, user_id),
            context_msg="PostgresOwnershipStore: is_invoice_creator failed",
            extra={"invoice_id": invoice_id, "user_id": user_id},
        )
