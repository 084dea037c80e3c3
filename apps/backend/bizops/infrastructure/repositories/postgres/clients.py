"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/clients.py
============================================================
Class: PostgresClientRepository

Responsibilities:
  - CRUD de `clients` con conteos de proyectos/suscripciones/facturas.
  - Estado del cliente (active | inactive | suspended).
  - Dependencias que bloquean el borrado.
============================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .base import Filters, PostgresRepository, Row

_CLIENT_COLUMNS = """
    c.id, c.company_name, c.contact_person, c.email, c.phone, c.address,
    c.city, c.country, c.tax_number, c.website, c.notes, c.status,
    c.created_at, c.updated_at
"""

EMAIL_TAKEN_MSG = "Un cliente con este email ya existe."


class PostgresClientRepository(PostgresRepository):
    _SQL_INSERT = """
        INSERT INTO clients (company_name, contact_person, email, phone, address,
                             city, country, tax_number, website, notes)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    _SQL_PROJECTS = """
        SELECT p.id, p.name, p.status, p.priority, p.progress, p.budget,
               p.start_date, p.end_date,
               u.first_name AS manager_first_name, u.last_name AS manager_last_name
        FROM projects p
        LEFT JOIN users u ON p.manager_id = u.id
        WHERE p.client_id = %s
        ORDER BY p.created_at DESC
    """

    _SQL_SUBSCRIPTIONS = """
        SELECT id, plan_name, price, billing_cycle, status, start_date, end_date
        FROM subscriptions
        WHERE client_id = %s
        ORDER BY created_at DESC
    """

    _SQL_INVOICES = """
        SELECT id, invoice_number, issue_date, due_date, total_amount, status
        FROM invoices
        WHERE client_id = %s
        ORDER BY created_at DESC
        LIMIT 10
    """

    _SQL_DEPENDENCIES = """
        SELECT
            (SELECT COUNT(*) FROM projects WHERE client_id = %(id)s) AS projects,
            (SELECT COUNT(*) FROM subscriptions WHERE client_id = %(id)s) AS subscriptions,
            (SELECT COUNT(*) FROM invoices WHERE client_id = %(id)s) AS invoices
    """

    _SQL_STATS = """
        SELECT
            COUNT(*) AS total_clients,
            COUNT(*) FILTER (WHERE status = 'active') AS active_clients,
            COUNT(*) FILTER (WHERE status = 'inactive') AS inactive_clients,
            COUNT(*) FILTER (WHERE status = 'suspended') AS suspended_clients
        FROM clients
    """

    _SQL_COUNTRIES = """
        SELECT country, COUNT(*) AS count
        FROM clients
        WHERE country IS NOT NULL
        GROUP BY country
        ORDER BY count DESC
        LIMIT 10
    """

    _SQL_MONTHLY = """
        SELECT to_char(created_at, 'YYYY-MM') AS month, COUNT(*) AS count
        FROM clients
        WHERE created_at >= (NOW() - INTERVAL '12 months')
        GROUP BY 1
        ORDER BY month DESC
    """

    def list_clients(
        self, *, search: str = "", status: str = "", country: str = ""
    ) -> list[Row]:
        filters = (
            Filters()
            .search(search, "c.company_name", "c.contact_person", "c.email")
            .add_if(status, "c.status = %s")
            .add_if(country, "c.country = %s")
        )
        return self._fetchall(
            f"""
            SELECT {_CLIENT_COLUMNS},
                   COUNT(DISTINCT p.id) AS project_count,
                   COUNT(DISTINCT s.id) AS subscription_count
            FROM clients c
            LEFT JOIN projects p ON c.id = p.client_id
            LEFT JOIN subscriptions s ON c.id = s.client_id
            WHERE {filters.sql}
            GROUP BY c.id
            ORDER BY c.created_at DESC
            """,
            filters.params,
            context_msg="PostgresClientRepository: list_clients failed",
        )

    def get_client(self, client_id: int) -> Optional[Row]:
        client = self._fetchone(
            f"""
            SELECT {_CLIENT_COLUMNS},
                   COUNT(DISTINCT p.id) AS project_count,
                   COUNT(DISTINCT s.id) AS subscription_count,
                   COUNT(DISTINCT i.id) AS invoice_count
            FROM clients c
            LEFT JOIN projects p ON c.id = p.client_id
            LEFT JOIN subscriptions s ON c.id = s.client_id
            LEFT JOIN invoices i ON c.id = i.client_id
            WHERE c.id = %s
            GROUP BY c.id
            """,
            (client_id,),
            context_msg="PostgresClientRepository: get_client failed",
            extra={"client_id": client_id},
        )
        if client is None:
            return None

        ctx = {"context_msg": "PostgresClientRepository: get_client failed"}
        return {
            **client,
            "projects": self._fetchall(self._SQL_PROJECTS, (client_id,), **ctx),
            "subscriptions": self._fetchall(
                self._SQL_SUBSCRIPTIONS, (client_id,), **ctx
            ),
            "invoices": self._fetchall(self._SQL_INVOICES, (client_id,), **ctx),
        }

    def exists(self, client_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM clients WHERE id = %s",
            (client_id,),
            context_msg="PostgresClientRepository: exists failed",
        )

    def get_status(self, client_id: int) -> Optional[str]:
        row = self._fetchone(
            "SELECT status FROM clients WHERE id = %s",
            (client_id,),
            context_msg="PostgresClientRepository: get_status failed",
        )
        return None if row is None else row["status"]

    def email_taken(self, email: str, *, exclude_id: int | None = None) -> bool:
        return self._exists(
            "SELECT 1 FROM clients WHERE email = %s AND id <> COALESCE(%s, -1)",
            (email, exclude_id),
            context_msg="PostgresClientRepository: email_taken failed",
        )

    def create_client(self, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            self._SQL_INSERT,
            (
                data["company_name"],
                data["contact_person"],
                data["email"],
                data.get("phone"),
                data.get("address"),
                data.get("city"),
                data.get("country"),
                data.get("tax_number"),
                data.get("website"),
                data.get("notes"),
            ),
            context_msg="PostgresClientRepository: create_client failed",
            conflict_msg=EMAIL_TAKEN_MSG,
        )

    def update_client(self, client_id: int, columns: Mapping[str, Any]) -> None:
        self._update_columns(
            "clients",
            client_id,
            columns,
            context_msg="PostgresClientRepository: update_client failed",
            extra={"client_id": client_id, "columns": sorted(columns)},
            conflict_msg="Este email ya está en uso.",
        )

    def set_status(self, client_id: int, status: str) -> None:
        self._update_columns(
            "clients",
            client_id,
            {"status": status},
            context_msg="PostgresClientRepository: set_status failed",
        )

    def dependency_counts(self, client_id: int) -> dict[str, int]:
        row = self._fetchone(
            self._SQL_DEPENDENCIES,
            {"id": client_id},
            context_msg="PostgresClientRepository: dependency_counts failed",
        )
        return {k: int(v or 0) for k, v in (row or {}).items()}

    def delete_client(self, client_id: int) -> None:
        self._execute(
            "DELETE FROM clients WHERE id = %s",
            (client_id,),
            context_msg="PostgresClientRepository: delete_client failed",
        )

    def stats(self) -> dict[str, Any]:
        ctx = {"context_msg": "PostgresClientRepository: stats failed"}
        return {
            "overview": self._fetchone(self._SQL_STATS, **ctx),
            "countries": self._fetchall(self._SQL_COUNTRIES, **ctx),
            "monthly": self._fetchall(self._SQL_MONTHLY, **ctx),
        }
