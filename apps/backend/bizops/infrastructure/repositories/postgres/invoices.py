"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/invoices.py
============================================================
Class: PostgresInvoiceRepository

Responsibilities:
  - CRUD de `invoices` con sus líneas (`invoice_items`) y pagos.
  - Alta con líneas, reemplazo de líneas y borrado en cascada como una
    única transacción.
  - Estadísticas por estado, por mes y top de clientes.
============================================================
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from psycopg import sql

from .base import Filters, PostgresRepository, Row

_INVOICE_JOINS = """
    FROM invoices i
    LEFT JOIN clients c ON i.client_id = c.id
    LEFT JOIN projects p ON i.project_id = p.id
    LEFT JOIN subscriptions s ON i.subscription_id = s.id
    LEFT JOIN users u ON i.created_by = u.id
"""

NUMBER_TAKEN_MSG = "Este número de factura ya existe."


class PostgresInvoiceRepository(PostgresRepository):
    _SQL_INSERT = """
        INSERT INTO invoices (client_id, project_id, subscription_id, invoice_number,
                              issue_date, due_date, subtotal, tax_rate, tax_amount,
                              total_amount, status, payment_method, payment_date,
                              notes, created_by)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    _SQL_INSERT_ITEM = """
        INSERT INTO invoice_items (invoice_id, description, quantity, unit_price,
                                   total_price)
        VALUES (%s, %s, %s, %s, %s)
    """

    _SQL_ITEMS = """
        SELECT id, description, quantity, unit_price, total_price
        FROM invoice_items
        WHERE invoice_id = %s
        ORDER BY id
    """

    _SQL_PAYMENTS = """
        SELECT id, amount, payment_date, payment_method, reference_number, notes
        FROM payments
        WHERE invoice_id = %s
        ORDER BY payment_date DESC
    """

    _SQL_STATS = """
        SELECT
            COUNT(*) AS total_invoices,
            COUNT(*) FILTER (WHERE status = 'draft') AS draft_invoices,
            COUNT(*) FILTER (WHERE status = 'sent') AS sent_invoices,
            COUNT(*) FILTER (WHERE status = 'paid') AS paid_invoices,
            COUNT(*) FILTER (WHERE status = 'overdue') AS overdue_invoices,
            COUNT(*) FILTER (WHERE status = 'cancelled') AS cancelled_invoices,
            SUM(total_amount) AS total_amount,
            COALESCE(SUM(total_amount) FILTER (WHERE status = 'paid'), 0) AS paid_amount,
            COALESCE(SUM(total_amount) FILTER (WHERE status = 'sent'), 0) AS pending_amount
        FROM invoices
    """

    _SQL_MONTHLY = """
        SELECT to_char(issue_date, 'YYYY-MM') AS month, COUNT(*) AS count,
               SUM(total_amount) AS amount
        FROM invoices
        WHERE issue_date >= (CURRENT_DATE - INTERVAL '12 months')
        GROUP BY 1
        ORDER BY month DESC
    """

    _SQL_TOP_CLIENTS = """
        SELECT c.company_name, COUNT(i.id) AS invoice_count,
               SUM(i.total_amount) AS total_amount
        FROM clients c
        JOIN invoices i ON c.id = i.client_id
        GROUP BY c.id, c.company_name
        ORDER BY total_amount DESC
        LIMIT 10
    """

    def list_invoices(
        self,
        *,
        search: str = "",
        status: str = "",
        client_id: int | None = None,
        date_from: Any = None,
        date_to: Any = None,
    ) -> list[Row]:
        filters = (
            Filters()
            .search(search, "i.invoice_number", "c.company_name")
            .add_if(status, "i.status = %s")
            .add_if(client_id, "i.client_id = %s")
            .add_if(date_from, "i.issue_date >= %s")
            .add_if(date_to, "i.issue_date <= %s")
        )
        return self._fetchall(
            f"""
            SELECT i.id, i.invoice_number, i.issue_date, i.due_date, i.subtotal,
                   i.tax_rate, i.tax_amount, i.total_amount, i.status,
                   i.payment_method, i.payment_date, i.notes, i.created_at,
                   i.updated_at,
                   c.id AS client_id, c.company_name AS client_name,
                   c.contact_person AS client_contact, c.email AS client_email,
                   c.phone AS client_phone, c.address AS client_address,
                   p.id AS project_id, p.name AS project_name,
                   s.id AS subscription_id, s.plan_name AS subscription_plan,
                   u.first_name AS created_by_first_name,
                   u.last_name AS created_by_last_name
            {_INVOICE_JOINS}
            WHERE {filters.sql}
            ORDER BY i.created_at DESC
            """,
            filters.params,
            context_msg="PostgresInvoiceRepository: list_invoices failed",
        )

    def get_invoice(self, invoice_id: int) -> Optional[Row]:
        invoice = self._fetchone(
            f"""
            SELECT i.*,
                   c.company_name AS client_name, c.contact_person AS client_contact,
                   c.email AS client_email, c.phone AS client_phone,
                   c.address AS client_address, c.city AS client_city,
                   c.country AS client_country, c.tax_number AS client_tax_number,
                   p.name AS project_name, s.plan_name AS subscription_plan,
                   u.first_name AS created_by_first_name,
                   u.last_name AS created_by_last_name
            {_INVOICE_JOINS}
            WHERE i.id = %s
            """,
            (invoice_id,),
            context_msg="PostgresInvoiceRepository: get_invoice failed",
            extra={"invoice_id": invoice_id},
        )
        if invoice is None:
            return None

        ctx = {"context_msg": "PostgresInvoiceRepository: get_invoice failed"}
        return {
            **invoice,
            "items": self._fetchall(self._SQL_ITEMS, (invoice_id,), **ctx),
            "payments": self._fetchall(self._SQL_PAYMENTS, (invoice_id,), **ctx),
        }

    def get_status(self, invoice_id: int) -> Optional[str]:
        row = self._fetchone(
            "SELECT status FROM invoices WHERE id = %s",
            (invoice_id,),
            context_msg="PostgresInvoiceRepository: get_status failed",
        )
        return None if row is None else row["status"]

    def client_exists(self, client_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM clients WHERE id = %s",
            (client_id,),
            context_msg="PostgresInvoiceRepository: client_exists failed",
        )

    def number_taken(self, invoice_number: str, *, exclude_id: int | None = None) -> bool:
        return self._exists(
            "SELECT 1 FROM invoices WHERE invoice_number = %s AND id <> COALESCE(%s, -1)",
            (invoice_number, exclude_id),
            context_msg="PostgresInvoiceRepository: number_taken failed",
        )

    def _insert_items(self, cur, invoice_id: int, items: Iterable[Mapping[str, Any]]) -> None:
        for item in items:
            cur.execute(
                self._SQL_INSERT_ITEM,
                (
                    invoice_id,
                    item["description"],
                    item["quantity"],
                    item["unit_price"],
                    item["total_price"],
                ),
            )

    def create_invoice(
        self, data: Mapping[str, Any], items: list[Mapping[str, Any]]
    ) -> int:
        """Cabecera + líneas en una única transacción."""
        with self._transaction(
            context_msg="PostgresInvoiceRepository: create_invoice failed",
            extra={"invoice_number": data["invoice_number"], "items": len(items)},
            conflict_msg=NUMBER_TAKEN_MSG,
        ) as cur:
            cur.execute(
                self._SQL_INSERT,
                (
                    data["client_id"],
                    data.get("project_id"),
                    data.get("subscription_id"),
                    data["invoice_number"],
                    data["issue_date"],
                    data["due_date"],
                    data["subtotal"],
                    data["tax_rate"],
                    data["tax_amount"],
                    data["total_amount"],
                    data.get("status") or "draft",
                    data.get("payment_method"),
                    data.get("payment_date"),
                    data.get("notes"),
                    data["created_by"],
                ),
            )
            invoice_id = int(cur.fetchone()["id"])
            self._insert_items(cur, invoice_id, items)
        return invoice_id

    def update_invoice(
        self,
        invoice_id: int,
        columns: Mapping[str, Any],
        items: list[Mapping[str, Any]] | None = None,
    ) -> None:
        """Actualiza columnas y, si vienen, reemplaza todas las líneas."""
        with self._transaction(
            context_msg="PostgresInvoiceRepository: update_invoice failed",
            extra={"invoice_id": invoice_id, "columns": sorted(columns)},
            conflict_msg=NUMBER_TAKEN_MSG,
        ) as cur:
            if columns:
                cur.execute(
                    sql.SQL("UPDATE invoices SET {} WHERE id = %s").format(
                        sql.SQL(", ").join(
                            sql.SQL("{} = %s").format(sql.Identifier(col))
                            for col in columns
                        )
                    ),
                    (*columns.values(), invoice_id),
                )
            if items is not None:
                cur.execute(
                    "DELETE FROM invoice_items WHERE invoice_id = %s", (invoice_id,)
                )
                self._insert_items(cur, invoice_id, items)

    def set_status(self, invoice_id: int, status: str, **columns: Any) -> None:
        self._update_columns(
            "invoices",
            invoice_id,
            {"status": status, **columns},
            context_msg="PostgresInvoiceRepository: set_status failed",
            extra={"invoice_id": invoice_id, "status": status},
        )

    def delete_invoice(self, invoice_id: int) -> None:
        with self._transaction(
            context_msg="PostgresInvoiceRepository: delete_invoice failed",
            extra={"invoice_id": invoice_id},
        ) as cur:
            cur.execute("DELETE FROM invoice_items WHERE invoice_id = %s", (invoice_id,))
            cur.execute("DELETE FROM payments WHERE invoice_id = %s", (invoice_id,))
            cur.execute("DELETE FROM invoices WHERE id = %s", (invoice_id,))

    def stats(self) -> dict[str, Any]:
        ctx = {"context_msg": "PostgresInvoiceRepository: stats failed"}
        return {
            "overview": self._fetchone(self._SQL_STATS, **ctx),
            "monthly": self._fetchall(self._SQL_MONTHLY, **ctx),
            "topClients": self._fetchall(self._SQL_TOP_CLIENTS, **ctx),
        }
