"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/subscriptions.py
============================================================
Class: PostgresSubscriptionRepository

Responsibilities:
  - CRUD de `subscriptions` (servicios recurrentes por cliente).
  - Transiciones de estado (suspend/reactivate/cancel).
  - Estadísticas por estado, por plan, por mes y top de clientes.
============================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .base import Filters, PostgresRepository, Row


class PostgresSubscriptionRepository(PostgresRepository):
    _SQL_INSERT = """
        INSERT INTO subscriptions (client_id, plan_name, description, price,
                                   billing_cycle, start_date, end_date, auto_renew)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    _SQL_OVERVIEW = """
        SELECT
            COUNT(*) AS total_subscriptions,
            COUNT(*) FILTER (WHERE status = 'active') AS active_subscriptions,
            COUNT(*) FILTER (WHERE status = 'suspended') AS suspended_subscriptions,
            COUNT(*) FILTER (WHERE status = 'cancelled') AS cancelled_subscriptions,
            COUNT(*) FILTER (WHERE status = 'expired') AS expired_subscriptions,
            SUM(price) AS total_revenue,
            COALESCE(SUM(price) FILTER (WHERE status = 'active'), 0) AS active_revenue
        FROM subscriptions
    """

    _SQL_BY_TYPE = """
        SELECT plan_name, COUNT(*) AS count, SUM(price) AS total_revenue,
               AVG(price) AS avg_price
        FROM subscriptions
        GROUP BY plan_name
        ORDER BY count DESC
    """

    _SQL_MONTHLY = """
        SELECT to_char(start_date, 'YYYY-MM') AS month,
               COUNT(*) AS new_subscriptions, SUM(price) AS revenue
        FROM subscriptions
        WHERE start_date >= (CURRENT_DATE - INTERVAL '12 months')
        GROUP BY 1
        ORDER BY month ASC
    """

    _SQL_TOP_CLIENTS = """
        SELECT c.company_name, COUNT(s.id) AS subscription_count,
               SUM(s.price) AS total_spent
        FROM clients c
        JOIN subscriptions s ON c.id = s.client_id
        GROUP BY c.id, c.company_name
        ORDER BY total_spent DESC
        LIMIT 10
    """

    def list_subscriptions(
        self,
        *,
        search: str = "",
        status: str = "",
        client_id: int | None = None,
        plan_type: str = "",
    ) -> list[Row]:
        filters = (
            Filters()
            .search(search, "s.plan_name", "c.company_name")
            .add_if(status, "s.status = %s")
            .add_if(client_id, "s.client_id = %s")
        )
        if plan_type:
            filters.add("s.plan_name ILIKE %s", f"%{plan_type}%")
        return self._fetchall(
            f"""
            SELECT s.id, s.plan_name, s.description, s.price, s.billing_cycle,
                   s.start_date, s.end_date, s.status, s.auto_renew,
                   s.created_at, s.updated_at,
                   c.id AS client_id, c.company_name AS client_name,
                   c.contact_person AS client_contact, c.email AS client_email,
                   c.phone AS client_phone
            FROM subscriptions s
            JOIN clients c ON s.client_id = c.id
            WHERE {filters.sql}
            ORDER BY s.created_at DESC
            """,
            filters.params,
            context_msg="PostgresSubscriptionRepository: list_subscriptions failed",
        )

    def get_subscription(self, subscription_id: int) -> Optional[Row]:
        subscription = self._fetchone(
            """
            SELECT s.*,
                   c.company_name AS client_name, c.contact_person AS client_contact,
                   c.email AS client_email, c.phone AS client_phone,
                   c.address AS client_address, c.city AS client_city,
                   c.country AS client_country
            FROM subscriptions s
            JOIN clients c ON s.client_id = c.id
            WHERE s.id = %s
            """,
            (subscription_id,),
            context_msg="PostgresSubscriptionRepository: get_subscription failed",
            extra={"subscription_id": subscription_id},
        )
        if subscription is None:
            return None
        invoices = self._fetchall(
            """
            SELECT id, invoice_number, issue_date, due_date, total_amount, status
            FROM invoices
            WHERE subscription_id = %s
            ORDER BY issue_date DESC
            LIMIT 10
            """,
            (subscription_id,),
            context_msg="PostgresSubscriptionRepository: get_subscription failed",
        )
        return {**subscription, "invoices": invoices}

    def get_status(self, subscription_id: int) -> Optional[str]:
        row = self._fetchone(
            "SELECT status FROM subscriptions WHERE id = %s",
            (subscription_id,),
            context_msg="PostgresSubscriptionRepository: get_status failed",
        )
        return None if row is None else row["status"]

    def client_exists(self, client_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM clients WHERE id = %s",
            (client_id,),
            context_msg="PostgresSubscriptionRepository: client_exists failed",
        )

    def create_subscription(self, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            self._SQL_INSERT,
            (
                data["client_id"],
                data["plan_name"],
                data.get("description"),
                data["price"],
                data["billing_cycle"],
                data["start_date"],
                data["end_date"],
                data.get("auto_renew", True),
            ),
            context_msg="PostgresSubscriptionRepository: create_subscription failed",
            extra={"client_id": data["client_id"]},
        )

    def update_subscription(self, subscription_id: int, columns: Mapping[str, Any]) -> None:
        self._update_columns(
            "subscriptions",
            subscription_id,
            columns,
            context_msg="PostgresSubscriptionRepository: update_subscription failed",
            extra={"subscription_id": subscription_id, "columns": sorted(columns)},
        )

    def set_status(self, subscription_id: int, status: str) -> None:
        self.update_subscription(subscription_id, {"status": status})

    def invoice_count(self, subscription_id: int) -> int:
        row = self._fetchone(
            "SELECT COUNT(*) AS count FROM invoices WHERE subscription_id = %s",
            (subscription_id,),
            context_msg="PostgresSubscriptionRepository: invoice_count failed",
        )
        return int(row["count"])

    def delete_subscription(self, subscription_id: int) -> None:
        self._execute(
            "DELETE FROM subscriptions WHERE id = %s",
            (subscription_id,),
            context_msg="PostgresSubscriptionRepository: delete_subscription failed",
            extra={"subscription_id": subscription_id},
        )

    def stats(self) -> dict[str, Any]:
        ctx = {"context_msg": "PostgresSubscriptionRepository: stats failed"}
        return {
            "overview": self._fetchone(self._SQL_OVERVIEW, **ctx),
            "byType": self._fetchall(self._SQL_BY_TYPE, **ctx),
            "monthly": self._fetchall(self._SQL_MONTHLY, **ctx),
            "topClients": self._fetchall(self._SQL_TOP_CLIENTS, **ctx),
        }
