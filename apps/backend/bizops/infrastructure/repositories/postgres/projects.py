"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/projects.py
============================================================
Class: PostgresProjectRepository

Responsibilities:
  - CRUD de `projects` y alta de `project_tasks`.
  - Listado restringido para empleados (gestiona o tiene tareas).
  - Validaciones de existencia: cliente, manager elegible, asignado.
============================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .base import Filters, PostgresRepository, Row

_PROJECT_LIST_COLUMNS = """
    p.id, p.name, p.description, p.start_date, p.end_date, p.budget,
    p.status, p.priority, p.progress, p.created_at, p.updated_at,
    c.id AS client_id, c.company_name AS client_name,
    c.contact_person AS client_contact, c.email AS client_email,
    c.phone AS client_phone, c.address AS client_address,
    u.id AS manager_id, u.first_name AS manager_first_name,
    u.last_name AS manager_last_name, u.email AS manager_email
"""

_PROJECT_JOINS = """
    FROM projects p
    LEFT JOIN clients c ON p.client_id = c.id
    LEFT JOIN users u ON p.manager_id = u.id
"""


class PostgresProjectRepository(PostgresRepository):
    _SQL_INSERT = """
        INSERT INTO projects (name, description, client_id, manager_id, start_date,
                              end_date, budget, status, priority, progress)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    _SQL_TASKS = """
        SELECT pt.*, u.first_name AS assigned_first_name,
               u.last_name AS assigned_last_name
        FROM project_tasks pt
        LEFT JOIN users u ON pt.assigned_to = u.id
        WHERE pt.project_id = %s
        ORDER BY pt.created_at DESC
    """

    _SQL_TIME_ENTRIES = """
        SELECT te.*, u.first_name AS user_first_name, u.last_name AS user_last_name,
               pt.title AS task_title
        FROM time_entries te
        LEFT JOIN users u ON te.user_id = u.id
        LEFT JOIN project_tasks pt ON te.task_id = pt.id
        WHERE te.project_id = %s
        ORDER BY te.date DESC
    """

    _SQL_INSERT_TASK = """
        INSERT INTO project_tasks (project_id, title, description, assigned_to,
                                   priority, due_date, estimated_hours)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    _SQL_STATS = """
        SELECT
            COUNT(*) AS total_projects,
            COUNT(*) FILTER (WHERE status = 'planning') AS planning,
            COUNT(*) FILTER (WHERE status = 'in_progress') AS in_progress,
            COUNT(*) FILTER (WHERE status = 'on_hold') AS on_hold,
            COUNT(*) FILTER (WHERE status = 'completed') AS completed,
            COUNT(*) FILTER (WHERE status = 'cancelled') AS cancelled,
            AVG(progress) AS avg_progress,
            SUM(budget) AS total_budget
        FROM projects
    """

    _SQL_PRIORITIES = """
        SELECT priority, COUNT(*) AS count
        FROM projects
        GROUP BY priority
        ORDER BY count DESC
    """

    def list_projects(
        self,
        *,
        visible_to: int | None = None,
        search: str = "",
        status: str = "",
        priority: str = "",
        client_id: int | None = None,
    ) -> list[Row]:
        filters = Filters()
        if visible_to is not None:
            filters.add(
                "(p.manager_id = %s OR p.id IN "
                "(SELECT project_id FROM project_tasks WHERE assigned_to = %s))",
                visible_to,
                visible_to,
            )
        filters.search(search, "p.name", "p.description")
        filters.add_if(status, "p.status = %s")
        filters.add_if(priority, "p.priority = %s")
        filters.add_if(client_id, "p.client_id = %s")

        return self._fetchall(
            f"SELECT {_PROJECT_LIST_COLUMNS} {_PROJECT_JOINS} "
            f"WHERE {filters.sql} ORDER BY p.created_at DESC",
            filters.params,
            context_msg="PostgresProjectRepository: list_projects failed",
        )

    def get_project(self, project_id: int) -> Optional[Row]:
        project = self._fetchone(
            f"""
            SELECT p.*, c.company_name AS client_name,
                   c.contact_person AS client_contact, c.email AS client_email,
                   c.phone AS client_phone, u.first_name AS manager_first_name,
                   u.last_name AS manager_last_name, u.email AS manager_email
            {_PROJECT_JOINS}
            WHERE p.id = %s
            """,
            (project_id,),
            context_msg="PostgresProjectRepository: get_project failed",
            extra={"project_id": project_id},
        )
        if project is None:
            return None

        ctx = {"context_msg": "PostgresProjectRepository: get_project failed"}
        return {
            **project,
            "tasks": self._fetchall(self._SQL_TASKS, (project_id,), **ctx),
            "timeEntries": self._fetchall(self._SQL_TIME_ENTRIES, (project_id,), **ctx),
        }

    def exists(self, project_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM projects WHERE id = %s",
            (project_id,),
            context_msg="PostgresProjectRepository: exists failed",
        )

    def client_exists(self, client_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM clients WHERE id = %s",
            (client_id,),
            context_msg="PostgresProjectRepository: client_exists failed",
        )

    def manager_eligible(self, user_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM users WHERE id = %s AND role IN ('admin', 'manager')",
            (user_id,),
            context_msg="PostgresProjectRepository: manager_eligible failed",
        )

    def user_exists(self, user_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM users WHERE id = %s",
            (user_id,),
            context_msg="PostgresProjectRepository: user_exists failed",
        )

    def create_project(self, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            self._SQL_INSERT,
            (
                data["name"],
                data.get("description"),
                data.get("client_id"),
                data.get("manager_id"),
                data.get("start_date"),
                data.get("end_date"),
                data.get("budget"),
                data.get("status") or "planning",
                data.get("priority") or "medium",
                data.get("progress") or 0,
            ),
            context_msg="PostgresProjectRepository: create_project failed",
        )

    def update_project(self, project_id: int, columns: Mapping[str, Any]) -> None:
        self._update_columns(
            "projects",
            project_id,
            columns,
            context_msg="PostgresProjectRepository: update_project failed",
            extra={"project_id": project_id, "columns": sorted(columns)},
        )

    def delete_project(self, project_id: int) -> None:
        self._execute(
            "DELETE FROM projects WHERE id = %s",
            (project_id,),
            context_msg="PostgresProjectRepository: delete_project failed",
        )

    def create_task(self, project_id: int, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            self._SQL_INSERT_TASK,
            (
                project_id,
                data["title"],
                data.get("description"),
                data["assigned_to"],
                data.get("priority") or "medium",
                data["due_date"],
                data.get("estimated_hours"),
            ),
            context_msg="PostgresProjectRepository: create_task failed",
            extra={"project_id": project_id},
        )

    def stats(self) -> dict[str, Any]:
        ctx = {"context_msg": "PostgresProjectRepository: stats failed"}
        return {
            "overview": self._fetchone(self._SQL_STATS, **ctx),
            "priorities": self._fetchall(self._SQL_PRIORITIES, **ctx),
        }
