"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/employees.py
============================================================
Class: PostgresEmployeeRepository

Responsibilities:
  - Vista "empleado" de la tabla users (todo rol distinto de client).
  - Conteos de proyectos gestionados y tareas asignadas.
  - Detalle con proyectos, tareas y últimas entradas de tiempo.
  - Chequeo de dependencias antes de borrar.

Collaborators:
  - postgres/base.PostgresRepository
============================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .base import Filters, PostgresRepository, Row

_EMPLOYEE_COLUMNS = """
    u.id, u.email, u.first_name, u.last_name, u.role, u.department, u.position,
    u.phone, u.address, u.hire_date, u.salary, u.is_active, u.avatar,
    u.created_at, u.updated_at,
    COUNT(DISTINCT p.id) AS project_count,
    COUNT(DISTINCT pt.id) AS task_count
"""

_EMPLOYEE_JOINS = """
    FROM users u
    LEFT JOIN projects p ON u.id = p.manager_id
    LEFT JOIN project_tasks pt ON u.id = pt.assigned_to
"""

EMAIL_TAKEN_MSG = "Un empleado con este email ya existe."


class PostgresEmployeeRepository(PostgresRepository):
    _SQL_INSERT = """
        INSERT INTO users (email, password_hash, first_name, last_name, role,
                           department, position, phone, address, hire_date,
                           salary, is_active)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    _SQL_MANAGED_PROJECTS = """
        SELECT p.id, p.name, p.status, p.priority, p.progress, p.budget,
               p.start_date, p.end_date, c.company_name AS client_name
        FROM projects p
        LEFT JOIN clients c ON p.client_id = c.id
        WHERE p.manager_id = %s
        ORDER BY p.created_at DESC
    """

    _SQL_ASSIGNED_TASKS = """
        SELECT pt.id, pt.title, pt.status, pt.priority, pt.due_date,
               pt.estimated_hours, pt.actual_hours, p.name AS project_name
        FROM project_tasks pt
        LEFT JOIN projects p ON pt.project_id = p.id
        WHERE pt.assigned_to = %s
        ORDER BY pt.created_at DESC
    """

    _SQL_TIME_ENTRIES = """
        SELECT te.date, te.hours_worked, te.description,
               p.name AS project_name, pt.title AS task_title
        FROM time_entries te
        LEFT JOIN projects p ON te.project_id = p.id
        LEFT JOIN project_tasks pt ON te.task_id = pt.id
        WHERE te.user_id = %s
        ORDER BY te.date DESC
        LIMIT 10
    """

    _SQL_DEPENDENCIES = """
        SELECT
            (SELECT COUNT(*) FROM projects WHERE manager_id = %(id)s) AS projects,
            (SELECT COUNT(*) FROM project_tasks WHERE assigned_to = %(id)s) AS tasks,
            (SELECT COUNT(*) FROM time_entries WHERE user_id = %(id)s) AS time_entries
    """

    _SQL_STATS = """
        SELECT
            COUNT(*) AS total_employees,
            COUNT(*) FILTER (WHERE is_active) AS active_employees,
            COUNT(*) FILTER (WHERE NOT is_active) AS inactive_employees,
            COUNT(*) FILTER (WHERE role = 'admin') AS admins,
            COUNT(*) FILTER (WHERE role = 'manager') AS managers,
            COUNT(*) FILTER (WHERE role = 'employee') AS employees,
            AVG(salary) AS avg_salary
        FROM users
        WHERE role <> 'client'
    """

    _SQL_DEPARTMENTS = """
        SELECT department, COUNT(*) AS count
        FROM users
        WHERE role <> 'client' AND department IS NOT NULL
        GROUP BY department
        ORDER BY count DESC
    """

    _SQL_MONTHLY_HIRES = """
        SELECT to_char(hire_date, 'YYYY-MM') AS month, COUNT(*) AS count
        FROM users
        WHERE role <> 'client' AND hire_date >= (CURRENT_DATE - INTERVAL '12 months')
        GROUP BY 1
        ORDER BY month DESC
    """

    def list_employees(
        self,
        *,
        search: str = "",
        role: str = "",
        department: str = "",
        status: str = "",
    ) -> list[Row]:
        filters = (
            Filters("u.role <> 'client'")
            .search(search, "u.first_name", "u.last_name", "u.email", "u.position")
            .add_if(role, "u.role = %s")
            .add_if(department, "u.department = %s")
        )
        if status == "active":
            filters.add("u.is_active = TRUE")
        elif status == "inactive":
            filters.add("u.is_active = FALSE")

        return self._fetchall(
            f"SELECT {_EMPLOYEE_COLUMNS} {_EMPLOYEE_JOINS} WHERE {filters.sql} "
            "GROUP BY u.id ORDER BY u.created_at DESC",
            filters.params,
            context_msg="PostgresEmployeeRepository: list_employees failed",
        )

    def get_employee(self, employee_id: int) -> Optional[Row]:
        employee = self._fetchone(
            f"SELECT {_EMPLOYEE_COLUMNS} {_EMPLOYEE_JOINS} "
            "WHERE u.id = %s AND u.role <> 'client' GROUP BY u.id",
            (employee_id,),
            context_msg="PostgresEmployeeRepository: get_employee failed",
            extra={"employee_id": employee_id},
        )
        if employee is None:
            return None

        ctx = {"context_msg": "PostgresEmployeeRepository: get_employee failed"}
        return {
            **employee,
            "managedProjects": self._fetchall(
                self._SQL_MANAGED_PROJECTS, (employee_id,), **ctx
            ),
            "assignedTasks": self._fetchall(
                self._SQL_ASSIGNED_TASKS, (employee_id,), **ctx
            ),
            "timeEntries": self._fetchall(self._SQL_TIME_ENTRIES, (employee_id,), **ctx),
        }

    def get_status(self, employee_id: int) -> Optional[bool]:
        """is_active del empleado, o None si no existe (o es cliente)."""
        row = self._fetchone(
            "SELECT is_active FROM users WHERE id = %s AND role <> 'client'",
            (employee_id,),
            context_msg="PostgresEmployeeRepository: get_status failed",
        )
        return None if row is None else bool(row["is_active"])

    def email_taken(self, email: str, *, exclude_id: int | None = None) -> bool:
        return self._exists(
            "SELECT 1 FROM users WHERE email = %s AND id <> COALESCE(%s, -1)",
            (email, exclude_id),
            context_msg="PostgresEmployeeRepository: email_taken failed",
        )

    def create_employee(self, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            self._SQL_INSERT,
            (
                data["email"],
                data["password_hash"],
                data["first_name"],
                data["last_name"],
                data["role"],
                data["department"],
                data["position"],
                data.get("phone"),
                data.get("address"),
                data["hire_date"],
                data["salary"],
                data.get("is_active", True),
            ),
            context_msg="PostgresEmployeeRepository: create_employee failed",
            conflict_msg=EMAIL_TAKEN_MSG,
        )

    def update_employee(self, employee_id: int, columns: Mapping[str, Any]) -> None:
        self._update_columns(
            "users",
            employee_id,
            columns,
            context_msg="PostgresEmployeeRepository: update_employee failed",
            extra={"employee_id": employee_id, "columns": sorted(columns)},
            conflict_msg="Este email ya está en uso.",
        )

    def set_active(self, employee_id: int, active: bool) -> None:
        self._update_columns(
            "users",
            employee_id,
            {"is_active": active},
            context_msg="PostgresEmployeeRepository: set_active failed",
        )

    def dependency_counts(self, employee_id: int) -> dict[str, int]:
        row = self._fetchone(
            self._SQL_DEPENDENCIES,
            {"id": employee_id},
            context_msg="PostgresEmployeeRepository: dependency_counts failed",
        )
        return {k: int(v or 0) for k, v in (row or {}).items()}

    def delete_employee(self, employee_id: int) -> None:
        self._execute(
            "DELETE FROM users WHERE id = %s",
            (employee_id,),
            context_msg="PostgresEmployeeRepository: delete_employee failed",
        )

    def stats(self) -> dict[str, Any]:
        ctx = {"context_msg": "PostgresEmployeeRepository: stats failed"}
        return {
            "overview": self._fetchone(self._SQL_STATS, **ctx),
            "departments": self._fetchall(self._SQL_DEPARTMENTS, **ctx),
            "monthlyHires": self._fetchall(self._SQL_MONTHLY_HIRES, **ctx),
        }
