"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/base.py
============================================================
Class: PostgresRepository

Responsibilities:
  - Resolver el pool (inyectable para tests, global en producción).
  - Ejecutar SQL parametrizado devolviendo filas como dict (JSON-ready).
  - Traducir fallos: UniqueViolation -> ConflictError, resto -> DatabaseError,
    siempre con logging estructurado y contexto.
  - Proveer un bloque transaccional para escrituras de varias sentencias
    (cabecera + líneas, venta + stock + movimientos).

Collaborators:
  - psycopg / psycopg_pool
  - crosscutting.exceptions (ConflictError, DatabaseError)
  - crosscutting.logger

Constraints:
  - Nunca interpolar input de usuario: los nombres de columna de UPDATE
    vienen de tablas de política del código y pasan por sql.Identifier.
  - Sin reintentos: una falla transitoria se reporta de inmediato.
============================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Mapping, Optional

from psycopg import errors as pg_errors
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import BizOpsError, ConflictError, DatabaseError
from ....crosscutting.logger import logger

Row = dict[str, Any]

_DEFAULT_CONFLICT_MSG = "El registro ya existe."


class Filters:
    """Acumula condiciones WHERE + parámetros en el mismo orden."""

    def __init__(self, *conditions: str):
        self._conditions: list[str] = list(conditions)
        self.params: list[object] = []

    def add(self, condition: str, *params: object) -> "Filters":
        self._conditions.append(condition)
        self.params.extend(params)
        return self

    def add_if(self, value: object, condition: str) -> "Filters":
        """Agrega `condition` (con un único %s) solo si value no es vacío."""
        if value not in (None, ""):
            self.add(condition, value)
        return self

    def search(self, term: str | None, *columns: str) -> "Filters":
        """Búsqueda por substring, case-insensitive, sobre varias columnas."""
        if term:
            pattern = f"%{term}%"
            clause = " OR ".join(f"{col} ILIKE %s" for col in columns)
            self.add(f"({clause})", *([pattern] * len(columns)))
        return self

    @property
    def sql(self) -> str:
        return " AND ".join(self._conditions) if self._conditions else "TRUE"


class PostgresRepository:
    """Base común de repositorios PostgreSQL."""

    def __init__(self, pool: Optional[ConnectionPool] = None):
        # Pool inyectable para tests. En prod se obtiene por factory global.
        self._pool = pool

    # =========================================================
    # Helpers
    # =========================================================
    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        from ...db.pool import get_pool

        return get_pool()

    @staticmethod
    def _translate(
        exc: Exception, *, context_msg: str, extra: Mapping[str, object], conflict_msg: str
    ) -> BizOpsError:
        if isinstance(exc, pg_errors.UniqueViolation):
            logger.info(
                "Violación de unicidad",
                extra={**extra, "context": context_msg, "constraint": _constraint(exc)},
            )
            return ConflictError(conflict_msg, original_error=exc)
        logger.exception(context_msg, extra={**extra, "error": str(exc)})
        return DatabaseError(f"{context_msg}: {exc}", original_error=exc)

    def _run(
        self,
        query: str | sql.Composable,
        params: Iterable[object],
        *,
        fetch: str,
        context_msg: str,
        extra: Mapping[str, object] | None = None,
        conflict_msg: str = _DEFAULT_CONFLICT_MSG,
    ) -> Any:
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        query,
                        params if isinstance(params, Mapping) else tuple(params),
                    )
                    if fetch == "one":
                        return cur.fetchone()
                    if fetch == "all":
                        return cur.fetchall()
                    return cur.rowcount
        except Exception as exc:
            raise self._translate(
                exc,
                context_msg=context_msg,
                extra=extra or {},
                conflict_msg=conflict_msg,
            ) from exc

    def ping(self) -> bool:
        """Chequeo trivial de conectividad."""
        self._run("SELECT 1", (), fetch="one", context_msg="Ping failed")
        return True

    def _fetchone(
        self, query: str | sql.Composable, params: Iterable[object] = (), **kwargs
    ) -> Row | None:
        return self._run(query, params, fetch="one", **kwargs)

    def _fetchall(
        self, query: str | sql.Composable, params: Iterable[object] = (), **kwargs
    ) -> list[Row]:
        return self._run(query, params, fetch="all", **kwargs)

    def _execute(
        self, query: str | sql.Composable, params: Iterable[object] = (), **kwargs
    ) -> int:
        """Ejecuta un INSERT/UPDATE/DELETE y devuelve rowcount."""
        return self._run(query, params, fetch="rowcount", **kwargs)

    def _insert_returning_id(
        self, query: str, params: Iterable[object], **kwargs
    ) -> int:
        row = self._fetchone(query, params, **kwargs)
        return int(row["id"])

    def _exists(self, query: str, params: Iterable[object], **kwargs) -> bool:
        return self._fetchone(query, params, **kwargs) is not None

    def _update_columns(
        self,
        table: str,
        row_id: int,
        columns: Mapping[str, object],
        **kwargs,
    ) -> int:
        """UPDATE table SET col = %s, ... WHERE id = %s (columnas de confianza)."""
        if not columns:
            return 0
        query = sql.SQL("UPDATE {table} SET {assignments} WHERE id = %s").format(
            table=sql.Identifier(table),
            assignments=sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(col)) for col in columns
            ),
        )
        return self._execute(query, [*columns.values(), row_id], **kwargs)

    @contextmanager
    def _transaction(
        self,
        *,
        context_msg: str,
        extra: Mapping[str, object] | None = None,
        conflict_msg: str = _DEFAULT_CONFLICT_MSG,
    ) -> Iterator[Any]:
        """Bloque todo-o-nada. Cede un cursor dict_row ligado a la transacción."""
        try:
            with self._get_pool().connection() as conn:
                with conn.transaction():
                    with conn.cursor(row_factory=dict_row) as cur:
                        yield cur
        except BizOpsError:
            raise
        except Exception as exc:
            raise self._translate(
                exc,
                context_msg=context_msg,
                extra=extra or {},
                conflict_msg=conflict_msg,
            ) from exc


def _constraint(exc: Exception) -> str | None:
    diag = getattr(exc, "diag", None)
    return getattr(diag, "constraint_name", None)
