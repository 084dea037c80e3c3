"""
Name: PostgresRepository Base Tests

Responsibilities:
  - Traducción de errores: UniqueViolation -> ConflictError, resto -> DatabaseError
  - Filters: condiciones y parámetros en el mismo orden
  - PostgresSequenceStore: prefijo con comodines LIKE escapados
"""

from unittest.mock import MagicMock

import pytest
from bizops.crosscutting.exceptions import ConflictError, DatabaseError
from bizops.domain.sequences import SequenceKind
from bizops.infrastructure.repositories.postgres.base import (
    Filters,
    PostgresRepository,
)
from bizops.infrastructure.repositories.postgres.sequences import (
    PostgresSequenceStore,
)
from psycopg import errors as pg_errors

pytestmark = pytest.mark.unit


def _pool_with_cursor(cursor: MagicMock) -> MagicMock:
    pool = MagicMock()
    conn = pool.connection.return_value.__enter__.return_value
    conn.cursor.return_value.__enter__.return_value = cursor
    return pool


class TestErrorTranslation:
    def test_unique_violation_becomes_conflict(self):
        cursor = MagicMock()
        cursor.execute.side_effect = pg_errors.UniqueViolation("duplicate key")
        repo = PostgresRepository(pool=_pool_with_cursor(cursor))

        with pytest.raises(ConflictError) as exc_info:
            repo._execute(
                "INSERT INTO clients (email) VALUES (%s)",
                ("a@b.com",),
                context_msg="insert failed",
                conflict_msg="Email repetido.",
            )

        assert exc_info.value.message == "Email repetido."

    def test_other_errors_become_database_error(self):
        cursor = MagicMock()
        cursor.execute.side_effect = pg_errors.OperationalError("server closed")
        repo = PostgresRepository(pool=_pool_with_cursor(cursor))

        with pytest.raises(DatabaseError, match="ping"):
            repo._fetchone("SELECT 1", context_msg="ping")

    def test_ping_true_when_reachable(self):
        cursor = MagicMock()
        cursor.fetchone.return_value = {"?column?": 1}
        repo = PostgresRepository(pool=_pool_with_cursor(cursor))

        assert repo.ping() is True

    def test_update_without_columns_skips_query(self):
        pool = MagicMock()
        repo = PostgresRepository(pool=pool)

        assert repo._update_columns("clients", 1, {}, context_msg="noop") == 0
        pool.connection.assert_not_called()


class TestFilters:
    def test_empty_is_true(self):
        assert Filters().sql == "TRUE"

    def test_add_if_skips_blank_values(self):
        filters = Filters("is_active = TRUE").add_if("", "status = %s").add_if(
            "active", "status = %s"
        )

        assert filters.sql == "is_active = TRUE AND status = %s"
        assert filters.params == ["active"]

    def test_search_spans_columns(self):
        filters = Filters().search("acme", "company_name", "email")

        assert filters.sql == "(company_name ILIKE %s OR email ILIKE %s)"
        assert filters.params == ["%acme%", "%acme%"]


class TestPostgresSequenceStore:
    def test_last_code_escapes_like_wildcards(self):
        cursor = MagicMock()
        cursor.fetchone.return_value = {"code": "PRD000012"}
        store = PostgresSequenceStore(pool=_pool_with_cursor(cursor))

        assert store.last_code(SequenceKind.PRODUCT, "CAT_1%") == "PRD000012"
        params = cursor.execute.call_args.args[1]
        assert params == ("CAT\\_1\\%%",)

    def test_last_code_bounds_length(self):
        cursor = MagicMock()
        cursor.fetchone.return_value = {"code": "PRD000012"}
        store = PostgresSequenceStore(pool=_pool_with_cursor(cursor))

        store.last_code(SequenceKind.PRODUCT, "PRD", 9)

        query, params = cursor.execute.call_args.args
        assert "char_length" in repr(query)
        assert params == ("PRD%", 9)

    def test_last_code_none_when_empty(self):
        cursor = MagicMock()
        cursor.fetchone.return_value = None
        store = PostgresSequenceStore(pool=_pool_with_cursor(cursor))

        assert store.last_code(SequenceKind.INVOICE, "INV-2024-") is None
