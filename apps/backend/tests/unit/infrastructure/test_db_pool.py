"""
Name: Database Pool Tests

Responsibilities:
  - Ciclo de vida del pool (init, get, close)
  - Un único pool por proceso
  - Offline (ConnectionPool mockeado)
"""

from unittest.mock import MagicMock, patch

import pytest
from bizops.crosscutting.exceptions import DatabaseError
from bizops.infrastructure.db.pool import (
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
    close_pool,
    get_pool,
    init_pool,
    reset_pool,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def clean_pool():
    reset_pool()
    yield
    reset_pool()


def test_init_pool_creates_pool():
    with patch("bizops.infrastructure.db.pool.ConnectionPool") as MockPool:
        result = init_pool("postgresql://test", min_size=2, max_size=10)

    kwargs = MockPool.call_args.kwargs
    assert kwargs["conninfo"] == "postgresql://test"
    assert kwargs["min_size"] == 2
    assert kwargs["max_size"] == 10
    assert result is MockPool.return_value
    assert get_pool() is result


def test_init_pool_twice_raises():
    with patch("bizops.infrastructure.db.pool.ConnectionPool"):
        init_pool("postgresql://test", min_size=1, max_size=2)

        with pytest.raises(PoolAlreadyInitializedError):
            init_pool("postgresql://test", min_size=1, max_size=2)


def test_get_pool_without_init_raises():
    with pytest.raises(PoolNotInitializedError):
        get_pool()


def test_close_pool_is_idempotent():
    with patch("bizops.infrastructure.db.pool.ConnectionPool") as MockPool:
        init_pool("postgresql://test", min_size=1, max_size=2)

    close_pool()
    close_pool()

    MockPool.return_value.close.assert_called_once()
    with pytest.raises(PoolNotInitializedError):
        get_pool()


def test_statement_timeout_applied_on_connect():
    from bizops.infrastructure.db.pool import _configure_connection

    conn = MagicMock()
    with patch("bizops.crosscutting.config.get_settings") as settings:
        settings.return_value.db_statement_timeout_ms = 5000
        _configure_connection(conn)

    conn.execute.assert_called_once_with("SET statement_timeout = 5000")


def test_reset_pool_drops_pool_even_if_close_fails():
    with patch("bizops.infrastructure.db.pool.ConnectionPool") as MockPool:
        MockPool.return_value.close.side_effect = RuntimeError("boom")
        init_pool("postgresql://test", min_size=1, max_size=2)

    reset_pool()

    with pytest.raises(PoolNotInitializedError):
        get_pool()


def test_pool_errors_are_database_errors():
    with pytest.raises(DatabaseError) as exc_info:
        get_pool()

    assert exc_info.value.status_code == 500
    assert exc_info.value.error_code == "DATABASE_ERROR"
