"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL compartido por todos los repositorios

Responsabilidades:
  - Abrir el pool en el arranque (lifespan) y cerrarlo al apagar.
  - Aplicar statement_timeout a cada conexión nueva.
  - Fallar explícito si se usa sin abrir o se abre dos veces.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - api/main.py (lifespan: init_pool / close_pool)
  - infrastructure/repositories/postgres/base.py (get_pool)
  - crosscutting.exceptions.DatabaseError (los errores de estado son 500)
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Optional

from psycopg_pool import ConnectionPool

from ...crosscutting.exceptions import DatabaseError
from ...crosscutting.logger import logger


class PoolAlreadyInitializedError(DatabaseError):
    """init_pool() llamado con un pool abierto."""


class PoolNotInitializedError(DatabaseError):
    """get_pool() llamado antes de init_pool() o después de close_pool()."""


_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def _configure_connection(conn) -> None:
    from ...crosscutting.config import get_settings

    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms > 0:
        conn.execute(f"SET statement_timeout = {timeout_ms}")
        conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    global _pool

    with _pool_lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("El pool ya fue inicializado.")
        _pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_configure_connection,
            open=True,
        )
    logger.info("Pool DB abierto", extra={"min_size": min_size, "max_size": max_size})
    return _pool


def get_pool() -> ConnectionPool:
    pool = _pool
    if pool is None:
        raise PoolNotInitializedError("Pool no inicializado: falta init_pool().")
    return pool


def _detach() -> Optional[ConnectionPool]:
    global _pool

    with _pool_lock:
        pool, _pool = _pool, None
    return pool


def close_pool() -> None:
    """Cierra el pool si está abierto (idempotente)."""
    pool = _detach()
    if pool is not None:
        pool.close()
        logger.info("Pool DB cerrado")


def reset_pool() -> None:
    """Reset para tests: descarta el singleton aunque el cierre falle."""
    pool = _detach()
    if pool is not None:
        try:
            pool.close()
        except Exception:
            logger.warning("Fallo cerrando pool en reset", exc_info=True)
