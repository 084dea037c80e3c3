"""
Name: Integration Test DB Setup

Responsibilities:
  - Verificar que la base sea alcanzable antes de correr integración
  - Aplicar migraciones Alembic una vez por sesión
  - Inicializar/cerrar el pool global

Notes:
  - Solo corre con RUN_INTEGRATION=1
  - Usa DATABASE_URL del entorno (ver alembic/env.py)
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from bizops.crosscutting.config import get_settings
from bizops.infrastructure.db.pool import close_pool, init_pool
from psycopg import OperationalError, connect

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")
DB_PORT = os.getenv("POSTGRES_HOST_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "bizops")
DEFAULT_DATABASE_URL = (
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)


def _check_reachable(url: str) -> None:
    try:
        with connect(url, autocommit=True, connect_timeout=2) as conn:
            conn.execute("SELECT 1")
    except OperationalError as exc:
        raise RuntimeError(
            "PostgreSQL no disponible para tests de integración. "
            "Levantá la DB del compose o definí DATABASE_URL."
        ) from exc


if os.getenv("RUN_INTEGRATION") == "1":
    os.environ["APP_ENV"] = "integration"
    os.environ.setdefault("DATABASE_URL", DEFAULT_DATABASE_URL)
    get_settings.cache_clear()


def pytest_collection_modifyitems(config, items) -> None:
    if os.getenv("RUN_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="Set RUN_INTEGRATION=1 to run integration tests")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def apply_migrations() -> None:
    """Run Alembic migrations for integration tests."""
    database_url = os.environ["DATABASE_URL"]
    _check_reachable(database_url)

    backend_dir = Path(__file__).resolve().parents[2]
    config = Config(str(backend_dir / "alembic.ini"))
    config.set_main_option("script_location", str(backend_dir / "alembic"))
    command.upgrade(config, "head")


@pytest.fixture(scope="session")
def db_pool(apply_migrations):
    settings = get_settings()
    pool = init_pool(
        database_url=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    yield pool
    close_pool()
