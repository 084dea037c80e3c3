"""Infra DB: pool de conexiones compartido."""

from .pool import (
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
    close_pool,
    get_pool,
    init_pool,
    reset_pool,
)

__all__ = [
    "init_pool",
    "get_pool",
    "close_pool",
    "reset_pool",
    "PoolAlreadyInitializedError",
    "PoolNotInitializedError",
]
