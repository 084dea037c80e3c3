# apps/backend/bizops/crosscutting/rate_limit.py
"""
===============================================================================
MÓDULO: Rate limiting (Token Bucket) in-memory por IP
===============================================================================

Objetivo
--------
Limitar abuso sobre la superficie /api/ (por defecto 100 requests cada 15
minutos por IP, con burst de 100):
- Token bucket con refill continuo
- Headers RateLimit-Limit / RateLimit-Remaining
- Respuesta RFC7807 429 con Retry-After

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componentes:
  - TokenBucket
  - RateLimitMiddleware

Colaboradores:
  - crosscutting.config
  - crosscutting.error_responses
===============================================================================
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from starlette.requests import Request

from .error_responses import app_exception_handler, rate_limited
from .logger import logger

RATE_LIMITED_PREFIX = "/api/"


@dataclass
class Bucket:
    tokens: float
    last_refill: float


class TokenBucket:
    """
    Clase:
      TokenBucket

    Responsabilidades:
      - Token bucket por key (IP) con refill por tiempo
      - Eviction LRU al superar max_buckets
    """

    def __init__(self, rps: float, burst: int, *, max_buckets: int = 10_000):
        if rps <= 0:
            raise ValueError("rps debe ser > 0")
        if burst <= 0:
            raise ValueError("burst debe ser > 0")
        self.rps = float(rps)
        self.burst = int(burst)
        self.max_buckets = int(max_buckets)

        self._buckets: "OrderedDict[str, Bucket]" = OrderedDict()
        self._lock = threading.Lock()

    def consume(self, key: str) -> tuple[bool, float, int]:
        """Devuelve (permitido, segundos hasta el próximo token, tokens restantes)."""
        with self._lock:
            now = time.monotonic()
            bucket = self._buckets.get(key)
            if bucket is None:
                if len(self._buckets) >= self.max_buckets:
                    self._buckets.popitem(last=False)
                bucket = Bucket(tokens=float(self.burst), last_refill=now)
                self._buckets[key] = bucket

            elapsed = now - bucket.last_refill
            if elapsed > 0:
                bucket.tokens = min(self.burst, bucket.tokens + elapsed * self.rps)
                bucket.last_refill = now
            self._buckets.move_to_end(key, last=True)

            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return True, 0.0, int(bucket.tokens)

            return False, (1 - bucket.tokens) / self.rps, 0

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()


_rate_limiter: Optional[TokenBucket] = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> TokenBucket:
    global _rate_limiter
    with _limiter_lock:
        if _rate_limiter is None:
            from .config import get_settings

            s = get_settings()
            _rate_limiter = TokenBucket(rps=s.rate_limit_rps, burst=s.rate_limit_burst)
        return _rate_limiter


def reset_rate_limiter() -> None:
    global _rate_limiter
    with _limiter_lock:
        _rate_limiter = None


def is_rate_limiting_enabled() -> bool:
    from .config import get_settings

    s = get_settings()
    return s.rate_limit_rps > 0 and s.rate_limit_burst > 0


def get_client_identifier(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return f"ip:{forwarded_for.split(',')[0].strip()}"
    if request.client:
        return f"ip:{request.client.host}"
    return "ip:unknown"


class RateLimitMiddleware:
    """ASGI middleware de rate limit, aplicado solo a rutas bajo /api/."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if (
            scope["type"] != "http"
            or not scope.get("path", "").startswith(RATE_LIMITED_PREFIX)
            or scope.get("method", "").upper() == "OPTIONS"
            or not is_rate_limiting_enabled()
        ):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        client_id = get_client_identifier(request)
        limiter = get_rate_limiter()
        allowed, retry_after, remaining = limiter.consume(client_id)

        if not allowed:
            retry_after_int = max(1, int(retry_after) + 1)
            logger.warning(
                "rate limit excedido",
                extra={"client_id": client_id, "retry_after": retry_after_int},
            )
            exc = rate_limited(retry_after_int)
            exc.headers = {
                **(exc.headers or {}),
                "RateLimit-Limit": str(limiter.burst),
                "RateLimit-Remaining": "0",
            }
            response = await app_exception_handler(request, exc)
            await response(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                hdrs = list(message.get("headers", []))
                hdrs.append((b"ratelimit-limit", str(limiter.burst).encode()))
                hdrs.append((b"ratelimit-remaining", str(remaining).encode()))
                message["headers"] = hdrs
            await send(message)

        await self.app(scope, receive, send_with_headers)
