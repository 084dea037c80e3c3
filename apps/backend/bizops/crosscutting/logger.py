# apps/backend/bizops/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de request
===============================================================================

Objetivo
--------
Una línea JSON por evento, correlacionable por request_id y user_id. Las
credenciales (password, hashes, tokens, Authorization) nunca llegan al log.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Serializar LogRecord + extra + contexto del request
  - Redactar claves sensibles a cualquier profundidad
  - Acotar strings gigantes y estructuras muy anidadas

Colaboradores:
  - bizops/context.py (snapshot del contexto)
  - crosscutting/config.py (log_level, log_json)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from ..context import get_context_dict

# Atributos estándar de LogRecord: lo que sobra en __dict__ vino por `extra`.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "password_hash",
        "passwd",
        "secret",
        "jwt_secret",
        "token",
        "access_token",
        "authorization",
        "credential",
    }
)

REDACTED = "***REDACTADO***"
_MAX_STR = 8_000
_MAX_DEPTH = 4


def sanitize(value: Any, *, key: str | None = None, depth: int = 0) -> Any:
    """Copia apta para JSON con secretos redactados y tamaños acotados."""
    if key is not None and key.lower() in SENSITIVE_KEYS:
        return REDACTED
    if depth > _MAX_DEPTH:
        return "***TRUNCADO***"
    if isinstance(value, str):
        return value if len(value) <= _MAX_STR else value[:_MAX_STR] + "…(truncado)"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes {len(value)}B>"
    if isinstance(value, dict):
        return {
            str(k): sanitize(v, key=str(k), depth=depth + 1) for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize(v, key=key, depth=depth + 1) for v in value]
    return value


def _exception_info(exc_info) -> dict[str, Any]:
    exc_type, exc, _tb = exc_info
    return {
        "type": exc_type.__name__ if exc_type else None,
        "message": str(exc) if exc else None,
        "stacktrace": traceback.format_exception(*exc_info),
    }


class JSONFormatter(logging.Formatter):
    """LogRecord -> JSON: campos base, contexto del request, extra, excepción."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
            **get_context_dict(),
        }
        payload.update(
            (k, sanitize(v, key=k))
            for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS
        )
        if record.exc_info:
            payload["exception"] = _exception_info(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str, separators=(",", ":"))


def setup_logger(name: str = "bizops-api") -> logging.Logger:
    """Logger del servicio; idempotente ante reimports (un solo handler)."""
    log = logging.getLogger(name)

    try:
        from .config import get_settings

        s = get_settings()
        level, use_json = (s.log_level or "INFO").upper(), s.log_json
    except ValidationError:
        # R: sin DATABASE_URL (scripts, tests) se usan los defaults.
        level, use_json = "INFO", True

    log.setLevel(getattr(logging, level, logging.INFO))
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter() if use_json else logging.Formatter("%(levelname)s %(message)s")
        )
        log.addHandler(handler)
    return log


logger = setup_logger()
