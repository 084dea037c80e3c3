"""
===============================================================================
TARJETA CRC — bizops/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Guardar en ContextVars los datos que correlacionan cada línea de log
    con su request: request_id, método, path y usuario autenticado.
  - Exponer un snapshot plano (get_context_dict) para el formatter JSON.

Colaboradores:
  - bizops.crosscutting.middleware: abre el contexto al entrar el request
    y lo limpia al salir.
  - bizops.identity.auth_users: agrega user_id cuando el token es válido.
  - bizops.crosscutting.logger: lee el snapshot en cada registro.

Restricciones:
  - Solo strings; "" significa "no disponible" y no se emite.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

# Clave en el log -> variable. El orden define el orden en el JSON.
_FIELDS: dict[str, ContextVar[str]] = {
    "request_id": ContextVar("request_id", default=""),
    "method": ContextVar("http_method", default=""),
    "path": ContextVar("http_path", default=""),
    "user_id": ContextVar("user_id", default=""),
}


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    _FIELDS["request_id"].set(request_id or "")
    _FIELDS["method"].set(method or "")
    _FIELDS["path"].set(path or "")


def set_user_context(user_id: int | str | None) -> None:
    _FIELDS["user_id"].set("" if user_id is None else str(user_id))


def get_context_dict() -> dict[str, str]:
    """Snapshot del contexto actual sin las claves vacías."""
    return {key: value for key, var in _FIELDS.items() if (value := var.get())}


def clear_context() -> None:
    """Vacía el contexto para que no se filtre al próximo request del worker."""
    for var in _FIELDS.values():
        var.set("")
