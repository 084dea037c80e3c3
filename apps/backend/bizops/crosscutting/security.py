# apps/backend/bizops/crosscutting/security.py
"""
===============================================================================
MÓDULO: Security headers (hardening HTTP)
===============================================================================

Agrega a todas las respuestas los headers de endurecimiento habituales
(CSP, anti-clickjacking, anti-sniffing, referrer, HSTS en producción).

Colaboradores:
  - crosscutting.config.get_settings
===============================================================================
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_CSP_DIRECTIVES = {
    "default-src": "'self'",
    "base-uri": "'self'",
    "font-src": "'self' https: data:",
    "form-action": "'self'",
    "frame-ancestors": "'self'",
    "img-src": "'self' data:",
    "object-src": "'none'",
    "script-src": "'self'",
    "script-src-attr": "'none'",
    "style-src": "'self' https: 'unsafe-inline'",
}


def _build_csp(is_production: bool) -> str:
    directives = dict(_CSP_DIRECTIVES)
    if not is_production:
        # R: Swagger UI necesita scripts inline en desarrollo.
        directives["script-src"] = "'self' 'unsafe-inline' https://cdn.jsdelivr.net"
        directives["style-src"] = "'self' 'unsafe-inline' https://cdn.jsdelivr.net"
        directives["img-src"] = "'self' data: https://fastapi.tiangolo.com"
    else:
        directives["upgrade-insecure-requests"] = ""
    return "; ".join(f"{k} {v}".strip() for k, v in directives.items())


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Clase:
      SecurityHeadersMiddleware

    Responsabilidades:
      - Agregar headers de seguridad a cada respuesta
      - HSTS solo si producción y request por HTTPS
    """

    def __init__(self, app, *, is_production: bool | None = None):
        super().__init__(app)
        if is_production is None:
            from .config import get_settings

            is_production = get_settings().is_production()
        self._is_production = is_production
        self._csp = _build_csp(is_production)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = self._csp
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"

        if self._is_production:
            proto = (
                request.headers.get("x-forwarded-proto") or request.url.scheme or ""
            ).lower()
            if proto == "https":
                response.headers["Strict-Transport-Security"] = (
                    "max-age=15552000; includeSubDomains"
                )

        return response
