"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (security headers, body limit, request context, CORS)
  - Mount business routers and auth under the /api prefix
  - Serve uploads read-only and expose health endpoints

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID and logging context
  - interfaces.api.http.router: business endpoints (users ... equipment)

Notes:
  - Middleware order matters: RateLimit → BodyLimit → RequestContext → CORS → routes
  - /healthz follows Kubernetes health check convention
  - The exported `app` is the rate-limited ASGI wrapper; `fastapi_app` is the
    FastAPI instance (dependency_overrides, OpenAPI)

Production Readiness:
  - Env validation enforced at startup (via lifespan, not import time)
  - Request tracing with X-Request-Id header
  - Structured JSON logging with request correlation
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ..application.dev_seed_admin import ensure_dev_admin
from ..container import get_user_repository
from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import DatabaseError
from ..crosscutting.logger import logger
from ..crosscutting.middleware import BodyLimitMiddleware, RequestContextMiddleware
from ..crosscutting.rate_limit import RateLimitMiddleware
from ..crosscutting.security import SecurityHeadersMiddleware
from ..identity.auth_users import hash_password
from ..infrastructure.db.pool import close_pool, init_pool
from ..interfaces.api.http.router import router
from .auth_routes import router as auth_router
from .exception_handlers import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    settings = get_settings()

    # Initialize DB pool (must happen before any repository usage)
    init_pool(
        database_url=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )

    try:
        # Dev seed admin (only does something if enabled in settings/env)
        ensure_dev_admin(
            settings,
            user_repo=get_user_repository(),
            password_hasher=hash_password,
        )

        logger.info(
            "BizOps API starting up",
            extra={
                "app_env": settings.app_env,
                "sequence_mode": settings.sequence_mode,
                "rate_limit_rps": settings.rate_limit_rps,
                "db_pool_min": settings.db_pool_min_size,
                "db_pool_max": settings.db_pool_max_size,
            },
        )

        yield

    finally:
        close_pool()
        logger.info("BizOps API shutting down")


settings = get_settings()

# R: Create FastAPI application instance with API metadata
fastapi_app = FastAPI(
    title="BizOps API",
    version=settings.app_version,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "auth", "description": "User authentication (JWT)"},
        {"name": "users", "description": "User accounts"},
        {"name": "employees", "description": "Staff management"},
        {"name": "clients", "description": "Client companies"},
        {"name": "projects", "description": "Projects and tasks"},
        {"name": "invoices", "description": "Invoicing and payments"},
        {"name": "subscriptions", "description": "Recurring services"},
        {"name": "equipment", "description": "Inventory and point of sale"},
    ],
)

# R: Middleware order (bottom = first to execute):
# 1. RateLimitMiddleware (ASGI) - checks rate before anything
# 2. BodyLimitMiddleware - rejects oversized bodies early
# 3. CORSMiddleware - handles preflight
# 4. RequestContextMiddleware - sets request_id
fastapi_app.add_middleware(BodyLimitMiddleware)
fastapi_app.add_middleware(SecurityHeadersMiddleware)
fastapi_app.add_middleware(RequestContextMiddleware)
fastapi_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
)

# R: Business routes + auth under /api
fastapi_app.include_router(router, prefix="/api")
fastapi_app.include_router(auth_router, prefix="/api")

register_exception_handlers(fastapi_app)

# R: Uploads read-only (solo si el directorio existe)
if Path(settings.uploads_dir).is_dir():
    fastapi_app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=settings.uploads_dir),
        name="uploads",
    )


@fastapi_app.get("/api/test", tags=["health"])
def api_test():
    """Smoke test público."""
    return {
        "message": "API funcionando correctamente",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
    }


@fastapi_app.get("/healthz", tags=["health"])
def healthz(request: Request):
    """
    R: Health check con ping a la base.

    Returns:
        ok: True si la base responde
        db: "connected" o "disconnected"
        request_id: Correlation ID for this request
    """
    db_status = "disconnected"
    try:
        if get_user_repository().ping():
            db_status = "connected"
    except DatabaseError as exc:
        logger.warning("Health check: DB unavailable", extra={"error": exc.message})

    return {
        "ok": db_status == "connected",
        "db": db_status,
        "request_id": getattr(request.state, "request_id", None),
    }


# R: Wrap app with rate limit middleware (ASGI-style)
# This MUST be at the very end, after all FastAPI setup
app = RateLimitMiddleware(fastapi_app)
