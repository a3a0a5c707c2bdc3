"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Build the FastAPI application (metadata, middleware, routers, handlers)
  - Lifespan: DB pool for the postgres backend, dev admin seeding
  - Expose /healthz and /metrics

Collaborators:
  - RequestContextMiddleware: request id, logging context, request metrics
  - CORSMiddleware: Cross-Origin Resource Sharing
  - auth_routes, admin_routes, contact_routes
  - exception_handlers.register_exception_handlers

Notes:
  - Middleware order: RequestContext -> CORS -> routes
  - Settings are validated in the lifespan, not at import time
  - /healthz follows the Kubernetes health check convention
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..application.dev_seed_admin import ensure_dev_admin
from ..container import get_identity_provider, get_profile_repository
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, get_pool, init_pool
from .admin_routes import router as admin_router
from .auth_routes import router as auth_router
from .contact_routes import router as contact_router
from .exception_handlers import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    use_postgres = settings.persistence_backend == "postgres"

    if use_postgres:
        await init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        await ensure_dev_admin(
            settings,
            accounts=get_identity_provider(),
            profiles=get_profile_repository(),
            env=os.environ,
        )

        logger.info(
            "Contact Directory API starting up",
            extra={
                "app_env": settings.app_env,
                "persistence_backend": settings.persistence_backend,
                "origin_lookup_mode": settings.origin_lookup_mode,
                "trust_forwarded_headers": settings.trust_forwarded_headers,
            },
        )

        yield

    finally:
        if use_postgres:
            await close_pool()
        logger.info("Contact Directory API shutting down")


def _get_allowed_origins() -> list[str]:
    try:
        return get_settings().get_allowed_origins_list()
    except ValueError:
        # Settings errors surface in the lifespan with a proper message.
        return ["http://localhost:3000"]


def _cors_allow_credentials() -> bool:
    try:
        return get_settings().cors_allow_credentials
    except ValueError:
        return False


async def _database_status() -> str:
    if get_settings().persistence_backend != "postgres":
        return "memory"
    try:
        async with get_pool().connection() as conn:
            await conn.execute("SELECT 1")
        return "connected"
    except Exception as exc:
        logger.warning("Health check: DB unavailable", extra={"error": str(exc)})
        return "disconnected"


def create_app() -> FastAPI:
    app = FastAPI(
        title="Contact Directory API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Sign-in, sign-out and admission"},
            {"name": "contacts", "description": "Contact directory (role gated)"},
            {"name": "admin", "description": "IP restrictions and user administration"},
        ],
    )

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_allowed_origins(),
        allow_credentials=_cors_allow_credentials(),
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    )

    app.include_router(auth_router)
    app.include_router(contact_router)
    app.include_router(admin_router)

    register_exception_handlers(app)

    @app.get("/healthz")
    async def healthz(request: Request):
        db_status = await _database_status()
        return {
            "ok": db_status in ("connected", "memory"),
            "db": db_status,
            "request_id": getattr(request.state, "request_id", None),
        }

    @app.get("/metrics")
    def metrics():
        """Prometheus text format."""
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    return app


app = create_app()
