"""KOTS admin console API with RBAC enforcement."""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from kotsadm.api.errors import install_exception_handlers
from kotsadm.api.middleware.logging import LoggingMiddleware
from kotsadm.api.middleware.session import SessionMiddleware
from kotsadm.api.v1.endpoints import health
from kotsadm.api.v1.router import api_router
from kotsadm.config.settings import settings
from kotsadm.core.logging import get_logger, setup_logging
from kotsadm.db.redis import close_redis_connection, get_redis_client
from kotsadm.rbac.engine import create_rbac_engine
from kotsadm.rbac.loader import build_registry
from kotsadm.rbac.registry import RBACRegistry
from kotsadm.repositories import KotsStore

setup_logging()
logger = get_logger(__name__)


def attach_rbac(app: FastAPI, registry: RBACRegistry) -> None:
    """Build the engine once and share it with every request."""
    app.state.rbac_engine = create_rbac_engine(
        registry,
        mode=settings.rbac_evaluation_mode,
        strict_matching=settings.rbac_strict_matching,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version}",
        extra={
            "environment": settings.environment.value,
            "rbac_evaluation_mode": settings.rbac_evaluation_mode.value,
        },
    )

    # A broken catalog must stop the process before it serves anything
    if getattr(app.state, "rbac_engine", None) is None:
        attach_rbac(app, build_registry(settings))

    if getattr(app.state, "store", None) is None:
        app.state.store = KotsStore(get_redis_client())

    yield

    logger.info("Shutting down")
    close_redis_connection()


def create_app(
    store: Optional[KotsStore] = None, registry: Optional[RBACRegistry] = None
) -> FastAPI:
    """Create the application. Missing collaborators are built at startup."""
    app = FastAPI(
        title=f"{settings.app_name} API",
        version=settings.app_version,
        description="KOTS admin console API with role-based access control",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        lifespan=lifespan,
    )

    if store is not None:
        app.state.store = store
    if registry is not None:
        attach_rbac(app, registry)

    # Last added runs first: logging wraps session resolution
    app.add_middleware(SessionMiddleware)
    app.add_middleware(LoggingMiddleware)

    install_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "kotsadm.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.value.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
