"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, security headers, request context)
  - Mount the delivery/catalog router
  - Expose health check and metrics endpoints

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID and logging context
  - SecurityHeadersMiddleware: hardening + frame-ancestors for inline previews
  - routes.router: delivery, signed links, catalog, publication

Constraints:
  - CORS configurable via ALLOWED_ORIGINS env var (comma-separated)
  - Without DATABASE_URL (or in test env) the in-memory repository is used
    and no pool is opened

Notes:
  - Middleware order matters: RequestContext → SecurityHeaders → CORS → routes
  - /healthz follows Kubernetes health check convention
  - /metrics exposes Prometheus metrics (staff/admin when METRICS_REQUIRE_AUTH)
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..container import get_research_repository
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import RequestContextMiddleware
from ..crosscutting.security import SecurityHeadersMiddleware
from ..identity.dual_auth import require_metrics_access
from ..infrastructure.db.pool import close_pool, init_pool
from ..interfaces.api.http.routes import router
from .exception_handlers import register_exception_handlers

_TEST_ENVS = {"test", "testing", "ci"}


def _uses_database() -> bool:
    settings = get_settings()
    env = settings.app_env.strip().lower()
    return bool(settings.database_url.strip()) and env not in _TEST_ENVS


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Initializes the pool when a DB is configured."""
    settings = get_settings()
    use_database = _uses_database()

    if use_database:
        # Initialize DB pool (must happen before any repository usage)
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        logger.info(
            "Research Repository API starting up",
            extra={
                "database": use_database,
                "storage_backend": settings.storage_backend,
                "capability_ttl_seconds": settings.capability_ttl_seconds,
                "metrics_require_auth": settings.metrics_require_auth,
            },
        )

        yield

    finally:
        if use_database:
            close_pool()
        logger.info("Research Repository API shutting down")


# R: Get settings for CORS configuration (safe at module level after env is loaded)
def _get_allowed_origins() -> list[str]:
    return get_settings().get_allowed_origins_list()


# R: Create FastAPI application instance with API metadata
app = FastAPI(
    title="Research Repository API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "delivery",
            "description": "Inline delivery of stored artifacts and signed links",
        },
        {
            "name": "repository",
            "description": "Catalog filtered by what the caller may see",
        },
        {
            "name": "publication",
            "description": "Visibility changes (staff/admin)",
        },
    ],
)


# R: Middleware order (bottom = first to execute):
# 1. CORSMiddleware - handles preflight
# 2. SecurityHeadersMiddleware - hardening headers on every response
# 3. RequestContextMiddleware - sets request_id

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(RequestContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_allowed_origins(),
    allow_credentials=get_settings().cors_allow_credentials,
    allow_methods=["GET", "PUT", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Request-Id",
    ],
    expose_headers=["Content-Disposition", "X-Request-Id"],
)

app.include_router(router)

# R: Register exception handlers for structured error responses
register_exception_handlers(app)


# R: Health check endpoint for monitoring/orchestration (Kubernetes, Docker)
@app.get("/healthz")
def healthz(request: Request):
    """
    R: Health check that verifies the metadata store.

    Returns:
        ok: True if the repository answers
        db: "connected" or "disconnected"
        request_id: Correlation ID for this request
    """
    db_status = "disconnected"
    try:
        repo = get_research_repository()
        if repo.ping():
            db_status = "connected"
    except Exception as e:
        logger.warning("Health check: DB unavailable", extra={"error": str(e)})

    return {
        "ok": db_status == "connected",
        "db": db_status,
        "request_id": getattr(request.state, "request_id", None),
    }


# R: Prometheus metrics endpoint
@app.get("/metrics")
def metrics(_auth: None = Depends(require_metrics_access())):
    """
    R: Expose Prometheus metrics.

    Returns:
        Prometheus text format metrics
    """
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
