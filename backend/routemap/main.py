"""
Route Map Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan owns the shared httpx connection pool.
Who:   uvicorn (`uvicorn routemap.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌───────────┐ ┌────────┐ ┌─────────┐ ┌──────┐ ┌──────┐  │
    │  │ Preflight │→│ Req ID │→│ Logging │→│ GZip │→│ CORS │  │
    │  └───────────┘ └────────┘ └─────────┘ └──────┘ └──────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  /route  /addresses  /camps  /vendors     → store        │
    │  /osm  / /zip                             → geography    │
    │  /share /share.html /config.js  /health                  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ NotFound→404 │ Upstream/Config→500     │
    │  ExternalService→own status  │ anything else→500         │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, settings check (logged, not fatal), httpx client
    Shutdown: close the httpx client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from routemap import __version__
from routemap.config import settings
from routemap.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    NotFoundError,
    RouteMapError,
    UpstreamError,
    ValidationError,
)
from routemap.middleware.logging import RequestLoggingMiddleware
from routemap.middleware.preflight import PREFLIGHT_HEADERS, PreflightMiddleware
from routemap.middleware.request_id import RequestIDMiddleware, request_id_var
from routemap.routes import addresses, camps, frontend, geo, health, routes, vendors

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout
    (the hosting platform collects stdout).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Every upstream call would otherwise log twice
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Route Map Backend %s starting up...", __version__)

    # Not fatal: /health, /osm, /zip and /share work without the store, and
    # store routes answer "Missing ENV: ..." until it is configured
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    app.state.http_client = httpx.AsyncClient(
        headers={"Accept": "application/json"},
        follow_redirects=True,
    )
    logger.info("Store: %s", settings.supabase_url or "(not configured)")
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Route Map Backend shutting down...")
    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, message: str, details=None) -> JSONResponse:
    """`{"error": ..., "request_id": ...}` plus `details` when given."""
    content = {"error": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes.

    Handler hierarchy:
        ValidationError           → 400
        NotFoundError             → 404
        UpstreamError             → 500 (store message passed through)
        ConfigurationError        → 500 ("Missing ENV: <name>")
        ExternalServiceError      → its own status, with `details`
        RouteMapError (base)      → 500
        Starlette HTTPException   → as raised ("Not Found", ...)
        RequestValidationError    → 400
        Exception (fallback)      → 500, stack trace logged only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, exc.message)

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error(
            "[%s] Store error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return error_response(500, exc.message)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("[%s] %s", request_id_var.get(""), exc.message)
        return error_response(500, exc.message)

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service_error(request: Request, exc: ExternalServiceError):
        logger.warning(
            "[%s] External service error (%d): %s",
            request_id_var.get(""), exc.status_code, exc.message,
        )
        return error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(RouteMapError)
    async def handle_route_map_error(request: Request, exc: RouteMapError):
        logger.error("[%s] %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        field = errors[0].get("loc", ())[-1] if errors and errors[0].get("loc") else None
        message = f"Invalid value for {field}" if field else "Invalid request"
        return error_response(400, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Runs in ServerErrorMiddleware, outside the CORS and request-ID middleware
        rid = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        headers = dict(PREFLIGHT_HEADERS)
        if rid:
            headers["X-Request-ID"] = rid
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "request_id": rid},
            headers=headers,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Route Map API",
        description=(
            "Backend of the delivery route map: route polygons with vendor and "
            "camp enrichment, camp/vendor directories, and OSM / postal "
            "boundary proxies."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: Preflight → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Request-ID"],
        max_age=86400,
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(PreflightMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(routes.router)
    app.include_router(addresses.router)
    app.include_router(camps.router)
    app.include_router(vendors.router)
    app.include_router(geo.router)
    app.include_router(frontend.router)

    return app


app = create_app()
