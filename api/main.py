"""
api/main.py -- FastAPI application entry point for Inkwell.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware (outermost to innermost):
  1. log_requests     -- one access-log line per request
  2. method_override  -- POST ?_method=PATCH|PUT|DELETE dispatched as that method

Lifespan loads Settings once, builds the token codec from the signing secret,
and opens the credential and post stores. Any failure there is fatal: the
server does not start without a signing secret or a reachable database.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.store import UserStore
from auth.tokens import JWTTokenCodec
from core.config import get_settings
from core.errors import ConfigurationError
from posts.store import PostStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("inkwell.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Settings first -- a missing SECRET_KEY raises ConfigurationError here.
      2. Token codec -- receives the secret explicitly; nothing else holds it.
      3. Stores -- an unreachable database is also startup-fatal.
    """
    settings = get_settings()
    logging.getLogger("inkwell").setLevel(settings.log_level.upper())
    logger.info("Inkwell starting up")

    app.state.settings = settings
    app.state.token_codec = JWTTokenCodec(settings.secret_key, expire_seconds=settings.token_expire_seconds)
    try:
        app.state.user_store = UserStore(settings.database_url)
        app.state.post_store = PostStore(settings.database_url)
    except SQLAlchemyError as exc:
        logger.critical("Cannot open database %s: %s", settings.database_url, exc)
        raise ConfigurationError(f"database unavailable: {exc}") from exc
    logger.info("Stores initialized")

    yield

    # Shutdown
    app.state.post_store.close()
    app.state.user_store.close()
    logger.info("Inkwell shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Inkwell",
    description="A small authenticated note and blog service.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Method override middleware
#
# HTML forms only submit GET and POST. A POST carrying ?_method=PATCH (or PUT,
# DELETE) is rewritten in the ASGI scope before routing, so the web router can
# declare real PATCH/DELETE routes.
# ---------------------------------------------------------------------------

_OVERRIDABLE_METHODS = {"PATCH", "PUT", "DELETE"}


@app.middleware("http")
async def method_override(request: Request, call_next):
    if request.method == "POST":
        override = request.query_params.get("_method", "").upper()
        if override in _OVERRIDABLE_METHODS:
            request.scope["method"] = override
    return await call_next(request)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Registered last so it is outermost. The method is read before call_next,
# because method_override rewrites it in the shared scope.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    method = request.method
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
# Web UI router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly. Recoverable domain errors (validation, ownership) are
# handled inside the web routes and never reach these.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for HTTP exceptions, router 404/405 included."""
    return JSONResponse(
        status_code=exc.status_code,
        headers=exc.headers,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return liveness, version, and database reachability."""
    try:
        request.app.state.user_store.ping()
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
