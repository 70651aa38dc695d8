"""
api/main.py -- FastAPI application entry point for the dealership site.

Builds the app object, its stores, middleware and JSON error handlers. The
HTML routes and their friendly error pages are attached by asgi.py.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. SessionMiddleware     -- signed "session" cookie carrying flash notices
  3. log_requests          -- method, path, status, latency
  4. token_gate            -- decodes the jwt cookie into request.state.ctx

Lifespan opens the account and inventory stores on startup and disposes of
their engines on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.inventory import router as inventory_api_router
from auth.dependencies import check_jwt_token
from auth.store import AccountStore
from core.config import get_settings
from inventory.store import InventoryStore

VERSION = "1.0.0"

# Paths that answer with JSON. Errors and auth failures on these stay JSON.
JSON_PATH_PREFIXES = ("/api/", "/inv/getInventory/")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("dealership.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores before the first request and close them at shutdown.

    Both stores create their tables on construction, so a fresh database is
    usable immediately.
    """
    logger.info("Dealership site starting up (environment=%s)", _settings.environment)
    app.state.accounts = AccountStore()
    app.state.inventory = InventoryStore()
    logger.info("Stores initialized")

    yield

    app.state.inventory.close()
    app.state.accounts.close()
    logger.info("Dealership site shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Dealership",
    description="Vehicle inventory browsing and management.",
    version=VERSION,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
)


# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() and @app.middleware both wrap the current stack, so the
# last one registered is the outermost. Registration order below is therefore
# innermost first: token gate, request log, session, trusted host.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def token_gate(request: Request, call_next):
    """Run the token gate for every request before routing.

    The gate is synchronous (one HMAC check, no I/O) so it is called inline.
    JSON paths never get the HTML login redirect.
    """
    html_path = not request.url.path.startswith(JSON_PATH_PREFIXES)
    if redirect := check_jwt_token(request, redirect_on_failure=html_path):
        return redirect
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


app.add_middleware(
    SessionMiddleware,
    secret_key=_settings.secret_key,
    same_site="lax",
    https_only=_settings.secure_cookies,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(inventory_api_router, tags=["Inventory data"])
# HTML routes are mounted by asgi.py, not here.
# api/ and web/ are independent layers -- only the top-level asgi.py imports both.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope. web/errors.py wraps
# them so only JSON paths still reach these.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when path or query params fail validation."""
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
    """Return a structured error for all HTTP exceptions.

    Route handlers raise HTTPException with detail=ErrorDetail(...).model_dump().
    When detail is already a dict it becomes the error field as-is.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The exception is logged with its traceback; the client gets a generic
    message only.
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
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether both stores answer a query."""
    try:
        request.app.state.accounts.ping()
        request.app.state.inventory.ping()
    except SQLAlchemyError:
        logger.exception("Health check: store query failed")
        return HealthResponse(status="degraded", version=VERSION, database="unavailable")
    return HealthResponse(version=VERSION)
