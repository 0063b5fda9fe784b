"""
Handscript Backend: FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers.
Who:   Called by uvicorn to start the server (uvicorn handscript.main:app).
When:  Once at server startup.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:                                            │
    │    GET/POST /api/images   DELETE /api/images/{id}   │
    │    GET /api/images/{id}/download   GET /health      │
    │                                                     │
    │  Exception Handlers:                                │
    │    Validation/Render/MediaStore → 400               │
    │    NotFound → 404   wrong method → 405   else → 500 │
    └─────────────────────────────────────────────────────┘

Error envelope:
    {"message": "Error", "error": {"code", "detail", "field"?, "request_id"}}
    405 responses are {"message": "Method not allowed"}.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from handscript import __version__
from handscript.config import settings
from handscript.exceptions import HandscriptError
from handscript.middleware.logging import RequestLoggingMiddleware
from handscript.middleware.request_id import RequestIDMiddleware, request_id_var
from handscript.routes import health, images
from handscript.services.media_store import media_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    for name in ("uvicorn.access", "httpcore", "httpx", "urllib3", "PIL"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate media store configuration (logged, not fatal)
        3. Push credentials into the Cloudinary SDK
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Handscript Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health reports the store as unconfigured
        logger.error("Configuration error: %s", str(e))

    media_store.configure()
    logger.info("Media store folder: %s", media_store.folder)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Handscript Backend shutting down...")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    code: str,
    detail: str,
    field: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build the {"message": "Error", "error": {...}} envelope."""
    error = {"code": code, "detail": detail, "request_id": request_id_var.get("")}
    if field:
        error["field"] = field
    return JSONResponse(
        status_code=status_code,
        content={"message": "Error", "error": error},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        HandscriptError         → exc.status_code (400 for validation, render
                                  and media store failures; 404 for not found)
        RequestValidationError  → 400 (body failed schema validation)
        HTTPException 405       → 405 {"message": "Method not allowed"}
        HTTPException (other)   → its own status, error envelope
        Exception (fallback)    → 500

    Responses never include stack traces; context dicts are logged only.
    """

    @app.exception_handler(HandscriptError)
    async def handle_app_error(request: Request, exc: HandscriptError):
        rid = request_id_var.get("")
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
        return error_response(
            exc.status_code,
            exc.code,
            exc.message,
            field=exc.context.get("field"),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = [str(part) for part in first.get("loc", ()) if part != "body"]
        field = ".".join(location) or None
        detail = first.get("msg", "Invalid request")
        logger.warning("[%s] Request validation failed: %s (%s)", request_id_var.get(""), detail, field)
        return error_response(400, "validation_error", detail, field=field)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405,
                content={"message": "Method not allowed"},
                headers=exc.headers,
            )
        return error_response(
            exc.status_code,
            "http_error",
            str(exc.detail),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Handscript API",
        description=(
            "Convert text into images that look like handwritten pages, store them "
            "in Cloudinary, and list, download or delete them."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(images.router)
    app.include_router(health.router)

    return app


app = create_app()
