"""
Virtual Fridge Backend — FastAPI Application Factory
======================================================

What:  Builds the FastAPI application: middleware, routes, error handlers
       and the startup/shutdown lifecycle.
Who:   uvicorn (uvicorn virtual_fridge.main:app) and the API tests.

Application Architecture:
    ┌────────────────────────────────────────────────────────┐
    │                     FastAPI App                        │
    │  Middleware: Request ID → Rate Limit → Logging → CORS  │
    │                                                        │
    │  /api/auth  /api/user  /api/hobbies  /api/media        │
    │  /api/food-item  /api/food-type  /api/fridge           │
    │  /api/recipes  /api/notifications  /uploads  /health   │
    │                                                        │
    │  Exception handlers → {error, message, details?,       │
    │                        request_id}                     │
    └────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → storage dir → Firebase → scheduler
    Shutdown: scheduler stop → engine dispose
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from virtual_fridge import __version__
from virtual_fridge.config import settings
from virtual_fridge.database import dispose_engine
from virtual_fridge.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    ConfigurationError,
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    FileStorageError,
    LLMServiceError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
    VirtualFridgeError,
)
from virtual_fridge.middleware.logging import RequestLoggingMiddleware
from virtual_fridge.middleware.rate_limit import RateLimitMiddleware
from virtual_fridge.middleware.request_id import RequestIDMiddleware, request_id_var
from virtual_fridge.routes import (
    auth,
    food_items,
    food_types,
    fridge,
    health,
    media,
    notifications,
    recipes,
    users,
)
from virtual_fridge.services.notification_service import notification_service
from virtual_fridge.services.scheduler_service import expiry_scheduler

logger = logging.getLogger(__name__)

# Location prefixes FastAPI puts in front of a validation error's field path
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configures the root logger once, writing to stdout.

    Format: 2026-05-14T09:00:00 [INFO] virtual_fridge.services.fridge_service: ...
    Chatty third-party loggers are held at WARNING.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "apscheduler"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifecycle
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup/shutdown.

    A configuration problem is logged, not fatal: /health stays reachable
    so the deployment can report what is missing.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Virtual Fridge backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    (storage / "images").mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    notification_service.initialize()
    if settings.scheduler_enabled:
        expiry_scheduler.start()
    else:
        logger.info("Expiry scheduler disabled (SCHEDULER_ENABLED=false)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Virtual Fridge backend shutting down...")
    expiry_scheduler.stop()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Global Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, error: str, message: str, details=None, headers=None) -> JSONResponse:
    content = {"error": error, "message": message}
    if details:
        content["details"] = details
    content["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _field_path(loc) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps exceptions to status codes and the shared error body.

    Handler hierarchy:
        RequestValidationError  → 400 (schema violations)
        ValidationError         → 400
        AuthenticationError     → 401, `error` label chosen by the raiser
        NotFoundError           → 404
        ConflictError           → 409
        RateLimitExceededError  → 429 + Retry-After
        ConfigurationError      → 500 "Try again later" (setting named in the log only)
        ExternalServiceError    → its own status (TheMealDB 503, OpenFoodFacts 500)
        LLMServiceError         → its own status (recipes 502, vision 500)
        CircuitBreakerOpenError → 503 + Retry-After
        FileStorageError        → 500
        DatabaseError           → 500, generic message
        VirtualFridgeError      → 500
        unknown route           → 404 "Route not found"
        Exception               → 500, stack trace logged only
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {"field": _field_path(err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.warning("[%s] Invalid input on %s: %s", request_id_var.get(""), request.url.path, details)
        return _error(400, "Validation error", "Invalid input data", details)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.info("[%s] Authentication failed: %s", request_id_var.get(""), exc.error)
        return _error(401, exc.error, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error(409, "conflict", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error(
            429,
            "rate_limit_exceeded",
            exc.message,
            exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("[%s] Configuration error: %s", request_id_var.get(""), exc.message)
        return _error(500, "Internal server error", "Try again later")

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service_error(request: Request, exc: ExternalServiceError):
        logger.error("[%s] %s error: %s", request_id_var.get(""), exc.service, exc.message)
        return _error(exc.status_code, "external_service_error", exc.message)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return _error(
            503,
            "service_unavailable",
            exc.message,
            {"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(LLMServiceError)
    async def handle_llm_error(request: Request, exc: LLMServiceError):
        logger.error("[%s] LLM service error: %s", request_id_var.get(""), exc.message)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error(exc.status_code, "llm_service_error", exc.message, headers=headers)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("[%s] File storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error(500, "server_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(VirtualFridgeError)
    async def handle_application_error(request: Request, exc: VirtualFridgeError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return _error(500, "server_error", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Route not found",
                    "message": f"Cannot {request.method} {request.url.path}",
                },
            )
        return _error(exc.status_code, str(exc.detail), str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error(500, "internal_server_error", "An unexpected error occurred. Please try again later.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Virtual Fridge API",
        description=(
            "Backend for the Virtual Fridge app: track food by barcode or photo, "
            "get recipe ideas and expiry reminders."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Added last runs first: RequestID → RateLimit → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    if settings.enable_test_auth:
        logger.warning("Test authentication route enabled: POST /api/auth/test-user")
        app.include_router(auth.test_router)
    app.include_router(users.router)
    app.include_router(media.router)
    app.include_router(media.files_router)
    app.include_router(food_items.router)
    app.include_router(food_types.router)
    app.include_router(fridge.router)
    app.include_router(recipes.router)
    app.include_router(notifications.router)

    return app


app = create_app()
