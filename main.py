"""FastAPI application for recording, browsing and relating decisions.

- PostgreSQL holds decision records and links; Redis backs the read cache
- domain errors render as the standardized ErrorResponse body
- the read cache subscribes to the change event bus at startup
"""

import platform
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from db.postgres import close_postgres, init_postgres
from db.redis import close_redis, get_redis, init_redis
from middleware import LoggingMiddleware, RequestIDMiddleware
from models.errors import (
    DecisionMemoryError,
    DecisionValidationError,
    ErrorType,
    create_error_response,
    create_validation_error_response,
)
from routers import decisions, links
from services.events import get_event_bus
from services.providers import reset_providers
from utils.cache import get_read_cache
from utils.logging import configure_logging, get_logger

APP_VERSION = "0.1.0"
APP_NAME = "Decision Memory API"

logger = get_logger(__name__)


def get_request_id(request: Request) -> str | None:
    """Extract request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("X-Request-ID")


async def check_postgres_connection() -> bool:
    from db.postgres import engine

    if engine is None:
        return False
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"PostgreSQL health check failed: {e}")
        return False


async def check_redis_connection() -> bool:
    client = get_redis()
    if client is None:
        return False
    try:
        await client.ping()
        return True
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=not settings.debug)

    logger.info(f"{APP_NAME} v{APP_VERSION} starting up...")
    await init_postgres()
    try:
        await init_redis()
    except Exception as e:
        # The read cache is optional; serve uncached rather than not at all
        logger.warning(f"Redis unavailable, read cache disabled: {e}")

    get_read_cache().attach(get_event_bus())

    logger.info(
        "Application startup complete",
        extra={
            "event": "startup",
            "app_name": APP_NAME,
            "app_version": APP_VERSION,
            "environment": "development" if settings.debug else "production",
            "python_version": platform.python_version(),
            "read_cache": get_redis() is not None and settings.read_cache_enabled,
        },
    )

    yield

    logger.info("Shutting down gracefully...")
    get_event_bus().unsubscribe(get_read_cache().handle_change)
    reset_providers()
    await close_redis()
    await close_postgres()
    logger.info("Graceful shutdown complete")


app = FastAPI(
    title=APP_NAME,
    description="Record decisions, browse them, and relate them to precedent",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(DecisionMemoryError)
async def decision_error_handler(request: Request, exc: DecisionMemoryError) -> JSONResponse:
    """Render domain errors (not found, validation, auth, store failure)."""
    if isinstance(exc, DecisionValidationError):
        content = create_validation_error_response(
            message=exc.message,
            errors=[
                {
                    "field": exc.field or "body",
                    "message": exc.message,
                    "type": "value_error",
                }
            ],
            request_id=get_request_id(request),
            path=str(request.url.path),
        )
    else:
        content = create_error_response(
            error=exc.error_type,
            message=exc.message,
            details=exc.details,
            request_id=get_request_id(request),
            path=str(request.url.path),
        )

    if exc.status_code >= 500:
        logger.error(f"{exc.error_type} on {request.method} {request.url.path}: {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "value_error"),
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {len(errors)} error(s)"
    )
    return JSONResponse(
        status_code=422,
        content=create_validation_error_response(
            message="Request validation failed",
            errors=errors,
            request_id=get_request_id(request),
            path=str(request.url.path),
        ),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    error_type_map = {
        400: ErrorType.BAD_REQUEST,
        401: ErrorType.UNAUTHORIZED,
        404: ErrorType.NOT_FOUND,
        503: ErrorType.SERVICE_UNAVAILABLE,
    }
    content = create_error_response(
        error=error_type_map.get(exc.status_code, ErrorType.INTERNAL_ERROR),
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        request_id=get_request_id(request),
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}"
    )
    # Internal details stay in the logs
    content = create_error_response(
        error=ErrorType.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        request_id=get_request_id(request),
        path=str(request.url.path),
    )
    return JSONResponse(status_code=500, content=content)


# Middleware (last added = first executed on request)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID", "Accept"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)

app.include_router(decisions.router, prefix="/api/decisions", tags=["Decisions"])
app.include_router(links.router, prefix="/api/links", tags=["Links"])


@app.get("/health")
async def health_check():
    """Liveness plus dependency checks. 503 when PostgreSQL is down."""
    postgres_ok = await check_postgres_connection()
    redis_ok = await check_redis_connection()
    status = {
        "status": "healthy" if postgres_ok else "unhealthy",
        "checks": {
            "postgres": "healthy" if postgres_ok else "unhealthy",
            "redis": "healthy" if redis_ok else "unavailable",
        },
    }
    if not postgres_ok:
        return JSONResponse(status_code=503, content=status)
    return status
