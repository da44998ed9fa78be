import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.auth.router import router as auth_router
from app.api.classes.router import router as classes_router
from app.api.departments.router import router as departments_router
from app.api.enrollments.router import router as enrollments_router
from app.api.health.router import router as health_router
from app.api.subjects.router import router as subjects_router
from app.api.users.router import router as users_router
from app.core.config import Settings, settings
from app.core.exceptions import RateLimitExceededError, ServiceError, ServiceUnavailableError
from app.core.logging_config import setup_logging
from app.core.middleware import RequestLoggingMiddleware
from app.core.rate_limit import SlidingWindowRateLimiter
from app.db.session import build_engine, build_sessionmaker

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def _error_response(exc: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=exc.headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Every failure leaves the API as {"error": message}."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(exc)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Too many requests.", "message": exc.message},
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def handle_store_unavailable(request: Request, exc: Exception):
        logger.error("Database unavailable during %s %s: %s", request.method, request.url.path, exc)
        return _error_response(ServiceUnavailableError("Database unavailable"))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error during %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or settings
    setup_logging(app_settings.log_level)

    engine = build_engine(app_settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Classroom backend starting (%s)", app_settings.environment)
        yield
        await engine.dispose()
        logger.info("Classroom backend stopped")

    app = FastAPI(title="Classroom Backend", lifespan=lifespan)

    app.state.settings = app_settings
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.rate_limiter = (
        SlidingWindowRateLimiter(app_settings.rate_limit_window_seconds)
        if app_settings.rate_limit_enabled
        else None
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(departments_router)
    app.include_router(subjects_router)
    app.include_router(classes_router)
    app.include_router(users_router)
    app.include_router(enrollments_router)

    return app


app = create_app()
