"""FastAPI application factory.

Run with ``uvicorn realtyflow.api.app:create_app --factory``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from realtyflow import __version__
from realtyflow.api.middleware import (
    AuthenticationMiddleware,
    ErrorHandlingMiddleware,
    RequestContextMiddleware,
    RequestLoggingMiddleware,
)
from realtyflow.api.routers import health_router, v1_router
from realtyflow.api.schemas.errors import ErrorCode, error_response
from realtyflow.config.settings import Settings, get_settings
from realtyflow.core.logging import get_logger, setup_logging
from realtyflow.db.config import close_db, configure_engine, create_all, init_db

logger = get_logger("realtyflow.api")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API.

    Args:
        settings: Overrides environment-derived settings; tests pass an
            in-memory SQLite configuration here

    Returns:
        The application, with the database engine configured on startup
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="RealtyFlow API",
        description="Multi-tenant CRM for real estate brokerages",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=_lifespan,
    )
    app.state.settings = settings

    _add_middleware(app, settings)
    _add_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(v1_router)
    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    setup_logging(settings)

    configure_engine(settings)
    await init_db()
    if settings.DATABASE_URL.startswith("sqlite"):
        # Local SQLite databases are never migrated
        await create_all()
    logger.info("api_started", version=__version__, environment=settings.ENVIRONMENT)

    try:
        yield
    finally:
        await close_db()
        logger.info("api_stopped")


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    """Install middleware; the last one added runs first.

    Request order: logging (assigns the request ID), error handling, CORS,
    authentication, request context. Tenant resolution and the role and
    subscription gates are route dependencies and run inside all of these.
    """
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(AuthenticationMiddleware)
    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Correlation-ID"],
        )
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


def _add_exception_handlers(app: FastAPI) -> None:
    # FastAPI handles these itself before ErrorHandlingMiddleware sees them

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ]
        return error_response(
            request,
            422,
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            {"errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def on_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = ErrorCode.NOT_FOUND if exc.status_code == 404 else ErrorCode.INVALID_REQUEST
        return error_response(request, exc.status_code, code, str(exc.detail))
