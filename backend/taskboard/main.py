"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from taskboard.api import router as api_router
from taskboard.config import Settings, get_settings
from taskboard.db.session import Database
from taskboard.exceptions import TaskboardError
from taskboard.logging_config import configure_logging
from taskboard.middleware.logging import LoggingMiddleware
from taskboard.middleware.request_id import RequestIDMiddleware
from taskboard.services.file_storage import UPLOADS_PREFIX, FileStorage

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    settings: Settings = app.state.settings
    database: Database = app.state.db

    # Startup
    logger.info("app_starting", app=settings.app_name, version=settings.app_version)
    await database.connect()
    if settings.database_auto_create:
        await database.create_all()
        logger.info("database_tables_created")

    yield

    # Shutdown
    logger.info("app_stopping", app=settings.app_name)
    await database.dispose()


def _error_response(status_code: int, message: str, code: str | None = None) -> ORJSONResponse:
    content = {"detail": message}
    if code:
        content["code"] = code
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return ORJSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors and request validation failures onto JSON responses."""

    @app.exception_handler(TaskboardError)
    async def handle_taskboard_error(request: Request, exc: TaskboardError) -> ORJSONResponse:
        if exc.status_code >= 500:
            logger.error("domain_error", code=exc.code, error=exc.message)
        return _error_response(exc.status_code, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{location}: {message}"
        return _error_response(status.HTTP_400_BAD_REQUEST, message, "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("unhandled_error", error=str(exc))
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Task boards with a per-field activity audit trail",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.file_storage = FileStorage(settings)

    register_exception_handlers(app)

    # Add middleware (order matters - last added is first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    # Trust proxy headers (X-Forwarded-Proto, X-Forwarded-For) from nginx
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    # Include API router
    app.include_router(api_router, prefix=settings.api_prefix)

    # Uploaded profile pictures and attachments
    app.mount(
        f"/{UPLOADS_PREFIX}",
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    return app


app = create_app()
