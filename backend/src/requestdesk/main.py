"""RequestDesk Backend - Main FastAPI Application

Student document requests and password reset handling for a school office.

This module creates and configures the FastAPI application, including:
- Record store, attachment storage and services (kept on ``app.state``)
- Middleware (request ID correlation, CORS)
- Exception handlers mapping domain errors to HTTP statuses
- Health and observability endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .dashboard.router import router as dashboard_router
from .dashboard.service import DashboardService
from .database import create_db_engine, create_session_factory, create_tables
from .domain.errors import (
    AlreadyExistsError,
    ConcurrentModificationError,
    InvalidTransitionError,
    NotFoundError,
    PartialBatchFailureError,
    PreconditionFailedError,
    RequestDeskError,
    UnauthorizedError,
)
from .domain.ports.blob_store import BlobStoreError, BlobStorePort
from .domain.ports.store import StorePort
from .infrastructure.storage.memory_blob_store import MemoryBlobStore
from .infrastructure.storage.s3_blob_store import S3BlobStore
from .infrastructure.storage.storage_config import storage_config_from_settings
from .infrastructure.store.memory_store import MemoryStore
from .infrastructure.store.sqlalchemy_store import SqlAlchemyStore
from .notifications.router import router as notifications_router
from .notifications.service import Notifier
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .password_resets.router import router as password_resets_router
from .password_resets.service import PasswordResetService
from .requests.router import router as requests_router
from .requests.service import RequestService
from .users.directory import StoreUserDirectory
from .users.router import router as users_router
from .users.service import UserService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Domain error -> HTTP status. Subclasses are listed before their bases.
ERROR_STATUS = (
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (PreconditionFailedError, status.HTTP_409_CONFLICT),
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (PartialBatchFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def build_store(settings: Settings) -> StorePort:
    """Record store selected by STORE_BACKEND."""
    if settings.STORE_BACKEND == "memory":
        return MemoryStore()
    if settings.STORE_BACKEND == "sql":
        engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        create_tables(engine)
        return SqlAlchemyStore(create_session_factory(engine))
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


def build_blob_store(settings: Settings) -> BlobStorePort:
    """Attachment storage selected by BLOB_BACKEND."""
    if settings.BLOB_BACKEND == "memory":
        return MemoryBlobStore()
    if settings.BLOB_BACKEND == "s3":
        config = storage_config_from_settings(settings)
        return S3BlobStore(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
            public_base_url=config.public_base_url,
        )
    raise ValueError(f"Unknown BLOB_BACKEND: {settings.BLOB_BACKEND}")


def _error_status(exc: RequestDeskError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(RequestDeskError)
    async def domain_exception_handler(request: Request, exc: RequestDeskError) -> JSONResponse:
        """Map domain errors to HTTP statuses with a structured body."""
        status_code = _error_status(exc)
        content: dict[str, Any] = {"error": exc.code, "message": exc.message}
        if isinstance(exc, PartialBatchFailureError):
            content["applied_ids"] = exc.applied_ids
            content["remaining_ids"] = exc.remaining_ids
            logger.error(
                f"Partial batch failure on {request.method} {request.url.path}: {exc.message}",
                extra={"applied": len(exc.applied_ids), "remaining": len(exc.remaining_ids)},
            )
        else:
            logger.info(
                f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
                extra={"status_code": status_code, "error_type": exc.code},
            )
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        logger.info(f"Rejected input on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid_input", "message": str(exc)},
        )

    @app.exception_handler(BlobStoreError)
    async def blob_store_exception_handler(request: Request, exc: BlobStoreError) -> JSONResponse:
        logger.error(f"Attachment storage error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={
                "error": "storage_error",
                "message": "The file could not be stored. Please try again later.",
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors with field-level details."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}",
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "validation_error",
                "message": "Request validation failed",
                "details": jsonable_errors(exc),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Full details are logged but not exposed to the client."""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without the raw exception objects pydantic may attach."""
    return [
        {key: value for key, value in error.items() if key in ("loc", "msg", "type")}
        for error in exc.errors()
    ]


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[StorePort] = None,
    blob_store: Optional[BlobStorePort] = None,
) -> FastAPI:
    """Application factory.

    Args:
        settings: Defaults to get_settings()
        store: Record store; built from settings when omitted
        blob_store: Attachment storage; built from settings when omitted
    """
    settings = settings or get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("RequestDesk API starting up...")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        yield
        logger.info("RequestDesk API shutting down...")

    show_docs = settings.ENVIRONMENT != "production"
    app = FastAPI(
        title="RequestDesk API",
        description="Document requests and password resets for students and school staff",
        version="0.1.0",
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        openapi_url="/openapi.json" if show_docs else None,
        lifespan=lifespan,
    )

    # Request ID Middleware (must be first for proper correlation)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    store = store or build_store(settings)
    directory = StoreUserDirectory(store)
    notifier = Notifier(store, batch_max_size=settings.BATCH_MAX_SIZE)
    service_options = dict(
        batch_max_size=settings.BATCH_MAX_SIZE,
        recent_limit=settings.DASHBOARD_RECENT_LIMIT,
        max_attempts=settings.TRANSITION_MAX_ATTEMPTS,
    )
    request_service = RequestService(store, directory, notifier, **service_options)
    password_reset_service = PasswordResetService(store, directory, notifier, **service_options)
    user_service = UserService(store, directory)

    if settings.SUPER_ADMIN_ID:
        user_service.seed_super_admin(
            settings.SUPER_ADMIN_ID,
            settings.SUPER_ADMIN_EMAIL,
            first_name=settings.SUPER_ADMIN_FIRST_NAME,
            last_name=settings.SUPER_ADMIN_LAST_NAME,
        )

    app.state.settings = settings
    app.state.store = store
    app.state.blob_store = blob_store or build_blob_store(settings)
    app.state.directory = directory
    app.state.notifier = notifier
    app.state.request_service = request_service
    app.state.password_reset_service = password_reset_service
    app.state.dashboard_service = DashboardService(request_service, password_reset_service)
    app.state.user_service = user_service

    register_exception_handlers(app)

    app.include_router(observability_router)
    app.include_router(requests_router, prefix=API_PREFIX)
    app.include_router(password_resets_router, prefix=API_PREFIX)
    app.include_router(notifications_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, Any]:
        return {
            "name": "RequestDesk API",
            "version": "0.1.0",
            "status": "running",
            "docs": "/docs" if show_docs else None,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "requestdesk.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=get_settings().LOG_LEVEL.lower(),
    )
