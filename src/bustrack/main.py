"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bustrack import __version__
from bustrack.api.router import api_router
from bustrack.config import Settings, get_settings
from bustrack.core.auth.middleware import IdentityContextMiddleware, RequestIdMiddleware
from bustrack.core.auth.passwords import PasswordHasher
from bustrack.core.auth.tokens import TokenConfig, TokenService
from bustrack.core.database import create_engine, init_db
from bustrack.core.errors import register_exception_handlers
from bustrack.core.logging import RequestLoggingMiddleware
from bustrack.core.store.base import DocumentStore
from bustrack.core.store.memory import InMemoryDocumentStore
from bustrack.core.store.sql import SQLAlchemyDocumentStore


logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Configure structlog for the given settings."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.is_production
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_store(settings: Settings) -> DocumentStore:
    """Build the document store selected by ``settings.store_backend``."""
    if settings.store_backend == "sql":
        return SQLAlchemyDocumentStore(create_engine(settings))
    return InMemoryDocumentStore()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    store = app.state.store

    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        store_backend=settings.store_backend,
    )

    if isinstance(store, SQLAlchemyDocumentStore):
        await init_db(store.engine)
        logger.info("database_tables_ready")

    yield

    logger.info("application_shutdown")
    await store.close()
    logger.info("store_closed")


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use, the environment-derived ones by default
        store: Document store to use, built from ``settings`` by default

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Fleet tracking API for buses and the staff who watch them",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    app.state.settings = settings
    app.state.store = store or create_store(settings)
    app.state.token_service = TokenService(TokenConfig.from_settings(settings))
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Innermost first: logging sees the identity bound by the middleware above it
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(IdentityContextMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # Register exception handlers for RFC 7807 error responses
    register_exception_handlers(app)

    app.include_router(api_router)

    return app
