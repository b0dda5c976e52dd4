"""FastAPI application entry point.

This module configures and creates the FastAPI application with
CORS middleware, access logging with error enrichment, and structured
logging.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Config, config
from errorlog import (
    init_default_error_logging,
    set_log_call_stack_directly,
    set_max_chain_depth,
)
from middleware.request_logging import REQUEST_ID_HEADER, RequestLoggingMiddleware
from utils.logging import configure_logging

from .routes import API_VERSION, router

# ---------------------------------------------------------------------------
# Bootstrap structured logging before anything else
# ---------------------------------------------------------------------------
configure_logging(json_logs=config.json_logs, log_level=config.log_level)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _configure_error_logging(settings: Config) -> None:
    """Populate the error log registry and apply error logging settings.

    Runs before the app serves traffic; the registries are read-only after.
    """
    init_default_error_logging()
    set_log_call_stack_directly(settings.log_call_stack_directly)
    set_max_chain_depth(settings.error_chain_max_depth)
    logger.info(
        "error_logging_configured",
        log_call_stack_directly=settings.log_call_stack_directly,
        max_chain_depth=settings.error_chain_max_depth,
    )


def _allowed_origins(settings: Config) -> list[str]:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    # Allow additional origins via env var (comma-separated)
    if settings.cors_allowed_origins:
        origins.extend(o.strip() for o in settings.cors_allowed_origins.split(",") if o.strip())
    return origins


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Config] = None) -> FastAPI:
    """Create the FastAPI application."""
    if settings is None:
        settings = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("api_starting", version=API_VERSION, environment=settings.environment)
        _configure_error_logging(settings)
        logger.info("api_ready")

        yield

        logger.info("api_shutdown_complete")

    app = FastAPI(
        title="Access Logging API",
        description="Request access logging with error enrichment",
        version=API_VERSION,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # --- Middleware (last added is outermost) ---

    # Access logging (every response gets the request ID header)
    app.add_middleware(RequestLoggingMiddleware)

    # CORS (outermost to handle preflight correctly)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.include_router(router, prefix="/api")
    return app


app = create_app()
