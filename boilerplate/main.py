"""
API Boilerplate - FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn boilerplate.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain (outermost first):                │
    │  ┌──────────┐ ┌──────────┐ ┌─────────────────────┐  │
    │  │   CORS   │→│   GZip   │→│ Envelope + Audit    │  │
    │  └──────────┘ └──────────┘ └─────────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────────┐ ┌─────────────────────────┐ │
    │  │ POST /api/email/.. │ │ GET /health             │ │
    │  └────────────────────┘ └─────────────────────────┘ │
    └─────────────────────────────────────────────────────┘

Fault handling:
    No exception handlers are registered for application faults; anything a
    handler raises under /api is translated by the envelope middleware.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from boilerplate import __version__
from boilerplate.config import Settings, settings
from boilerplate.database import dispose_engine
from boilerplate.middleware.api_response import APIResponseRequestLoggingMiddleware
from boilerplate.routes import email, health
from boilerplate.services.api_log_service import ApiLogService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings = settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Third-party loggers are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.config
    setup_logging(config)
    logger.info("=" * 60)
    logger.info("API Boilerplate %s starting up...", __version__)
    logger.info("Environment: %s", config.environment)
    logger.info("Database backend: %s", "sqlite" if config.is_sqlite else "postgresql")
    logger.info("API logging: %s", "enabled" if config.enable_api_logging else "disabled")
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("API docs: http://%s:%d/docs", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("API Boilerplate shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Settings = settings,
    log_service: Optional[ApiLogService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config:      Settings for prefixes, flags and CORS
        log_service: Audit writer handed to the envelope middleware;
                     defaults to a database writer using `config`
    """
    app = FastAPI(
        title="API Boilerplate",
        description=(
            "Starter web API. Every response under /api is wrapped in a uniform "
            "JSON envelope and recorded in the audit log."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.config = config

    if log_service is None:
        log_service = ApiLogService(config=config)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute. The envelope middleware is added first
    # so it sees the uncompressed body and GZip compresses the envelope.
    app.add_middleware(
        APIResponseRequestLoggingMiddleware,
        api_log_service=log_service,
        config=config,
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(email.router)
    app.include_router(health.router)

    return app


app = create_app()
