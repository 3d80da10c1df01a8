"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the question catalogs once
  - CORS middleware
  - Global exception handlers (SDK ValueError → 400, KeyError → 404)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``followup-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from followup_rules.catalog import CatalogStore
from followup_rules.render import SummaryRenderer

from followup_server.config import ServerSettings, load_settings
from followup_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from followup_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the catalogs and the summary renderer at startup.

    Both are stashed on ``app.state`` for dependency injection.  Nothing
    needs tearing down: the server keeps no sessions.
    """
    settings: ServerSettings = app.state.settings

    store = CatalogStore(ruleset_dir=settings.ruleset_dir)
    store.load()
    logger.info("CatalogStore loaded successfully")

    app.state.store = store
    app.state.renderer = SummaryRenderer()

    yield


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Follow-up API Server",
        description="REST API for the adaptive follow-up questionnaire engine",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — reports how many catalogs are loaded."""
        store: CatalogStore | None = getattr(app.state, "store", None)
        if store is None:
            return {"status": "error", "detail": "catalogs not loaded"}
        return {"status": "ok", "catalogs": len(store.names())}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn followup_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``followup-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "followup_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
