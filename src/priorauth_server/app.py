"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads rulesets, builds the engine and starts the
    idle-session reaper
  - CORS middleware
  - Global exception handlers (SDK ValueError → 404/409/400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``priorauth-server`` console-script entry point.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from priorauth_rulesets.classifiers import build_classifier
from priorauth_rulesets.engine import IntakeEngine
from priorauth_rulesets.ruleset import RulesetStore

from priorauth_server.cleanup import run_reaper
from priorauth_server.config import ServerSettings, load_settings
from priorauth_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from priorauth_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan — runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load YAML rulesets into a ``RulesetStore``
      2. Build the configured text classifier and the ``IntakeEngine``
      3. Stash them on ``app.state`` for dependency injection
      4. Start the idle-session reaper (unless disabled)

    Shutdown:
      1. Cancel the reaper
      2. Close the classifier's HTTP client, if it has one
    """
    settings: ServerSettings = app.state.settings

    # --- Load rulesets ---
    store = RulesetStore(ruleset_dir=settings.ruleset_dir)
    store.load()
    logger.info("RulesetStore loaded successfully")

    # --- Build engine ---
    classifier = build_classifier(
        settings.classifier,
        llm_base_url=settings.llm_base_url,
        llm_model=settings.llm_model,
        llm_api_key=settings.llm_api_key,
        llm_timeout=settings.llm_timeout,
    )
    engine = IntakeEngine(store, classifier=classifier)
    logger.info("IntakeEngine ready (classifier=%s)", settings.classifier)

    app.state.store = store
    app.state.engine = engine

    # --- Reaper ---
    reaper: asyncio.Task | None = None
    if settings.session_max_idle_hours > 0:
        reaper = asyncio.create_task(
            run_reaper(
                engine,
                timedelta(hours=settings.session_max_idle_hours),
                settings.reaper_interval_seconds,
            )
        )

    yield

    # --- Shutdown ---
    if reaper is not None:
        reaper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await reaper
    close = getattr(classifier, "close", None)
    if close is not None:
        await close()
    logger.info("Shutdown complete")


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
        title="Prior Authorization Intake API",
        description="REST API for the prior-authorization question-flow engine",
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
        """Readiness probe — verifies the rulesets are loaded."""
        store = getattr(app.state, "store", None)
        if store is None or not store.question_sets:
            return {"status": "error", "detail": "rulesets not loaded"}
        return {
            "status": "ok",
            "drugs": len(store.drugs),
            "question_sets": len(store.question_sets),
        }

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn priorauth_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``priorauth-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "priorauth_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
