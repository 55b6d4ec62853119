"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads form definitions and builds the engine once
  - Optional background task that purges idle sessions
  - CORS middleware
  - Global exception handlers (SDK ValueError → 404/409/400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``formflow-server`` console-script entry point.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import timedelta
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from formflow.engine import FormEngine
from formflow.interfaces import ResponseSink
from formflow.store import FormStore

from formflow_server.config import ServerSettings, load_settings
from formflow_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from formflow_server.routes import register_routes
from formflow_server.sinks import InMemoryResponseSink, WebhookResponseSink

logger = logging.getLogger(__name__)


def build_sink(settings: ServerSettings) -> ResponseSink:
    """Pick the response sink from settings (webhook if configured)."""
    if settings.response_webhook_url:
        logger.info("Responses will be POSTed to %s", settings.response_webhook_url)
        return WebhookResponseSink(
            settings.response_webhook_url,
            timeout=settings.response_webhook_timeout,
        )
    return InMemoryResponseSink()


async def _cleanup_loop(engine: FormEngine, settings: ServerSettings) -> None:
    """Periodically purge sessions idle for longer than the configured limit."""
    max_idle = timedelta(minutes=settings.session_idle_minutes)
    while True:
        await asyncio.sleep(settings.session_cleanup_interval)
        purged = await engine.purge_idle_sessions(max_idle)
        if purged:
            logger.info("Idle-session cleanup purged %d session(s)", purged)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load form definitions into a ``FormStore``
      2. Build the response sink and the ``FormEngine``
      3. Stash them on ``app.state`` for dependency injection
      4. Start the idle-session cleanup task (if enabled)

    Shutdown:
      1. Cancel the cleanup task
      2. Close the webhook client (if any)
    """
    settings: ServerSettings = app.state.settings

    # --- Load forms ---
    store = FormStore(forms_dir=settings.forms_dir)
    store.load()
    logger.info("FormStore loaded successfully")

    # --- Build engine ---
    sink = build_sink(settings)
    engine = FormEngine(store, sink)

    app.state.store = store
    app.state.sink = sink
    app.state.engine = engine

    cleanup_task: asyncio.Task | None = None
    if settings.session_idle_minutes > 0:
        cleanup_task = asyncio.create_task(_cleanup_loop(engine, settings))
        logger.info(
            "Idle-session cleanup enabled: every %ds, idle limit %d min",
            settings.session_cleanup_interval,
            settings.session_idle_minutes,
        )

    yield

    # --- Shutdown ---
    if cleanup_task is not None:
        cleanup_task.cancel()
        with suppress(asyncio.CancelledError):
            await cleanup_task
    if isinstance(sink, WebhookResponseSink):
        await sink.aclose()
        logger.info("Webhook client closed")


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
        title="Formflow API Server",
        description="REST API for filling forms with conditional workflows",
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
    async def health(request: Request) -> dict:
        """Readiness probe — reports loaded forms."""
        store: FormStore | None = getattr(request.app.state, "store", None)
        if store is None:
            return {"status": "error", "detail": "forms not loaded"}
        return {"status": "ok", "forms": len(store.forms)}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn formflow_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``formflow-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "formflow_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
