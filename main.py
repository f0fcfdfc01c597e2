"""FastAPI application: entry point for the FulxerPro dashboard server."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from dashboard import dashboard_router
from jobs.error_log import ErrorLog
from jobs.orchestrator import JobOrchestrator
from jobs.reconciler import ViewStateReconciler
from routes import router
from widgets import build_widgets, register_regions

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def setup_state(app: FastAPI, orchestrator: JobOrchestrator | None = None) -> None:
    """Create the error log, reconciler and widgets on ``app.state``.

    Widgets are left as None when no API key is configured, which turns every
    AI route into a 503. Passing an orchestrator skips that check.
    """
    error_log = orchestrator.error_log if orchestrator else ErrorLog()
    reconciler = ViewStateReconciler()
    register_regions(reconciler)

    app.state.error_log = error_log
    app.state.reconciler = reconciler
    app.state.started_at = time.monotonic()

    if orchestrator is None and not settings.api_key:
        logger.warning("API_KEY environment variable not set. AI features disabled.")
        app.state.orchestrator = None
        app.state.widgets = None
        return

    orchestrator = orchestrator or JobOrchestrator(error_log)
    app.state.orchestrator = orchestrator
    app.state.widgets = build_widgets(orchestrator, reconciler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("=" * 70)
    logger.info("%s v%s - Starting Up", settings.platform_name, settings.platform_version)
    logger.info("=" * 70)
    logger.info("Server: %s", settings.server_label)
    logger.info("Port: %d", settings.port)

    if getattr(app.state, "widgets", None) is None:
        setup_state(app)
    logger.info("AI features: %s", "enabled" if app.state.widgets else "disabled")

    logger.info("=" * 70)
    logger.info("%s server running on port %d", settings.platform_name, settings.port)
    logger.info("Dashboard: http://localhost:%d", settings.port)
    logger.info("Health check: http://localhost:%d/health", settings.port)
    logger.info("=" * 70)
    yield

    # Shutdown
    if app.state.widgets is not None:
        logger.info("Cancelling running jobs...")
        for widget in app.state.widgets.all():
            widget.cancel_all()
    logger.info("Shutdown complete")


app = FastAPI(
    title=f"{settings.platform_name} Investors",
    description="AI-driven investment dashboard",
    version=settings.platform_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health(request: Request):
    return {
        "status": "healthy",
        "message": f"{settings.platform_name} server is running perfectly",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": time.monotonic() - request.app.state.started_at,
    }


@app.get("/api/status")
async def status():
    return {
        "platform": settings.platform_name,
        "version": settings.platform_version,
        "status": "active",
        "server": settings.server_label,
        "port": settings.port,
    }


app.include_router(dashboard_router)
app.include_router(router)

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port)
