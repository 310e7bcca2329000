"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from toggl_sync import __version__
from toggl_sync.api.v1.api import api_router
from toggl_sync.config import settings
from toggl_sync.exceptions import ApiUnavailableError, ConfigurationError, ConnectivityError
from toggl_sync.scheduler import scheduler, start_scheduler, shutdown_scheduler
from toggl_sync.services.events import RecentNotices, SyncEvent
from toggl_sync.services.sync_coordinator import SyncCoordinator
from toggl_sync.utils.logging_setup import configure_logging

# Configure root logger early
configure_logging(settings.log_level)

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    start_scheduler()
    coordinator = SyncCoordinator(settings, scheduler)
    notices = RecentNotices()
    coordinator.events.subscribe(SyncEvent.NOTICE, notices.append)
    coordinator.events.subscribe(SyncEvent.NOTICE, lambda text: log.warning(f"Notice: {text}"))
    app.state.coordinator = coordinator
    app.state.notices = notices

    await coordinator.set_token(settings.toggl_api_token)
    log.info(f"Toggl sync started (status: {coordinator.api_status.value})")
    try:
        yield
    finally:
        await coordinator.close()
        shutdown_scheduler()


app = FastAPI(
    title="Toggl Sync",
    description="Local view of a Toggl Track account: running timer, daily summary and reports",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__
    }


@app.get("/")
async def root():
    """Root endpoint - redirect to docs."""
    return {
        "message": "Toggl Sync API",
        "version": __version__,
        "docs": "/docs"
    }


app.include_router(api_router, prefix=settings.api_v1_str)


@app.exception_handler(ApiUnavailableError)
async def api_unavailable_handler(request: Request, exc: ApiUnavailableError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "api_status": exc.api_status.value}
    )


@app.exception_handler(ConnectivityError)
async def connectivity_error_handler(request: Request, exc: ConnectivityError):
    log.error(f"Toggl request failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)}
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn_level = "debug" if settings.log_level.upper() == "VERBOSE" else settings.log_level.lower()
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=uvicorn_level)
