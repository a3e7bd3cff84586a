from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from zendesk_jira_sync.core.config import settings
from zendesk_jira_sync.core.exceptions import SyncServiceException
from zendesk_jira_sync.core.logging import setup_logging
from zendesk_jira_sync.routers import health, sync
from zendesk_jira_sync.sync.scheduler import SyncScheduler, build_scheduler


def create_app(scheduler: SyncScheduler | None = None) -> FastAPI:
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = scheduler
        if active is None:
            # missing configuration aborts startup before anything is scheduled
            settings.validate_required()
            active = build_scheduler(settings)
        app.state.scheduler = active
        if settings.SYNC_ENABLED:
            await active.start()
        try:
            yield
        finally:
            await active.stop()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    app.include_router(sync.router, prefix="/api", tags=["sync"])
    app.include_router(health.router, prefix="/api", tags=["health"])

    @app.exception_handler(SyncServiceException)
    async def handle_sync_exception(_: Request, exc: SyncServiceException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    return app


app = create_app()
