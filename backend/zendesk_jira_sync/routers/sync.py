"""Sync status and manual trigger endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from zendesk_jira_sync.core.exceptions import BadRequestError
from zendesk_jira_sync.sync.scheduler import SyncScheduler
from zendesk_jira_sync.sync.schemas import CycleMode, CycleResult, SchedulerStatus

router = APIRouter()


def _scheduler(request: Request) -> SyncScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise BadRequestError("sync_not_configured")
    return scheduler


@router.get("/sync/status", response_model=SchedulerStatus)
def sync_status(request: Request) -> SchedulerStatus:
    return _scheduler(request).status()


@router.post("/sync/run", response_model=CycleResult)
async def sync_run(request: Request, mode: CycleMode = Query(default=CycleMode.full)) -> CycleResult:
    return await _scheduler(request).run_guarded(mode)
