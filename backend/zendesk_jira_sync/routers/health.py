"""Health endpoint reporting API reachability."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from zendesk_jira_sync.services import health

router = APIRouter()


@router.get("/health")
async def health_check() -> JSONResponse:
    status = await run_in_threadpool(health.check_connectivity)
    ok = all(status.values())
    return JSONResponse(status_code=200 if ok else 503, content={"status": "ok" if ok else "degraded", **status})
