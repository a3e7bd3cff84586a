"""DTOs for reconciliation cycles."""

from __future__ import annotations

import datetime as dt
import enum

from pydantic import BaseModel


class CycleMode(str, enum.Enum):
    recent = "recent"
    full = "full"


class CycleStatus(str, enum.Enum):
    ok = "ok"
    noop = "noop"
    skipped = "skipped"
    failed = "failed"


class TicketSelection(str, enum.Enum):
    # tickets whose issue changed, or whose issue was considered at all this cycle
    considered = "considered"
    changed = "changed"


class CycleResult(BaseModel):
    sequence: int = 0
    mode: CycleMode
    status: CycleStatus = CycleStatus.ok
    started_at: dt.datetime
    finished_at: dt.datetime | None = None
    duration_ms: int = 0
    tickets_considered: int = 0
    issues_fetched: int = 0
    issues_changed: int = 0
    tickets_updated: int = 0
    error: str | None = None


class SchedulerStatus(BaseModel):
    running: bool = False
    is_syncing: bool = False
    cycles_triggered: int = 0
    cached_issues: int = 0
    recent_interval_seconds: int
    full_interval_seconds: int
    last_result: CycleResult | None = None
