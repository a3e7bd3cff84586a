"""Background loops driving recent and full reconciliation cycles."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging

from zendesk_jira_sync.core.config import Settings
from zendesk_jira_sync.sync.engine import PollEngine
from zendesk_jira_sync.sync.schemas import CycleMode, CycleResult, CycleStatus, SchedulerStatus

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SyncScheduler:
    """Runs at most one cycle at a time; triggers that arrive mid-cycle are dropped."""

    def __init__(
        self,
        engine: PollEngine,
        *,
        recent_interval: float = 30,
        full_interval: float = 30 * 60,
    ) -> None:
        self.engine = engine
        self.recent_interval = recent_interval
        self.full_interval = full_interval
        self.is_syncing = False
        self.cycles_triggered = 0
        self.last_result: CycleResult | None = None
        self._timers: list[asyncio.Task] = []
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return bool(self._timers)

    async def run_guarded(self, mode: CycleMode) -> CycleResult:
        self.cycles_triggered += 1
        sequence = self.cycles_triggered
        if self.is_syncing:
            logger.info("Sync already in progress, skipping %s cycle #%s", mode.value, sequence)
            now = _utcnow()
            return CycleResult(sequence=sequence, mode=mode, status=CycleStatus.skipped, started_at=now, finished_at=now)

        self.is_syncing = True
        started_at = _utcnow()
        try:
            result = await asyncio.to_thread(self.engine.run_cycle, mode, sequence=sequence)
            logger.info(
                "Sync cycle #%s (%s) %s in %sms: tickets=%s issues=%s changed=%s updated=%s",
                sequence,
                mode.value,
                result.status.value,
                result.duration_ms,
                result.tickets_considered,
                result.issues_fetched,
                result.issues_changed,
                result.tickets_updated,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error in sync cycle #%s (%s)", sequence, mode.value)
            result = CycleResult(
                sequence=sequence,
                mode=mode,
                status=CycleStatus.failed,
                started_at=started_at,
                finished_at=_utcnow(),
                error=str(exc) or exc.__class__.__name__,
            )
        finally:
            self.is_syncing = False
        self.last_result = result
        return result

    def _spawn(self, mode: CycleMode) -> None:
        task = asyncio.create_task(self.run_guarded(mode), name=f"sync-cycle-{mode.value}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _loop(self, mode: CycleMode, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self._spawn(mode)

    async def start(self) -> None:
        if self._timers:
            return
        # warm the cache before any recent cycle asks Jira about tracked issues
        await self.run_guarded(CycleMode.full)
        self._timers = [
            asyncio.create_task(self._loop(CycleMode.recent, self.recent_interval), name="sync-recent-timer"),
            asyncio.create_task(self._loop(CycleMode.full, self.full_interval), name="sync-full-timer"),
        ]
        logger.info(
            "Sync loops started (recent every %ss, full every %ss)",
            self.recent_interval,
            self.full_interval,
        )

    async def stop(self) -> None:
        timers = self._timers
        self._timers = []
        for task in timers:
            task.cancel()
        for task in timers:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
        logger.info("Sync loops stopped")

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self.running,
            is_syncing=self.is_syncing,
            cycles_triggered=self.cycles_triggered,
            cached_issues=len(self.engine.cache),
            recent_interval_seconds=int(self.recent_interval),
            full_interval_seconds=int(self.full_interval),
            last_result=self.last_result,
        )


def build_scheduler(config: Settings) -> SyncScheduler:
    return SyncScheduler(
        PollEngine.from_settings(config),
        recent_interval=max(5, config.SYNC_RECENT_INTERVAL_SECONDS),
        full_interval=max(60, config.SYNC_FULL_INTERVAL_SECONDS),
    )
