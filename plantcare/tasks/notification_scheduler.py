"""
Overdue-task notification scheduler.

Fires every ``interval_seconds`` (aligned to the interval boundary, so every
minute on the minute by default), finds overdue tasks, and sends at most one
push per user per cycle.

State lives on the instance: the round-robin ``notification_index`` and the
``is_processing`` overlap guard. The guard is checked and set before the
first await, so two cycles can never interleave inside one event loop. A tick
that lands while a cycle is still running is dropped; the next tick sees a
fresh "now" and loses nothing.

Single process only. Two schedulers against the same database would each
send, since nothing coordinates them.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from plantcare.models.logs import PipelineRun
from plantcare.services.notifications import DispatchResult, NotificationDispatcher
from plantcare.services.overdue_tasks import get_overdue_task_stats, get_overdue_tasks_grouped_by_user

logger = logging.getLogger(__name__)

PIPELINE_NAME = "overdue_notifications"


@dataclass
class CycleSummary:
    notification_index: int
    started_at: datetime
    users: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0
    status: str = "success"
    error: Optional[str] = None

    @classmethod
    def from_results(cls, notification_index: int, started_at: datetime, results: list[DispatchResult]) -> "CycleSummary":
        return cls(
            notification_index=notification_index,
            started_at=started_at,
            users=len(results),
            successful=sum(1 for r in results if r.success and not r.skipped),
            failed=sum(1 for r in results if not r.success),
            skipped=sum(1 for r in results if r.skipped),
        )


@dataclass
class SchedulerStatus:
    is_running: bool
    is_processing: bool
    notification_index: int
    interval_seconds: int
    next_run_at: Optional[datetime] = None
    last_cycle: Optional[CycleSummary] = None


class NotificationScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: NotificationDispatcher,
        interval_seconds: int = 60,
    ):
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self.interval_seconds = interval_seconds

        self.notification_index = 0
        self.is_processing = False
        self.next_run_at: Optional[datetime] = None
        self.last_cycle: Optional[CycleSummary] = None

        self._timer: Optional[asyncio.Task] = None
        self._cycles: set[asyncio.Task] = set()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        """Start the recurring timer. Must be called from a running event loop."""
        if self.is_running:
            logger.info("scheduler: already running")
            return
        self._timer = asyncio.create_task(self._run_timer(), name="notification-scheduler")
        logger.info("scheduler: started, checking for overdue tasks every %ds", self.interval_seconds)

    def stop(self) -> None:
        """Cancel the timer. A cycle already in flight runs to completion."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        self.next_run_at = None
        logger.info("scheduler: stopped")

    async def wait_for_cycles(self) -> None:
        """Wait for in-flight cycles started by the timer (used on shutdown)."""
        if self._cycles:
            await asyncio.gather(*self._cycles, return_exceptions=True)

    def seconds_until_next_tick(self, now: datetime) -> float:
        return self.interval_seconds - (now.timestamp() % self.interval_seconds)

    async def _run_timer(self) -> None:
        # First fire lands on the wall-clock boundary, later fires are spaced on the loop clock
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self.seconds_until_next_tick(datetime.now(timezone.utc))
        while True:
            delay = max(0.0, next_fire - loop.time())
            self.next_run_at = datetime.now(timezone.utc) + timedelta(seconds=delay)
            await asyncio.sleep(delay)

            cycle = asyncio.create_task(self.process_overdue_tasks(), name="notification-cycle")
            self._cycles.add(cycle)
            cycle.add_done_callback(self._cycles.discard)

            next_fire += self.interval_seconds
            # Skip ticks missed while the loop was blocked
            while next_fire <= loop.time():
                next_fire += self.interval_seconds

    # ── Cycle ─────────────────────────────────────────────────────────────────

    async def trigger(self) -> Optional[CycleSummary]:
        """Run one cycle now, subject to the same overlap guard as the timer."""
        logger.info("scheduler: manually triggering notification cycle")
        return await self.process_overdue_tasks()

    async def process_overdue_tasks(self) -> Optional[CycleSummary]:
        """
        Run one cycle and return its summary.

        A cycle that raised still returns a summary with status "failed". None
        means the cycle was skipped because another one was running.
        """
        if self.is_processing:
            logger.info("scheduler: previous notification cycle still running, skipping this one")
            return None
        self.is_processing = True

        index = self.notification_index
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        try:
            summary = await self._run_cycle(index, started_at)
            logger.info(
                "scheduler: cycle %d complete, %d sent, %d skipped, %d failed",
                index, summary.successful, summary.skipped, summary.failed,
            )
        except Exception as exc:
            logger.exception("scheduler: notification cycle %d failed", index)
            summary = CycleSummary(notification_index=index, started_at=started_at, status="failed", error=str(exc))
        finally:
            self.notification_index += 1
            self.is_processing = False
            logger.info("scheduler: cycle %d took %dms", index, int((time.monotonic() - start) * 1000))
        summary.duration_ms = int((time.monotonic() - start) * 1000)
        self.last_cycle = summary
        return summary

    async def _run_cycle(self, index: int, started_at: datetime) -> CycleSummary:
        async with self._session_factory() as db:
            try:
                tasks_by_user = await get_overdue_tasks_grouped_by_user(db)
                if not tasks_by_user:
                    logger.info("scheduler: no overdue tasks found")
                    return CycleSummary(notification_index=index, started_at=started_at)

                stats = await get_overdue_task_stats(db)
                logger.info(
                    "scheduler: %d overdue tasks across %d users %s",
                    stats.total_overdue_tasks, stats.users_with_overdue_tasks, stats.tasks_by_type,
                )

                results = await self._dispatcher.send_notifications_to_users(db, tasks_by_user, index)
                summary = CycleSummary.from_results(index, started_at, results)
                await self._record_run(db, "success", started_at, records=summary.successful)
                return summary
            except Exception as exc:
                await db.rollback()
                await self._record_run(db, "failed", started_at, error=str(exc))
                raise

    async def _record_run(
        self,
        db: AsyncSession,
        status: str,
        started_at: datetime,
        records: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        finished_at = datetime.now(timezone.utc)
        db.add(PipelineRun(
            pipeline_name=PIPELINE_NAME,
            status=status,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=int((finished_at - started_at).total_seconds() * 1000),
            records_processed=records,
            error_message=error,
        ))
        try:
            await db.commit()
        except Exception:
            logger.exception("scheduler: failed to record pipeline run")
            await db.rollback()

    # ── Introspection ─────────────────────────────────────────────────────────

    def reset_notification_index(self) -> None:
        self.notification_index = 0
        logger.info("scheduler: notification index reset to 0")

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            is_running=self.is_running,
            is_processing=self.is_processing,
            notification_index=self.notification_index,
            interval_seconds=self.interval_seconds,
            next_run_at=self.next_run_at if self.is_running else None,
            last_cycle=self.last_cycle,
        )
