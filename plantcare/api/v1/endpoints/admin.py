from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.deps import AdminUser, Scheduler, get_db
from plantcare.schemas.notification import (
    CycleSummaryRead,
    NotificationStatsRead,
    OverdueTaskStatsRead,
    SchedulerStatusRead,
    TriggerResponse,
)
from plantcare.services.overdue_tasks import get_overdue_task_stats

router = APIRouter(prefix="/admin/notifications", tags=["admin"])


@router.get("/stats", response_model=NotificationStatsRead)
async def get_notification_stats(
    admin_user: AdminUser,
    scheduler: Scheduler,
    db: AsyncSession = Depends(get_db),
):
    stats = await get_overdue_task_stats(db)
    return NotificationStatsRead(
        overdue_tasks=OverdueTaskStatsRead.model_validate(stats),
        scheduler=SchedulerStatusRead.model_validate(scheduler.status()),
    )


@router.get("/scheduler", response_model=SchedulerStatusRead)
async def get_scheduler_status(admin_user: AdminUser, scheduler: Scheduler):
    return scheduler.status()


@router.post("/scheduler/trigger", response_model=TriggerResponse)
async def trigger_scheduler(admin_user: AdminUser, scheduler: Scheduler):
    summary = await scheduler.trigger()
    return TriggerResponse(
        ran=summary is not None,
        summary=CycleSummaryRead.model_validate(summary) if summary is not None else None,
        status=SchedulerStatusRead.model_validate(scheduler.status()),
    )


@router.post("/scheduler/start", response_model=SchedulerStatusRead)
async def start_scheduler(admin_user: AdminUser, scheduler: Scheduler):
    scheduler.start()
    return scheduler.status()


@router.post("/scheduler/stop", response_model=SchedulerStatusRead)
async def stop_scheduler(admin_user: AdminUser, scheduler: Scheduler):
    scheduler.stop()
    return scheduler.status()


@router.post("/scheduler/reset-index", response_model=SchedulerStatusRead)
async def reset_notification_index(admin_user: AdminUser, scheduler: Scheduler):
    scheduler.reset_notification_index()
    return scheduler.status()
