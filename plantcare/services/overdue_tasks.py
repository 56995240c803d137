"""
Overdue task finder.

A task is overdue when it is active and ``next_due_on <= now``. Only tasks
whose owner can actually receive a push (token registered and notifications
switched on) are returned; that filter lives in SQL so users without a
registration never cost a row.

Every public function here swallows query errors, logs them and returns an
empty value instead. The scheduler runs again a minute later, so an empty
cycle is cheaper than a crashed one.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.models.plant import Plant, PlantTask, display_name
from plantcare.models.user import User, UserSettings
from plantcare.services.due_dates import as_utc

logger = logging.getLogger(__name__)


@dataclass
class OverdueTask:
    """An overdue task with everything dispatch needs, so no further joins are required."""

    id: int
    plant_id: int
    plant_name: str
    task_key: str
    next_due_on: datetime
    last_completed_on: Optional[datetime]
    plant_created_at: datetime
    user_id: int
    user_persona: str
    fcm_token: str
    notifications_enabled_at: Optional[datetime] = None
    timezone: str = "UTC"


@dataclass
class OverdueTaskStats:
    total_overdue_tasks: int = 0
    users_with_overdue_tasks: int = 0
    tasks_by_type: dict[str, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "OverdueTaskStats":
        return cls()


def _overdue_filter(query: Select, now: datetime) -> Select:
    return (
        query
        .select_from(PlantTask)
        .join(Plant, PlantTask.plant_id == Plant.id)
        .join(User, Plant.user_id == User.id)
        .join(UserSettings, UserSettings.user_id == User.id)
        .where(
            PlantTask.active.is_(True),
            PlantTask.next_due_on <= now,
            User.is_active.is_(True),
            UserSettings.fcm_token.isnot(None),
            UserSettings.notifications_enabled.is_(True),
        )
    )


def _to_overdue_task(task: PlantTask, plant: Plant, user_settings: UserSettings) -> OverdueTask:
    return OverdueTask(
        id=task.id,
        plant_id=plant.id,
        plant_name=display_name(plant.pet_name, plant.common_name, plant.botanical_name),
        task_key=task.task_key,
        next_due_on=as_utc(task.next_due_on),
        last_completed_on=as_utc(task.last_completed_on) if task.last_completed_on else None,
        plant_created_at=as_utc(plant.created_at),
        user_id=plant.user_id,
        user_persona=user_settings.persona,
        fcm_token=user_settings.fcm_token,
        notifications_enabled_at=(
            as_utc(user_settings.notifications_enabled_at)
            if user_settings.notifications_enabled_at else None
        ),
        timezone=user_settings.timezone or "UTC",
    )


async def _query_overdue(db: AsyncSession, now: datetime, user_id: Optional[int] = None) -> list[OverdueTask]:
    query = _overdue_filter(select(PlantTask, Plant, UserSettings), now)
    if user_id is not None:
        query = query.where(Plant.user_id == user_id)
    query = query.order_by(PlantTask.next_due_on.asc(), PlantTask.id.asc())

    result = await db.execute(query)
    return [_to_overdue_task(task, plant, user_settings) for task, plant, user_settings in result.all()]


async def find_overdue_tasks(db: AsyncSession, now: Optional[datetime] = None) -> list[OverdueTask]:
    """All notifiable overdue tasks, most overdue first. Returns [] on failure."""
    now = now or datetime.now(timezone.utc)
    try:
        tasks = await _query_overdue(db, now)
    except Exception:
        logger.exception("find_overdue_tasks: query failed, returning no tasks")
        await db.rollback()
        return []

    logger.info("find_overdue_tasks: found %d overdue tasks for notification", len(tasks))
    return tasks


async def find_overdue_tasks_for_user(
    db: AsyncSession,
    user_id: int,
    now: Optional[datetime] = None,
) -> list[OverdueTask]:
    now = now or datetime.now(timezone.utc)
    try:
        return await _query_overdue(db, now, user_id=user_id)
    except Exception:
        logger.exception("find_overdue_tasks_for_user: query failed for user %d", user_id)
        await db.rollback()
        return []


async def get_overdue_tasks_grouped_by_user(
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> dict[int, list[OverdueTask]]:
    """Partition overdue tasks by owner. Users appear in order of their most overdue task."""
    tasks_by_user: dict[int, list[OverdueTask]] = {}
    for task in await find_overdue_tasks(db, now):
        tasks_by_user.setdefault(task.user_id, []).append(task)
    return tasks_by_user


async def get_overdue_task_stats(db: AsyncSession, now: Optional[datetime] = None) -> OverdueTaskStats:
    now = now or datetime.now(timezone.utc)
    try:
        by_type = await db.execute(
            _overdue_filter(select(PlantTask.task_key, func.count(PlantTask.id)), now)
            .group_by(PlantTask.task_key)
        )
        users = await db.scalar(
            _overdue_filter(select(func.count(distinct(Plant.user_id))), now)
        )
    except Exception:
        logger.exception("get_overdue_task_stats: query failed, returning zeroed stats")
        await db.rollback()
        return OverdueTaskStats.empty()

    tasks_by_type = {task_key: count for task_key, count in by_type.all()}
    return OverdueTaskStats(
        total_overdue_tasks=sum(tasks_by_type.values()),
        users_with_overdue_tasks=users or 0,
        tasks_by_type=tasks_by_type,
    )


async def is_task_overdue(db: AsyncSession, task_id: int, now: Optional[datetime] = None) -> bool:
    """True when the task exists, is active and due. Unlike the finder, ignores push eligibility."""
    now = now or datetime.now(timezone.utc)
    try:
        task = await db.scalar(select(PlantTask).where(PlantTask.id == task_id))
    except Exception:
        logger.exception("is_task_overdue: query failed for task %d", task_id)
        await db.rollback()
        return False

    if task is None or not task.active:
        return False
    return as_utc(task.next_due_on) <= now
