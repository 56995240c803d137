import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from plantcare.core.exceptions import TaskNotFoundError
from plantcare.models.plant import Plant, PlantTask
from plantcare.services.due_dates import compute_next_due_date

logger = logging.getLogger(__name__)


async def get_task_for_user(db: AsyncSession, task_id: int, user_id: int) -> PlantTask:
    task = await db.scalar(
        select(PlantTask)
        .join(Plant, PlantTask.plant_id == Plant.id)
        .where(PlantTask.id == task_id, Plant.user_id == user_id)
    )
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


async def get_plant_for_user(db: AsyncSession, plant_id: int, user_id: int) -> Optional[Plant]:
    return await db.scalar(
        select(Plant)
        .options(selectinload(Plant.tasks))
        .where(Plant.id == plant_id, Plant.user_id == user_id)
    )


async def mark_task_completed(
    db: AsyncSession,
    task_id: int,
    completed_at: Optional[datetime] = None,
    tz: Optional[str] = None,
) -> PlantTask:
    """Stamp the completion and push next_due_on out by the task's frequency."""
    task = await db.scalar(select(PlantTask).where(PlantTask.id == task_id))
    if task is None:
        raise TaskNotFoundError(task_id)

    now = completed_at or datetime.now(timezone.utc)
    task.last_completed_on = now
    task.next_due_on = compute_next_due_date(task.frequency_days, now, tz)
    await db.commit()
    await db.refresh(task)

    logger.info("mark_task_completed: task %d completed, next due %s", task_id, task.next_due_on.isoformat())
    return task
