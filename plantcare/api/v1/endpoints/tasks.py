from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.deps import CurrentUser, get_db
from plantcare.core.exceptions import TaskNotFoundError
from plantcare.schemas.task import PlantTaskRead
from plantcare.services.task_service import get_task_for_user, mark_task_completed
from plantcare.services.user_settings import get_user_timezone

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/{task_id}/complete", response_model=PlantTaskRead)
async def complete_task(task_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    try:
        await get_task_for_user(db, task_id, current_user.id)
        tz = await get_user_timezone(db, current_user.id)
        return await mark_task_completed(db, task_id, tz=tz)
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
