from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.deps import CurrentUser, get_db
from plantcare.schemas.plant import BadgeRead, PlantHealthRead
from plantcare.services.plant_health import summarize_plant_health
from plantcare.services.task_service import get_plant_for_user
from plantcare.services.user_settings import get_user_timezone

router = APIRouter(prefix="/plants", tags=["plants"])


@router.get("/{plant_id}/health", response_model=PlantHealthRead)
async def get_plant_health(plant_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    plant = await get_plant_for_user(db, plant_id, current_user.id)
    if not plant:
        raise HTTPException(status_code=404, detail="Plant not found")

    tz = await get_user_timezone(db, current_user.id)
    health = summarize_plant_health(plant, tz=tz)
    return PlantHealthRead(
        plant_id=plant.id,
        display_name=plant.display_name,
        health_score=health.health_score,
        care_streak=health.care_streak,
        badge=BadgeRead.model_validate(health.badge),
    )
