from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.security import create_access_token
from plantcare.models.plant import Plant, PlantTask
from plantcare.models.user import User, UserSettings

_seq = count(1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_ago(days: float) -> datetime:
    return utcnow() - timedelta(days=days)


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(str(user.id), role=user.role)
    return {"Authorization": f"Bearer {token}"}


async def create_user(
    db: AsyncSession,
    *,
    fcm_token: Optional[str] = "default",
    notifications_enabled: bool = True,
    notifications_enabled_at: Optional[datetime] = None,
    persona: str = "PRIMARY",
    timezone_name: str = "UTC",
    role: str = "user",
    is_active: bool = True,
    with_settings: bool = True,
) -> User:
    n = next(_seq)
    user = User(first_name=f"Grower{n}", email=f"grower{n}@example.com", role=role, is_active=is_active)
    db.add(user)
    await db.flush()

    if with_settings:
        db.add(UserSettings(
            user_id=user.id,
            fcm_token=f"fcm-token-{n}" if fcm_token == "default" else fcm_token,
            notifications_enabled=notifications_enabled,
            notifications_enabled_at=notifications_enabled_at,
            persona=persona,
            timezone=timezone_name,
        ))
    await db.commit()
    return user


async def get_token(db: AsyncSession, user: User) -> Optional[str]:
    return await db.scalar(select(UserSettings.fcm_token).where(UserSettings.user_id == user.id))


async def create_plant(
    db: AsyncSession,
    user: User,
    *,
    pet_name: Optional[str] = None,
    common_name: Optional[str] = "Monstera",
    botanical_name: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Plant:
    plant = Plant(
        user_id=user.id,
        pet_name=pet_name,
        common_name=common_name,
        botanical_name=botanical_name,
        created_at=created_at or days_ago(30),
    )
    db.add(plant)
    await db.commit()
    return plant


async def create_task(
    db: AsyncSession,
    plant: Plant,
    *,
    task_key: str = "watering",
    frequency_days: int = 7,
    next_due_on: Optional[datetime] = None,
    last_completed_on: Optional[datetime] = None,
    active: bool = True,
) -> PlantTask:
    task = PlantTask(
        plant_id=plant.id,
        task_key=task_key,
        frequency_days=frequency_days,
        next_due_on=next_due_on or days_ago(1),
        last_completed_on=last_completed_on,
        active=active,
    )
    db.add(task)
    await db.commit()
    return task
